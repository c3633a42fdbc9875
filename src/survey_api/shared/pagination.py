"""
Pagination helpers shared by list endpoints.
"""

import math

from pydantic import BaseModel, Field


class PaginationMeta(BaseModel):
    """Pagination metadata."""

    total: int = Field(..., ge=0, description="Total number of items")
    page: int = Field(..., ge=1, description="Current page number")
    page_size: int = Field(..., ge=1, description="Items per page")
    total_pages: int = Field(..., ge=0, description="Total number of pages")

    @classmethod
    def build(cls, total: int, page: int, page_size: int) -> "PaginationMeta":
        total_pages = math.ceil(total / page_size) if total > 0 else 0
        return cls(total=total, page=page, page_size=page_size, total_pages=total_pages)


def page_offset(page: int, page_size: int) -> int:
    """Row offset for a 1-indexed page."""
    return (page - 1) * page_size
