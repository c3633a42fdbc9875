"""
FastAPI dependency resolving the assist backend of the running application.
"""

from typing import Annotated

from fastapi import Depends, Request

from survey_api.assist.interface import AssistClient


def get_assist_client(request: Request) -> AssistClient:
    """Assist backend the running application was built with."""
    return request.app.state.assist_client


AssistClientDep = Annotated[AssistClient, Depends(get_assist_client)]
