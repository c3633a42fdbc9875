"""
FastAPI application entry point.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from survey_api import __version__
from survey_api.assist.factory import create_assist_client
from survey_api.assist.interface import AssistClient
from survey_api.assist.router import router as assist_router
from survey_api.config import Settings, get_settings
from survey_api.memos.router import router as memos_router
from survey_api.responses.router import router as responses_router
from survey_api.shared.correlation import CorrelationIdMiddleware
from survey_api.shared.database import DatabaseManager
from survey_api.shared.exceptions import AppException, StorageError
from survey_api.shared.logging import get_logger, setup_logging
from survey_api.surveys.router import router as surveys_router
from survey_api.users.router import router as users_router

logger = get_logger(__name__)


def _error_body(code: str, message: str, details: dict | None = None) -> dict:
    return {"detail": {"code": code, "message": message, "details": details or {}}}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    db: DatabaseManager = app.state.db

    setup_logging(settings.log_level)
    logger.info("Application starting", extra={"env": settings.app_env})

    if settings.db_create_all:
        await db.create_all()

    yield

    logger.info("Shutting down application")
    await db.close()
    logger.info("Application shutdown complete")


def create_app(
    settings: Settings | None = None,
    database: DatabaseManager | None = None,
    assist_client: AssistClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to run with; defaults to the environment.
        database: Database manager; defaults to one built from ``settings``.
        assist_client: Embedding and generation backend; defaults to the configured provider.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Survey API",
        description="Survey authoring and response collection",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.db = database or DatabaseManager(settings=settings)
    app.state.assist_client = assist_client or create_assist_client(settings)

    @app.exception_handler(StorageError)
    async def _storage_error(request: Request, exc: StorageError) -> JSONResponse:
        # Cause was already logged where it was raised; never echo it.
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("INTERNAL_ERROR", "Internal server error"),
        )

    @app.exception_handler(AppException)
    async def _app_exception(request: Request, exc: AppException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.code, exc.message, exc.details),
        )

    @app.exception_handler(SQLAlchemyError)
    async def _unclassified_storage_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error(
            "Unhandled storage error",
            exc_info=exc,
            extra={"path": request.url.path, "method": request.method},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("INTERNAL_ERROR", "Internal server error"),
        )

    # Request validation (FastAPI/Pydantic) -> consistent 422 payload
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            errors.append(
                {
                    "field": field,
                    "message": error["msg"],
                    "type": error["type"],
                }
            )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": {
                    "code": "VALIDATION_ERROR",
                    "message": "Request validation failed",
                    "errors": errors,
                }
            },
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(users_router)
    app.include_router(surveys_router)
    app.include_router(responses_router)
    app.include_router(memos_router)
    app.include_router(assist_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    return app


app = create_app()
