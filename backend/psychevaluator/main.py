"""
Main FastAPI application.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from psychevaluator.api.v1.api import api_router
from psychevaluator.core.config import settings
from psychevaluator.core.logging_config import setup_logging
from psychevaluator.middleware import RequestLoggingMiddleware
from psychevaluator.models import async_engine

# Initialize logging configuration at startup
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan event handler.

    The schema is managed by Alembic; nothing is created here.
    """
    logger.info(
        f"{settings.APP_NAME} {settings.APP_VERSION} starting "
        f"(env={settings.ENV}, notification_channel={settings.NOTIFICATION_CHANNEL}, "
        f"analysis={'configured' if settings.GOOGLE_API_KEY else 'not configured'})"
    )

    yield

    await async_engine.dispose()
    logger.info("Application shutting down - database connections closed")


# OpenAPI tags metadata
tags_metadata = [
    {
        "name": "health",
        "description": "Health check endpoints for monitoring application status",
    },
    {
        "name": "tests",
        "description": "Published tests and their questions",
    },
    {
        "name": "submissions",
        "description": "Starting and finishing a test, and the results view",
    },
]


def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
        description=(
            "**PsycheValuator API** - timed psychological tests with an "
            "AI-assisted analysis step and manual review.\n\n"
            "Respondents take published tests without an account. "
            "Admin endpoints under `/v1/admin` require a Bearer session token "
            "obtained from `/v1/admin/auth/login`."
        ),
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        openapi_tags=tags_metadata,
    )

    # Required by the database browser login
    if settings.ADMIN_UI_ENABLED:
        app.add_middleware(
            SessionMiddleware,
            secret_key=settings.SECRET_KEY,
            session_cookie="admin_session",
            max_age=settings.ADMIN_SESSION_EXPIRE_MINUTES * 60,
            same_site="lax",
            https_only=settings.ENV == "production",
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )

    # Added last so it wraps everything else
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    if settings.ADMIN_UI_ENABLED:
        from sqladmin import Admin

        from psychevaluator.admin import (
            AdminAuth,
            QuestionAdmin,
            TestAdmin,
            TestSubmissionAdmin,
        )

        admin = Admin(
            app=app,
            engine=async_engine,
            title="PsycheValuator Admin",
            base_url="/admin",
            authentication_backend=AdminAuth(secret_key=settings.SECRET_KEY),
        )
        admin.add_view(TestAdmin)
        admin.add_view(QuestionAdmin)
        admin.add_view(TestSubmissionAdmin)
        logger.info("Admin database browser enabled at /admin")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code >= 500:
            logger.error(
                f"HTTP {exc.status_code} on {request.method} {request.url.path}: "
                f"{exc.detail}"
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """
        Handle request validation errors.

        Returns 422 with one entry per failing field.
        """
        errors = [
            {
                "loc": list(error.get("loc", [])),
                "msg": str(error.get("msg", "")),
                "type": str(error.get("type", "")),
            }
            for error in exc.errors()
        ]
        logger.info(
            f"Validation failed on {request.method} {request.url.path}: "
            f"{len(errors)} error(s)"
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": errors},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """
        Handle unexpected exceptions.

        Generates a unique error_id (UUID) for each exception so a report
        can be matched to the logged traceback.
        """
        error_id = str(uuid.uuid4())

        logger.exception(
            f"Unhandled exception [error_id={error_id}]: {exc}",
            extra={"error_id": error_id},
        )

        # Don't leak internal details
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error",
                "error_id": error_id,
            },
        )

    return app


app = create_application()


@app.get("/")
async def root():
    """
    Root endpoint.
    """
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": f"{settings.API_V1_PREFIX}/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "psychevaluator.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_config=None,
    )
