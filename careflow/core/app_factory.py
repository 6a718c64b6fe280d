"""
FastAPI application factory.

`create_app()` is used by `careflow.main` and by the HTTP tests; the
scheduling container itself is built by the lifespan (or installed
directly by tests, since ASGI transports in tests skip the lifespan).
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from careflow.api.exception_handlers import register_exception_handlers
from careflow.api.middleware import RequestLoggingMiddleware
from careflow.api.router import api_router
from careflow.config.settings import Settings, get_settings
from careflow.core.lifecycle import lifespan

logger = logging.getLogger(__name__)


class AppFactory:
    """Builds the scheduling API from `Settings`."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    def create_app(self) -> FastAPI:
        settings = self._settings
        docs_prefix = settings.API_V1_STR if settings.DEBUG else None
        app = FastAPI(
            title=settings.PROJECT_NAME,
            description=settings.PROJECT_DESCRIPTION,
            version=settings.VERSION,
            docs_url=f"{docs_prefix}/docs" if docs_prefix else None,
            redoc_url=f"{docs_prefix}/redoc" if docs_prefix else None,
            lifespan=lifespan,
        )

        self._add_middleware(app)
        register_exception_handlers(app)
        app.include_router(api_router, prefix=settings.API_V1_STR)
        self._add_health_endpoint(app)

        logger.info(f"{settings.PROJECT_NAME} {settings.VERSION} ready ({settings.ENVIRONMENT}, prefix {settings.API_V1_STR})")
        return app

    def _add_middleware(self, app: FastAPI) -> None:
        # Added last runs first: request logging wraps CORS.
        origins = ["*"] if self._settings.is_development else self._settings.CORS_ORIGINS
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        app.add_middleware(RequestLoggingMiddleware)

    def _add_health_endpoint(self, app: FastAPI) -> None:
        settings = self._settings

        @app.get("/health", tags=["health"])
        async def health_check() -> dict[str, str]:
            """Liveness check; does not touch the database."""
            return {"status": "ok", "service": settings.PROJECT_NAME, "environment": settings.ENVIRONMENT}


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the scheduling API application."""
    return AppFactory(settings).create_app()
