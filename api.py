"""
Child Booklet FastAPI Application

Main entry point for the child booklet API: admin console, identity lookup,
child record uploads and eSignet login.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.utils import register_exception_handlers
from booklet import __version__
from booklet.config import Settings, get_settings
from booklet.dependencies import ServiceContainer, build_services, close_services
from booklet.routers import (
    admin_router,
    identities_router,
    child_router,
    esignet_router,
    exchange_router,
)
from booklet.services.oidc import UpstreamError

logger = logging.getLogger(__name__)

SERVICE_NAME = "child-booklet-api"


async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    """Relay the identity provider's status and body unchanged."""
    return JSONResponse(status_code=exc.status_code, content=exc.body)


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Application settings (loaded from the environment by default)
        services: Pre-built services; when given, the lifespan does not
            connect to any database

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()

    # =========================================================================
    # Application Lifespan
    # =========================================================================
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Connects databases and builds services on startup, closes them on
        shutdown.
        """
        if services is not None:
            yield
            return

        logger.info("Starting Child Booklet API...")
        try:
            settings.validate_required()
        except ValueError as e:
            logger.critical(str(e))
            raise SystemExit(1)

        container = await build_services(settings)
        app.state.services = container
        logger.info(
            f"Child Booklet API started (sessions: {container.issuer.mode}, "
            f"mongo: {container.mongo_connected}, postgres: {container.postgres_connected})"
        )

        yield

        logger.info("Shutting down Child Booklet API...")
        await close_services(container)
        logger.info("Child Booklet API shut down complete.")

    app = FastAPI(
        title="Child Booklet API",
        description="Child health record uploads, admin console and eSignet login",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development() else None,
        redoc_url="/redoc" if settings.is_development() else None,
    )

    if services is not None:
        app.state.services = services

    # =========================================================================
    # CORS Middleware
    # =========================================================================
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error Handling
    # =========================================================================
    register_exception_handlers(app)
    app.add_exception_handler(UpstreamError, upstream_error_handler)

    # =========================================================================
    # Routers
    # =========================================================================
    app.include_router(admin_router)
    app.include_router(identities_router)
    app.include_router(child_router)
    app.include_router(esignet_router)
    if settings.oidc_ready():
        app.include_router(exchange_router)

    # =========================================================================
    # Health Check Endpoints
    # =========================================================================
    @app.get("/health", tags=["Health"])
    async def health(request: Request):
        """
        Health check endpoint.

        Returns the status of the API and database connections.
        """
        container = getattr(request.app.state, "services", None)
        return {
            "status": "ok",
            "time": int(time.time() * 1000),
            "mongo": container.mongo_connected if container else False,
            "postgres": container.postgres_connected if container else False,
        }

    @app.get("/", tags=["Health"])
    async def root():
        return {"service": SERVICE_NAME, "version": __version__}

    return app


get_settings().configure_logging()
app = create_app()


# =============================================================================
# Run with Uvicorn
# =============================================================================
if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "api:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development(),
    )
