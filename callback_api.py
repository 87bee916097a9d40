"""
Child Booklet OIDC Callback Application

Serves the eSignet redirect target on its own port. It exchanges the
authorization code and forwards the tokens to the SPA.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from common.utils import register_exception_handlers
from booklet.config import Settings, get_settings
from booklet.dependencies import ServiceContainer, build_oidc_relay
from booklet.routers import callback_router

logger = logging.getLogger(__name__)


def create_callback_app(
    settings: Optional[Settings] = None,
    services: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Build the callback application.

    Only the OIDC relay is needed here; no database is opened.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if services is None:
            app.state.services = ServiceContainer(
                settings=settings,
                oidc=build_oidc_relay(settings),
            )
            logger.info(f"OIDC callback server ready, redirect URI: {settings.REDIRECT_URI}")
        yield

    app = FastAPI(
        title="Child Booklet OIDC Callback",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
    )

    if services is not None:
        app.state.services = services

    register_exception_handlers(app)
    app.include_router(callback_router)

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok", "port": settings.CALLBACK_PORT}

    return app


get_settings().configure_logging()
app = create_callback_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "callback_api:app",
        host=settings.HOST,
        port=settings.CALLBACK_PORT,
        reload=settings.is_development(),
    )
