"""
FastAPI router for the OIDC redirect callback.

Mounted by the callback app, which runs on its own port.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from booklet.dependencies import ServiceContainer, get_services
from booklet.pipelines.callback import callback_pipeline
from booklet.schemas.oidc import ClientMetaResponse

router = APIRouter(tags=["callback"])


@router.get("/callback")
async def callback(
    services: ServiceContainer = Depends(get_services),
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
):
    """
    Provider redirect target.

    Exchanges the code and forwards the tokens to the SPA.
    """
    return await callback_pipeline(
        relay=services.oidc,
        processed_codes=services.processed_codes,
        frontend_url=services.settings.FRONTEND_URL,
        code=code,
        state=state,
        error=error,
    )


@router.get("/client-meta", response_model=ClientMetaResponse)
async def client_meta(services: ServiceContainer = Depends(get_services)):
    """Public client metadata for the SPA's authorize redirect."""
    settings = services.settings
    return {
        "clientId": settings.OIDC_CLIENT_ID,
        "authorizeUri": settings.OIDC_AUTHORIZE_URI,
        "redirect_uri": settings.REDIRECT_URI,
    }
