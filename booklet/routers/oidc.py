"""
FastAPI routers for eSignet (OIDC) login.

`exchange_router` is only mounted when OIDC is configured.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends

from common.auth import SessionIssuer
from booklet.dependencies import get_issuer, get_oidc_relay
from booklet.pipelines import oidc as oidc_pipelines
from booklet.schemas.oidc import EsignetLoginRequest, ExchangeTokenRequest, SessionTokenResponse
from booklet.services.oidc import OIDCRelay

exchange_router = APIRouter(tags=["oidc"])
router = APIRouter(prefix="/auth", tags=["oidc"])


@exchange_router.post("/exchange-token")
async def exchange_token(
    relay: Annotated[OIDCRelay, Depends(get_oidc_relay)],
    body: Optional[ExchangeTokenRequest] = None,
):
    """
    Exchange an authorization code for tokens.

    Provider errors on the token endpoint are relayed with their status.
    """
    body = body or ExchangeTokenRequest()
    return await oidc_pipelines.exchange_pipeline(relay, body.code, body.state)


@router.post("/esignet", response_model=SessionTokenResponse)
async def esignet_login(
    relay: Annotated[OIDCRelay, Depends(get_oidc_relay)],
    issuer: Annotated[SessionIssuer, Depends(get_issuer)],
    body: Optional[EsignetLoginRequest] = None,
):
    """Trade a verified eSignet ID token for an uploader session."""
    body = body or EsignetLoginRequest()
    return await oidc_pipelines.esignet_login_pipeline(
        relay=relay,
        issuer=issuer,
        id_token=body.id_token,
        name=body.name,
        email=body.email,
    )
