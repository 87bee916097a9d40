"""
eSignet (OIDC) pipeline functions.

Stateless orchestration for the authorization-code exchange and for turning
a verified eSignet ID token into an app session.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from common.auth import SessionIssuer
from common.utils.exceptions import (
    BadGatewayException,
    BadRequestException,
    UnauthorizedException,
)
from booklet.services.oidc import DiscoveryError, IdTokenVerificationError, OIDCRelay

logger = logging.getLogger(__name__)

UPLOADER_ROLE = "uploader"


async def exchange_pipeline(
    relay: OIDCRelay,
    code: Optional[str],
    state: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Exchange an authorization code for tokens.

    Args:
        relay: Configured OIDC relay
        code: Authorization code from the redirect
        state: Opaque state echoed back to the caller

    Returns:
        Provider token response plus id_token_claims, id_token_verified,
        userInfo and state

    Raises:
        BadRequestException: code missing
        BadGatewayException: discovery failed or provider unreachable
        UnauthorizedException: ID token failed verification
        UpstreamError: provider rejected the exchange (relayed as is)
    """
    if not code:
        raise BadRequestException(message="Authorization code is required", code="missing_code")

    try:
        return await relay.exchange_code(code, state)
    except DiscoveryError as e:
        raise BadGatewayException(
            message="Could not load the identity provider configuration",
            code="discovery_failed",
            details=str(e),
        )
    except IdTokenVerificationError as e:
        logger.warning(f"Rejected ID token from code exchange: {e}")
        raise UnauthorizedException(
            message="ID token verification failed",
            code="invalid_id_token",
        )
    except httpx.HTTPError as e:
        logger.error(f"Token exchange request failed: {e}")
        raise BadGatewayException(
            message="Identity provider unreachable",
            code="exchange_failed",
        )


async def esignet_login_pipeline(
    relay: OIDCRelay,
    issuer: SessionIssuer,
    id_token: Optional[str],
    name: Optional[str] = None,
    email: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Issue an uploader session for a verified eSignet ID token.

    Name and email from the token win over the ones the client sent.

    Raises:
        BadRequestException: id_token missing
        UnauthorizedException: ID token failed verification
    """
    if not id_token:
        raise BadRequestException(message="id_token is required", code="missing_id_token")

    try:
        claims = await relay.verify_id_token(id_token)
    except IdTokenVerificationError as e:
        logger.warning(f"Rejected eSignet login: {e}")
        raise UnauthorizedException(
            message="ID token verification failed",
            code="invalid_id_token",
        )

    subject = claims.get("sub") or claims.get("email")
    if not subject:
        raise UnauthorizedException(
            message="ID token has no subject",
            code="invalid_id_token",
        )

    issued = await issuer.issue_token(
        subject,
        role=UPLOADER_ROLE,
        name=claims.get("name") or name,
        email=claims.get("email") or email,
    )
    logger.info(f"eSignet session issued for {subject}")

    return {"token": issued.token, "mode": issued.mode, "expiresIn": issued.expires_in}
