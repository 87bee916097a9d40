"""
OIDC redirect callback pipeline.

Runs the code exchange for the browser redirect and decides which
redirect or HTML page the browser gets back.
"""

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from booklet.services.oidc import (
    DiscoveryError,
    IdTokenVerificationError,
    OIDCRelay,
    ProcessedCodeRegistry,
    UpstreamError,
    render_error_page,
    render_success_page,
)

logger = logging.getLogger(__name__)

LOGIN_FAILED_MESSAGE = "Authentication failed. Please try again."


def _frontend(frontend_url: str, path: str, **params: str) -> str:
    url = f"{frontend_url.rstrip('/')}{path}"
    return f"{url}?{urlencode(params)}" if params else url


async def callback_pipeline(
    relay: Optional[OIDCRelay],
    processed_codes: ProcessedCodeRegistry,
    frontend_url: str,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
) -> Response:
    """
    Handle the provider's redirect back to the app.

    Args:
        relay: OIDC relay, or None when OIDC is not configured
        processed_codes: Codes already redeemed by this process
        frontend_url: SPA origin
        code: Authorization code
        state: Opaque state from the authorize request
        error: Error reported by the provider

    Returns:
        A redirect to the SPA, or an HTML page that forwards to it
    """
    if error:
        logger.warning(f"Provider returned error on callback: {error}")
        return RedirectResponse(
            _frontend(frontend_url, "/callback", error=error, state=state or ""),
            status_code=302,
        )

    if not code:
        return RedirectResponse(_frontend(frontend_url, "/callback", error="no_code"), status_code=302)

    if code in processed_codes:
        logger.info("Authorization code already processed, ignoring replay")
        return RedirectResponse(_frontend(frontend_url, "/", authenticated="true"), status_code=302)

    if relay is None:
        logger.error("Callback received but OIDC is not configured")
        return HTMLResponse(render_error_page(frontend_url, LOGIN_FAILED_MESSAGE))

    try:
        result = await relay.exchange_code(code, state)
    except IdTokenVerificationError as e:
        # The provider has redeemed the code even though we reject its token
        processed_codes.add(code)
        logger.warning(f"Callback ID token rejected: {e}")
        return HTMLResponse(render_error_page(frontend_url, LOGIN_FAILED_MESSAGE))
    except (DiscoveryError, UpstreamError, httpx.HTTPError) as e:
        logger.error(f"Callback token exchange failed: {e}")
        return HTMLResponse(render_error_page(frontend_url, LOGIN_FAILED_MESSAGE))

    processed_codes.add(code)

    payload = {
        "access_token": result.get("access_token"),
        "id_token": result.get("id_token"),
        "userInfo": result.get("userInfo"),
    }
    return HTMLResponse(render_success_page(frontend_url, payload))
