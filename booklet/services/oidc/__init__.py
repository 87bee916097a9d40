"""OIDC (eSignet) relay services."""

from booklet.services.oidc.oidc_relay import (
    OIDCRelay,
    DiscoveryError,
    UpstreamError,
    IdTokenVerificationError,
    decode_unverified,
)
from booklet.services.oidc.client_assertion import build_client_assertion, load_private_jwk
from booklet.services.oidc.code_registry import ProcessedCodeRegistry
from booklet.services.oidc.callback_pages import (
    encode_auth_payload,
    render_error_page,
    render_success_page,
)

__all__ = [
    "OIDCRelay",
    "DiscoveryError",
    "UpstreamError",
    "IdTokenVerificationError",
    "decode_unverified",
    "build_client_assertion",
    "load_private_jwk",
    "ProcessedCodeRegistry",
    "encode_auth_payload",
    "render_error_page",
    "render_success_page",
]
