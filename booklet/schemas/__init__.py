"""
Request/response schemas.
"""

from booklet.schemas.admin import (
    AdminLoginRequest,
    AdminLoginResponse,
    LogoutResponse,
)
from booklet.schemas.child import (
    BatchUploadRequest,
    BatchUploadResponse,
    ChildStatsResponse,
    ChildSearchResponse,
)
from booklet.schemas.oidc import (
    ExchangeTokenRequest,
    EsignetLoginRequest,
    SessionTokenResponse,
    ClientMetaResponse,
)

__all__ = [
    "AdminLoginRequest",
    "AdminLoginResponse",
    "LogoutResponse",
    "BatchUploadRequest",
    "BatchUploadResponse",
    "ChildStatsResponse",
    "ChildSearchResponse",
    "ExchangeTokenRequest",
    "EsignetLoginRequest",
    "SessionTokenResponse",
    "ClientMetaResponse",
]
