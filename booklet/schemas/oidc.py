"""
Pydantic models for the eSignet (OIDC) endpoints.
"""

from typing import Optional
from pydantic import BaseModel, Field


class ExchangeTokenRequest(BaseModel):
    """POST /exchange-token"""
    code: Optional[str] = None
    state: Optional[str] = None


class EsignetLoginRequest(BaseModel):
    """POST /auth/esignet"""
    id_token: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


class SessionTokenResponse(BaseModel):
    """App session issued for an eSignet login."""
    token: str
    mode: str = Field(..., description="jwt | memory")
    expiresIn: int


class ClientMetaResponse(BaseModel):
    """Response for GET /client-meta"""
    clientId: Optional[str] = None
    authorizeUri: Optional[str] = None
    redirect_uri: Optional[str] = None
