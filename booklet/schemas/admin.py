"""
Pydantic models for admin request/response validation.

Login fields are optional at the schema level so that missing credentials
produce the `missing_credentials` error instead of a generic validation error.
"""

from typing import Optional
from pydantic import BaseModel, Field


class AdminLoginRequest(BaseModel):
    """POST /api/admin/login"""
    username: Optional[str] = None
    password: Optional[str] = None


class AdminLoginResponse(BaseModel):
    """Response for POST /api/admin/login"""
    token: str
    mode: str = Field(..., description="jwt | memory")
    username: str
    expiresIn: int = Field(..., description="Session lifetime in seconds")


class LogoutResponse(BaseModel):
    """Response for POST /api/admin/logout"""
    success: bool
