"""
FastAPI authentication dependencies.

Provides factory functions to create auth dependencies that can be
injected into route handlers. Works with any SessionIssuer implementation.

Example:
    from common.auth import create_auth_dependency

    require_admin = create_auth_dependency(lambda request: request.app.state.issuer)

    @app.get("/api/admin/stats")
    async def stats(session: AdminSession = Depends(require_admin)):
        return {"username": session.username}
"""

from typing import Callable, Optional

from fastapi import Header, Request

from common.auth.base import ADMIN_ROLE, AdminSession, SessionIssuer
from common.utils.exceptions import UnauthorizedException

IssuerGetter = Callable[[Request], SessionIssuer]


def extract_bearer_token(authorization: Optional[str], scheme: str = "Bearer") -> Optional[str]:
    """
    Extract the token from an Authorization header value.

    Returns None when the header is missing, uses another scheme or is empty.
    """
    if not authorization:
        return None

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != scheme.lower():
        return None

    return parts[1] or None


def create_auth_dependency(
    get_issuer: IssuerGetter,
    role: Optional[str] = ADMIN_ROLE,
    header_name: str = "Authorization",
    scheme: str = "Bearer",
):
    """
    Factory to create FastAPI auth dependencies.

    Args:
        get_issuer: Callable that returns the SessionIssuer for a request
        role: Role the session must carry, or None to accept any role
        header_name: Header to extract token from (default: Authorization)
        scheme: Auth scheme prefix (default: Bearer)

    Returns:
        A FastAPI dependency function that resolves the AdminSession
    """

    async def get_current_session(
        request: Request,
        authorization: Optional[str] = Header(None, alias=header_name),
    ) -> AdminSession:
        """
        Resolve the session behind the authorization header.

        Raises:
            UnauthorizedException: If token is missing, invalid, or expired
        """
        token = extract_bearer_token(authorization, scheme)
        if not token:
            raise UnauthorizedException("Missing or malformed authorization header")

        session = await get_issuer(request).validate(token, role=role)
        if session is None:
            raise UnauthorizedException("Invalid or expired session")

        request.state.session = session
        request.state.token = token
        return session

    return get_current_session
