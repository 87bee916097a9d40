"""
Stateless HS256 session tokens.

Tokens carry `sub`, `role`, `iat` and `exp` claims and validate on any
instance that shares the signing secret. Revocation is kept in a
process-local deny list until the token would have expired anyway.

Example:
    issuer = JWTSessionIssuer(secret="change-me", ttl_seconds=1800)
    issued = await issuer.issue_token("Admin")
    session = await issuer.validate(issued.token)
    print(session.username)  # Admin
"""

import logging
from typing import Any, Dict, Optional

from jose import jwt, JWTError

from common.auth.base import (
    ADMIN_ROLE,
    AdminSession,
    Clock,
    IssuedToken,
    SessionIssuer,
)

logger = logging.getLogger(__name__)

RESERVED_CLAIMS = ("sub", "role", "iat", "exp")


class JWTSessionIssuer(SessionIssuer):
    """JWT session issuer signed with a shared secret."""

    mode = "jwt"

    def __init__(
        self,
        secret: str,
        ttl_seconds: int,
        algorithm: str = "HS256",
        clock: Optional[Clock] = None,
    ):
        """
        Initialize JWT session issuer.

        Args:
            secret: Secret key for JWT signing
            ttl_seconds: Token lifetime
            algorithm: JWT algorithm (default: HS256)
            clock: Epoch-seconds clock used for `iat`/`exp`
        """
        if not secret:
            raise ValueError("JWT session issuer requires a signing secret")
        super().__init__(ttl_seconds, clock)
        self.secret = secret
        self.algorithm = algorithm

        # token -> exp
        self._revoked_tokens: Dict[str, int] = {}

    async def issue_token(
        self,
        username: str,
        role: str = ADMIN_ROLE,
        **claims: Any,
    ) -> IssuedToken:
        """Create a signed token for the user."""
        now = int(self._clock())
        extra = {k: v for k, v in claims.items() if k not in RESERVED_CLAIMS and v is not None}
        payload = {
            **extra,
            "sub": username,
            "role": role,
            "iat": now,
            "exp": now + self.ttl_seconds,
        }
        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)
        return IssuedToken(token=token, mode=self.mode, expires_in=self.ttl_seconds)

    async def validate(
        self,
        token: Optional[str],
        role: Optional[str] = ADMIN_ROLE,
    ) -> Optional[AdminSession]:
        """Verify signature, expiry and role."""
        if not token or token in self._revoked_tokens:
            return None

        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            logger.debug(f"Session token rejected: {e}")
            return None

        username = payload.get("sub")
        if not username:
            return None

        if role is not None and payload.get("role") != role:
            return None

        return AdminSession(
            username=username,
            role=payload.get("role", ""),
            expires_at=float(payload.get("exp", 0)),
            claims={k: v for k, v in payload.items() if k not in RESERVED_CLAIMS},
        )

    async def revoke(self, token: str) -> None:
        """Add token to the deny list until it expires."""
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError:
            return
        self._revoked_tokens[token] = int(claims.get("exp", 0))

    def sweep_expired(self) -> int:
        """Forget revoked tokens that have expired on their own."""
        now = self._clock()
        expired = [t for t, exp in self._revoked_tokens.items() if exp < now]
        for token in expired:
            del self._revoked_tokens[token]
        return len(expired)
