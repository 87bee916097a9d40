"""
Abstract session issuer interface.

Defines the contract shared by the stateless (JWT) and in-memory session
issuers, so the application can switch between them from configuration
without changing route code.

Example:
    from common.auth import create_session_issuer

    issuer = create_session_issuer(secret=settings.ADMIN_JWT_SECRET, ttl_seconds=1800)
    issued = await issuer.issue_token("Admin")
    session = await issuer.validate(issued.token)
    print(session.username)
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

ADMIN_ROLE = "admin"

Clock = Callable[[], float]


@dataclass(frozen=True)
class IssuedToken:
    """A freshly issued session token."""
    token: str
    mode: str
    expires_in: int


@dataclass(frozen=True)
class AdminSession:
    """The session a valid token resolves to."""
    username: str
    role: str
    expires_at: float
    claims: Dict[str, Any] = field(default_factory=dict)


class SessionIssuer(ABC):
    """
    Abstract session issuer.

    `validate` never raises for bad tokens; it returns None so callers can
    decide between 401 and anonymous access.
    """

    mode: str = ""

    def __init__(self, ttl_seconds: int, clock: Optional[Clock] = None):
        """
        Args:
            ttl_seconds: Session lifetime
            clock: Returns the current epoch time in seconds (time.time by default)
        """
        self.ttl_seconds = int(ttl_seconds)
        self._clock = clock or time.time

    @abstractmethod
    async def issue_token(
        self,
        username: str,
        role: str = ADMIN_ROLE,
        **claims: Any,
    ) -> IssuedToken:
        """
        Issue a session token for a user.

        Args:
            username: Session subject
            role: Role checked by `validate`
            **claims: Extra claims carried with the session (name, email, ...)
        """
        pass

    @abstractmethod
    async def validate(
        self,
        token: Optional[str],
        role: Optional[str] = ADMIN_ROLE,
    ) -> Optional[AdminSession]:
        """
        Resolve a token to its session.

        Args:
            token: Raw bearer token
            role: Required role, or None to accept any role

        Returns:
            The session, or None if missing, unknown, expired or of another role
        """
        pass

    @abstractmethod
    async def revoke(self, token: str) -> None:
        """Invalidate a token before it expires."""
        pass

    @abstractmethod
    def sweep_expired(self) -> int:
        """Drop expired state and return how many entries were removed."""
        pass
