"""
In-memory session tokens.

Used when no signing secret is configured. Sessions live in a dict owned by
this process, so they do not survive a restart and are not shared between
instances.
"""

import asyncio
import logging
import secrets
from typing import Any, Dict, Optional

from common.auth.base import (
    ADMIN_ROLE,
    AdminSession,
    Clock,
    IssuedToken,
    SessionIssuer,
)

logger = logging.getLogger(__name__)


class MemorySessionIssuer(SessionIssuer):
    """Random opaque tokens backed by a process-local table."""

    mode = "memory"

    def __init__(self, ttl_seconds: int, clock: Optional[Clock] = None, token_bytes: int = 24):
        super().__init__(ttl_seconds, clock)
        self._token_bytes = token_bytes
        self._sessions: Dict[str, AdminSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def issue_token(
        self,
        username: str,
        role: str = ADMIN_ROLE,
        **claims: Any,
    ) -> IssuedToken:
        token = secrets.token_hex(self._token_bytes)
        self._sessions[token] = AdminSession(
            username=username,
            role=role,
            expires_at=self._clock() + self.ttl_seconds,
            claims={k: v for k, v in claims.items() if v is not None},
        )
        return IssuedToken(token=token, mode=self.mode, expires_in=self.ttl_seconds)

    async def validate(
        self,
        token: Optional[str],
        role: Optional[str] = ADMIN_ROLE,
    ) -> Optional[AdminSession]:
        if not token:
            return None

        session = self._sessions.get(token)
        if session is None:
            return None

        if session.expires_at < self._clock():
            del self._sessions[token]
            return None

        if role is not None and session.role != role:
            return None

        return session

    async def revoke(self, token: str) -> None:
        self._sessions.pop(token, None)

    def sweep_expired(self) -> int:
        now = self._clock()
        expired = [t for t, s in self._sessions.items() if s.expires_at < now]
        for token in expired:
            del self._sessions[token]
        if expired:
            logger.info(f"Swept {len(expired)} expired admin sessions")
        return len(expired)


async def run_sweeper(issuer: SessionIssuer, interval_seconds: float) -> None:
    """
    Periodically drop expired sessions (or deny-list entries) until cancelled.

    Started as a background task by the application lifespan.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            issuer.sweep_expired()
        except Exception as e:
            logger.error(f"Session sweep failed: {e}")
