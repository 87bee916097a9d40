"""
Authentication module - Session issuers (stateless JWT or in-memory).
"""

import logging
from typing import Optional

from common.auth.base import ADMIN_ROLE, AdminSession, Clock, IssuedToken, SessionIssuer
from common.auth.jwt_auth import JWTSessionIssuer
from common.auth.memory_auth import MemorySessionIssuer, run_sweeper
from common.auth.dependencies import (
    create_auth_dependency,
    extract_bearer_token,
)

logger = logging.getLogger(__name__)


def create_session_issuer(
    secret: Optional[str],
    ttl_seconds: int,
    clock: Optional[Clock] = None,
) -> SessionIssuer:
    """
    Pick the session mode from configuration.

    A configured secret gives stateless JWT sessions; without one, sessions
    fall back to this process's memory.
    """
    if secret:
        return JWTSessionIssuer(secret=secret, ttl_seconds=ttl_seconds, clock=clock)

    logger.warning(
        "No session signing secret configured; using in-memory sessions "
        "(not shared across instances or restarts)"
    )
    return MemorySessionIssuer(ttl_seconds=ttl_seconds, clock=clock)


__all__ = [
    "ADMIN_ROLE",
    "AdminSession",
    "IssuedToken",
    "SessionIssuer",
    "JWTSessionIssuer",
    "MemorySessionIssuer",
    "run_sweeper",
    "create_session_issuer",
    "create_auth_dependency",
    "extract_bearer_token",
]
