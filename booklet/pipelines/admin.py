"""
Admin pipeline functions.

Stateless orchestration logic for admin login, logout and dashboard stats.
"""

import logging
from typing import Any, Dict, Optional

from pymongo.errors import PyMongoError

from common.auth import ADMIN_ROLE, SessionIssuer
from common.utils import degraded_response
from common.utils.exceptions import BadRequestException, UnauthorizedException
from booklet.services.admin import AdminUserService
from booklet.services.child import ChildRecordService

logger = logging.getLogger(__name__)

RECENT_UPLOADS_LIMIT = 5


async def login_pipeline(
    admin_users: AdminUserService,
    issuer: SessionIssuer,
    username: Optional[str],
    password: Optional[str],
) -> Dict[str, Any]:
    """
    Orchestrates the admin login flow.

    Args:
        admin_users: Credential store
        issuer: Session issuer (JWT or in-memory)
        username: Submitted username
        password: Submitted password

    Returns:
        dict with token, mode, username and expiresIn (seconds)

    Raises:
        BadRequestException: username or password missing
        UnauthorizedException: credentials do not match an admin
    """
    if not username or not password:
        raise BadRequestException(
            message="Username and password are required",
            code="missing_credentials",
        )

    user = await admin_users.authenticate(username, password)
    if user is None:
        logger.warning(f"Failed admin login for {username}")
        raise UnauthorizedException(
            message="Invalid username or password",
            code="invalid_credentials",
        )

    issued = await issuer.issue_token(user["username"], role=ADMIN_ROLE)
    logger.info(f"Admin {user['username']} logged in ({issued.mode} session)")

    return {
        "token": issued.token,
        "mode": issued.mode,
        "username": user["username"],
        "expiresIn": issued.expires_in,
    }


async def logout_pipeline(issuer: SessionIssuer, token: str) -> Dict[str, Any]:
    """Revoke the presented session token."""
    await issuer.revoke(token)
    return {"success": True}


async def stats_pipeline(child_records: Optional[ChildRecordService]) -> Dict[str, Any]:
    """
    Build dashboard stats.

    Returns:
        dict with totalChildRecords and recentUploads; zero/empty with a
        `mongo_unavailable` warning when MongoDB cannot be read
    """
    empty = {"totalChildRecords": 0, "recentUploads": []}

    if child_records is None:
        return degraded_response(empty, "mongo_unavailable")

    try:
        total = await child_records.count()
        recent = await child_records.recent_uploads(limit=RECENT_UPLOADS_LIMIT)
    except PyMongoError as e:
        logger.error(f"Failed to read dashboard stats: {e}")
        return degraded_response(empty, "mongo_unavailable")

    return {"totalChildRecords": total, "recentUploads": recent}
