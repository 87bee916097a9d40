"""
Admin user accounts.

Admins live in the admin_users collection. A default admin is seeded on
first start. Accounts created by older deployments may still hold a
plaintext `password` field; it is replaced by a bcrypt hash the first time
that admin logs in successfully.
"""

import asyncio
import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from common.auth import ADMIN_ROLE
from common.utils.password import hash_password, verify_password

logger = logging.getLogger(__name__)


class AdminUserService:
    """
    Verifies admin credentials against MongoDB, or against the configured
    fallback admin when MongoDB is not available.
    """

    COLLECTION = "admin_users"

    INDEXES = [
        ([("username", 1)], {"unique": True}),
    ]

    def __init__(
        self,
        db: Optional[AsyncIOMotorDatabase],
        fallback_username: str,
        fallback_password: Optional[str] = None,
        fallback_password_hash: Optional[str] = None,
        hash_rounds: int = 12,
    ):
        """
        Initialize AdminUserService.

        Args:
            db: MongoDB database connection, or None when MongoDB is down
            fallback_username: Admin accepted without MongoDB
            fallback_password: Plain password for the fallback admin
            fallback_password_hash: bcrypt hash for the fallback admin (wins over the plain password)
            hash_rounds: bcrypt cost for new hashes
        """
        self._db = db
        self._users_collection = db[self.COLLECTION] if db is not None else None
        self._fallback_username = fallback_username
        self._fallback_password = fallback_password
        self._fallback_password_hash = fallback_password_hash
        self._hash_rounds = hash_rounds

    @property
    def uses_database(self) -> bool:
        return self._users_collection is not None

    async def ensure_default_admin(self, username: str, password: str) -> bool:
        """
        Seed the default admin if it does not exist yet.

        Returns:
            True if a user was created
        """
        if not self.uses_database:
            return False

        existing = await self._users_collection.find_one({"username": username})
        if existing:
            return False

        password_hash = await asyncio.to_thread(hash_password, password, self._hash_rounds)
        try:
            await self._users_collection.insert_one({
                "username": username,
                "passwordHash": password_hash,
                "roles": [ADMIN_ROLE],
                "createdAt": datetime.now(timezone.utc),
            })
        except DuplicateKeyError:
            # Another instance seeded it first
            return False

        logger.info(f"Seeded default admin user {username}")
        return True

    async def authenticate(self, username: str, password: str) -> Optional[Dict[str, Any]]:
        """
        Check admin credentials.

        Args:
            username: Admin username
            password: Plain password

        Returns:
            {username, roles} on success, None otherwise
        """
        if not username or not password:
            return None

        if not self.uses_database:
            return await self._authenticate_fallback(username, password)

        user = await self._users_collection.find_one({"username": username})
        if not user:
            return None

        roles: List[str] = user.get("roles") or []
        if ADMIN_ROLE not in roles:
            logger.warning(f"Login refused for {username}: missing admin role")
            return None

        password_hash = user.get("passwordHash")
        if password_hash:
            ok = await asyncio.to_thread(verify_password, password, password_hash)
        else:
            ok = await self._check_legacy_password(user, password)

        if not ok:
            return None

        return {"username": user["username"], "roles": roles}

    async def _check_legacy_password(self, user: Dict[str, Any], password: str) -> bool:
        legacy = user.get("password")
        if not isinstance(legacy, str) or not legacy:
            return False

        if not secrets.compare_digest(legacy.encode("utf-8"), password.encode("utf-8")):
            return False

        password_hash = await asyncio.to_thread(hash_password, password, self._hash_rounds)
        await self._users_collection.update_one(
            {"_id": user["_id"]},
            {
                "$set": {
                    "passwordHash": password_hash,
                    "passwordMigratedAt": datetime.now(timezone.utc),
                },
                "$unset": {"password": ""},
            },
        )
        logger.info(f"Migrated legacy password for admin {user.get('username')}")
        return True

    async def _authenticate_fallback(self, username: str, password: str) -> Optional[Dict[str, Any]]:
        if not secrets.compare_digest(username.encode("utf-8"), self._fallback_username.encode("utf-8")):
            return None

        if self._fallback_password_hash:
            ok = await asyncio.to_thread(verify_password, password, self._fallback_password_hash)
        elif self._fallback_password:
            ok = secrets.compare_digest(
                password.encode("utf-8"), self._fallback_password.encode("utf-8")
            )
        else:
            ok = False

        if not ok:
            return None

        return {"username": self._fallback_username, "roles": [ADMIN_ROLE]}
