"""
Child booklet application settings.

Extends the base settings with database, admin session, OIDC and Postgres
identity configuration.
"""

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field

from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """Child booklet specific settings."""

    # ==========================================================================
    # MongoDB (child records, admin users)
    # ==========================================================================
    MONGO_URI: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MONGO_URI", "MONGODB_URI"),
    )
    MONGO_DB: str = "childBooklet"
    # Refuse to start without MONGO_URI instead of serving degraded responses
    MONGO_REQUIRED: bool = False

    # ==========================================================================
    # Admin sessions
    # ==========================================================================
    ADMIN_JWT_SECRET: Optional[str] = None
    ADMIN_SESSION_TTL_MS: int = 30 * 60 * 1000
    ADMIN_SESSION_SWEEP_SECONDS: int = 300

    # Seeded into admin_users and used directly when MongoDB is unavailable
    ADMIN_USERNAME: str = "Admin"
    ADMIN_DEFAULT_PASSWORD: str = "Admin@123"
    ADMIN_PASSWORD_HASH: Optional[str] = None

    # ==========================================================================
    # OIDC (eSignet)
    # ==========================================================================
    OIDC_ISSUER: Optional[str] = None
    OIDC_CLIENT_ID: Optional[str] = None
    OIDC_CLIENT_SECRET: Optional[str] = None
    # Private JWK (JSON) for private_key_jwt client authentication
    OIDC_PRIVATE_KEY_JWK: Optional[str] = None
    OIDC_AUTHORIZE_URI: Optional[str] = None
    OIDC_ALLOW_UNVERIFIED_ID_TOKEN: bool = False
    OIDC_HTTP_TIMEOUT_SECONDS: float = 10.0
    REDIRECT_URI: Optional[str] = None

    # ==========================================================================
    # Postgres mock identity system
    # ==========================================================================
    PG_HOST: str = "localhost"
    PG_PORT: int = 5455
    PG_USER: str = "postgres"
    PG_PASSWORD: str = "postgres"
    PG_DB_IDENTITY: str = "mosip_mockidentitysystem"
    PG_CONNECT_RETRIES: int = 5
    PG_RETRY_BACKOFF_SECONDS: float = 2.0

    # ==========================================================================
    # Frontend / callback server
    # ==========================================================================
    FRONTEND_URL: str = "http://localhost:3001"
    CALLBACK_PORT: int = 5000

    @property
    def admin_session_ttl_seconds(self) -> int:
        return max(1, self.ADMIN_SESSION_TTL_MS // 1000)

    def get_mongo_uri(self) -> Optional[str]:
        """MongoDB URI, or None when records should not be persisted."""
        return self.MONGO_URI or None

    def oidc_ready(self) -> bool:
        """OIDC exchange needs an issuer, a client id and a redirect URI."""
        return bool(self.OIDC_ISSUER and self.OIDC_CLIENT_ID and self.REDIRECT_URI)

    def validate_required(self) -> None:
        """
        Validate that required settings are configured.

        Raises:
            ValueError: If required settings are missing
        """
        errors = []

        if self.MONGO_REQUIRED and not self.MONGO_URI:
            errors.append("MONGO_URI is required when MONGO_REQUIRED is set")

        if self.ADMIN_SESSION_TTL_MS <= 0:
            errors.append("ADMIN_SESSION_TTL_MS must be positive")

        if errors:
            raise ValueError("Configuration errors:\n- " + "\n- ".join(errors))


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings loaded from the environment."""
    return Settings()
