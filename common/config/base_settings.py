"""
Base settings class for environment configuration.

Uses Pydantic Settings for automatic environment variable loading.
Extend this class for application-specific settings.

Example:
    from common.config import BaseAppSettings

    class Settings(BaseAppSettings):
        # App-specific settings
        MONGO_URI: Optional[str] = None

    settings = Settings()
    print(settings.PORT)
"""

import logging
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseAppSettings(BaseSettings):
    """
    Base settings class with common server configuration options.

    Automatically loads values from environment variables.
    Extend this class for application-specific settings.
    """

    # ==========================================================================
    # Server Settings
    # ==========================================================================
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, staging, production
    LOG_LEVEL: str = "INFO"

    # CORS Settings
    CORS_ORIGINS: str = "*"  # Comma-separated origins or "*"
    CORS_ALLOW_CREDENTIALS: bool = False

    # ==========================================================================
    # Pydantic Settings Configuration
    # ==========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    def get_cors_origins(self) -> list:
        """Parse CORS_ORIGINS into a list."""
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    def get_log_level(self) -> int:
        """Resolve LOG_LEVEL to a logging level, defaulting to INFO."""
        return getattr(logging, self.LOG_LEVEL.upper(), logging.INFO)

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT.lower() == "development"

    def configure_logging(self) -> None:
        """Configure root logging once for an entry point."""
        logging.basicConfig(
            level=self.get_log_level(),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
