"""
Configuration module - Base settings class shared by the API and callback apps.
"""

from common.config.base_settings import BaseAppSettings

__all__ = ["BaseAppSettings"]
