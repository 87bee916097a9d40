"""
Utilities module - Common helpers for API responses, exceptions, and passwords.
"""

from common.utils.responses import error_response, degraded_response
from common.utils.exceptions import (
    APIException,
    BadRequestException,
    UnauthorizedException,
    NotFoundException,
    BadGatewayException,
    ServiceUnavailableException,
    InternalServerException,
)
from common.utils.password import hash_password, verify_password, is_bcrypt_hash
from common.utils.handlers import register_exception_handlers

__all__ = [
    "error_response",
    "degraded_response",
    "APIException",
    "BadRequestException",
    "UnauthorizedException",
    "NotFoundException",
    "BadGatewayException",
    "ServiceUnavailableException",
    "InternalServerException",
    "hash_password",
    "verify_password",
    "is_bcrypt_hash",
    "register_exception_handlers",
]
