"""
Common library for reusable infrastructure components.

- database: Async MongoDB (Motor) and Postgres (psycopg2) adapters
- auth: Session issuers (JWT, in-memory) and FastAPI auth dependencies
- utils: Error responses, exceptions, password hashing
- config: Base settings class
"""

from common.database import MongoDB, PostgresClient, DatabaseUnavailableError
from common.auth import (
    AdminSession,
    SessionIssuer,
    JWTSessionIssuer,
    MemorySessionIssuer,
    create_session_issuer,
    create_auth_dependency,
)
from common.utils import (
    error_response,
    APIException,
    UnauthorizedException,
    NotFoundException,
    hash_password,
    verify_password,
)
from common.config import BaseAppSettings

__all__ = [
    # Database
    "MongoDB",
    "PostgresClient",
    "DatabaseUnavailableError",
    # Auth
    "AdminSession",
    "SessionIssuer",
    "JWTSessionIssuer",
    "MemorySessionIssuer",
    "create_session_issuer",
    "create_auth_dependency",
    # Utils
    "error_response",
    "APIException",
    "UnauthorizedException",
    "NotFoundException",
    "hash_password",
    "verify_password",
    # Config
    "BaseAppSettings",
]
