"""
Custom HTTP exceptions with error codes.

Extends FastAPI's HTTPException with machine-readable error codes. The
application's exception handler renders them as
`{"error": code, "message": message}`.

Example:
    from common.utils import NotFoundException

    @app.get("/identities/{id}")
    async def get_identity(id: str):
        row = await store.get(id)
        if not row:
            raise NotFoundException("Identity not found", code="not_found")
        return row
"""

from typing import Optional, Any, Dict
from fastapi import HTTPException


class APIException(HTTPException):
    """
    Base API exception with error code support.

    Provides consistent error response format across the API.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Create an API exception.

        Args:
            status_code: HTTP status code
            message: Human-readable error message
            code: Machine-readable error code (snake_case)
            details: Additional error details
            headers: Optional response headers
        """
        self.message = message
        self.code = code
        self.details = details

        detail: Dict[str, Any] = {"message": message}

        if code:
            detail["code"] = code

        if details is not None:
            detail["details"] = details

        super().__init__(
            status_code=status_code,
            detail=detail,
            headers=headers,
        )


class BadRequestException(APIException):
    """400 Bad Request - Invalid input or malformed request."""

    def __init__(
        self,
        message: str = "Bad request",
        code: str = "bad_request",
        details: Optional[Any] = None,
    ):
        super().__init__(400, message, code, details)


class UnauthorizedException(APIException):
    """401 Unauthorized - Missing or invalid authentication."""

    def __init__(
        self,
        message: str = "Unauthorized",
        code: str = "unauthorized",
        details: Optional[Any] = None,
    ):
        super().__init__(401, message, code, details, headers={"WWW-Authenticate": "Bearer"})


class NotFoundException(APIException):
    """404 Not Found - Resource doesn't exist."""

    def __init__(
        self,
        message: str = "Not found",
        code: str = "not_found",
        details: Optional[Any] = None,
    ):
        super().__init__(404, message, code, details)


class InternalServerException(APIException):
    """500 Internal Server Error - Unexpected server error."""

    def __init__(
        self,
        message: str = "Internal server error",
        code: str = "internal_server_error",
        details: Optional[Any] = None,
    ):
        super().__init__(500, message, code, details)


class BadGatewayException(APIException):
    """502 Bad Gateway - An upstream service answered badly or not at all."""

    def __init__(
        self,
        message: str = "Upstream service failed",
        code: str = "bad_gateway",
        details: Optional[Any] = None,
    ):
        super().__init__(502, message, code, details)


class ServiceUnavailableException(APIException):
    """503 Service Unavailable - Service temporarily unavailable."""

    def __init__(
        self,
        message: str = "Service unavailable",
        code: str = "service_unavailable",
        retry_after: Optional[int] = None,
    ):
        headers = {}
        if retry_after:
            headers["Retry-After"] = str(retry_after)

        super().__init__(
            status_code=503,
            message=message,
            code=code,
            details={"retryAfter": retry_after} if retry_after else None,
            headers=headers if headers else None,
        )
