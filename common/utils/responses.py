"""
Standard API response helpers.

Error bodies keep the flat shape the frontend already reads:
`{"error": "<code>", "message": "..."}`, plus an optional `details` field.

Example:
    from common.utils import error_response

    return JSONResponse(
        status_code=404,
        content=error_response("Identity not found", code="not_found"),
    )
"""

from typing import Any, Optional, Dict


def error_response(
    message: str,
    code: Optional[str] = None,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Create a standard error response.

    Args:
        message: Human-readable error message
        code: Machine-readable error code (e.g., "invalid_credentials")
        details: Additional error details

    Returns:
        Dictionary with error code and message
    """
    response: Dict[str, Any] = {
        "error": code or "error",
        "message": message,
    }

    if details is not None:
        response["details"] = details

    return response


def degraded_response(
    data: Dict[str, Any],
    warning: str,
) -> Dict[str, Any]:
    """
    Attach a warning to a partial result served while a backend is down.

    Args:
        data: The (possibly empty) payload
        warning: Machine-readable warning code (e.g., "postgres_unavailable")
    """
    return {**data, "warning": warning}
