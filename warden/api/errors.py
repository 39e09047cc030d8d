"""
Warden - API Error System
=========================

Centralized error codes and exception handling for consistent API responses.
"""

from enum import Enum
from typing import Any, Dict, Optional

from fastapi import HTTPException
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from warden.core.errors import (
    ConflictError,
    ForbiddenError,
    ModerationError,
    NotFoundError,
    UpstreamError,
)


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCode(str, Enum):
    """
    Centralized error codes for the API.

    Format: CATEGORY_SPECIFIC_ERROR
    """

    # Authentication errors (401)
    AUTH_MISSING_TOKEN = "AUTH_MISSING_TOKEN"
    AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"

    # Lookup errors (404)
    MESSAGE_NOT_FOUND = "MESSAGE_NOT_FOUND"
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    REPORT_NOT_FOUND = "REPORT_NOT_FOUND"
    BRIDGED_ROOM_NOT_FOUND = "BRIDGED_ROOM_NOT_FOUND"
    NOT_FOUND = "NOT_FOUND"

    # Report errors (403, 409)
    REPORT_SELF = "REPORT_SELF"
    REPORT_CONFLICT = "REPORT_CONFLICT"

    # Validation errors (422)
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Server errors (500, 502, 503)
    SERVER_ERROR = "SERVER_ERROR"
    SERVER_UPSTREAM_ERROR = "SERVER_UPSTREAM_ERROR"
    ENGINE_NOT_INITIALIZED = "ENGINE_NOT_INITIALIZED"


# =============================================================================
# Error Messages
# =============================================================================

ERROR_MESSAGES: Dict[ErrorCode, str] = {
    ErrorCode.AUTH_MISSING_TOKEN: "Authentication token is required",
    ErrorCode.AUTH_INVALID_TOKEN: "Invalid authentication token",
    ErrorCode.MESSAGE_NOT_FOUND: "Message not found",
    ErrorCode.ROOM_NOT_FOUND: "Room not found",
    ErrorCode.ACCOUNT_NOT_FOUND: "Account not found",
    ErrorCode.REPORT_NOT_FOUND: "Report not found",
    ErrorCode.BRIDGED_ROOM_NOT_FOUND: "Room is not bridged",
    ErrorCode.NOT_FOUND: "Resource not found",
    ErrorCode.REPORT_SELF: "You cannot report your own message",
    ErrorCode.REPORT_CONFLICT: "Report could not be stored, try again",
    ErrorCode.VALIDATION_ERROR: "Request validation failed",
    ErrorCode.SERVER_ERROR: "An internal server error occurred",
    ErrorCode.SERVER_UPSTREAM_ERROR: "A dependent service failed",
    ErrorCode.ENGINE_NOT_INITIALIZED: "Moderation engine not initialized",
}


# =============================================================================
# Status Codes
# =============================================================================

ERROR_STATUS_CODES: Dict[ErrorCode, int] = {
    ErrorCode.AUTH_MISSING_TOKEN: HTTP_401_UNAUTHORIZED,
    ErrorCode.AUTH_INVALID_TOKEN: HTTP_401_UNAUTHORIZED,
    ErrorCode.MESSAGE_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.ROOM_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.ACCOUNT_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.REPORT_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.BRIDGED_ROOM_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.REPORT_SELF: HTTP_403_FORBIDDEN,
    ErrorCode.REPORT_CONFLICT: HTTP_409_CONFLICT,
    ErrorCode.VALIDATION_ERROR: HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.SERVER_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.SERVER_UPSTREAM_ERROR: HTTP_502_BAD_GATEWAY,
    ErrorCode.ENGINE_NOT_INITIALIZED: HTTP_503_SERVICE_UNAVAILABLE,
}


# Domain error resource -> specific not-found code
_NOT_FOUND_CODES: Dict[str, ErrorCode] = {
    "message": ErrorCode.MESSAGE_NOT_FOUND,
    "room": ErrorCode.ROOM_NOT_FOUND,
    "account": ErrorCode.ACCOUNT_NOT_FOUND,
    "report": ErrorCode.REPORT_NOT_FOUND,
    "bridged_room": ErrorCode.BRIDGED_ROOM_NOT_FOUND,
}


# =============================================================================
# API Error Exception
# =============================================================================

class APIError(HTTPException):
    """
    Custom API exception with error codes.

    Usage:
        raise APIError(ErrorCode.REPORT_NOT_FOUND)
        raise APIError(ErrorCode.AUTH_MISSING_TOKEN, headers={"WWW-Authenticate": "Bearer"})
    """

    def __init__(
        self,
        code: ErrorCode,
        status_code: Optional[int] = None,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.error_code = code
        self.error_message = message or ERROR_MESSAGES.get(code, "An error occurred")
        self.error_details = details

        if status_code is None:
            status_code = ERROR_STATUS_CODES.get(code, HTTP_400_BAD_REQUEST)

        super().__init__(
            status_code=status_code,
            detail={
                "success": False,
                "error_code": code.value,
                "message": self.error_message,
                "details": details,
            },
            headers=headers,
        )


# =============================================================================
# Helper Functions
# =============================================================================

def error_response(
    code: ErrorCode,
    status_code: Optional[int] = None,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """
    Create a JSON error response without raising an exception.

    Useful for returning errors in exception handlers.
    """
    if status_code is None:
        status_code = ERROR_STATUS_CODES.get(code, HTTP_400_BAD_REQUEST)

    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error_code": code.value,
            "message": message or ERROR_MESSAGES.get(code, "An error occurred"),
            "details": details,
        },
        headers=headers,
    )


def code_for_domain_error(exc: ModerationError) -> ErrorCode:
    """Map a moderation core failure to its API error code."""
    if isinstance(exc, NotFoundError):
        return _NOT_FOUND_CODES.get(exc.resource or "", ErrorCode.NOT_FOUND)
    if isinstance(exc, ForbiddenError):
        return ErrorCode.REPORT_SELF
    if isinstance(exc, ConflictError):
        return ErrorCode.REPORT_CONFLICT
    if isinstance(exc, UpstreamError):
        return ErrorCode.SERVER_UPSTREAM_ERROR
    return ErrorCode.SERVER_ERROR


__all__ = [
    "ErrorCode",
    "ERROR_MESSAGES",
    "ERROR_STATUS_CODES",
    "APIError",
    "error_response",
    "code_for_domain_error",
]
