"""
Shared HTTP error classes and utilities for Scheduler services.

Provides:
- Base exception class for API errors
- Common subclasses (Validation, NotFound, Auth, Conflict)
- Shared error response model
- Utility to convert exceptions to error responses
- FastAPI exception handler registration

Common Usage Patterns:
=====================

Basic Exception Usage:
>>> from services.common.http_errors import ValidationError, NotFoundError
>>>
>>> # Validation error with field context
>>> error = ValidationError("Invalid timezone", field="timezone", value="Mars/Base")
>>>
>>> # Resource not found
>>> error = NotFoundError("Time slot", "5b0c...")

FastAPI Integration:
>>> from fastapi import FastAPI
>>> from services.common.http_errors import register_exception_handlers
>>>
>>> app = FastAPI()
>>> register_exception_handlers(app)

Error Code Taxonomy:
===================
- VALIDATION_FAILED, INVALID_* : Input validation errors (422)
- AUTH_*, TOKEN_* : Authentication errors (401)
- ACCESS_DENIED : Authorization/ownership errors (403)
- NOT_FOUND : Resource not found (404)
- ALREADY_EXISTS, SLOT_* : Conflicts with current state (409)
- INTERNAL_ERROR : Unexpected server errors (500)
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from services.common.logging_config import get_logger, log_http_error, request_id_var

logger = get_logger(__name__)


class ErrorCode(str, Enum):
    """
    Standardized error codes for Scheduler services.

    Categories:
        - General: Common errors that apply across all services
        - Scheduling: Time slot and booking rule violations
        - Authentication: Token-related errors
        - Authorization: Ownership and access control errors
    """

    # ==========================================
    # GENERAL ERRORS (4xx client errors)
    # ==========================================
    VALIDATION_FAILED = "VALIDATION_FAILED"  # HTTP 422 - Input validation failed
    NOT_FOUND = "NOT_FOUND"  # HTTP 404 - Resource not found
    ALREADY_EXISTS = "ALREADY_EXISTS"  # HTTP 409 - Resource already exists
    CONFLICT = "CONFLICT"  # HTTP 409 - Conflicts with current state
    INTERNAL_ERROR = "INTERNAL_ERROR"  # HTTP 500 - Generic internal error

    # ==========================================
    # SCHEDULING ERRORS
    # ==========================================
    INVALID_TIME_RANGE = "INVALID_TIME_RANGE"  # HTTP 422 - end <= start
    INVALID_STATE = "INVALID_STATE"  # HTTP 422 - operation not allowed in state
    SLOT_OVERLAP = "SLOT_OVERLAP"  # HTTP 409 - interval conflicts with another
    SLOT_NOT_AVAILABLE = "SLOT_NOT_AVAILABLE"  # HTTP 409 - slot cannot be booked

    # ==========================================
    # AUTHENTICATION ERRORS (401 Unauthorized)
    # ==========================================
    AUTH_FAILED = "AUTH_FAILED"  # Generic authentication failure
    TOKEN_INVALID = "TOKEN_INVALID"  # Token format invalid

    # ==========================================
    # AUTHORIZATION ERRORS (403 Forbidden)
    # ==========================================
    ACCESS_DENIED = "ACCESS_DENIED"  # Caller does not own the resource


class ErrorResponse(BaseModel):
    """
    Standardized error response model for all Scheduler services.

    Attributes:
        type: Error type categorization (e.g., "validation_error", "conflict")
        message: Human-readable error message for end users
        details: Optional dictionary containing additional error context
        timestamp: ISO 8601 timestamp of when the error occurred
        request_id: Identifier for tracing, shared with the request logs
    """

    type: str
    message: str
    details: Optional[Dict[str, Any]] = None
    timestamp: str
    request_id: str


def _current_request_id() -> str:
    """Return the request ID of the current request, or a fresh one."""
    request_id = request_id_var.get()
    if not request_id or request_id == "uninitialized":
        return str(uuid.uuid4())
    return request_id


class APIException(Exception):
    """
    Base exception class for all Scheduler API errors.

    Attributes:
        message: Human-readable error message
        details: Dictionary containing additional error context
        error_type: Categorization of the error (validation_error, conflict, etc.)
        error_code: Specific error code from the ErrorCode enum
        status_code: HTTP status code to return
        timestamp: ISO 8601 timestamp when error occurred
        request_id: Identifier for request tracing

    Example:
        >>> error = APIException(
        ...     message="Calendar store unavailable",
        ...     error_type="internal_error",
        ...     error_code=ErrorCode.INTERNAL_ERROR,
        ... )
        >>> error.to_error_response().details
        {'code': 'INTERNAL_ERROR'}
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_type: str = "internal_error",
        error_code: Optional[ErrorCode] = None,
        status_code: int = 500,
        request_id: Optional[str] = None,
    ):
        self.message = message
        self.details = details or {}
        self.error_type = error_type
        self.error_code = error_code
        self.status_code = status_code
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.request_id = request_id or _current_request_id()
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """
        Convert exception to ErrorResponse Pydantic model.

        Includes the error code in details if present.
        """
        details = {
            **self.details,
            **({"code": self.error_code.value} if self.error_code else {}),
        }
        return ErrorResponse(
            type=self.error_type,
            message=self.message,
            details=details if details else None,
            timestamp=self.timestamp,
            request_id=self.request_id,
        )


class ValidationError(APIException):
    """
    Exception for input validation errors (HTTP 422).

    Used when input breaks a rule the caller can fix, such as an end time that
    is not after the start time, or an operation the resource's current state
    does not allow.

    Examples:
        >>> error = ValidationError("Timezone is required", field="timezone")
        >>> error = ValidationError(
        ...     "End time must be after start time",
        ...     field="end_time",
        ...     code=ErrorCode.INVALID_TIME_RANGE,
        ... )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_FAILED,
    ):
        validation_details = details or {}
        if field:
            validation_details["field"] = field
        if value is not None:
            validation_details["value"] = str(value)
        super().__init__(
            message=message,
            details=validation_details,
            error_type="validation_error",
            error_code=code,
            status_code=422,
        )
        self.field = field
        self.value = value


class NotFoundError(APIException):
    """
    Exception for resource not found errors (HTTP 404).

    Examples:
        >>> NotFoundError("User", "user-123").message
        'User user-123 not found'
        >>> NotFoundError("Meeting").message
        'Meeting not found'
    """

    def __init__(
        self,
        resource: str,
        identifier: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        if identifier:
            message = f"{resource} {identifier} not found"
        else:
            message = f"{resource} not found"
        notfound_details = {
            **(details or {}),
            "resource": resource,
            "identifier": identifier,
        }
        super().__init__(
            message=message,
            details=notfound_details,
            error_type="not_found",
            error_code=ErrorCode.NOT_FOUND,
            status_code=404,
        )
        self.resource = resource
        self.identifier = identifier


class AuthError(APIException):
    """
    Exception for authentication and authorization errors (HTTP 401 by default).

    Examples:
        >>> error = AuthError("Authorization token is required")
        >>> error = AuthError(
        ...     "Not allowed to modify this time slot",
        ...     code=ErrorCode.ACCESS_DENIED,
        ...     status_code=403,
        ... )
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.AUTH_FAILED,
        status_code: int = 401,
    ):
        super().__init__(
            message=message,
            details=details,
            error_type="auth_error",
            error_code=code,
            status_code=status_code,
        )


class ConflictError(APIException):
    """
    Exception for requests that conflict with the current state (HTTP 409).

    Examples:
        >>> error = ConflictError("Email already exists", code=ErrorCode.ALREADY_EXISTS)
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.CONFLICT,
    ):
        super().__init__(
            message=message,
            details=details,
            error_type="conflict",
            error_code=code,
            status_code=409,
        )


def exception_to_response(exc: Exception) -> ErrorResponse:
    """
    Convert any exception to a standardized ErrorResponse.

    1. APIException: Uses the built-in to_error_response() method
    2. HTTPException: Extracts detail information and normalizes format
    3. Generic Exception: Creates a safe internal error response

    Generic exceptions never expose their message, since it may contain
    storage internals. Only the exception class name is kept in details.

    Examples:
        >>> exception_to_response(ValidationError("Invalid email")).type
        'validation_error'
        >>> exception_to_response(ValueError("boom")).message
        'An unexpected error occurred'
    """
    if isinstance(exc, APIException):
        return exc.to_error_response()
    elif isinstance(exc, HTTPException):
        detail = (
            exc.detail if isinstance(exc.detail, dict) else {"message": str(exc.detail)}
        )
        return ErrorResponse(
            type="http_error",
            message=detail.get("message", "HTTP error"),
            details=detail,
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=_current_request_id(),
        )
    else:
        return ErrorResponse(
            type="internal_error",
            message="An unexpected error occurred",
            details={
                "error_type": type(exc).__name__,
                "code": ErrorCode.INTERNAL_ERROR.value,
            },
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=_current_request_id(),
        )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers for a FastAPI application.

    1. APIException: custom errors with their own status codes
    2. HTTPException: normalized to the standard format
    3. Generic Exception: safe 500 internal error response

    All handlers return JSON bodies shaped as ErrorResponse. Call once right
    after creating the app.
    """
    from fastapi import Request
    from fastapi.responses import JSONResponse

    @app.exception_handler(APIException)
    async def api_exception_handler(
        request: Request, exc: APIException
    ) -> JSONResponse:
        error_response = exc.to_error_response()
        log_http_error(
            error_type=exc.error_type,
            message=exc.message,
            status_code=exc.status_code,
            request_id=error_response.request_id,
            details=error_response.details,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code, content=error_response.model_dump()
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        error_response = exception_to_response(exc)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response.model_dump(),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        error_response = exception_to_response(exc)
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            request_id=error_response.request_id,
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content=error_response.model_dump())
