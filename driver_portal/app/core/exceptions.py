"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict

logger = logging.getLogger("driver_portal.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(AppException):
    """Raised when driver input is rejected locally, before any backend call."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class MismatchError(AppException):
    """Raised when a scanned guest does not belong to the selected trip."""

    def __init__(self, trip_id: str, scanned_guest_id: str):
        super().__init__(
            message="This QR code belongs to a different guest. Please scan the QR code of the guest on this trip.",
            error_code="ERR_MISMATCH_001",
            status_code=status.HTTP_409_CONFLICT,
            details={"trip_id": trip_id, "scanned_guest_id": scanned_guest_id}
        )


class QueryError(AppException):
    """Raised when the hosted backend rejects or fails a read or write."""

    def __init__(self, message: str = "Backend request failed", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_QUERY_001",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details=details
        )


class NotificationError(AppException):
    """Raised inside the notification dispatcher. Never leaves it."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="ERR_NOTIFY_001")


class CheckpointError(AppException):
    """Raised inside the checkpoint recorder. Never leaves it."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="ERR_CHECKPOINT_001")


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class CameraAccessError(AppException):
    """Raised when the camera cannot be used because permission was refused."""

    def __init__(self, message: str = "Camera access denied. Please allow camera access and try again."):
        super().__init__(
            message=message,
            error_code="ERR_CAMERA_001",
            status_code=status.HTTP_400_BAD_REQUEST
        )


class CameraNotFoundError(AppException):
    """Raised when no video input device is available."""

    def __init__(self, message: str = "No camera found. Please connect a camera device."):
        super().__init__(
            message=message,
            error_code="ERR_CAMERA_002",
            status_code=status.HTTP_400_BAD_REQUEST
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": exc.errors()
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception: %s", type(exc).__name__)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
