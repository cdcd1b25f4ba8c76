"""
Error taxonomy for the user API.

Every error raised below the router carries the HTTP status it maps to and a
human-readable message. The application exception handlers in
``api.src.main`` turn them into the response envelope.
"""

from typing import Optional

from fastapi import status


class ApiError(Exception):
    """Base class for errors that map onto an HTTP status code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, description: Optional[str] = None):
        self.message = message or self.default_message
        self.description = description or self.message
        super().__init__(self.message)


class ValidationError(ApiError):
    """Client payload violated a schema constraint."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


class NotFoundError(ApiError):
    """Requested user does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "User not found!"


class ConflictError(ApiError):
    """Write collided with the unique userId/username indexes."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "User with this userId or username already exists!"


class InternalError(ApiError):
    """Unexpected persistence or runtime failure."""
