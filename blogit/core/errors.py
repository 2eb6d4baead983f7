"""Domain errors raised by services and mapped to HTTP responses."""
from __future__ import annotations

from fastapi import status


class BlogError(Exception):
    """Base class for errors that carry their own HTTP status and message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class BadRequestError(BlogError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "All fields required"


class ConflictError(BlogError):
    status_code = status.HTTP_409_CONFLICT
    message = "User with email/username already exists"


class InvalidCredentialsError(BlogError):
    """Login failure; never says whether the account exists."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid credentials"


class UnauthorizedError(BlogError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid or expired token"


class ForbiddenError(BlogError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Not your post"


class NotFoundError(BlogError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class UploadError(BlogError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Upload failed"


class InternalError(BlogError):
    pass
