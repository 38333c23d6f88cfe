"""
Application error taxonomy.

Every ``AppError`` carries the HTTP status and the fixed, client-safe
message it maps to; the handlers in ``api.middleware`` render them as
``{"error": message}``.
"""

from __future__ import annotations

from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class DuplicateEmailError(AppError):
    status_code = status.HTTP_409_CONFLICT
    message = "Email already registered"


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "User not found"
