"""Error taxonomy of the authentication core.

Every failure the auth service can report is one of the classes below. Each
carries a stable ``code`` tag, the HTTP status it maps to and a ``context``
dict with structured detail for logs. The ``message`` is what clients see,
so it never contains internal detail.
"""
from __future__ import annotations

from typing import Any


class AuthServiceError(Exception):
    code = "auth_service_error"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, **context: Any) -> None:
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)


class ValidationError(AuthServiceError):
    code = "validation_error"
    status_code = 400
    default_message = "Invalid request."


class AuthError(AuthServiceError):
    code = "auth_error"
    status_code = 401
    default_message = "Authentication failed."


class InvalidCredentialsError(AuthError):
    code = "invalid_credentials"
    status_code = 401
    default_message = "Invalid credentials"


class InvalidOrExpiredTokenError(AuthError):
    code = "invalid_or_expired_token"
    status_code = 400
    default_message = "Invalid or expired password reset token."


class ConflictError(AuthServiceError):
    code = "conflict"
    status_code = 409
    default_message = "Admin with that email already exists."


class LimitError(AuthServiceError):
    code = "limit_exceeded"
    status_code = 403
    default_message = "Maximum number of admin accounts reached."


class LockoutError(AuthServiceError):
    code = "too_many_attempts"
    status_code = 403
    default_message = "Too many failed attempts. Try again later."


class NotFoundError(AuthServiceError):
    code = "not_found"
    status_code = 404
    default_message = "Admin not found."


class DependencyError(AuthServiceError):
    code = "dependency_error"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, dependency: str, message: str | None = None, **context: Any) -> None:
        self.dependency = dependency
        super().__init__(message, dependency=dependency, **context)
