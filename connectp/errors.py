"""
Error taxonomy shared by the routers and the relationship core.

Every user-facing error carries a stable message string and an HTTP status;
`DependencyError` is the exception: it describes a failed best-effort call to
an external collaborator and is never rendered to a caller.
"""
from typing import Any, Dict, Optional


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}


class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class AuthorizationError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class RateLimitError(AppError):
    status_code = 429


class ServiceUnavailableError(AppError):
    status_code = 503


class DependencyError(Exception):
    """An external collaborator (chat provider) failed or is not configured."""
