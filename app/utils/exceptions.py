"""
Application error taxonomy

Services raise these instead of HTTPException; app/main.py maps each one to
its response. ConfigurationError is not an HTTP error: it stops the app
during startup.
"""
from fastapi import status


class ConfigurationError(RuntimeError):
    """Missing or unusable configuration (fatal at startup)"""


class AppError(Exception):
    """Base class for errors reported to the API caller"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Not authenticated"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Access denied"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists"


class StorageError(AppError):
    """Underlying store failure; the caller only sees a generic message"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "A database error occurred while processing your request."
