"""
Application error taxonomy.

Each error carries a machine-readable kind and the HTTP status it maps to.
The handlers registered in main.create_app() turn them into
{"error": kind, "detail": message} responses.
"""

from fastapi import status


class AppError(Exception):
    kind = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "An unexpected error occurred"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.kind, "detail": self.detail}


class UnauthenticatedError(AppError):
    kind = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized - Please log in"


class ValidationFailedError(AppError):
    kind = "validation_failed"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class ForbiddenError(AppError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Unauthorized - Task belongs to another user"


class NotFoundError(AppError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Task not found"


class IdentitySyncError(AppError):
    kind = "identity_sync_failed"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Failed to sync user with database"


class StorageError(AppError):
    kind = "storage_failure"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "A storage error occurred"
