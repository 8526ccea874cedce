"""
Shared error types for core services.
"""


class ServiceError(Exception):
    status_code = 500
    error_type = "server_error"

    def __init__(self, message: str, errors: list | None = None):
        super().__init__(message)
        self.errors = errors or []


class ValidationIssue(ServiceError, ValueError):
    status_code = 400

    def __init__(
        self,
        message: str,
        field: str = "unknown",
        error_type: str = "invalid",
        error_code: str | None = None,
        data: dict | None = None,
    ):
        super().__init__(message, errors=[{"field": field, "type": error_type}])
        self.field = field
        self.error_type = error_type
        self.error_code = error_code
        self.data = data


class UnauthorizedError(ServiceError):
    status_code = 401
    error_type = "unauthorized"


class ForbiddenError(ServiceError):
    status_code = 403
    error_type = "forbidden"


class NotFoundError(ServiceError):
    status_code = 404
    error_type = "not_found"


class ConflictError(ServiceError):
    status_code = 409
    error_type = "conflict"
