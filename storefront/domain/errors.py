# storefront/domain/errors.py
"""
Domain errors. Services raise them, the handler registered in main.py turns
them into an HTTP response with the class' `status_code`.
"""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequest(ServiceError, ValueError):
    status_code = 400


class ValidationError(BadRequest):
    status_code = 422


class OutOfStock(BadRequest):
    pass


class NotFound(ServiceError, LookupError):
    status_code = 404


class Conflict(ServiceError):
    status_code = 409


class Unauthorized(ServiceError, PermissionError):
    status_code = 401


class Forbidden(ServiceError, PermissionError):
    status_code = 403


class GatewayError(ServiceError):
    """External provider (payments, image generation) unreachable or erroring."""

    status_code = 502

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
