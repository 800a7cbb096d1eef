from typing import Dict, Optional


class OrderError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(OrderError):
    status_code = 400


class NotFoundError(OrderError):
    status_code = 404


class InactiveBrandError(OrderError):
    status_code = 403


class AccessDeniedError(OrderError):
    status_code = 403


class ConflictError(OrderError):
    status_code = 409


class OrderValidationError(BadRequestError):
    """Field-level validation failure; nothing has been written."""

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        super().__init__(message or "Please correct the highlighted fields.")
        self.errors = errors


class PersistenceError(OrderError):
    status_code = 500
