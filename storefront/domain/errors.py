# storefront/domain/errors.py


class StoreError(Exception):
    """Base for business errors; status_code is used by the api layer."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(StoreError, LookupError):
    status_code = 404


class ValidationFailed(StoreError, ValueError):
    status_code = 400


class InsufficientStock(ValidationFailed):
    status_code = 400


class UnauthorizedError(StoreError):
    status_code = 401


class ForbiddenError(StoreError, PermissionError):
    status_code = 403


class ConflictError(StoreError):
    status_code = 409


class ConcurrencyConflict(ConflictError, RuntimeError):
    """Optimistic version check lost, or a lock is held by someone else."""


class OrderNumberTaken(ConflictError):
    pass
