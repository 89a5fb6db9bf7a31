"""
Custom exceptions for better error handling.
"""


class UnauthorizedError(PermissionError):
    """Raised when the bearer token is missing or does not match."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class NotFoundError(LookupError):
    """Raised when a form or draft cannot be found."""
    pass


class BadRequestError(ValueError):
    """Raised when the request is well-formed HTTP but unusable."""
    pass


class PaymentVerificationError(BadRequestError):
    """Raised when a submission carries a payment reference that fails verification."""

    def __init__(self, message: str = "Payment verification failed") -> None:
        super().__init__(message)


class StoreOperationError(RuntimeError):
    """Raised when a store operation fails; the message is returned to the caller."""
    pass
