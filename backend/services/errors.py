# backend/services/errors.py
"""Domain errors raised by the storefront services.

Routers translate them into HTTP responses using ``status_code`` and ``message``.
"""


class StoreError(Exception):
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(StoreError):
    """Entity is absent, inactive, or not owned by the caller."""
    status_code = 404
    default_message = "Not found"


class InvalidArgumentError(StoreError):
    status_code = 400
    default_message = "Invalid argument"


class InsufficientStockError(StoreError):
    """Requested quantity exceeds available stock for a named product."""
    status_code = 409

    def __init__(self, product_name: str, message: str = None):
        self.product_name = product_name
        super().__init__(message or f"Insufficient stock for {product_name}")


class InvalidStateError(StoreError):
    status_code = 409
    default_message = "Operation not allowed in the current state"


class EmptyCartError(StoreError):
    status_code = 400
    default_message = "Cart is empty"


class TransactionFailureError(StoreError):
    """Unexpected failure inside an atomic workflow, everything was rolled back."""
    status_code = 500
    default_message = "Something went wrong, please try again later"
