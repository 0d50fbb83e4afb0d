"""Error taxonomy for the orders service.

Every error carries a short, stable ``code`` that the API layer returns
in the ``detail`` field of error responses, so clients can branch on it
without parsing messages.
"""


class OrderError(Exception):
    """Base class for all errors raised by the orders core."""

    code = "ORDER_ERROR"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code)
        self.message = message or self.code


class ValidationError(OrderError):
    """Input that is structurally valid but cannot be turned into an order."""

    code = "VALIDATION_ERROR"


class EmptyOrderError(ValidationError):
    """An order was submitted without any items."""

    code = "EMPTY_ORDER"


class StorageError(OrderError):
    """Any failure while talking to or executing against the database.

    The original driver exception is kept as ``__cause__``.
    """

    code = "STORAGE_ERROR"


class NotFoundError(OrderError):
    """The targeted order does not exist."""

    code = "ORDER_NOT_FOUND"

    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id
