"""Exceptions raised by the storefront services.

Each error also derives from the builtin type the HTTP layer maps to a status
code, so routers keep catching ``PermissionError``/``ValueError``/``LookupError``.
"""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    pass


class TransientStoreError(StorefrontError, RuntimeError):
    """Raised when a call to the remote order store fails."""

    def __init__(self, operation: str, reason: str | None = None):
        self.operation = operation
        self.reason = reason
        msg = f"Order store call failed: {operation}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class AuthorizationError(TransientStoreError, PermissionError):
    """Raised when the store's row-level policy rejects the caller."""

    def __init__(self, operation: str, reason: str = "row-level policy denied access"):
        super().__init__(operation, reason)


class EmptyCartError(StorefrontError, ValueError):
    """Raised when an order is placed from an empty cart."""

    def __init__(self):
        super().__init__("Cart is empty")


class UnauthenticatedError(StorefrontError, PermissionError):
    """Raised when an operation needs a signed-in identity and none is present."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Sign in required to {action}")


class InvalidStatusTransitionError(StorefrontError, ValueError):
    """Raised when an order status change is not in the transition table."""

    def __init__(self, current: str, requested: str, order_type: str | None = None):
        self.current = current
        self.requested = requested
        self.order_type = order_type
        msg = f"Cannot change order status from {current} to {requested}"
        if order_type:
            msg = f"{msg} for a {order_type} order"
        super().__init__(msg)


class OrderNotFoundError(StorefrontError, LookupError):
    """Raised when an order id doesn't exist or isn't visible to the caller."""

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class CatalogError(StorefrontError, LookupError):
    """Raised when a menu item or size option can't be resolved."""

    def __init__(self, what: str):
        super().__init__(f"Not on the menu: {what}")
