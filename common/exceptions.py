"""
Supermarket - Custom Exceptions
================================
Business-level exceptions that can be caught and converted to HTTP responses.
"""


class SupermarketError(Exception):
    """Base exception for all business logic errors."""
    code = "error"
    status_code = 400

    def __init__(self, message: str = "Something went wrong."):
        self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class AuthenticationError(SupermarketError):
    """Raised when the caller is not logged in."""
    code = "login_required"
    status_code = 401

    def __init__(self, message: str = "Please log in to view this resource"):
        super().__init__(message)


class AuthorizationError(SupermarketError):
    """Raised when user lacks permission."""
    code = "access_denied"
    status_code = 403

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class NotFoundError(SupermarketError):
    """Raised when a requested resource doesn't exist."""
    code = "not_found"
    status_code = 404


# ==========================================
# 🛒 Checkout
# ==========================================

class CheckoutError(SupermarketError):
    """Base for every failure of a checkout attempt. Nothing was committed."""
    code = "checkout_failed"
    retryable = False

    def to_dict(self) -> dict:
        return {**super().to_dict(), "retryable": self.retryable}


class ProductNotFoundError(CheckoutError):
    code = "product_not_found"
    status_code = 404

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product not found: #{product_id}")

    def to_dict(self) -> dict:
        return {**super().to_dict(), "product_id": self.product_id}


class InsufficientStockError(CheckoutError):
    """Raised when product stock is not enough for the requested quantity."""
    code = "insufficient_stock"
    status_code = 409

    def __init__(self, product_id: int, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough stock for product #{product_id} "
            f"(requested: {requested}, available: {available})"
        )

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "product_id": self.product_id,
            "requested": self.requested,
            "available": self.available,
        }


class StockRaceLostError(CheckoutError):
    """Conditional stock decrement touched no row. Safe to retry."""
    code = "stock_race_lost"
    status_code = 409
    retryable = True

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Stock for product #{product_id} changed during checkout")

    def to_dict(self) -> dict:
        return {**super().to_dict(), "product_id": self.product_id}


class EmptySelectionError(CheckoutError):
    code = "empty_selection"
    status_code = 400

    def __init__(self):
        super().__init__("No items selected for checkout")


class PersistenceFailureError(CheckoutError):
    """Transport or transaction level database error. Safe to retry."""
    code = "persistence_failure"
    status_code = 503
    retryable = True

    def __init__(self, message: str = "Server error during checkout"):
        super().__init__(message)


class CheckoutTimeoutError(CheckoutError):
    """Lock wait exceeded LOCK_WAIT_TIMEOUT_SECONDS. Safe to retry."""
    code = "checkout_timeout"
    status_code = 503
    retryable = True

    def __init__(self, message: str = "Checkout timed out waiting for stock lock"):
        super().__init__(message)
