"""
Cafeteria — Domain errors

Raised by the db operations, translated to HTTP responses by the routers.
"""
from decimal import Decimal


class CafeteriaError(Exception):
    code = "cafeteria_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"error": self.code, "message": self.message}


class ValidationFailure(CafeteriaError):
    """Malformed request, rejected before touching storage."""
    code = "validation_failed"


class InsufficientStock(CafeteriaError):
    """The cart asks for more than the product has on hand."""
    code = "insufficient_stock"

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"Not enough stock for product {product_id}: "
            f"requested={requested}, available={available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail.update(product_id=self.product_id, requested=self.requested, available=self.available)
        return detail


class ProductNotFound(CafeteriaError):
    code = "product_not_found"

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found.")
        self.product_id = product_id


class ProductInUse(CafeteriaError):
    code = "product_in_use"

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} is referenced by existing orders.")
        self.product_id = product_id


class OrderNotFound(CafeteriaError):
    code = "order_not_found"

    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} not found.")
        self.order_id = order_id


class UserNotFound(CafeteriaError):
    code = "user_not_found"

    def __init__(self, user_id: int):
        super().__init__(f"User {user_id} not found.")
        self.user_id = user_id


class DuplicateUsername(CafeteriaError):
    code = "duplicate_username"

    def __init__(self, username: str):
        super().__init__(f"Username '{username}' is already taken.")
        self.username = username


class StorageFailure(CafeteriaError):
    """Infrastructure error inside an atomic unit. Nothing was applied."""
    code = "storage_failure"


def money(value) -> Decimal:
    """Normalise a monetary amount to two decimal places."""
    return Decimal(str(value)).quantize(Decimal("0.01"))
