"""Storefront error taxonomy.

Every error carries a stable ``kind`` and a caller-facing ``message``. The API
layer translates them into HTTP responses using ``status_code``.
"""


class StorefrontError(Exception):
    kind = "error"
    status_code = 500

    def __init__(self, message: str, kind: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    def to_dict(self) -> dict:
        return {"success": False, "error": self.kind, "message": self.message}


class ValidationError(StorefrontError):
    kind = "validation_error"
    status_code = 400


class EmptyCart(ValidationError):
    kind = "empty_cart"

    def __init__(self, message: str = "Order must contain at least one item") -> None:
        super().__init__(message)


class MissingShippingAddress(ValidationError):
    kind = "missing_shipping_address"

    def __init__(self, message: str = "Shipping address is required") -> None:
        super().__init__(message)


class InvalidStatus(ValidationError):
    kind = "invalid_status"


class InvalidAmount(ValidationError):
    kind = "invalid_amount"

    def __init__(self, message: str = "Invalid amount") -> None:
        super().__init__(message)


class NotFoundError(StorefrontError):
    kind = "not_found"
    status_code = 404


class ProductNotFound(NotFoundError):
    kind = "product_not_found"

    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class UnauthorizedError(StorefrontError):
    kind = "unauthorized"
    status_code = 401


class ForbiddenError(StorefrontError):
    kind = "forbidden"
    status_code = 403


class ConflictError(StorefrontError):
    kind = "conflict"
    status_code = 409


class InsufficientStock(StorefrontError):
    kind = "insufficient_stock"
    status_code = 409

    def __init__(self, product_id: str, product_name: str | None = None) -> None:
        super().__init__(f"Insufficient stock for product: {product_name or product_id}")
        self.product_id = product_id
        self.product_name = product_name


class InvalidPayment(StorefrontError):
    kind = "invalid_payment"
    status_code = 400

    def __init__(self, message: str = "Invalid payment signature") -> None:
        super().__init__(message)


class InvalidSignature(StorefrontError):
    kind = "invalid_signature"
    status_code = 400

    def __init__(self, message: str = "Invalid webhook signature") -> None:
        super().__init__(message)


class GatewayUnavailable(StorefrontError):
    kind = "gateway_unavailable"
    status_code = 503


class ConfigurationError(StorefrontError):
    kind = "configuration_error"
    status_code = 500
