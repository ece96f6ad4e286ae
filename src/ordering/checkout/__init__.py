"""Checkout service registry.

The HTTP layer resolves the service through get_checkout_service() so tests
can install one wired to fakes with set_checkout_service().
"""

from ordering.checkout.service import CheckoutService

_service: CheckoutService | None = None


def get_checkout_service() -> CheckoutService:
    global _service
    if _service is None:
        _service = CheckoutService()
    return _service


def set_checkout_service(service: CheckoutService) -> None:
    global _service
    _service = service


def reset_checkout_service() -> None:
    global _service
    _service = None
