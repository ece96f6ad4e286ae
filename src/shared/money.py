"""Fixed-point money helpers.

All arithmetic on prices and totals happens in integer minor units. Decimal is
only used at the edges, to parse client/provider input and to present amounts.
"""

from decimal import Decimal, InvalidOperation

from shared.errors import InvalidAmount

DEFAULT_MINOR_UNIT_FACTOR = 100

# ISO 4217 currencies without a fractional unit
_ZERO_DECIMAL_CURRENCIES = frozenset({"JPY", "KRW", "VND", "CLP", "ISK", "UGX"})


def minor_unit_factor(currency: str | None) -> int:
    if currency and currency.upper() in _ZERO_DECIMAL_CURRENCIES:
        return 1
    return DEFAULT_MINOR_UNIT_FACTOR


def to_minor_units(amount, factor: int = DEFAULT_MINOR_UNIT_FACTOR) -> int:
    """Convert a major-unit amount ("49.99", Decimal, int) to integer minor units.

    Floats go through ``str()`` first so that 49.99 stays 4999 rather than
    picking up binary representation error. Amounts finer than one minor unit
    are rejected.
    """
    if isinstance(amount, bool) or amount is None:
        raise InvalidAmount()
    try:
        value = Decimal(str(amount)) if isinstance(amount, float) else Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount() from None
    if not value.is_finite():
        raise InvalidAmount()

    scaled = value * factor
    if scaled != scaled.to_integral_value():
        raise InvalidAmount(f"Amount {amount} has more precision than the currency allows")
    return int(scaled)


def from_minor_units(minor: int, factor: int = DEFAULT_MINOR_UNIT_FACTOR) -> Decimal:
    """Convert integer minor units back to a Decimal major-unit amount."""
    places = len(str(factor)) - 1
    quantum = Decimal(1).scaleb(-places)
    return (Decimal(int(minor)) / Decimal(factor)).quantize(quantum)


def format_amount(minor: int, factor: int = DEFAULT_MINOR_UNIT_FACTOR) -> str:
    return str(from_minor_units(minor, factor))
