"""Currency-aware rounding of prices.

Rounding is applied only when an adjustment or a displayed amount is
produced, never on intermediate results.
"""

import os
from decimal import ROUND_DOWN, ROUND_HALF_EVEN, ROUND_HALF_UP, ROUND_UP, Decimal

from shipping.shared.price import Price

# ISO 4217 minor units for the currencies that do not use two digits.
CURRENCY_FRACTION_DIGITS = {
    "BHD": 3,
    "CLP": 0,
    "ISK": 0,
    "JOD": 3,
    "JPY": 0,
    "KRW": 0,
    "KWD": 3,
    "OMR": 3,
    "TND": 3,
    "VND": 0,
}

ROUNDING_MODES = {
    "half_up": ROUND_HALF_UP,
    "half_even": ROUND_HALF_EVEN,
    "down": ROUND_DOWN,
    "up": ROUND_UP,
}


def fraction_digits(currency_code: str) -> int:
    return CURRENCY_FRACTION_DIGITS.get(currency_code, 2)


def get_rounding_mode() -> str:
    """Return the configured rounding mode.

    Reads SHIPPING_ROUNDING_MODE from the environment, defaulting to half_up.
    """
    name = os.environ.get("SHIPPING_ROUNDING_MODE", "half_up")
    if name not in ROUNDING_MODES:
        raise ValueError(f"Unknown rounding mode: {name}")
    return ROUNDING_MODES[name]


def round_price(price: Price, mode: str | None = None) -> Price:
    """Round a price to the number of fraction digits of its currency."""
    quantum = Decimal(1).scaleb(-fraction_digits(price.currency_code))
    rounded = price.to_decimal().quantize(quantum, rounding=mode or get_rounding_mode())
    return Price.from_decimal(rounded, price.currency_code)
