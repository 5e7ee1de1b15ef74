"""Price value object for monetary amounts with currency.

Numbers are kept as decimal strings so that arithmetic never goes through
binary floating point. Every operation returns a new Price.
"""

from decimal import Decimal, InvalidOperation

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from shipping.domain import shipping


class CurrencyMismatchError(ValueError):
    """Raised when two prices with different currencies are combined."""


def format_number(value: Decimal) -> str:
    """Render a decimal in fixed-point notation, without a negative zero."""
    if value.is_zero():
        value = abs(value)
    return format(value, "f")


@shipping.value_object
class Price:
    """Value object representing a monetary amount with currency."""

    number = String(required=True, max_length=50)
    currency_code = String(required=True, max_length=3)

    @invariant.post
    def number_must_be_a_finite_decimal(self):
        try:
            value = Decimal(self.number)
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError({"number": [f"Invalid price number: {self.number}"]})
        if not value.is_finite():
            raise ValidationError({"number": [f"Invalid price number: {self.number}"]})

    @invariant.post
    def currency_code_must_be_three_letters(self):
        code = self.currency_code or ""
        if len(code) != 3 or not code.isalpha() or not code.isupper():
            raise ValidationError({"currency_code": [f"Invalid currency code: {self.currency_code}"]})

    @classmethod
    def from_decimal(cls, value: Decimal, currency_code: str) -> "Price":
        return cls(number=format_number(value), currency_code=currency_code)

    @classmethod
    def zero(cls, currency_code: str) -> "Price":
        return cls(number="0", currency_code=currency_code)

    def to_decimal(self) -> Decimal:
        return Decimal(self.number)

    def _assert_same_currency(self, other: "Price") -> None:
        if other.currency_code != self.currency_code:
            raise CurrencyMismatchError(
                f"The provided prices have mismatched currencies: {self.currency_code}, {other.currency_code}"
            )

    # -------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------
    def add(self, other: "Price") -> "Price":
        self._assert_same_currency(other)
        return Price.from_decimal(self.to_decimal() + other.to_decimal(), self.currency_code)

    def subtract(self, other: "Price") -> "Price":
        self._assert_same_currency(other)
        return Price.from_decimal(self.to_decimal() - other.to_decimal(), self.currency_code)

    def multiply(self, factor) -> "Price":
        return Price.from_decimal(self.to_decimal() * Decimal(str(factor)), self.currency_code)

    def divide(self, divisor) -> "Price":
        return Price.from_decimal(self.to_decimal() / Decimal(str(divisor)), self.currency_code)

    # -------------------------------------------------------------------
    # Comparison
    # -------------------------------------------------------------------
    def compare_to(self, other: "Price") -> int:
        """Return -1, 0 or 1 depending on how this price compares to the other."""
        self._assert_same_currency(other)
        mine, theirs = self.to_decimal(), other.to_decimal()
        return (mine > theirs) - (mine < theirs)

    def equals(self, other: "Price") -> bool:
        return self.compare_to(other) == 0

    def greater_than(self, other: "Price") -> bool:
        return self.compare_to(other) == 1

    def greater_than_or_equal(self, other: "Price") -> bool:
        return self.compare_to(other) >= 0

    def less_than(self, other: "Price") -> bool:
        return self.compare_to(other) == -1

    def less_than_or_equal(self, other: "Price") -> bool:
        return self.compare_to(other) <= 0

    def is_zero(self) -> bool:
        return self.to_decimal().is_zero()

    def is_negative(self) -> bool:
        return self.to_decimal() < 0

    def is_positive(self) -> bool:
        return self.to_decimal() > 0

    def __str__(self) -> str:
        return f"{self.number} {self.currency_code}"
