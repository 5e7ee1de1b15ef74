"""Adjustment — a signed monetary modification attached to an order, order item or shipment.

Adjustments are immutable. Aggregates store them as JSON lists in Text fields
(see ``dump_adjustments``/``load_adjustments``) and hand out fresh instances.
"""

import json
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation

from protean.exceptions import ValidationError

from shipping.shared.price import Price

ADJUSTMENT_TYPES = frozenset(
    {
        "custom",
        "fee",
        "promotion",
        "shipping",
        "shipping_promotion",
        "tax",
    }
)


@dataclass(frozen=True)
class Adjustment:
    type: str
    label: str
    amount: Price
    percentage: str | None = None
    source_id: str = ""
    included: bool = False
    locked: bool = False

    def __post_init__(self):
        errors = {}
        if self.type not in ADJUSTMENT_TYPES:
            errors["type"] = [f"Invalid adjustment type: {self.type}"]
        if not self.label:
            errors["label"] = ["Adjustment label is required"]
        if not isinstance(self.amount, Price):
            errors["amount"] = ["Adjustment amount must be a Price"]
        if self.percentage is not None:
            try:
                Decimal(str(self.percentage))
            except InvalidOperation:
                errors["percentage"] = [f"Invalid percentage: {self.percentage}"]
        if errors:
            raise ValidationError(errors)

    def is_positive(self) -> bool:
        return self.amount.is_positive()

    def is_negative(self) -> bool:
        return self.amount.is_negative()

    def with_amount(self, amount: Price) -> "Adjustment":
        return replace(self, amount=amount)

    def with_locked(self, locked: bool) -> "Adjustment":
        return replace(self, locked=locked)

    def add(self, other: "Adjustment") -> "Adjustment":
        """Sum two adjustments that share a type and a source."""
        if other.type != self.type:
            raise ValueError(f"Adjustment type {other.type} does not match {self.type}")
        if other.source_id != self.source_id:
            raise ValueError(f"Adjustment source ID {other.source_id} does not match {self.source_id}")
        return replace(self, amount=self.amount.add(other.amount))

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "label": self.label,
            "amount": {"number": self.amount.number, "currency_code": self.amount.currency_code},
            "percentage": self.percentage,
            "source_id": self.source_id,
            "included": self.included,
            "locked": self.locked,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Adjustment":
        return cls(
            type=data["type"],
            label=data["label"],
            amount=Price(**data["amount"]),
            percentage=data.get("percentage"),
            source_id=data.get("source_id", ""),
            included=data.get("included", False),
            locked=data.get("locked", False),
        )


def load_adjustments(raw: str | None) -> list[Adjustment]:
    return [Adjustment.from_dict(item) for item in json.loads(raw or "[]")]


def dump_adjustments(adjustments: list[Adjustment]) -> str:
    return json.dumps([adjustment.to_dict() for adjustment in adjustments])


def filter_adjustments(adjustments: list[Adjustment], adjustment_types: list[str] | None = None) -> list[Adjustment]:
    """Keep the adjustments of the given types, or all of them when no types are given."""
    if not adjustment_types:
        return list(adjustments)
    return [adjustment for adjustment in adjustments if adjustment.type in adjustment_types]
