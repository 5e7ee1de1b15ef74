"""Shipping rates — the priced options a shipping method offers for a shipment."""

from dataclasses import dataclass, replace
from datetime import date

from protean.exceptions import ValidationError

from shipping.shared.price import Price


@dataclass(frozen=True)
class ShippingService:
    """A service offered by a shipping method, e.g. "Standard" or "Overnight"."""

    id: str
    label: str


@dataclass(frozen=True)
class ShippingRate:
    """An immutable priced option for a shipment.

    The id defaults to ``{shipping_method_id}--{service.id}`` and the
    original amount defaults to the amount. The original amount is the
    pre-promotion price and is not required to be greater than the amount.
    """

    shipping_method_id: str
    service: ShippingService
    amount: Price
    id: str | None = None
    original_amount: Price | None = None
    description: str = ""
    delivery_date: date | None = None

    def __post_init__(self):
        errors = {}
        if not self.shipping_method_id:
            errors["shipping_method_id"] = ["Missing required shipping_method_id"]
        if self.service is None:
            errors["service"] = ["Missing required service"]
        elif not isinstance(self.service, ShippingService):
            errors["service"] = ["The service must be a ShippingService"]
        if self.amount is None:
            errors["amount"] = ["Missing required amount"]
        elif not isinstance(self.amount, Price):
            errors["amount"] = ["The amount must be a Price"]
        if self.original_amount is not None and not isinstance(self.original_amount, Price):
            errors["original_amount"] = ["The original amount must be a Price"]
        if errors:
            raise ValidationError(errors)

        if self.id is None:
            object.__setattr__(self, "id", f"{self.shipping_method_id}--{self.service.id}")
        if self.original_amount is None:
            object.__setattr__(self, "original_amount", self.amount)

    def with_amount(self, amount: Price) -> "ShippingRate":
        return replace(self, amount=amount)

    def with_original_amount(self, original_amount: Price) -> "ShippingRate":
        return replace(self, original_amount=original_amount)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shipping_method_id": self.shipping_method_id,
            "service": {"id": self.service.id, "label": self.service.label},
            "original_amount": self.original_amount.to_dict(),
            "amount": self.amount.to_dict(),
            "description": self.description,
            "delivery_date": self.delivery_date.isoformat() if self.delivery_date else None,
        }
