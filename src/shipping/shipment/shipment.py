"""Shipment entity — a packed subset of an order's items, priced by one shipping rate.

Shipments are owned by the Order aggregate. Items and adjustments are
snapshots kept as JSON lists; the amount fields are Price value objects.

State Machine:
    DRAFT → READY → SHIPPED
    {DRAFT, READY} → CANCELED
"""

import json
from dataclasses import dataclass
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, String, Text, ValueObject

from shipping.domain import shipping
from shipping.shared.adjustment import Adjustment, dump_adjustments, filter_adjustments, load_adjustments
from shipping.shared.price import Price
from shipping.shared.rounding import round_price


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ShipmentState(Enum):
    DRAFT = "draft"
    READY = "ready"
    SHIPPED = "shipped"
    CANCELED = "canceled"


_VALID_TRANSITIONS = {
    ShipmentState.DRAFT: {ShipmentState.READY, ShipmentState.CANCELED},
    ShipmentState.READY: {ShipmentState.SHIPPED, ShipmentState.CANCELED},
    ShipmentState.SHIPPED: set(),  # terminal
    ShipmentState.CANCELED: set(),  # terminal
}


# ---------------------------------------------------------------------------
# Item snapshot
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ShipmentItem:
    """The part of an order item that travels in a shipment."""

    order_item_id: str
    title: str
    quantity: int
    weight: float  # grams, for the whole quantity
    declared_value: Price

    def to_dict(self) -> dict:
        return {
            "order_item_id": self.order_item_id,
            "title": self.title,
            "quantity": self.quantity,
            "weight": self.weight,
            "declared_value": {
                "number": self.declared_value.number,
                "currency_code": self.declared_value.currency_code,
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ShipmentItem":
        return cls(
            order_item_id=data["order_item_id"],
            title=data["title"],
            quantity=data["quantity"],
            weight=data["weight"],
            declared_value=Price(**data["declared_value"]),
        )


# ---------------------------------------------------------------------------
# Entity
# ---------------------------------------------------------------------------
@shipping.entity(part_of="Order")
class Shipment:
    title = String(max_length=255, default="")
    items = Text(default="[]")  # JSON list of ShipmentItem dicts
    shipping_profile_id = Identifier()
    shipping_method_id = String(max_length=100)
    shipping_service = String(max_length=100)
    package_type_id = String(max_length=100)
    original_amount = ValueObject(Price)
    amount = ValueObject(Price)
    adjustments = Text(default="[]")  # JSON list of Adjustment dicts
    state = String(
        max_length=20,
        choices=ShipmentState,
        default=ShipmentState.DRAFT.value,
    )
    tracking_code = String(max_length=255)
    owned_by_packer = Boolean(default=False)
    alter_rate = Boolean(default=False)

    # -------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------
    def get_items(self) -> list[ShipmentItem]:
        return [ShipmentItem.from_dict(item) for item in json.loads(self.items or "[]")]

    def set_items(self, items: list[ShipmentItem]) -> None:
        self.items = json.dumps([item.to_dict() for item in items])

    def add_item(self, item: ShipmentItem) -> None:
        self.set_items([*self.get_items(), item])

    def has_items(self) -> bool:
        return bool(self.get_items())

    def get_total_quantity(self) -> int:
        return sum(item.quantity for item in self.get_items())

    def get_total_declared_value(self) -> Price | None:
        total = None
        for item in self.get_items():
            total = item.declared_value if total is None else total.add(item.declared_value)
        return total

    def get_weight(self) -> float:
        """Return the weight of the shipped items, in grams."""
        return sum(item.weight for item in self.get_items())

    # -------------------------------------------------------------------
    # Adjustments
    # -------------------------------------------------------------------
    def get_adjustments(self, adjustment_types: list[str] | None = None) -> list[Adjustment]:
        return filter_adjustments(load_adjustments(self.adjustments), adjustment_types)

    def set_adjustments(self, adjustments: list[Adjustment]) -> None:
        self.adjustments = dump_adjustments(adjustments)

    def add_adjustment(self, adjustment: Adjustment) -> None:
        self.set_adjustments([*self.get_adjustments(), adjustment])

    def clear_adjustments(self) -> None:
        self.adjustments = "[]"

    def get_adjusted_amount(self, adjustment_types: list[str] | None = None) -> Price | None:
        """Return the amount with the non-included adjustments of the given types applied.

        All adjustment types are applied when none are given.
        """
        if self.amount is None:
            return None
        adjusted_amount = self.amount
        for adjustment in self.get_adjustments(adjustment_types):
            if not adjustment.included:
                adjusted_amount = adjusted_amount.add(adjustment.amount)
        return round_price(adjusted_amount)

    # -------------------------------------------------------------------
    # Rate
    # -------------------------------------------------------------------
    def clear_rate(self) -> None:
        """Forget the selected rate, leaving the shipment incomplete."""
        self.shipping_method_id = None
        self.shipping_service = None
        self.original_amount = None
        self.amount = None

    def is_incomplete(self) -> bool:
        return self.amount is None

    # -------------------------------------------------------------------
    # Packing
    # -------------------------------------------------------------------
    def populate_from_proposed_shipment(self, proposed_shipment) -> None:
        """Replace the shipment's contents with what the packer proposed."""
        self.title = proposed_shipment.title
        self.set_items(proposed_shipment.items)
        self.shipping_profile_id = proposed_shipment.shipping_profile_id
        if proposed_shipment.package_type_id:
            self.package_type_id = proposed_shipment.package_type_id

    # -------------------------------------------------------------------
    # Workflow
    # -------------------------------------------------------------------
    def can_transition(self, target_state: ShipmentState) -> bool:
        return target_state in _VALID_TRANSITIONS.get(ShipmentState(self.state), set())

    def _assert_can_transition(self, target_state: ShipmentState) -> None:
        current = ShipmentState(self.state)
        if not self.can_transition(target_state):
            raise ValidationError({"state": [f"Cannot transition from {current.value} to {target_state.value}"]})

    def finalize(self) -> None:
        """Mark the shipment as ready to be sent."""
        self._assert_can_transition(ShipmentState.READY)
        self.state = ShipmentState.READY.value

    def ship(self, tracking_code: str | None = None) -> None:
        self._assert_can_transition(ShipmentState.SHIPPED)
        self.state = ShipmentState.SHIPPED.value
        if tracking_code:
            self.tracking_code = tracking_code

    def cancel(self) -> None:
        self._assert_can_transition(ShipmentState.CANCELED)
        self.state = ShipmentState.CANCELED.value
