"""Order aggregate (CQRS) — the order as seen by the shipping pipeline.

The Order owns its items and its shipments. Shipping-related state that
survives between pricing passes is limited to the one-shot
``shipping_force_refresh`` flag and the snapshot of the last saved state
(``original_checkout_step``/``original_item_ids``) used to decide whether a
repack is needed.

State Machine:
    DRAFT → VALIDATION → FULFILLMENT → COMPLETED
    DRAFT → FULFILLMENT
    {DRAFT, VALIDATION, FULFILLMENT} → CANCELED
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from shipping.domain import shipping
from shipping.order.events import (
    OrderCanceled,
    OrderFulfilled,
    OrderPlaced,
    OrderValidated,
    ShipmentsPacked,
    ShipmentsRemoved,
    ShippingRefreshRequested,
)
from shipping.shared.adjustment import Adjustment, dump_adjustments, filter_adjustments, load_adjustments
from shipping.shared.price import Price
from shipping.shared.rounding import round_price
from shipping.shipment.shipment import Shipment, ShipmentState


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderState(Enum):
    DRAFT = "draft"
    VALIDATION = "validation"
    FULFILLMENT = "fulfillment"
    COMPLETED = "completed"
    CANCELED = "canceled"


_VALID_TRANSITIONS = {
    OrderState.DRAFT: {OrderState.VALIDATION, OrderState.FULFILLMENT, OrderState.CANCELED},
    OrderState.VALIDATION: {OrderState.FULFILLMENT, OrderState.CANCELED},
    OrderState.FULFILLMENT: {OrderState.COMPLETED, OrderState.CANCELED},
    OrderState.COMPLETED: set(),  # terminal
    OrderState.CANCELED: set(),  # terminal
}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@shipping.entity(part_of="Order")
class OrderItem:
    """A purchased line. Items without a weight are not shippable."""

    title = String(required=True, max_length=255)
    purchased_entity_id = String(max_length=100)
    quantity = Integer(required=True, min_value=1)
    unit_price = ValueObject(Price)
    weight = Float()  # grams per unit
    adjustments = Text(default="[]")  # JSON list of Adjustment dicts

    def is_shippable(self) -> bool:
        return self.weight is not None

    def get_total_price(self) -> Price:
        return round_price(self.unit_price.multiply(self.quantity))

    def get_adjustments(self, adjustment_types: list[str] | None = None) -> list[Adjustment]:
        return filter_adjustments(load_adjustments(self.adjustments), adjustment_types)

    def set_adjustments(self, adjustments: list[Adjustment]) -> None:
        self.adjustments = dump_adjustments(adjustments)

    def add_adjustment(self, adjustment: Adjustment) -> None:
        self.set_adjustments([*self.get_adjustments(), adjustment])


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@shipping.aggregate
class Order:
    order_type = String(max_length=50, default="default")
    store_id = String(max_length=100)
    state = String(
        max_length=20,
        choices=OrderState,
        default=OrderState.DRAFT.value,
    )
    items = HasMany(OrderItem)
    shipments = HasMany(Shipment)
    adjustments = Text(default="[]")  # JSON list of Adjustment dicts
    coupon_codes = Text(default="[]")  # JSON list of coupon codes
    shipping_profile_id = Identifier()
    checkout_step = String(max_length=50)
    shipping_force_refresh = Boolean(default=False)
    original_checkout_step = String(max_length=50)
    original_item_ids = Text()  # JSON list of item IDs at the last save; None for a new order
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, store_id: str, order_type: str = "default", items_data: list[dict] | None = None):
        """Create a new draft order, optionally with its items."""
        now = datetime.now(UTC)
        order = cls(
            store_id=store_id,
            order_type=order_type,
            state=OrderState.DRAFT.value,
            created_at=now,
            updated_at=now,
        )
        for item_data in items_data or []:
            order.add_item(**item_data)
        return order

    # -------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------
    def add_item(
        self,
        title: str,
        unit_price: Price,
        quantity: int = 1,
        weight: float | None = None,
        purchased_entity_id: str | None = None,
    ) -> OrderItem:
        item = OrderItem(
            title=title,
            unit_price=unit_price,
            quantity=quantity,
            weight=weight,
            purchased_entity_id=purchased_entity_id,
        )
        self.add_items(item)
        self.updated_at = datetime.now(UTC)
        return item

    def get_item(self, item_id: str) -> OrderItem | None:
        return next((i for i in (self.items or []) if str(i.id) == str(item_id)), None)

    def remove_item(self, item_id: str) -> None:
        item = self.get_item(item_id)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in this order"]})
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

    def get_item_ids(self) -> list[str]:
        return [str(item.id) for item in (self.items or [])]

    def get_subtotal_price(self) -> Price | None:
        subtotal = None
        for item in self.items or []:
            total = item.get_total_price()
            subtotal = total if subtotal is None else subtotal.add(total)
        return subtotal

    def get_total_price(self) -> Price | None:
        """Return the subtotal plus every adjustment that is not already included."""
        total = self.get_subtotal_price()
        if total is None:
            return None
        for adjustment in self.collect_adjustments():
            if not adjustment.included:
                total = total.add(adjustment.amount)
        return round_price(total)

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
        """Drop the unlocked adjustments of the order and of its items."""
        self.set_adjustments([a for a in self.get_adjustments() if a.locked])
        for item in self.items or []:
            item.set_adjustments([a for a in item.get_adjustments() if a.locked])

    def collect_adjustments(self, adjustment_types: list[str] | None = None) -> list[Adjustment]:
        """Return the item adjustments followed by the order adjustments."""
        adjustments = []
        for item in self.items or []:
            adjustments.extend(item.get_adjustments(adjustment_types))
        adjustments.extend(self.get_adjustments(adjustment_types))
        return adjustments

    # -------------------------------------------------------------------
    # Shipments
    # -------------------------------------------------------------------
    def get_shipments(self) -> list[Shipment]:
        return list(self.shipments or [])

    def has_shipments(self) -> bool:
        return bool(self.shipments)

    def set_shipments(self, shipments: list[Shipment]) -> None:
        """Make the given shipments the order's shipment set.

        Shipments missing from the list are removed, new ones are appended.
        """
        keep_ids = {str(s.id) for s in shipments}
        for existing in self.get_shipments():
            if str(existing.id) not in keep_ids:
                self.remove_shipments(existing)

        current_ids = {str(s.id) for s in self.get_shipments()}
        for shipment in shipments:
            if str(shipment.id) not in current_ids:
                self.add_shipments(shipment)
        self.updated_at = datetime.now(UTC)

    def remove_shipment_set(self, shipments: list[Shipment], reason: str = "") -> None:
        """Delete the given shipments from the order."""
        if not shipments:
            return
        remove_ids = [str(s.id) for s in shipments]
        for existing in self.get_shipments():
            if str(existing.id) in remove_ids:
                self.remove_shipments(existing)

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            ShipmentsRemoved(
                order_id=str(self.id),
                shipment_ids=json.dumps(remove_ids),
                reason=reason,
                removed_at=now,
            )
        )

    def remove_all_shipments(self, reason: str = "") -> None:
        self.remove_shipment_set(self.get_shipments(), reason=reason)

    def record_packing(self, shipment_count: int, removed_count: int = 0) -> None:
        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            ShipmentsPacked(
                order_id=str(self.id),
                shipment_count=shipment_count,
                removed_count=removed_count,
                packed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Shipping refresh flag
    # -------------------------------------------------------------------
    def request_shipping_refresh(self) -> None:
        """Ask the next pricing pass to repack and re-rate the shipments."""
        now = datetime.now(UTC)
        self.shipping_force_refresh = True
        self.updated_at = now
        self.raise_(ShippingRefreshRequested(order_id=str(self.id), requested_at=now))

    def consume_shipping_refresh(self) -> bool:
        """Clear the refresh flag, returning whether it was set."""
        requested = bool(self.shipping_force_refresh)
        self.shipping_force_refresh = False
        return requested

    # -------------------------------------------------------------------
    # Saved-state snapshot
    # -------------------------------------------------------------------
    def capture_original(self) -> None:
        """Remember the checkout step and item IDs as they are when the order is saved."""
        self.original_checkout_step = self.checkout_step
        self.original_item_ids = json.dumps(self.get_item_ids())

    def has_original(self) -> bool:
        return self.original_item_ids is not None

    def get_original_item_ids(self) -> list[str]:
        return json.loads(self.original_item_ids or "[]")

    # -------------------------------------------------------------------
    # Coupons
    # -------------------------------------------------------------------
    def get_coupon_codes(self) -> list[str]:
        return json.loads(self.coupon_codes or "[]")

    def apply_coupon(self, code: str) -> None:
        codes = self.get_coupon_codes()
        if code in codes:
            raise ValidationError({"coupon_code": [f"Coupon {code} is already applied"]})
        codes.append(code)
        self.coupon_codes = json.dumps(codes)
        self.updated_at = datetime.now(UTC)

    def remove_coupon(self, code: str) -> None:
        codes = self.get_coupon_codes()
        if code not in codes:
            raise ValidationError({"coupon_code": [f"Coupon {code} is not applied"]})
        codes.remove(code)
        self.coupon_codes = json.dumps(codes)
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Workflow
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_state: OrderState) -> None:
        current = OrderState(self.state)
        if target_state not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"state": [f"Cannot transition from {current.value} to {target_state.value}"]})

    def _transition_shipments(self, target_state: ShipmentState) -> None:
        transitions = {
            ShipmentState.READY: "finalize",
            ShipmentState.SHIPPED: "ship",
            ShipmentState.CANCELED: "cancel",
        }
        for shipment in self.get_shipments():
            if shipment.can_transition(target_state):
                getattr(shipment, transitions[target_state])()

    def place(self, requires_validation: bool = False) -> None:
        """Place a draft order. Shipments are finalized unless validation is pending."""
        target = OrderState.VALIDATION if requires_validation else OrderState.FULFILLMENT
        self._assert_can_transition(target)
        now = datetime.now(UTC)
        self.state = target.value
        if target == OrderState.FULFILLMENT:
            self._transition_shipments(ShipmentState.READY)
        self.updated_at = now
        self.raise_(OrderPlaced(order_id=str(self.id), state=target.value, placed_at=now))

    def validate(self) -> None:
        if OrderState(self.state) != OrderState.VALIDATION:
            raise ValidationError({"state": ["Only orders awaiting validation can be validated"]})
        now = datetime.now(UTC)
        self.state = OrderState.FULFILLMENT.value
        self._transition_shipments(ShipmentState.READY)
        self.updated_at = now
        self.raise_(OrderValidated(order_id=str(self.id), validated_at=now))

    def fulfill(self) -> None:
        self._assert_can_transition(OrderState.COMPLETED)
        now = datetime.now(UTC)
        self.state = OrderState.COMPLETED.value
        self._transition_shipments(ShipmentState.SHIPPED)
        self.updated_at = now
        self.raise_(OrderFulfilled(order_id=str(self.id), fulfilled_at=now))

    def cancel(self) -> None:
        self._assert_can_transition(OrderState.CANCELED)
        now = datetime.now(UTC)
        self.state = OrderState.CANCELED.value
        self._transition_shipments(ShipmentState.CANCELED)
        self.updated_at = now
        self.raise_(OrderCanceled(order_id=str(self.id), canceled_at=now))
