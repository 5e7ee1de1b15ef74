"""Order domain events raised by the shipping pipeline and the order workflow.

All events are past tense and versioned.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from shipping.domain import shipping


@shipping.event(part_of="Order")
class ShipmentsPacked:
    """The order's items were (re)packed into shipments."""

    __version__ = 1

    order_id = Identifier(required=True)
    shipment_count = Integer(required=True)
    removed_count = Integer(default=0)
    packed_at = DateTime(required=True)


@shipping.event(part_of="Order")
class ShipmentsRemoved:
    """Shipments were deleted from the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    shipment_ids = Text(required=True)  # JSON list of shipment IDs
    reason = String(max_length=100)
    removed_at = DateTime(required=True)


@shipping.event(part_of="Order")
class ShippingRefreshRequested:
    """The next pricing pass must repack and re-rate the order's shipments."""

    __version__ = 1

    order_id = Identifier(required=True)
    requested_at = DateTime(required=True)


@shipping.event(part_of="Order")
class OrderPlaced:
    """A draft order was placed."""

    __version__ = 1

    order_id = Identifier(required=True)
    state = String(required=True, max_length=20)
    placed_at = DateTime(required=True)


@shipping.event(part_of="Order")
class OrderValidated:
    """A placed order passed validation and moved to fulfillment."""

    __version__ = 1

    order_id = Identifier(required=True)
    validated_at = DateTime(required=True)


@shipping.event(part_of="Order")
class OrderFulfilled:
    """All of the order's shipments were sent."""

    __version__ = 1

    order_id = Identifier(required=True)
    fulfilled_at = DateTime(required=True)


@shipping.event(part_of="Order")
class OrderCanceled:
    """The order was canceled along with its pending shipments."""

    __version__ = 1

    order_id = Identifier(required=True)
    canceled_at = DateTime(required=True)
