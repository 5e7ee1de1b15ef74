"""Packers — strategies that split an order's shippable items into shipments.

A packer proposes shipments; it never touches the order. ``PackerManager``
turns the proposals into Shipment entities.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from shipping.shipment.shipment import ShipmentItem


@dataclass(frozen=True)
class ProposedShipment:
    order_id: str
    title: str
    items: list[ShipmentItem] = field(default_factory=list)
    shipping_profile_id: str | None = None
    package_type_id: str | None = None


def _shipment_item(order_item) -> ShipmentItem:
    quantity = order_item.quantity
    return ShipmentItem(
        order_item_id=str(order_item.id),
        title=order_item.title,
        quantity=quantity,
        weight=order_item.weight * quantity,
        declared_value=order_item.unit_price.multiply(quantity),
    )


class Packer(ABC):
    @abstractmethod
    def applies(self, order, profile) -> bool:
        """Whether this packer handles the given order and shipping profile."""
        ...

    @abstractmethod
    def pack(self, order, profile) -> list[ProposedShipment]: ...


class DefaultPacker(Packer):
    """Puts every shippable item into a single shipment."""

    def applies(self, order, profile) -> bool:
        return True

    def pack(self, order, profile) -> list[ProposedShipment]:
        items = [_shipment_item(i) for i in (order.items or []) if i.is_shippable()]
        if not items:
            return []
        return [
            ProposedShipment(
                order_id=str(order.id),
                title="Shipment #1",
                items=items,
                shipping_profile_id=str(profile.id),
            )
        ]


class PerItemPacker(Packer):
    """Ships every item separately for destinations in the given countries."""

    def __init__(self, countries: list[str]):
        self.countries = list(countries)

    def applies(self, order, profile) -> bool:
        address = profile.address
        return address is not None and address.country_code in self.countries

    def pack(self, order, profile) -> list[ProposedShipment]:
        proposed_shipments = []
        for order_item in order.items or []:
            if not order_item.is_shippable():
                continue
            proposed_shipments.append(
                ProposedShipment(
                    order_id=str(order.id),
                    title=f"Shipment #{len(proposed_shipments) + 1}",
                    items=[_shipment_item(order_item)],
                    shipping_profile_id=str(profile.id),
                )
            )
        return proposed_shipments
