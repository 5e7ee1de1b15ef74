"""Shipment promotion offers — discounts applied to the order's shipments.

An offer can be restricted to some shipping methods (``filter`` is
``include`` or ``exclude``, ``shipping_methods`` lists shipping method UUIDs).
A display-inclusive offer lowers the shipment amount itself; otherwise the
discount only shows up as an adjustment on the order total.
"""

from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation

import structlog

from shipping.method import get_shipping_method_storage
from shipping.shared.adjustment import Adjustment
from shipping.shared.price import Price
from shipping.shared.rounding import round_price

logger = structlog.get_logger(__name__)

FILTERS = ("none", "include", "exclude")


class ShipmentPromotionOffer(ABC):
    plugin_id: str = ""

    def __init__(
        self,
        display_inclusive: bool = False,
        filter: str = "none",
        shipping_methods: list[str] | None = None,
        method_storage=None,
    ):
        if filter not in FILTERS:
            raise ValueError(f"Unknown shipping method filter: {filter}")
        self.display_inclusive = display_inclusive
        self.filter = filter
        self.shipping_methods = list(shipping_methods or [])
        self._method_storage = method_storage

    @property
    def method_storage(self):
        return self._method_storage or get_shipping_method_storage()

    def is_display_inclusive(self) -> bool:
        return self.display_inclusive

    def apply(self, order, promotion) -> None:
        for shipment in order.get_shipments():
            if self.applies_to_shipment(shipment):
                self.apply_to_shipment(shipment, promotion)

    def applies_to_shipment(self, shipment) -> bool:
        if not shipment.shipping_method_id or shipment.amount is None:
            # The shipment is still incomplete.
            return False
        if self.filter == "none":
            return True

        shipping_method = self.method_storage.load(shipment.shipping_method_id)
        if shipping_method is None:
            # The shipping method has been deleted.
            return False
        match = shipping_method.uuid in self.shipping_methods
        return match if self.filter == "include" else not match

    @abstractmethod
    def apply_to_shipment(self, shipment, promotion) -> None: ...

    def _discount_shipment(self, shipment, promotion, amount: Price, percentage: str | None = None) -> None:
        # A discount never exceeds what is left of the shipment amount.
        remaining_amount = shipment.get_adjusted_amount()
        if amount.greater_than(remaining_amount):
            amount = remaining_amount
        if self.display_inclusive:
            shipment.amount = shipment.amount.subtract(amount)

        shipment.add_adjustment(
            Adjustment(
                type="shipping_promotion",
                label=promotion.display_name or "Discount",
                amount=amount.multiply(-1),
                percentage=percentage,
                source_id=str(promotion.id),
                included=self.display_inclusive,
            )
        )


class ShipmentFixedAmountOff(ShipmentPromotionOffer):
    """Takes a fixed amount off each matching shipment."""

    plugin_id = "shipment_fixed_amount_off"

    def __init__(self, amount: Price, **kwargs):
        super().__init__(**kwargs)
        self.amount = amount

    def apply_to_shipment(self, shipment, promotion) -> None:
        if self.amount.currency_code != shipment.amount.currency_code:
            logger.debug(
                "Skipping shipment promotion with a different currency",
                promotion_id=str(promotion.id),
                currency_code=self.amount.currency_code,
            )
            return
        self._discount_shipment(shipment, promotion, self.amount)


class ShipmentPercentageOff(ShipmentPromotionOffer):
    """Takes a percentage of the unreduced amount off each matching shipment."""

    plugin_id = "shipment_percentage_off"

    def __init__(self, percentage: str, **kwargs):
        super().__init__(**kwargs)
        try:
            Decimal(str(percentage))
        except InvalidOperation:
            raise ValueError(f"Invalid percentage: {percentage}") from None
        self.percentage = str(percentage)

    def apply_to_shipment(self, shipment, promotion) -> None:
        amount = round_price(shipment.amount.multiply(self.percentage))
        self._discount_shipment(shipment, promotion, amount, percentage=self.percentage)


OFFER_PLUGINS: dict[str, type[ShipmentPromotionOffer]] = {
    ShipmentFixedAmountOff.plugin_id: ShipmentFixedAmountOff,
    ShipmentPercentageOff.plugin_id: ShipmentPercentageOff,
}


def get_shipment_offer_ids() -> list[str]:
    return list(OFFER_PLUGINS)
