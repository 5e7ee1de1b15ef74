"""Order refresh — runs the pricing processors over an order in a fixed order.

Unlocked adjustments are cleared first. Then the early shipping pass runs,
followed by promotions and taxes, and the late shipping pass last.
"""

import structlog

from shipping.order.manager import ShippingOrderManager
from shipping.order.processors import EarlyOrderProcessor, LateOrderProcessor
from shipping.promotion import get_promotion_storage
from shipping.shipment.manager import ShipmentManager
from shipping.tax import get_tax_type_storage
from shipping.tax.shipping_tax import ShippingTaxType

logger = structlog.get_logger(__name__)


class PromotionOrderProcessor:
    """Applies every promotion available to the order, including coupon promotions."""

    def __init__(self, promotion_storage=None):
        self._promotion_storage = promotion_storage

    @property
    def promotion_storage(self):
        return self._promotion_storage or get_promotion_storage()

    def process(self, order) -> None:
        for promotion in self.promotion_storage.load_for_order(order):
            if promotion.applies(order):
                promotion.apply(order)


class TaxOrderProcessor:
    """Applies the enabled shipping tax types that apply to the order."""

    def __init__(self, tax_types: list[ShippingTaxType] | None = None):
        self._tax_types = tax_types

    @property
    def tax_types(self) -> list[ShippingTaxType]:
        if self._tax_types is not None:
            return self._tax_types
        return [t for t in get_tax_type_storage().load_enabled() if isinstance(t, ShippingTaxType)]

    def process(self, order) -> None:
        for tax_type in self.tax_types:
            if tax_type.applies(order):
                tax_type.apply(order)


class OrderRefresh:
    def __init__(self, processors: list):
        self.processors = list(processors)

    @classmethod
    def default(
        cls,
        shipping_order_manager: ShippingOrderManager | None = None,
        shipment_manager: ShipmentManager | None = None,
        promotion_storage=None,
        tax_types: list[ShippingTaxType] | None = None,
    ) -> "OrderRefresh":
        """Wire the standard chain.

        Rates are calculated without the promotion preview. The promotion
        processor discounts the selected rate later in the chain.
        """
        return cls(
            [
                EarlyOrderProcessor(shipping_order_manager, shipment_manager),
                PromotionOrderProcessor(promotion_storage),
                TaxOrderProcessor(tax_types),
                LateOrderProcessor(),
            ]
        )

    def refresh(self, order) -> None:
        order.clear_adjustments()
        for processor in self.processors:
            processor.process(order)
        logger.info(
            "Refreshed order",
            order_id=str(order.id),
            shipment_count=len(order.get_shipments()),
        )
