"""Order processors — the two shipping passes of an order refresh.

``EarlyOrderProcessor`` runs before any pricing processor: it repacks the
order when needed, resets every shipment to its un-adjusted amount and, when
a refresh was requested, re-rates the shipments.

``LateOrderProcessor`` runs after the tax and promotion processors: it copies
every priced shipment and its adjustments onto the order.
"""

import structlog

from shipping.order.manager import ShippingOrderManager
from shipping.shared.adjustment import Adjustment
from shipping.shipment.manager import ShipmentManager

logger = structlog.get_logger(__name__)


class EarlyOrderProcessor:
    def __init__(
        self,
        shipping_order_manager: ShippingOrderManager | None = None,
        shipment_manager: ShipmentManager | None = None,
    ):
        self.shipping_order_manager = shipping_order_manager or ShippingOrderManager()
        self.shipment_manager = shipment_manager or ShipmentManager()

    def process(self, order) -> None:
        if not self.shipping_order_manager.has_shipments(order):
            return

        shipments = order.get_shipments()
        if self.should_repack(order, shipments):
            profile = self.shipping_order_manager.get_profile(order)
            if profile is None:
                logger.info("Removing shipments of an order without a shipping profile", order_id=str(order.id))
                order.remove_all_shipments(reason="missing_profile")
                return
            shipments = self.shipping_order_manager.pack(order, profile)

        should_refresh = self.should_refresh(order)
        for shipment in shipments:
            if shipment.original_amount is not None:
                shipment.amount = shipment.original_amount
            shipment.clear_adjustments()
            if not should_refresh:
                continue

            rates = self.shipment_manager.calculate_rates(shipment, order)
            # Keep the shipment (and its profile) even when nothing can ship it.
            if not rates:
                shipment.clear_rate()
                continue
            rate = self.shipment_manager.select_default_rate(shipment, rates)
            self.shipment_manager.apply_rate(shipment, rate)

        if should_refresh:
            order.consume_shipping_refresh()
        order.set_shipments(shipments)

    def should_repack(self, order, shipments) -> bool:
        # Shipments created outside of packing (by an admin, say) are never repacked.
        if any(not shipment.owned_by_packer for shipment in shipments):
            return False
        if self.should_refresh(order):
            return True
        # Moving through checkout alone does not change what needs to ship.
        if (
            order.has_original()
            and order.checkout_step != order.original_checkout_step
            and order.get_item_ids() == order.get_original_item_ids()
        ):
            return False
        return True

    def should_refresh(self, order) -> bool:
        return bool(order.shipping_force_refresh)


class LateOrderProcessor:
    def process(self, order) -> None:
        shipments = order.get_shipments()
        single_shipment = len(shipments) == 1
        for shipment in shipments:
            amount = shipment.amount
            if amount is None:
                continue

            order.add_adjustment(
                Adjustment(
                    type="shipping",
                    label="Shipping" if single_shipment or not shipment.title else shipment.title,
                    amount=amount,
                    source_id=str(shipment.id),
                )
            )
            for adjustment in shipment.get_adjustments():
                # Locked shipment adjustments are transferred unlocked.
                order.add_adjustment(adjustment.with_locked(False))
