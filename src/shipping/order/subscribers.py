"""Reactions of the shipping pipeline to cart, order item and tax events."""

import structlog

from shipping.order.manager import ShippingOrderManager
from shipping.order.order import OrderState

logger = structlog.get_logger(__name__)


class CartSubscriber:
    def __init__(self, shipping_order_manager: ShippingOrderManager | None = None):
        self.shipping_order_manager = shipping_order_manager or ShippingOrderManager()

    def on_cart_empty(self, cart) -> None:
        """An emptied cart has nothing left to ship."""
        if not self.shipping_order_manager.has_shipments(cart):
            return
        cart.remove_all_shipments(reason="cart_emptied")

    def on_cart_entity_add(self, cart) -> None:
        if self.shipping_order_manager.has_shipments(cart):
            logger.info("Requesting shipping refresh after cart addition", order_id=str(cart.id))
            cart.request_shipping_refresh()


class OrderItemSubscriber:
    def __init__(self, shipping_order_manager: ShippingOrderManager | None = None):
        self.shipping_order_manager = shipping_order_manager or ShippingOrderManager()

    def on_order_item_update(self, order, order_item, previous_quantity: int) -> None:
        if not self._should_refresh(order):
            return
        if order_item.quantity != previous_quantity:
            logger.info(
                "Requesting shipping refresh after quantity change",
                order_id=str(order.id),
                order_item_id=str(order_item.id),
            )
            order.request_shipping_refresh()

    def on_order_item_delete(self, order, order_item) -> None:
        if not self._should_refresh(order):
            return
        logger.info(
            "Requesting shipping refresh after item removal",
            order_id=str(order.id),
            order_item_id=str(order_item.id),
        )
        order.request_shipping_refresh()

    def _should_refresh(self, order) -> bool:
        return order.state == OrderState.DRAFT.value and self.shipping_order_manager.has_shipments(order)


class TaxSubscriber:
    """Picks the address an order item is taxed at when the order ships to several addresses."""

    def __init__(self, shipping_order_manager: ShippingOrderManager | None = None):
        self.shipping_order_manager = shipping_order_manager or ShippingOrderManager()

    def on_customer_profile(self, order, order_item, customer_profile):
        """Return the profile to tax the order item with.

        When the shipments go to at least two different profiles, the address of
        the shipment carrying the item is copied onto the customer profile.
        Otherwise the customer profile is returned untouched.
        """
        if not self.shipping_order_manager.has_shipments(order):
            return customer_profile

        shipments = order.get_shipments()
        profile_ids = {str(s.shipping_profile_id) for s in shipments if s.shipping_profile_id}
        if len(profile_ids) < 2:
            return customer_profile

        profile_storage = self.shipping_order_manager.profile_storage
        for shipment in shipments:
            if any(item.order_item_id == str(order_item.id) for item in shipment.get_items()):
                shipping_profile = profile_storage.load(shipment.shipping_profile_id)
                if shipping_profile is None:
                    return customer_profile
                customer_profile.address = shipping_profile.address
                return customer_profile
        return customer_profile
