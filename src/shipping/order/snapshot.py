"""Detached copies of an order and one of its shipments.

Used to preview how promotions would change a rate without touching the
real order. The copies share identities with the originals but no state.
"""

from shipping.order.order import Order, OrderItem
from shipping.shipment.shipment import Shipment


def snapshot_shipment(shipment: Shipment) -> Shipment:
    return Shipment(
        id=shipment.id,
        title=shipment.title,
        items=shipment.items,
        shipping_profile_id=shipment.shipping_profile_id,
        shipping_method_id=shipment.shipping_method_id,
        shipping_service=shipment.shipping_service,
        package_type_id=shipment.package_type_id,
        original_amount=shipment.original_amount,
        amount=shipment.amount,
        adjustments=shipment.adjustments,
        state=shipment.state,
        tracking_code=shipment.tracking_code,
        owned_by_packer=shipment.owned_by_packer,
        alter_rate=shipment.alter_rate,
    )


def snapshot_order_item(order_item: OrderItem) -> OrderItem:
    return OrderItem(
        id=order_item.id,
        title=order_item.title,
        purchased_entity_id=order_item.purchased_entity_id,
        quantity=order_item.quantity,
        unit_price=order_item.unit_price,
        weight=order_item.weight,
        adjustments=order_item.adjustments,
    )


def snapshot_order_with_shipment(order: Order, shipment: Shipment) -> tuple[Order, Shipment]:
    """Copy the order with the copied shipment as its only shipment."""
    fake_shipment = snapshot_shipment(shipment)
    fake_order = Order(
        id=order.id,
        order_type=order.order_type,
        store_id=order.store_id,
        state=order.state,
        adjustments=order.adjustments,
        coupon_codes=order.coupon_codes,
        shipping_profile_id=order.shipping_profile_id,
        checkout_step=order.checkout_step,
        shipping_force_refresh=order.shipping_force_refresh,
        original_checkout_step=order.original_checkout_step,
        original_item_ids=order.original_item_ids,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )
    for order_item in order.items or []:
        fake_order.add_items(snapshot_order_item(order_item))
    fake_order.add_shipments(fake_shipment)
    return fake_order, fake_order.get_shipments()[0]
