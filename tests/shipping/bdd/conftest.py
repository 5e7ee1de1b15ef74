"""Shared BDD fixtures and step definitions for the Shipping domain."""

from pytest_bdd import given, parsers, then, when
from shipping.method import get_shipping_method_storage
from shipping.method.method import ShippingMethod
from shipping.order.manager import ShippingOrderManager
from shipping.order.order import Order
from shipping.order.refresh import OrderRefresh
from shipping.profile import get_profile_storage
from shipping.profile.profile import Address
from shipping.shared.adjustment import Adjustment
from shipping.shared.price import Price


def _price(number, currency_code):
    return Price(number=number, currency_code=currency_code)


def _vat(number, percentage, rate_id):
    return Adjustment(
        type="tax",
        label="VAT",
        amount=_price(number, "USD"),
        percentage=percentage,
        source_id=f"eu_vat|fr|{rate_id}",
        included=True,
        locked=True,
    )


def _pack(order, country_code):
    profiles = get_profile_storage()
    profile = profiles.save(profiles.create(address=Address(country_code=country_code)))
    order.shipping_profile_id = str(profile.id)
    order.set_shipments(ShippingOrderManager(profile_types={}).pack(order, profile))
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a "{label}" shipping method "{method_id}" charging "{number}" {currency_code} with weight {weight:d}'))
def shipping_method(label, method_id, number, currency_code, weight):
    get_shipping_method_storage().add(
        ShippingMethod(
            id=method_id,
            name=f"{label} shipping",
            plugin_id="flat_rate",
            configuration={
                "rate_label": label,
                "rate_amount": {"number": number, "currency_code": currency_code},
            },
            weight=weight,
        )
    )


@given(parsers.cfparse('an order with a shipment to "{country_code}"'), target_fixture="order")
def order_with_shipment(country_code):
    order = Order.create(store_id="store-1")
    order.add_item("Hat", _price("10.00", "USD"), quantity=2, weight=250)
    return _pack(order, country_code)


@given(parsers.cfparse('a taxed order with a shipment to "{country_code}"'), target_fixture="order")
def taxed_order_with_shipment(country_code):
    order = Order.create(store_id="store-1")
    hat = order.add_item("Hat", _price("70.00", "USD"), weight=250)
    hat.add_adjustment(_vat("6.36", "0.1", "intermediate"))
    for _ in range(2):
        mug = order.add_item("Mug", _price("15.00", "USD"), weight=350)
        mug.add_adjustment(_vat("2.50", "0.2", "standard"))
    return _pack(order, country_code)


@given("a shipping refresh was requested")
def shipping_refresh_requested(order):
    order.request_shipping_refresh()


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the order is refreshed")
def refresh_order(order):
    OrderRefresh.default().refresh(order)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the shipment amount is "{number}" {currency_code}'))
def shipment_amount_is(order, number, currency_code):
    assert order.get_shipments()[0].amount.equals(_price(number, currency_code))


@then("the shipment has no amount")
def shipment_has_no_amount(order):
    assert order.get_shipments()[0].amount is None


@then(parsers.cfparse('the order total is "{number}" {currency_code}'))
def order_total_is(order, number, currency_code):
    assert order.get_total_price().equals(_price(number, currency_code))


@then(parsers.cfparse('the order has {count:d} "{adjustment_type}" adjustment'))
def order_adjustment_count(order, count, adjustment_type):
    assert len(order.get_adjustments([adjustment_type])) == count


@then(parsers.cfparse("the order has {count:d} shipment"))
@then(parsers.cfparse("the order has {count:d} shipments"))
def order_shipment_count(order, count):
    assert len(order.get_shipments()) == count

