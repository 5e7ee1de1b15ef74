"""Application tests for rate calculation, selection and application."""

import pytest
from shipping.method import get_shipping_method_storage
from shipping.method.method import ShippingMethod
from shipping.method.plugin import ShippingMethodPlugin, register_plugin, unregister_plugin
from shipping.order.order import Order
from shipping.shared.price import Price
from shipping.shipment.manager import ShipmentManager
from shipping.shipment.rates_event import RatesSubscriber
from shipping.shipment.shipment import Shipment, ShipmentItem
from structlog.testing import capture_logs


def _usd(number):
    return Price(number=number, currency_code="USD")


class ExceptionThrower(ShippingMethodPlugin):
    plugin_id = "exception_thrower"

    def calculate_rates(self, shipment):
        raise RuntimeError("Carrier API unavailable")


class DoubleFirstRate(RatesSubscriber):
    """Doubles the first rate of each batch for shipments flagged with alter_rate."""

    def on_calculate(self, event):
        if not event.rates or not event.shipment.alter_rate:
            return
        first = event.rates[0]
        event.rates[0] = first.with_amount(first.amount.multiply("2"))


@pytest.fixture(autouse=True)
def exception_thrower():
    register_plugin(ExceptionThrower.plugin_id, ExceptionThrower)
    yield
    unregister_plugin(ExceptionThrower.plugin_id)


def _flat_rate(label, number):
    return {
        "rate_label": label,
        "rate_amount": {"number": number, "currency_code": "USD"},
    }


def _setup_methods(overnight_amount="22"):
    storage = get_shipping_method_storage()
    storage.add(
        ShippingMethod(
            id="1",
            name="Example shipping method",
            plugin_id="flat_rate",
            configuration=_flat_rate("Standard shipping", "5"),
            stores=["store-1"],
            weight=1,
        )
    )
    storage.add(
        ShippingMethod(
            id="2",
            name="Another shipping method",
            plugin_id="flat_rate",
            configuration=_flat_rate("Overnight shipping", overnight_amount),
            stores=["store-1"],
            weight=0,
        )
    )
    storage.add(ShippingMethod(id="3", name="Broken carrier", plugin_id="exception_thrower", stores=["store-1"]))
    return storage


def _make_order_and_shipment():
    order = Order.create(store_id="store-1")
    order.add_item("T-shirt (red, large)", _usd("15"), quantity=2, weight=20000)
    shipment = Shipment(title="Shipment", tracking_code="ABC123", amount=_usd("5"))
    shipment.add_item(
        ShipmentItem(
            order_item_id=str(order.items[0].id),
            title="T-shirt (red, large)",
            quantity=2,
            weight=40000,
            declared_value=_usd("30"),
        )
    )
    order.set_shipments([shipment])
    return order, shipment


class TestCalculateRates:
    def test_rates_from_every_available_method(self):
        _setup_methods()
        order, shipment = _make_order_and_shipment()

        rates = ShipmentManager().calculate_rates(shipment, order)

        assert list(rates) == ["2--default", "1--default"]
        first, second = rates.values()
        assert first.shipping_method_id == "2"
        assert first.service.id == "default"
        assert first.service.label == "Overnight shipping"
        assert first.original_amount.equals(_usd("22.00"))
        assert first.amount.equals(_usd("22.00"))
        assert second.shipping_method_id == "1"
        assert second.service.label == "Standard shipping"
        assert second.amount.equals(_usd("5.00"))

    def test_failing_provider_is_logged_and_skipped(self):
        _setup_methods()
        order, shipment = _make_order_and_shipment()

        with capture_logs() as logs:
            rates = ShipmentManager().calculate_rates(shipment, order)

        assert list(rates) == ["2--default", "1--default"]
        errors = [log for log in logs if log["log_level"] == "error"]
        assert len(errors) == 1
        assert errors[0]["event"] == "Exception occurred when calculating rates"
        assert errors[0]["method_name"] == "Broken carrier"
        assert errors[0]["message"] == "Carrier API unavailable"

    def test_subscribers_can_alter_rates(self):
        _setup_methods()
        order, shipment = _make_order_and_shipment()
        manager = ShipmentManager(subscribers=[DoubleFirstRate()])

        shipment.alter_rate = True
        first, second = manager.calculate_rates(shipment, order).values()

        assert first.original_amount.equals(_usd("22.00"))
        assert first.amount.equals(_usd("44.00"))
        assert second.original_amount.equals(_usd("5.00"))
        assert second.amount.equals(_usd("10.00"))

    def test_subscribers_leave_unflagged_shipments_alone(self):
        _setup_methods()
        order, shipment = _make_order_and_shipment()
        manager = ShipmentManager()
        manager.add_subscriber(DoubleFirstRate())

        first, _ = manager.calculate_rates(shipment, order).values()
        assert first.amount.equals(_usd("22.00"))

    def test_no_methods_no_rates(self):
        order, shipment = _make_order_and_shipment()
        assert ShipmentManager().calculate_rates(shipment, order) == {}

    def test_methods_for_other_stores_are_skipped(self):
        _setup_methods()
        order, shipment = _make_order_and_shipment()
        order.store_id = "store-2"
        assert ShipmentManager().calculate_rates(shipment, order) == {}


class TestSelectDefaultRate:
    def test_falls_back_to_first_rate(self):
        _setup_methods()
        order, shipment = _make_order_and_shipment()
        manager = ShipmentManager()
        rates = manager.calculate_rates(shipment, order)
        assert manager.select_default_rate(shipment, rates).id == "2--default"

    def test_prefers_current_selection(self):
        _setup_methods()
        order, shipment = _make_order_and_shipment()
        manager = ShipmentManager()
        rates = manager.calculate_rates(shipment, order)

        shipment.shipping_method_id = "1"
        shipment.shipping_service = "default"
        assert manager.select_default_rate(shipment, rates).id == "1--default"

    def test_stale_service_falls_back_to_first_rate(self):
        _setup_methods()
        order, shipment = _make_order_and_shipment()
        manager = ShipmentManager()
        rates = manager.calculate_rates(shipment, order)

        shipment.shipping_method_id = "1"
        shipment.shipping_service = "express"
        assert manager.select_default_rate(shipment, rates).id == "2--default"

    def test_empty_rates_rejected(self):
        _, shipment = _make_order_and_shipment()
        with pytest.raises(ValueError):
            ShipmentManager().select_default_rate(shipment, {})


class TestApplyRate:
    def test_apply_rate_copies_rate_onto_shipment(self):
        _setup_methods()
        order, shipment = _make_order_and_shipment()
        manager = ShipmentManager()
        rates = manager.calculate_rates(shipment, order)
        second_rate = list(rates.values())[-1]

        manager.apply_rate(shipment, second_rate)

        assert shipment.shipping_method_id == second_rate.shipping_method_id
        assert shipment.shipping_service == second_rate.service.id
        assert shipment.original_amount.equals(second_rate.original_amount)
        assert shipment.amount.equals(second_rate.amount)

    def test_apply_rate_sets_default_package_type(self):
        _setup_methods()
        order, shipment = _make_order_and_shipment()
        manager = ShipmentManager()
        rate = list(manager.calculate_rates(shipment, order).values())[0]

        manager.apply_rate(shipment, rate)
        assert shipment.package_type_id == "custom_box"

    def test_apply_rate_keeps_existing_package_type(self):
        _setup_methods()
        order, shipment = _make_order_and_shipment()
        shipment.package_type_id = "envelope"
        manager = ShipmentManager()
        rate = list(manager.calculate_rates(shipment, order).values())[0]

        manager.apply_rate(shipment, rate)
        assert shipment.package_type_id == "envelope"

    def test_unknown_method_rejected(self):
        _setup_methods()
        order, shipment = _make_order_and_shipment()
        manager = ShipmentManager()
        rate = list(manager.calculate_rates(shipment, order).values())[0]
        get_shipping_method_storage().delete(rate.shipping_method_id)

        with pytest.raises(ValueError):
            manager.apply_rate(shipment, rate)
