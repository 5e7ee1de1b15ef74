"""Tests for the Shipment entity."""

import pytest
from protean.exceptions import ValidationError
from shipping.packer.packer import ProposedShipment
from shipping.shared.adjustment import Adjustment
from shipping.shared.price import Price
from shipping.shipment.shipment import Shipment, ShipmentItem, ShipmentState


def _usd(number):
    return Price(number=number, currency_code="USD")


def _make_item(order_item_id="item-1", quantity=2):
    return ShipmentItem(
        order_item_id=order_item_id,
        title="T-shirt (red, large)",
        quantity=quantity,
        weight=40.0 * quantity,
        declared_value=_usd("15").multiply(quantity),
    )


def _make_shipment(**overrides):
    defaults = {"title": "Shipment #1"}
    defaults.update(overrides)
    shipment = Shipment(**defaults)
    shipment.add_item(_make_item())
    return shipment


class TestShipmentConstruction:
    def test_element_type(self):
        from protean.utils import DomainObjects

        assert Shipment.element_type == DomainObjects.ENTITY

    def test_defaults(self):
        shipment = Shipment()
        assert shipment.state == ShipmentState.DRAFT.value
        assert shipment.get_items() == []
        assert shipment.get_adjustments() == []
        assert shipment.owned_by_packer is False
        assert shipment.amount is None
        assert shipment.id is not None


class TestShipmentItems:
    def test_items_round_trip_through_json(self):
        shipment = _make_shipment()
        items = shipment.get_items()
        assert len(items) == 1
        assert items[0].order_item_id == "item-1"
        assert items[0].declared_value.equals(_usd("30"))

    def test_totals(self):
        shipment = _make_shipment()
        shipment.add_item(_make_item("item-2", quantity=1))
        assert shipment.has_items()
        assert shipment.get_total_quantity() == 3
        assert shipment.get_weight() == 120.0
        assert shipment.get_total_declared_value().equals(_usd("45"))

    def test_total_declared_value_without_items(self):
        assert Shipment().get_total_declared_value() is None


class TestShipmentAdjustedAmount:
    def test_no_amount(self):
        assert _make_shipment().get_adjusted_amount() is None

    def test_included_adjustments_are_ignored(self):
        shipment = _make_shipment(amount=_usd("6"))
        shipment.add_adjustment(Adjustment(type="fee", label="Handling fee", amount=_usd("2.00"), included=True))
        assert shipment.get_adjusted_amount().equals(_usd("6"))

    def test_non_included_adjustments_are_applied(self):
        shipment = _make_shipment(amount=_usd("20.00"))
        shipment.add_adjustment(Adjustment(type="shipping_promotion", label="$11 off", amount=_usd("-11.00")))
        shipment.add_adjustment(Adjustment(type="fee", label="Fee", amount=_usd("1.00")))
        assert shipment.get_adjusted_amount().equals(_usd("10.00"))
        assert shipment.get_adjusted_amount(["shipping_promotion"]).equals(_usd("9.00"))

    def test_adjusted_amount_is_rounded(self):
        shipment = _make_shipment(amount=_usd("3.333"))
        assert shipment.get_adjusted_amount().number == "3.33"

    def test_clear_adjustments(self):
        shipment = _make_shipment()
        shipment.add_adjustment(Adjustment(type="fee", label="Fee", amount=_usd("1.00")))
        shipment.clear_adjustments()
        assert shipment.get_adjustments() == []


class TestShipmentRate:
    def test_clear_rate(self):
        shipment = _make_shipment(
            shipping_method_id="1",
            shipping_service="default",
            original_amount=_usd("5"),
            amount=_usd("4"),
        )
        shipment.clear_rate()
        assert shipment.shipping_method_id is None
        assert shipment.shipping_service is None
        assert shipment.original_amount is None
        assert shipment.amount is None
        assert shipment.is_incomplete()
        assert shipment.has_items()

    def test_populate_from_proposed_shipment(self):
        shipment = _make_shipment(package_type_id="custom_box")
        proposed = ProposedShipment(
            order_id="ord-001",
            title="Shipment #2",
            items=[_make_item("item-9", quantity=1)],
            shipping_profile_id="profile-1",
        )
        shipment.populate_from_proposed_shipment(proposed)
        assert shipment.title == "Shipment #2"
        assert [i.order_item_id for i in shipment.get_items()] == ["item-9"]
        assert str(shipment.shipping_profile_id) == "profile-1"
        assert shipment.package_type_id == "custom_box"


class TestShipmentWorkflow:
    def test_finalize_then_ship(self):
        shipment = _make_shipment()
        shipment.finalize()
        assert shipment.state == ShipmentState.READY.value
        shipment.ship(tracking_code="ABC123")
        assert shipment.state == ShipmentState.SHIPPED.value
        assert shipment.tracking_code == "ABC123"

    def test_cannot_ship_draft(self):
        with pytest.raises(ValidationError):
            _make_shipment().ship()

    def test_cancel(self):
        shipment = _make_shipment()
        shipment.cancel()
        assert shipment.state == ShipmentState.CANCELED.value

    def test_cannot_cancel_shipped(self):
        shipment = _make_shipment()
        shipment.finalize()
        shipment.ship()
        assert not shipment.can_transition(ShipmentState.CANCELED)
        with pytest.raises(ValidationError):
            shipment.cancel()
