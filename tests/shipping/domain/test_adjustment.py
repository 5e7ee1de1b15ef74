"""Tests for the Adjustment value and its JSON storage helpers."""

import pytest
from protean.exceptions import ValidationError
from shipping.shared.adjustment import Adjustment, dump_adjustments, filter_adjustments, load_adjustments
from shipping.shared.price import Price


def _make_adjustment(**overrides):
    defaults = {
        "type": "tax",
        "label": "VAT",
        "amount": Price(number="2.50", currency_code="USD"),
        "percentage": "0.2",
        "source_id": "eu_vat|fr|standard",
        "included": True,
    }
    defaults.update(overrides)
    return Adjustment(**defaults)


class TestAdjustmentConstruction:
    def test_defaults(self):
        adjustment = Adjustment(type="fee", label="Handling fee", amount=Price(number="2", currency_code="USD"))
        assert adjustment.percentage is None
        assert adjustment.source_id == ""
        assert adjustment.included is False
        assert adjustment.locked is False

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _make_adjustment(type="bonus")
        assert "Invalid adjustment type" in str(exc.value)

    def test_empty_label_rejected(self):
        with pytest.raises(ValidationError):
            _make_adjustment(label="")

    def test_amount_must_be_price(self):
        with pytest.raises(ValidationError):
            _make_adjustment(amount="2.50")

    def test_invalid_percentage_rejected(self):
        with pytest.raises(ValidationError):
            _make_adjustment(percentage="twenty")

    def test_sign_helpers(self):
        assert _make_adjustment().is_positive()
        assert _make_adjustment(amount=Price(number="-1", currency_code="USD")).is_negative()


class TestAdjustmentCopies:
    def test_with_amount(self):
        adjustment = _make_adjustment()
        copy = adjustment.with_amount(Price(number="1.67", currency_code="USD"))
        assert copy.amount.number == "1.67"
        assert copy.source_id == adjustment.source_id
        assert adjustment.amount.number == "2.50"

    def test_with_locked(self):
        adjustment = _make_adjustment(locked=True)
        assert adjustment.with_locked(False).locked is False
        assert adjustment.locked is True

    def test_add_same_source(self):
        total = _make_adjustment().add(_make_adjustment())
        assert total.amount.equals(Price(number="5", currency_code="USD"))

    def test_add_different_type_rejected(self):
        with pytest.raises(ValueError):
            _make_adjustment().add(_make_adjustment(type="fee"))

    def test_add_different_source_rejected(self):
        with pytest.raises(ValueError):
            _make_adjustment().add(_make_adjustment(source_id="eu_vat|fr|intermediate"))


class TestAdjustmentStorage:
    def test_dump_and_load_preserve_fields(self):
        adjustments = [_make_adjustment(), _make_adjustment(type="fee", label="Fee", percentage=None, locked=True)]
        loaded = load_adjustments(dump_adjustments(adjustments))
        assert loaded == adjustments

    def test_load_empty(self):
        assert load_adjustments(None) == []
        assert load_adjustments("[]") == []

    def test_filter_by_type(self):
        adjustments = [_make_adjustment(), _make_adjustment(type="fee", label="Fee")]
        assert [a.type for a in filter_adjustments(adjustments, ["fee"])] == ["fee"]

    def test_filter_without_types_keeps_all(self):
        adjustments = [_make_adjustment(), _make_adjustment(type="fee", label="Fee")]
        assert len(filter_adjustments(adjustments)) == 2
