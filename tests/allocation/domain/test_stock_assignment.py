"""Tests for the StockAssignment aggregate."""

import pytest
from allocation.stock.assignment import StockAssignment, build_assignment_key
from allocation.stock.events import LowStockDetected, StockAssigned, StockAssignmentUpdated
from protean.exceptions import ValidationError


def _make_row(**overrides):
    defaults = {
        "warehouse_id": "w1",
        "product_id": "P1",
        "variant_id": None,
        "stock_quantity": 50,
        "minimum_threshold": 10,
        "cost_per_unit": 2.5,
    }
    defaults.update(overrides)
    return StockAssignment.create(**defaults)


class TestAssignmentKey:
    def test_base_variant_key(self):
        assert build_assignment_key("w1", "P1") == "w1::P1::base"

    def test_variant_key(self):
        assert build_assignment_key("w1", "P1", "RED") == "w1::P1::RED"


class TestStockAssignmentCreation:
    def test_create_sets_fields(self):
        row = _make_row()
        assert row.assignment_key == "w1::P1::base"
        assert row.stock_quantity == 50
        assert row.variant_id is None

    def test_create_raises_stock_assigned(self):
        row = _make_row()
        assert isinstance(row._events[0], StockAssigned)

    def test_stored_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            _make_row(stock_quantity=0)

    def test_low_stock_detected_at_threshold(self):
        row = _make_row(stock_quantity=10, minimum_threshold=10)
        assert row.is_low_stock is True
        assert any(isinstance(e, LowStockDetected) for e in row._events)

    def test_no_low_stock_above_threshold(self):
        row = _make_row(stock_quantity=11, minimum_threshold=10)
        assert row.is_low_stock is False
        assert not any(isinstance(e, LowStockDetected) for e in row._events)

    def test_stock_value(self):
        assert _make_row(stock_quantity=4, cost_per_unit=2.5).stock_value == 10.0


class TestStockAssignmentUpdate:
    def test_update_records_previous_quantity(self):
        row = _make_row()
        row.update(stock_quantity=30)
        event = row._events[-1]
        assert isinstance(event, StockAssignmentUpdated)
        assert event.previous_quantity == 50
        assert event.stock_quantity == 30

    def test_update_keeps_threshold_when_omitted(self):
        row = _make_row(minimum_threshold=5)
        row.update(stock_quantity=30)
        assert row.minimum_threshold == 5

    def test_update_to_zero_rejected(self):
        row = _make_row()
        with pytest.raises(ValidationError):
            row.update(stock_quantity=0)


class TestVariantMatching:
    def test_base_row_matches_no_variant(self):
        row = _make_row()
        assert row.matches_variant(None) is True
        assert row.matches_variant("RED") is False

    def test_variant_row_matches_only_its_variant(self):
        row = _make_row(variant_id="RED")
        assert row.matches_variant("RED") is True
        assert row.matches_variant(None) is False
