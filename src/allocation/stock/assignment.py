"""StockAssignment aggregate — declared stock of one product at one warehouse.

Identity is the (warehouse, product, variant) triple folded into
``assignment_key``; a null variant is the base product. Stored rows always
carry a positive quantity. Setting a quantity of zero or less removes the
row instead (see ``StockLedger.set_stock``).
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer

from allocation.domain import allocation
from allocation.stock.events import LowStockDetected, StockAssigned, StockAssignmentUpdated

BASE_VARIANT = "base"
DEFAULT_MINIMUM_THRESHOLD = 10


def build_assignment_key(warehouse_id, product_id, variant_id=None):
    return f"{warehouse_id}::{product_id}::{variant_id or BASE_VARIANT}"


@allocation.aggregate
class StockAssignment:
    assignment_key = Identifier(identifier=True, required=True)
    warehouse_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    stock_quantity = Integer(required=True)
    minimum_threshold = Integer(default=DEFAULT_MINIMUM_THRESHOLD, min_value=0)
    cost_per_unit = Float(default=0.0, min_value=0.0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def stock_quantity_must_be_positive(self):
        if self.stock_quantity is not None and self.stock_quantity <= 0:
            raise ValidationError({"stock_quantity": ["Stored stock quantity must be positive"]})

    @property
    def is_low_stock(self):
        return self.stock_quantity <= (self.minimum_threshold or 0)

    @property
    def stock_value(self):
        return self.stock_quantity * (self.cost_per_unit or 0.0)

    def matches_variant(self, variant_id):
        return (self.variant_id or None) == (str(variant_id) if variant_id else None)

    @classmethod
    def create(
        cls,
        warehouse_id,
        product_id,
        variant_id,
        stock_quantity,
        minimum_threshold=DEFAULT_MINIMUM_THRESHOLD,
        cost_per_unit=0.0,
    ):
        now = datetime.now(UTC)
        key = build_assignment_key(warehouse_id, product_id, variant_id)
        row = cls(
            assignment_key=key,
            warehouse_id=str(warehouse_id),
            product_id=str(product_id),
            variant_id=str(variant_id) if variant_id else None,
            stock_quantity=stock_quantity,
            minimum_threshold=minimum_threshold,
            cost_per_unit=cost_per_unit,
            created_at=now,
            updated_at=now,
        )
        row.raise_(
            StockAssigned(
                assignment_key=key,
                warehouse_id=row.warehouse_id,
                product_id=row.product_id,
                variant_id=row.variant_id,
                stock_quantity=stock_quantity,
                minimum_threshold=minimum_threshold,
                cost_per_unit=cost_per_unit,
                assigned_at=now,
            )
        )
        row._check_low_stock()
        return row

    def update(self, stock_quantity, minimum_threshold=None, cost_per_unit=None):
        previous = self.stock_quantity
        self.stock_quantity = stock_quantity
        if minimum_threshold is not None:
            self.minimum_threshold = minimum_threshold
        if cost_per_unit is not None:
            self.cost_per_unit = cost_per_unit
        self.updated_at = datetime.now(UTC)
        self.raise_(
            StockAssignmentUpdated(
                assignment_key=self.assignment_key,
                previous_quantity=previous,
                stock_quantity=self.stock_quantity,
                minimum_threshold=self.minimum_threshold,
                cost_per_unit=self.cost_per_unit,
                updated_at=self.updated_at,
            )
        )
        self._check_low_stock()

    def _check_low_stock(self):
        if self.is_low_stock:
            self.raise_(
                LowStockDetected(
                    assignment_key=self.assignment_key,
                    warehouse_id=self.warehouse_id,
                    product_id=self.product_id,
                    variant_id=self.variant_id,
                    stock_quantity=self.stock_quantity,
                    minimum_threshold=self.minimum_threshold,
                    detected_at=datetime.now(UTC),
                )
            )
