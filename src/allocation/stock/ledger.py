"""Stock ledger — upserts and reads over StockAssignment rows.

The ledger is a declarative snapshot of what each warehouse holds; it does
not reserve stock. Concurrent writers to the same key are last-write-wins.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from allocation.catalog import get_catalog
from allocation.stock.assignment import (
    BASE_VARIANT,
    DEFAULT_MINIMUM_THRESHOLD,
    StockAssignment,
    build_assignment_key,
)
from allocation.warehouse.warehouse import Warehouse

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StockSummary:
    """Dashboard totals for one warehouse."""

    warehouse_id: str
    total_items: int
    total_units: int
    inventory_value: float
    low_stock_count: int


@dataclass(frozen=True)
class ProductStockSummary:
    """Stock for one product across every warehouse that holds it."""

    product_id: str
    total_units: int
    warehouse_count: int
    inventory_value: float
    low_stock_count: int
    by_warehouse: dict[str, int]
    by_variant: dict[str, int]


def _check_quantity(quantity):
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError({"stock_quantity": [f"Stock quantity must be an integer, got {quantity!r}"]})


class StockLedger:
    def __init__(self, catalog=None):
        self._catalog = catalog

    @property
    def catalog(self):
        return self._catalog or get_catalog()

    @property
    def rows(self):
        return current_domain.repository_for(StockAssignment)

    def _find(self, key) -> StockAssignment | None:
        try:
            return self.rows.get(key)
        except ObjectNotFoundError:
            return None

    def set_stock(
        self,
        warehouse_id,
        product_id,
        variant_id=None,
        quantity=0,
        minimum_threshold=None,
        cost_per_unit=None,
    ) -> StockAssignment | None:
        """Upsert the row for (warehouse, product, variant).

        A quantity of zero or less deletes the row and returns None.
        Threshold and unit cost left as None keep their stored values (or
        the defaults for a new row).
        """
        _check_quantity(quantity)
        if minimum_threshold is not None and minimum_threshold < 0:
            raise ValidationError({"minimum_threshold": ["Minimum threshold cannot be negative"]})
        if cost_per_unit is not None and cost_per_unit < 0:
            raise ValidationError({"cost_per_unit": ["Cost per unit cannot be negative"]})

        # Raises ObjectNotFoundError for unknown warehouses
        current_domain.repository_for(Warehouse).get(warehouse_id)
        if not self.catalog.product_exists(product_id, variant_id):
            raise ObjectNotFoundError(
                {"product_id": [f"Product {product_id} (variant {variant_id or '-'}) not found in catalog"]}
            )

        key = build_assignment_key(warehouse_id, product_id, variant_id)
        existing = self._find(key)

        if quantity <= 0:
            if existing is not None:
                self.rows.remove(existing)
                logger.info("Removed stock assignment", assignment_key=key)
            return None

        if existing is None:
            row = StockAssignment.create(
                warehouse_id=warehouse_id,
                product_id=product_id,
                variant_id=variant_id,
                stock_quantity=quantity,
                minimum_threshold=DEFAULT_MINIMUM_THRESHOLD if minimum_threshold is None else minimum_threshold,
                cost_per_unit=cost_per_unit or 0.0,
            )
        else:
            row = existing
            row.update(
                stock_quantity=quantity,
                minimum_threshold=minimum_threshold,
                cost_per_unit=cost_per_unit,
            )
        self.rows.add(row)
        logger.info("Saved stock assignment", assignment_key=key, stock_quantity=quantity)
        return row

    def get_stock(self, warehouse_id, product_id, variant_id=None) -> int:
        row = self._find(build_assignment_key(warehouse_id, product_id, variant_id))
        return row.stock_quantity if row is not None else 0

    def aggregate_stock(self, warehouse_ids, product_id, variant_id=None) -> dict[str, int]:
        """Positive quantities for ``product_id`` at each of ``warehouse_ids``, read in one pass."""
        wanted = {str(w) for w in warehouse_ids}
        if not wanted:
            return {}
        return {
            row.warehouse_id: row.stock_quantity
            for row in self.rows.find_for_product(product_id)
            if row.warehouse_id in wanted and row.matches_variant(variant_id) and row.stock_quantity > 0
        }

    def assignments_for_warehouse(self, warehouse_id) -> list[StockAssignment]:
        return sorted(
            self.rows.find_for_warehouse(warehouse_id),
            key=lambda r: (r.product_id, r.variant_id or ""),
        )

    def remove_warehouse(self, warehouse_id) -> int:
        """Drop every row held by ``warehouse_id``; returns how many were removed."""
        rows = self.rows.find_for_warehouse(warehouse_id)
        for row in rows:
            self.rows.remove(row)
        return len(rows)

    def warehouse_summary(self, warehouse_id) -> StockSummary:
        rows = self.rows.find_for_warehouse(warehouse_id)
        return StockSummary(
            warehouse_id=str(warehouse_id),
            total_items=len(rows),
            total_units=sum(r.stock_quantity for r in rows),
            inventory_value=round(sum(r.stock_value for r in rows), 2),
            low_stock_count=sum(1 for r in rows if r.is_low_stock),
        )

    def product_summary(self, product_id) -> ProductStockSummary:
        if not self.catalog.product_exists(product_id):
            raise ObjectNotFoundError({"product_id": [f"Product {product_id} not found in catalog"]})

        rows = self.rows.find_for_product(product_id)
        by_warehouse: dict[str, int] = {}
        by_variant: dict[str, int] = {}
        for row in rows:
            by_warehouse[row.warehouse_id] = by_warehouse.get(row.warehouse_id, 0) + row.stock_quantity
            variant = row.variant_id or BASE_VARIANT
            by_variant[variant] = by_variant.get(variant, 0) + row.stock_quantity

        return ProductStockSummary(
            product_id=str(product_id),
            total_units=sum(by_warehouse.values()),
            warehouse_count=len(by_warehouse),
            inventory_value=round(sum(r.stock_value for r in rows), 2),
            low_stock_count=sum(1 for r in rows if r.is_low_stock),
            by_warehouse=by_warehouse,
            by_variant=by_variant,
        )
