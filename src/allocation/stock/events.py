"""Domain events for the StockAssignment aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer

from allocation.domain import allocation


@allocation.event(part_of="StockAssignment")
class StockAssigned:
    """Stock for a product (or variant) was assigned to a warehouse for the first time."""

    __version__ = 1

    assignment_key = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    stock_quantity = Integer(required=True)
    minimum_threshold = Integer()
    cost_per_unit = Float()
    assigned_at = DateTime(required=True)


@allocation.event(part_of="StockAssignment")
class StockAssignmentUpdated:
    __version__ = 1

    assignment_key = Identifier(required=True)
    previous_quantity = Integer()
    stock_quantity = Integer(required=True)
    minimum_threshold = Integer()
    cost_per_unit = Float()
    updated_at = DateTime(required=True)


@allocation.event(part_of="StockAssignment")
class LowStockDetected:
    """Assigned quantity is at or below the row's minimum threshold."""

    __version__ = 1

    assignment_key = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    stock_quantity = Integer(required=True)
    minimum_threshold = Integer()
    detected_at = DateTime(required=True)
