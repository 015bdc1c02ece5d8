"""Stock ledger writes — command and handler."""

from protean import handle
from protean.fields import Float, Identifier, Integer

from allocation.domain import allocation
from allocation.stock.assignment import StockAssignment
from allocation.stock.ledger import StockLedger


@allocation.command(part_of="StockAssignment")
class SetStock:
    """Declare how much of a product a warehouse holds. Zero or less clears it."""

    warehouse_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    stock_quantity = Integer(default=0)
    minimum_threshold = Integer()
    cost_per_unit = Float()


@allocation.command_handler(part_of=StockAssignment)
class StockLedgerHandler:
    @handle(SetStock)
    def set_stock(self, command):
        row = StockLedger().set_stock(
            warehouse_id=command.warehouse_id,
            product_id=command.product_id,
            variant_id=command.variant_id,
            quantity=command.stock_quantity,
            minimum_threshold=command.minimum_threshold,
            cost_per_unit=command.cost_per_unit,
        )
        return row.assignment_key if row is not None else None
