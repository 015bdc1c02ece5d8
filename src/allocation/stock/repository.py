"""Repository for the StockAssignment aggregate."""

from allocation.domain import allocation
from allocation.stock.assignment import StockAssignment
from allocation.utils.queries import fetch_all


@allocation.repository(part_of=StockAssignment)
class StockAssignmentRepository:
    def find_for_product(self, product_id) -> list[StockAssignment]:
        return fetch_all(self._dao, product_id=str(product_id))

    def find_for_warehouse(self, warehouse_id) -> list[StockAssignment]:
        return fetch_all(self._dao, warehouse_id=str(warehouse_id))

    def remove(self, row: StockAssignment) -> None:
        self._dao.delete(row)
