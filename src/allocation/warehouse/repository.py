"""Repository for the Warehouse aggregate."""

from allocation.domain import allocation
from allocation.utils.queries import fetch_all
from allocation.warehouse.warehouse import Warehouse, WarehouseType


@allocation.repository(part_of=Warehouse)
class WarehouseRepository:
    def list_all(self) -> list[Warehouse]:
        return fetch_all(self._dao)

    def find_zonal(self) -> list[Warehouse]:
        return fetch_all(self._dao, warehouse_type=WarehouseType.ZONAL.value)

    def find_divisions(self, parent_warehouse_id) -> list[Warehouse]:
        return fetch_all(
            self._dao,
            warehouse_type=WarehouseType.DIVISION.value,
            parent_warehouse_id=str(parent_warehouse_id),
        )
