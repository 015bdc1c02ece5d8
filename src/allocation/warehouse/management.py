"""Warehouse management — commands and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, String, Text

from allocation.domain import allocation
from allocation.warehouse.hierarchy import WarehouseHierarchy
from allocation.warehouse.warehouse import Warehouse


@allocation.command(part_of="Warehouse")
class CreateZonalWarehouse:
    """Create a warehouse that serves whole zones."""

    name = String(required=True, max_length=255)
    zone_ids = Text(required=True)  # JSON list of zone ids
    address = Text()
    pincode = String(max_length=10)


@allocation.command(part_of="Warehouse")
class CreateDivisionWarehouse:
    """Create a warehouse under a zonal parent serving explicit pincodes."""

    name = String(required=True, max_length=255)
    parent_warehouse_id = Identifier(required=True)
    pincodes = Text(required=True)  # JSON list of pincodes
    address = Text()
    pincode = String(max_length=10)


@allocation.command(part_of="Warehouse")
class UpdateWarehouseDetails:
    warehouse_id = Identifier(required=True)
    name = String(max_length=255)
    address = Text()
    pincode = String(max_length=10)


@allocation.command(part_of="Warehouse")
class SetWarehouseStatus:
    warehouse_id = Identifier(required=True)
    is_active = Boolean(default=True)


@allocation.command(part_of="Warehouse")
class DeleteWarehouse:
    warehouse_id = Identifier(required=True)


def _json_list(raw, field_name):
    if not isinstance(raw, str):
        return list(raw or [])
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError({field_name: [f"{field_name} must be a JSON list"]})
    if not isinstance(value, list):
        raise ValidationError({field_name: [f"{field_name} must be a JSON list"]})
    return value


@allocation.command_handler(part_of=Warehouse)
class WarehouseManagementHandler:
    @handle(CreateZonalWarehouse)
    def create_zonal_warehouse(self, command):
        warehouse = WarehouseHierarchy().create_zonal_warehouse(
            name=command.name,
            zone_ids=_json_list(command.zone_ids, "zone_ids"),
            address=command.address,
            pincode=command.pincode,
        )
        return str(warehouse.id)

    @handle(CreateDivisionWarehouse)
    def create_division_warehouse(self, command):
        warehouse = WarehouseHierarchy().create_division_warehouse(
            name=command.name,
            parent_id=command.parent_warehouse_id,
            pincodes=_json_list(command.pincodes, "pincodes"),
            address=command.address,
            pincode=command.pincode,
        )
        return str(warehouse.id)

    @handle(UpdateWarehouseDetails)
    def update_warehouse_details(self, command):
        WarehouseHierarchy().update_warehouse_details(
            command.warehouse_id,
            name=command.name,
            address=command.address,
            pincode=command.pincode,
        )

    @handle(SetWarehouseStatus)
    def set_warehouse_status(self, command):
        WarehouseHierarchy().set_warehouse_status(command.warehouse_id, command.is_active)

    @handle(DeleteWarehouse)
    def delete_warehouse(self, command):
        WarehouseHierarchy().delete_warehouse(command.warehouse_id)
