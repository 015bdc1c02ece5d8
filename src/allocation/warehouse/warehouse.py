"""Warehouse aggregate — zonal or division stock location.

Zonal warehouses serve whole zones and have no parent. Division
warehouses hang off exactly one zonal parent and serve an explicit set of
pincodes taken from the parent's coverage. Checks that need other
warehouses or zones (coverage, sibling disjointness) live in
``allocation.warehouse.hierarchy``; this aggregate only guards its own shape.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, String, Text

from allocation.domain import allocation
from allocation.geography.pincode import normalize_pincode, normalize_pincodes
from allocation.warehouse.events import (
    DivisionWarehouseCreated,
    WarehouseDetailsUpdated,
    WarehouseStatusChanged,
    ZonalWarehouseCreated,
)


class WarehouseType(Enum):
    ZONAL = "zonal"
    DIVISION = "division"


@allocation.entity(part_of="Warehouse")
class ServedZone:
    """A zone a zonal warehouse serves."""

    zone_id = Identifier(required=True)


@allocation.entity(part_of="Warehouse")
class ServedPincode:
    """A pincode a division warehouse serves."""

    pincode = String(required=True, max_length=6)


@allocation.aggregate
class Warehouse:
    name = String(required=True, max_length=255)
    warehouse_type = String(required=True, choices=WarehouseType)
    address = Text()
    pincode = String(max_length=6)  # operational address, not a coverage claim
    parent_warehouse_id = Identifier()
    served_zones = HasMany(ServedZone)
    served_pincodes = HasMany(ServedPincode)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def division_requires_parent(self):
        if self.warehouse_type == WarehouseType.DIVISION.value and not self.parent_warehouse_id:
            raise ValidationError({"parent_warehouse_id": ["Division warehouses must have a parent zonal warehouse"]})

    @invariant.post
    def zonal_has_no_parent(self):
        if self.warehouse_type == WarehouseType.ZONAL.value and self.parent_warehouse_id:
            raise ValidationError({"parent_warehouse_id": ["Zonal warehouses cannot have a parent"]})

    @property
    def is_zonal(self):
        return self.warehouse_type == WarehouseType.ZONAL.value

    @property
    def is_division(self):
        return self.warehouse_type == WarehouseType.DIVISION.value

    @property
    def zone_ids(self) -> set[str]:
        return {str(sz.zone_id) for sz in (self.served_zones or [])}

    @property
    def pincodes(self) -> set[str]:
        return {sp.pincode for sp in (self.served_pincodes or [])}

    @classmethod
    def create_zonal(cls, name, zone_ids, address=None, pincode=None):
        zone_ids = list(dict.fromkeys(str(z) for z in (zone_ids or [])))
        if not zone_ids:
            raise ValidationError({"zone_ids": ["A zonal warehouse must serve at least one zone"]})

        now = datetime.now(UTC)
        warehouse = cls(
            name=name,
            warehouse_type=WarehouseType.ZONAL.value,
            address=address,
            pincode=normalize_pincode(pincode) if pincode else None,
            created_at=now,
            updated_at=now,
        )
        for zone_id in zone_ids:
            warehouse.add_served_zones(ServedZone(zone_id=zone_id))

        warehouse.raise_(
            ZonalWarehouseCreated(
                warehouse_id=str(warehouse.id),
                name=name,
                zone_ids=json.dumps(zone_ids),
                created_at=now,
            )
        )
        return warehouse

    @classmethod
    def create_division(cls, name, parent_warehouse_id, pincodes, address=None, pincode=None):
        if not parent_warehouse_id:
            raise ValidationError({"parent_warehouse_id": ["Division warehouses must have a parent zonal warehouse"]})
        pincodes = normalize_pincodes(pincodes)
        if not pincodes:
            raise ValidationError({"pincodes": ["A division warehouse must serve at least one pincode"]})

        now = datetime.now(UTC)
        warehouse = cls(
            name=name,
            warehouse_type=WarehouseType.DIVISION.value,
            parent_warehouse_id=str(parent_warehouse_id),
            address=address,
            pincode=normalize_pincode(pincode) if pincode else None,
            created_at=now,
            updated_at=now,
        )
        for code in pincodes:
            warehouse.add_served_pincodes(ServedPincode(pincode=code))

        warehouse.raise_(
            DivisionWarehouseCreated(
                warehouse_id=str(warehouse.id),
                name=name,
                parent_warehouse_id=str(parent_warehouse_id),
                pincodes=json.dumps(pincodes),
                created_at=now,
            )
        )
        return warehouse

    def serves_pincode(self, pincode):
        return pincode in self.pincodes

    def update_details(self, name=None, address=None, pincode=None):
        """Change name and operational address. Coverage is not editable here."""
        if name is not None:
            self.name = name
        if address is not None:
            self.address = address
        if pincode is not None:
            self.pincode = normalize_pincode(pincode)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            WarehouseDetailsUpdated(
                warehouse_id=str(self.id),
                name=self.name,
                address=self.address,
                pincode=self.pincode,
                updated_at=self.updated_at,
            )
        )

    def set_active(self, is_active):
        is_active = bool(is_active)
        if is_active == self.is_active:
            state = "active" if is_active else "inactive"
            raise ValidationError({"warehouse": [f"Warehouse {self.name} is already {state}"]})
        self.is_active = is_active
        self.updated_at = datetime.now(UTC)
        self.raise_(
            WarehouseStatusChanged(
                warehouse_id=str(self.id),
                is_active=is_active,
                changed_at=self.updated_at,
            )
        )
