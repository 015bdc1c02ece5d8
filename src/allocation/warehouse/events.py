"""Domain events for the Warehouse aggregate."""

from protean.fields import Boolean, DateTime, Identifier, String, Text

from allocation.domain import allocation


@allocation.event(part_of="Warehouse")
class ZonalWarehouseCreated:
    """A top-level warehouse now serves one or more whole zones."""

    __version__ = 1

    warehouse_id = Identifier(required=True)
    name = String(required=True)
    zone_ids = Text(required=True)  # JSON list of zone ids
    created_at = DateTime(required=True)


@allocation.event(part_of="Warehouse")
class DivisionWarehouseCreated:
    """A child warehouse claimed a set of pincodes under its zonal parent."""

    __version__ = 1

    warehouse_id = Identifier(required=True)
    name = String(required=True)
    parent_warehouse_id = Identifier(required=True)
    pincodes = Text(required=True)  # JSON list of pincodes
    created_at = DateTime(required=True)


@allocation.event(part_of="Warehouse")
class WarehouseDetailsUpdated:
    __version__ = 1

    warehouse_id = Identifier(required=True)
    name = String(required=True)
    address = Text()
    pincode = String()
    updated_at = DateTime(required=True)


@allocation.event(part_of="Warehouse")
class WarehouseStatusChanged:
    """A warehouse was taken out of, or returned to, availability resolution."""

    __version__ = 1

    warehouse_id = Identifier(required=True)
    is_active = Boolean(default=True)
    changed_at = DateTime(required=True)
