"""Warehouse hierarchy — cross-aggregate rules for zonal and division warehouses.

Coverage and disjointness checks read the current hierarchy immediately
before writing. Division creation is serialized per parent warehouse with
an in-process re-entrant lock; callers that commit through a unit of work
should hold ``parent_lock`` around the whole command so the commit is
covered too.
"""

import threading
from contextlib import contextmanager

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from allocation.exceptions import ConflictError, HasDependents
from allocation.geography.pincode import normalize_pincode, normalize_pincodes
from allocation.geography.store import GeographyStore
from allocation.stock.ledger import StockLedger
from allocation.warehouse.warehouse import Warehouse

logger = structlog.get_logger(__name__)

_parent_locks: dict[str, threading.RLock] = {}
_registry_lock = threading.Lock()


def lock_for(parent_warehouse_id) -> threading.RLock:
    """The lock guarding division claims under one zonal parent."""
    with _registry_lock:
        return _parent_locks.setdefault(str(parent_warehouse_id), threading.RLock())


@contextmanager
def parent_lock(parent_warehouse_id):
    with lock_for(parent_warehouse_id):
        yield


def release_lock(parent_warehouse_id) -> None:
    with _registry_lock:
        _parent_locks.pop(str(parent_warehouse_id), None)


class WarehouseHierarchy:
    def __init__(self, geography: GeographyStore | None = None, ledger: StockLedger | None = None):
        self.geography = geography or GeographyStore()
        self.ledger = ledger or StockLedger()

    @property
    def warehouses(self):
        return current_domain.repository_for(Warehouse)

    def get_warehouse(self, warehouse_id) -> Warehouse:
        return self.warehouses.get(warehouse_id)

    def get_zonal_parent(self, parent_id) -> Warehouse:
        """The zonal warehouse a new division would hang off; ValidationError otherwise."""
        if not parent_id:
            raise ValidationError({"parent_warehouse_id": ["Division warehouses must have a parent zonal warehouse"]})
        return self._get_zonal(parent_id, field_name="parent_warehouse_id")

    def _get_zonal(self, warehouse_id, field_name="warehouse_id") -> Warehouse:
        try:
            warehouse = self.get_warehouse(warehouse_id)
        except ObjectNotFoundError:
            raise ValidationError({field_name: [f"Warehouse {warehouse_id} not found"]})
        if not warehouse.is_zonal:
            raise ValidationError({field_name: [f"Warehouse {warehouse_id} is not a zonal warehouse"]})
        return warehouse

    # -------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------
    def create_zonal_warehouse(self, name, zone_ids, address=None, pincode=None) -> Warehouse:
        zone_ids = [str(z) for z in (zone_ids or [])]
        if not zone_ids:
            raise ValidationError({"zone_ids": ["A zonal warehouse must serve at least one zone"]})

        problems = []
        for zone_id in zone_ids:
            try:
                zone = self.geography.get_zone(zone_id)
            except ObjectNotFoundError:
                problems.append(f"Zone {zone_id} does not exist")
                continue
            if not zone.is_active:
                problems.append(f"Zone {zone.name} is inactive")
        if problems:
            raise ValidationError({"zone_ids": problems})

        warehouse = Warehouse.create_zonal(name=name, zone_ids=zone_ids, address=address, pincode=pincode)
        self.warehouses.add(warehouse)
        logger.info("Created zonal warehouse", warehouse_id=str(warehouse.id), zone_ids=zone_ids)
        return warehouse

    def create_division_warehouse(self, name, parent_id, pincodes, address=None, pincode=None) -> Warehouse:
        parent = self.get_zonal_parent(parent_id)

        with parent_lock(parent.id):
            # Re-read under the lock; the parent may have been deleted meanwhile
            parent = self.get_zonal_parent(parent.id)
            if not parent.is_active:
                raise ValidationError({"parent_warehouse_id": [f"Warehouse {parent.name} is inactive"]})

            codes = normalize_pincodes(pincodes)
            if not codes:
                raise ValidationError({"pincodes": ["A division warehouse must serve at least one pincode"]})

            coverage = self.coverage_of(parent)
            outside = [code for code in codes if code not in coverage]
            if outside:
                raise ValidationError(
                    {"pincodes": [f"Pincode {code} is outside the zones served by {parent.name}" for code in outside]}
                )

            conflicts = []
            for code in codes:
                for sibling in self.siblings_covering(code, parent_id=parent.id):
                    conflicts.append(f"Pincode {code} is already served by division {sibling.name} ({sibling.id})")
            if conflicts:
                logger.warning(
                    "Rejected division warehouse with claimed pincodes",
                    parent_warehouse_id=str(parent.id),
                    conflicts=conflicts,
                )
                raise ConflictError({"pincodes": conflicts})

            warehouse = Warehouse.create_division(
                name=name,
                parent_warehouse_id=parent.id,
                pincodes=codes,
                address=address,
                pincode=pincode,
            )
            self.warehouses.add(warehouse)

        logger.info(
            "Created division warehouse",
            warehouse_id=str(warehouse.id),
            parent_warehouse_id=str(parent.id),
            pincode_count=len(codes),
        )
        return warehouse

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def coverage_of(self, zonal) -> set[str]:
        """Union of pincodes covered by the zones a zonal warehouse serves."""
        if not isinstance(zonal, Warehouse):
            zonal = self._get_zonal(zonal)
        pincodes = set()
        for zone_id in zonal.zone_ids:
            try:
                pincodes |= self.geography.pincodes_of(zone_id)
            except ObjectNotFoundError:
                continue
        return pincodes

    def divisions_of(self, zonal_id) -> list[Warehouse]:
        return sorted(self.warehouses.find_divisions(zonal_id), key=lambda w: w.name)

    def siblings_covering(self, pincode, excluding=None, parent_id=None) -> list[Warehouse]:
        """Division warehouses serving ``pincode``.

        Restricted to the children of ``parent_id``, or to the siblings of
        ``excluding`` when only that is given. ``excluding`` itself is never
        returned.
        """
        code = normalize_pincode(pincode)
        if parent_id is None and excluding is not None:
            parent_id = self.get_warehouse(excluding).parent_warehouse_id
        if parent_id is not None:
            candidates = self.warehouses.find_divisions(parent_id)
        else:
            candidates = [w for w in self.warehouses.list_all() if w.is_division]
        return [w for w in candidates if str(w.id) != str(excluding) and w.serves_pincode(code)]

    def available_pincodes_for(self, zonal_id) -> list[dict]:
        """Every pincode a zonal warehouse covers, flagged free or taken.

        Taken pincodes are kept in the list (with the claiming division) so
        callers can show them as unavailable rather than hiding them.
        """
        zonal = self._get_zonal(zonal_id)
        claimed = {}
        for division in self.warehouses.find_divisions(zonal.id):
            for code in division.pincodes:
                claimed[code] = str(division.id)
        return [
            {"pincode": code, "is_available": code not in claimed, "claimed_by": claimed.get(code)}
            for code in sorted(self.coverage_of(zonal))
        ]

    def zonal_warehouses_serving(self, zone_ids) -> list[Warehouse]:
        wanted = {str(z) for z in zone_ids}
        return [w for w in self.warehouses.find_zonal() if w.is_active and w.zone_ids & wanted]

    def divisions_serving(self, pincode, parent_ids) -> list[Warehouse]:
        """Active divisions under any of ``parent_ids`` that serve ``pincode``."""
        code = normalize_pincode(pincode)
        found = []
        for parent_id in parent_ids:
            found.extend(w for w in self.warehouses.find_divisions(parent_id) if w.is_active and w.serves_pincode(code))
        return found

    def hierarchy(self) -> list[dict]:
        """Zonal warehouses, each with its divisions."""
        return [
            {"warehouse": zonal, "divisions": self.divisions_of(zonal.id)}
            for zonal in sorted(self.warehouses.find_zonal(), key=lambda w: w.name)
        ]

    # -------------------------------------------------------------------
    # Updates and deletion
    # -------------------------------------------------------------------
    def update_warehouse_details(self, warehouse_id, name=None, address=None, pincode=None) -> Warehouse:
        warehouse = self.get_warehouse(warehouse_id)
        warehouse.update_details(name=name, address=address, pincode=pincode)
        self.warehouses.add(warehouse)
        return warehouse

    def set_warehouse_status(self, warehouse_id, is_active) -> Warehouse:
        """Take a warehouse out of availability resolution, or bring it back.

        A zonal warehouse with active divisions cannot be deactivated, and a
        division cannot be activated under an inactive parent.
        """
        warehouse = self.get_warehouse(warehouse_id)
        if warehouse.is_zonal and not is_active:
            active = [d for d in self.warehouses.find_divisions(warehouse.id) if d.is_active]
            if active:
                raise HasDependents(
                    {
                        "warehouse_id": [
                            f"Warehouse {warehouse.name} still has active division warehouse(s): "
                            + ", ".join(sorted(d.name for d in active))
                        ]
                    }
                )
        if warehouse.is_division and is_active:
            parent = self.get_warehouse(warehouse.parent_warehouse_id)
            if not parent.is_active:
                raise ValidationError(
                    {"warehouse_id": [f"Parent warehouse {parent.name} is inactive; activate it first"]}
                )

        warehouse.set_active(is_active)
        self.warehouses.add(warehouse)
        logger.info("Changed warehouse status", warehouse_id=str(warehouse.id), is_active=warehouse.is_active)
        return warehouse

    def delete_warehouse(self, warehouse_id) -> None:
        """Delete a warehouse and its stock rows.

        Zonal warehouses with divisions are never cascaded: HasDependents.
        """
        warehouse = self.get_warehouse(warehouse_id)
        if warehouse.is_zonal:
            divisions = self.warehouses.find_divisions(warehouse.id)
            if divisions:
                raise HasDependents(
                    {
                        "warehouse_id": [
                            f"Warehouse {warehouse.name} still has {len(divisions)} division warehouse(s): "
                            + ", ".join(sorted(d.name for d in divisions))
                        ]
                    }
                )

        removed_rows = self.ledger.remove_warehouse(warehouse.id)
        self.warehouses._dao.delete(warehouse)
        if warehouse.is_zonal:
            release_lock(warehouse.id)
        logger.info("Deleted warehouse", warehouse_id=str(warehouse_id), removed_stock_rows=removed_rows)
