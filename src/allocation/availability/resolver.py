"""Availability resolution for a (pincode, product, variant) request.

Zonal warehouses serving any destination zone take precedence; their
division warehouses that serve the exact pincode are the fallback. The
result lists every warehouse with positive stock in the winning tier and
never merges quantities into a single authoritative figure.
"""

from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property

import structlog
from protean.exceptions import ValidationError

from allocation.catalog import get_catalog
from allocation.geography.pincode import normalize_pincode
from allocation.geography.store import GeographyStore
from allocation.stock.ledger import StockLedger
from allocation.warehouse.hierarchy import WarehouseHierarchy

logger = structlog.get_logger(__name__)


class Classification(Enum):
    ZONE_AVAILABLE = "zone_available"
    DIVISION_ONLY = "division_only"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class Resolution:
    classification: Classification
    pool: dict[str, int] = field(default_factory=dict)
    reason: str | None = None

    @property
    def is_available(self) -> bool:
        return self.classification is not Classification.UNAVAILABLE

    @property
    def total(self) -> int:
        """Sum over the pool. Callers that need another policy read ``pool``."""
        return sum(self.pool.values())

    def to_dict(self) -> dict:
        return {
            "classification": self.classification.value,
            "pool": dict(self.pool),
            "reason": self.reason,
        }


def _unavailable(reason):
    return Resolution(Classification.UNAVAILABLE, {}, reason)


class _Destination:
    """Geography and warehouse reads for one pincode, shared by every product checked there."""

    def __init__(self, resolver, pincode):
        self._resolver = resolver
        self.code = None
        self.zone_ids = set()
        self.reason = None

        try:
            self.code = normalize_pincode(pincode)
        except ValidationError:
            self.reason = "invalid_pincode"
            return
        record = resolver.geography.find_pincode(self.code)
        if record is None:
            self.reason = "unknown_pincode"
        elif not record.is_active:
            self.reason = "inactive_pincode"
        else:
            self.zone_ids = resolver.geography.zones_for(self.code)

    @cached_property
    def zonal_ids(self) -> list[str]:
        return [str(w.id) for w in self._resolver.hierarchy.zonal_warehouses_serving(self.zone_ids)]

    @cached_property
    def division_ids(self) -> list[str]:
        return [str(w.id) for w in self._resolver.hierarchy.divisions_serving(self.code, self.zonal_ids)]


class AvailabilityResolver:
    def __init__(self, geography=None, hierarchy=None, ledger=None, catalog=None):
        self.catalog = catalog or get_catalog()
        self.geography = geography or GeographyStore()
        self.ledger = ledger or StockLedger(catalog=self.catalog)
        self.hierarchy = hierarchy or WarehouseHierarchy(geography=self.geography, ledger=self.ledger)

    def resolve(self, pincode, product_id, variant_id=None) -> Resolution:
        result = self._resolve(_Destination(self, pincode), product_id, variant_id)
        logger.debug(
            "Resolved availability",
            pincode=pincode,
            product_id=product_id,
            variant_id=variant_id,
            classification=result.classification.value,
            pool=result.pool,
        )
        return result

    def resolve_many(self, pincode, product_ids) -> dict[str, Resolution]:
        """Resolve several products at one pincode.

        The pincode, its zones and the serving warehouses are read once;
        only the stock reads are per product.
        """
        destination = _Destination(self, pincode)
        results = {str(product_id): self._resolve(destination, product_id, None) for product_id in product_ids}
        logger.debug(
            "Resolved availability batch",
            pincode=pincode,
            product_count=len(results),
            available=sum(1 for r in results.values() if r.is_available),
        )
        return results

    def _resolve(self, destination: _Destination, product_id, variant_id) -> Resolution:
        policy = self.catalog.delivery_policy(product_id)
        if policy is None or not self.catalog.product_exists(product_id, variant_id):
            return _unavailable("unknown_product")
        if destination.reason is not None:
            return _unavailable(destination.reason)
        if not policy.admits(destination.zone_ids):
            return _unavailable("zone_not_allowed")

        pool = self.ledger.aggregate_stock(destination.zonal_ids, product_id, variant_id)
        if pool:
            return Resolution(Classification.ZONE_AVAILABLE, pool)

        pool = self.ledger.aggregate_stock(destination.division_ids, product_id, variant_id)
        if pool:
            return Resolution(Classification.DIVISION_ONLY, pool)

        return _unavailable("out_of_stock")
