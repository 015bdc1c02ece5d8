"""Catalog port — what the allocation engine needs from the product catalog.

The catalog owns products, variants and each product's delivery policy.
Allocation only reads: whether a product/variant exists, and how the
product may be delivered. Adapters are swapped via ``CATALOG_ADAPTER``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from protean.exceptions import ValidationError


class DeliveryType(Enum):
    NATIONWIDE = "nationwide"
    ZONAL = "zonal"


@dataclass(frozen=True)
class DeliveryPolicy:
    """How a product may be delivered.

    ``allowed_zone_ids`` only applies to zonal products; an empty set means
    the product is not restricted to particular zones.
    """

    delivery_type: str
    allowed_zone_ids: frozenset[str] = field(default_factory=frozenset)
    delivery_notes: str | None = None

    @classmethod
    def from_dict(cls, payload: dict) -> "DeliveryPolicy":
        """Parse a loosely typed catalog payload into a policy."""
        delivery_type = (payload.get("delivery_type") or "").strip().lower()
        if delivery_type not in {t.value for t in DeliveryType}:
            raise ValidationError({"delivery_type": [f"Unknown delivery type {payload.get('delivery_type')!r}"]})

        allowed = payload.get("allowed_zone_ids") or []
        if delivery_type == DeliveryType.NATIONWIDE.value:
            allowed = []
        return cls(
            delivery_type=delivery_type,
            allowed_zone_ids=frozenset(str(z) for z in allowed),
            delivery_notes=payload.get("delivery_notes"),
        )

    @property
    def is_nationwide(self) -> bool:
        return self.delivery_type == DeliveryType.NATIONWIDE.value

    def admits(self, zone_ids) -> bool:
        """True unless a zonal allow-list excludes every zone in ``zone_ids``."""
        if self.is_nationwide or not self.allowed_zone_ids:
            return True
        return bool(self.allowed_zone_ids & {str(z) for z in zone_ids})


class CatalogPort(ABC):
    """Abstract read interface onto the product catalog."""

    @abstractmethod
    def product_exists(self, product_id: str, variant_id: str | None = None) -> bool:
        """True when the product exists and, if given, the variant belongs to it."""
        ...

    @abstractmethod
    def delivery_policy(self, product_id: str) -> DeliveryPolicy | None:
        """The product's delivery policy, or None for an unknown product."""
        ...
