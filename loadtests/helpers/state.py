"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state — no cross-user sharing.
State tracks entity IDs returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class AllocationState:
    """Tracks one zonal warehouse, its divisions and the product stocked there."""

    zone_id: str | None = None
    pincodes: list[str] = field(default_factory=list)
    zonal_warehouse_id: str | None = None
    division_ids: list[str] = field(default_factory=list)
    claimed_pincodes: list[str] = field(default_factory=list)
    product_id: str | None = None
    variant_ids: list[str] = field(default_factory=list)

    @property
    def free_pincodes(self) -> list[str]:
        return [p for p in self.pincodes if p not in self.claimed_pincodes]
