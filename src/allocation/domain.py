"""Allocation bounded context — zone-aware stock allocation and availability.

Owns the delivery geography (zones and pincodes), the two-level warehouse
hierarchy (zonal → division), the per-warehouse stock ledger and the
availability resolver that decides which stock pools can serve a pincode.
"""

from protean.domain import Domain

from allocation.utils.logging import configure_logging

configure_logging()

allocation = Domain(name="allocation")
