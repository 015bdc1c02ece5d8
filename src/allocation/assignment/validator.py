"""Per-step rules for the stock assignment workflow.

Checks run against an immutable ``AssignmentDraft`` and never raise: each
returns a message for the failing step, or None when the step passes.
"""

from dataclasses import dataclass, field, replace
from enum import Enum

from allocation.catalog.port import DeliveryType
from allocation.warehouse.warehouse import WarehouseType


class WizardStep(Enum):
    BASIC = "basic"
    ZONAL = "zonal"
    DIVISION = "division"
    FINAL = "final"


STEP_ORDER = (WizardStep.BASIC, WizardStep.ZONAL, WizardStep.DIVISION, WizardStep.FINAL)


@dataclass(frozen=True)
class DraftAssignment:
    warehouse_id: str
    warehouse_type: str
    stock_quantity: int


@dataclass(frozen=True)
class AssignmentDraft:
    """Product choice plus pending stock per warehouse, not yet written."""

    product_id: str | None = None
    variant_id: str | None = None
    delivery_type: str | None = None
    assignments: tuple[DraftAssignment, ...] = field(default_factory=tuple)

    def with_product(self, product_id, delivery_type, variant_id=None) -> "AssignmentDraft":
        """Select a product. A different delivery type discards pending assignments."""
        assignments = self.assignments if delivery_type == self.delivery_type else ()
        return replace(
            self,
            product_id=product_id,
            variant_id=variant_id,
            delivery_type=delivery_type,
            assignments=assignments,
        )

    def with_assignment(self, warehouse_id, warehouse_type, stock_quantity) -> "AssignmentDraft":
        """Set the pending quantity for one warehouse; zero or less drops it."""
        warehouse_id = str(warehouse_id)
        kept = tuple(a for a in self.assignments if a.warehouse_id != warehouse_id)
        if stock_quantity > 0:
            kept += (DraftAssignment(warehouse_id, warehouse_type, stock_quantity),)
        return replace(self, assignments=kept)

    def without_type(self, warehouse_type) -> "AssignmentDraft":
        return replace(
            self,
            assignments=tuple(a for a in self.assignments if a.warehouse_type != warehouse_type),
        )

    def quantity_for(self, warehouse_id) -> int:
        return next((a.stock_quantity for a in self.assignments if a.warehouse_id == str(warehouse_id)), 0)

    @property
    def zonal_count(self) -> int:
        return sum(
            1 for a in self.assignments if a.warehouse_type == WarehouseType.ZONAL.value and a.stock_quantity > 0
        )

    @property
    def total_count(self) -> int:
        return sum(1 for a in self.assignments if a.stock_quantity > 0)


def validate_basic(draft: AssignmentDraft) -> str | None:
    if not draft.product_id:
        return "Select a product"
    if not draft.delivery_type:
        return "Select a delivery type"
    return None


def validate_zonal(draft: AssignmentDraft) -> str | None:
    if draft.delivery_type == DeliveryType.NATIONWIDE.value and draft.zonal_count == 0:
        return "Nationwide products should have at least one zonal assignment"
    return None


def validate_division(draft: AssignmentDraft) -> str | None:
    if draft.total_count == 0:
        return "Assign stock to at least one zonal or division warehouse"
    return None


def validate_final(draft: AssignmentDraft) -> str | None:
    if draft.total_count == 0:
        return "Assign stock to at least one warehouse before saving"
    return None


_RULES = {
    WizardStep.BASIC: validate_basic,
    WizardStep.ZONAL: validate_zonal,
    WizardStep.DIVISION: validate_division,
    WizardStep.FINAL: validate_final,
}


def validate_step(step: WizardStep, draft: AssignmentDraft) -> dict[str, str]:
    """``{step_id: message}`` when ``step`` fails, else an empty dict."""
    message = _RULES[step](draft)
    return {step.value: message} if message else {}


def validate_all(draft: AssignmentDraft) -> dict[str, str]:
    errors = {}
    for step in STEP_ORDER:
        errors.update(validate_step(step, draft))
    return errors
