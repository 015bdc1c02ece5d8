"""Stock assignment workflow as an explicit state machine.

States are the wizard steps. ``next()`` advances only when the current
step's rule passes; ``back()`` always moves and keeps the draft intact;
``submit()`` re-checks every step and writes the draft to the ledger.
"""

import structlog
from protean.exceptions import ValidationError

from allocation.assignment.validator import (
    STEP_ORDER,
    AssignmentDraft,
    WizardStep,
    validate_all,
    validate_step,
)
from allocation.catalog import get_catalog
from allocation.stock.ledger import StockLedger
from allocation.warehouse.hierarchy import WarehouseHierarchy

logger = structlog.get_logger(__name__)


class AssignmentWizard:
    def __init__(self, catalog=None, hierarchy=None, ledger=None):
        self.catalog = catalog or get_catalog()
        self.ledger = ledger or StockLedger(catalog=self.catalog)
        self.hierarchy = hierarchy or WarehouseHierarchy(ledger=self.ledger)
        self.draft = AssignmentDraft()
        self.step = WizardStep.BASIC
        self.errors: dict[str, str] = {}
        self.submitted = False

    @property
    def step_index(self) -> int:
        return STEP_ORDER.index(self.step)

    @property
    def is_last_step(self) -> bool:
        return self.step is STEP_ORDER[-1]

    # Draft edits

    def select_product(self, product_id, variant_id=None) -> AssignmentDraft:
        policy = self.catalog.delivery_policy(product_id)
        if policy is None or not self.catalog.product_exists(product_id, variant_id):
            self.errors[WizardStep.BASIC.value] = f"Product {product_id} not found"
            return self.draft
        self.errors.pop(WizardStep.BASIC.value, None)
        self.draft = self.draft.with_product(product_id, policy.delivery_type, variant_id=variant_id)
        return self.draft

    def assign(self, warehouse_id, stock_quantity) -> AssignmentDraft:
        warehouse = self.hierarchy.get_warehouse(warehouse_id)
        self.draft = self.draft.with_assignment(warehouse.id, warehouse.warehouse_type, int(stock_quantity))
        return self.draft

    def clear_type(self, warehouse_type) -> AssignmentDraft:
        self.draft = self.draft.without_type(warehouse_type)
        return self.draft

    # Transitions

    def next(self) -> bool:
        errors = validate_step(self.step, self.draft)
        if errors:
            self.errors.update(errors)
            return False
        self.errors.pop(self.step.value, None)
        if not self.is_last_step:
            self.step = STEP_ORDER[self.step_index + 1]
        return True

    def back(self) -> WizardStep:
        if self.step_index > 0:
            self.step = STEP_ORDER[self.step_index - 1]
        return self.step

    def submit(self) -> list[str]:
        """Write every draft assignment; returns the assignment keys written.

        On a failing rule, nothing is written and the wizard moves to the
        first failing step with its message recorded.
        """
        if self.submitted:
            raise ValidationError({"wizard": ["Assignments were already submitted"]})

        errors = validate_all(self.draft)
        if errors:
            self.errors = errors
            self.step = next(step for step in STEP_ORDER if step.value in errors)
            logger.info("Assignment submission rejected", step=self.step.value, errors=errors)
            return []

        # Resolve every warehouse before the first write
        for assignment in self.draft.assignments:
            self.hierarchy.get_warehouse(assignment.warehouse_id)

        keys = []
        for assignment in self.draft.assignments:
            row = self.ledger.set_stock(
                warehouse_id=assignment.warehouse_id,
                product_id=self.draft.product_id,
                variant_id=self.draft.variant_id,
                quantity=assignment.stock_quantity,
            )
            keys.append(row.assignment_key)

        self.submitted = True
        self.errors = {}
        logger.info(
            "Submitted stock assignments",
            product_id=self.draft.product_id,
            variant_id=self.draft.variant_id,
            assignment_count=len(keys),
        )
        return keys
