"""
DC Lifecycle Workflow (``challan_kernel.domain.dc_workflow``).

Responsibility
--------------
Declares the state machine of a saved delivery challan.  A DC starts
``pending`` when the goods leave, becomes ``returned`` when the unused
stock comes back, and finishes ``completed`` once an invoice is linked,
either directly or after a stop in the ``cash`` queue.  Two corrective
transitions move a record one step back.

Architecture position
---------------------
**Kernel domain layer** -- declarative definitions consumed by
``DcLifecycleService``.

Invariants enforced
-------------------
* Exactly one transition per ``(action, from_state)`` pair.
* Corrective transitions clear the fields of the step they undo.
"""

from challan_kernel.domain.challan import DcAction, DcStatus
from challan_kernel.domain.workflow import Guard, Transition, Workflow
from challan_kernel.logging_config import get_logger

logger = get_logger("domain.dc_workflow")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

RETURNED_BY_PRESENT = Guard(
    name="returned_by_present",
    description="Name of the person who returned the goods is recorded",
)

INVOICE_REF_PRESENT = Guard(
    name="invoice_ref_present",
    description="Invoice number is recorded",
)

CASH_AMOUNT_POSITIVE = Guard(
    name="cash_amount_positive",
    description="Cash amount is a number greater than zero",
)


# -----------------------------------------------------------------------------
# Transitions
# -----------------------------------------------------------------------------

_CASH_FIELDS = ("cash_at", "cash_amount", "cash_remarks")
_RETURN_FIELDS = ("returned_by", "returned_at", "returned_remarks")
_INVOICE_FIELDS = ("invoice_ref", "invoice_remarks")

DC_TRANSITIONS = (
    Transition(
        from_state=DcStatus.PENDING.value,
        to_state=DcStatus.RETURNED.value,
        action=DcAction.MARK_RETURNED.value,
        guard=RETURNED_BY_PRESENT,
        requires=("returned_by",),
        stamps=("returned_at",),
    ),
    Transition(
        from_state=DcStatus.RETURNED.value,
        to_state=DcStatus.COMPLETED.value,
        action=DcAction.LINK_INVOICE.value,
        guard=INVOICE_REF_PRESENT,
        requires=("invoice_ref",),
    ),
    Transition(
        from_state=DcStatus.CASH.value,
        to_state=DcStatus.COMPLETED.value,
        action=DcAction.MOVE_CASH_TO_COMPLETED.value,
        guard=INVOICE_REF_PRESENT,
        requires=("invoice_ref",),
        clears=_CASH_FIELDS,
    ),
    Transition(
        from_state=DcStatus.RETURNED.value,
        to_state=DcStatus.CASH.value,
        action=DcAction.MOVE_TO_CASH.value,
        guard=CASH_AMOUNT_POSITIVE,
        requires=("cash_amount",),
        stamps=("cash_at",),
    ),
    Transition(
        from_state=DcStatus.RETURNED.value,
        to_state=DcStatus.PENDING.value,
        action=DcAction.MOVE_BACK_TO_PENDING.value,
        clears=_RETURN_FIELDS,
    ),
    Transition(
        from_state=DcStatus.COMPLETED.value,
        to_state=DcStatus.RETURNED.value,
        action=DcAction.MOVE_BACK_TO_RETURNED.value,
        clears=_INVOICE_FIELDS,
    ),
)

DC_WORKFLOW = Workflow(
    name="delivery_challan",
    description="Delivery challan lifecycle from dispatch to invoicing",
    initial_state=DcStatus.PENDING.value,
    states=tuple(s.value for s in DcStatus),
    transitions=DC_TRANSITIONS,
)

# Human-readable messages for guard failures, keyed by guard name.
GUARD_MESSAGES: dict[str, str] = {
    RETURNED_BY_PRESENT.name: "Returned By is required",
    INVOICE_REF_PRESENT.name: "Invoice number is required",
    CASH_AMOUNT_POSITIVE.name: "Valid cash amount is required",
}

logger.debug(
    "dc_workflow_defined",
    extra={
        "workflow": DC_WORKFLOW.name,
        "states": len(DC_WORKFLOW.states),
        "transitions": len(DC_WORKFLOW.transitions),
    },
)
