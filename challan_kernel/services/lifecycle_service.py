"""
DcLifecycleService -- saved DC creation, transitions and deletion.

Responsibility:
    Creates DC records, moves them through ``DC_WORKFLOW`` and deletes
    them.  Every transition follows the same sequence: load the record,
    check the action is allowed from its status, check the transition's
    required fields, apply the pure transition, persist the whole record
    with a single ``update`` call.

Architecture position:
    Kernel > Services -- imperative shell around the pure functions of
    ``domain/challan.py``.  Storage is injected as a ``DcStore``.

Invariants enforced:
    - History is append-only; each successful transition adds exactly
      one entry.
    - A rejected transition leaves the stored record untouched (the
      store is not called).
    - Writes are last-write-wins on the whole record.

Failure modes:
    - DcNotFoundError: unknown id.
    - InvalidTransitionError: action not allowed from the current status.
    - ValidationError: a required field is missing or the cash amount is
      not a positive number.
    - DeletionNotAuthorizedError: protected delete without the password.
    - NotAuthenticatedError: a session context is attached and nobody is
      logged in.
    - TransportError / ConfigurationError: propagated from the store.

Audit relevance:
    ``dc_created``, ``dc_transitioned`` and ``dc_deleted`` are logged with
    the DC id bound in ``LogContext``.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping
from uuid import uuid4

from challan_kernel.domain.challan import (
    DcAction,
    DcDraft,
    DcStatus,
    SavedDc,
    apply_transition,
    new_saved_dc,
)
from challan_kernel.domain.clock import Clock
from challan_kernel.domain.dc_workflow import (
    CASH_AMOUNT_POSITIVE,
    DC_WORKFLOW,
    GUARD_MESSAGES,
)
from challan_kernel.domain.session import SessionContext
from challan_kernel.domain.workflow import Transition, actions_from, find_transition
from challan_kernel.exceptions import (
    DcNotFoundError,
    DeletionNotAuthorizedError,
    InvalidTransitionError,
    ValidationError,
)
from challan_kernel.logging_config import LogContext, get_logger
from challan_kernel.services.dc_store import DcStore

logger = get_logger("services.lifecycle")

_MISSING_MESSAGES = {
    "hospital_name": "Hospital name is required",
    "dc_no": "DC number is required",
}


def _parse_amount(value: Any, action: str) -> Decimal:
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        amount = None
    if amount is None or not amount.is_finite() or amount <= 0:
        raise ValidationError(
            "cash_amount", GUARD_MESSAGES[CASH_AMOUNT_POSITIVE.name], action=action,
        )
    return amount


class DcLifecycleService:
    """
    Lifecycle operations over a ``DcStore``.

    Usage::

        service = DcLifecycleService(store, SystemClock())
        dc = service.create(DcDraft(hospital_name="City Hospital", dc_no="DC-101"))
        dc = service.mark_returned(dc.id, returned_by="Asha")
        dc = service.link_invoice(dc.id, invoice_ref="INV-9")
    """

    def __init__(
        self,
        store: DcStore,
        clock: Clock,
        session: SessionContext | None = None,
        delete_password: str | None = None,
    ):
        self._store = store
        self._clock = clock
        self._session = session
        self._delete_password = delete_password

    # -----------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------

    def list_all(self) -> list[SavedDc]:
        """All saved DCs, newest first."""
        return sorted(self._store.list_all(), key=lambda dc: dc.saved_at, reverse=True)

    def get(self, dc_id: str) -> SavedDc:
        for dc in self._store.list_all():
            if dc.id == dc_id:
                return dc
        raise DcNotFoundError(dc_id)

    def available_actions(self, dc: SavedDc) -> tuple[DcAction, ...]:
        return tuple(DcAction(a) for a in actions_from(DC_WORKFLOW, dc.status.value))

    # -----------------------------------------------------------------
    # Creation and deletion
    # -----------------------------------------------------------------

    def create(self, draft: DcDraft) -> SavedDc:
        """Save a new DC in ``draft.status`` (pending unless stated)."""
        actor = self._require("create")
        for name, message in _MISSING_MESSAGES.items():
            if not getattr(draft, name).strip():
                raise ValidationError(name, message)

        dc = new_saved_dc(draft, dc_id=str(uuid4()), now=self._clock.now())
        with LogContext.bind(dc_id=dc.id, actor=actor):
            self._store.append(dc)
            logger.info(
                "dc_created",
                extra={
                    "dc_no": dc.dc_no,
                    "hospital_name": dc.hospital_name,
                    "status": dc.status.value,
                    "item_count": len(dc.items),
                    "instrument_count": len(dc.instruments),
                },
            )
        return dc

    def delete(self, dc_id: str) -> None:
        """Remove a DC unconditionally."""
        actor = self._require("delete")
        with LogContext.bind(dc_id=dc_id, actor=actor):
            self._store.delete(dc_id)
            logger.info("dc_deleted", extra={"protected": False})

    def delete_protected(self, dc_id: str, password: str | None = None) -> None:
        """Remove a DC; anything past pending needs the delete password."""
        dc = self.get(dc_id)
        if dc.status != DcStatus.PENDING:
            if self._delete_password is None or password != self._delete_password:
                logger.warning(
                    "dc_delete_refused",
                    extra={"dc_id": dc_id, "status": dc.status.value},
                )
                raise DeletionNotAuthorizedError(dc_id, dc.status.value)
        self.delete(dc_id)

    # -----------------------------------------------------------------
    # Transitions
    # -----------------------------------------------------------------

    def transition(
        self,
        dc_id: str,
        action: DcAction | str,
        updates: Mapping[str, Any] | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> SavedDc:
        """Apply ``action`` to the DC and persist the result."""
        action = DcAction(action)
        actor = self._require(action.value)
        dc = self.get(dc_id)

        with LogContext.bind(dc_id=dc_id, actor=actor):
            transition = self._validate_transition(dc, action)
            clean = self._check_requirements(dc, transition, updates or {})
            updated = apply_transition(dc, transition, clean, self._clock.now(), meta)
            self._store.update(updated)
            logger.info(
                "dc_transitioned",
                extra={
                    "action": action.value,
                    "from_status": dc.status.value,
                    "to_status": updated.status.value,
                    "cleared": list(transition.clears),
                    "history_length": len(updated.history),
                },
            )
        return updated

    def mark_returned(self, dc_id: str, returned_by: str, remarks: str = "") -> SavedDc:
        return self.transition(
            dc_id,
            DcAction.MARK_RETURNED,
            {"returned_by": returned_by, "returned_remarks": remarks},
        )

    def link_invoice(self, dc_id: str, invoice_ref: str, remarks: str = "") -> SavedDc:
        """Complete a DC; from the cash queue this also clears the cash fields."""
        dc = self.get(dc_id)
        action = (
            DcAction.MOVE_CASH_TO_COMPLETED
            if dc.status == DcStatus.CASH
            else DcAction.LINK_INVOICE
        )
        return self.transition(
            dc_id, action, {"invoice_ref": invoice_ref, "invoice_remarks": remarks},
        )

    def move_to_cash(
        self, dc_id: str, amount: Decimal | str | float, remarks: str = ""
    ) -> SavedDc:
        return self.transition(
            dc_id,
            DcAction.MOVE_TO_CASH,
            {"cash_amount": amount, "cash_remarks": remarks},
        )

    def move_back_to_pending(self, dc_id: str) -> SavedDc:
        return self.transition(dc_id, DcAction.MOVE_BACK_TO_PENDING)

    def move_back_to_returned(self, dc_id: str) -> SavedDc:
        return self.transition(dc_id, DcAction.MOVE_BACK_TO_RETURNED)

    # -----------------------------------------------------------------
    # Guards
    # -----------------------------------------------------------------

    def _require(self, operation: str) -> str | None:
        if self._session is None:
            return None
        return self._session.require(operation)

    def _validate_transition(self, dc: SavedDc, action: DcAction) -> Transition:
        transition = find_transition(DC_WORKFLOW, action.value, dc.status.value)
        if transition is None:
            logger.warning(
                "dc_transition_rejected",
                extra={"action": action.value, "from_status": dc.status.value},
            )
            raise InvalidTransitionError(dc.id, action.value, dc.status.value)
        return transition

    def _check_requirements(
        self,
        dc: SavedDc,
        transition: Transition,
        updates: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Normalize updates and verify the transition's required fields."""
        clean: dict[str, Any] = {}
        for name, value in updates.items():
            if name == "cash_amount":
                value = _parse_amount(value, transition.action)
            elif isinstance(value, str):
                # blank text is stored as an empty cell
                value = value.strip() or None
            clean[name] = value

        message = (
            GUARD_MESSAGES.get(transition.guard.name)
            if transition.guard is not None
            else None
        )
        for name in transition.requires:
            value = clean.get(name, getattr(dc, name, None))
            if value is None:
                raise ValidationError(
                    name,
                    message or f"{name} is required",
                    action=transition.action,
                )
        return clean
