"""
Delivery-challan records (``challan_kernel.domain.challan``).

Responsibility
--------------
The saved DC record, its status and action vocabularies, its history
entries, and the two pure state changes applied to it: creation
(``new_saved_dc``) and a guarded transition (``apply_transition``).

Architecture position
---------------------
**Kernel domain layer** -- frozen value objects and pure functions.
ZERO I/O.  Persistence lives in ``challan_storage``; guard evaluation
and logging in ``services/lifecycle_service.py``.

Invariants enforced
-------------------
* ``id`` and ``saved_at`` never change after creation.
* ``history`` is append-only: every transition returns a record whose
  history is the previous history plus exactly one new entry.
* The first history entry is ``CREATED`` with no ``from_status``.
* Values of cleared fields are snapshotted into the new entry's
  ``meta["cleared"]`` under their wire names before being reset.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum, unique
from typing import Any, Mapping

from challan_kernel.domain.workflow import Transition
from challan_kernel.exceptions import ValidationError

DEFAULT_MATERIAL_TYPE = "SS"
NO_MATERIAL_PREFIX = "None"
MANUAL_PROCEDURE = "Manual"


@unique
class DcStatus(str, Enum):
    PENDING = "pending"
    RETURNED = "returned"
    COMPLETED = "completed"
    CASH = "cash"


@unique
class DcAction(str, Enum):
    CREATED = "CREATED"
    MARK_RETURNED = "MARK_RETURNED"
    LINK_INVOICE = "LINK_INVOICE"
    MOVE_CASH_TO_COMPLETED = "MOVE_CASH_TO_COMPLETED"
    MOVE_TO_CASH = "MOVE_TO_CASH"
    MOVE_BACK_TO_PENDING = "MOVE_BACK_TO_PENDING"
    MOVE_BACK_TO_RETURNED = "MOVE_BACK_TO_RETURNED"


# Status-conditional fields a transition may set or clear, with the
# names they carry in storage payloads and history metadata.
TRANSITION_FIELDS: dict[str, str] = {
    "returned_by": "returnedBy",
    "returned_at": "returnedAt",
    "returned_remarks": "returnedRemarks",
    "invoice_ref": "invoiceRef",
    "invoice_remarks": "invoiceRemarks",
    "cash_at": "cashAt",
    "cash_amount": "cashAmount",
    "cash_remarks": "cashRemarks",
}


@dataclass(frozen=True)
class DcItemSize:
    size: str
    qty: int = 1


@dataclass(frozen=True)
class DcItem:
    """One line of a saved DC."""
    name: str
    sizes: tuple[DcItemSize, ...]
    procedure: str
    is_selectable: bool

    @property
    def total_qty(self) -> int:
        return sum(s.qty for s in self.sizes)


@dataclass(frozen=True)
class HistoryEvent:
    """One immutable audit entry of a DC's lifecycle."""
    at: datetime
    action: DcAction
    to_status: DcStatus
    from_status: DcStatus | None = None
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DcDraft:
    """Header fields and contents of a DC that has not been saved yet."""
    hospital_name: str
    dc_no: str
    items: tuple[DcItem, ...] = ()
    instruments: tuple[str, ...] = ()
    box_numbers: tuple[str, ...] = ()
    material_type: str = DEFAULT_MATERIAL_TYPE
    received_by: str = ""
    remarks: str = ""
    status: DcStatus = DcStatus.PENDING


@dataclass(frozen=True)
class SavedDc:
    """A persisted delivery challan."""
    id: str
    hospital_name: str
    dc_no: str
    saved_at: datetime
    status: DcStatus = DcStatus.PENDING
    material_type: str = DEFAULT_MATERIAL_TYPE
    received_by: str = ""
    remarks: str = ""
    items: tuple[DcItem, ...] = ()
    instruments: tuple[str, ...] = ()
    box_numbers: tuple[str, ...] = ()
    returned_by: str | None = None
    returned_at: datetime | None = None
    returned_remarks: str | None = None
    invoice_ref: str | None = None
    invoice_remarks: str | None = None
    cash_at: datetime | None = None
    cash_amount: Decimal | None = None
    cash_remarks: str | None = None
    history: tuple[HistoryEvent, ...] = ()

    @property
    def total_qty(self) -> int:
        return sum(item.total_qty for item in self.items)

    @property
    def display_date(self) -> datetime:
        """``saved_at`` while pending, afterwards ``returned_at`` if known."""
        if self.status == DcStatus.PENDING:
            return self.saved_at
        return self.returned_at or self.saved_at

    def days_pending(self, now: datetime) -> int:
        """Whole days from ``saved_at`` until return (or ``now``)."""
        end = self.returned_at or now
        return (end - self.saved_at).days


def new_saved_dc(draft: DcDraft, dc_id: str, now: datetime) -> SavedDc:
    """Build a fresh record with its ``CREATED`` history entry."""
    return SavedDc(
        id=dc_id,
        hospital_name=draft.hospital_name,
        dc_no=draft.dc_no,
        saved_at=now,
        status=draft.status,
        material_type=draft.material_type,
        received_by=draft.received_by,
        remarks=draft.remarks,
        items=tuple(draft.items),
        instruments=tuple(draft.instruments),
        box_numbers=tuple(draft.box_numbers),
        history=(
            HistoryEvent(at=now, action=DcAction.CREATED, to_status=draft.status),
        ),
    )


def _snapshot_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def apply_transition(
    dc: SavedDc,
    transition: Transition,
    updates: Mapping[str, Any] | None,
    now: datetime,
    meta: Mapping[str, Any] | None = None,
) -> SavedDc:
    """Return ``dc`` moved along ``transition``.

    Cleared fields are snapshotted then reset and stamped fields take
    ``now``.  The caller's updates are applied last, then the status is
    set and one history entry is appended.  Guard evaluation is the
    caller's responsibility.
    """
    updates = dict(updates or {})
    for name in updates:
        if name not in TRANSITION_FIELDS:
            raise ValidationError(
                name, f"Field '{name}' cannot be set by a transition",
                action=transition.action,
            )

    event_meta: dict[str, Any] = dict(meta or {})
    changes: dict[str, Any] = {}
    if transition.clears:
        event_meta["cleared"] = {
            TRANSITION_FIELDS[name]: _snapshot_value(getattr(dc, name))
            for name in transition.clears
        }
        changes.update({name: None for name in transition.clears})

    for name in transition.stamps:
        changes[name] = now
    changes.update(updates)
    changes["status"] = DcStatus(transition.to_state)

    event = HistoryEvent(
        at=now,
        action=DcAction(transition.action),
        to_status=DcStatus(transition.to_state),
        from_status=dc.status,
        meta=event_meta,
    )
    changes["history"] = dc.history + (event,)
    return replace(dc, **changes)
