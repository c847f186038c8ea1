"""
Pure domain layer.

Value objects and pure functions with NO dependencies on SQLAlchemy,
HTTP clients or the system clock.  Records are immutable; the only
mutable type is the session-scoped ``ActiveProcedure`` working copy.
"""

from challan_kernel.domain.catalog import (
    FixedItem,
    Location,
    Procedure,
    SelectableItem,
    SizeQty,
)
from challan_kernel.domain.challan import (
    DcAction,
    DcDraft,
    DcItem,
    DcItemSize,
    DcStatus,
    HistoryEvent,
    SavedDc,
    apply_transition,
    new_saved_dc,
)
from challan_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SequentialClock,
    SystemClock,
)
from challan_kernel.domain.dc_workflow import DC_WORKFLOW
from challan_kernel.domain.session import SessionContext
from challan_kernel.domain.summary import (
    ActiveProcedure,
    DcContents,
    ManualEntry,
    ManualItem,
    build_dc_contents,
)

__all__ = [
    "ActiveProcedure",
    "Clock",
    "DC_WORKFLOW",
    "DcAction",
    "DcContents",
    "DcDraft",
    "DcItem",
    "DcItemSize",
    "DcStatus",
    "DeterministicClock",
    "FixedItem",
    "HistoryEvent",
    "Location",
    "ManualEntry",
    "ManualItem",
    "Procedure",
    "SavedDc",
    "SelectableItem",
    "SequentialClock",
    "SessionContext",
    "SizeQty",
    "SystemClock",
    "apply_transition",
    "build_dc_contents",
    "new_saved_dc",
]
