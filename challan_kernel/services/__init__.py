"""Services for the challan kernel (write side)."""

from challan_kernel.services.dc_store import DcStore
from challan_kernel.services.lifecycle_service import DcLifecycleService
from challan_kernel.services.packing_service import (
    PackedState,
    PackingChecklist,
    PackingStats,
    packing_key,
)

__all__ = [
    "DcLifecycleService",
    "DcStore",
    "PackedState",
    "PackingChecklist",
    "PackingStats",
    "packing_key",
]
