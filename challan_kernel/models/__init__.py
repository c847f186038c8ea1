"""ORM models for the local database."""

from challan_kernel.models.packing import PackingState
from challan_kernel.models.saved_dc import SavedDcRow

__all__ = [
    "PackingState",
    "SavedDcRow",
]
