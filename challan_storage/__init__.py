"""
Saved-DC storage backends.

Both implement ``challan_kernel.services.dc_store.DcStore`` and share the
20-column wire layout in ``row_codec``.
"""

from challan_storage.factory import build_store
from challan_storage.row_codec import DC_COLUMNS, from_payload, from_row, to_payload, to_row
from challan_storage.sheets_store import SheetsDcStore
from challan_storage.sql_store import SqlDcStore

__all__ = [
    "DC_COLUMNS",
    "SheetsDcStore",
    "SqlDcStore",
    "build_store",
    "from_payload",
    "from_row",
    "to_payload",
    "to_row",
]
