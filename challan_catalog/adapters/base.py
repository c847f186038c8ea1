"""
Catalog source protocol.

Contract:
    ``CatalogSource.fetch_rows()`` returns the catalog's data rows (header
    row already discarded) as lists of cell strings, in sheet order.
    Rows may be shorter than 12 cells; the codec pads them.

Architecture: challan_catalog/adapters.  File and network I/O only; no
decoding beyond splitting the sheet into rows.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class CatalogSource(Protocol):
    """Anything that can produce the raw catalog rows."""

    def fetch_rows(self) -> list[list[str]]:
        ...
