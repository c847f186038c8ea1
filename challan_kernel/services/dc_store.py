"""
DcStore -- persistence contract for saved DCs.

The lifecycle service talks to storage only through this protocol.
Implementations live in ``challan_storage`` (spreadsheet web app over
HTTP, local SQL database).

Contract:
    - ``list_all`` returns every stored record; order is unspecified.
    - ``append`` stores a new record.
    - ``update`` replaces the stored record with the same id, whole.
    - ``delete`` removes the record with the given id.
    - ``update`` and ``delete`` raise ``DcNotFoundError`` for unknown ids.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from challan_kernel.domain.challan import SavedDc


@runtime_checkable
class DcStore(Protocol):

    def list_all(self) -> list[SavedDc]:
        ...

    def append(self, dc: SavedDc) -> None:
        ...

    def update(self, dc: SavedDc) -> None:
        ...

    def delete(self, dc_id: str) -> None:
        ...
