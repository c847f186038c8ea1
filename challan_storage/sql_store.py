"""
SqlDcStore -- saved DCs in the local SQL database.

Rows mirror the spreadsheet layout (see ``row_codec.DC_COLUMNS``), so a
database can be exported to or seeded from the sheet without a mapping
step.  Each call runs in its own ``session_scope`` transaction.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from challan_kernel.db.engine import session_scope
from challan_kernel.domain.challan import SavedDc
from challan_kernel.exceptions import DcNotFoundError
from challan_kernel.logging_config import get_logger
from challan_kernel.models.saved_dc import SavedDcRow
from challan_storage.row_codec import DC_COLUMNS, decode_records, to_row

logger = get_logger("storage.sql")


def _row_values(dc: SavedDc) -> dict[str, str | None]:
    cells = to_row(dc)
    return {attr: (cells[idx] or None) for idx, (_, attr) in enumerate(DC_COLUMNS)}


def _to_payload(row: SavedDcRow) -> dict[str, str | None]:
    return {wire: getattr(row, attr) for wire, attr in DC_COLUMNS}


class SqlDcStore:
    """``DcStore`` over the ``saved_dcs`` table."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self._session_factory = session_factory

    def list_all(self) -> list[SavedDc]:
        with session_scope(self._session_factory) as session:
            rows = session.scalars(
                select(SavedDcRow).order_by(SavedDcRow.saved_at.desc())
            ).all()
            return decode_records(_to_payload(row) for row in rows)

    def append(self, dc: SavedDc) -> None:
        with session_scope(self._session_factory) as session:
            session.add(SavedDcRow(**_row_values(dc)))
        logger.debug("dc_row_inserted", extra={"dc_id": dc.id})

    def update(self, dc: SavedDc) -> None:
        with session_scope(self._session_factory) as session:
            row = session.get(SavedDcRow, dc.id)
            if row is None:
                raise DcNotFoundError(dc.id)
            for attr, value in _row_values(dc).items():
                setattr(row, attr, value)
        logger.debug("dc_row_updated", extra={"dc_id": dc.id})

    def delete(self, dc_id: str) -> None:
        with session_scope(self._session_factory) as session:
            row = session.get(SavedDcRow, dc_id)
            if row is None:
                raise DcNotFoundError(dc_id)
            session.delete(row)
        logger.debug("dc_row_deleted", extra={"dc_id": dc_id})
