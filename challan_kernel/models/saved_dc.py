"""
Module: challan_kernel.models.saved_dc
Responsibility: Local persistence of saved DCs, one row per DC, laid out
    exactly like the remote spreadsheet: twenty text cells, structured
    fields held as JSON text.
Architecture position: Kernel > Models.  May import from db/base.py only.
    Conversion to and from ``SavedDc`` lives in ``challan_storage.row_codec``.

Invariants enforced:
    - ``id`` is the DC's own uuid (primary key).
    - Every cell is nullable text; blank optional fields are NULL.
"""

from sqlalchemy import Index
from sqlalchemy.orm import Mapped

from challan_kernel.db.base import Base


class SavedDcRow(Base):
    """One saved DC."""

    __tablename__ = "saved_dcs"

    __table_args__ = (
        Index("idx_saved_dcs_status", "status"),
        Index("idx_saved_dcs_saved_at", "saved_at"),
    )

    hospital_name: Mapped[str | None]
    dc_no: Mapped[str | None]
    material_type: Mapped[str | None]
    saved_at: Mapped[str | None]
    received_by: Mapped[str | None]
    remarks: Mapped[str | None]
    status: Mapped[str | None]
    items: Mapped[str | None]
    instruments: Mapped[str | None]
    box_numbers: Mapped[str | None]
    returned_by: Mapped[str | None]
    returned_at: Mapped[str | None]
    returned_remarks: Mapped[str | None]
    invoice_ref: Mapped[str | None]
    invoice_remarks: Mapped[str | None]
    cash_at: Mapped[str | None]
    cash_amount: Mapped[str | None]
    cash_remarks: Mapped[str | None]
    history: Mapped[str | None]

    def __repr__(self) -> str:
        return f"<SavedDcRow {self.id} {self.dc_no} [{self.status}]>"
