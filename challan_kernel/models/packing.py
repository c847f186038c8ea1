"""
Module: challan_kernel.models.packing
Responsibility: Per-procedure packing checklist state, keyed by
    ``(procedure_name, entity_key)`` where the entity key is
    ``"<category>:<name>"``.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - At most one row per (procedure_name, entity_key).
"""

from sqlalchemy import Boolean, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from challan_kernel.db.base import Base


class PackingState(Base):
    """Whether one catalog entity has been packed for a procedure."""

    __tablename__ = "packing_states"

    __table_args__ = (
        UniqueConstraint(
            "procedure_name", "entity_key", name="uq_packing_procedure_entity",
        ),
    )

    procedure_name: Mapped[str] = mapped_column(nullable=False, index=True)
    entity_key: Mapped[str] = mapped_column(nullable=False)
    packed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    packed_at: Mapped[str | None]

    def __repr__(self) -> str:
        return f"<PackingState {self.procedure_name} {self.entity_key} packed={self.packed}>"
