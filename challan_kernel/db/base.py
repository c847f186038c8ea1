"""
Module: challan_kernel.db.base
Responsibility: Declarative base for the local SQLAlchemy models (saved DC
    rows and packing states).
Architecture position: Kernel > DB.  Lowest-level import target for
    models.  MUST NOT import from models/, services/ or outer packages.

Invariants enforced:
    - Every row has a 36-character text primary key; saved DC rows reuse
      the DC's own uuid, other rows get a fresh uuid4.
    - Timestamps are stored as ISO-8601 text so that timezone offsets
      survive SQLite round trips unchanged.
"""

from typing import ClassVar
from uuid import uuid4

from sqlalchemy import String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def new_id() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    """
    Declarative base for all challan models.

    Guarantees:
        - ``id`` is a 36-character string primary key.
        - Plain ``str`` annotations map to unbounded ``Text``.
    """

    type_annotation_map: ClassVar[dict] = {
        str: Text(),
    }

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_id,
    )
