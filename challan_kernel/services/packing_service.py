"""
PackingChecklist -- per-procedure packing marks for the image gallery.

Responsibility:
    Remembers which gallery entities (fixed items, items, instruments) have
    been packed for a procedure, so an operator can work through a kit
    photo by photo and resume later.

Architecture position:
    Kernel > Services.  Persists ``PackingState`` rows through an injected
    session factory; timestamps come from the injected ``Clock``.

Invariants enforced:
    - One state per (procedure, entity key); re-marking overwrites it.
    - ``packed_at`` records the last time the mark was changed, packed or
      not.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from challan_kernel.db.engine import session_scope
from challan_kernel.domain.clock import Clock
from challan_kernel.logging_config import get_logger
from challan_kernel.models.packing import PackingState

logger = get_logger("services.packing")


def packing_key(category: str, name: str) -> str:
    """Entity key used by the checklist, e.g. ``"instrument:Drill"``."""
    return f"{category}:{name}"


@dataclass(frozen=True)
class PackedState:
    packed: bool
    packed_at: datetime | None = None


@dataclass(frozen=True)
class PackingStats:
    total: int
    packed: int

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        # half-up
        return (self.packed * 200 + self.total) // (self.total * 2)


class PackingChecklist:
    """Packing marks persisted in the local database."""

    def __init__(self, session_factory: sessionmaker[Session], clock: Clock):
        self._session_factory = session_factory
        self._clock = clock

    def load(self, procedure_name: str) -> dict[str, PackedState]:
        with session_scope(self._session_factory) as session:
            rows = session.scalars(
                select(PackingState).where(PackingState.procedure_name == procedure_name)
            ).all()
            return {
                row.entity_key: PackedState(
                    packed=row.packed,
                    packed_at=datetime.fromisoformat(row.packed_at) if row.packed_at else None,
                )
                for row in rows
            }

    def is_packed(self, procedure_name: str, entity_key: str) -> bool:
        state = self.load(procedure_name).get(entity_key)
        return state is not None and state.packed

    def set_packed(
        self, procedure_name: str, entity_key: str, packed: bool
    ) -> PackedState:
        now = self._clock.now()
        with session_scope(self._session_factory) as session:
            row = session.scalars(
                select(PackingState).where(
                    PackingState.procedure_name == procedure_name,
                    PackingState.entity_key == entity_key,
                )
            ).one_or_none()
            if row is None:
                row = PackingState(procedure_name=procedure_name, entity_key=entity_key)
                session.add(row)
            row.packed = packed
            row.packed_at = now.isoformat()

        logger.info(
            "packing_marked",
            extra={"procedure": procedure_name, "entity_key": entity_key, "packed": packed},
        )
        return PackedState(packed=packed, packed_at=now)

    def clear_procedure(self, procedure_name: str) -> int:
        """Forget every mark of a procedure. Returns the number removed."""
        with session_scope(self._session_factory) as session:
            result = session.execute(
                delete(PackingState).where(PackingState.procedure_name == procedure_name)
            )
            removed = result.rowcount or 0
        logger.info(
            "packing_cleared",
            extra={"procedure": procedure_name, "removed": removed},
        )
        return removed

    def stats(self, procedure_name: str, entity_keys: Iterable[str]) -> PackingStats:
        """Packed count over the given keys (the entities currently shown)."""
        states = self.load(procedure_name)
        keys = list(entity_keys)
        packed = sum(1 for key in keys if key in states and states[key].packed)
        return PackingStats(total=len(keys), packed=packed)
