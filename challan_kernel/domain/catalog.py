"""
Catalog value objects (``challan_kernel.domain.catalog``).

Responsibility
--------------
Typed records for one catalog procedure: its selectable items (with size
variants), fixed items (with default quantities), instruments, and the
positionally aligned image URLs and storage locations of each.

Architecture position
---------------------
**Kernel domain layer** -- frozen value objects, ZERO I/O.  Produced by
``challan_catalog.codec`` and consumed by the DC builder and gallery.

Invariants enforced
-------------------
* A ``Procedure`` is never mutated after decoding; the working copy used
  while building a DC is ``ActiveProcedure`` (``domain/summary.py``).
* Image and location maps hold ``None`` for entries with no value;
  a name is never missing from its map because a parallel array was
  short.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_PROCEDURE_TYPE = "General"
DEFAULT_FIXED_QTY = "1"


@dataclass(frozen=True)
class SizeQty:
    """One size variant of a selectable item, quantity kept as text."""
    size: str
    qty: str = "1"


@dataclass(frozen=True)
class SelectableItem:
    """A selectable catalog item: base name plus optional size variants."""
    name: str
    sizes: tuple[SizeQty, ...] = ()

    @property
    def base_name(self) -> str:
        return self.name

    @property
    def encoding(self) -> str:
        """Row encoding: ``Name {size:qty, ...}`` or the bare name."""
        if not self.sizes:
            return self.name
        pairs = ", ".join(f"{s.size}:{s.qty or DEFAULT_FIXED_QTY}" for s in self.sizes)
        return f"{self.name} {{{pairs}}}"


@dataclass(frozen=True)
class FixedItem:
    """An item always included with its procedure."""
    name: str
    qty: str = DEFAULT_FIXED_QTY


@dataclass(frozen=True)
class Location:
    """Physical storage location of a catalog entity."""
    room: str = ""
    rack: str = ""
    box: str = ""

    def is_empty(self) -> bool:
        return not (self.room or self.rack or self.box)

    def display(self) -> str | None:
        """Non-empty parts joined with a middle dot, or None."""
        parts = [p for p in (self.room, self.rack, self.box) if p]
        return " · ".join(parts) if parts else None


@dataclass(frozen=True)
class Procedure:
    """A named bundle of selectable items, fixed items and instruments.

    Image and location maps are keyed by entity name; selectable items are
    keyed by base name.
    """
    name: str
    type: str = DEFAULT_PROCEDURE_TYPE
    items: tuple[SelectableItem, ...] = ()
    fixed_items: tuple[FixedItem, ...] = ()
    instruments: tuple[str, ...] = ()
    instrument_images: dict[str, str | None] = field(default_factory=dict)
    fixed_item_images: dict[str, str | None] = field(default_factory=dict)
    item_images: dict[str, str | None] = field(default_factory=dict)
    instrument_locations: dict[str, Location | None] = field(default_factory=dict)
    fixed_item_locations: dict[str, Location | None] = field(default_factory=dict)
    item_locations: dict[str, Location | None] = field(default_factory=dict)

    def item(self, base_name: str) -> SelectableItem | None:
        for item in self.items:
            if item.name == base_name:
                return item
        return None

    def fixed_item(self, name: str) -> FixedItem | None:
        for fixed in self.fixed_items:
            if fixed.name == name:
                return fixed
        return None
