"""
Working DC builder (``challan_kernel.domain.summary``).

Responsibility
--------------
Holds the operator's working copy of each procedure added to a DC
(``ActiveProcedure``) and flattens the working copies plus any manual
entries into the normalized item list, instrument list and box numbers
that are saved on the DC.

Architecture position
---------------------
**Kernel domain layer** -- pure, ZERO I/O.  The working copies are
session-scoped; they are discarded when the DC is saved or reset.

Invariants enforced
-------------------
* Instruments appear once in the result even when several procedures
  carry them; first occurrence fixes the order.
* Item quantities are integers >= 1 unless the operator typed a
  non-zero number; unparseable or zero quantities count as 1.
* Material type ``"None"`` suppresses the name prefix.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Iterable

from challan_kernel.domain.catalog import Procedure, SelectableItem, SizeQty
from challan_kernel.domain.challan import (
    DEFAULT_MATERIAL_TYPE,
    MANUAL_PROCEDURE,
    NO_MATERIAL_PREFIX,
    DcItem,
    DcItemSize,
)
from challan_kernel.domain.item_names import remove_fixed_item_part, remove_selectable_item_part

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_INSTRUMENT_QTY = re.compile(r"-\s*(\d+)$")


def parse_qty(text: str | int | None) -> int:
    """Leading integer of ``text``; 1 when absent or zero."""
    if isinstance(text, int):
        return text or 1
    m = _LEADING_INT.match(text or "")
    return (int(m.group(1)) if m else 0) or 1


def instrument_qty(name: str) -> int:
    """Quantity encoded as a trailing ``- N`` in an instrument name, else 1."""
    m = _INSTRUMENT_QTY.search(name)
    return int(m.group(1)) if m else 1


def with_material_prefix(name: str, material_type: str | None) -> str:
    material = material_type or DEFAULT_MATERIAL_TYPE
    if material == NO_MATERIAL_PREFIX:
        return name
    return f"{material} {name}"


@dataclass
class ActiveProcedure:
    """A procedure added to the working DC, with the operator's edits."""

    procedure: Procedure
    items: list[SelectableItem] = field(default_factory=list)
    instruments: list[str] = field(default_factory=list)
    material_type: str = DEFAULT_MATERIAL_TYPE
    selected_items: dict[str, list[SizeQty]] = field(default_factory=dict)
    selected_fixed_items: dict[str, bool] = field(default_factory=dict)
    fixed_qty_edits: dict[str, str] = field(default_factory=dict)
    box_numbers: list[str] = field(default_factory=list)
    # catalog name -> name after part removals
    item_renames: dict[str, str] = field(default_factory=dict)
    fixed_renames: dict[str, str] = field(default_factory=dict)

    @classmethod
    def start(
        cls, procedure: Procedure, material_type: str = DEFAULT_MATERIAL_TYPE
    ) -> ActiveProcedure:
        return cls(
            procedure=procedure,
            items=list(procedure.items),
            instruments=list(procedure.instruments),
            material_type=material_type,
            selected_fixed_items={fi.name: True for fi in procedure.fixed_items},
        )

    @property
    def name(self) -> str:
        return self.procedure.name

    def toggle_item(self, base_name: str, checked: bool) -> None:
        if checked:
            self.selected_items[base_name] = []
        else:
            self.selected_items.pop(base_name, None)

    def set_sizes(self, base_name: str, sizes: Iterable[SizeQty]) -> None:
        self.selected_items[base_name] = list(sizes)

    def toggle_fixed_item(self, name: str, checked: bool) -> None:
        self.selected_fixed_items[name] = checked

    def set_fixed_qty(self, name: str, qty: str) -> None:
        self.fixed_qty_edits[name] = qty

    def add_instrument(self, instrument: str) -> None:
        if instrument not in self.instruments:
            self.instruments.append(instrument)

    def remove_instrument(self, instrument: str) -> None:
        self.instruments = [i for i in self.instruments if i != instrument]

    def add_item(self, item: SelectableItem) -> None:
        if all(existing.name != item.name for existing in self.items):
            self.items.append(item)

    def remove_selectable_part(self, name: str, part: str) -> str:
        """
        Drop one comma part from a selectable item's composite name.

        The item keeps its place in the list and any sizes already chosen
        for it.  Returns the resulting name, which is ``name`` unchanged
        when nothing could be removed or the result would clash with
        another item.
        """
        new_name = remove_selectable_item_part(name, part)
        if new_name == name or any(i.name == new_name for i in self.items):
            return name
        self.items = [replace(i, name=new_name) if i.name == name else i for i in self.items]
        self.selected_items = {
            (new_name if base == name else base): sizes
            for base, sizes in self.selected_items.items()
        }
        original = next((o for o, cur in self.item_renames.items() if cur == name), name)
        self.item_renames[original] = new_name
        return new_name

    def fixed_item_name(self, catalog_name: str) -> str:
        return self.fixed_renames.get(catalog_name, catalog_name)

    def remove_fixed_part(self, catalog_name: str, part: str) -> str:
        """Drop one part from a fixed item's name; selections stay keyed by ``catalog_name``."""
        current = self.fixed_item_name(catalog_name)
        new_name = remove_fixed_item_part(current, part)
        if new_name != current:
            self.fixed_renames[catalog_name] = new_name
        return new_name

    def refreshed(self, procedure: Procedure) -> ActiveProcedure:
        """Copy carrying fresh catalog data but the same selections and renames."""
        return replace(
            self,
            procedure=procedure,
            items=[
                replace(i, name=self.item_renames[i.name]) if i.name in self.item_renames else i
                for i in procedure.items
            ],
            instruments=list(procedure.instruments),
        )


@dataclass(frozen=True)
class ManualItem:
    name: str
    size: str = ""
    qty: int = 1


@dataclass(frozen=True)
class ManualEntry:
    """Free-form DC lines that do not come from a catalog procedure."""
    items: tuple[ManualItem, ...] = ()
    instruments: tuple[str, ...] = ()
    box_numbers: tuple[str, ...] = ()
    material_type: str = DEFAULT_MATERIAL_TYPE


@dataclass(frozen=True)
class DcContents:
    items: tuple[DcItem, ...]
    instruments: tuple[str, ...]
    box_numbers: tuple[str, ...]

    @property
    def total_items(self) -> int:
        return sum(item.total_qty for item in self.items)

    @property
    def total_instrument_qty(self) -> int:
        return sum(instrument_qty(name) for name in self.instruments)

    def is_empty(self) -> bool:
        return not (self.items or self.instruments or self.box_numbers)


def build_dc_contents(
    active_procedures: Iterable[ActiveProcedure],
    manual: ManualEntry | None = None,
) -> DcContents:
    """Flatten working procedures and manual entries into DC contents."""
    items: list[DcItem] = []
    instruments: dict[str, None] = {}
    box_numbers: list[str] = []

    for active in active_procedures:
        material = active.material_type
        for base_name, sizes in active.selected_items.items():
            items.append(
                DcItem(
                    name=with_material_prefix(base_name, material),
                    sizes=tuple(DcItemSize(s.size, parse_qty(s.qty)) for s in sizes),
                    procedure=active.name,
                    is_selectable=True,
                )
            )
        for fixed in active.procedure.fixed_items:
            if not active.selected_fixed_items.get(fixed.name, True):
                continue
            qty = active.fixed_qty_edits.get(fixed.name, fixed.qty)
            items.append(
                DcItem(
                    name=with_material_prefix(active.fixed_item_name(fixed.name), material),
                    sizes=(DcItemSize("", parse_qty(qty)),),
                    procedure=active.name,
                    is_selectable=False,
                )
            )
        instruments.update(dict.fromkeys(active.instruments))
        box_numbers.extend(active.box_numbers)

    if manual is not None:
        for mi in manual.items:
            items.append(
                DcItem(
                    name=with_material_prefix(mi.name, manual.material_type),
                    sizes=(DcItemSize(mi.size or "", mi.qty),),
                    procedure=MANUAL_PROCEDURE,
                    is_selectable=True,
                )
            )
        instruments.update(dict.fromkeys(manual.instruments))
        box_numbers.extend(manual.box_numbers)

    return DcContents(
        items=tuple(items),
        instruments=tuple(instruments),
        box_numbers=tuple(box_numbers),
    )
