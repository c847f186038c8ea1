"""
Catalog Codec (``challan_catalog.codec``).

Responsibility
--------------
Converts between the flat 12-column catalog row and ``Procedure``
records.  Column order::

    0 name             4 instruments        8 itemImages
    1 items            5 type               9 itemLocations
    2 fixedItems       6 instrumentImages  10 fixedItemLocations
    3 fixedQty         7 fixedItemImages   11 instrumentLocations

List cells are ``|``-separated.  A selectable item is encoded as
``Name {size:qty, size:qty}`` or just ``Name``.  Location cells hold one
``room|rack|box`` triple per entity, flattened.

Architecture position
---------------------
Pure functions, ZERO I/O.  Fed by the catalog sources in
``challan_catalog.adapters``; consumed by ``CatalogService`` and the
procedure editor export.

Invariants enforced
-------------------
* ``parse_catalog_row`` never raises: short rows are padded, missing
  cells are blank, blank fields take their documented defaults.
* Image and location lists keep blank positions, so the Nth entry always
  belongs to the Nth name.
* ``parse_catalog_row(procedure_to_row(p).as_list()) == p`` for any
  procedure whose names contain no delimiter characters.
"""

from __future__ import annotations

import csv
import io
import re
from dataclasses import astuple, dataclass
from typing import Any, Iterable, Sequence

from challan_kernel.domain.catalog import (
    DEFAULT_FIXED_QTY,
    DEFAULT_PROCEDURE_TYPE,
    FixedItem,
    Location,
    Procedure,
    SelectableItem,
    SizeQty,
)

ROW_WIDTH = 12
LIST_SEPARATOR = "|"

ROW_COLUMNS = (
    "name",
    "items",
    "fixedItems",
    "fixedQty",
    "instruments",
    "type",
    "instrumentImages",
    "fixedItemImages",
    "itemImages",
    "itemLocations",
    "fixedItemLocations",
    "instrumentLocations",
)

_SIZED_ITEM = re.compile(r"^(.+?)\s*\{(.+)\}$")
_BASE_NAME = re.compile(r"^(.+?)\s*\{")


# =============================================================================
# Decoding
# =============================================================================


def _cell(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def split_list(cell: str) -> list[str]:
    """Split a ``|`` cell into trimmed, non-blank names."""
    return [part.strip() for part in cell.split(LIST_SEPARATOR) if part.strip()]


def split_positional(cell: str) -> list[str]:
    """Split a ``|`` cell keeping blank positions."""
    if not cell.strip():
        return []
    return [part.strip() for part in cell.split(LIST_SEPARATOR)]


def base_item_name(token: str) -> str:
    """Item name without its ``{...}`` size block."""
    m = _BASE_NAME.match(token)
    return (m.group(1) if m else token).strip()


def parse_size_qty(token: str) -> SelectableItem:
    """Decode one selectable-item token into its name and size variants."""
    token = token.strip()
    m = _SIZED_ITEM.match(token)
    if not m:
        return SelectableItem(name=base_item_name(token))

    sizes = []
    for pair in m.group(2).split(","):
        size, _, qty = pair.partition(":")
        size = size.strip()
        if not size:
            continue
        sizes.append(SizeQty(size=size, qty=qty.strip() or DEFAULT_FIXED_QTY))
    return SelectableItem(name=m.group(1).strip(), sizes=tuple(sizes))


def parse_locations(cell: str) -> list[Location | None]:
    """Group a flattened location cell into per-entity triples.

    A triple whose three parts are blank, or an incomplete trailing group,
    decodes to None.
    """
    tokens = split_positional(cell)
    result: list[Location | None] = []
    for start in range(0, len(tokens), 3):
        group = tokens[start:start + 3]
        if len(group) < 3:
            result.append(None)
            continue
        location = Location(room=group[0], rack=group[1], box=group[2])
        result.append(None if location.is_empty() else location)
    return result


def _aligned(names: Sequence[str], values: Sequence[Any]) -> dict[str, Any]:
    return {
        name: (values[idx] or None) if idx < len(values) else None
        for idx, name in enumerate(names)
    }


def parse_catalog_row(row: Sequence[Any]) -> Procedure:
    """Decode one 12-column catalog row. Never raises."""
    cells = [_cell(v) for v in list(row)[:ROW_WIDTH]]
    cells += [""] * (ROW_WIDTH - len(cells))
    (
        name, items_cell, fixed_cell, fixed_qty_cell, instruments_cell, type_cell,
        instrument_images_cell, fixed_images_cell, item_images_cell,
        item_locations_cell, fixed_locations_cell, instrument_locations_cell,
    ) = cells

    items = tuple(parse_size_qty(token) for token in split_list(items_cell))
    fixed_names = split_list(fixed_cell)
    fixed_qtys = split_positional(fixed_qty_cell)
    fixed_items = tuple(
        FixedItem(
            name=fixed_name,
            qty=(fixed_qtys[idx] if idx < len(fixed_qtys) else "") or DEFAULT_FIXED_QTY,
        )
        for idx, fixed_name in enumerate(fixed_names)
    )
    instruments = tuple(split_list(instruments_cell))
    item_names = [item.name for item in items]

    return Procedure(
        name=name.strip(),
        type=type_cell.strip() or DEFAULT_PROCEDURE_TYPE,
        items=items,
        fixed_items=fixed_items,
        instruments=instruments,
        instrument_images=_aligned(instruments, split_positional(instrument_images_cell)),
        fixed_item_images=_aligned(fixed_names, split_positional(fixed_images_cell)),
        item_images=_aligned(item_names, split_positional(item_images_cell)),
        instrument_locations=_aligned(instruments, parse_locations(instrument_locations_cell)),
        fixed_item_locations=_aligned(fixed_names, parse_locations(fixed_locations_cell)),
        item_locations=_aligned(item_names, parse_locations(item_locations_cell)),
    )


def parse_catalog(rows: Iterable[Sequence[Any]]) -> list[Procedure]:
    """Decode data rows (header already removed), skipping blank names."""
    procedures = []
    for row in rows:
        if not row or not _cell(row[0]).strip():
            continue
        procedures.append(parse_catalog_row(row))
    return procedures


# =============================================================================
# Encoding
# =============================================================================


@dataclass(frozen=True)
class EditableItem:
    """One line of the procedure editor before it is written to a row."""
    name: str
    is_fixed: bool = False
    sizes: tuple[SizeQty, ...] = ()
    fixed_qty: str = DEFAULT_FIXED_QTY
    image_url: str | None = None
    location: Location | None = None


@dataclass(frozen=True)
class EditableInstrument:
    name: str
    image_url: str | None = None
    location: Location | None = None


@dataclass(frozen=True)
class ProcedureRow:
    """The 12 catalog cells of one procedure, in column order."""
    name: str
    items: str = ""
    fixed_items: str = ""
    fixed_qty: str = ""
    instruments: str = ""
    type: str = DEFAULT_PROCEDURE_TYPE
    instrument_images: str = ""
    fixed_item_images: str = ""
    item_images: str = ""
    item_locations: str = ""
    fixed_item_locations: str = ""
    instrument_locations: str = ""

    def as_list(self) -> list[str]:
        return list(astuple(self))

    def to_tsv(self) -> str:
        """Tab-separated line for pasting into the spreadsheet."""
        return "\t".join(self.as_list())

    def to_csv_line(self) -> str:
        buffer = io.StringIO()
        csv.writer(buffer, lineterminator="").writerow(self.as_list())
        return buffer.getvalue()


def format_item_for_row(item: EditableItem) -> str:
    """Encode one editor line as it appears in the items column."""
    if item.is_fixed:
        return item.name
    if any(s.size for s in item.sizes):
        return SelectableItem(
            name=item.name,
            sizes=tuple(s for s in item.sizes if s.size),
        ).encoding
    return item.name


def format_locations(locations: Iterable[Location | None]) -> str:
    """Flatten locations to ``room|rack|box|room|rack|box...``."""
    parts: list[str] = []
    for location in locations:
        location = location or Location()
        parts.extend((location.room, location.rack, location.box))
    return LIST_SEPARATOR.join(parts)


def _join(values: Iterable[str | None]) -> str:
    return LIST_SEPARATOR.join(v or "" for v in values)


def encode_procedure_row(
    name: str,
    procedure_type: str,
    items: Sequence[EditableItem],
    instruments: Sequence[EditableInstrument] = (),
) -> ProcedureRow:
    """Build the full catalog row for an edited procedure."""
    fixed = [i for i in items if i.is_fixed]
    selectable = [i for i in items if not i.is_fixed]
    return ProcedureRow(
        name=name.strip(),
        items=_join(format_item_for_row(i) for i in selectable),
        fixed_items=_join(i.name for i in fixed),
        fixed_qty=_join(i.fixed_qty or DEFAULT_FIXED_QTY for i in fixed),
        instruments=_join(i.name for i in instruments),
        type=procedure_type.strip() or DEFAULT_PROCEDURE_TYPE,
        instrument_images=_join(i.image_url for i in instruments),
        fixed_item_images=_join(i.image_url for i in fixed),
        item_images=_join(i.image_url for i in selectable),
        item_locations=format_locations(i.location for i in selectable),
        fixed_item_locations=format_locations(i.location for i in fixed),
        instrument_locations=format_locations(i.location for i in instruments),
    )


def editable_items(procedure: Procedure) -> list[EditableItem]:
    """Editor lines for an existing procedure: fixed items first."""
    lines = [
        EditableItem(
            name=f.name,
            is_fixed=True,
            fixed_qty=f.qty,
            image_url=procedure.fixed_item_images.get(f.name),
            location=procedure.fixed_item_locations.get(f.name),
        )
        for f in procedure.fixed_items
    ]
    lines += [
        EditableItem(
            name=i.name,
            sizes=i.sizes,
            image_url=procedure.item_images.get(i.name),
            location=procedure.item_locations.get(i.name),
        )
        for i in procedure.items
    ]
    return lines


def procedure_to_row(procedure: Procedure) -> ProcedureRow:
    """Re-encode a decoded procedure."""
    instruments = [
        EditableInstrument(
            name=name,
            image_url=procedure.instrument_images.get(name),
            location=procedure.instrument_locations.get(name),
        )
        for name in procedure.instruments
    ]
    return encode_procedure_row(
        procedure.name, procedure.type, editable_items(procedure), instruments,
    )
