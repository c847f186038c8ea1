"""
Saved-DC wire codec (``challan_storage.row_codec``).

Responsibility
--------------
Converts ``SavedDc`` records to and from the camelCase payload the
spreadsheet web app exchanges, and to the flat 20-cell row both storage
backends persist.  Column order::

     0 id              7 status          14 invoiceRef
     1 hospitalName    8 items           15 invoiceRemarks
     2 dcNo            9 instruments     16 cashAt
     3 materialType   10 boxNumbers      17 cashAmount
     4 savedAt        11 returnedBy      18 cashRemarks
     5 receivedBy     12 returnedAt      19 history
     6 remarks        13 returnedRemarks

``items``, ``instruments``, ``boxNumbers`` and ``history`` are lists in
the payload and JSON text in a row cell.

Architecture position
---------------------
Pure functions, ZERO I/O.  Shared by ``SheetsDcStore`` and ``SqlDcStore``.

Invariants enforced
-------------------
* ``from_payload`` accepts either lists or JSON text for structured
  fields.  Undecodable text is logged with the ``PARSE_WARNING`` code
  and replaced by an empty list; the record itself still loads.
* A malformed entry inside ``items`` or ``history`` is logged and
  dropped, as is one whose status is unknown.  Unreadable timestamps
  read as None (``savedAt`` as the epoch) with a warning.
* Blank optional cells decode to None; a missing status is ``pending``;
  missing ``receivedBy`` / ``remarks`` are empty strings.
* Timestamps are ISO-8601 text on the wire; naive values are read as UTC.
* ``decode_records`` skips stored rows that cannot be decoded at all,
  including rows whose own status is unknown.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from challan_kernel.domain.challan import (
    DEFAULT_MATERIAL_TYPE,
    DcAction,
    DcItem,
    DcItemSize,
    DcStatus,
    HistoryEvent,
    SavedDc,
)
from challan_kernel.exceptions import ParseWarning
from challan_kernel.logging_config import get_logger

logger = get_logger("storage.row_codec")

# (wire name, record attribute) in column order
DC_COLUMNS: tuple[tuple[str, str], ...] = (
    ("id", "id"),
    ("hospitalName", "hospital_name"),
    ("dcNo", "dc_no"),
    ("materialType", "material_type"),
    ("savedAt", "saved_at"),
    ("receivedBy", "received_by"),
    ("remarks", "remarks"),
    ("status", "status"),
    ("items", "items"),
    ("instruments", "instruments"),
    ("boxNumbers", "box_numbers"),
    ("returnedBy", "returned_by"),
    ("returnedAt", "returned_at"),
    ("returnedRemarks", "returned_remarks"),
    ("invoiceRef", "invoice_ref"),
    ("invoiceRemarks", "invoice_remarks"),
    ("cashAt", "cash_at"),
    ("cashAmount", "cash_amount"),
    ("cashRemarks", "cash_remarks"),
    ("history", "history"),
)

STRUCTURED_FIELDS = frozenset({"items", "instruments", "boxNumbers", "history"})
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# =============================================================================
# Encoding
# =============================================================================


def format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _item_to_dict(item: DcItem) -> dict[str, Any]:
    return {
        "name": item.name,
        "sizes": [{"size": s.size, "qty": s.qty} for s in item.sizes],
        "procedure": item.procedure,
        "isSelectable": item.is_selectable,
    }


def _event_to_dict(event: HistoryEvent) -> dict[str, Any]:
    data: dict[str, Any] = {
        "at": format_timestamp(event.at),
        "action": event.action.value,
        "toStatus": event.to_status.value,
    }
    if event.from_status is not None:
        data["fromStatus"] = event.from_status.value
    if event.meta:
        data["meta"] = dict(event.meta)
    return data


def to_payload(dc: SavedDc) -> dict[str, Any]:
    """Camel-case payload with structured fields as lists."""
    return {
        "id": dc.id,
        "hospitalName": dc.hospital_name,
        "dcNo": dc.dc_no,
        "materialType": dc.material_type,
        "savedAt": format_timestamp(dc.saved_at),
        "receivedBy": dc.received_by,
        "remarks": dc.remarks,
        "status": dc.status.value,
        "items": [_item_to_dict(i) for i in dc.items],
        "instruments": list(dc.instruments),
        "boxNumbers": list(dc.box_numbers),
        "returnedBy": dc.returned_by,
        "returnedAt": format_timestamp(dc.returned_at),
        "returnedRemarks": dc.returned_remarks,
        "invoiceRef": dc.invoice_ref,
        "invoiceRemarks": dc.invoice_remarks,
        "cashAt": format_timestamp(dc.cash_at),
        "cashAmount": str(dc.cash_amount) if dc.cash_amount is not None else None,
        "cashRemarks": dc.cash_remarks,
        "history": [_event_to_dict(e) for e in dc.history],
    }


def to_row(dc: SavedDc) -> list[str]:
    """The 20 cells of one DC, in column order; None becomes ""."""
    payload = to_payload(dc)
    cells = []
    for wire, _ in DC_COLUMNS:
        value = payload[wire]
        if wire in STRUCTURED_FIELDS:
            cells.append(json.dumps(value))
        else:
            cells.append("" if value is None else str(value))
    return cells


# =============================================================================
# Decoding
# =============================================================================

# Date.toString() text as the web app sometimes stores it:
# "Thu Jan 01 2026 00:00:00 GMT+0530 (India Standard Time)"
_DATE_STRING_FORMAT = "%a %b %d %Y %H:%M:%S GMT%z"
_ZONE_NAME_SUFFIX = re.compile(r"\s*\([^)]*\)\s*$")
_LEADING_INT = re.compile(r"^\s*(-?\d+)")

# what a malformed entry inside a structured field can raise while decoding
_ENTRY_ERRORS = (KeyError, TypeError, ValueError, AttributeError)


def parse_timestamp(value: Any) -> datetime | None:
    """
    ISO-8601 (or ``Date.toString()``) text to an aware datetime.

    Blank values give None.  Anything else unreadable raises ValueError.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            parsed = datetime.strptime(
                _ZONE_NAME_SUFFIX.sub("", text), _DATE_STRING_FORMAT
            )
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _warn(event: str, field: str, dc_id: Any, detail: str, **extra: Any) -> None:
    warning = ParseWarning(field, dc_id, detail)
    logger.warning(
        event,
        extra={
            "field": field,
            "dc_id": dc_id,
            "code": warning.code,
            "detail": str(warning),
            **extra,
        },
    )


def _timestamp(value: Any, field: str, dc_id: Any) -> datetime | None:
    try:
        return parse_timestamp(value)
    except ValueError as exc:
        _warn("timestamp_unreadable", field, dc_id, str(exc), value=str(value))
        return None


def _status(value: Any) -> DcStatus:
    """Case-insensitive status; blank is pending, anything unknown raises ValueError."""
    text = str(value or "").strip().lower()
    if not text:
        return DcStatus.PENDING
    try:
        return DcStatus(text)
    except ValueError:
        raise ValueError(f"unknown status {value!r}") from None


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _parse_amount(value: Any) -> Decimal | None:
    text = _optional_text(value)
    if text is None:
        return None
    try:
        return Decimal(text.strip())
    except InvalidOperation:
        logger.warning(
            "cash_amount_unreadable",
            extra={"value": text, "code": ParseWarning.code},
        )
        return None


def _structured(data: Mapping[str, Any], wire: str) -> list[Any]:
    value = data.get(wire)
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    try:
        decoded = json.loads(value)
    except (TypeError, ValueError) as exc:
        decoded = exc
    if isinstance(decoded, list):
        return decoded

    _warn("structured_field_parse_failed", wire, data.get("id"), str(decoded))
    return []


def _decode_entries(data: Mapping[str, Any], wire: str, decode) -> tuple:
    """Decode each entry of a structured field, dropping the ones that fail."""
    decoded = []
    for position, raw in enumerate(_structured(data, wire)):
        try:
            decoded.append(decode(raw, data.get("id")))
        except _ENTRY_ERRORS as exc:
            _warn(
                "structured_entry_dropped", wire, data.get("id"),
                f"{type(exc).__name__}: {exc}", position=position,
            )
    return tuple(decoded)


def _qty(value: Any) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    m = _LEADING_INT.match(str(value))
    if m is None:
        raise ValueError(f"unreadable qty {value!r}")
    return int(m.group(1))


def _item_from_dict(raw: Mapping[str, Any], dc_id: Any = None) -> DcItem:
    sizes = tuple(
        DcItemSize(size=str(s.get("size", "")), qty=_qty(s.get("qty", 1)))
        for s in raw.get("sizes") or ()
    )
    return DcItem(
        name=str(raw.get("name", "")),
        sizes=sizes,
        procedure=str(raw.get("procedure", "")),
        is_selectable=bool(raw.get("isSelectable", False)),
    )


def _event_from_dict(raw: Mapping[str, Any], dc_id: Any = None) -> HistoryEvent:
    from_status = raw.get("fromStatus")
    return HistoryEvent(
        at=_timestamp(raw.get("at"), "history.at", dc_id),
        action=DcAction(raw["action"]),
        to_status=_status(raw.get("toStatus")),
        from_status=_status(from_status) if from_status else None,
        meta=dict(raw.get("meta") or {}),
    )


def from_payload(data: Mapping[str, Any]) -> SavedDc:
    """Decode one payload (or a row zipped with its column names)."""
    dc_id = data.get("id")
    saved_at = _timestamp(data.get("savedAt"), "savedAt", dc_id)
    if saved_at is None:
        logger.warning("saved_at_missing", extra={"dc_id": dc_id})
        saved_at = EPOCH
    return SavedDc(
        id=str(data["id"]),
        hospital_name=str(data.get("hospitalName") or ""),
        dc_no=str(data.get("dcNo") or ""),
        saved_at=saved_at,
        status=_status(data.get("status")),
        material_type=str(data.get("materialType") or DEFAULT_MATERIAL_TYPE),
        received_by=str(data.get("receivedBy") or ""),
        remarks=str(data.get("remarks") or ""),
        items=_decode_entries(data, "items", _item_from_dict),
        instruments=tuple(str(i) for i in _structured(data, "instruments")),
        box_numbers=tuple(str(b) for b in _structured(data, "boxNumbers")),
        returned_by=_optional_text(data.get("returnedBy")),
        returned_at=_timestamp(data.get("returnedAt"), "returnedAt", dc_id),
        returned_remarks=_optional_text(data.get("returnedRemarks")),
        invoice_ref=_optional_text(data.get("invoiceRef")),
        invoice_remarks=_optional_text(data.get("invoiceRemarks")),
        cash_at=_timestamp(data.get("cashAt"), "cashAt", dc_id),
        cash_amount=_parse_amount(data.get("cashAmount")),
        cash_remarks=_optional_text(data.get("cashRemarks")),
        history=_decode_entries(data, "history", _event_from_dict),
    )


def from_row(cells: list[Any]) -> SavedDc:
    padded = list(cells) + [""] * (len(DC_COLUMNS) - len(cells))
    return from_payload({wire: padded[idx] for idx, (wire, _) in enumerate(DC_COLUMNS)})


def decode_records(entries: Iterable[Any], decode=from_payload) -> list[SavedDc]:
    """
    Decode every stored record that can be decoded.

    Blank rows (no id) are skipped silently.  Entries that are not
    mappings or fail to decode are skipped with a warning, so one bad row
    never hides the rest.
    """
    dcs = []
    for position, raw in enumerate(entries):
        if not isinstance(raw, Mapping):
            logger.warning(
                "dc_record_skipped",
                extra={"position": position, "reason": f"not an object: {type(raw).__name__}",
                       "code": ParseWarning.code},
            )
            continue
        if not raw.get("id"):
            continue
        try:
            dcs.append(decode(raw))
        except _ENTRY_ERRORS as exc:
            logger.warning(
                "dc_record_skipped",
                extra={"position": position, "dc_id": str(raw.get("id")),
                       "reason": f"{type(exc).__name__}: {exc}", "code": ParseWarning.code},
            )
    return dcs
