"""
Item-name editing helpers (``challan_kernel.domain.item_names``).

Composite item names list several variants in one string, e.g.
``"Plate 4hole,5hole,6hole"``.  The editor shows each comma segment as a
removable part; these helpers compute the name left after removing one.
"""

from __future__ import annotations

import re

# "<word> <digits+letters>" at the end of a segment, e.g. "Plate 4hole"
_NUMERIC_SUFFIX = re.compile(r"^(?P<head>.*\S)\s+(?P<suffix>\d+[A-Za-z]*)$")


def _remove_literal(name: str, part: str) -> str | None:
    for needle in (f",{part}", f"{part},"):
        idx = name.find(needle)
        if idx != -1:
            return (name[:idx] + name[idx + len(needle):]).strip()
    return None


def _remove_segmentwise(name: str, part: str) -> str | None:
    segments = [s.strip() for s in name.split(",")]

    for idx, segment in enumerate(segments):
        if segment == part:
            m = _NUMERIC_SUFFIX.match(segment)
            if m:
                segments[idx] = m.group("head")
            else:
                del segments[idx]
            return ",".join(s for s in segments if s)

    suffix = f" {part}"
    for idx, segment in enumerate(segments):
        if segment.endswith(suffix):
            segments[idx] = segment[: -len(suffix)].strip()
            return ",".join(s for s in segments if s)

    return None


def remove_item_part(name: str, part: str, *, literal_first: bool = False) -> str:
    """Name left after removing ``part``; the original name if nothing changed.

    With ``literal_first`` a comma-adjacent occurrence of the part is cut
    out verbatim before the segment-wise rules are tried.  A removal that
    would leave an empty name is rejected.
    """
    part = part.strip()
    if not part:
        return name

    result = _remove_literal(name, part) if literal_first else None
    if result is None:
        result = _remove_segmentwise(name, part)
    if not result or not result.strip(", "):
        return name
    return result


def remove_fixed_item_part(name: str, part: str) -> str:
    return remove_item_part(name, part)


def remove_selectable_item_part(name: str, part: str) -> str:
    return remove_item_part(name, part, literal_first=True)
