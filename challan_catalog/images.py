"""
Catalog image helpers: Google Drive link variants and gallery entries.

Catalog image cells usually hold Drive share links, which do not render
as images directly.  ``drive_url_variants`` derives the thumbnail,
embeddable preview and direct-download forms from any of the common
link shapes; a caller tries them in that order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from challan_kernel.domain.catalog import Location, Procedure

_ID_PATTERNS = (
    re.compile(r"[?&]id=([^&]+)"),
    re.compile(r"/file/d/([^/?]+)"),
    re.compile(r"open[?&]id=([^&]+)"),
    re.compile(r"thumbnail[?&]id=([^&]+)"),
)
_DIRECT_IMAGE = re.compile(r"\.(jpg|jpeg|png|gif|webp)(\?|$)", re.IGNORECASE)

FIXED = "fixed"
ITEM = "item"
INSTRUMENT = "instrument"


@dataclass(frozen=True)
class DriveUrls:
    thumbnail: str
    preview: str
    uc: str
    original: str

    def candidates(self) -> tuple[str, ...]:
        """Distinct URLs in the order a viewer should try them."""
        return tuple(dict.fromkeys((self.thumbnail, self.uc, self.preview, self.original)))


def drive_file_id(url: str) -> str | None:
    file_id = None
    for pattern in _ID_PATTERNS:
        m = pattern.search(url)
        if m:
            file_id = m.group(1)
    return file_id


def drive_url_variants(url: str | None) -> DriveUrls | None:
    """Display variants of an image URL; None for a blank URL.

    Direct image links and links without a Drive file id are returned
    unchanged in every slot.
    """
    if not url:
        return None
    file_id = drive_file_id(url)
    if file_id is None or _DIRECT_IMAGE.search(url):
        return DriveUrls(thumbnail=url, preview=url, uc=url, original=url)
    return DriveUrls(
        thumbnail=f"https://drive.google.com/thumbnail?id={file_id}&sz=w1000",
        preview=f"https://drive.google.com/file/d/{file_id}/preview",
        uc=f"https://drive.google.com/uc?export=view&id={file_id}",
        original=url,
    )


@dataclass(frozen=True)
class GalleryEntry:
    category: str
    name: str
    url: str
    fallbacks: DriveUrls
    location: Location | None = None
    qty: str | None = None

    @property
    def key(self) -> str:
        """Packing-checklist key, ``"<category>:<name>"``."""
        return f"{self.category}:{self.name}"


def _entry(
    category: str,
    name: str,
    raw: str | None,
    location: Location | None,
    qty: str | None = None,
) -> GalleryEntry | None:
    variants = drive_url_variants(raw)
    if variants is None:
        return None
    return GalleryEntry(
        category=category,
        name=name,
        url=variants.thumbnail,
        fallbacks=variants,
        location=location,
        qty=qty,
    )


def gallery_entries(procedure: Procedure) -> list[GalleryEntry]:
    """Pictured entities of a procedure: fixed items, items, instruments."""
    entries = [
        _entry(FIXED, f.name, procedure.fixed_item_images.get(f.name),
               procedure.fixed_item_locations.get(f.name), qty=f.qty)
        for f in procedure.fixed_items
    ]
    entries += [
        _entry(ITEM, name, procedure.item_images.get(name),
               procedure.item_locations.get(name))
        for name in dict.fromkeys(item.name for item in procedure.items if item.name)
    ]
    entries += [
        _entry(INSTRUMENT, name, procedure.instrument_images.get(name),
               procedure.instrument_locations.get(name))
        for name in procedure.instruments
    ]
    return [e for e in entries if e is not None]
