"""
Procedure catalog: row codec, sources, fuzzy search and image helpers.
"""

from challan_catalog.catalog_service import CatalogService
from challan_catalog.codec import (
    EditableInstrument,
    EditableItem,
    ProcedureRow,
    encode_procedure_row,
    parse_catalog,
    parse_catalog_row,
    procedure_to_row,
)
from challan_catalog.images import DriveUrls, GalleryEntry, drive_url_variants, gallery_entries
from challan_kernel.domain.item_names import remove_fixed_item_part, remove_selectable_item_part
from challan_catalog.search import SearchIndex

__all__ = [
    "CatalogService",
    "DriveUrls",
    "EditableInstrument",
    "EditableItem",
    "GalleryEntry",
    "ProcedureRow",
    "SearchIndex",
    "drive_url_variants",
    "encode_procedure_row",
    "gallery_entries",
    "parse_catalog",
    "parse_catalog_row",
    "procedure_to_row",
    "remove_fixed_item_part",
    "remove_selectable_item_part",
]
