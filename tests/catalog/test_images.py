"""
Drive link variants and gallery entries.
"""

from challan_catalog.images import (
    FIXED,
    INSTRUMENT,
    ITEM,
    drive_file_id,
    drive_url_variants,
    gallery_entries,
)
from challan_kernel.domain.catalog import Location, Procedure


class TestDriveFileId:

    def test_file_d_link(self):
        assert drive_file_id("https://drive.google.com/file/d/ABC123/view?usp=sharing") == "ABC123"

    def test_open_link(self):
        assert drive_file_id("https://drive.google.com/open?id=XYZ") == "XYZ"

    def test_uc_link(self):
        assert drive_file_id("https://drive.google.com/uc?export=view&id=Q1") == "Q1"

    def test_thumbnail_link(self):
        assert drive_file_id("https://drive.google.com/thumbnail?id=T9&sz=w400") == "T9"

    def test_no_id(self):
        assert drive_file_id("https://example.com/page") is None


class TestDriveUrlVariants:

    def test_blank_url(self):
        assert drive_url_variants("") is None
        assert drive_url_variants(None) is None

    def test_drive_link_variants(self):
        urls = drive_url_variants("https://drive.google.com/file/d/ABC/view")
        assert urls.thumbnail == "https://drive.google.com/thumbnail?id=ABC&sz=w1000"
        assert urls.preview == "https://drive.google.com/file/d/ABC/preview"
        assert urls.uc == "https://drive.google.com/uc?export=view&id=ABC"
        assert urls.original == "https://drive.google.com/file/d/ABC/view"

    def test_candidate_order(self):
        urls = drive_url_variants("https://drive.google.com/file/d/ABC/view")
        assert urls.candidates() == (urls.thumbnail, urls.uc, urls.preview, urls.original)

    def test_direct_image_is_used_as_is(self):
        url = "https://cdn.example.com/plate.PNG"
        urls = drive_url_variants(url)
        assert (urls.thumbnail, urls.preview, urls.uc, urls.original) == (url, url, url, url)
        assert urls.candidates() == (url,)

    def test_link_without_id_is_used_as_is(self):
        url = "https://example.com/page"
        assert drive_url_variants(url).thumbnail == url


class TestGalleryEntries:

    def test_order_and_skipping(self, procedures):
        entries = gallery_entries(procedures[0])
        assert [(e.category, e.name) for e in entries] == [
            (FIXED, "Guide Wire"),
            (ITEM, "Interlocking Nail"),
            (INSTRUMENT, "Nail Inserter"),
        ]

    def test_entry_details(self, procedures):
        fixed, item, instrument = gallery_entries(procedures[0])
        assert fixed.qty == "1"
        assert fixed.url == "https://drive.google.com/thumbnail?id=guidewire&sz=w1000"
        assert item.location == Location("Store A", "R1", "B4")
        assert instrument.location == Location("Store B", "R2", "B1")
        assert instrument.key == "instrument:Nail Inserter"

    def test_procedure_without_images(self):
        assert gallery_entries(Procedure(name="Empty", instruments=("Drill",))) == []


class TestLocationDisplay:

    def test_joins_non_empty_parts(self):
        assert Location("Store A", "", "B4").display() == "Store A · B4"

    def test_empty_location(self):
        assert Location().display() is None
        assert Location().is_empty()
