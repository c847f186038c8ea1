"""
Catalog sources: CSV file, XLSX workbook and the published CSV feed.
"""

import httpx
import openpyxl
import pytest

from challan_catalog.adapters import (
    CatalogSource,
    CsvFileSource,
    HttpCsvFeed,
    XlsxFileSource,
    parse_csv_rows,
)
from challan_kernel.exceptions import ConfigurationError, TransportError

HEADER = "Procedure,Items,Fixed Items,Fixed Qty,Instruments,Type"
CSV_TEXT = (
    f"{HEADER}\n"
    'Tibia Nailing,"Nail {9mm:1, 10mm:2}|End Cap",Guide Wire,2,Reamer,Trauma\n'
    "\n"
    ",,,,,\n"
    "Hip Replacement,Femoral Stem,,,,Arthroplasty\n"
)


class TestParseCsvRows:

    def test_drops_header_and_blank_lines(self):
        rows = parse_csv_rows(CSV_TEXT)
        assert [r[0] for r in rows] == ["Tibia Nailing", "Hip Replacement"]
        assert rows[0][1] == "Nail {9mm:1, 10mm:2}|End Cap"

    def test_strips_byte_order_mark(self):
        rows = parse_csv_rows("\ufeff" + CSV_TEXT, has_header=False)
        assert rows[0][0] == "Procedure"


class TestCsvFileSource:

    def test_reads_file_with_bom(self, tmp_path):
        path = tmp_path / "catalog.csv"
        path.write_bytes(b"\xef\xbb\xbf" + CSV_TEXT.encode("utf-8"))
        source = CsvFileSource(path)
        assert isinstance(source, CatalogSource)
        assert [r[0] for r in source.fetch_rows()] == ["Tibia Nailing", "Hip Replacement"]


class TestXlsxFileSource:

    @pytest.fixture
    def workbook_path(self, tmp_path):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Catalog"
        ws.append(HEADER.split(","))
        ws.append(["Tibia Nailing", "Nail {9mm:1}", "Guide Wire", 2.0, "Reamer", "Trauma"])
        ws.append([None, None, None, None, None, None])
        ws.append(["Hip Replacement", "Femoral Stem", None, None, None, " Arthroplasty "])
        path = tmp_path / "catalog.xlsx"
        wb.save(path)
        return path

    def test_reads_active_sheet(self, workbook_path):
        rows = XlsxFileSource(workbook_path).fetch_rows()
        assert rows == [
            ["Tibia Nailing", "Nail {9mm:1}", "Guide Wire", "2", "Reamer", "Trauma"],
            ["Hip Replacement", "Femoral Stem", "", "", "", "Arthroplasty"],
        ]

    def test_reads_named_sheet(self, workbook_path):
        rows = XlsxFileSource(workbook_path, sheet="Catalog").fetch_rows()
        assert len(rows) == 2


def _feed(handler) -> HttpCsvFeed:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpCsvFeed("https://sheets.example.com/pub?output=csv", client=client)


class TestHttpCsvFeed:

    def test_fetches_rows(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, text=CSV_TEXT)

        rows = _feed(handler).fetch_rows()
        assert seen[0].method == "GET"
        assert [r[0] for r in rows] == ["Tibia Nailing", "Hip Replacement"]

    def test_http_error_raises_transport_error(self):
        feed = _feed(lambda request: httpx.Response(503, text="unavailable"))
        with pytest.raises(TransportError) as exc_info:
            feed.fetch_rows()
        assert exc_info.value.status_code == 503

    def test_network_error_raises_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError) as exc_info:
            _feed(handler).fetch_rows()
        assert exc_info.value.status_code is None
        assert "connection refused" in str(exc_info.value)

    def test_blank_url_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError):
            HttpCsvFeed("   ")
