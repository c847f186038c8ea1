"""Catalog sources: published CSV feed, CSV file, XLSX workbook."""

from challan_catalog.adapters.base import CatalogSource
from challan_catalog.adapters.csv_adapter import CsvFileSource, parse_csv_rows
from challan_catalog.adapters.http_feed import HttpCsvFeed
from challan_catalog.adapters.xlsx_adapter import XlsxFileSource

__all__ = [
    "CatalogSource",
    "CsvFileSource",
    "HttpCsvFeed",
    "XlsxFileSource",
    "parse_csv_rows",
]
