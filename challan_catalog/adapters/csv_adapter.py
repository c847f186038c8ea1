"""
CSV catalog sources.

The published catalog sheet is a CSV export: one header row, then one row
per procedure.  Blank lines are skipped.  A UTF-8 byte-order mark is
stripped when the encoding is utf-8.
"""

from __future__ import annotations

import csv
import io
from pathlib import Path


def _get_encoding(encoding: str) -> str:
    if encoding.lower() == "utf-8":
        return "utf-8-sig"  # Strip BOM if present
    return encoding


def parse_csv_rows(text: str, has_header: bool = True) -> list[list[str]]:
    """Split CSV text into rows, dropping blank lines and the header."""
    if text.startswith("\ufeff"):
        text = text[1:]
    rows = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    return rows[1:] if has_header else rows


class CsvFileSource:
    """Catalog rows from a CSV file on disk (e.g. a downloaded export)."""

    def __init__(self, path: Path | str, encoding: str = "utf-8", has_header: bool = True):
        self._path = Path(path)
        self._encoding = _get_encoding(encoding)
        self._has_header = has_header

    def fetch_rows(self) -> list[list[str]]:
        with self._path.open("r", encoding=self._encoding, newline="") as f:
            return parse_csv_rows(f.read(), has_header=self._has_header)
