"""
XLSX catalog source for a downloaded copy of the catalog workbook.

Reads the first (or named) sheet with openpyxl in read-only mode.  Cell
values are normalized to strings: None becomes "", whole-number floats
lose their ".0" (quantities typed as numbers), everything is stripped.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import openpyxl


def _cell_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value == int(value):
        return str(int(value))
    return str(value).strip()


class XlsxFileSource:
    """Catalog rows from an .xlsx workbook."""

    def __init__(self, path: Path | str, sheet: int | str | None = None, has_header: bool = True):
        self._path = Path(path)
        self._sheet = sheet
        self._has_header = has_header

    def _get_sheet(self, wb: Any) -> Any:
        if self._sheet is None:
            return wb.active
        if isinstance(self._sheet, int):
            return wb.worksheets[self._sheet]
        return wb[self._sheet]

    def fetch_rows(self) -> list[list[str]]:
        wb = openpyxl.load_workbook(self._path, read_only=True, data_only=True)
        try:
            sheet = self._get_sheet(wb)
            rows = [
                [_cell_value(v) for v in row]
                for row in sheet.iter_rows(values_only=True)
            ]
        finally:
            wb.close()
        rows = [row for row in rows if any(row)]
        return rows[1:] if self._has_header else rows
