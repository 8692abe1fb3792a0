"""
XLSX source adapter for manually uploaded transaction sheets.

Layout rules:
  - sheet: the one named like ``options["preferred_sheet"]`` (case-insensitive,
    default "Transactions"), else the first sheet
  - row 1 is the header; data starts at row 2
  - empty header cells become ``Column_N``; duplicate headers get a suffix
  - fully blank rows are dropped; row numbers stay those of the sheet
"""

from __future__ import annotations

import re
import zipfile
from io import BytesIO
from typing import Any

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from ledger_kernel.exceptions import MissingSheetError, SpreadsheetReadError
from ledger_kernel.logging_config import get_logger

from ledger_ingestion.adapters.base import SheetContents, SourceRow

logger = get_logger("ingestion.xlsx_adapter")

DEFAULT_SHEET = "Transactions"


def _normalize_header_cell(value: Any) -> str:
    """Normalize a header cell for use as a record key."""
    if value is None:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip()


def _cell_value(value: Any) -> Any:
    """Native cell value; blanks become None, integral floats become int."""
    if value is None:
        return None
    if isinstance(value, float):
        if value == int(value):
            return int(value)
        return value
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _headers(header_row: tuple) -> list[str]:
    last = 0
    for idx, value in enumerate(header_row):
        if _normalize_header_cell(value):
            last = idx + 1

    headers: list[str] = []
    for c in range(last):
        key = _normalize_header_cell(header_row[c]) or f"Column_{c + 1}"
        base = key
        cnt = 0
        while key in headers:
            cnt += 1
            key = f"{base}_{cnt}"
        headers.append(key)
    return headers


class XlsxSourceAdapter:
    """Read an uploaded .xlsx workbook as one dict per data row."""

    def read(self, data: bytes, options: dict[str, Any]) -> SheetContents:
        wb = self._load(data)
        try:
            sheet = self._get_sheet(wb, options)
            raw_rows = sheet.iter_rows(values_only=True)
            header_row = next(raw_rows, None)
            if header_row is None:
                return SheetContents(sheet_name=sheet.title, columns=(), rows=())

            headers = _headers(header_row)
            rows: list[SourceRow] = []
            for row_number, raw in enumerate(raw_rows, start=2):
                vals = [_cell_value(raw[c]) if c < len(raw) else None for c in range(len(headers))]
                if all(v is None for v in vals):
                    continue
                rows.append(SourceRow(row_number=row_number, values=dict(zip(headers, vals))))

            logger.debug(
                "xlsx_sheet_read",
                extra={"sheet": sheet.title, "columns": len(headers), "rows": len(rows)},
            )
            return SheetContents(sheet_name=sheet.title, columns=tuple(headers), rows=tuple(rows))
        finally:
            wb.close()

    def _load(self, data: bytes) -> Any:
        if not data:
            raise SpreadsheetReadError("empty upload")
        try:
            return openpyxl.load_workbook(BytesIO(data), read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as exc:
            raise SpreadsheetReadError(str(exc) or type(exc).__name__) from exc

    def _get_sheet(self, wb: Any, options: dict[str, Any]) -> Any:
        names = list(wb.sheetnames)
        if not names:
            raise MissingSheetError()
        preferred = str(options.get("preferred_sheet") or DEFAULT_SHEET).lower()
        for name in names:
            if name.lower() == preferred:
                return wb[name]
        return wb[names[0]]
