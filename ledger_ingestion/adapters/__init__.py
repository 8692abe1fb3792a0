"""Source adapters for spreadsheet ingestion (byte parsing only, no DB)."""

from ledger_ingestion.adapters.base import SheetContents, SourceAdapter, SourceRow
from ledger_ingestion.adapters.xlsx_adapter import XlsxSourceAdapter

__all__ = [
    "SheetContents",
    "SourceAdapter",
    "SourceRow",
    "XlsxSourceAdapter",
]
