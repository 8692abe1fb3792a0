"""
Source adapter protocol and the DTOs it produces.

Contract:
    SourceAdapter.read() turns uploaded bytes into one SourceRow per
    non-blank data row of the selected sheet.

Architecture: ledger_ingestion/adapters.  Byte parsing only, no DB.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class SourceRow:
    """One data row keyed by header, with its 1-based sheet row number."""

    row_number: int
    values: dict[str, Any]


@dataclass(frozen=True)
class SheetContents:
    """Every data row of the sheet an adapter selected."""

    sheet_name: str
    columns: tuple[str, ...]
    rows: tuple[SourceRow, ...]


@runtime_checkable
class SourceAdapter(Protocol):
    """Protocol for reading uploaded tabular files."""

    def read(self, data: bytes, options: dict[str, Any]) -> SheetContents:
        ...
