"""
ledger_ingestion.domain.types -- Pure frozen dataclasses for ingestion.

ZERO I/O.  Imports only from ledger_kernel/domain/.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ledger_kernel.domain.dtos import SkippedRow, TransactionDraft


@dataclass(frozen=True)
class NormalizationResult:
    """Drafts produced from one sheet plus the rows that produced none."""

    drafts: tuple[TransactionDraft, ...] = ()
    skipped: tuple[SkippedRow, ...] = ()


@dataclass(frozen=True)
class ReconciliationResult:
    """
    Outcome of reconciling one batch of drafts.

    ``conflicts`` counts inserts that hit the uniqueness constraint and were
    applied as updates instead.  ``duplicates_in_batch`` counts drafts that
    repeated an earlier draft's key in the same batch (the last one wins).
    """

    inserted: int = 0
    updated: int = 0
    conflicts: int = 0
    duplicates_in_batch: int = 0

    @property
    def persisted(self) -> int:
        """Drafts that became new ledger rows."""
        return self.inserted

    @property
    def written(self) -> int:
        """Drafts written in any form (insert or update)."""
        return self.inserted + self.updated


@dataclass(frozen=True)
class ImportSummary:
    """Result of ``import_spreadsheet``."""

    imported: int
    skipped: int
    skipped_rows: tuple[SkippedRow, ...] = ()
    sheet: str | None = None
    warning: str | None = None
    inserted: int = 0
    updated: int = 0

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "imported": self.imported,
            "skipped": self.skipped,
            "skippedRows": [
                {"row": s.row_number, "reason": s.reason} for s in self.skipped_rows
            ],
            "sheet": self.sheet,
        }
        if self.warning:
            payload["warning"] = self.warning
        return payload


EMPTY_SHEET_WARNING = "A planilha não contém linhas para importar."
NO_VALID_ROWS_WARNING = "Nenhuma linha válida encontrada. Verifique os campos obrigatórios."

MISSING_DATE_REASON = "Data ausente ou inválida"
MISSING_AMOUNT_REASON = "Valor ausente ou inválido"
DUPLICATE_REF_REASON = "Referência repetida na planilha (mantida a linha {row})"
