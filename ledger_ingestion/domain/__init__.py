"""Pure ingestion types.  ZERO I/O."""

from ledger_ingestion.domain.types import (
    ImportSummary,
    NormalizationResult,
    ReconciliationResult,
)

__all__ = [
    "ImportSummary",
    "NormalizationResult",
    "ReconciliationResult",
]
