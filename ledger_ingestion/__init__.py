"""
ledger_ingestion -- spreadsheet ingestion and ledger reconciliation.

Pipeline: XLSX adapter -> field alias resolver -> spreadsheet normalizer ->
reconciliation engine.  The reconciliation engine is also the write path for
ERP syncs (ledger_erp).
"""

from ledger_ingestion.domain.types import ImportSummary, ReconciliationResult
from ledger_ingestion.services.import_service import ImportService, import_spreadsheet
from ledger_ingestion.services.reconciliation import ReconciliationEngine

__all__ = [
    "ImportService",
    "ImportSummary",
    "ReconciliationEngine",
    "ReconciliationResult",
    "import_spreadsheet",
]
