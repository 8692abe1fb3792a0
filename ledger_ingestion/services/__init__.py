"""Ingestion services: reconciliation and spreadsheet import."""

from ledger_ingestion.services.import_service import ImportService, import_spreadsheet
from ledger_ingestion.services.reconciliation import ReconciliationEngine

__all__ = [
    "ImportService",
    "ReconciliationEngine",
    "import_spreadsheet",
]
