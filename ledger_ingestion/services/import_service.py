"""
Import service: upload -> sheet -> drafts -> reconcile.

Orchestrates the XLSX adapter, the spreadsheet normalizer and the
reconciliation engine.  Uses structured logging (LogContext,
get_logger("ingestion.*")).

Input errors (unreadable bytes, no sheet) raise before anything is written.
Row errors are reported in the summary and never raise.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from ledger_config.schema import LedgerConfig
from ledger_kernel.db.engine import session_scope
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.services.tenant_locks import TenantLockRegistry, default_registry

from ledger_ingestion.adapters.base import SourceAdapter
from ledger_ingestion.adapters.xlsx_adapter import XlsxSourceAdapter
from ledger_ingestion.domain.types import (
    EMPTY_SHEET_WARNING,
    NO_VALID_ROWS_WARNING,
    ImportSummary,
)
from ledger_ingestion.mapping.spreadsheet import SpreadsheetNormalizer
from ledger_ingestion.services.reconciliation import ReconciliationEngine

logger = get_logger("ingestion.import_service")


class ImportService:
    """
    Spreadsheet import for one session.

    The service flushes; the caller owns commit/rollback.
    """

    def __init__(
        self,
        session: Session,
        config: LedgerConfig | None = None,
        adapter: SourceAdapter | None = None,
        locks: TenantLockRegistry | None = None,
    ):
        self._config = config or LedgerConfig.with_defaults()
        self._adapter = adapter or XlsxSourceAdapter()
        self._normalizer = SpreadsheetNormalizer(
            accounts=self._config.accounts,
            settings=self._config.ingestion,
        )
        self._engine = ReconciliationEngine(session)
        self._locks = locks or default_registry

    def import_spreadsheet(self, tenant_id: str, file_bytes: bytes) -> ImportSummary:
        with LogContext.bind(tenant_id=tenant_id, producer="import:xlsx"):
            contents = self._adapter.read(
                file_bytes,
                {"preferred_sheet": self._config.ingestion.preferred_sheet},
            )
            logger.info(
                "spreadsheet_import_started",
                extra={"sheet": contents.sheet_name, "rows": len(contents.rows)},
            )

            if not contents.rows:
                logger.warning("spreadsheet_empty", extra={"sheet": contents.sheet_name})
                return ImportSummary(
                    imported=0,
                    skipped=0,
                    sheet=contents.sheet_name,
                    warning=EMPTY_SHEET_WARNING,
                )

            normalized = self._normalizer.normalize(tenant_id, contents.rows)
            if not normalized.drafts:
                logger.warning(
                    "spreadsheet_no_valid_rows",
                    extra={"sheet": contents.sheet_name, "skipped": len(normalized.skipped)},
                )
                return ImportSummary(
                    imported=0,
                    skipped=len(normalized.skipped),
                    skipped_rows=normalized.skipped,
                    sheet=contents.sheet_name,
                    warning=NO_VALID_ROWS_WARNING,
                )

            with self._locks.hold(tenant_id):
                result = self._engine.reconcile(tenant_id, normalized.drafts)

            summary = ImportSummary(
                imported=result.written,
                skipped=len(normalized.skipped),
                skipped_rows=normalized.skipped,
                sheet=contents.sheet_name,
                inserted=result.inserted,
                updated=result.updated,
            )
            logger.info(
                "spreadsheet_import_completed",
                extra={
                    "sheet": summary.sheet,
                    "imported": summary.imported,
                    "skipped": summary.skipped,
                    "inserted": result.inserted,
                    "updated": result.updated,
                },
            )
            return summary


def import_spreadsheet(
    tenant_id: str,
    file_bytes: bytes,
    config: LedgerConfig | None = None,
) -> ImportSummary:
    """Import one upload in its own transaction (engine must be initialized)."""
    with session_scope() as session:
        return ImportService(session, config=config).import_spreadsheet(tenant_id, file_bytes)
