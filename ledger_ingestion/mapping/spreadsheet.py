"""
Spreadsheet normalizer: raw sheet rows -> TransactionDraft / SkippedRow.

Contract:
    ``SpreadsheetNormalizer.normalize()`` returns one draft per usable row
    and one SkippedRow (with an operator-facing reason) per unusable row.
    A bad row never aborts the sheet.

Resolution per row:
    date        alias table; unparsable -> skipped ("Data ausente ou inválida")
    amount      alias table, then column-name "contains" recovery; unparsable
                -> skipped, reason lists up to N valor/total columns
    debit       alias table, first of ``a;b|c``, else accounts.receivable
    credit      alias table, first of ``a;b|c``, else accounts.revenue
    currency    alias table, else accounts.currency
    origin      alias table, else ingestion.default_origin
    source_ref  alias table, as string; a repeated ref keeps its last row and
                earlier rows are skipped with the winning row number
    memo        alias table, else "Doc {n} · Cliente: {name}", else None

Architecture: ledger_ingestion/mapping.  ZERO I/O.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from ledger_config.schema import AccountDefaults, IngestionSettings
from ledger_kernel.domain.dtos import SkippedRow, TransactionDraft
from ledger_kernel.domain.parsers import parse_amount, parse_date
from ledger_kernel.logging_config import get_logger

from ledger_ingestion.adapters.base import SourceRow
from ledger_ingestion.domain.types import (
    DUPLICATE_REF_REASON,
    MISSING_AMOUNT_REASON,
    MISSING_DATE_REASON,
    NormalizationResult,
)
from ledger_ingestion.mapping.aliases import FieldAliasResolver, is_blank

logger = get_logger("ingestion.spreadsheet")

_ACCOUNT_SEPARATORS = re.compile(r"[;,|]")

_DOC_KEYS = ("numero", "pedido", "nota", "documento")
_CUSTOMER_KEYS = ("cliente", "razaosocial")

MEMO_SEPARATOR = " · "


def first_account(raw: Any, default: str) -> str:
    """First non-empty code of a ``;``/``,``/``|`` separated list, else ``default``."""
    if is_blank(raw):
        return default
    for part in _ACCOUNT_SEPARATORS.split(str(raw)):
        part = part.strip()
        if part:
            return part
    return default


def _first_present(normalized: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = normalized.get(key)
        if not is_blank(value):
            return value
    return None


def synthesize_memo(normalized: Mapping[str, Any]) -> str | None:
    """Memo built from a document number and a customer name, when present."""
    doc = _first_present(normalized, _DOC_KEYS)
    customer = _first_present(normalized, _CUSTOMER_KEYS)
    parts = []
    if doc is not None:
        parts.append(f"Doc {doc}")
    if customer is not None:
        parts.append(f"Cliente: {customer}")
    return MEMO_SEPARATOR.join(parts) if parts else None


class SpreadsheetNormalizer:
    """Turns sheet rows into drafts using a shared alias resolver."""

    def __init__(
        self,
        accounts: AccountDefaults | None = None,
        settings: IngestionSettings | None = None,
        resolver: FieldAliasResolver | None = None,
    ):
        self._accounts = accounts or AccountDefaults()
        self._settings = settings or IngestionSettings()
        self._resolver = resolver or FieldAliasResolver()

    def normalize(self, tenant_id: str, rows: Iterable[SourceRow]) -> NormalizationResult:
        parsed: list[tuple[int, TransactionDraft]] = []
        skipped: list[SkippedRow] = []
        for row in rows:
            outcome = self.normalize_row(tenant_id, row)
            if isinstance(outcome, SkippedRow):
                skipped.append(outcome)
                logger.info(
                    "spreadsheet_row_skipped",
                    extra={"row_number": outcome.row_number, "reason": outcome.reason},
                )
            else:
                parsed.append((row.row_number, outcome))

        # A repeated (origin, source_ref) keeps its last row
        last_row: dict[tuple[str, str], int] = {}
        for row_number, draft in parsed:
            if draft.identity is not None:
                last_row[draft.identity] = row_number

        drafts: list[TransactionDraft] = []
        for row_number, draft in parsed:
            winner = last_row.get(draft.identity) if draft.identity is not None else None
            if winner is not None and winner != row_number:
                duplicate = SkippedRow(row_number, DUPLICATE_REF_REASON.format(row=winner))
                skipped.append(duplicate)
                logger.info(
                    "spreadsheet_row_skipped",
                    extra={"row_number": row_number, "reason": duplicate.reason},
                )
                continue
            drafts.append(draft)

        skipped.sort(key=lambda s: s.row_number)
        return NormalizationResult(drafts=tuple(drafts), skipped=tuple(skipped))

    def normalize_row(self, tenant_id: str, row: SourceRow) -> TransactionDraft | SkippedRow:
        resolver = self._resolver
        normalized = resolver.normalize_record(row.values)

        tx_date = parse_date(resolver.lookup(normalized, "date"))
        if tx_date is None:
            return SkippedRow(row.row_number, MISSING_DATE_REASON)

        amount_raw = resolver.lookup(normalized, "amount")
        if amount_raw is None:
            recovered = resolver.contains_lookup(normalized)
            amount_raw = recovered[1] if recovered else None
        amount = parse_amount(amount_raw)
        if amount is None:
            return SkippedRow(row.row_number, self._amount_reason(normalized))

        accrual_raw = resolver.lookup(normalized, "accrual_date")
        accrual_date = parse_date(accrual_raw) if accrual_raw is not None else None

        ref_raw = resolver.lookup(normalized, "source_ref")
        memo_raw = resolver.lookup(normalized, "memo")
        origin_raw = resolver.lookup(normalized, "origin")

        return TransactionDraft(
            tenant_id=tenant_id,
            date=tx_date,
            accrual_date=accrual_date,
            debit=first_account(resolver.lookup(normalized, "debit"), self._accounts.receivable),
            credit=first_account(resolver.lookup(normalized, "credit"), self._accounts.revenue),
            amount=amount,
            currency=self._currency(resolver.lookup(normalized, "currency")),
            origin=str(origin_raw).strip() if origin_raw is not None else self._settings.default_origin,
            source_ref=str(ref_raw).strip() if ref_raw is not None else None,
            memo=str(memo_raw) if memo_raw is not None else synthesize_memo(normalized),
            meta=dict(row.values),
        )

    def _currency(self, raw: Any) -> str:
        if raw is None:
            return self._accounts.currency
        code = str(raw).strip().upper()
        return code if len(code) == 3 and code.isalpha() else self._accounts.currency

    def _amount_reason(self, normalized: Mapping[str, Any]) -> str:
        columns = self._resolver.diagnostic_columns(
            normalized, limit=self._settings.max_diagnostic_columns
        )
        if not columns:
            return MISSING_AMOUNT_REASON
        listed = ", ".join(f"{key}:{'' if value is None else value}" for key, value in columns)
        return f"{MISSING_AMOUNT_REASON} (colunas: {listed})"
