"""Field alias resolution and spreadsheet normalization (pure, no I/O)."""

from ledger_ingestion.mapping.aliases import (
    DEFAULT_ALIAS_TABLE,
    DEFAULT_AMOUNT_PATTERNS,
    FieldAliasResolver,
    normalize_key,
)
from ledger_ingestion.mapping.spreadsheet import SpreadsheetNormalizer, first_account, synthesize_memo

__all__ = [
    "DEFAULT_ALIAS_TABLE",
    "DEFAULT_AMOUNT_PATTERNS",
    "FieldAliasResolver",
    "SpreadsheetNormalizer",
    "first_account",
    "normalize_key",
    "synthesize_memo",
]
