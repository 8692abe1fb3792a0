"""
ledger_kernel -- Canonical per-tenant transaction ledger.

Holds the persistence layer (models, engine, store, selectors), the pure
value parsers and draft DTOs shared by every ingestion path, the injectable
clock, structured logging and the typed exception hierarchy.

Architecture:
    Nothing in ledger_kernel imports from ledger_ingestion, ledger_erp,
    ledger_batch or ledger_reporting.
"""
