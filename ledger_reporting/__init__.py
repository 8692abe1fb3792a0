"""
Ledger reporting (``ledger_reporting``).

Read-only grouped profit-and-loss reports: per-period, per-credit-account
totals with an account-type, period and account summary, plus the filter
catalog for report screens.  Nothing in this package writes to the ledger.
"""

from ledger_reporting.models import (
    AggregationMeta,
    AggregationQuery,
    AggregationReport,
    AggregationSummary,
    FilterCatalog,
)
from ledger_reporting.service import AggregationService
from ledger_reporting.summaries import build_summary

__all__ = [
    "AggregationMeta",
    "AggregationQuery",
    "AggregationReport",
    "AggregationService",
    "AggregationSummary",
    "FilterCatalog",
    "build_summary",
]
