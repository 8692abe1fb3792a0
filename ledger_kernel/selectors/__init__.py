"""Read-only query selectors over the ledger tables."""

from ledger_kernel.selectors.integration_selector import (
    IntegrationConfigSelector,
    IntegrationSnapshot,
)
from ledger_kernel.selectors.ledger_selector import (
    AccountView,
    AggregateFilters,
    AggregateRow,
    LedgerSelector,
)

__all__ = [
    "AccountView",
    "AggregateFilters",
    "AggregateRow",
    "IntegrationConfigSelector",
    "IntegrationSnapshot",
    "LedgerSelector",
]
