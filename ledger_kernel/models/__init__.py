"""ORM models for the ledger. Importing this package registers every table."""

from ledger_kernel.models.integration_config import IntegrationConfig
from ledger_kernel.models.managed_account import AccountType, ManagedAccount
from ledger_kernel.models.transaction import Transaction

__all__ = [
    "AccountType",
    "IntegrationConfig",
    "ManagedAccount",
    "Transaction",
]
