"""
Configuration schema for the ingestion pipeline.

Every section is a frozen dataclass with working defaults, so an empty YAML
file yields a usable configuration.  Account codes live here and nowhere
else: the mapper, the spreadsheet normalizer and the scheduler receive them
through ``LedgerConfig``.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class AccountDefaults:
    """Fallback account codes used when a source row names none."""

    # Debit side of a sale with no explicit account
    receivable: str = "Clientes"
    # Credit side of a sale, and the item account fallback
    revenue: str = "3.1"
    # Debit side of a payable
    expense: str = "5.1"
    # Credit side of a payable
    cash: str = "Caixa/Bancos"
    currency: str = "BRL"

    def __post_init__(self):
        for name in ("receivable", "revenue", "expense", "cash"):
            if not getattr(self, name):
                raise ValueError(f"accounts.{name} cannot be empty")
        if len(self.currency) != 3:
            raise ValueError("accounts.currency must be a 3-letter ISO 4217 code")


@dataclass(frozen=True)
class ErpSettings:
    """ERP connection and origin-tagging settings."""

    source_system: str = "tiny"
    origin_prefix: str = "ERP:Tiny"
    base_url: str = "https://api.tiny.com.br/api2/"
    page_size: int = 100
    detail_concurrency: int = 4
    timeout_seconds: float = 30

    def __post_init__(self):
        if self.page_size <= 0:
            raise ValueError("erp.page_size must be positive")
        if self.detail_concurrency <= 0:
            raise ValueError("erp.detail_concurrency must be positive")
        if self.timeout_seconds <= 0:
            raise ValueError("erp.timeout_seconds must be positive")

    def origin_for(self, module: str) -> str:
        """Origin tag for one ERP module, e.g. ``ERP:Tiny:orders``."""
        return f"{self.origin_prefix}:{module}"


@dataclass(frozen=True)
class SchedulerSettings:
    tick_interval_seconds: int = 300
    default_frequency_minutes: int = 1440
    max_parallel_tenants: int = 4

    def __post_init__(self):
        if self.tick_interval_seconds <= 0:
            raise ValueError("scheduler.tick_interval_seconds must be positive")
        if self.default_frequency_minutes <= 0:
            raise ValueError("scheduler.default_frequency_minutes must be positive")
        if self.max_parallel_tenants <= 0:
            raise ValueError("scheduler.max_parallel_tenants must be positive")


@dataclass(frozen=True)
class IngestionSettings:
    default_origin: str = "import:xlsx"
    preferred_sheet: str = "Transactions"
    # Candidate columns echoed in an "invalid amount" skip reason
    max_diagnostic_columns: int = 6


@dataclass(frozen=True)
class LedgerConfig:
    """Root configuration object."""

    accounts: AccountDefaults = field(default_factory=AccountDefaults)
    erp: ErpSettings = field(default_factory=ErpSettings)
    scheduler: SchedulerSettings = field(default_factory=SchedulerSettings)
    ingestion: IngestionSettings = field(default_factory=IngestionSettings)
    # SHA-256 of the canonical source data; empty for in-code defaults
    checksum: str = ""

    @classmethod
    def with_defaults(cls) -> LedgerConfig:
        """Configuration built entirely from dataclass defaults."""
        return cls()
