"""
ledger_config -- single public entrypoint for pipeline configuration.

Responsibility:
    ``get_active_config()`` is the way runtime code obtains configuration.
    It returns a frozen ``LedgerConfig`` holding the default account codes,
    ERP connection settings, scheduler cadence and spreadsheet defaults.

Architecture position:
    Configuration sits above ``ledger_kernel`` and below the ingestion, ERP,
    batch and reporting packages.  The kernel never imports from here.

Failure modes:
    - ``FileNotFoundError`` -- the selected file does not exist.
    - ``ConfigError`` (a ``ValueError``) -- malformed YAML, unknown keys or
      out-of-range values.
"""

from __future__ import annotations

import os
from pathlib import Path

from ledger_kernel.logging_config import get_logger

from ledger_config.loader import load_config_file, parse_config
from ledger_config.schema import (
    AccountDefaults,
    ErpSettings,
    IngestionSettings,
    LedgerConfig,
    SchedulerSettings,
)

logger = get_logger("config")

CONFIG_PATH_ENV = "LEDGER_CONFIG_PATH"

_DEFAULT_CONFIG_FILE = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: Path | str | None = None) -> LedgerConfig:
    """
    Load the active configuration.

    Resolution order: the explicit ``path``, then the file named by the
    ``LEDGER_CONFIG_PATH`` environment variable, then the bundled
    ``sets/default.yaml``.  Every successful load emits
    ``ledger_config_loaded`` with the source checksum.
    """
    if path is not None:
        source = Path(path)
    elif os.environ.get(CONFIG_PATH_ENV):
        source = Path(os.environ[CONFIG_PATH_ENV])
    else:
        source = _DEFAULT_CONFIG_FILE

    config = load_config_file(source)
    logger.info(
        "ledger_config_loaded",
        extra={
            "config_path": str(source),
            "checksum": config.checksum,
            "source_system": config.erp.source_system,
        },
    )
    return config


__all__ = [
    "AccountDefaults",
    "CONFIG_PATH_ENV",
    "ErpSettings",
    "IngestionSettings",
    "LedgerConfig",
    "SchedulerSettings",
    "get_active_config",
    "parse_config",
]
