"""
Configuration Loader (``ledger_config.loader``).

Loads a YAML configuration file and parses it into the frozen dataclasses of
``ledger_config.schema``.  Runtime callers go through
``ledger_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``ConfigError`` wrapping the ``yaml.YAMLError``.
* Unknown section or key  -> ``ConfigError`` (a ``ValueError``).
* Out-of-range value  -> ``ConfigError`` wrapping the dataclass check.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from ledger_kernel.exceptions import ConfigError

from ledger_config.schema import (
    AccountDefaults,
    ErpSettings,
    IngestionSettings,
    LedgerConfig,
    SchedulerSettings,
)

_SECTIONS: dict[str, type] = {
    "accounts": AccountDefaults,
    "erp": ErpSettings,
    "scheduler": SchedulerSettings,
    "ingestion": IngestionSettings,
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; an empty file yields an empty dict."""
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(str(path), f"malformed YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(str(path), "top level must be a mapping")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_section(name: str, data: Any, source: str = "<dict>"):
    """Build one section dataclass, rejecting keys it does not declare."""
    cls = _SECTIONS[name]
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(source, f"section {name!r} must be a mapping")

    allowed = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ConfigError(source, f"unknown keys in {name!r}: {', '.join(unknown)}")

    try:
        return cls(**data)
    except (TypeError, ValueError) as exc:
        raise ConfigError(source, str(exc)) from exc


def parse_config(data: dict[str, Any], source: str = "<dict>") -> LedgerConfig:
    """Parse a full configuration mapping into a ``LedgerConfig``."""
    unknown = sorted(set(data) - set(_SECTIONS))
    if unknown:
        raise ConfigError(source, f"unknown sections: {', '.join(unknown)}")

    sections = {
        name: parse_section(name, data.get(name), source) for name in _SECTIONS
    }
    return LedgerConfig(**sections, checksum=compute_checksum(data))


def load_config_file(path: Path) -> LedgerConfig:
    """Load and parse one YAML configuration file."""
    return parse_config(load_yaml_file(path), source=str(path))
