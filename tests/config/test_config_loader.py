"""Tests for ledger_config: YAML loading, validation and active-config resolution."""

from pathlib import Path

import pytest

from ledger_config import CONFIG_PATH_ENV, LedgerConfig, get_active_config, parse_config
from ledger_config.loader import compute_checksum, load_config_file
from ledger_kernel.exceptions import ConfigError


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "ledger.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestParseConfig:
    def test_empty_mapping_uses_defaults(self):
        config = parse_config({})
        defaults = LedgerConfig.with_defaults()
        assert config.accounts == defaults.accounts
        assert config.erp == defaults.erp
        assert config.scheduler.default_frequency_minutes == 1440

    def test_partial_section_overrides(self):
        config = parse_config({"accounts": {"revenue": "3.1.01"}, "erp": {"page_size": 50}})
        assert config.accounts.revenue == "3.1.01"
        assert config.accounts.receivable == "Clientes"
        assert config.erp.page_size == 50

    def test_unknown_key_raises_value_error(self):
        with pytest.raises(ValueError):
            parse_config({"accounts": {"revenu": "3.1"}})

    def test_unknown_section_raises(self):
        with pytest.raises(ConfigError):
            parse_config({"reports": {}})

    def test_out_of_range_value_raises(self):
        with pytest.raises(ConfigError):
            parse_config({"scheduler": {"max_parallel_tenants": 0}})

    def test_checksum_is_deterministic(self):
        data = {"erp": {"page_size": 10}, "accounts": {"cash": "1.1"}}
        reordered = {"accounts": {"cash": "1.1"}, "erp": {"page_size": 10}}
        assert parse_config(data).checksum == parse_config(reordered).checksum == compute_checksum(data)


class TestLoadConfigFile:
    def test_bundled_default_file(self, monkeypatch):
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        config = get_active_config()
        assert config.accounts.receivable == "Clientes"
        assert config.accounts.revenue == "3.1"
        assert config.ingestion.default_origin == "import:xlsx"
        assert config.erp.origin_for("orders") == "ERP:Tiny:orders"
        assert config.checksum

    def test_malformed_yaml(self, tmp_path):
        path = _write(tmp_path, "accounts: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config_file(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = _write(tmp_path, "- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config_file(tmp_path / "absent.yaml")

    def test_environment_variable_selects_file(self, tmp_path, monkeypatch, captured_logs):
        path = _write(tmp_path, "accounts:\n  currency: USD\n")
        monkeypatch.setenv(CONFIG_PATH_ENV, str(path))

        config = get_active_config()

        assert config.accounts.currency == "USD"
        loaded = [r for r in captured_logs() if r["message"] == "ledger_config_loaded"]
        assert loaded and loaded[-1]["config_path"] == str(path)

    def test_explicit_path_wins_over_environment(self, tmp_path, monkeypatch):
        env_path = _write(tmp_path, "accounts:\n  currency: USD\n")
        explicit = tmp_path / "explicit.yaml"
        explicit.write_text("accounts:\n  currency: EUR\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_PATH_ENV, str(env_path))

        assert get_active_config(explicit).accounts.currency == "EUR"
