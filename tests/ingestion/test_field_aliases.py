"""Tests for ledger_ingestion.mapping.aliases."""

import pytest

from ledger_ingestion.mapping.aliases import (
    DEFAULT_ALIAS_TABLE,
    FieldAliasResolver,
    is_blank,
    normalize_key,
)


class TestNormalizeKey:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Data do Pedido", "datadopedido"),
            ("Valor Total (R$)", "valortotalr"),
            ("Débito", "debito"),
            ("CONTA_CRÉDITO", "contacredito"),
            ("  Histórico ", "historico"),
            ("Moeda", "moeda"),
        ],
    )
    def test_strips_accents_case_and_punctuation(self, raw, expected):
        assert normalize_key(raw) == expected

    def test_table_aliases_are_normalized(self):
        for aliases in DEFAULT_ALIAS_TABLE.values():
            for alias in aliases:
                assert alias == normalize_key(alias)

    def test_table_is_immutable(self):
        with pytest.raises(TypeError):
            DEFAULT_ALIAS_TABLE["date"] = ("x",)


class TestResolver:
    def setup_method(self):
        self.resolver = FieldAliasResolver()

    def test_lookup_follows_alias_priority(self):
        normalized = self.resolver.normalize_record({"Total": "10", "Valor": "20"})
        assert self.resolver.lookup(normalized, "amount") == "20"

    def test_lookup_skips_blank_values(self):
        normalized = self.resolver.normalize_record({"Valor": "  ", "Total": "15"})
        assert self.resolver.lookup(normalized, "amount") == "15"

    def test_lookup_missing_field(self):
        assert self.resolver.lookup({}, "date") is None

    def test_first_column_wins_on_key_collision(self):
        normalized = self.resolver.normalize_record({"Data": "01/01/2025", "DATA": "02/01/2025"})
        assert normalized == {"data": "01/01/2025"}

    def test_contains_lookup_recovers_amount(self):
        normalized = self.resolver.normalize_record({"Valor Líquido do Pedido": "99,90", "Cliente": "ACME"})
        assert self.resolver.lookup(normalized, "amount") is None
        assert self.resolver.contains_lookup(normalized) == ("valorliquidodopedido", "99,90")

    def test_contains_lookup_pattern_priority(self):
        normalized = self.resolver.normalize_record({"Subtotal": "5", "Valor Total Bruto": "7"})
        key, value = self.resolver.contains_lookup(normalized)
        assert key == "valortotalbruto"
        assert value == "7"

    def test_diagnostic_columns_are_capped(self):
        record = {f"Valor {i}": i for i in range(10)}
        normalized = self.resolver.normalize_record(record)
        columns = self.resolver.diagnostic_columns(normalized, limit=6)
        assert len(columns) == 6
        assert all("valor" in key for key, _ in columns)

    def test_custom_table(self):
        resolver = FieldAliasResolver(table={"amount": ("montante",)})
        assert resolver.fields == ("amount",)
        assert resolver.lookup({"montante": "3"}, "amount") == "3"


def test_is_blank():
    assert is_blank(None)
    assert is_blank("   ")
    assert not is_blank(0)
    assert not is_blank("x")
