"""
Field alias resolution for human-authored spreadsheet layouts.

Column names arrive accented, mixed-case and punctuated ("Data do Pedido",
"Valor Total (R$)").  ``normalize_key`` reduces every name to a canonical
key; an immutable, priority-ordered alias table then maps canonical fields
to the keys that may carry them.

Pure functions and immutable data.  ZERO I/O.
"""

from __future__ import annotations

import re
import unicodedata
from types import MappingProxyType
from typing import Any, Mapping

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_key(key: str) -> str:
    """Strip diacritics, lower-case and drop every non-alphanumeric char."""
    decomposed = unicodedata.normalize("NFD", str(key))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("", stripped.lower())


def is_blank(value: Any) -> bool:
    """True for None and whitespace-only strings."""
    return value is None or (isinstance(value, str) and not value.strip())


def _table(raw: dict[str, tuple[str, ...]]) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType(
        {name: tuple(normalize_key(a) for a in aliases) for name, aliases in raw.items()}
    )


# Canonical field -> accepted column spellings, highest priority first
DEFAULT_ALIAS_TABLE: Mapping[str, tuple[str, ...]] = _table({
    "date": (
        "date", "data", "dataPedido", "dataPedidoVenda", "dataCriacao",
        "dataEmissao", "dataLancamento", "dataDocumento", "dataCompetencia",
        "competencia", "periodo",
    ),
    "accrual_date": ("accrualDate", "dataCompetencia", "competencia", "competenciaData"),
    "debit": ("debit", "debito", "contaDebito", "contaEntrada"),
    "credit": (
        "credit", "credito", "contaCredito", "contaSaida", "contaGerencial",
        "contaResultado", "planoConta", "pcg", "categoria",
    ),
    "amount": ("amount", "valor", "total"),
    "currency": ("currency", "moeda"),
    "origin": ("origin", "origem", "fonte"),
    "memo": (
        "memo", "descricao", "historico", "observacao", "descricaoItem",
        "cliente", "fornecedor", "produto",
    ),
    "source_ref": (
        "sourceRef", "referencia", "documento", "numero", "pedido", "nota",
        "titulo", "id",
    ),
})

# Substrings tried, in order, when no amount alias matches exactly
DEFAULT_AMOUNT_PATTERNS: tuple[str, ...] = (
    "valortotal", "totalliquido", "valorliquido", "valorfaturado",
    "valorrecebido", "valorpago", "valorpedido", "valorservico",
    "valorproduto", "bruto", "pedido", "nota", "valor", "total",
)

# Keys echoed back to the operator when an amount cannot be resolved
DIAGNOSTIC_SUBSTRINGS: tuple[str, ...] = ("valor", "total")


class FieldAliasResolver:
    """
    Resolves canonical fields from one normalized record.

    The resolver holds no per-row state; a single instance is shared by
    every row of an import.
    """

    def __init__(
        self,
        table: Mapping[str, tuple[str, ...]] = DEFAULT_ALIAS_TABLE,
        amount_patterns: tuple[str, ...] = DEFAULT_AMOUNT_PATTERNS,
    ):
        self._table = table
        self._amount_patterns = amount_patterns

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self._table)

    @staticmethod
    def normalize_record(record: Mapping[str, Any]) -> dict[str, Any]:
        """Re-key a record by ``normalize_key``; the first column wins on collision."""
        normalized: dict[str, Any] = {}
        for key, value in record.items():
            if key is None:
                continue
            nk = normalize_key(key)
            if nk and nk not in normalized:
                normalized[nk] = value
        return normalized

    def lookup(self, normalized: Mapping[str, Any], field: str) -> Any:
        """First non-blank value among the field's aliases, or None."""
        for alias in self._table.get(field, ()):
            value = normalized.get(alias)
            if not is_blank(value):
                return value
        return None

    def contains_lookup(
        self,
        normalized: Mapping[str, Any],
        patterns: tuple[str, ...] | None = None,
    ) -> tuple[str, Any] | None:
        """
        First (key, value) whose key contains a pattern, patterns tried in
        priority order.  Used only to recover amounts.
        """
        for pattern in patterns or self._amount_patterns:
            for key, value in normalized.items():
                if pattern in key and not is_blank(value):
                    return key, value
        return None

    @staticmethod
    def diagnostic_columns(
        normalized: Mapping[str, Any],
        limit: int = 6,
    ) -> list[tuple[str, Any]]:
        """Up to ``limit`` (key, value) pairs whose key mentions valor/total."""
        found = [
            (key, value)
            for key, value in normalized.items()
            if any(s in key for s in DIAGNOSTIC_SUBSTRINGS)
        ]
        return found[:limit]
