"""
ERP resource catalog.

Each ``ResourceSpec`` describes one paginated collection of the ERP API:
which endpoint spellings serve its search and detail operations (tried in
order), how the response envelope names its plural/singular keys, which
identifier fields can feed a detail lookup, and which date-filter dialect
its search accepts.

Modules map to resources: ``orders`` and ``invoices`` to one resource each,
``financial`` to receivables plus payables.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class DateDialect(str, Enum):
    """How a search endpoint expects its date range."""

    # dataAtualizacao/dataFinalAtualizacao + dataInicial/dataFinal, ISO dates
    DOCUMENT = "document"
    # data_ini_emissao/... + data_ini_vencimento/..., DD/MM/YYYY dates
    FINANCIAL = "financial"


class ModuleKind(str, Enum):
    ORDERS = "orders"
    INVOICES = "invoices"
    FINANCIAL = "financial"


@dataclass(frozen=True)
class ResourceSpec:
    name: str
    search_endpoints: tuple[str, ...]
    detail_endpoints: tuple[str, ...]
    plural_key: str
    singular_key: str
    # Keys holding the detail record in a detail response, tried in order
    detail_keys: tuple[str, ...]
    # Identifier fields probed for a detail lookup, tried in order
    id_keys: tuple[str, ...]
    dialect: DateDialect
    # Value stamped on each record under KIND_TAG, or None
    kind_tag: str | None = None


# Record field carrying receivable/payable classification through detail lookup
KIND_TAG = "__tinyType"

ORDERS = ResourceSpec(
    name="orders",
    search_endpoints=("pedidos.pesquisa.php", "orders"),
    detail_endpoints=("pedido.obter.php",),
    plural_key="pedidos",
    singular_key="pedido",
    detail_keys=("pedido",),
    id_keys=("id", "pedido_id", "numero"),
    dialect=DateDialect.DOCUMENT,
)

INVOICES = ResourceSpec(
    name="invoices",
    search_endpoints=("notas.fiscais.pesquisa.php", "invoices"),
    detail_endpoints=("nota.fiscal.obter.php",),
    plural_key="notas_fiscais",
    singular_key="nota_fiscal",
    detail_keys=("nota_fiscal",),
    id_keys=("id", "nota_id", "numero"),
    dialect=DateDialect.DOCUMENT,
)

RECEIVABLES = ResourceSpec(
    name="receivables",
    search_endpoints=("contas.receber.pesquisa.php",),
    detail_endpoints=("conta.receber.obter.php",),
    plural_key="contas_receber",
    singular_key="conta_receber",
    detail_keys=("conta_receber", "conta"),
    id_keys=("id", "conta_id", "documento", "numero"),
    dialect=DateDialect.FINANCIAL,
    kind_tag="receber",
)

PAYABLES = ResourceSpec(
    name="payables",
    search_endpoints=("contas.pagar.pesquisa.php",),
    detail_endpoints=("conta.pagar.obter.php",),
    plural_key="contas_pagar",
    singular_key="conta_pagar",
    detail_keys=("conta_pagar", "conta"),
    id_keys=("id", "conta_id", "documento", "numero"),
    dialect=DateDialect.FINANCIAL,
    kind_tag="pagar",
)

MODULE_RESOURCES: Mapping[ModuleKind, tuple[ResourceSpec, ...]] = MappingProxyType({
    ModuleKind.ORDERS: (ORDERS,),
    ModuleKind.INVOICES: (INVOICES,),
    ModuleKind.FINANCIAL: (RECEIVABLES, PAYABLES),
})

SUPPORTED_MODULES: tuple[str, ...] = tuple(m.value for m in ModuleKind)

# Containers a summary may nest its identifiers under
NESTED_ID_CONTAINERS: tuple[str, ...] = ("pedido", "nota", "conta")
