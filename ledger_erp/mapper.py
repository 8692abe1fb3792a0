"""
ERP entity mapper: order / invoice / financial payloads -> TransactionDraft.

Each entity kind has a normalization function that reduces any of the
known nested payload shapes to a fixed record (``OrderRecord``,
``InvoiceRecord``, ``FinancialRecord``).  Unknown shapes read as absent
fields; normalization never raises.  ``ErpMapper`` then turns records into
drafts using the configured default accounts.

Invariants:
    - ``source_ref`` is ``{system}:{kind}:{id}[:item:{item_id-or-index}]``
      and depends only on payload content, so repeated pulls of the same
      entity yield the same references.  An entity without an id gets a
      SHA-256 content hash as its id.
    - No draft carries a zero amount.
    - Payables are negative, receivables positive.

ZERO I/O.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Iterable

from ledger_config.schema import AccountDefaults, ErpSettings
from ledger_kernel.db.types import round_money
from ledger_kernel.domain.dtos import TransactionDraft
from ledger_kernel.domain.parsers import parse_amount, parse_date
from ledger_kernel.logging_config import get_logger

from ledger_erp.resources import KIND_TAG, ModuleKind

logger = get_logger("erp.mapper")

MEMO_SEPARATOR = " · "
FINANCIAL_MEMO_FALLBACK = "Lançamento financeiro"


# =============================================================================
# Payload helpers
# =============================================================================


def _dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _first(*values: Any) -> Any:
    """First value that is not None or an empty string."""
    for value in values:
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _text(value: Any) -> str | None:
    if isinstance(value, dict):
        value = _first(value.get("descricao"), value.get("nome"), value.get("codigo"))
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def content_id(payload: Any) -> str:
    """Deterministic id for a payload that carries none."""
    canonical = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def extract_items(collection: Any) -> list[dict[str, Any]]:
    """
    Flatten the item shapes: a bare list, ``{"item": [...]}``,
    ``{"item": {...}}`` or ``{"itens": [...]}``.  Each entry may itself be
    wrapped as ``{"item": {...}}``.
    """
    if isinstance(collection, list):
        raw = collection
    elif isinstance(collection, dict):
        inner = collection.get("item")
        if isinstance(inner, list):
            raw = inner
        elif isinstance(inner, dict):
            raw = [inner]
        elif isinstance(collection.get("itens"), list):
            raw = collection["itens"]
        else:
            raw = []
    else:
        raw = []

    items = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        wrapped = entry.get("item")
        items.append(wrapped if isinstance(wrapped, dict) else entry)
    return items


def installments_total(base: dict[str, Any]) -> Decimal | None:
    """Sum of ``parcelas`` values (entries may be wrapped as ``{"parcela": ...}``)."""
    parcels = base.get("parcelas")
    if isinstance(parcels, dict):
        parcels = parcels.get("parcela", parcels.get("parcelas"))
    if isinstance(parcels, dict):
        parcels = [parcels]
    if not isinstance(parcels, list):
        return None

    total = Decimal("0")
    found = False
    for entry in parcels:
        entry = _dict(entry)
        entry = _dict(entry.get("parcela")) or entry
        value = parse_amount(_first(entry.get("valor"), entry.get("valor_parcela")))
        if value is not None:
            total += value
            found = True
    return total if found else None


def resolve_account_code(source: dict[str, Any], fallback: str) -> str:
    """Account code from an item or entry, in fixed priority order."""
    code = _first(
        source.get("accountCode"),
        _dict(source.get("conta_gerencial")).get("codigo"),
        source.get("contaGerencial"),
        _dict(source.get("categoria")).get("codigo"),
        _dict(source.get("plano_contas")).get("codigo"),
        source.get("classificacao"),
    )
    if code is None or isinstance(code, (dict, list)):
        return fallback
    return str(code).strip() or fallback


# =============================================================================
# Canonical records
# =============================================================================


@dataclass(frozen=True)
class OrderRecord:
    id: str | None
    number: str | None
    issue_date: date | None
    customer: str | None
    total: Decimal | None
    installments: Decimal | None
    items: tuple[dict[str, Any], ...] = ()
    raw: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class InvoiceRecord:
    id: str | None
    number: str | None
    issue_date: date | None
    customer: str | None
    total: Decimal | None
    installments: Decimal | None
    items: tuple[dict[str, Any], ...] = ()
    raw: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class FinancialRecord:
    id: str | None
    payable: bool
    description: str | None
    category: str | None
    amount: Decimal | None
    due_date: date | None
    issue_date: date | None
    status: str | None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def cancelled(self) -> bool:
        return bool(self.status) and "cancel" in self.status.lower()


def _str_or_none(value: Any) -> str | None:
    return None if value is None else str(value)


def _customer(base: dict[str, Any], outer: dict[str, Any]) -> str | None:
    return _text(_first(
        _dict(base.get("cliente")).get("nome"),
        base.get("cliente_nome"),
        base.get("nome_cliente"),
        outer.get("clienteNome"),
    ))


def normalize_order(payload: Any) -> OrderRecord:
    outer = _dict(payload)
    base = _dict(outer.get("pedido")) or outer
    return OrderRecord(
        id=_str_or_none(_first(
            base.get("id"), base.get("codigo"), outer.get("id"),
            outer.get("numero"), base.get("numero"),
        )),
        number=_str_or_none(_first(base.get("numero"), outer.get("numero"), base.get("id"))),
        issue_date=parse_date(_first(
            base.get("data_pedido"), base.get("data_criacao"),
            base.get("data"), outer.get("issueDate"),
        )),
        customer=_customer(base, outer),
        total=parse_amount(_first(
            base.get("valor_total"), base.get("total_pedido"), outer.get("total"),
        )),
        installments=installments_total(base),
        items=tuple(extract_items(_first(base.get("itens"), base.get("items"), base.get("produto")))),
        raw=outer,
    )


def normalize_invoice(payload: Any) -> InvoiceRecord:
    outer = _dict(payload)
    base = _dict(outer.get("nota")) or _dict(outer.get("nota_fiscal")) or outer
    return InvoiceRecord(
        id=_str_or_none(_first(base.get("id"), outer.get("id"), base.get("numero"))),
        number=_str_or_none(_first(base.get("numero"), outer.get("numero"))),
        issue_date=parse_date(_first(
            base.get("data_emissao"), outer.get("data_emissao"),
            outer.get("issueDate"), base.get("data"),
        )),
        customer=_customer(base, outer),
        total=parse_amount(_first(base.get("valor_total"), base.get("valor"), outer.get("valor_total"))),
        installments=installments_total(base),
        items=tuple(extract_items(_first(base.get("itens"), base.get("items")))),
        raw=outer,
    )


def normalize_financial(payload: Any) -> FinancialRecord:
    outer = _dict(payload)
    base = _dict(outer.get("lancamento")) or _dict(outer.get("titulo")) or outer
    kind = str(_first(
        outer.get(KIND_TAG), base.get("tipo"), base.get("natureza"), "receber",
    )).lower()
    amount = parse_amount(_first(base.get("valor"), base.get("valor_titulo"), outer.get("valor")))
    if amount is None:
        amount = installments_total(base)
    return FinancialRecord(
        id=_str_or_none(_first(base.get("id"), outer.get("id"), base.get("numero"))),
        payable=kind.startswith("p"),
        description=_text(_first(base.get("descricao"), base.get("historico"), outer.get("descricao"))),
        category=_text(_first(base.get("categoria"), base.get("conta_contabil"))),
        amount=amount,
        due_date=parse_date(_first(
            base.get("data_vencimento"), base.get("data_pagamento"),
            outer.get("data_vencimento"), outer.get("data_pagamento"),
        )),
        issue_date=parse_date(_first(base.get("data_emissao"), outer.get("data_emissao"))),
        status=_text(_first(base.get("situacao"), outer.get("situacao"))),
        raw=outer,
    )


# =============================================================================
# Mapper
# =============================================================================


class ErpMapper:
    """
    Maps normalized ERP records to drafts.

    Contract:
        ``map_module(module, tenant_id, payloads, fallback_date)`` returns the
        drafts for a batch of raw payloads.  ``fallback_date`` stands in for
        a missing or unparsable entity date.
    """

    def __init__(
        self,
        accounts: AccountDefaults | None = None,
        settings: ErpSettings | None = None,
    ):
        self._accounts = accounts or AccountDefaults()
        self._settings = settings or ErpSettings()

    def map_module(
        self,
        module: ModuleKind | str,
        tenant_id: str,
        payloads: Iterable[Any],
        fallback_date: date,
    ) -> list[TransactionDraft]:
        module = ModuleKind(module)
        mapper = {
            ModuleKind.ORDERS: self.map_order,
            ModuleKind.INVOICES: self.map_invoice,
            ModuleKind.FINANCIAL: self.map_financial,
        }[module]
        drafts: list[TransactionDraft] = []
        for payload in payloads:
            drafts.extend(mapper(tenant_id, payload, fallback_date))
        return drafts

    def map_order(self, tenant_id: str, payload: Any, fallback_date: date) -> list[TransactionDraft]:
        order = normalize_order(payload)
        return self._map_document(
            tenant_id,
            kind="order",
            origin=self._settings.origin_for(ModuleKind.ORDERS.value),
            record=order,
            whole_label=f"Pedido {order.number or order.id or ''}".rstrip(),
            item_label=f"Pedido {order.number or order.id or ''}".rstrip(),
            meta_key="order",
            fallback_date=fallback_date,
        )

    def map_invoice(self, tenant_id: str, payload: Any, fallback_date: date) -> list[TransactionDraft]:
        invoice = normalize_invoice(payload)
        return self._map_document(
            tenant_id,
            kind="invoice",
            origin=self._settings.origin_for(ModuleKind.INVOICES.value),
            record=invoice,
            whole_label=f"Nota fiscal {invoice.number or invoice.id or ''}".rstrip(),
            item_label=f"Nota {invoice.number or invoice.id or ''}".rstrip(),
            meta_key="invoice",
            fallback_date=fallback_date,
        )

    def map_financial(self, tenant_id: str, payload: Any, fallback_date: date) -> list[TransactionDraft]:
        entry = normalize_financial(payload)
        if entry.cancelled:
            logger.debug("erp_financial_cancelled", extra={"entry_id": entry.id})
            return []
        if entry.amount is None or entry.amount == 0:
            logger.debug("erp_financial_zero_amount", extra={"entry_id": entry.id})
            return []

        magnitude = abs(entry.amount)
        accounts = self._accounts
        if entry.payable:
            amount, debit, credit = -magnitude, accounts.expense, accounts.cash
        else:
            amount, debit, credit = magnitude, accounts.receivable, accounts.revenue

        when = entry.due_date or entry.issue_date or fallback_date
        memo_parts = [entry.description or FINANCIAL_MEMO_FALLBACK, entry.category]
        entity_id = entry.id or content_id(entry.raw)

        return [
            TransactionDraft(
                tenant_id=tenant_id,
                date=when,
                accrual_date=entry.issue_date or when,
                debit=debit,
                credit=credit,
                amount=amount,
                currency=accounts.currency,
                memo=MEMO_SEPARATOR.join(p for p in memo_parts if p),
                origin=self._settings.origin_for(ModuleKind.FINANCIAL.value),
                source_ref=self._ref("financial", entity_id),
                meta=entry.raw,
            )
        ]

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _ref(self, kind: str, entity_id: str, item: str | None = None) -> str:
        ref = f"{self._settings.source_system}:{kind}:{entity_id}"
        return f"{ref}:item:{item}" if item is not None else ref

    def _map_document(
        self,
        tenant_id: str,
        *,
        kind: str,
        origin: str,
        record: OrderRecord | InvoiceRecord,
        whole_label: str,
        item_label: str,
        meta_key: str,
        fallback_date: date,
    ) -> list[TransactionDraft]:
        accounts = self._accounts
        entity_id = record.id or content_id(record.raw)
        when = record.issue_date
        if when is None:
            logger.debug("erp_date_missing", extra={"kind": kind, "entity_id": entity_id})
            when = fallback_date

        if not record.items:
            if record.total is None or record.total == 0:
                logger.debug("erp_document_zero_total", extra={"kind": kind, "entity_id": entity_id})
                return []
            memo_parts = [whole_label, record.customer]
            return [
                TransactionDraft(
                    tenant_id=tenant_id,
                    date=when,
                    accrual_date=when,
                    debit=accounts.receivable,
                    credit=accounts.revenue,
                    amount=record.total,
                    currency=accounts.currency,
                    memo=MEMO_SEPARATOR.join(p for p in memo_parts if p),
                    origin=origin,
                    source_ref=self._ref(kind, entity_id),
                    meta=record.raw,
                )
            ]

        share = self._even_share(record)
        drafts = []
        for index, item in enumerate(record.items):
            amount = self._item_amount(item, share)
            # codigo is the product SKU and repeats across lines
            item_id = _str_or_none(item.get("id")) or str(index)
            if amount is None or amount == 0:
                logger.debug(
                    "erp_item_dropped",
                    extra={"kind": kind, "entity_id": entity_id, "item": item_id},
                )
                continue
            description = _text(_first(
                item.get("descricao"), item.get("nome"), item.get("descricao_produto"),
            ))
            drafts.append(
                TransactionDraft(
                    tenant_id=tenant_id,
                    date=when,
                    accrual_date=when,
                    debit=accounts.receivable,
                    credit=resolve_account_code(item, accounts.revenue),
                    amount=amount,
                    currency=accounts.currency,
                    memo=MEMO_SEPARATOR.join(p for p in (item_label, description) if p),
                    origin=origin,
                    source_ref=self._ref(kind, entity_id, item_id),
                    meta={meta_key: record.raw, "item": item},
                )
            )
        return drafts

    @staticmethod
    def _even_share(record: OrderRecord | InvoiceRecord) -> Decimal | None:
        """Per-item share of the document total, else of its installments."""
        pool = record.total if record.total else record.installments
        if not pool or not record.items:
            return None
        return round_money(pool / len(record.items))

    @staticmethod
    def _item_amount(item: dict[str, Any], share: Decimal | None) -> Decimal | None:
        total = parse_amount(_first(item.get("valor_total"), item.get("total")))
        if total is not None:
            return total
        unit = parse_amount(_first(item.get("valor_unitario"), item.get("valor"), item.get("preco")))
        if unit is not None:
            quantity = parse_amount(item.get("quantidade"))
            return unit * (quantity if quantity is not None else Decimal("1"))
        return share
