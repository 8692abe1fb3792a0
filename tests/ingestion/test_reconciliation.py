"""
Tests for ReconciliationEngine.

Reconciliation key is (tenant_id, origin, source_ref); drafts without a
source_ref are always inserted.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from ledger_erp.mapper import ErpMapper
from ledger_ingestion.services.reconciliation import ReconciliationEngine
from ledger_kernel.models.transaction import Transaction

TENANT = "tenant-a"


@pytest.fixture
def engine_under_test(session):
    return ReconciliationEngine(session)


def _count(session) -> int:
    return session.execute(select(func.count(Transaction.id))).scalar_one()


def _by_ref(session, ref: str) -> list[Transaction]:
    stmt = select(Transaction).where(Transaction.source_ref == ref)
    return list(session.execute(stmt).scalars())


class TestReconcile:
    def test_new_keys_are_inserted(self, engine_under_test, session, draft):
        result = engine_under_test.reconcile(TENANT, [
            draft(source_ref="NF-1"),
            draft(source_ref="NF-2"),
        ])
        assert (result.inserted, result.updated) == (2, 0)
        assert result.persisted == 2
        assert _count(session) == 2

    def test_existing_key_is_updated_in_place(self, engine_under_test, session, draft):
        engine_under_test.reconcile(TENANT, [draft(source_ref="NF-1", amount=Decimal("10"))])
        result = engine_under_test.reconcile(TENANT, [
            draft(source_ref="NF-1", amount=Decimal("42.50"), memo="corrigido"),
        ])

        assert (result.inserted, result.updated) == (0, 1)
        rows = _by_ref(session, "NF-1")
        assert len(rows) == 1
        session.refresh(rows[0])
        assert rows[0].amount == Decimal("42.50")
        assert rows[0].memo == "corrigido"

    def test_same_ref_under_other_origin_is_distinct(self, engine_under_test, session, draft):
        engine_under_test.reconcile(TENANT, [draft(source_ref="1", origin="ERP:Tiny:orders")])
        result = engine_under_test.reconcile(TENANT, [draft(source_ref="1", origin="ERP:Tiny:invoices")])
        assert result.inserted == 1
        assert len(_by_ref(session, "1")) == 2

    def test_duplicates_in_batch_keep_last(self, engine_under_test, session, draft):
        result = engine_under_test.reconcile(TENANT, [
            draft(source_ref="NF-1", amount=Decimal("1")),
            draft(source_ref="NF-1", amount=Decimal("2")),
        ])

        assert result.inserted == 1
        assert result.duplicates_in_batch == 1
        rows = _by_ref(session, "NF-1")
        assert len(rows) == 1
        assert rows[0].amount == Decimal("2")

    def test_anonymous_drafts_always_inserted(self, engine_under_test, session, draft):
        engine_under_test.reconcile(TENANT, [draft(), draft()])
        engine_under_test.reconcile(TENANT, [draft()])
        assert _count(session) == 3

    def test_reapplying_a_batch_is_idempotent(self, engine_under_test, session, draft):
        batch = [draft(source_ref=f"NF-{i}", amount=Decimal(i)) for i in range(1, 6)]
        engine_under_test.reconcile(TENANT, batch)
        second = engine_under_test.reconcile(TENANT, batch)

        assert second.inserted == 0
        assert second.updated == 5
        assert _count(session) == 5

    def test_other_tenant_rows_are_untouched(self, engine_under_test, session, draft):
        engine_under_test.reconcile("tenant-b", [draft(tenant_id="tenant-b", source_ref="NF-1")])
        result = engine_under_test.reconcile(TENANT, [draft(source_ref="NF-1")])
        assert result.inserted == 1
        assert _count(session) == 2

    def test_draft_for_wrong_tenant_rejected(self, engine_under_test, session, draft):
        with pytest.raises(ValueError):
            engine_under_test.reconcile(TENANT, [draft(tenant_id="tenant-b")])
        assert _count(session) == 0

    def test_empty_batch(self, engine_under_test):
        result = engine_under_test.reconcile(TENANT, [])
        assert (result.inserted, result.updated, result.written) == (0, 0, 0)

    def test_logs_completion(self, engine_under_test, draft, captured_logs):
        engine_under_test.reconcile(TENANT, [draft(source_ref="NF-1"), draft()])
        records = [r for r in captured_logs() if r["message"] == "reconciliation_completed"]
        assert records
        assert records[-1]["inserted"] == 2
        assert records[-1]["anonymous"] == 1


class TestErpOrderLines:
    def test_lines_sharing_a_sku_are_both_kept(self, engine_under_test, session):
        payload = {"pedido": {"id": 77, "itens": [
            {"item": {"codigo": "SKU1", "valor_total": "100,00"}},
            {"item": {"codigo": "SKU1", "valor_total": "50,00"}},
        ]}}
        drafts = ErpMapper().map_order(TENANT, payload, date(2025, 3, 10))

        result = engine_under_test.reconcile(TENANT, drafts)

        assert (result.inserted, result.duplicates_in_batch) == (2, 0)
        assert _count(session) == 2
        total = session.execute(select(func.sum(Transaction.amount))).scalar_one()
        assert Decimal(total) == Decimal("150")
