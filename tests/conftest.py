"""
Pytest fixtures for the ledger pipeline test suite.

Provides:
- An in-memory SQLite engine per test (StaticPool, so worker threads share
  the one database) with the real ORM metadata
- Session, session factory and deterministic clock fixtures
- Log capture as parsed JSON dicts
- Workbook and ERP response builders
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import BytesIO, StringIO
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import openpyxl
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import ledger_kernel.models  # noqa: F401  registers every table
from ledger_kernel.db.base import Base
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.dtos import TransactionDraft
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

TENANT = "tenant-a"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ledger logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            logs = captured_logs()
            assert any(r["message"] == "reconciliation_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory) -> Session:
    sess = session_factory()
    try:
        yield sess
    finally:
        sess.close()


# =============================================================================
# Clock fixtures
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(fixed_time=datetime(2025, 3, 10, 12, 0, 0, tzinfo=timezone.utc))


# =============================================================================
# Builders
# =============================================================================


def make_draft(**overrides: Any) -> TransactionDraft:
    values: dict[str, Any] = {
        "tenant_id": TENANT,
        "date": date(2025, 1, 15),
        "debit": "Clientes",
        "credit": "3.1",
        "amount": Decimal("100.00"),
        "origin": "import:xlsx",
        "source_ref": None,
    }
    values.update(overrides)
    return TransactionDraft(**values)


def build_workbook(rows: list[list[Any]], sheet_name: str = "Transactions", extra_sheets: tuple[str, ...] = ()) -> bytes:
    """Serialize rows (header first) into .xlsx bytes."""
    wb = openpyxl.Workbook()
    for name in extra_sheets:
        wb.create_sheet(name)
    ws = wb.active
    ws.title = sheet_name
    for row in rows:
        ws.append(row)
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def erp_response(body: Any, status_code: int = 200) -> MagicMock:
    """A requests.Response stand-in returning ``body`` as JSON."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.text = json.dumps(body) if not isinstance(body, str) else body
    if isinstance(body, str):
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = body
    return response


def erp_ok(**root: Any) -> MagicMock:
    return erp_response({"retorno": {"status": "OK", **root}})


def erp_no_records() -> MagicMock:
    return erp_response({
        "retorno": {
            "status": "Erro",
            "codigo_erro": "20",
            "erros": [{"erro": "A consulta não retornou registros"}],
        }
    })


@pytest.fixture
def workbook():
    return build_workbook


@pytest.fixture
def draft():
    return make_draft


@pytest.fixture
def erp_responses():
    """Builders for mocked ERP HTTP responses."""
    return SimpleNamespace(ok=erp_ok, no_records=erp_no_records, raw=erp_response)
