"""
Typed exception hierarchy for the ledger ingestion pipeline.

Every error carries a static ``code`` class attribute (machine-readable,
API-safe) and keeps its context as attributes rather than inside the message.

    LedgerError (base)
    |
    +-- InputError
    |   +-- SpreadsheetReadError
    |   +-- MissingSheetError
    |   +-- InvalidPeriodError
    |   +-- InvalidQueryError
    |
    +-- UpstreamError
    |   +-- ErpHttpError
    |   +-- ErpResponseError
    |   +-- EndpointsExhaustedError
    |
    +-- ConfigError

Scope of failure:
    InputError is reported synchronously to the caller of an entrypoint.
    UpstreamError fails one module fetch for one tenant; the sync service
    records it on the module result and moves on.
    Row-level problems are never exceptions (see SkippedRow).
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base exception for all ledger pipeline errors."""

    code: str = "LEDGER_ERROR"


# Input errors


class InputError(LedgerError):
    """Caller supplied input that cannot be processed."""

    code: str = "INPUT_ERROR"


class SpreadsheetReadError(InputError):
    """Uploaded bytes are not a readable workbook."""

    code: str = "SPREADSHEET_UNREADABLE"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Unable to read spreadsheet: {reason}")


class MissingSheetError(InputError):
    """Workbook contains no worksheet."""

    code: str = "MISSING_SHEET"

    def __init__(self):
        super().__init__("Nenhuma aba encontrada no arquivo enviado.")


class InvalidPeriodError(InputError):
    """Period bound is not in YYYY-MM form."""

    code: str = "INVALID_PERIOD"

    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f'Período inválido: "{value}". Utilize o formato YYYY-MM.'
        )


class InvalidQueryError(InputError):
    """Aggregation query option outside its allowed values."""

    code: str = "INVALID_QUERY"

    def __init__(self, field: str, value: object, allowed: tuple[str, ...]):
        self.field = field
        self.value = value
        self.allowed = allowed
        super().__init__(
            f"Invalid {field} {value!r}; expected one of {', '.join(allowed)}"
        )


# Upstream errors


class UpstreamError(LedgerError):
    """External ERP call failed."""

    code: str = "UPSTREAM_ERROR"


class ErpHttpError(UpstreamError):
    """Transport failure or non-2xx response from an ERP endpoint."""

    code: str = "ERP_HTTP_ERROR"

    def __init__(self, endpoint: str, status: int | None, detail: str = ""):
        self.endpoint = endpoint
        self.status = status
        self.detail = detail
        label = f"HTTP {status}" if status is not None else "transport error"
        super().__init__(f"ERP {label} on {endpoint}: {detail}".rstrip(": "))


class ErpResponseError(UpstreamError):
    """ERP answered but the body is unusable or reports an error."""

    code: str = "ERP_RESPONSE_ERROR"

    def __init__(self, endpoint: str, detail: str):
        self.endpoint = endpoint
        self.detail = detail
        super().__init__(f"ERP response error on {endpoint}: {detail}")


class EndpointsExhaustedError(UpstreamError):
    """Every endpoint spelling for an operation failed."""

    code: str = "ERP_ENDPOINTS_EXHAUSTED"

    def __init__(self, operation: str, endpoints: tuple[str, ...], last_error: Exception | None):
        self.operation = operation
        self.endpoints = endpoints
        self.last_error = str(last_error) if last_error is not None else None
        super().__init__(
            f"All endpoints failed for {operation} ({', '.join(endpoints)}): {self.last_error}"
        )


# Configuration errors


class ConfigError(LedgerError, ValueError):
    """Configuration file is malformed or contains unknown keys."""

    code: str = "CONFIG_ERROR"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid configuration in {source}: {reason}")
