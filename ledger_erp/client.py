"""
Paginated ERP client with endpoint fallback.

Contract:
    ``fetch_all(resource, window)`` pages through a resource's search
    endpoint and enriches every summary with its detail record.

    - Endpoint fallback: each operation tries its endpoint spellings in
      order; the first success wins.  When all fail,
      ``EndpointsExhaustedError`` is raised and the caller's module fails.
    - Pagination stops on an empty page or a page shorter than the
      requested size.
    - Detail lookup never fails the fetch: a missing identifier or a failed
      call yields the unenriched summary (logged at WARNING).
    - An ERP "no records" error (code 20) is an empty page, not a failure.

Transport: ``requests.Session`` POSTing form fields (``token``,
``formato=json``, ``pagina``, ``limite`` plus the date filters).
"""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import date
from typing import Any

import requests

from ledger_config.schema import ErpSettings
from ledger_kernel.exceptions import (
    EndpointsExhaustedError,
    ErpHttpError,
    ErpResponseError,
    UpstreamError,
)
from ledger_kernel.logging_config import get_logger

from ledger_erp.resources import KIND_TAG, NESTED_ID_CONTAINERS, DateDialect, ResourceSpec

logger = get_logger("erp.client")

# ERP error code for "the query returned no records"
NO_RECORDS_CODE = "20"

# Guards against an upstream that ignores pagination
MAX_PAGES = 1000

_UPPER = re.compile(r"[A-Z]")


@dataclass(frozen=True)
class SearchWindow:
    """Date-range filters for a search; None means unbounded."""

    update_from: date | None = None
    update_to: date | None = None
    issued_from: date | None = None
    issued_to: date | None = None
    due_from: date | None = None
    due_to: date | None = None


def camel_to_snake(value: str) -> str:
    return _UPPER.sub(lambda m: f"_{m.group(0).lower()}", value)


def to_erp_date(value: date) -> str:
    """DD/MM/YYYY, the financial endpoints' date format."""
    return value.strftime("%d/%m/%Y")


def date_filters(dialect: DateDialect, window: SearchWindow) -> dict[str, str]:
    """Translate a window into the form fields one dialect understands."""
    fields: dict[str, str] = {}
    if dialect == DateDialect.FINANCIAL:
        due_from = window.due_from or window.update_from
        due_to = window.due_to or window.update_to
        pairs = (
            ("data_ini_emissao", window.issued_from),
            ("data_fim_emissao", window.issued_to),
            ("data_ini_vencimento", due_from),
            ("data_fim_vencimento", due_to),
        )
        for key, value in pairs:
            if value is not None:
                fields[key] = to_erp_date(value)
    else:
        pairs = (
            ("dataAtualizacao", window.update_from),
            ("dataFinalAtualizacao", window.update_to),
            ("dataInicial", window.issued_from),
            ("dataFinal", window.issued_to),
        )
        for key, value in pairs:
            if value is not None:
                fields[key] = value.isoformat()
    return fields


def unwrap_collection(root: dict[str, Any], plural_key: str, singular_key: str) -> list[dict]:
    """
    Extract records from ``{plural: [{singular: {...}}, ...]}`` or
    ``{plural: {plural: [...]}}``; anything else is an empty collection.
    """
    collection = root.get(plural_key)
    if isinstance(collection, dict):
        collection = collection.get(plural_key)
    if not isinstance(collection, list):
        return []

    records = []
    for entry in collection:
        if isinstance(entry, dict):
            inner = entry.get(singular_key)
            records.append(inner if isinstance(inner, dict) else entry)
    return records


def resolve_detail_id(summary: dict[str, Any], keys: tuple[str, ...]) -> Any:
    """
    Probe identifier fields in priority order: each key as written, in
    snake_case, upper and lower case, then inside the nested containers.
    """
    for key in keys:
        for candidate in (key, camel_to_snake(key), key.upper(), key.lower()):
            value = summary.get(candidate)
            if value:
                return value
        for container in NESTED_ID_CONTAINERS:
            nested = summary.get(container)
            if isinstance(nested, dict) and nested.get(key):
                return nested[key]
    return None


class ErpClient:
    """
    ERP API client bound to one tenant token.

    Thread-safe for concurrent detail lookups; the underlying
    ``requests.Session`` is shared by the worker threads.
    """

    def __init__(
        self,
        token: str,
        settings: ErpSettings | None = None,
        session: requests.Session | None = None,
    ):
        self._token = token
        self._settings = settings or ErpSettings()
        base = self._settings.base_url
        self._base_url = base if base.endswith("/") else f"{base}/"
        self._http = session or requests.Session()

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> ErpClient:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def search(self, resource: ResourceSpec, window: SearchWindow, page: int = 1) -> list[dict]:
        """One page of summaries, tagged with the resource's kind."""
        form = {
            "pagina": str(page),
            "limite": str(self._settings.page_size),
            **date_filters(resource.dialect, window),
        }
        root = self._call(f"{resource.name}.search", resource.search_endpoints, form)
        records = unwrap_collection(root, resource.plural_key, resource.singular_key)
        if resource.kind_tag is not None:
            records = [{**record, KIND_TAG: resource.kind_tag} for record in records]
        return records

    def get_detail(self, resource: ResourceSpec, summary: dict[str, Any]) -> dict[str, Any]:
        """
        Detail record for a summary, or the summary itself when no identifier
        resolves or the response has no detail payload.  Transport and ERP
        errors propagate.
        """
        record_id = resolve_detail_id(summary, resource.id_keys)
        if record_id is None:
            logger.debug("erp_detail_id_missing", extra={"resource": resource.name})
            return summary

        root = self._call(
            f"{resource.name}.detail",
            resource.detail_endpoints,
            {"id": str(record_id)},
        )
        for key in resource.detail_keys:
            detail = root.get(key)
            if isinstance(detail, dict):
                if resource.kind_tag is not None:
                    return {**detail, KIND_TAG: resource.kind_tag}
                return detail
        return summary

    def fetch_all(
        self,
        resource: ResourceSpec,
        window: SearchWindow,
        with_details: bool = True,
    ) -> list[dict]:
        """Every record of a resource within the window, detail-enriched."""
        records: list[dict] = []
        page_size = self._settings.page_size

        for page in range(1, MAX_PAGES + 1):
            summaries = self.search(resource, window, page)
            if not summaries:
                break
            records.extend(self._enrich(resource, summaries) if with_details else summaries)
            if len(summaries) < page_size:
                break
        else:
            logger.warning(
                "erp_page_limit_reached",
                extra={"resource": resource.name, "max_pages": MAX_PAGES},
            )

        logger.info(
            "erp_resource_fetched",
            extra={"resource": resource.name, "records": len(records)},
        )
        return records

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _enrich(self, resource: ResourceSpec, summaries: list[dict]) -> list[dict]:
        """Detail lookups for one page, bounded by ``detail_concurrency``."""
        workers = min(self._settings.detail_concurrency, len(summaries))
        enriched: list[dict] = []
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="erp-detail") as pool:
            futures = [pool.submit(self._detail_or_summary, resource, s) for s in summaries]
            for future in as_completed(futures):
                enriched.append(future.result())
        return enriched

    def _detail_or_summary(self, resource: ResourceSpec, summary: dict) -> dict:
        try:
            return self.get_detail(resource, summary)
        except UpstreamError as exc:
            logger.warning(
                "erp_detail_failed",
                extra={"resource": resource.name, "error": str(exc)},
            )
            return summary

    def _call(self, operation: str, endpoints: tuple[str, ...], form: dict[str, str]) -> dict:
        """POST to each endpoint spelling until one answers usefully."""
        last_error: UpstreamError | None = None
        for index, endpoint in enumerate(endpoints):
            try:
                return self._post(endpoint, form)
            except UpstreamError as exc:
                last_error = exc
                if index + 1 < len(endpoints):
                    logger.warning(
                        "erp_endpoint_fallback",
                        extra={
                            "operation": operation,
                            "failed_endpoint": endpoint,
                            "next_endpoint": endpoints[index + 1],
                            "error": str(exc),
                        },
                    )
        raise EndpointsExhaustedError(operation, endpoints, last_error)

    def _post(self, endpoint: str, form: dict[str, str]) -> dict:
        """One request; returns the unwrapped ``retorno`` object."""
        payload = {"token": self._token, "formato": "json", **form}
        try:
            response = self._http.post(
                f"{self._base_url}{endpoint}",
                data=payload,
                headers={"Accept": "application/json"},
                timeout=self._settings.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise ErpHttpError(endpoint, None, str(exc)) from exc

        if not response.ok:
            raise ErpHttpError(endpoint, response.status_code, (response.text or "")[:200])

        try:
            body = response.json()
        except ValueError as exc:
            raise ErpResponseError(endpoint, "response is not JSON") from exc
        if not isinstance(body, dict):
            raise ErpResponseError(endpoint, "response is not a JSON object")

        root = body.get("retorno", body)
        if not isinstance(root, dict):
            raise ErpResponseError(endpoint, "envelope is not an object")

        if str(root.get("status", "")).lower() == "erro":
            code = str(root.get("codigo_erro", ""))
            if code == NO_RECORDS_CODE:
                return {}
            raise ErpResponseError(endpoint, f"code {code or '?'}: {_error_text(root)}")
        return root


def _error_text(root: dict[str, Any]) -> str:
    errors = root.get("erros")
    if isinstance(errors, list):
        messages = []
        for item in errors:
            if isinstance(item, dict):
                messages.append(str(item.get("erro", item)))
            else:
                messages.append(str(item))
        return "; ".join(messages)
    return str(errors or "unknown error")
