# MEDGRID REGISTRY GRID

# COMPONENT: REGISTRY API CLIENT
# REQUIREMENTS SATISFIED: bounded-wait external calls, uniform failure classification
"""
medgrid/services/registry_client.py

HTTP client for the external drug / manufacturer registry API.

All calls go through one ``_request`` helper which enforces a bounded
timeout and classifies every kind of failure the same way:
    - network errors and timeouts (requests.RequestException)
    - non-2xx statuses
    - HTML error pages returned with a 200
    - bodies that are not the JSON shape the operation expects

Each of these raises ``ExternalUnavailable``; callers decide whether to
fall back to local data (reads) or keep an optimistic local edit (writes).
Update and delete are lenient about the response body: the registry has
already accepted the write when it answers 2xx, so an unparseable echo is
not treated as a failure.

Configuration:
    REGISTRY_API_URL  base URL (default https://apiv2.medleb.org)
    REGISTRY_TIMEOUT  seconds per call (default 10)
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple

import os
import logging

import requests

from medgrid.errors import ExternalUnavailable
from medgrid.services.entities import EntitySpec

logger = logging.getLogger("medgrid")

DEFAULT_BASE_URL = "https://apiv2.medleb.org"
DEFAULT_TIMEOUT = 10.0

_NO_BODY = object()


def _env_timeout() -> float:
    try:
        return float(os.getenv("REGISTRY_TIMEOUT", DEFAULT_TIMEOUT))
    except ValueError:
        return DEFAULT_TIMEOUT


class RegistryClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or os.getenv("REGISTRY_API_URL", DEFAULT_BASE_URL)).rstrip("/")
        self.timeout = timeout if timeout is not None else _env_timeout()
        self._session = session or requests.Session()

    # -----------------------------
    # Transport
    # -----------------------------
    def _request(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        strict: bool = True,
    ) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.debug("%s %s payload=%s", method, url, payload)
        try:
            resp = self._session.request(
                method,
                url,
                json=payload,
                params=params,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("Registry %s failed: url=%s error=%s", operation, url, e)
            raise ExternalUnavailable(operation, str(e)) from e

        if not 200 <= resp.status_code < 300:
            logger.warning("Registry %s failed: url=%s status=%s", operation, url, resp.status_code)
            raise ExternalUnavailable(operation, f"status {resp.status_code}")

        content_type = resp.headers.get("content-type", "") or ""
        if "text/html" in content_type.lower():
            if strict:
                logger.warning("Registry %s returned HTML instead of JSON: url=%s", operation, url)
                raise ExternalUnavailable(operation, "HTML received instead of JSON")
            return _NO_BODY

        if not resp.content:
            if strict:
                raise ExternalUnavailable(operation, "empty response body")
            return _NO_BODY

        try:
            return resp.json()
        except ValueError as e:
            if strict:
                logger.warning("Registry %s returned malformed JSON: url=%s", operation, url)
                raise ExternalUnavailable(operation, "malformed JSON body") from e
            logger.info("Registry %s succeeded but response parsing failed: url=%s", operation, url)
            return _NO_BODY

    def _records_from(self, entity: EntitySpec, data: Any, operation: str) -> List[Dict[str, Any]]:
        if entity.list_key:
            data = data.get(entity.list_key) if isinstance(data, dict) else None
        if not isinstance(data, list):
            raise ExternalUnavailable(operation, "unexpected body shape")
        return data

    # -----------------------------
    # Registry operations
    # -----------------------------
    def list_all(self, entity: EntitySpec) -> List[Dict[str, Any]]:
        data = self._request("GET", entity.path("list"), f"list {entity.name}")
        records = self._records_from(entity, data, f"list {entity.name}")
        logger.info("Fetched %d %s from registry", len(records), entity.name)
        return records

    def get_page(self, entity: EntitySpec, page: int, page_size: int) -> Tuple[List[Dict[str, Any]], int]:
        operation = f"page {page} of {entity.name}"
        data = self._request(
            "GET",
            entity.path("page"),
            operation,
            params={"page": page, "pageSize": page_size},
        )
        records = self._records_from(entity, data, operation)
        try:
            total_pages = int(data.get("totalPages", 1))
        except (TypeError, ValueError):
            total_pages = 1
        return records, total_pages

    def create(self, entity: EntitySpec, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = self._request("POST", entity.path("create"), f"create {entity.label}", payload=payload)
        if not isinstance(data, dict):
            raise ExternalUnavailable(f"create {entity.label}", "unexpected body shape")
        return data

    def put(self, path: str, payload: Dict[str, Any], operation: str = "update") -> Optional[Any]:
        data = self._request("PUT", path, operation, payload=payload, strict=False)
        return None if data is _NO_BODY else data

    def update(self, entity: EntitySpec, record_id: Any, payload: Dict[str, Any]) -> Optional[Any]:
        return self.put(entity.path("update", record_id), payload, f"update {entity.label} {record_id}")

    def delete(self, entity: EntitySpec, record_id: Any) -> Optional[Any]:
        data = self._request(
            "DELETE",
            entity.path("delete", record_id),
            f"delete {entity.label} {record_id}",
            strict=False,
        )
        return None if data is _NO_BODY else data
