# src/taskdeck/gateway/client.py

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from ..core.errors import RemoteError
from ..core.models import EntityKind, Record, TaskFilters, decode_record
from ..core.ports import WirePayload

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3000/api"


def make_timeout(seconds: float) -> httpx.Timeout:
    """
    Build the client timeout. A non-positive value disables timeouts, so a
    server that never answers hangs the call (no deadline is imposed by the
    core).
    """
    if seconds <= 0:
        return httpx.Timeout(None)
    return httpx.Timeout(seconds, connect=min(seconds, 5.0))


def _record_path(kind: EntityKind, record_id: str) -> str:
    # The id is one path segment; "/", "?" and "#" must not leak into the URL structure.
    return f"/{kind.value}/{quote(str(record_id), safe='')}"


class HttpGateway:
    """
    Remote collection API over HTTP (JSON bodies, URL-encoded filters).

    One instance owns one httpx.AsyncClient; call aclose() (or use it as an
    async context manager) when done. Nothing is retried: every failure is
    raised as RemoteError with the attempted operation name.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout_seconds: float = 0.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=make_timeout(timeout_seconds),
            headers={"Accept": "application/json"},
            transport=transport,
        )
        logger.info("HttpGateway ready base_url=%s", self._base_url)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> HttpGateway:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ---- low-level helpers ----

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        body: WirePayload | None = None,
        expect_body: bool = True,
    ) -> Any:
        logger.debug("%s: %s %s params=%s", operation, method, path, params or {})
        try:
            resp = await self._client.request(
                method,
                path,
                params=params or None,
                json=dict(body) if body is not None else None,
            )
        except httpx.HTTPError as e:
            raise RemoteError(operation, e) from e

        if resp.is_error:
            reason = resp.reason_phrase or "request failed"
            with_body = resp.text.strip()
            raise RemoteError(
                operation,
                f"{reason} {with_body}".strip(),
                status_code=resp.status_code,
            )

        if not expect_body or not resp.content:
            return None

        try:
            return resp.json()
        except ValueError as e:
            raise RemoteError(operation, f"response is not JSON: {e}", status_code=resp.status_code) from e

    @staticmethod
    def _decode(operation: str, kind: EntityKind, payload: Any) -> Record:
        try:
            return decode_record(kind, payload)
        except (TypeError, ValueError, AttributeError) as e:
            raise RemoteError(operation, f"malformed {kind.singular} record: {e}") from e

    # ---- public API ----

    async def list(self, kind: EntityKind, filters: TaskFilters | None = None) -> list[Record]:
        operation = f"list_{kind.value}"
        params = filters.to_params() if filters is not None else {}
        payload = await self._request(operation, "GET", f"/{kind.value}", params=params)
        if not isinstance(payload, list):
            raise RemoteError(operation, f"expected an array, got {type(payload).__name__}")
        return [self._decode(operation, kind, item) for item in payload]

    async def get(self, kind: EntityKind, record_id: str) -> Record:
        operation = f"get_{kind.singular}"
        payload = await self._request(operation, "GET", _record_path(kind, record_id))
        return self._decode(operation, kind, payload)

    async def create(self, kind: EntityKind, data: WirePayload) -> Record:
        operation = f"create_{kind.singular}"
        payload = await self._request(operation, "POST", f"/{kind.value}", body=data)
        return self._decode(operation, kind, payload)

    async def update(self, kind: EntityKind, record_id: str, data: WirePayload) -> Record:
        operation = f"update_{kind.singular}"
        payload = await self._request(operation, "PUT", _record_path(kind, record_id), body=data)
        return self._decode(operation, kind, payload)

    async def delete(self, kind: EntityKind, record_id: str) -> None:
        operation = f"delete_{kind.singular}"
        await self._request(operation, "DELETE", _record_path(kind, record_id), expect_body=False)

    async def tasks_by_status(self) -> Any:
        return await self._request("tasks_by_status", "GET", "/tasks-by-status")

    async def tasks_by_folder(self) -> Any:
        return await self._request("tasks_by_folder", "GET", "/tasks-by-folder")

    async def tasks_by_tag(self) -> Any:
        return await self._request("tasks_by_tag", "GET", "/tasks-by-tag")

    async def task_stats(self) -> Any:
        return await self._request("task_stats", "GET", "/task-stats")
