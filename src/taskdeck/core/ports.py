# src/taskdeck/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The entity store depends on this Protocol instead of a concrete transport,
so the HTTP gateway, the offline gateway and test fakes are interchangeable.
"""

from collections.abc import Mapping
from typing import Any, Protocol

from .models import EntityKind, Record, TaskFilters

WirePayload = Mapping[str, Any]
# JSON object as sent to the remote collection API.


class RemoteGateway(Protocol):
    """
    Stateless facade over the remote collection API.

    Every method raises RemoteError on any non-success outcome; nothing is
    retried.
    """

    async def list(self, kind: EntityKind, filters: TaskFilters | None = None) -> list[Record]: ...

    async def get(self, kind: EntityKind, record_id: str) -> Record: ...

    async def create(self, kind: EntityKind, data: WirePayload) -> Record: ...

    async def update(self, kind: EntityKind, record_id: str, data: WirePayload) -> Record: ...

    async def delete(self, kind: EntityKind, record_id: str) -> None: ...

    # Read-only aggregations for reporting views (payloads are opaque).
    async def tasks_by_status(self) -> Any: ...
    async def tasks_by_folder(self) -> Any: ...
    async def tasks_by_tag(self) -> Any: ...
    async def task_stats(self) -> Any: ...

    async def aclose(self) -> None: ...
