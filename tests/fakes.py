# tests/fakes.py

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass

from taskdeck.core.errors import RemoteError
from taskdeck.core.models import EntityKind, Record, TaskFilters
from taskdeck.core.ports import WirePayload
from taskdeck.gateway.offline import InMemoryGateway


class FlakyGateway(InMemoryGateway):
    """
    In-memory gateway that can be told to reject specific operations.

    fail_ops holds operation names ("update_task", "list_folders", ...);
    a listed operation raises RemoteError before touching any data.
    """

    def __init__(self) -> None:
        super().__init__()
        self.fail_ops: set[str] = set()

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_ops:
            raise RemoteError(operation, "simulated rejection", status_code=500)

    async def list(self, kind: EntityKind, filters: TaskFilters | None = None) -> list[Record]:
        self._maybe_fail(f"list_{kind.value}")
        return await super().list(kind, filters)

    async def create(self, kind: EntityKind, data: WirePayload) -> Record:
        self._maybe_fail(f"create_{kind.singular}")
        return await super().create(kind, data)

    async def update(self, kind: EntityKind, record_id: str, data: WirePayload) -> Record:
        self._maybe_fail(f"update_{kind.singular}")
        return await super().update(kind, record_id, data)

    async def delete(self, kind: EntityKind, record_id: str) -> None:
        self._maybe_fail(f"delete_{kind.singular}")
        await super().delete(kind, record_id)

    def list_filters(self, kind: EntityKind = EntityKind.TASKS) -> list[TaskFilters | None]:
        """Filters of every list call made for `kind`, oldest first."""
        name = f"list_{kind.value}"
        return [args for op, args in self.calls if op == name]


@dataclass(slots=True)
class PendingList:
    kind: EntityKind
    filters: TaskFilters | None
    future: asyncio.Future

    def resolve(self, records: Iterable[Record]) -> None:
        self.future.set_result(list(records))

    def fail(self, exc: BaseException) -> None:
        self.future.set_exception(exc)


class ScriptedGateway(InMemoryGateway):
    """
    Gateway whose list() calls stay in flight until the test resolves them,
    in whatever order it likes. Mutations go to the in-memory store.
    """

    def __init__(self) -> None:
        super().__init__()
        self.pending: list[PendingList] = []

    async def list(self, kind: EntityKind, filters: TaskFilters | None = None) -> list[Record]:
        future = asyncio.get_running_loop().create_future()
        self.pending.append(PendingList(kind=kind, filters=filters, future=future))
        return await future


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks run until they block on the gateway."""
    for _ in range(rounds):
        await asyncio.sleep(0)
