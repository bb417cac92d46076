# src/taskdeck/gateway/offline.py

from __future__ import annotations

import copy
import itertools
import logging
from collections import Counter
from datetime import date
from typing import Any

from ..core.errors import RemoteError
from ..core.models import (
    DEFAULT_TAG_COLOR,
    EntityKind,
    Record,
    TaskFilters,
    decode_record,
    parse_due_date,
)
from ..core.ports import WirePayload

logger = logging.getLogger(__name__)

_ID_PREFIX = {
    EntityKind.FOLDERS: "f",
    EntityKind.TASKS: "t",
    EntityKind.TAGS: "tag",
}

_WRITABLE_FIELDS = {
    EntityKind.FOLDERS: ("name",),
    EntityKind.TAGS: ("name", "color"),
    EntityKind.TASKS: ("title", "description", "status", "priority", "due_date", "folders", "tags"),
}


class InMemoryGateway:
    """
    Offline stand-in for the remote collection API, used when no server is
    configured and by tests.

    Behaves like the real store as seen through the wire format:
    - server-assigned ids (f1, t1, tag1, ...)
    - task filters (status, priority, folder, tag)
    - folderDetails / tagDetails filled on every returned task
    - deleted folders/tags are stripped from stored tasks
    - unknown ids fail with a 404 RemoteError

    Records are kept as wire dicts and decoded on the way out, so callers
    exercise the same decoding path as with HttpGateway.
    """

    def __init__(self) -> None:
        self._docs: dict[EntityKind, dict[str, dict[str, Any]]] = {k: {} for k in EntityKind}
        self._ids = {k: itertools.count(1) for k in EntityKind}
        self.calls: list[tuple[str, Any]] = []
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True

    # ---- helpers ----

    def _doc(self, operation: str, kind: EntityKind, record_id: str) -> dict[str, Any]:
        doc = self._docs[kind].get(record_id)
        if doc is None:
            raise RemoteError(operation, f"{kind.singular} {record_id} not found", status_code=404)
        return doc

    def _with_details(self, doc: dict[str, Any]) -> dict[str, Any]:
        out = copy.deepcopy(doc)
        folders = self._docs[EntityKind.FOLDERS]
        tags = self._docs[EntityKind.TAGS]
        out["folderDetails"] = [
            {"_id": fid, "name": folders[fid]["name"]} for fid in out.get("folders", []) if fid in folders
        ]
        out["tagDetails"] = [
            {"_id": tid, "name": tags[tid]["name"], "color": tags[tid]["color"]}
            for tid in out.get("tags", [])
            if tid in tags
        ]
        return out

    def _out(self, kind: EntityKind, doc: dict[str, Any]) -> Record:
        payload = self._with_details(doc) if kind is EntityKind.TASKS else copy.deepcopy(doc)
        return decode_record(kind, payload)

    @staticmethod
    def _writable(kind: EntityKind, data: WirePayload) -> dict[str, Any]:
        fields = {k: copy.deepcopy(v) for k, v in data.items() if k in _WRITABLE_FIELDS[kind]}
        if isinstance(fields.get("due_date"), date):
            fields["due_date"] = fields["due_date"].isoformat()
        return fields

    @staticmethod
    def _matches(doc: dict[str, Any], filters: TaskFilters) -> bool:
        if filters.status and doc.get("status") != filters.status:
            return False
        if filters.priority and doc.get("priority") != filters.priority:
            return False
        if filters.folder and filters.folder not in doc.get("folders", []):
            return False
        if filters.tag and filters.tag not in doc.get("tags", []):
            return False
        return True

    # ---- public API ----

    async def list(self, kind: EntityKind, filters: TaskFilters | None = None) -> list[Record]:
        self.calls.append((f"list_{kind.value}", filters))
        docs = list(self._docs[kind].values())
        if kind is EntityKind.TASKS and filters is not None:
            docs = [d for d in docs if self._matches(d, filters)]
        return [self._out(kind, d) for d in docs]

    async def get(self, kind: EntityKind, record_id: str) -> Record:
        operation = f"get_{kind.singular}"
        self.calls.append((operation, record_id))
        return self._out(kind, self._doc(operation, kind, record_id))

    async def create(self, kind: EntityKind, data: WirePayload) -> Record:
        operation = f"create_{kind.singular}"
        self.calls.append((operation, dict(data)))
        record_id = f"{_ID_PREFIX[kind]}{next(self._ids[kind])}"
        doc: dict[str, Any] = {"_id": record_id}
        if kind is EntityKind.TASKS:
            doc.update(
                {
                    "title": "",
                    "description": "",
                    "status": "pending",
                    "priority": "medium",
                    "due_date": None,
                    "folders": [],
                    "tags": [],
                }
            )
        elif kind is EntityKind.TAGS:
            doc["color"] = DEFAULT_TAG_COLOR
        doc.update(self._writable(kind, data))
        self._docs[kind][record_id] = doc
        logger.debug("Offline %s id=%s", operation, record_id)
        return self._out(kind, doc)

    async def update(self, kind: EntityKind, record_id: str, data: WirePayload) -> Record:
        operation = f"update_{kind.singular}"
        self.calls.append((operation, (record_id, dict(data))))
        doc = self._doc(operation, kind, record_id)
        doc.update(self._writable(kind, data))
        return self._out(kind, doc)

    async def delete(self, kind: EntityKind, record_id: str) -> None:
        operation = f"delete_{kind.singular}"
        self.calls.append((operation, record_id))
        self._doc(operation, kind, record_id)
        del self._docs[kind][record_id]

        if kind in (EntityKind.FOLDERS, EntityKind.TAGS):
            for task in self._docs[EntityKind.TASKS].values():
                refs = task.get(kind.value, [])
                if record_id in refs:
                    task[kind.value] = [r for r in refs if r != record_id]

    # ---- aggregations ----

    def _tasks(self) -> list[dict[str, Any]]:
        return list(self._docs[EntityKind.TASKS].values())

    async def tasks_by_status(self) -> Any:
        self.calls.append(("tasks_by_status", None))
        counts = Counter(t.get("status", "pending") for t in self._tasks())
        return [{"_id": status, "count": n} for status, n in sorted(counts.items())]

    async def tasks_by_folder(self) -> Any:
        self.calls.append(("tasks_by_folder", None))
        out = []
        for fid, folder in self._docs[EntityKind.FOLDERS].items():
            n = sum(1 for t in self._tasks() if fid in t.get("folders", []))
            out.append({"_id": fid, "name": folder["name"], "count": n})
        return out

    async def tasks_by_tag(self) -> Any:
        self.calls.append(("tasks_by_tag", None))
        out = []
        for tid, tag in self._docs[EntityKind.TAGS].items():
            n = sum(1 for t in self._tasks() if tid in t.get("tags", []))
            out.append({"_id": tid, "name": tag["name"], "color": tag["color"], "count": n})
        return out

    async def task_stats(self) -> Any:
        self.calls.append(("task_stats", None))
        tasks = self._tasks()
        today = date.today()
        overdue = 0
        for t in tasks:
            due = parse_due_date(t.get("due_date"))
            if due is not None and due < today and t.get("status") != "completed":
                overdue += 1
        return {
            "total": len(tasks),
            "pending": sum(1 for t in tasks if t.get("status") == "pending"),
            "in_progress": sum(1 for t in tasks if t.get("status") == "in_progress"),
            "completed": sum(1 for t in tasks if t.get("status") == "completed"),
            "overdue": overdue,
        }
