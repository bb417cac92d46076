# src/taskdeck/core/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from typing import Any

DEFAULT_TAG_COLOR = "#3b82f6"


class EntityKind(StrEnum):
    """Remote collection name (also the URL segment)."""

    FOLDERS = "folders"
    TASKS = "tasks"
    TAGS = "tags"

    @property
    def singular(self) -> str:
        return self.value[:-1]


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @classmethod
    def from_wire(cls, raw: Any) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDING


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_wire(cls, raw: Any) -> TaskPriority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(raw)
        except ValueError:
            return cls.MEDIUM


def _record_id(payload: Any) -> str:
    """Remote ids arrive as `_id` (document store); `id` is accepted too."""
    if not isinstance(payload, dict):
        raise TypeError(f"expected an object, got {type(payload).__name__}")
    raw = payload.get("_id", payload.get("id"))
    if raw is None or str(raw).strip() == "":
        raise ValueError("record has no id")
    return str(raw)


def _id_list(raw: Any) -> tuple[str, ...]:
    """
    Decode a list of references. Elements may be bare ids or populated
    sub-documents; order is kept and duplicates are dropped.
    """
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise TypeError("reference list must be an array")
    out: list[str] = []
    for item in raw:
        ref = _record_id(item) if isinstance(item, dict) else str(item)
        if ref not in out:
            out.append(ref)
    return tuple(out)


def parse_due_date(raw: Any) -> date | None:
    """Accepts a date, a datetime, or an ISO date/datetime string."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, str):
        return date.fromisoformat(raw.strip()[:10])
    raise TypeError(f"unsupported due_date value: {raw!r}")


@dataclass(slots=True, frozen=True)
class Folder:
    id: str
    name: str

    @classmethod
    def from_wire(cls, payload: Any) -> Folder:
        return cls(id=_record_id(payload), name=str(payload.get("name") or ""))


@dataclass(slots=True, frozen=True)
class Tag:
    id: str
    name: str
    color: str = DEFAULT_TAG_COLOR

    @classmethod
    def from_wire(cls, payload: Any) -> Tag:
        return cls(
            id=_record_id(payload),
            name=str(payload.get("name") or ""),
            color=str(payload.get("color") or DEFAULT_TAG_COLOR),
        )


@dataclass(slots=True, frozen=True)
class FolderDetail:
    id: str
    name: str


@dataclass(slots=True, frozen=True)
class TagDetail:
    id: str
    name: str
    color: str = DEFAULT_TAG_COLOR


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: date | None = None

    # Authoritative relationships.
    folders: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()

    # Server-computed convenience copies; never used to decide membership.
    folder_details: tuple[FolderDetail, ...] = ()
    tag_details: tuple[TagDetail, ...] = ()

    @classmethod
    def from_wire(cls, payload: Any) -> Task:
        task_id = _record_id(payload)

        folder_details = tuple(
            FolderDetail(id=_record_id(d), name=str(d.get("name") or ""))
            for d in (payload.get("folderDetails") or [])
        )
        tag_details = tuple(
            TagDetail(
                id=_record_id(d),
                name=str(d.get("name") or ""),
                color=str(d.get("color") or DEFAULT_TAG_COLOR),
            )
            for d in (payload.get("tagDetails") or [])
        )

        return cls(
            id=task_id,
            title=str(payload.get("title") or ""),
            description=str(payload.get("description") or ""),
            status=TaskStatus.from_wire(payload.get("status")),
            priority=TaskPriority.from_wire(payload.get("priority")),
            due_date=parse_due_date(payload.get("due_date")),
            folders=_id_list(payload.get("folders")),
            tags=_id_list(payload.get("tags")),
            folder_details=folder_details,
            tag_details=tag_details,
        )


Record = Folder | Tag | Task

RECORD_TYPES: dict[EntityKind, type[Folder] | type[Tag] | type[Task]] = {
    EntityKind.FOLDERS: Folder,
    EntityKind.TASKS: Task,
    EntityKind.TAGS: Tag,
}


def decode_record(kind: EntityKind, payload: Any) -> Record:
    """Decode one wire object. Raises TypeError/ValueError when malformed."""
    return RECORD_TYPES[kind].from_wire(payload)


@dataclass(slots=True, frozen=True)
class TaskFilters:
    """
    Server-side task filters. Absent fields are left out of the request
    entirely, never sent as null.
    """

    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    folder: str | None = None
    tag: str | None = None

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.status:
            params["status"] = str(self.status)
        if self.priority:
            params["priority"] = str(self.priority)
        if self.folder:
            params["folder"] = self.folder
        if self.tag:
            params["tag"] = self.tag
        return params


@dataclass(slots=True)
class LoadingState:
    folders: bool = False
    tasks: bool = False
    tags: bool = False

    def copy(self) -> LoadingState:
        return LoadingState(folders=self.folders, tasks=self.tasks, tags=self.tags)

    def any(self) -> bool:
        return self.folders or self.tasks or self.tags


@dataclass(slots=True)
class SelectionState:
    folder: str | None = None
    tags: list[str] = field(default_factory=list)

    @property
    def effective_tag(self) -> str | None:
        # The remote filter takes a single tag.
        return self.tags[0] if self.tags else None
