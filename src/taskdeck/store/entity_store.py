# src/taskdeck/store/entity_store.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, cast

from ..core.errors import ValidationError
from ..core.models import (
    EntityKind,
    Folder,
    LoadingState,
    Record,
    SelectionState,
    Tag,
    Task,
    TaskFilters,
)
from ..core.ports import RemoteGateway
from .validation import folder_fields, tag_fields, task_fields

logger = logging.getLogger(__name__)


class EntityStore:
    """
    In-process cache of folders, tasks and tags plus selection and loading
    state. It is the only writer of that state; everything else reads the
    snapshots exposed here or calls the async operations below.

    Rules:
    - no optimistic updates: local collections change only after the gateway
      confirmed the call; on failure the error is logged and re-raised and
      nothing changes
    - loads fully replace a collection, but only the most recently issued
      load of that collection is applied (sequence numbers); late answers to
      superseded loads are dropped; a confirmed delete also supersedes the
      loads of that collection still in flight
    - only one tag id (the effective tag) is ever sent as a task filter,
      because the remote filter accepts a single tag

    Lifecycle: construct with a gateway, `await start()` once (or use
    `async with`), `await aclose()` at shutdown. The gateway is owned and
    closed by whoever created it.
    """

    def __init__(self, gateway: RemoteGateway) -> None:
        self._gateway = gateway

        self._collections: dict[EntityKind, list[Record]] = {k: [] for k in EntityKind}
        self._selection = SelectionState()
        self._loading = LoadingState()

        self._issued: dict[EntityKind, int] = {k: 0 for k in EntityKind}
        self._in_flight: dict[EntityKind, int] = {k: 0 for k in EntityKind}

        self._started = False
        self._closed = False

    # ---- lifecycle ----

    async def start(self) -> list[BaseException]:
        """
        First activation: load folders, tags and all tasks concurrently.

        Failures are logged and returned (not raised) so one unreachable
        collection does not block the others. Calling start() again is a no-op.
        """
        self._ensure_open()
        if self._started:
            return []
        self._started = True

        results = await asyncio.gather(
            self.load_folders(),
            self.load_tags(),
            self.load_tasks(),
            return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, BaseException)]
        for err in errors:
            logger.error("Initial load failed: %s", err)
        logger.info(
            "EntityStore started folders=%d tags=%d tasks=%d errors=%d",
            len(self.folders),
            len(self.tags),
            len(self.tasks),
            len(errors),
        )
        return errors

    async def aclose(self) -> None:
        self._closed = True
        logger.debug("EntityStore closed.")

    async def __aenter__(self) -> EntityStore:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("EntityStore is closed")

    # ---- read model ----

    @property
    def folders(self) -> tuple[Folder, ...]:
        return tuple(cast(list[Folder], self._collections[EntityKind.FOLDERS]))

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(cast(list[Task], self._collections[EntityKind.TASKS]))

    @property
    def tags(self) -> tuple[Tag, ...]:
        return tuple(cast(list[Tag], self._collections[EntityKind.TAGS]))

    @property
    def selected_folder(self) -> str | None:
        return self._selection.folder

    @property
    def selected_tags(self) -> tuple[str, ...]:
        return tuple(self._selection.tags)

    @property
    def effective_tag(self) -> str | None:
        return self._selection.effective_tag

    @property
    def loading(self) -> LoadingState:
        return self._loading.copy()

    @property
    def started(self) -> bool:
        return self._started

    def find_folder(self, folder_id: str | None) -> Folder | None:
        return cast(Folder | None, self._find(EntityKind.FOLDERS, folder_id))

    def find_tag(self, tag_id: str | None) -> Tag | None:
        return cast(Tag | None, self._find(EntityKind.TAGS, tag_id))

    def find_task(self, task_id: str | None) -> Task | None:
        return cast(Task | None, self._find(EntityKind.TASKS, task_id))

    def current_filters(self) -> TaskFilters:
        return TaskFilters(folder=self._selection.folder, tag=self._selection.effective_tag)

    def _find(self, kind: EntityKind, record_id: str | None) -> Record | None:
        if record_id is None:
            return None
        for record in self._collections[kind]:
            if record.id == record_id:
                return record
        return None

    # ---- loads ----

    def _mark_in_flight(self, kind: EntityKind, delta: int) -> None:
        self._in_flight[kind] += delta
        setattr(self._loading, kind.value, self._in_flight[kind] > 0)

    async def _load(self, kind: EntityKind, filters: TaskFilters | None = None) -> bool:
        self._ensure_open()
        self._issued[kind] += 1
        seq = self._issued[kind]

        self._mark_in_flight(kind, +1)
        try:
            records = await self._gateway.list(kind, filters)
        except Exception as e:
            logger.warning("Loading %s failed (seq=%d): %s", kind.value, seq, e)
            raise
        finally:
            self._mark_in_flight(kind, -1)

        if seq != self._issued[kind]:
            logger.debug(
                "Dropping superseded %s load seq=%d (latest=%d)",
                kind.value,
                seq,
                self._issued[kind],
            )
            return False

        self._collections[kind] = list(records)
        logger.debug("Loaded %s: %d records (seq=%d)", kind.value, len(records), seq)
        return True

    async def load_folders(self) -> bool:
        """Replace the folder collection. Returns False if the result was superseded."""
        return await self._load(EntityKind.FOLDERS)

    async def load_tags(self) -> bool:
        return await self._load(EntityKind.TAGS)

    async def load_tasks(self, filters: TaskFilters | None = None) -> bool:
        """
        Replace the task collection with the server's answer for `filters`.

        Returns True if applied, False if a newer load_tasks() or a task
        delete happened before this one completed (its result is discarded).
        """
        return await self._load(EntityKind.TASKS, filters)

    # ---- generic mutations ----

    async def _create(self, kind: EntityKind, body: Mapping[str, Any]) -> Record:
        self._ensure_open()
        try:
            record = await self._gateway.create(kind, body)
        except Exception as e:
            logger.warning("create_%s failed: %s", kind.singular, e)
            raise
        self._collections[kind].append(record)
        logger.info("Created %s id=%s", kind.singular, record.id)
        return record

    async def _update(self, kind: EntityKind, record_id: str, body: Mapping[str, Any]) -> Record:
        self._ensure_open()
        try:
            record = await self._gateway.update(kind, record_id, body)
        except Exception as e:
            logger.warning("update_%s id=%s failed: %s", kind.singular, record_id, e)
            raise
        self._replace(kind, record_id, record)
        logger.info("Updated %s id=%s", kind.singular, record_id)
        return record

    async def _delete(self, kind: EntityKind, record_id: str) -> None:
        self._ensure_open()
        try:
            await self._gateway.delete(kind, record_id)
        except Exception as e:
            logger.warning("delete_%s id=%s failed: %s", kind.singular, record_id, e)
            raise
        self._collections[kind] = [r for r in self._collections[kind] if r.id != record_id]
        # Loads of this collection already in flight may still contain the record.
        self._issued[kind] += 1
        logger.info("Deleted %s id=%s", kind.singular, record_id)

    def _replace(self, kind: EntityKind, record_id: str, record: Record) -> None:
        # In place, keeping position. A record not in the cache (e.g. filtered out) is not added.
        items = self._collections[kind]
        for i, existing in enumerate(items):
            if existing.id == record_id:
                items[i] = record

    # ---- folders ----

    async def create_folder(self, data: Mapping[str, Any]) -> Folder:
        return cast(Folder, await self._create(EntityKind.FOLDERS, folder_fields(data)))

    async def update_folder(self, folder_id: str, data: Mapping[str, Any]) -> Folder:
        body = folder_fields(data, partial=True)
        return cast(Folder, await self._update(EntityKind.FOLDERS, folder_id, body))

    async def delete_folder(self, folder_id: str) -> None:
        await self._delete(EntityKind.FOLDERS, folder_id)
        if self._selection.folder == folder_id:
            self._selection.folder = None
            logger.debug("Cleared folder selection (deleted id=%s)", folder_id)

    # ---- tags ----

    async def create_tag(self, data: Mapping[str, Any]) -> Tag:
        return cast(Tag, await self._create(EntityKind.TAGS, tag_fields(data)))

    async def update_tag(self, tag_id: str, data: Mapping[str, Any]) -> Tag:
        body = tag_fields(data, partial=True)
        return cast(Tag, await self._update(EntityKind.TAGS, tag_id, body))

    async def delete_tag(self, tag_id: str) -> None:
        await self._delete(EntityKind.TAGS, tag_id)
        if tag_id in self._selection.tags:
            self._selection.tags = [t for t in self._selection.tags if t != tag_id]
            logger.debug("Removed deleted tag id=%s from selection", tag_id)

    # ---- tasks ----

    async def create_task(self, data: Mapping[str, Any]) -> Task:
        """
        Create a task and append the server's record.

        Without explicit "folders", a new task is filed under the currently
        selected folder.
        """
        body = task_fields(data)
        if "folders" not in data and self._selection.folder:
            body["folders"] = [self._selection.folder]
        return cast(Task, await self._create(EntityKind.TASKS, body))

    async def update_task(self, task_id: str, data: Mapping[str, Any]) -> Task:
        body = task_fields(data, partial=True)
        return cast(Task, await self._update(EntityKind.TASKS, task_id, body))

    async def delete_task(self, task_id: str) -> None:
        await self._delete(EntityKind.TASKS, task_id)

    async def refresh_task(self, task_id: str) -> Task:
        """Fetch one task and replace the cached copy in place."""
        self._ensure_open()
        try:
            record = await self._gateway.get(EntityKind.TASKS, task_id)
        except Exception as e:
            logger.warning("get_task id=%s failed: %s", task_id, e)
            raise
        self._replace(EntityKind.TASKS, task_id, record)
        return cast(Task, record)

    # ---- selection ----

    async def select_folder(self, folder_id: str | None) -> bool:
        """
        Select a folder (None = all tasks) and reload tasks for the new
        folder combined with the effective tag. Tag selection is kept.
        """
        folder_id = folder_id or None
        if folder_id is not None and self.find_folder(folder_id) is None:
            raise ValidationError("folder", f"Unknown folder: {folder_id}")

        self._selection.folder = folder_id
        logger.debug("Selected folder=%s", folder_id)
        return await self.load_tasks(self.current_filters())

    async def toggle_tag_selection(self, tag_id: str) -> bool:
        """
        Toggle a tag in the selection and reload tasks.

        - selected: removed; the next remaining tag (if any) becomes the filter
        - not selected: the selection becomes exactly this tag

        Only the effective tag (first of the selection) is sent to the gateway.
        """
        if tag_id in self._selection.tags:
            self._selection.tags = [t for t in self._selection.tags if t != tag_id]
        else:
            if self.find_tag(tag_id) is None:
                raise ValidationError("tag", f"Unknown tag: {tag_id}")
            self._selection.tags = [tag_id]

        logger.debug("Selected tags=%s effective=%s", self._selection.tags, self.effective_tag)
        return await self.load_tasks(self.current_filters())
