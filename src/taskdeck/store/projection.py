# src/taskdeck/store/projection.py

"""Derived read model for the task list. Pure reads over EntityStore state."""

from __future__ import annotations

from ..core.models import Task
from .entity_store import EntityStore

ALL_TASKS_TITLE = "All Tasks"
MISSING_FOLDER_TITLE = "Tasks"
UNKNOWN_NAME = "Unknown"


def visible_tasks(store: EntityStore) -> tuple[Task, ...]:
    # Filtering already happened server-side in the last applied load.
    return store.tasks


def list_title(store: EntityStore) -> str:
    if store.selected_folder is None:
        return ALL_TASKS_TITLE
    folder = store.find_folder(store.selected_folder)
    if folder is None:
        # Selected folder is gone (deleted while selected or not loaded yet).
        return MISSING_FOLDER_TITLE
    return f"Tasks in {folder.name}"


def folder_name(store: EntityStore, folder_id: str) -> str:
    folder = store.find_folder(folder_id)
    return folder.name if folder is not None else UNKNOWN_NAME


def tag_name(store: EntityStore, tag_id: str) -> str:
    tag = store.find_tag(tag_id)
    return tag.name if tag is not None else UNKNOWN_NAME
