# src/taskdeck/cli/commands.py

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import shlex
from collections.abc import Awaitable, Callable
from typing import Any

from ..core.errors import TaskdeckError
from ..core.models import Task, TaskStatus
from ..core.state import AppState
from ..store.projection import folder_name, list_title, tag_name, visible_tasks

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[
    [AppState, list[str], CommandEmitter | None], str | Awaitable[str]
]

logger = logging.getLogger(__name__)

# key=value aliases accepted by /task and /tag
_TASK_KEYS = {
    "title": "title",
    "desc": "description",
    "description": "description",
    "status": "status",
    "priority": "priority",
    "prio": "priority",
    "due": "due_date",
    "due_date": "due_date",
    "folders": "folders",
    "folder": "folders",
    "tags": "tags",
    "tag": "tags",
}


class CommandRegistry:
    """Slash-command registry used by the console connector (/help, /tasks, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Handlers may be sync or async. TaskdeckError (remote or validation
        failures) becomes a short user-facing reply; anything else propagates.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError:
            parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            result = handler(state, args, emit)
            if inspect.isawaitable(result):
                result = await result
        except TaskdeckError as e:
            logger.info("/%s failed: %s", name, e)
            return f"Error: {e}"
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def parse_fields(args: list[str]) -> tuple[list[str], dict[str, Any]]:
    """
    Split args into plain words and key=value fields.

    List-valued keys (folders, tags) take comma separated ids; an empty value
    clears the list.
    """
    words: list[str] = []
    fields: dict[str, Any] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if not sep or not key:
            words.append(arg)
            continue
        field = _TASK_KEYS.get(key.lower(), key.lower())
        if field in ("folders", "tags"):
            fields[field] = [v.strip() for v in value.split(",") if v.strip()]
        elif field == "due_date" and value.lower() in ("", "none", "null"):
            fields[field] = None
        else:
            fields[field] = value
    return words, fields


def format_task(state: AppState, task: Task) -> str:
    store = state.store
    mark = {
        TaskStatus.PENDING: "[ ]",
        TaskStatus.IN_PROGRESS: "[~]",
        TaskStatus.COMPLETED: "[x]",
    }[task.status]
    line = f"{mark} {task.id} {task.title} ({task.priority}"
    if task.due_date is not None:
        line += f", due {task.due_date.isoformat()}"
    line += ")"
    if task.folders:
        line += " folders: " + ", ".join(folder_name(store, f) for f in task.folders)
    if task.tags:
        line += " tags: " + ", ".join(tag_name(store, t) for t in task.tags)
    return line


def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    store = state.store
    settings = state.settings
    source = "offline (in-memory)" if getattr(settings, "offline", False) else settings.api_base_url
    loading = store.loading
    busy = [name for name in ("folders", "tasks", "tags") if getattr(loading, name)]
    tags = ", ".join(tag_name(store, t) for t in store.selected_tags) or "-"
    return (
        "Status:\n"
        f"  Remote: {source}\n"
        f"  Loading: {', '.join(busy) if busy else 'idle'}\n"
        f"  View: {list_title(store)}\n"
        f"  Tag filter: {tags}\n"
        f"  Cached: {len(store.folders)} folders, {len(store.tags)} tags, {len(store.tasks)} tasks"
    )


def cmd_folders(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    store = state.store
    if not store.folders:
        return "No folders yet. Use /folder new <name>."
    lines = ["Folders:"]
    marker = "*" if store.selected_folder is None else " "
    lines.append(f" {marker} (all) All Tasks")
    for f in store.folders:
        marker = "*" if f.id == store.selected_folder else " "
        lines.append(f" {marker} {f.id} {f.name}")
    return "\n".join(lines)


async def cmd_folder(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /folder new <name>
    /folder rename <id> <name>
    /folder rm <id>
    /folder select <id>
    /folder all
    """
    usage = "Usage: /folder new <name> | rename <id> <name> | rm <id> | select <id> | all"
    if not args:
        return usage

    store = state.store
    sub, rest = args[0].lower(), args[1:]

    if sub == "new":
        folder = await store.create_folder({"name": " ".join(rest)})
        return f"Created folder {folder.id} {folder.name}."

    if sub == "rename" and rest:
        folder = await store.update_folder(rest[0], {"name": " ".join(rest[1:])})
        return f"Renamed folder {folder.id} to {folder.name}."

    if sub in ("rm", "delete") and rest:
        await store.delete_folder(rest[0])
        return f"Deleted folder {rest[0]}."

    if sub == "select" and rest:
        await store.select_folder(rest[0])
        return f"{list_title(store)}: {len(visible_tasks(store))} tasks."

    if sub == "all":
        await store.select_folder(None)
        return f"{list_title(store)}: {len(visible_tasks(store))} tasks."

    return usage


def cmd_tags(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    store = state.store
    if not store.tags:
        return "No tags yet. Use /tag new <name> [color=#RRGGBB]."
    lines = ["Tags:"]
    for t in store.tags:
        marker = "*" if t.id in store.selected_tags else " "
        lines.append(f" {marker} {t.id} {t.name} {t.color}")
    return "\n".join(lines)


async def cmd_tag(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /tag new <name> [color=#RRGGBB]
    /tag edit <id> [name=...] [color=...]
    /tag rm <id>
    /tag toggle <id>
    """
    usage = "Usage: /tag new <name> [color=#hex] | edit <id> [name=..] [color=..] | rm <id> | toggle <id>"
    if not args:
        return usage

    store = state.store
    sub, rest = args[0].lower(), args[1:]
    words, fields = parse_fields(rest)

    if sub == "new":
        data = {"name": " ".join(words), **fields}
        tag = await store.create_tag(data)
        return f"Created tag {tag.id} {tag.name} {tag.color}."

    if sub == "edit" and words:
        data = dict(fields)
        if len(words) > 1:
            data["name"] = " ".join(words[1:])
        if not data:
            return usage
        tag = await store.update_tag(words[0], data)
        return f"Updated tag {tag.id} {tag.name} {tag.color}."

    if sub in ("rm", "delete") and words:
        await store.delete_tag(words[0])
        return f"Deleted tag {words[0]}."

    if sub == "toggle" and words:
        await store.toggle_tag_selection(words[0])
        current = store.effective_tag
        label = tag_name(store, current) if current else "none"
        return f"Tag filter: {label}. {len(visible_tasks(store))} tasks."

    return usage


def cmd_tasks(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    store = state.store
    title = list_title(store)
    if store.loading.tasks:
        return f"{title}: loading..."
    tasks = visible_tasks(store)
    if not tasks:
        return f"{title}: no tasks found. Use /task new <title>."
    return "\n".join([f"{title}:"] + [f"  {format_task(state, t)}" for t in tasks])


async def cmd_task(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /task new <title> [desc=..] [priority=low|medium|high] [due=YYYY-MM-DD] [folders=id,..] [tags=id,..]
    /task show <id>
    /task edit <id> [title=..] [status=..] [priority=..] [due=..] [folders=..] [tags=..]
    /task status <id> pending|in_progress|completed
    /task rm <id>
    """
    usage = "Usage: /task new <title> [k=v..] | show <id> | edit <id> k=v.. | status <id> <status> | rm <id>"
    if not args:
        return usage

    store = state.store
    sub, rest = args[0].lower(), args[1:]
    words, fields = parse_fields(rest)

    if sub == "new":
        data = {"title": " ".join(words), **fields}
        task = await store.create_task(data)
        return f"Created {format_task(state, task)}"

    if sub == "show" and words:
        task = await store.refresh_task(words[0])
        lines = [format_task(state, task)]
        if task.description:
            lines.append(f"  {task.description}")
        return "\n".join(lines)

    if sub == "edit" and words and fields:
        task = await store.update_task(words[0], fields)
        return f"Updated {format_task(state, task)}"

    if sub == "status" and len(words) >= 2:
        task = await store.update_task(words[0], {"status": words[1]})
        return f"Updated {format_task(state, task)}"

    if sub in ("rm", "delete") and words:
        await store.delete_task(words[0])
        return f"Deleted task {words[0]}."

    return usage


async def cmd_stats(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    gateway = state.gateway
    stats, by_status = await asyncio.gather(gateway.task_stats(), gateway.tasks_by_status())
    return (
        "Task stats:\n"
        f"  {json.dumps(stats, ensure_ascii=False)}\n"
        f"  by status: {json.dumps(by_status, ensure_ascii=False)}"
    )


async def cmd_reload(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    store = state.store
    if emit:
        emit("Reloading folders, tags and tasks...")
    results = await asyncio.gather(
        store.load_folders(),
        store.load_tags(),
        store.load_tasks(store.current_filters()),
        return_exceptions=True,
    )
    errors = [r for r in results if isinstance(r, BaseException)]
    if errors:
        return "Reload finished with errors:\n" + "\n".join(f"  {e}" for e in errors)
    return (
        f"Reloaded: {len(store.folders)} folders, {len(store.tags)} tags, "
        f"{len(store.tasks)} tasks."
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show remote, loading and selection state.")
registry.register("folders", cmd_folders, help_text="List folders.")
registry.register(
    "folder", cmd_folder, help_text="Folders: /folder new|rename|rm|select|all."
)
registry.register("tags", cmd_tags, help_text="List tags.")
registry.register("tag", cmd_tag, help_text="Tags: /tag new|edit|rm|toggle.")
registry.register("tasks", cmd_tasks, help_text="List tasks in the current view.", aliases=["ls"])
registry.register("task", cmd_task, help_text="Tasks: /task new|show|edit|status|rm.")
registry.register("stats", cmd_stats, help_text="Show task statistics from the server.")
registry.register("reload", cmd_reload, help_text="Reload everything from the server.")
