# src/taskdeck/store/validation.py

"""
Caller-side field checks.

Each helper turns user input into the JSON body sent to the gateway, or
raises ValidationError before any remote call is made. With partial=True
(updates) only the fields present in the input are checked and sent.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from enum import StrEnum
from typing import Any

from ..core.errors import ValidationError
from ..core.models import DEFAULT_TAG_COLOR, TaskPriority, TaskStatus, parse_due_date

HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def _required_text(field: str, value: Any) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValidationError(field, f"{field.capitalize()} is required")
    return text


def _id_list(field: str, value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise ValidationError(field, f"{field} must be a list of ids")
    out: list[str] = []
    for item in value:
        ref = str(item).strip()
        if ref and ref not in out:
            out.append(ref)
    return out


def _choice(field: str, enum_cls: type[StrEnum], value: Any, default: StrEnum, partial: bool) -> str:
    """Enum field; an empty value means the default on create and is an error on update."""
    if not value and not partial:
        value = default
    try:
        return str(enum_cls(value))
    except ValueError:
        choices = ", ".join(m.value for m in enum_cls)
        raise ValidationError(field, f"Unknown {field} {value!r} (expected one of: {choices})") from None


def folder_fields(data: Mapping[str, Any], *, partial: bool = False) -> dict[str, Any]:
    if partial and "name" not in data:
        return {}
    return {"name": _required_text("name", data.get("name"))}


def tag_fields(data: Mapping[str, Any], *, partial: bool = False) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if not partial or "name" in data:
        out["name"] = _required_text("name", data.get("name"))

    if "color" in data or not partial:
        color = str(data.get("color") or "").strip()
        if not color and not partial:
            color = DEFAULT_TAG_COLOR
        if not HEX_COLOR_RE.match(color):
            raise ValidationError("color", f"Color must be a hex value like #RRGGBB, got {color!r}")
        out["color"] = color
    return out


def task_fields(data: Mapping[str, Any], *, partial: bool = False) -> dict[str, Any]:
    out: dict[str, Any] = {}

    if not partial or "title" in data:
        out["title"] = _required_text("title", data.get("title"))

    if not partial or "description" in data:
        out["description"] = str(data.get("description") or "").strip()

    if not partial or "status" in data:
        out["status"] = _choice("status", TaskStatus, data.get("status"), TaskStatus.PENDING, partial)

    if not partial or "priority" in data:
        out["priority"] = _choice("priority", TaskPriority, data.get("priority"), TaskPriority.MEDIUM, partial)

    if not partial or "due_date" in data:
        try:
            due = parse_due_date(data.get("due_date"))
        except (TypeError, ValueError):
            raise ValidationError("due_date", f"Invalid due date: {data.get('due_date')!r}") from None
        out["due_date"] = due.isoformat() if due is not None else None

    for field in ("folders", "tags"):
        if not partial or field in data:
            out[field] = _id_list(field, data.get(field))

    return out
