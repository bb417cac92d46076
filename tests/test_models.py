# tests/test_models.py

from __future__ import annotations

from datetime import date, datetime

import pytest

from taskdeck.core.models import (
    DEFAULT_TAG_COLOR,
    EntityKind,
    Folder,
    Tag,
    Task,
    TaskFilters,
    TaskPriority,
    TaskStatus,
    decode_record,
    parse_due_date,
)


def test_task_from_wire_full_document() -> None:
    task = Task.from_wire(
        {
            "_id": "665f1c",
            "title": "Plan sprint",
            "description": "Q3",
            "status": "in_progress",
            "priority": "low",
            "due_date": "2024-07-01T00:00:00.000Z",
            "folders": ["f1", "f2", "f1"],
            "tags": [{"_id": "tag1", "name": "urgent"}],
            "folderDetails": [{"_id": "f1", "name": "Work"}, {"_id": "f2", "name": "Team"}],
            "tagDetails": [{"_id": "tag1", "name": "urgent", "color": "#ff0000"}],
        }
    )

    assert task.id == "665f1c"
    assert task.status is TaskStatus.IN_PROGRESS
    assert task.priority is TaskPriority.LOW
    assert task.due_date == date(2024, 7, 1)
    assert task.folders == ("f1", "f2")
    assert task.tags == ("tag1",)
    assert [d.name for d in task.folder_details] == ["Work", "Team"]
    assert task.tag_details[0].color == "#ff0000"


def test_task_from_wire_minimal_uses_defaults() -> None:
    task = Task.from_wire({"id": 42, "title": "x", "status": "archived", "priority": None})

    assert task.id == "42"
    assert task.status is TaskStatus.PENDING
    assert task.priority is TaskPriority.MEDIUM
    assert task.due_date is None
    assert task.folders == () and task.tag_details == ()


def test_records_without_id_are_malformed() -> None:
    with pytest.raises(ValueError):
        Folder.from_wire({"name": "Work"})
    with pytest.raises(TypeError):
        decode_record(EntityKind.TAGS, ["not", "an", "object"])


def test_decode_record_dispatches_on_kind() -> None:
    assert decode_record(EntityKind.FOLDERS, {"_id": "f1", "name": "Work"}) == Folder("f1", "Work")
    assert decode_record(EntityKind.TAGS, {"_id": "g", "name": "x"}) == Tag("g", "x", DEFAULT_TAG_COLOR)


def test_parse_due_date_variants() -> None:
    assert parse_due_date(None) is None
    assert parse_due_date("") is None
    assert parse_due_date("2024-02-29") == date(2024, 2, 29)
    assert parse_due_date(datetime(2024, 1, 2, 15, 30)) == date(2024, 1, 2)
    with pytest.raises(ValueError):
        parse_due_date("tomorrow")


def test_filters_omit_absent_fields() -> None:
    assert TaskFilters().to_params() == {}
    assert TaskFilters(folder="f1").to_params() == {"folder": "f1"}
    assert TaskFilters(status=TaskStatus.COMPLETED, priority=TaskPriority.HIGH, tag="t").to_params() == {
        "status": "completed",
        "priority": "high",
        "tag": "t",
    }


def test_entity_kind_singular() -> None:
    assert [k.singular for k in EntityKind] == ["folder", "task", "tag"]
