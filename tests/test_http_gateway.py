# tests/test_http_gateway.py

from __future__ import annotations

import json
from datetime import date

import httpx
import pytest

from taskdeck.core.errors import RemoteError
from taskdeck.core.models import EntityKind, Folder, Tag, Task, TaskFilters, TaskPriority
from taskdeck.gateway.client import HttpGateway, make_timeout


class Recorder:
    """MockTransport handler that records requests and replies with a canned response."""

    def __init__(self, status_code: int, **kwargs) -> None:
        self.status_code = status_code
        self.kwargs = kwargs
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, **self.kwargs)


def _gateway(handler) -> HttpGateway:
    return HttpGateway("http://testserver/api/", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_list_tasks_sends_only_present_filters() -> None:
    rec = Recorder(
        200,
        json=[
            {
                "_id": "t1",
                "title": "Ship",
                "priority": "high",
                "due_date": "2024-05-01T00:00:00.000Z",
                "folders": ["f1"],
                "tags": ["tag2"],
                "folderDetails": [{"_id": "f1", "name": "Work"}],
                "tagDetails": [{"_id": "tag2", "name": "urgent", "color": "#ff0000"}],
            }
        ],
    )
    async with _gateway(rec) as gw:
        tasks = await gw.list(EntityKind.TASKS, TaskFilters(folder="f1", tag="tag2"))

    request = rec.requests[0]
    assert request.method == "GET"
    assert request.url.path == "/api/tasks"
    assert dict(request.url.params) == {"folder": "f1", "tag": "tag2"}

    (task,) = tasks
    assert isinstance(task, Task)
    assert task.priority is TaskPriority.HIGH
    assert task.due_date == date(2024, 5, 1)
    assert task.folder_details[0].name == "Work"
    assert task.tag_details[0].color == "#ff0000"


@pytest.mark.asyncio
async def test_list_without_filters_has_no_query_string() -> None:
    rec = Recorder(200, json=[{"_id": "f1", "name": "Work"}])
    async with _gateway(rec) as gw:
        folders = await gw.list(EntityKind.FOLDERS)

    assert rec.requests[0].url.query == b""
    assert folders == [Folder(id="f1", name="Work")]


@pytest.mark.asyncio
async def test_create_posts_json_body_and_returns_server_record() -> None:
    rec = Recorder(201, json={"_id": "tag1", "name": "home", "color": "#00ff00"})
    async with _gateway(rec) as gw:
        tag = await gw.create(EntityKind.TAGS, {"name": "home", "color": "#00ff00"})

    request = rec.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/api/tags"
    assert json.loads(request.content) == {"name": "home", "color": "#00ff00"}
    assert tag == Tag(id="tag1", name="home", color="#00ff00")


@pytest.mark.asyncio
async def test_update_and_get_use_record_path() -> None:
    rec = Recorder(200, json={"_id": "t7", "title": "Renamed", "status": "completed"})
    async with _gateway(rec) as gw:
        updated = await gw.update(EntityKind.TASKS, "t7", {"title": "Renamed"})
        fetched = await gw.get(EntityKind.TASKS, "t7")

    assert [(r.method, r.url.path) for r in rec.requests] == [
        ("PUT", "/api/tasks/t7"),
        ("GET", "/api/tasks/t7"),
    ]
    assert updated == fetched
    assert updated.title == "Renamed"


@pytest.mark.asyncio
async def test_record_id_is_escaped_as_one_path_segment() -> None:
    rec = Recorder(200, json={"_id": "x", "title": "x"})
    async with _gateway(rec) as gw:
        await gw.get(EntityKind.TASKS, "abc?status=completed")
        await gw.update(EntityKind.TASKS, "a/b", {"title": "x"})
        await gw.delete(EntityKind.TASKS, "a#b")

    assert [r.url.raw_path for r in rec.requests] == [
        b"/api/tasks/abc%3Fstatus%3Dcompleted",
        b"/api/tasks/a%2Fb",
        b"/api/tasks/a%23b",
    ]
    assert all(r.url.query == b"" for r in rec.requests)


@pytest.mark.asyncio
async def test_delete_accepts_ack_body_or_empty_response() -> None:
    async with _gateway(Recorder(200, json={"message": "Task deleted"})) as gw:
        assert await gw.delete(EntityKind.TASKS, "t1") is None

    rec = Recorder(204)
    async with _gateway(rec) as gw:
        assert await gw.delete(EntityKind.FOLDERS, "f1") is None
    assert rec.requests[0].method == "DELETE"
    assert rec.requests[0].url.path == "/api/folders/f1"


@pytest.mark.asyncio
async def test_error_status_becomes_remote_error() -> None:
    rec = Recorder(404, json={"message": "Task not found"})
    async with _gateway(rec) as gw:
        with pytest.raises(RemoteError) as exc_info:
            await gw.get(EntityKind.TASKS, "missing")

    err = exc_info.value
    assert err.operation == "get_task"
    assert err.status_code == 404
    assert "Task not found" in str(err)


@pytest.mark.asyncio
async def test_transport_failure_becomes_remote_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _gateway(handler) as gw:
        with pytest.raises(RemoteError) as exc_info:
            await gw.list(EntityKind.FOLDERS)

    assert exc_info.value.operation == "list_folders"
    assert isinstance(exc_info.value.cause, httpx.ConnectError)
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_non_json_body_is_malformed() -> None:
    rec = Recorder(200, text="<html>oops</html>")
    async with _gateway(rec) as gw:
        with pytest.raises(RemoteError) as exc_info:
            await gw.list(EntityKind.TAGS)
    assert exc_info.value.operation == "list_tags"


@pytest.mark.asyncio
async def test_wrong_shape_is_malformed() -> None:
    async with _gateway(Recorder(200, json={"items": []})) as gw:
        with pytest.raises(RemoteError):
            await gw.list(EntityKind.TASKS)

    async with _gateway(Recorder(200, json=[{"name": "no id"}])) as gw:
        with pytest.raises(RemoteError) as exc_info:
            await gw.list(EntityKind.FOLDERS)
    assert "malformed folder" in str(exc_info.value)


@pytest.mark.asyncio
async def test_aggregation_endpoints_return_raw_payload() -> None:
    payload = {"total": 3, "completed": 1}
    rec = Recorder(200, json=payload)
    async with _gateway(rec) as gw:
        assert await gw.task_stats() == payload
        await gw.tasks_by_status()
        await gw.tasks_by_folder()
        await gw.tasks_by_tag()

    assert [r.url.path for r in rec.requests] == [
        "/api/task-stats",
        "/api/tasks-by-status",
        "/api/tasks-by-folder",
        "/api/tasks-by-tag",
    ]


def test_timeout_zero_disables_deadline() -> None:
    assert make_timeout(0).read is None
    t = make_timeout(12.0)
    assert t.read == 12.0
    assert t.connect == 5.0
