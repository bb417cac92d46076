# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskdeck.core.state import AppState
from taskdeck.store.entity_store import EntityStore

from .fakes import FlakyGateway


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment and any local .env.
    """
    return SimpleNamespace(
        app_name="taskdeck-test",
        log_level="DEBUG",
        api_base_url="http://testserver/api",
        http_timeout_seconds=0.0,
        offline=True,
        data_dir=tmp_path / "data",
    )


@pytest.fixture()
def gateway() -> FlakyGateway:
    return FlakyGateway()


@pytest.fixture()
def store(gateway: FlakyGateway) -> EntityStore:
    return EntityStore(gateway)


@pytest.fixture()
def state(settings: SimpleNamespace, gateway: FlakyGateway, store: EntityStore) -> AppState:
    """AppState wired with the in-memory gateway (real store, real projection)."""
    return AppState(settings=settings, gateway=gateway, store=store)
