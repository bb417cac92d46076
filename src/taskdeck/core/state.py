# src/taskdeck/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..config import Settings
from ..store.entity_store import EntityStore
from .ports import RemoteGateway


@dataclass
class AppState:
    """
    Everything a presentation connector needs, built once by the bootstrap
    and passed around explicitly (no module-level singletons).
    """

    settings: Settings
    gateway: RemoteGateway
    store: EntityStore
