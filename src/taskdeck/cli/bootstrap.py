# src/taskdeck/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- picks the gateway (HTTP, or in-memory when offline),
- wires the entity store into AppState and tears everything down at exit.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import RemoteGateway
from ..core.state import AppState
from ..gateway.client import HttpGateway
from ..gateway.offline import InMemoryGateway
from ..store.entity_store import EntityStore

logger = logging.getLogger(__name__)


def build_gateway(settings) -> RemoteGateway:
    if getattr(settings, "offline", False):
        logger.info("Offline mode: using the in-memory gateway (nothing is persisted).")
        return InMemoryGateway()
    return HttpGateway(
        settings.api_base_url,
        timeout_seconds=float(getattr(settings, "http_timeout_seconds", 0.0)),
    )


def create_initial_state(*, settings=None, gateway: RemoteGateway | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings and the gateway injectable makes the app easy to test and
    avoids hidden global config reads. If settings is None, falls back to
    get_settings().
    """
    if settings is None:
        settings = get_settings()

    data_dir = getattr(settings, "data_dir", None)
    if data_dir is not None:
        data_dir.mkdir(parents=True, exist_ok=True)

    if gateway is None:
        gateway = build_gateway(settings)

    return AppState(settings=settings, gateway=gateway, store=EntityStore(gateway))


async def shutdown(state: AppState) -> None:
    """Best-effort teardown (no exceptions should escape)."""
    try:
        await state.store.aclose()
    except Exception:
        logger.debug("Store close failed.", exc_info=True)

    try:
        await state.gateway.aclose()
    except Exception:
        logger.debug("Gateway close failed.", exc_info=True)
