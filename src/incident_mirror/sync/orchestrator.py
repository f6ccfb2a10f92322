"""Runs one refresh across all registered collections, in registry order."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

import httpx

from incident_mirror.config import Settings
from incident_mirror.connectors.pagerduty import PagerDutyClient
from incident_mirror.storage import create_store
from incident_mirror.sync.engine import SyncEngine
from incident_mirror.sync.registry import (
    DEFAULT_COLLECTIONS,
    Collection,
    select_collections,
)
from incident_mirror.utils.logging import log_event

logger = logging.getLogger(__name__)


def run_refresh(
    engine: SyncEngine,
    collections: Sequence[Collection] = DEFAULT_COLLECTIONS,
    only: Optional[Sequence[str]] = None,
) -> Dict[str, int]:
    """Refresh each selected collection in order; stop on the first error.

    :return: Rows written (full-replace) or inserted (incremental) per collection.
    """
    selected = select_collections(only, collections)
    log_event(logger, "refresh.start", collections=",".join(c.name for c in selected))

    counts: Dict[str, int] = {}
    for collection in selected:
        counts[collection.name] = engine.refresh(collection)

    log_event(logger, "refresh.finish", **counts)
    return counts


def refresh_from_settings(
    settings: Settings,
    only: Optional[Sequence[str]] = None,
    create_tables: bool = False,
    transport: Optional[httpx.BaseTransport] = None,
) -> Dict[str, int]:
    """Open the API client and the store from settings and run one refresh."""
    with PagerDutyClient.from_settings(settings, transport=transport) as client:
        with create_store(settings.database_url) as store:
            if create_tables:
                store.ensure_tables()
            engine = SyncEngine(
                client,
                store,
                buffer=settings.incremental_buffer,
                window=settings.incremental_window,
                epoch=settings.epoch,
            )
            return run_refresh(engine, only=only)
