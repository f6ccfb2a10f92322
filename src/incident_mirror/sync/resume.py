"""Resume-point calculation for incrementally synced tables."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from incident_mirror.config import DEFAULT_EPOCH, DEFAULT_INCREMENTAL_BUFFER
from incident_mirror.storage import SQLAlchemyStore
from incident_mirror.utils.logging import log_event

logger = logging.getLogger(__name__)


def resume_point(
    store: SQLAlchemyStore,
    table: str,
    *,
    epoch: datetime = DEFAULT_EPOCH,
    buffer: timedelta = DEFAULT_INCREMENTAL_BUFFER,
) -> datetime:
    """Return the timestamp the next incremental fetch must start from.

    The newest stored ``created_at`` (or ``epoch`` for an empty table) is
    rewound by ``buffer`` on every run, so the trailing window is always
    re-scanned to pick up late-arriving records.
    """
    latest = store.latest_created_at(table) or epoch
    log_event(logger, "refresh_incremental.check", collection=table, latest=latest)
    return latest - buffer
