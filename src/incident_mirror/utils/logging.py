"""Logging utilities for key=value event lines.

Every significant sync event is logged as a key followed by space-separated
``name=value`` pairs, e.g. ``fetch.page collection=services offset=0 total=?``.
Values are sanitized so that API-controlled strings cannot inject extra
log lines.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from incident_mirror.utils.datetime import isoformat


def sanitize_for_log(value: Any, max_length: int = 200) -> str:
    """Sanitize a value for safe logging.

    Removes CR/LF and control characters and truncates strings longer than
    max_length. Spaces are replaced so a value never splits into two pairs.
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        return isoformat(value)

    text = str(value)
    cleaned = text.replace("\r\n", " ").replace("\r", " ").replace("\n", " ")
    cleaned = "".join(ch for ch in cleaned if ch >= " " and ch != "\x7f")
    cleaned = cleaned.replace(" ", "_")
    if len(cleaned) > max_length:
        return cleaned[:max_length] + "...[truncated]"
    return cleaned


def format_event(key: str, **data: Any) -> str:
    """Render ``key name=value ...`` in keyword order."""
    if not data:
        return key
    pairs = " ".join(f"{name}={sanitize_for_log(value)}" for name, value in data.items())
    return f"{key} {pairs}"


def log_event(logger: logging.Logger, key: str, **data: Any) -> None:
    logger.info("%s", format_event(key, **data))
