"""Process configuration read from environment variables.

Required:
    DATABASE_URL: target store connection string
    PAGERDUTY_SUBDOMAIN: account subdomain, i.e. ``<subdomain>.pagerduty.com``
    PAGERDUTY_API_KEY: API token

Optional:
    PAGINATION_LIMIT: page size for list requests (default: 100)
    INCREMENTAL_BUFFER: seconds to rewind before resuming (default: 3600)
    INCREMENTAL_WINDOW: seconds covered by one incremental window (default: 86400)
    PAGERDUTY_EPOCH: earliest time data could exist (default: 2009-01-01T00:00Z)
    PAGERDUTY_API_TIMEOUT: HTTP timeout in seconds (default: 30)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

from incident_mirror.exceptions import ConfigurationError
from incident_mirror.utils.datetime import parse_datetime

DEFAULT_PAGE_SIZE = 100
DEFAULT_INCREMENTAL_BUFFER = timedelta(hours=1)
DEFAULT_INCREMENTAL_WINDOW = timedelta(days=1)
DEFAULT_EPOCH = datetime(2009, 1, 1, tzinfo=timezone.utc)
DEFAULT_TIMEOUT = 30.0


def _require(environ: Mapping[str, str], key: str) -> str:
    value = environ.get(key)
    if not value:
        raise ConfigurationError(f"Must set {key} in environment")
    return value


def _positive_int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    database_url: str
    subdomain: str
    api_token: str
    page_size: int = DEFAULT_PAGE_SIZE
    incremental_buffer: timedelta = DEFAULT_INCREMENTAL_BUFFER
    incremental_window: timedelta = DEFAULT_INCREMENTAL_WINDOW
    epoch: datetime = DEFAULT_EPOCH
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        database_url: Optional[str] = None,
    ) -> "Settings":
        """Build settings from the environment.

        :param environ: Mapping to read from; defaults to ``os.environ``.
        :param database_url: Overrides DATABASE_URL when given (``--db``).
        :raises ConfigurationError: On a missing or unparsable setting.
        """
        env = os.environ if environ is None else environ

        database_url = database_url or _require(env, "DATABASE_URL")
        subdomain = _require(env, "PAGERDUTY_SUBDOMAIN")
        api_token = _require(env, "PAGERDUTY_API_KEY")

        epoch = DEFAULT_EPOCH
        raw_epoch = env.get("PAGERDUTY_EPOCH")
        if raw_epoch:
            parsed = parse_datetime(raw_epoch)
            if parsed is None:
                raise ConfigurationError(
                    f"PAGERDUTY_EPOCH must be an ISO-8601 timestamp, got {raw_epoch!r}"
                )
            epoch = parsed

        return cls(
            database_url=database_url,
            subdomain=subdomain,
            api_token=api_token,
            page_size=_positive_int(env, "PAGINATION_LIMIT", DEFAULT_PAGE_SIZE),
            incremental_buffer=timedelta(
                seconds=_positive_int(
                    env,
                    "INCREMENTAL_BUFFER",
                    int(DEFAULT_INCREMENTAL_BUFFER.total_seconds()),
                )
            ),
            incremental_window=timedelta(
                seconds=_positive_int(
                    env,
                    "INCREMENTAL_WINDOW",
                    int(DEFAULT_INCREMENTAL_WINDOW.total_seconds()),
                )
            ),
            epoch=epoch,
            timeout=float(
                _positive_int(env, "PAGERDUTY_API_TIMEOUT", int(DEFAULT_TIMEOUT))
            ),
        )


def require_database_url(
    environ: Optional[Mapping[str, str]] = None, override: Optional[str] = None
) -> str:
    """Resolve only the store connection string (for commands that skip the API)."""
    if override:
        return override
    env = os.environ if environ is None else environ
    return _require(env, "DATABASE_URL")
