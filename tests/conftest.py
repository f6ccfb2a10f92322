from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
from sqlalchemy import create_engine

from incident_mirror.connectors.pagerduty import PagerDutyClient
from incident_mirror.storage import SQLAlchemyStore
from incident_mirror.utils.datetime import parse_datetime

TIME_FILTERED = {"incidents", "log_entries"}


class FakePagerDuty:
    """In-memory stand-in for the PagerDuty v1 list endpoints.

    ``data`` maps an endpoint path (e.g. ``"services"`` or
    ``"schedules/S1/users"``) to the full item list. Incident and log entry
    endpoints honour ``since``/``until``.
    """

    def __init__(
        self,
        data: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        *,
        report_total: bool = True,
        fail_when: Optional[Callable[[str, Dict[str, str]], Optional[int]]] = None,
    ) -> None:
        self.data = data or {}
        self.report_total = report_total
        self.fail_when = fail_when
        self.requests: List[Tuple[str, Dict[str, str]]] = []
        self.headers: List[httpx.Headers] = []

    def _filter(self, endpoint: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        items = self.data.get(endpoint, [])
        if endpoint not in TIME_FILTERED or "since" not in params:
            return items
        since = parse_datetime(params["since"])
        until = parse_datetime(params["until"])
        return [
            item
            for item in items
            if since <= parse_datetime(item.get("created_at") or item.get("created_on")) < until
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path[len("/api/v1/") :]
        params = dict(request.url.params)
        self.requests.append((endpoint, params))
        self.headers.append(request.headers)

        if self.fail_when is not None:
            status = self.fail_when(endpoint, params)
            if status is not None:
                return httpx.Response(status, json={"error": {"message": "boom"}})

        items = self._filter(endpoint, params)
        offset = int(params.get("offset", 0))
        limit = int(params.get("limit", 100))
        key = endpoint.rsplit("/", 1)[-1]
        body: Dict[str, Any] = {key: items[offset : offset + limit]}
        if self.report_total:
            body["total"] = len(items)
        return httpx.Response(200, json=body)

    def client(self, page_size: int = 100) -> PagerDutyClient:
        return PagerDutyClient(
            "acme",
            "test-token",
            page_size=page_size,
            transport=httpx.MockTransport(self.handler),
        )

    def endpoints(self) -> List[str]:
        return [endpoint for endpoint, _ in self.requests]


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def store():
    engine = create_engine("sqlite://")
    sqlite_store = SQLAlchemyStore(engine=engine)
    sqlite_store.ensure_tables()
    yield sqlite_store
    engine.dispose()


@pytest.fixture
def fake_api():
    return FakePagerDuty()
