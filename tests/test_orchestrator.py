from __future__ import annotations

from datetime import timedelta

import httpx
import pytest

from conftest import FakePagerDuty, FixedClock, utc
from incident_mirror.config import Settings
from incident_mirror.exceptions import ConfigurationError, RemoteError
from incident_mirror.storage import SQLAlchemyStore
from incident_mirror.sync.engine import SyncEngine
from incident_mirror.sync.orchestrator import refresh_from_settings, run_refresh
from incident_mirror.utils.datetime import isoformat, utcnow


def _directory_data():
    return {
        "services": [{"id": "PS1", "name": "API"}],
        "escalation_policies": [{"id": "PE1", "escalation_rules": []}],
        "schedules": [{"id": "SC1", "name": "Weekly"}],
        "schedules/SC1/users": [{"id": "PU1"}],
        "users": [{"id": "PU1", "name": "Ada"}],
        "incidents": [
            {"id": "I1", "created_on": "2023-01-01T05:00:00Z", "service": {"id": "PS1"}}
        ],
        "log_entries": [
            {
                "id": "L1",
                "type": "trigger",
                "created_at": "2023-01-01T05:00:00Z",
                "incident": {"id": "I1"},
            }
        ],
    }


def _engine(api, store):
    return SyncEngine(
        api.client(),
        store,
        buffer=timedelta(hours=1),
        window=timedelta(days=1),
        epoch=utc(2023, 1, 1, 1),
        clock=FixedClock(utc(2023, 1, 1, 12)),
    )


def test_refreshes_collections_in_registry_order(store):
    api = FakePagerDuty(_directory_data())

    counts = run_refresh(_engine(api, store))

    assert api.endpoints() == [
        "services",
        "escalation_policies",
        "schedules",
        "schedules/SC1/users",
        "users",
        "incidents",
        "log_entries",
    ]
    assert list(counts) == [
        "services",
        "escalation_policies",
        "schedules",
        "users",
        "incidents",
        "log_entries",
    ]
    assert counts["incidents"] == 1
    assert counts["log_entries"] == 1
    assert store.count("user_schedule") == 1


def test_only_keeps_registry_order(store):
    api = FakePagerDuty(_directory_data())

    counts = run_refresh(_engine(api, store), only=["log_entries", "services"])

    assert list(counts) == ["services", "log_entries"]
    assert api.endpoints() == ["services", "log_entries"]


def test_unknown_collection_is_rejected_before_any_request(store):
    api = FakePagerDuty(_directory_data())

    with pytest.raises(ConfigurationError):
        run_refresh(_engine(api, store), only=["pets"])

    assert api.requests == []


def test_stops_at_first_failing_collection(store):
    api = FakePagerDuty(
        _directory_data(),
        fail_when=lambda endpoint, params: 500 if endpoint == "users" else None,
    )

    with pytest.raises(RemoteError):
        run_refresh(_engine(api, store))

    assert "incidents" not in api.endpoints()
    assert store.count("services") == 1
    assert store.count("users") == 0


def test_logs_start_and_finish(store, caplog):
    api = FakePagerDuty(_directory_data())

    with caplog.at_level("INFO", logger="incident_mirror.sync.orchestrator"):
        run_refresh(_engine(api, store), only=["services", "users"])

    messages = [
        r.getMessage()
        for r in caplog.records
        if r.name == "incident_mirror.sync.orchestrator"
    ]
    assert messages == [
        "refresh.start collections=services,users",
        "refresh.finish services=1 users=1",
    ]


def test_refresh_from_settings_end_to_end(tmp_path):
    now = utcnow()
    data = _directory_data()
    data["incidents"][0]["created_on"] = isoformat(now - timedelta(minutes=30))
    data["log_entries"][0]["created_at"] = isoformat(now - timedelta(minutes=20))
    api = FakePagerDuty(data)
    db_url = f"sqlite:///{tmp_path / 'mirror.db'}"
    settings = Settings(
        database_url=db_url,
        subdomain="acme",
        api_token="test-token",
        epoch=now - timedelta(hours=2),
    )

    counts = refresh_from_settings(
        settings,
        create_tables=True,
        transport=httpx.MockTransport(api.handler),
    )

    assert counts["services"] == 1
    assert counts["incidents"] == 1
    with SQLAlchemyStore(db_url) as store:
        assert store.count("log_entries") == 1
        assert store.latest_created_at("incidents") is not None
