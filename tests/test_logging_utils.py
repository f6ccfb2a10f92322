from __future__ import annotations

import logging
from datetime import datetime, timezone

from incident_mirror.utils.logging import format_event, log_event, sanitize_for_log


class TestSanitizeForLog:
    def test_none_is_empty(self):
        assert sanitize_for_log(None) == ""

    def test_datetime_rendered_as_utc_z(self):
        value = datetime(2023, 6, 1, 10, 15, 30, tzinfo=timezone.utc)
        assert sanitize_for_log(value) == "2023-06-01T10:15:30Z"

    def test_strips_line_breaks_and_control_characters(self):
        assert sanitize_for_log("a\r\nb\nc\x00d\x7f") == "a_b_cd"

    def test_spaces_do_not_split_pairs(self):
        assert sanitize_for_log("Disk full on db-1") == "Disk_full_on_db-1"

    def test_truncates_long_values(self):
        result = sanitize_for_log("x" * 50, max_length=10)
        assert result == "xxxxxxxxxx...[truncated]"


def test_format_event_keeps_keyword_order():
    assert (
        format_event("fetch.page", collection="services", offset=0, total="?")
        == "fetch.page collection=services offset=0 total=?"
    )


def test_format_event_without_pairs():
    assert format_event("refresh.start") == "refresh.start"


def test_log_event_emits_info(caplog):
    logger = logging.getLogger("incident_mirror.test")

    with caplog.at_level("INFO", logger="incident_mirror.test"):
        log_event(logger, "fetch.done", collection="users", total=3)

    records = [r for r in caplog.records if r.name == "incident_mirror.test"]
    assert [(r.levelno, r.getMessage()) for r in records] == [
        (logging.INFO, "fetch.done collection=users total=3")
    ]
