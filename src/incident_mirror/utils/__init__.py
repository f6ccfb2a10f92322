from incident_mirror.utils.datetime import isoformat, parse_datetime, to_utc, utcnow
from incident_mirror.utils.logging import format_event, log_event, sanitize_for_log

__all__ = [
    "format_event",
    "isoformat",
    "log_event",
    "parse_datetime",
    "sanitize_for_log",
    "to_utc",
    "utcnow",
]
