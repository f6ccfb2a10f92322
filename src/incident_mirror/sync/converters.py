"""Per-collection mappings from raw API items to storage rows.

Flat converters map one item to one row. Expanders map one item to a
:data:`RecordSet` (table name -> rows) so that a nested resource can fan out
into several normalized tables in a single pass.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from incident_mirror.utils.datetime import parse_datetime, utcnow

Item = Dict[str, Any]
Row = Dict[str, Any]
RecordSet = Dict[str, List[Row]]
Converter = Callable[[Item], Row]


class Fetcher(Protocol):
    def __call__(
        self,
        collection: str,
        endpoint: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
        log_progress: bool = True,
    ) -> List[Item]: ...


Expander = Callable[[Item, Fetcher], RecordSet]


def _nested(item: Item, key: str, field: str = "id") -> Any:
    value = item.get(key)
    if not isinstance(value, dict):
        return None
    return value.get(field)


def _created_at(item: Item) -> Optional[datetime]:
    # v1 incidents report created_on; log entries report created_at.
    return parse_datetime(item.get("created_at") or item.get("created_on"))


def convert_service(item: Item) -> Row:
    return {
        "id": item["id"],
        "name": item.get("name"),
        "status": item.get("status"),
        "type": item.get("type"),
    }


def convert_user(item: Item) -> Row:
    return {
        "id": item["id"],
        "name": item.get("name"),
        "email": item.get("email"),
    }


def convert_schedule(item: Item) -> Row:
    return {"id": item["id"], "name": item.get("name")}


def convert_escalation_policy(item: Item) -> Row:
    return {
        "id": item["id"],
        "name": item.get("name"),
        "num_loops": item.get("num_loops"),
    }


def convert_incident(item: Item) -> Row:
    return {
        "id": item["id"],
        "incident_number": item.get("incident_number"),
        "created_at": _created_at(item),
        "html_url": item.get("html_url"),
        "incident_key": item.get("incident_key"),
        "service_id": _nested(item, "service"),
        "escalation_policy_id": _nested(item, "escalation_policy"),
        "trigger_type": item.get("trigger_type"),
        "trigger_summary_subject": _nested(item, "trigger_summary_data", "subject"),
        "trigger_summary_description": _nested(
            item, "trigger_summary_data", "description"
        ),
    }


def convert_log_entry(item: Item) -> Row:
    return {
        "id": item["id"],
        "type": item.get("type"),
        "created_at": _created_at(item),
        "incident_id": _nested(item, "incident"),
        "agent_type": _nested(item, "agent", "type"),
        "agent_id": _nested(item, "agent"),
        "channel_type": _nested(item, "channel", "type"),
        "user_id": _nested(item, "user"),
        "notification_type": _nested(item, "notification", "type"),
        "assigned_user_id": _nested(item, "assigned_user"),
    }


def single(table: str, converter: Converter) -> Expander:
    """Lift a flat converter into an expander writing one table."""

    def expand(item: Item, fetch: Fetcher) -> RecordSet:
        return {table: [converter(item)]}

    expand.__name__ = f"single_{table}"
    return expand


def expand_escalation_policy(item: Item, fetch: Fetcher) -> RecordSet:
    """Fan one policy out into rules, rule targets and the policy row.

    Rules get ``level_index`` from their 1-based position in the policy.
    Targets of type ``user`` go to escalation_rule_users; every other type is
    treated as a schedule.
    """
    rules: List[Row] = []
    rule_users: List[Row] = []
    rule_schedules: List[Row] = []

    for level_index, rule in enumerate(item.get("escalation_rules") or [], start=1):
        rules.append(
            {
                "id": rule["id"],
                "escalation_policy_id": item["id"],
                "escalation_delay_in_minutes": rule.get("escalation_delay_in_minutes"),
                "level_index": level_index,
            }
        )
        for target in rule.get("targets") or []:
            row_id = f"{rule['id']}_{target['id']}"
            if target.get("type") == "user":
                rule_users.append(
                    {
                        "id": row_id,
                        "escalation_rule_id": rule["id"],
                        "user_id": target["id"],
                    }
                )
            else:
                rule_schedules.append(
                    {
                        "id": row_id,
                        "escalation_rule_id": rule["id"],
                        "schedule_id": target["id"],
                    }
                )

    return {
        "escalation_rules": rules,
        "escalation_rule_users": rule_users,
        "escalation_rule_schedules": rule_schedules,
        "escalation_policies": [convert_escalation_policy(item)],
    }


def expand_schedule(item: Item, fetch: Fetcher) -> RecordSet:
    """Return the schedule row plus its currently assigned users.

    Assignments come from the nested ``schedules/{id}/users`` resource,
    scoped to today so only current on-call users are returned.
    """
    schedule_id = item["id"]
    users = fetch(
        "users",
        f"schedules/{schedule_id}/users",
        {"since": utcnow().strftime("%Y-%m-%d")},
        False,
    )
    return {
        "user_schedule": [
            {
                "id": f"{user['id']}_{schedule_id}",
                "user_id": user["id"],
                "schedule_id": schedule_id,
            }
            for user in users
        ],
        "schedules": [convert_schedule(item)],
    }
