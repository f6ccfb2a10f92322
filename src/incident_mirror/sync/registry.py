"""Table-driven registry of synced collections.

The order of :data:`DEFAULT_COLLECTIONS` is the refresh order: directory
collections first so that ids referenced by incidents and log entries are
already present when those rows are written.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from incident_mirror.exceptions import ConfigurationError
from incident_mirror.sync.converters import (
    Expander,
    convert_incident,
    convert_log_entry,
    convert_service,
    convert_user,
    expand_escalation_policy,
    expand_schedule,
    single,
)
from incident_mirror.sync.strategies import (
    FULL_REPLACE,
    UPSERT_BY_PRESENCE,
    ReplaceStrategy,
)


@dataclass(frozen=True)
class Collection:
    """One remote collection and how it is mirrored.

    ``tables`` lists every table the collection writes, children before the
    parent; the last entry is the collection's own table.
    """

    name: str
    tables: Tuple[str, ...]
    expand: Expander
    strategy: ReplaceStrategy
    endpoint: Optional[str] = None
    params: Mapping[str, Any] = field(default_factory=dict)
    incremental: bool = False

    @property
    def path(self) -> str:
        return self.endpoint or self.name

    @property
    def table(self) -> str:
        return self.tables[-1]


DEFAULT_COLLECTIONS: Tuple[Collection, ...] = (
    Collection(
        name="services",
        tables=("services",),
        expand=single("services", convert_service),
        strategy=FULL_REPLACE,
    ),
    Collection(
        name="escalation_policies",
        tables=(
            "escalation_rules",
            "escalation_rule_users",
            "escalation_rule_schedules",
            "escalation_policies",
        ),
        expand=expand_escalation_policy,
        strategy=FULL_REPLACE,
    ),
    Collection(
        name="schedules",
        tables=("user_schedule", "schedules"),
        expand=expand_schedule,
        strategy=FULL_REPLACE,
    ),
    Collection(
        name="users",
        tables=("users",),
        expand=single("users", convert_user),
        strategy=FULL_REPLACE,
    ),
    Collection(
        name="incidents",
        tables=("incidents",),
        expand=single("incidents", convert_incident),
        strategy=UPSERT_BY_PRESENCE,
        incremental=True,
    ),
    Collection(
        name="log_entries",
        tables=("log_entries",),
        expand=single("log_entries", convert_log_entry),
        strategy=UPSERT_BY_PRESENCE,
        params={"include[]": "incident"},
        incremental=True,
    ),
)


def get_collection(
    name: str, collections: Sequence[Collection] = DEFAULT_COLLECTIONS
) -> Collection:
    for collection in collections:
        if collection.name == name:
            return collection
    known = ", ".join(c.name for c in collections)
    raise ConfigurationError(f"Unknown collection '{name}'. Known: {known}")


def select_collections(
    only: Optional[Sequence[str]] = None,
    collections: Sequence[Collection] = DEFAULT_COLLECTIONS,
) -> List[Collection]:
    """Restrict the registry to ``only``, keeping registry order."""
    if not only:
        return list(collections)
    wanted = {get_collection(name, collections).name for name in only}
    return [c for c in collections if c.name in wanted]


def all_tables(collections: Sequence[Collection] = DEFAULT_COLLECTIONS) -> List[str]:
    return [table for c in collections for table in c.tables]


def incremental_tables(
    collections: Sequence[Collection] = DEFAULT_COLLECTIONS,
) -> Dict[str, Collection]:
    return {c.table: c for c in collections if c.incremental}
