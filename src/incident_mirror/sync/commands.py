from __future__ import annotations

import argparse
import logging

from incident_mirror.config import Settings, require_database_url
from incident_mirror.storage import create_store
from incident_mirror.sync.orchestrator import refresh_from_settings
from incident_mirror.sync.registry import (
    DEFAULT_COLLECTIONS,
    all_tables,
    incremental_tables,
)
from incident_mirror.utils.datetime import isoformat

logger = logging.getLogger(__name__)


def _cmd_refresh(ns: argparse.Namespace) -> int:
    settings = Settings.from_env(database_url=ns.db)
    refresh_from_settings(
        settings,
        only=ns.only or None,
        create_tables=ns.create_tables,
    )
    return 0


def _cmd_init_db(ns: argparse.Namespace) -> int:
    with create_store(require_database_url(override=ns.db)) as store:
        store.ensure_tables()
    logger.info("Tables ready: %s", ", ".join(all_tables()))
    return 0


def _cmd_status(ns: argparse.Namespace) -> int:
    incremental = incremental_tables()
    with create_store(require_database_url(override=ns.db)) as store:
        for table in all_tables():
            line = f"{table}: {store.count(table)} rows"
            if table in incremental:
                latest = store.latest_created_at(table)
                line += f", latest created_at {isoformat(latest) if latest else '-'}"
            print(line)
    return 0


def _add_db_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--db",
        default=None,
        help="Database connection string. Defaults to env DATABASE_URL.",
    )


def register_commands(subparsers: argparse._SubParsersAction) -> None:
    refresh = subparsers.add_parser(
        "refresh", help="Mirror all collections once (full-replace, then incremental)."
    )
    _add_db_argument(refresh)
    refresh.add_argument(
        "--only",
        action="append",
        choices=[c.name for c in DEFAULT_COLLECTIONS],
        help="Refresh only this collection (repeatable).",
    )
    refresh.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before syncing.",
    )
    refresh.set_defaults(func=_cmd_refresh)

    init_db = subparsers.add_parser("init-db", help="Create missing tables.")
    _add_db_argument(init_db)
    init_db.set_defaults(func=_cmd_init_db)

    status = subparsers.add_parser(
        "status", help="Show row counts and incremental resume state."
    )
    _add_db_argument(status)
    status.set_defaults(func=_cmd_status)
