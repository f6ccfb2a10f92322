from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import Table, delete, func, insert, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from incident_mirror.db import create_db_engine
from incident_mirror.exceptions import StorageError
from incident_mirror.models import Base
from incident_mirror.utils.datetime import to_utc


def _table(name: str) -> Table:
    try:
        return Base.metadata.tables[name]
    except KeyError:
        raise StorageError(f"Unknown table: {name}") from None


class StoreTransaction:
    """Table operations bound to one open transaction.

    Obtained from :meth:`SQLAlchemyStore.transaction`; every statement runs on
    the same connection and is committed or rolled back together.
    """

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def delete_all(self, table_name: str) -> int:
        result = self.conn.execute(delete(_table(table_name)))
        return result.rowcount or 0

    def insert_one(self, table_name: str, row: Dict[str, Any]) -> None:
        self.conn.execute(insert(_table(table_name)), row)

    def exists(self, table_name: str, record_id: str) -> bool:
        table = _table(table_name)
        stmt = select(table.c.id).where(table.c.id == record_id).limit(1)
        return self.conn.execute(stmt).first() is not None


class SQLAlchemyStore:
    """Sync relational store backed by SQLAlchemy Core tables."""

    def __init__(
        self,
        conn_string: Optional[str] = None,
        *,
        engine: Optional[Engine] = None,
        echo: bool = False,
    ) -> None:
        if engine is None and not conn_string:
            raise StorageError("Either conn_string or engine is required")
        self._owns_engine = engine is None
        self.engine = engine if engine is not None else create_db_engine(conn_string, echo=echo)

    def __enter__(self) -> "SQLAlchemyStore":
        # Create tables for SQLite automatically
        if self.engine.dialect.name == "sqlite":
            self.ensure_tables()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._owns_engine:
            self.engine.dispose()

    def ensure_tables(self) -> None:
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to create tables: {exc}") from exc

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        """Open a transaction; any SQLAlchemy failure rolls it back as StorageError."""
        try:
            with self.engine.begin() as conn:
                yield StoreTransaction(conn)
        except SQLAlchemyError as exc:
            raise StorageError(f"Transaction rolled back: {exc}") from exc

    def latest_created_at(self, table_name: str) -> Optional[datetime]:
        """Return ``created_at`` of the newest row, or None for an empty table."""
        table = _table(table_name)
        stmt = select(table.c.created_at).order_by(table.c.created_at.desc()).limit(1)
        try:
            with self.engine.connect() as conn:
                row = conn.execute(stmt).first()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read {table_name}: {exc}") from exc
        if row is None or row[0] is None:
            return None
        return to_utc(row[0])

    def count(self, table_name: str) -> int:
        table = _table(table_name)
        try:
            with self.engine.connect() as conn:
                return int(conn.execute(select(func.count()).select_from(table)).scalar_one())
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to count {table_name}: {exc}") from exc

    def fetch_all(self, table_name: str) -> List[Dict[str, Any]]:
        table = _table(table_name)
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(select(table).order_by(table.c.id)).mappings().all()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read {table_name}: {exc}") from exc
        return [dict(row) for row in rows]
