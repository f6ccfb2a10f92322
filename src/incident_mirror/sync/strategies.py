"""Write strategies applied to one table inside an open transaction."""

from __future__ import annotations

import abc
from typing import Iterable

from incident_mirror.storage import StoreTransaction
from incident_mirror.sync.converters import Row


class ReplaceStrategy(abc.ABC):
    """How a batch of converted rows lands in its table."""

    name: str = ""

    @abc.abstractmethod
    def apply(self, tx: StoreTransaction, table: str, rows: Iterable[Row]) -> int:
        """Write rows to table; return the number of rows inserted."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class FullReplace(ReplaceStrategy):
    """Delete every existing row, then insert all rows in order."""

    name = "full_replace"

    def apply(self, tx: StoreTransaction, table: str, rows: Iterable[Row]) -> int:
        tx.delete_all(table)
        inserted = 0
        for row in rows:
            tx.insert_one(table, row)
            inserted += 1
        return inserted


class UpsertByPresence(ReplaceStrategy):
    """Insert a row only when no row with the same id exists. Never updates."""

    name = "upsert_by_presence"

    def apply(self, tx: StoreTransaction, table: str, rows: Iterable[Row]) -> int:
        inserted = 0
        for row in rows:
            if tx.exists(table, row["id"]):
                continue
            tx.insert_one(table, row)
            inserted += 1
        return inserted


FULL_REPLACE = FullReplace()
UPSERT_BY_PRESENCE = UpsertByPresence()
