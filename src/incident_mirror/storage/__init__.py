from __future__ import annotations

from .sqlalchemy import SQLAlchemyStore, StoreTransaction


def create_store(conn_string: str, echo: bool = False) -> SQLAlchemyStore:
    """Create the relational store for a DATABASE_URL-style connection string."""
    return SQLAlchemyStore(conn_string, echo=echo)


__all__ = [
    "SQLAlchemyStore",
    "StoreTransaction",
    "create_store",
]
