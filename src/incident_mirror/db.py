"""Database engine construction for incident-mirror.

The sync engine is single-threaded and blocking, so only a synchronous
SQLAlchemy engine is built here. Async driver prefixes that may be present
in a shared DATABASE_URL are rewritten to their sync equivalents.
"""

from __future__ import annotations

from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from incident_mirror.exceptions import ConfigurationError


def detect_db_type(conn_string: str) -> str:
    """
    Detect database type from connection string.

    :param conn_string: Database connection string.
    :return: Database type ('postgres' or 'sqlite').
    :raises ConfigurationError: If database type cannot be determined.
    """
    if not conn_string:
        raise ConfigurationError("Connection string is required")

    conn_lower = conn_string.lower()

    if conn_lower.startswith(("postgresql://", "postgres://", "postgresql+")):
        return "postgres"

    if conn_lower.startswith(("sqlite://", "sqlite+")):
        return "sqlite"

    scheme = conn_string.split("://", 1)[0] if "://" in conn_string else "unknown"
    raise ConfigurationError(
        "Could not detect database type from connection string. "
        f"Supported: postgresql://, postgres://, sqlite://. Got scheme: '{scheme}'"
    )


def normalize_database_url(uri: str) -> str:
    """Rewrite async or legacy URL schemes to the sync driver equivalents."""
    if uri.startswith("postgresql+asyncpg://"):
        return uri.replace("postgresql+asyncpg://", "postgresql://", 1)
    if uri.startswith("postgres://"):
        return uri.replace("postgres://", "postgresql://", 1)
    if uri.startswith("sqlite+aiosqlite://"):
        return uri.replace("sqlite+aiosqlite://", "sqlite://", 1)
    return uri


def create_db_engine(uri: str, echo: bool = False) -> Engine:
    """Create a sync engine, pooling only for server databases."""
    db_type = detect_db_type(uri)
    engine_kwargs: Dict[str, Any] = {"echo": echo}
    if db_type == "postgres":
        engine_kwargs.update(
            {
                "pool_size": 1,
                "max_overflow": 0,
                "pool_pre_ping": True,
            }
        )
    return create_engine(normalize_database_url(uri), **engine_kwargs)
