"""
core/db.py -- Shared SQLAlchemy Core helpers for the SQLite-backed stores.

Every store (auth/, catalog/, orders/, payments/) owns its own tables and its
own database file, but they share engine setup, timestamps and the way a
country-scope filter dict is turned into a WHERE clause.

Layer rule: core/ is the kernel. No imports from api/, auth/, catalog/,
orders/ or payments/.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from sqlalchemy import Select, Table, create_engine, event
from sqlalchemy.engine import Engine

from core.config import get_settings


def default_db_url(filename: str, module_dir: Path) -> str:
    """Return the SQLite URL for a store's database file.

    DATABASE_DIR wins when set; otherwise the file lives next to the store
    module, the same way each package keeps its own database.
    """
    directory = get_settings().database_dir
    base = Path(directory) if directory else module_dir
    return f"sqlite:///{base / filename}"


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create an engine, with the SQLite connect args FastAPI's thread pool needs."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        # Route handlers run in a thread pool, so a pooled connection may be
        # used from a thread other than the one that opened it.
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def apply_filters(stmt: Select, table: Table, filters: Optional[Mapping[str, Any]]) -> Select:
    """Narrow a SELECT with column-equality predicates.

    filters is the dict produced by auth.rbac.get_country_filter(): {} means
    no restriction, {"country": "india"} means country = 'india'. Unknown
    column names raise ValueError rather than being silently dropped, since
    a dropped predicate would widen the result set.
    """
    for column, value in (filters or {}).items():
        if column not in table.c:
            raise ValueError(f"Unknown filter column for {table.name}: {column!r}")
        stmt = stmt.where(table.c[column] == value)
    return stmt
