"""
iam/store.py -- SQLAlchemy Core record store for identity and task records.

Pattern: Table Data Gateway. RecordStore exposes the two operations the
service needs from a system of record -- put a record into a table, query a
table by a key condition -- and nothing else. Records travel as plain dicts;
the domain dataclasses own the mapping (AuthenticatableEntity.from_record).

Integrity note: NYS_iam.id is indexed but deliberately NOT unique. A key
condition query can therefore return several rows for one id, and the
resolver surfaces that as TooManyEntities instead of the store hiding it.

Errors: every SQLAlchemyError is re-raised as RecordStoreError. The store
never retries; a failed call is reported immediately.

Security: all queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or tasker/.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Boolean, Column, Integer, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.config import get_settings
from iam.errors import RecordStoreError

logger = logging.getLogger("nys.iam.store")


class RecordTable(str, Enum):
    IAM = "NYS_iam"
    TASKER = "NYS_tasker"


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_entities = Table(
    RecordTable.IAM.value,
    _metadata,
    Column("row_id", Integer, primary_key=True, autoincrement=True),
    Column("id", String(128), nullable=False, index=True),
    Column("password_hash", Text, nullable=False),
    Column("enabled", Boolean, nullable=False, default=True),
    Column("granted_patterns", JSON, nullable=False),  # ordered list of pattern text
)

_tasks = Table(
    RecordTable.TASKER.value,
    _metadata,
    Column("row_id", Integer, primary_key=True, autoincrement=True),
    Column("owner", String(128), nullable=False, index=True),
    Column("id", String(64), nullable=False),
    Column("description", Text, nullable=False),
    Column("completed", Boolean, nullable=False, default=False),
)

_TABLES: dict[RecordTable, Table] = {
    RecordTable.IAM: _entities,
    RecordTable.TASKER: _tasks,
}


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block behind a writer."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class RecordStore:
    """System of record for entities and tasks.

    Usage:
        store = RecordStore()                                   # settings.database_url
        store = RecordStore("postgresql://user:pw@host/nys")
        store.put(RecordTable.IAM, entity.to_record())
        rows = store.query(RecordTable.IAM, "id", "alice")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite") and ":memory:" not in db_url and "mode=memory" not in db_url:
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def put(self, table: RecordTable, record: dict[str, Any]) -> None:
        """Insert one record. Raises RecordStoreError on any database failure."""
        try:
            with self.engine.begin() as conn:
                conn.execute(_TABLES[table].insert().values(**record))
        except SQLAlchemyError as exc:
            logger.warning("Record store put into %s failed: %s", table.value, exc)
            raise RecordStoreError(f"put into {table.value} failed") from exc

    def query(self, table: RecordTable, key: str, value: Any) -> list[dict[str, Any]]:
        """Return every record whose key column equals value (all attributes).

        Order is not significant. The surrogate row_id is not part of a record.
        """
        t = _TABLES[table]
        stmt = select(t).where(t.c[key] == value)
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as exc:
            logger.warning("Record store query on %s failed: %s", table.value, exc)
            raise RecordStoreError(f"query on {table.value} failed") from exc
        return [{k: v for k, v in row.items() if k != "row_id"} for row in rows]

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        try:
            with self.engine.connect() as conn:
                conn.execute(select(1))
            return True
        except SQLAlchemyError:
            return False

    def close(self) -> None:
        self.engine.dispose()
