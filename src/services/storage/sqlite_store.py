"""
SQLite Storage Implementation

The default record store: one connection to a local SQLite file.

TRADEOFFS:
- One writer (this process); concurrent instances are unsupported
- No migrations: tables are created if absent, never altered
- Statements run to completion inside the calling coroutine, so two
  statements never interleave on the connection and no extra locking
  is needed

The implementation follows the abstract interface, so the flat JSON
document store can stand in for it without changing the facade.
"""

import secrets
import sqlite3
from pathlib import Path
from typing import Any, Optional

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.audit import AuditLogger
from src.services.storage.codec import decode_row, encode_fields
from src.services.storage.interface import (
    ConstraintViolationError,
    InvalidArgumentError,
    NotInitializedError,
    RecordStorageInterface,
    StorageError,
    StorageOpenError,
    StoreState,
)
from src.services.storage.schema import NOW_SQL, TABLES, TableSchema, get_table


logger = structlog.get_logger(__name__)


def new_record_id() -> str:
    """Generate a 128-bit random id, hex encoded."""
    return secrets.token_hex(16)


@retry(
    retry=retry_if_exception_type(sqlite3.OperationalError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
    reraise=True,
)
def _connect(path: Path) -> sqlite3.Connection:
    """Open a connection, retrying transient "database is locked" style errors."""
    conn = sqlite3.connect(str(path), timeout=5.0)
    conn.row_factory = sqlite3.Row
    return conn


def _create_tables(conn: sqlite3.Connection) -> None:
    with conn:
        for schema in TABLES.values():
            conn.execute(schema.create_sql())


class SQLiteRecordStore(RecordStorageInterface):
    """
    SQLite implementation of record storage.

    Construct it unopened and inject it where it is needed; call
    open() once at startup. Every operation checks the lifecycle state
    and fails fast with NotInitializedError outside READY.
    """

    backend_name = "sqlite"

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self._conn: Optional[sqlite3.Connection] = None
        self._path: Optional[Path] = None
        self._state = StoreState.UNINITIALIZED
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def path(self) -> Optional[Path]:
        return self._path

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def _open_connection(self, path: Path) -> sqlite3.Connection:
        """Open and initialize a connection at path, or raise StorageOpenError."""
        conn = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            conn = _connect(path)
            _create_tables(conn)
            return conn
        except (OSError, sqlite3.Error) as e:
            if conn is not None:
                conn.close()
            raise StorageOpenError(f"Cannot open record store at {path}: {e}")

    async def open(self, path: Path) -> None:
        """Open the store at path (closing any current connection first)."""
        path = Path(path)
        if self._conn is not None:
            await self.close()
        self._state = StoreState.OPENING
        try:
            self._conn = self._open_connection(path)
        except StorageOpenError as e:
            self._state = StoreState.UNINITIALIZED
            self._audit_logger.log_store_open_failed(str(path), e)
            raise
        self._path = path
        self._state = StoreState.READY
        self._audit_logger.log_store_opened(str(path), self.backend_name)

    async def relocate(self, new_path: Path) -> None:
        """
        Reopen the store at new_path.

        The new location is opened before the old connection is released,
        so a bad path leaves the store READY on its previous file.
        """
        self._require_ready()
        new_path = Path(new_path)
        old_path = self._path
        self._state = StoreState.RELOCATING
        try:
            new_conn = self._open_connection(new_path)
        except StorageOpenError as e:
            self._state = StoreState.READY
            self._audit_logger.log_store_relocate_failed(
                str(old_path) if old_path else None, str(new_path), e
            )
            raise
        old_conn = self._conn
        self._conn = new_conn
        self._path = new_path
        if old_conn is not None:
            old_conn.close()
        self._state = StoreState.READY
        self._audit_logger.log_store_relocated(
            str(old_path) if old_path else None, str(new_path)
        )

    async def close(self) -> None:
        """Release the connection. Later operations raise NotInitializedError."""
        if self._conn is None:
            if self._state != StoreState.UNINITIALIZED:
                self._state = StoreState.CLOSED
            return
        self._state = StoreState.CLOSING
        try:
            self._conn.close()
        except sqlite3.Error as e:
            logger.warning("store_close_failed", path=str(self._path), error=str(e))
        self._conn = None
        self._state = StoreState.CLOSED
        self._audit_logger.log_store_closed(str(self._path) if self._path else None)

    def _require_ready(self) -> sqlite3.Connection:
        if self._state != StoreState.READY or self._conn is None:
            raise NotInitializedError(
                f"Record store is not ready (state: {self._state.value})"
            )
        return self._conn

    def _execute(self, table: str, sql: str, params: Any = ()) -> sqlite3.Cursor:
        """Run one mutating statement in its own transaction."""
        conn = self._require_ready()
        try:
            with conn:
                return conn.execute(sql, params)
        except sqlite3.IntegrityError as e:
            raise ConstraintViolationError(f"Constraint violation on {table}: {e}")
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write {table}: {e}")

    def _query(self, table: str, sql: str, params: Any = ()) -> list[sqlite3.Row]:
        conn = self._require_ready()
        try:
            return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read {table}: {e}")

    # =========================================================================
    # SINGLETON TABLES
    # =========================================================================

    async def upsert_singleton(
        self,
        table: str,
        fixed_id: str,
        fields: dict[str, Any],
    ) -> None:
        """Write every column of the singleton row, keeping its created_at."""
        schema = get_table(table)
        self._require_ready()
        values = encode_fields(schema, fields, full=True)
        columns = list(values)
        placeholders = ", ".join("?" for _ in columns)
        assignments = ", ".join(f"{name} = excluded.{name}" for name in columns)
        sql = (
            f"INSERT INTO {schema.name} (id, {', '.join(columns)}, updated_at) "
            f"VALUES (?, {placeholders}, {NOW_SQL}) "
            f"ON CONFLICT(id) DO UPDATE SET {assignments}, updated_at = {NOW_SQL}"
        )
        self._execute(table, sql, [fixed_id, *values.values()])
        self._audit_logger.log_record_saved(table, fixed_id)

    async def get_singleton(
        self,
        table: str,
        fixed_id: str,
    ) -> Optional[dict[str, Any]]:
        """Read the singleton row, or None when it was never saved."""
        schema = get_table(table)
        rows = self._query(
            table,
            f"SELECT * FROM {schema.name} WHERE id = ? ORDER BY updated_at DESC LIMIT 1",
            (fixed_id,),
        )
        if not rows:
            return None
        return decode_row(schema, rows[0])

    # =========================================================================
    # MULTI-ROW TABLES
    # =========================================================================

    async def insert(self, table: str, fields: dict[str, Any]) -> str:
        """Insert a row under a new random id and return the id."""
        schema = get_table(table)
        self._require_ready()
        values = encode_fields(schema, fields)
        record_id = new_record_id()
        columns = ["id", *values]
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {schema.name} ({', '.join(columns)}) VALUES ({placeholders})"
        self._execute(table, sql, [record_id, *values.values()])
        self._audit_logger.log_record_saved(table, record_id)
        return record_id

    async def update(
        self,
        table: str,
        record_id: str,
        fields: dict[str, Any],
    ) -> int:
        """Write the supplied fields and refresh updated_at."""
        schema = get_table(table)
        self._require_ready()
        if not fields:
            raise InvalidArgumentError(f"Update of {table} needs at least one field")
        values = encode_fields(schema, fields)
        if not values:
            raise InvalidArgumentError(f"Update of {table} has no writable fields")
        assignments = ", ".join(f"{name} = ?" for name in values)
        sql = (
            f"UPDATE {schema.name} SET {assignments}, updated_at = {NOW_SQL} "
            f"WHERE id = ?"
        )
        cursor = self._execute(table, sql, [*values.values(), record_id])
        matched = cursor.rowcount
        self._audit_logger.log_record_updated(table, record_id, list(fields), matched)
        return matched

    async def delete(self, table: str, record_id: str) -> None:
        """Delete a row by id; a missing id is not an error."""
        schema = get_table(table)
        self._execute(table, f"DELETE FROM {schema.name} WHERE id = ?", (record_id,))
        self._audit_logger.log_record_deleted(table, record_id)

    async def list_records(
        self,
        table: str,
        order_by: str = "createdAt",
        descending: bool = True,
    ) -> list[dict[str, Any]]:
        """List all rows, newest first by default."""
        schema: TableSchema = get_table(table)
        column = schema.order_column(order_by)
        direction = "DESC" if descending else "ASC"
        rows = self._query(
            table,
            f"SELECT * FROM {schema.name} ORDER BY {column} {direction}, rowid {direction}",
        )
        return [decode_row(schema, row) for row in rows]
