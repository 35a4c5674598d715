"""
Flat JSON Document Storage Implementation

Keeps every table in a single JSON document:

    {"products": {"<id>": {...row...}, ...}, "business_data": {...}, ...}

Rows are stored with wire field names, nested blobs as nested JSON.
The whole document is rewritten (temp file + rename) after every
mutation. Suitable for small installations only; there are no indexes
and every query is a scan.
"""

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import structlog

from src.audit import AuditLogger
from src.services.storage.codec import check_blob_shape
from src.services.storage.interface import (
    ConstraintViolationError,
    DataCorruptionError,
    InvalidArgumentError,
    NotInitializedError,
    RecordStorageInterface,
    StorageError,
    StorageOpenError,
    StoreState,
)
from src.services.storage.schema import (
    META_COLUMNS,
    TABLES,
    TIMESTAMP_FORMAT,
    ColumnKind,
    TableSchema,
    get_table,
)
from src.services.storage.sqlite_store import new_record_id


logger = structlog.get_logger(__name__)


def _now() -> str:
    # Same shape as the SQLite default: millisecond resolution, UTC
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)[:-3]


def atomic_write_json(path: Path, payload: Any) -> None:
    """Write a JSON document so readers never see a half-written file."""
    tmp = path.with_name(f"{path.name}.tmp")
    tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    os.replace(tmp, path)


def _load_document(path: Path) -> dict[str, dict[str, dict[str, Any]]]:
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    document = json.loads(text)
    if not isinstance(document, dict):
        raise ValueError("top-level value is not an object")
    return document


class JsonDocumentStore(RecordStorageInterface):
    """
    Flat JSON document implementation of record storage.

    Same lifecycle and error contract as SQLiteRecordStore.
    """

    backend_name = "json"

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self._document: Optional[dict[str, dict[str, dict[str, Any]]]] = None
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

    def _open_document(self, path: Path) -> dict[str, dict[str, dict[str, Any]]]:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            document = _load_document(path)
            for name in TABLES:
                table = document.setdefault(name, {})
                if not isinstance(table, dict):
                    raise ValueError(f"table {name} is not an object")
            atomic_write_json(path, document)
            return document
        except (OSError, ValueError) as e:
            raise StorageOpenError(f"Cannot open record store at {path}: {e}")

    async def open(self, path: Path) -> None:
        path = Path(path)
        if self._document is not None:
            await self.close()
        self._state = StoreState.OPENING
        try:
            self._document = self._open_document(path)
        except StorageOpenError as e:
            self._state = StoreState.UNINITIALIZED
            self._audit_logger.log_store_open_failed(str(path), e)
            raise
        self._path = path
        self._state = StoreState.READY
        self._audit_logger.log_store_opened(str(path), self.backend_name)

    async def relocate(self, new_path: Path) -> None:
        self._require_ready()
        new_path = Path(new_path)
        old_path = self._path
        self._state = StoreState.RELOCATING
        try:
            document = self._open_document(new_path)
        except StorageOpenError as e:
            self._state = StoreState.READY
            self._audit_logger.log_store_relocate_failed(
                str(old_path) if old_path else None, str(new_path), e
            )
            raise
        self._document = document
        self._path = new_path
        self._state = StoreState.READY
        self._audit_logger.log_store_relocated(
            str(old_path) if old_path else None, str(new_path)
        )

    async def close(self) -> None:
        if self._document is None:
            if self._state != StoreState.UNINITIALIZED:
                self._state = StoreState.CLOSED
            return
        self._state = StoreState.CLOSING
        self._document = None
        self._state = StoreState.CLOSED
        self._audit_logger.log_store_closed(str(self._path) if self._path else None)

    def _require_ready(self) -> dict[str, dict[str, dict[str, Any]]]:
        if self._state != StoreState.READY or self._document is None:
            raise NotInitializedError(
                f"Record store is not ready (state: {self._state.value})"
            )
        return self._document

    def _rows(self, schema: TableSchema) -> dict[str, dict[str, Any]]:
        return self._require_ready()[schema.name]

    def _flush(self, table: str) -> None:
        try:
            atomic_write_json(self._path, self._document)
        except OSError as e:
            raise StorageError(f"Failed to write {table}: {e}")

    def _commit(self, schema: TableSchema, rows: dict[str, dict[str, Any]]) -> None:
        """Swap in a changed copy of a table, keeping the old one if the write fails."""
        document = self._require_ready()
        previous = document[schema.name]
        document[schema.name] = rows
        try:
            self._flush(schema.name)
        except StorageError:
            document[schema.name] = previous
            raise

    # =========================================================================
    # ROW HELPERS
    # =========================================================================

    def _clean_fields(self, schema: TableSchema, fields: dict[str, Any]) -> dict[str, Any]:
        cleaned = {}
        for field, value in fields.items():
            if field in META_COLUMNS:
                continue
            column = schema.column(field)
            if value is not None and column.kind.is_json:
                # Store a detached copy so later caller mutation cannot leak in
                value = json.loads(json.dumps(value))
            if value is not None and column.kind == ColumnKind.BOOLEAN:
                value = bool(value)
            cleaned[field] = value
        return cleaned

    def _check_constraints(
        self,
        schema: TableSchema,
        row: dict[str, Any],
        record_id: str,
    ) -> None:
        for column in schema.required_columns:
            if row.get(column.field) is None:
                raise ConstraintViolationError(
                    f"Constraint violation on {schema.name}: "
                    f"NOT NULL constraint failed: {schema.name}.{column.name}"
                )
        for column in schema.unique_columns:
            value = row.get(column.field)
            if value is None:
                continue
            for other_id, other in self._rows(schema).items():
                if other_id != record_id and other.get(column.field) == value:
                    raise ConstraintViolationError(
                        f"Constraint violation on {schema.name}: "
                        f"UNIQUE constraint failed: {schema.name}.{column.name}"
                    )

    def _apply_defaults(self, schema: TableSchema, row: dict[str, Any]) -> None:
        for column in schema.columns:
            if row.get(column.field) is not None or column.default_sql is None:
                continue
            if column.kind == ColumnKind.BOOLEAN:
                row[column.field] = False
            elif column.kind == ColumnKind.REAL:
                row[column.field] = 0.0
            else:
                row[column.field] = 0

    def _decode(self, schema: TableSchema, row: dict[str, Any]) -> dict[str, Any]:
        decoded = {field: row.get(field) for field in META_COLUMNS}
        for column in schema.columns:
            value = row.get(column.field)
            if column.kind.is_json:
                if value is None:
                    value = {} if column.kind == ColumnKind.JSON_OBJECT else []
                value = check_blob_shape(schema, column, value)
                value = json.loads(json.dumps(value))
            decoded[column.field] = value
        return decoded

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    async def upsert_singleton(
        self,
        table: str,
        fixed_id: str,
        fields: dict[str, Any],
    ) -> None:
        schema = get_table(table)
        rows = dict(self._rows(schema))
        row = {column.field: None for column in schema.columns}
        row.update(self._clean_fields(schema, fields))
        self._apply_defaults(schema, row)
        self._check_constraints(schema, row, fixed_id)
        now = _now()
        existing = rows.get(fixed_id)
        row["id"] = fixed_id
        row["createdAt"] = existing.get("createdAt", now) if existing else now
        row["updatedAt"] = now
        rows[fixed_id] = row
        self._commit(schema, rows)
        self._audit_logger.log_record_saved(table, fixed_id)

    async def get_singleton(
        self,
        table: str,
        fixed_id: str,
    ) -> Optional[dict[str, Any]]:
        schema = get_table(table)
        row = self._rows(schema).get(fixed_id)
        if row is None:
            return None
        if not isinstance(row, dict):
            raise DataCorruptionError(f"{table} row {fixed_id} is not an object")
        return self._decode(schema, row)

    async def insert(self, table: str, fields: dict[str, Any]) -> str:
        schema = get_table(table)
        rows = dict(self._rows(schema))
        record_id = new_record_id()
        row = self._clean_fields(schema, fields)
        self._apply_defaults(schema, row)
        self._check_constraints(schema, row, record_id)
        now = _now()
        row.update({"id": record_id, "createdAt": now, "updatedAt": now})
        rows[record_id] = row
        self._commit(schema, rows)
        self._audit_logger.log_record_saved(table, record_id)
        return record_id

    async def update(
        self,
        table: str,
        record_id: str,
        fields: dict[str, Any],
    ) -> int:
        schema = get_table(table)
        rows = dict(self._rows(schema))
        if not fields:
            raise InvalidArgumentError(f"Update of {table} needs at least one field")
        changes = self._clean_fields(schema, fields)
        if not changes:
            raise InvalidArgumentError(f"Update of {table} has no writable fields")
        existing = rows.get(record_id)
        if existing is None:
            self._audit_logger.log_record_updated(table, record_id, list(fields), 0)
            return 0
        row = {**existing, **changes}
        self._check_constraints(schema, row, record_id)
        row["updatedAt"] = _now()
        rows[record_id] = row
        self._commit(schema, rows)
        self._audit_logger.log_record_updated(table, record_id, list(fields), 1)
        return 1

    async def delete(self, table: str, record_id: str) -> None:
        schema = get_table(table)
        rows = dict(self._rows(schema))
        if rows.pop(record_id, None) is not None:
            self._commit(schema, rows)
        self._audit_logger.log_record_deleted(table, record_id)

    async def list_records(
        self,
        table: str,
        order_by: str = "createdAt",
        descending: bool = True,
    ) -> list[dict[str, Any]]:
        schema = get_table(table)
        if order_by not in META_COLUMNS:
            schema.column(order_by)
        rows = list(self._rows(schema).values())
        # dict order is insertion order and breaks timestamp ties
        ordered = sorted(
            enumerate(rows),
            key=lambda pair: (pair[1].get(order_by) is not None, pair[1].get(order_by) or 0, pair[0]),
            reverse=descending,
        )
        return [self._decode(schema, row) for _, row in ordered]
