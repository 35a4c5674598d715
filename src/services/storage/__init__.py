"""
Storage Services Package

Provides the abstract record storage interface and its implementations.
SQLite is the default backend; a flat JSON document is the alternative.
"""

from src.services.storage.interface import (
    SINGLETON_ID,
    ConstraintViolationError,
    DataCorruptionError,
    InvalidArgumentError,
    NotInitializedError,
    RecordStorageInterface,
    StorageError,
    StorageOpenError,
    StoreState,
)
from src.services.storage.schema import TABLES, TableSchema, get_table
from src.services.storage.sqlite_store import SQLiteRecordStore
from src.services.storage.document_store import JsonDocumentStore
from src.services.storage.legacy_files import LegacyFileStore

__all__ = [
    # Interface
    "RecordStorageInterface",
    "SINGLETON_ID",
    "StoreState",
    # Exceptions
    "ConstraintViolationError",
    "DataCorruptionError",
    "InvalidArgumentError",
    "NotInitializedError",
    "StorageError",
    "StorageOpenError",
    # Schema
    "TABLES",
    "TableSchema",
    "get_table",
    # Implementations
    "JsonDocumentStore",
    "LegacyFileStore",
    "SQLiteRecordStore",
]
