"""Services package."""

from src.services.storage import (
    ConstraintViolationError,
    DataCorruptionError,
    InvalidArgumentError,
    JsonDocumentStore,
    LegacyFileStore,
    NotInitializedError,
    RecordStorageInterface,
    SQLiteRecordStore,
    StorageError,
    StorageOpenError,
    StoreState,
)
from src.services.preferences import RecentFoldersStore, StorageSettingsStore
from src.services.records import RecordService
from src.services.resolver import StorageLocationResolver

__all__ = [
    # Storage services
    "JsonDocumentStore",
    "LegacyFileStore",
    "RecordStorageInterface",
    "SQLiteRecordStore",
    "StoreState",
    # Storage exceptions
    "ConstraintViolationError",
    "DataCorruptionError",
    "InvalidArgumentError",
    "NotInitializedError",
    "StorageError",
    "StorageOpenError",
    # Preferences
    "RecentFoldersStore",
    "StorageSettingsStore",
    # Records and locations
    "RecordService",
    "StorageLocationResolver",
]
