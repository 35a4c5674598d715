"""
Storage Location Resolver

Decides which file backs the record store:
1. At startup - the custom folder from the storage settings document,
   or the default application-data directory
2. When the user picks another folder - persists the choice, then
   relocates the open store

DESIGN DECISION: On a location change the settings document is written
BEFORE the store is relocated, and is not rolled back if the relocate
fails. The relocate error is surfaced; the store stays on its old file
and the user retries with a working folder. Until then settings and
store may point at different folders.
"""

import sqlite3
from pathlib import Path
from typing import Optional

import structlog

from src.audit import AuditLogger
from src.config import AppSettings, get_settings
from src.models.storage import FolderProbe, StorageSettings, StorageType
from src.services.preferences import StorageSettingsStore
from src.services.storage import (
    InvalidArgumentError,
    JsonDocumentStore,
    RecordStorageInterface,
    SQLiteRecordStore,
)


logger = structlog.get_logger(__name__)


class StorageLocationResolver:
    """Resolves, probes and changes the record store location."""

    def __init__(
        self,
        settings_store: StorageSettingsStore,
        app_settings: Optional[AppSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings_store = settings_store
        self._app_settings = app_settings or get_settings()
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def default_location(self) -> Path:
        return self._app_settings.data_dir

    def load_storage_settings(self) -> Optional[StorageSettings]:
        """Read the settings document; None means first run."""
        return self._settings_store.load()

    def is_first_run(self) -> bool:
        return self.load_storage_settings() is None

    def load_preferred_location(
        self,
        settings: Optional[StorageSettings] = None,
    ) -> Path:
        """
        Get the folder the store should open in.

        Args:
            settings: Already loaded settings; read from disk when omitted
        """
        settings = settings or self.load_storage_settings()
        if settings and settings.database_path:
            return Path(settings.database_path).expanduser()
        return self.default_location

    def backend_for(self, settings: Optional[StorageSettings]) -> StorageType:
        """Get the backend actually used for a settings document."""
        storage_type = settings.storage_type if settings else StorageType.SQLITE
        if storage_type == StorageType.CLOUD:
            logger.warning("cloud_storage_unavailable", fallback=StorageType.SQLITE.value)
            return StorageType.SQLITE
        return storage_type

    def database_path(
        self,
        folder: Path,
        storage_type: StorageType = StorageType.SQLITE,
    ) -> Path:
        """Get the store file inside a folder for a backend."""
        if storage_type == StorageType.JSON:
            return Path(folder) / self._app_settings.document_filename
        return Path(folder) / self._app_settings.database_filename

    def preferred_database_path(
        self,
        settings: Optional[StorageSettings] = None,
    ) -> Path:
        settings = settings or self.load_storage_settings()
        return self.database_path(
            self.load_preferred_location(settings),
            self.backend_for(settings),
        )

    def create_store(
        self,
        settings: Optional[StorageSettings] = None,
    ) -> RecordStorageInterface:
        """
        Build the (unopened) store for the configured backend.

        Called once at startup; the backend is fixed for the session.
        """
        settings = settings or self.load_storage_settings()
        if self.backend_for(settings) == StorageType.JSON:
            return JsonDocumentStore(audit_logger=self._audit_logger)
        return SQLiteRecordStore(audit_logger=self._audit_logger)

    def probe_location_for_existing_data(self, folder: str) -> FolderProbe:
        """
        Check whether a folder already holds a record store with tables.

        Opens the file read-only on its own connection and always closes
        it. Never creates or modifies anything.
        """
        if not str(folder or "").strip():
            return FolderProbe(has_data=False, error="Folder path is required")
        path = self.database_path(Path(folder).expanduser())
        if not path.is_file():
            return FolderProbe(has_data=False)

        conn = None
        try:
            conn = sqlite3.connect(f"{path.resolve().as_uri()}?mode=ro", uri=True)
            row = conn.execute(
                "SELECT COUNT(*) FROM sqlite_master "
                "WHERE type = 'table' AND name NOT LIKE 'sqlite_%'"
            ).fetchone()
            table_count = int(row[0]) if row else 0
            return FolderProbe(has_data=table_count > 0, table_count=table_count)
        except sqlite3.Error as e:
            logger.warning("folder_probe_failed", path=str(path), error=str(e))
            return FolderProbe(has_data=False, error=str(e))
        finally:
            if conn is not None:
                conn.close()

    async def change_location(
        self,
        store: RecordStorageInterface,
        folder: str,
    ) -> Path:
        """
        Persist a new store folder, then relocate the open store there.

        Returns:
            The new store file path

        Raises:
            InvalidArgumentError: If folder is empty
            StorageError: If the settings document cannot be written
            StorageOpenError: If the store cannot be opened at the new
                location (the settings write is kept)
        """
        folder = str(folder or "").strip()
        if not folder:
            raise InvalidArgumentError("Folder path is required")
        settings = self.load_storage_settings() or StorageSettings()
        settings = settings.model_copy(update={"database_path": folder})
        self._settings_store.save(settings)

        storage_type = (
            StorageType.JSON if isinstance(store, JsonDocumentStore) else StorageType.SQLITE
        )
        new_path = self.database_path(Path(folder).expanduser(), storage_type)
        await store.relocate(new_path)
        return new_path
