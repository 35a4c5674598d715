"""
Main Orchestrator for AccTrack

This module ties together all the components and defines the process
lifecycle:
1. Startup (settings → resolve location → open store)
2. Serving (facade requests over the transport)
3. Shutdown (close store)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The store is opened exactly once, before any request is served
- A store that cannot be opened at startup is fatal; nothing is served
- Every component gets the same audit logger and the same store object

This is the "glue" that wires explicit instances together instead of
sharing a module-level store.
"""

from pathlib import Path
from typing import Optional

import structlog

from src.audit import AuditLogger
from src.config import AppSettings, get_settings
from src.ipc import AccessFacade
from src.models.storage import StorageSettings
from src.services.preferences import RecentFoldersStore, StorageSettingsStore
from src.services.records import RecordService
from src.services.resolver import StorageLocationResolver
from src.services.storage import LegacyFileStore, RecordStorageInterface


logger = structlog.get_logger(__name__)


class AppComponents:
    """
    Everything one AccTrack process needs, wired together.

    Build with create_app_components(), then start() before serving.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        audit_logger: AuditLogger,
        settings_store: StorageSettingsStore,
        recent_folders: RecentFoldersStore,
        resolver: StorageLocationResolver,
        storage_settings: Optional[StorageSettings],
        store: RecordStorageInterface,
        records: RecordService,
        legacy_files: LegacyFileStore,
        facade: AccessFacade,
    ):
        self.app_settings = app_settings
        self.audit_logger = audit_logger
        self.settings_store = settings_store
        self.recent_folders = recent_folders
        self.resolver = resolver
        self.storage_settings = storage_settings
        self.store = store
        self.records = records
        self.legacy_files = legacy_files
        self.facade = facade

    @property
    def database_path(self) -> Path:
        """Where start() opens the store."""
        return self.resolver.preferred_database_path(self.storage_settings)

    async def start(self) -> Path:
        """
        Open the record store at the preferred location.

        Returns:
            The opened store file

        Raises:
            StorageOpenError: If the store cannot be opened (fatal)
        """
        path = self.database_path
        await self.store.open(path)
        logger.info(
            "app_started",
            path=str(path),
            backend=self.store.backend_name,
            first_run=self.storage_settings is None,
        )
        return path

    async def stop(self) -> None:
        await self.store.close()
        logger.info("app_stopped")


def create_app_components(
    app_settings: Optional[AppSettings] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        app_settings: Settings to use; the cached environment settings
                      when omitted. Tests pass their own data_dir here.

    Returns:
        Wired, not yet started components
    """
    app_settings = app_settings or get_settings()
    audit_logger = AuditLogger()

    settings_store = StorageSettingsStore(app_settings.settings_path, audit_logger)
    recent_folders = RecentFoldersStore(
        app_settings.recent_folders_path,
        limit=app_settings.recent_folders_limit,
        audit_logger=audit_logger,
    )
    resolver = StorageLocationResolver(settings_store, app_settings, audit_logger)

    # Backend is chosen once per process from the settings document
    storage_settings = resolver.load_storage_settings()
    store = resolver.create_store(storage_settings)
    records = RecordService(store)
    legacy_files = LegacyFileStore(app_settings.data_dir)

    facade = AccessFacade(
        records=records,
        settings_store=settings_store,
        recent_folders=recent_folders,
        resolver=resolver,
        legacy_files=legacy_files,
        audit_logger=audit_logger,
    )

    return AppComponents(
        app_settings=app_settings,
        audit_logger=audit_logger,
        settings_store=settings_store,
        recent_folders=recent_folders,
        resolver=resolver,
        storage_settings=storage_settings,
        store=store,
        records=records,
        legacy_files=legacy_files,
        facade=facade,
    )
