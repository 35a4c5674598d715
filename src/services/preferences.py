"""
Preference Documents

Two small JSON documents live next to the default record store, outside
it, so they can be read before any store is opened:
- storage settings: which backend, auto-backup, custom store folder
- recent folders: storage folders the user picked before, newest first

Both are read whole and overwritten whole. There is no partial update
and no protection against concurrent writers.
"""

import json
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from src.audit import AuditLogger
from src.models.storage import StorageSettings
from src.services.storage.document_store import atomic_write_json
from src.services.storage.interface import InvalidArgumentError, StorageError


logger = structlog.get_logger(__name__)


class StorageSettingsStore:
    """Persists the StorageSettings document."""

    def __init__(self, path: Path, audit_logger: Optional[AuditLogger] = None):
        self._path = Path(path)
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> Optional[StorageSettings]:
        """
        Read the settings document.

        Returns:
            The settings, or None when the document is absent (first run)
            or unreadable
        """
        if not self._path.exists():
            return None
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return StorageSettings.model_validate(raw)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(
                "storage_settings_unreadable",
                path=str(self._path),
                error=str(e),
            )
            return None

    def save(self, settings: StorageSettings) -> None:
        """
        Overwrite the settings document.

        Raises:
            StorageError: If the file cannot be written
        """
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write_json(self._path, settings.to_payload())
        except OSError as e:
            raise StorageError(f"Failed to save storage settings: {e}")
        self._audit_logger.log_settings_saved(self._path.name, settings.to_payload())


class RecentFoldersStore:
    """
    Persists the most-recently-used storage folders.

    At most `limit` distinct entries, newest first. Re-adding a folder
    moves it to the front.
    """

    def __init__(
        self,
        path: Path,
        limit: int = 10,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._path = Path(path)
        self._limit = limit
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def limit(self) -> int:
        return self._limit

    def load(self) -> list[str]:
        """Read the folder list; a missing or unreadable document reads as []."""
        if not self._path.exists():
            return []
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("recent_folders_unreadable", path=str(self._path), error=str(e))
            return []
        if not isinstance(raw, list):
            logger.warning("recent_folders_unreadable", path=str(self._path), error="not a list")
            return []
        return [item for item in raw if isinstance(item, str)][: self._limit]

    def add(self, folder: str) -> list[str]:
        """
        Put folder at the front of the list and persist it.

        Returns:
            The updated list

        Raises:
            InvalidArgumentError: If folder is empty
            StorageError: If the document cannot be written
        """
        folder = str(folder or "").strip()
        if not folder:
            raise InvalidArgumentError("Folder path is required")
        folders = [item for item in self.load() if item != folder]
        folders.insert(0, folder)
        folders = folders[: self._limit]
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write_json(self._path, folders)
        except OSError as e:
            raise StorageError(f"Failed to save recent folders: {e}")
        self._audit_logger.log_settings_saved(self._path.name, {"count": len(folders)})
        return folders
