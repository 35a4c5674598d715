"""
Legacy Per-Key Document Files

Older UI builds saved the business form as "<id>.json" in the
application data directory and read it back by the same id. The
contract is still honoured for those callers: documents are opaque JSON
objects, a missing document reads as {}.
"""

import json
import re
from pathlib import Path
from typing import Any

from src.services.storage.document_store import atomic_write_json
from src.services.storage.interface import (
    DataCorruptionError,
    InvalidArgumentError,
    StorageError,
)


_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")


class LegacyFileStore:
    """Reads and writes one JSON document per external identifier."""

    def __init__(self, base_dir: Path):
        self._base_dir = Path(base_dir)

    def _path_for(self, key: str) -> Path:
        key = str(key or "").strip()
        if not _KEY_PATTERN.match(key) or ".." in key:
            raise InvalidArgumentError(f"Invalid document id: {key!r}")
        return self._base_dir / f"{key}.json"

    def save(self, key: str, document: dict[str, Any]) -> None:
        """
        Overwrite the document stored under key.

        Raises:
            InvalidArgumentError: If key is not a plain file name or the
                document is not a JSON object
            StorageError: If the file cannot be written
        """
        path = self._path_for(key)
        if not isinstance(document, dict):
            raise InvalidArgumentError("Legacy documents must be JSON objects")
        try:
            self._base_dir.mkdir(parents=True, exist_ok=True)
            atomic_write_json(path, document)
        except OSError as e:
            raise StorageError(f"Failed to save document {key}: {e}")

    def read(self, key: str) -> dict[str, Any]:
        """
        Read the document stored under key, {} when there is none.

        Raises:
            DataCorruptionError: If the file is not a JSON object
        """
        path = self._path_for(key)
        if not path.exists():
            return {}
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise DataCorruptionError(f"Document {key} cannot be read: {e}")
        if not isinstance(document, dict):
            raise DataCorruptionError(f"Document {key} is not a JSON object")
        return document
