"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for record storage.
Two backends implement it:
1. SQLite (the default, file-backed relational store)
2. A flat JSON document (for machines where SQLite files are unwanted)

The backend is chosen once at startup by the location resolver and is
never mixed within a session.

The interface is intentionally table-level - we're not building an ORM.
Typed per-entity operations live in src.services.records.
"""

from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Optional


SINGLETON_ID = "default"


class StoreState(str, Enum):
    """Lifecycle of a record store."""
    UNINITIALIZED = "uninitialized"
    OPENING = "opening"
    READY = "ready"
    RELOCATING = "relocating"
    CLOSING = "closing"
    CLOSED = "closed"


class RecordStorageInterface(ABC):
    """
    Abstract interface for record storage operations.

    Rows are plain dicts keyed by wire (camelCase) field names. Every row
    returned carries "id", "createdAt" and "updatedAt".
    """

    backend_name: str = "abstract"

    @property
    @abstractmethod
    def state(self) -> StoreState:
        """Current lifecycle state."""
        pass

    @property
    @abstractmethod
    def path(self) -> Optional[Path]:
        """File the store is bound to, None before the first open."""
        pass

    @abstractmethod
    async def open(self, path: Path) -> None:
        """
        Open the store at path, creating file, directory and tables.

        Closes any connection that is already open first.

        Raises:
            StorageOpenError: If the file cannot be created, opened or
                initialized
        """
        pass

    @abstractmethod
    async def relocate(self, new_path: Path) -> None:
        """
        Move the store to another file without restarting.

        On failure the store stays bound to its previous location.

        Raises:
            NotInitializedError: If the store is not ready
            StorageOpenError: If the new location cannot be opened
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the store. Safe to call more than once."""
        pass

    @abstractmethod
    async def upsert_singleton(
        self,
        table: str,
        fixed_id: str,
        fields: dict[str, Any],
    ) -> None:
        """
        Write the one row of a singleton table, replacing every column.

        Raises:
            ConstraintViolationError: If a required column is missing
        """
        pass

    @abstractmethod
    async def get_singleton(
        self,
        table: str,
        fixed_id: str,
    ) -> Optional[dict[str, Any]]:
        """
        Read the one row of a singleton table.

        Returns:
            The row if it exists, None otherwise

        Raises:
            DataCorruptionError: If a stored blob cannot be decoded
        """
        pass

    @abstractmethod
    async def insert(self, table: str, fields: dict[str, Any]) -> str:
        """
        Insert a new row under a freshly generated id.

        Returns:
            The generated id

        Raises:
            ConstraintViolationError: If a uniqueness or required-column
                constraint is violated
        """
        pass

    @abstractmethod
    async def update(
        self,
        table: str,
        record_id: str,
        fields: dict[str, Any],
    ) -> int:
        """
        Write only the supplied fields of one row.

        Returns:
            Number of rows changed (0 when the id matched nothing)

        Raises:
            InvalidArgumentError: If no fields or unknown fields are given
        """
        pass

    @abstractmethod
    async def delete(self, table: str, record_id: str) -> None:
        """Physically delete one row. Deleting a missing id is not an error."""
        pass

    @abstractmethod
    async def list_records(
        self,
        table: str,
        order_by: str = "createdAt",
        descending: bool = True,
    ) -> list[dict[str, Any]]:
        """
        List every row of a table.

        Args:
            table: Table name
            order_by: Wire field name to sort on
            descending: Sort direction

        Returns:
            Rows in the requested order

        Raises:
            DataCorruptionError: If a stored blob cannot be decoded
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageOpenError(StorageError):
    """The store file could not be created, opened or initialized."""
    pass


class NotInitializedError(StorageError):
    """Operation attempted before the store was opened or after it was closed."""
    pass


class DataCorruptionError(StorageError):
    """A stored value could not be decoded back into its structured form."""
    pass


class ConstraintViolationError(StorageError):
    """A uniqueness or required-column constraint rejected a write."""
    pass


class InvalidArgumentError(StorageError):
    """The caller supplied an unusable request (e.g. an empty update)."""
    pass
