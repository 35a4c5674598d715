"""
Storage Preference and Result Models

Schemas for the documents kept outside the record store (storage
settings) and for the plain-data results the access facade hands back
to the UI process.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class StorageType(str, Enum):
    """Where records are kept."""
    SQLITE = "sqlite"     # file-backed relational store (default)
    JSON = "json"         # flat JSON document store
    CLOUD = "cloud"       # not available yet; resolves to SQLITE


class StorageSettings(BaseModel):
    """
    User storage preferences.

    Read once at startup and rewritten wholesale on every change.
    Absence of the document means the application has never been set up.
    """
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    storage_type: StorageType = Field(
        default=StorageType.SQLITE,
        alias="storageType"
    )
    auto_backup: bool = Field(
        default=True,
        alias="autoBackup"
    )
    backup_interval: int = Field(
        default=24,
        ge=1,
        le=168,
        alias="backupInterval",
        description="Hours between automatic backups"
    )
    database_path: Optional[str] = Field(
        default=None,
        alias="databasePath",
        description="Custom folder for the record store; default data dir when unset"
    )

    def to_payload(self) -> dict[str, Any]:
        """Get the settings document as plain data."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FolderProbe(BaseModel):
    """Result of checking a folder for an existing record store."""
    model_config = ConfigDict(populate_by_name=True)

    has_data: bool = Field(..., alias="hasData")
    table_count: Optional[int] = Field(default=None, ge=0, alias="tableCount")
    error: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class OperationResult(BaseModel):
    """
    Uniform outcome of a facade operation.

    Every write endpoint answers with one of these so that callers handle
    success and failure the same way.
    """

    success: bool
    id: Optional[str] = None
    data: Optional[Any] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, **kwargs: Any) -> "OperationResult":
        return cls(success=True, **kwargs)

    @classmethod
    def failure(cls, error: str) -> "OperationResult":
        return cls(success=False, error=error)

    def to_payload(self) -> dict[str, Any]:
        """Get the result as plain data, omitting unset members."""
        return self.model_dump(mode="json", exclude_none=True)
