"""
Pydantic models for everything the client reads from or sends to the
vault backend, plus the outcome records reported by each operation.

Wire payloads use the backend's field names (``type``, ``fid``,
``fsavedtime`` ...). The ``from_api`` constructors translate them into
these models so the rest of the client never touches raw dicts.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import DEFAULT_API_URL

ROOT = "."


class EntryKind(str, Enum):
    """What a remote entry is."""

    FILE = "file"
    DIRECTORY = "directory"


class OutcomeStatus(str, Enum):
    """How an operation resolved."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REJECTED = "rejected"


class RestorePhase(str, Enum):
    """Restore workflow state."""

    IDLE = "idle"
    AWAITING_PASSWORD = "awaiting-password"
    RESTORING = "restoring"


def _coerce_size(value: Any) -> Optional[int]:
    """Sizes arrive as ints or numeric strings; anything else is unknown."""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Remote file tree
# ---------------------------------------------------------------------------


class RemoteEntry(BaseModel):
    """One item of a directory listing.

    Attributes:
        name: Entry name within its parent directory.
        path: Absolute path on the backend host.
        kind: File or directory.
        size: Size in bytes, when the backend reports one.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    kind: EntryKind = EntryKind.FILE
    size: Optional[int] = None

    @field_validator("size", mode="before")
    @classmethod
    def _size(cls, value: Any) -> Optional[int]:
        return _coerce_size(value)

    @property
    def is_dir(self) -> bool:
        return self.kind == EntryKind.DIRECTORY

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RemoteEntry":
        """Build from a ``GET /api/files`` item."""
        kind = EntryKind.DIRECTORY if data.get("type") == "directory" else EntryKind.FILE
        return cls(
            name=str(data.get("name", "")),
            path=str(data.get("path", "")),
            kind=kind,
            size=data.get("size"),
        )


class ListingResult(BaseModel):
    """Result of one directory listing request.

    ``applied`` is False when a newer request superseded this one and
    the response was dropped.
    """

    path: str = ROOT
    entries: list[RemoteEntry] = Field(default_factory=list)
    error: str = ""
    applied: bool = True

    @property
    def ok(self) -> bool:
        return not self.error


# ---------------------------------------------------------------------------
# Vault records
# ---------------------------------------------------------------------------


class BackupJob(BaseModel):
    """A single backup request waiting on the backend."""

    model_config = ConfigDict(frozen=True)

    path: str
    display_name: str = ""

    @classmethod
    def for_entry(cls, entry: RemoteEntry) -> "BackupJob":
        return cls(path=entry.path, display_name=entry.name)

    @classmethod
    def for_path(cls, path: str) -> "BackupJob":
        """Job for a bare absolute path, named after its last component."""
        name = path.rstrip("/").rsplit("/", 1)[-1] or path
        return cls(path=path, display_name=name)


class BackupRecord(BaseModel):
    """A stored backup, as reported by ``GET /api/backups``.

    Attributes:
        record_id: Backend identifier (``fid``), sent back on restore.
        display_name: Name of the backed-up item.
        stored_path: Original absolute path, when known.
        size: Stored size in bytes.
        saved_at: When the backup was created.
    """

    model_config = ConfigDict(frozen=True)

    record_id: Union[int, str]
    display_name: str = "Unnamed Backup"
    stored_path: Optional[str] = None
    size: Optional[int] = None
    saved_at: Optional[datetime] = None

    @field_validator("size", mode="before")
    @classmethod
    def _size(cls, value: Any) -> Optional[int]:
        return _coerce_size(value)

    @field_validator("saved_at", mode="before")
    @classmethod
    def _saved_at(cls, value: Any) -> Optional[datetime]:
        if value in (None, ""):
            return None
        if isinstance(value, datetime):
            return value
        try:
            return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "BackupRecord":
        return cls(
            record_id=data["fid"],
            display_name=data.get("fname") or "Unnamed Backup",
            stored_path=data.get("fpath") or None,
            size=data.get("fsize"),
            saved_at=data.get("fsavedtime"),
        )


class RefreshResult(BaseModel):
    """Result of one vault refresh."""

    generation: int = 0
    records: list[BackupRecord] = Field(default_factory=list)
    error: str = ""
    applied: bool = True

    @property
    def ok(self) -> bool:
        return not self.error


class StorageUsage(BaseModel):
    """Space the user's vault occupies on the backend."""

    used_bytes: int = 0
    used_pretty: str = "0 B"

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "StorageUsage":
        return cls(
            used_bytes=_coerce_size(data.get("usedBytes")) or 0,
            used_pretty=data.get("usedPretty") or "0 B",
        )


# ---------------------------------------------------------------------------
# Operation outcomes
# ---------------------------------------------------------------------------


class BackupOutcome(BaseModel):
    """How a backup request resolved for one path."""

    path: str
    display_name: str = ""
    status: OutcomeStatus
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.SUCCEEDED


class RestoreOutcome(BaseModel):
    """How a restore attempt resolved.

    ``details`` is the backend's result mapping, passed through as-is.
    """

    record_id: Optional[Union[int, str]] = None
    display_name: str = ""
    status: OutcomeStatus
    message: str = ""
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.SUCCEEDED


class AuthOutcome(BaseModel):
    """Result of a login or registration."""

    username: str = ""
    status: OutcomeStatus
    message: str = ""
    uid: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.SUCCEEDED


# ---------------------------------------------------------------------------
# Session and configuration
# ---------------------------------------------------------------------------


class Session(BaseModel):
    """Who is logged in. Scopes every backend call."""

    username: Optional[str] = None
    uid: Optional[str] = None

    @field_validator("uid", mode="before")
    @classmethod
    def _uid(cls, value: Any) -> Optional[str]:
        return None if value in (None, "") else str(value)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.username and self.uid)

    def clear(self) -> None:
        self.username = None
        self.uid = None


class ClientConfig(BaseModel):
    """Persistent client configuration (``config.yaml``)."""

    api_url: str = DEFAULT_API_URL
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    headers: dict[str, str] = Field(
        default_factory=lambda: {"ngrok-skip-browser-warning": "true"}
    )
    restore_out_directory: Optional[str] = None
    log_level: str = "INFO"
