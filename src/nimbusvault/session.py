"""
Session persistence.

The logged-in identity is an explicit ``Session`` object handed to each
component at construction. Where it survives between runs is up to the
``SessionStore`` behind it: a JSON file for the command line, memory
for tests and embedding.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError

from .models import Session

logger = logging.getLogger("nimbusvault.session")

SESSION_FILE = "session.json"


class SessionStore(Protocol):
    """Load/save/clear interface for the persisted session."""

    def load(self) -> Session: ...

    def save(self, session: Session) -> None: ...

    def clear(self) -> None: ...


class MemorySessionStore:
    """Keeps the session for the lifetime of the process only."""

    def __init__(self, session: Optional[Session] = None) -> None:
        self._data: Optional[dict] = session.model_dump() if session else None

    def load(self) -> Session:
        return Session(**self._data) if self._data else Session()

    def save(self, session: Session) -> None:
        self._data = session.model_dump()

    def clear(self) -> None:
        self._data = None


class FileSessionStore:
    """Session stored as JSON under the client home, readable by the owner only.

    Args:
        home: Client home directory.
    """

    def __init__(self, home: Path) -> None:
        self._path = home / SESSION_FILE

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Session:
        """Read the saved session; a missing or corrupt file means logged out."""
        if not self._path.exists():
            return Session()
        try:
            return Session(**json.loads(self._path.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, ValidationError, TypeError) as exc:
            logger.warning("Ignoring unreadable session file %s: %s", self._path, exc)
            return Session()

    def save(self, session: Session) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".json.tmp")
        tmp_path.write_text(session.model_dump_json(indent=2), encoding="utf-8")
        os.chmod(tmp_path, 0o600)
        tmp_path.replace(self._path)
        logger.debug("Session saved for '%s'", session.username)

    def clear(self) -> None:
        if self._path.exists():
            self._path.unlink()
            logger.debug("Session file removed")
