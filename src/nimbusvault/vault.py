"""Vault Lister — the user's stored backups, newest request wins."""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from pydantic import ValidationError

from .errors import VaultError
from .events import BackupCompleted, EventBus
from .models import BackupRecord, RefreshResult, Session, StorageUsage

logger = logging.getLogger("nimbusvault.vault")

LOAD_FAILED = "Failed to load backups"
NO_USER = "No user ID found"


def parse_records(data: Any) -> list[BackupRecord]:
    """Turn a ``GET /api/backups`` body into records, skipping malformed items."""
    if not isinstance(data, list):
        return []
    records: list[BackupRecord] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        try:
            records.append(BackupRecord.from_api(item))
        except (KeyError, ValidationError) as exc:
            logger.warning("Skipping malformed backup record: %s", exc)
    return records


class VaultLister:
    """Lists backup records for the logged-in user.

    Refreshes are numbered; only the newest one may replace ``records``.

    Args:
        api: Backend client exposing ``list_backups(uid)`` and ``storage(uid)``.
        session: The logged-in session.
    """

    def __init__(self, api: Any, session: Session) -> None:
        self._api = api
        self._session = session
        self._generation = 0
        self.records: list[BackupRecord] = []
        self.error = ""
        self.loading = False

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def total_bytes(self) -> int:
        return sum(r.size or 0 for r in self.records)

    def find(self, record_id: Union[int, str]) -> Optional[BackupRecord]:
        """Look up a record by id; ids compare as strings."""
        wanted = str(record_id)
        return next((r for r in self.records if str(r.record_id) == wanted), None)

    def attach(self, bus: EventBus) -> None:
        """Refresh whenever a backup completes."""
        bus.on(BackupCompleted, self.handle_backup_completed)

    async def handle_backup_completed(self, event: BackupCompleted) -> None:
        logger.debug("Refreshing vault after backup of %s", event.path)
        await self.refresh()

    async def refresh(self) -> RefreshResult:
        """Reload the record list.

        Returns:
            RefreshResult: ``applied`` is False when a later refresh
            started before this one finished.
        """
        self._generation += 1
        generation = self._generation

        uid = self._session.uid
        if not uid:
            self.records = []
            self.error = NO_USER
            self.loading = False
            return RefreshResult(generation=generation, error=NO_USER)

        self.loading = True
        self.error = ""
        try:
            data = await self._api.list_backups(uid)
        except VaultError as exc:
            result = RefreshResult(generation=generation, error=exc.user_message(LOAD_FAILED))
        else:
            result = RefreshResult(generation=generation, records=parse_records(data))
        finally:
            if generation == self._generation:
                self.loading = False

        if generation != self._generation:
            logger.debug("Dropping stale vault refresh %d < %d", generation, self._generation)
            return result.model_copy(update={"applied": False})

        self.records = result.records
        self.error = result.error
        return result

    async def usage(self) -> Optional[StorageUsage]:
        """Storage used by the vault, or None (with ``error`` set) on failure."""
        uid = self._session.uid
        if not uid:
            self.error = NO_USER
            return None
        try:
            data = await self._api.storage(uid)
        except VaultError as exc:
            self.error = exc.user_message("Failed to load storage usage")
            return None
        return StorageUsage.from_api(data if isinstance(data, dict) else {})

    def clear(self) -> None:
        """Forget every record; a refresh still outstanding is dropped."""
        self._generation += 1
        self.records = []
        self.error = ""
        self.loading = False
