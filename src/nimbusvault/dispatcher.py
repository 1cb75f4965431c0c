"""
Backup Dispatcher — one backup request per path, never two.

Each path being backed up holds a marker in an in-flight set for the
lifetime of its request. A second request for a marked path is refused
locally instead of reaching the backend. The marker is taken and
released by a context manager so it cannot outlive its request, even
when the request dies with an unexpected exception.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from .errors import ValidationFailure, VaultError
from .events import BackupCompleted, EventBus
from .models import BackupJob, BackupOutcome, OutcomeStatus, RemoteEntry, Session

logger = logging.getLogger("nimbusvault.dispatcher")

BACKUP_FAILED = "Backup failed"


class BackupDispatcher:
    """Issues backup requests and tracks them per path.

    Attributes:
        outcomes: Latest outcome per path (rejections are not recorded,
            so a duplicate click never overwrites the running job's report).

    Args:
        api: Backend client exposing ``save(path, username)``.
        session: The logged-in session.
        bus: Where ``BackupCompleted`` is announced.
    """

    def __init__(self, api: Any, session: Session, bus: Optional[EventBus] = None) -> None:
        self._api = api
        self._session = session
        self._bus = bus or EventBus()
        self._in_flight: set[str] = set()
        self.outcomes: dict[str, BackupOutcome] = {}

    @property
    def in_flight(self) -> frozenset[str]:
        return frozenset(self._in_flight)

    def is_in_flight(self, path: str) -> bool:
        return path in self._in_flight

    @contextmanager
    def _claim(self, path: str) -> Iterator[None]:
        """Hold the in-flight marker for ``path`` for the duration of the block.

        Raises:
            ValidationFailure: The path already has a request outstanding.
        """
        if path in self._in_flight:
            raise ValidationFailure(f"Backup already in progress: {path}")
        self._in_flight.add(path)
        try:
            yield
        finally:
            self._in_flight.discard(path)

    async def backup(self, entry: RemoteEntry) -> BackupOutcome:
        """Back up a file or directory from the current listing."""
        return await self.dispatch(BackupJob.for_entry(entry))

    async def dispatch(self, job: BackupJob) -> BackupOutcome:
        """Send one backup request.

        Args:
            job: Target path and display name.

        Returns:
            BackupOutcome: succeeded, failed (backend/connectivity), or
            rejected (not logged in, or already in flight).
        """
        username = self._session.username
        if not username:
            return BackupOutcome(
                path=job.path,
                display_name=job.display_name,
                status=OutcomeStatus.REJECTED,
                message="Not logged in",
            )

        try:
            with self._claim(job.path):
                logger.info("Backing up %s", job.path)
                await self._api.save(job.path, username)
        except ValidationFailure as exc:
            logger.info("Rejected duplicate backup of %s", job.path)
            return BackupOutcome(
                path=job.path,
                display_name=job.display_name,
                status=OutcomeStatus.REJECTED,
                message=str(exc),
            )
        except VaultError as exc:
            outcome = BackupOutcome(
                path=job.path,
                display_name=job.display_name,
                status=OutcomeStatus.FAILED,
                message=exc.user_message(BACKUP_FAILED),
            )
            self.outcomes[job.path] = outcome
            logger.warning("Backup of %s failed: %s", job.path, outcome.message)
            return outcome

        outcome = BackupOutcome(
            path=job.path,
            display_name=job.display_name,
            status=OutcomeStatus.SUCCEEDED,
            message=f"Successfully backed up: {job.display_name}",
        )
        self.outcomes[job.path] = outcome
        logger.info("Backup of %s complete", job.path)
        await self._bus.emit(BackupCompleted(path=job.path, display_name=job.display_name))
        return outcome
