"""
Restore Coordinator — password-gated restore of one vault record.

    IDLE --select--> AWAITING_PASSWORD --confirm--> RESTORING --> IDLE
                          |  ^                      (success or failure)
                          |  +-- select (switch record)
                          +--cancel--> IDLE

The coordinator is the single restore slot: while a restore is running,
selecting, confirming and cancelling are all refused.

The password lives in a bytearray that is zeroed before it is released,
whether the attempt succeeded, failed or was cancelled. It is never
logged.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .errors import VaultError
from .models import BackupRecord, OutcomeStatus, RestoreOutcome, RestorePhase, Session

logger = logging.getLogger("nimbusvault.restore")

RESTORE_FAILED = "Restore failed"
PASSWORD_REQUIRED = "Password is required"
RESTORE_BUSY = "A restore is already in progress"


class _SecretBuffer:
    """Mutable holder for a secret that can be overwritten in place."""

    def __init__(self) -> None:
        self._buf = bytearray()

    def __len__(self) -> int:
        return len(self._buf)

    def set(self, value: str) -> None:
        self.wipe()
        self._buf.extend(value.encode("utf-8"))

    def reveal(self) -> str:
        return self._buf.decode("utf-8")

    def wipe(self) -> None:
        for i in range(len(self._buf)):
            self._buf[i] = 0
        del self._buf[:]


class RestoreCoordinator:
    """Drives the select → password → restore workflow.

    Attributes:
        error: User-visible message from the last refused or failed step.
        last_outcome: Outcome of the most recent restore attempt.

    Args:
        api: Backend client exposing ``restore(...)``.
        session: The logged-in session.
        out_directory: Optional restore target sent to the backend.
    """

    def __init__(
        self,
        api: Any,
        session: Session,
        out_directory: Optional[str] = None,
    ) -> None:
        self._api = api
        self._session = session
        self.out_directory = out_directory
        self._phase = RestorePhase.IDLE
        self._record: Optional[BackupRecord] = None
        self._password = _SecretBuffer()
        self.error = ""
        self.last_outcome: Optional[RestoreOutcome] = None

    @property
    def phase(self) -> RestorePhase:
        return self._phase

    @property
    def selected(self) -> Optional[BackupRecord]:
        return self._record

    @property
    def has_password(self) -> bool:
        return len(self._password) > 0

    @property
    def is_restoring(self) -> bool:
        return self._phase == RestorePhase.RESTORING

    def _reset(self) -> None:
        self._password.wipe()
        self._record = None
        self._phase = RestorePhase.IDLE

    def select_for_restore(self, record: BackupRecord) -> bool:
        """Pick the record to restore and wait for a password.

        Returns:
            True if the record is now selected.
        """
        if self.is_restoring:
            self.error = RESTORE_BUSY
            return False
        if not self._session.username:
            self.error = "Not logged in"
            return False

        self._password.wipe()
        self._record = record
        self._phase = RestorePhase.AWAITING_PASSWORD
        self.error = ""
        logger.debug("Selected record %s for restore", record.record_id)
        return True

    def set_password(self, value: str) -> bool:
        """Fill the password field of the pending restore."""
        if self._phase != RestorePhase.AWAITING_PASSWORD:
            return False
        self._password.set(value)
        return True

    def cancel(self) -> bool:
        """Abandon the pending selection. Nothing is sent.

        Returns:
            True if a selection was dropped.
        """
        if self.is_restoring:
            self.error = RESTORE_BUSY
            return False
        if self._phase == RestorePhase.IDLE:
            return False
        logger.debug("Restore of %s cancelled", self._record.record_id if self._record else None)
        self._reset()
        self.error = ""
        return True

    async def confirm(self, password: Optional[str] = None) -> RestoreOutcome:
        """Send the restore request for the selected record.

        An empty password is refused locally and the selection stays
        pending. Otherwise exactly one request is sent; afterwards the
        password is wiped and the selection dropped, whatever the result.

        Args:
            password: The vault password. When None, the value given to
                ``set_password`` is used.

        Returns:
            RestoreOutcome: succeeded (with the backend's details),
            failed, or rejected (nothing was sent).
        """
        if self._phase != RestorePhase.AWAITING_PASSWORD or self._record is None:
            message = RESTORE_BUSY if self.is_restoring else "No backup selected"
            self.error = message
            return RestoreOutcome(status=OutcomeStatus.REJECTED, message=message)

        record = self._record
        if password is not None:
            self._password.set(password)
        if not self.has_password:
            self.error = PASSWORD_REQUIRED
            return RestoreOutcome(
                record_id=record.record_id,
                display_name=record.display_name,
                status=OutcomeStatus.REJECTED,
                message=PASSWORD_REQUIRED,
            )

        self._phase = RestorePhase.RESTORING
        self.error = ""
        logger.info("Restoring record %s", record.record_id)
        try:
            data = await self._api.restore(
                self._session.username or "",
                self._password.reveal(),
                record.record_id,
                out_directory=self.out_directory,
            )
        except VaultError as exc:
            outcome = RestoreOutcome(
                record_id=record.record_id,
                display_name=record.display_name,
                status=OutcomeStatus.FAILED,
                message=exc.user_message(RESTORE_FAILED),
            )
            self.error = outcome.message
            logger.warning("Restore of %s failed: %s", record.record_id, outcome.message)
        else:
            details = data.get("details") if isinstance(data, dict) else None
            outcome = RestoreOutcome(
                record_id=record.record_id,
                display_name=record.display_name,
                status=OutcomeStatus.SUCCEEDED,
                message=f"Successfully restored: {record.display_name}",
                details=details if isinstance(details, dict) else {},
            )
            logger.info("Restore of %s complete", record.record_id)
        finally:
            self._reset()

        self.last_outcome = outcome
        return outcome
