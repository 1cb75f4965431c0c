"""Tests for the Backup Dispatcher.

Covers:
- one request per path while in flight
- independent paths run concurrently
- the in-flight marker is released on every outcome
- BackupCompleted is announced only on success
"""

from __future__ import annotations

import asyncio

import pytest

from nimbusvault.dispatcher import BackupDispatcher
from nimbusvault.errors import BackendError, ConnectivityFailure
from nimbusvault.events import BackupCompleted, EventBus
from nimbusvault.models import BackupJob, EntryKind, OutcomeStatus, RemoteEntry, Session

NOTES = RemoteEntry(name="notes.txt", path="/home/u/notes.txt", kind=EntryKind.FILE, size=12)
PHOTOS = RemoteEntry(name="photos", path="/home/u/photos", kind=EntryKind.DIRECTORY)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def dispatcher(fake_api, session, bus) -> BackupDispatcher:
    return BackupDispatcher(fake_api, session, bus)


class TestBackup:
    """Tests for single backup requests."""

    @pytest.mark.asyncio
    async def test_success(self, dispatcher, fake_api) -> None:
        """A file backup sends one save and reports success by name."""
        outcome = await dispatcher.backup(NOTES)

        assert outcome.ok
        assert outcome.message == "Successfully backed up: notes.txt"
        assert fake_api.calls_to("save") == [("save", "/home/u/notes.txt", "u")]
        assert dispatcher.outcomes["/home/u/notes.txt"] == outcome
        assert not dispatcher.is_in_flight("/home/u/notes.txt")

    @pytest.mark.asyncio
    async def test_backend_message_surfaced(self, dispatcher, fake_api) -> None:
        fake_api.respond("save", "/home/u/notes.txt", BackendError(400, "Disk quota exceeded"))

        outcome = await dispatcher.backup(NOTES)

        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.message == "Disk quota exceeded"
        assert not dispatcher.is_in_flight("/home/u/notes.txt")

    @pytest.mark.asyncio
    async def test_backend_error_without_message(self, dispatcher, fake_api) -> None:
        fake_api.respond("save", "/home/u/notes.txt", BackendError(500))
        outcome = await dispatcher.backup(NOTES)
        assert outcome.message == "Backup failed"

    @pytest.mark.asyncio
    async def test_connectivity_failure(self, dispatcher, fake_api) -> None:
        fake_api.respond("save", "/home/u/notes.txt", ConnectivityFailure("refused"))
        outcome = await dispatcher.backup(NOTES)
        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.message == "Failed to connect to server"

    @pytest.mark.asyncio
    async def test_not_logged_in(self, fake_api) -> None:
        dispatcher = BackupDispatcher(fake_api, Session())
        outcome = await dispatcher.backup(NOTES)
        assert outcome.status == OutcomeStatus.REJECTED
        assert fake_api.calls == []

    @pytest.mark.asyncio
    async def test_dispatch_bare_path(self, dispatcher, fake_api) -> None:
        outcome = await dispatcher.dispatch(BackupJob.for_path("/home/u/photos/"))
        assert outcome.message == "Successfully backed up: photos"
        assert fake_api.calls_to("save") == [("save", "/home/u/photos/", "u")]

    @pytest.mark.asyncio
    async def test_unexpected_error_releases_marker(self, dispatcher, fake_api) -> None:
        """Even a non-vault exception cannot leave the path stuck."""
        fake_api.respond("save", "/home/u/notes.txt", RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            await dispatcher.backup(NOTES)

        assert dispatcher.in_flight == frozenset()


class TestInFlight:
    """Tests for per-path deduplication."""

    @pytest.mark.asyncio
    async def test_duplicate_rejected_while_in_flight(self, dispatcher, fake_api) -> None:
        """A second click on the same path sends nothing."""
        fake_api.hold("save", "/home/u/notes.txt")

        first = asyncio.create_task(dispatcher.backup(NOTES))
        await asyncio.sleep(0)
        assert dispatcher.is_in_flight("/home/u/notes.txt")

        second = await dispatcher.backup(NOTES)
        assert second.status == OutcomeStatus.REJECTED
        assert "already in progress" in second.message
        assert "/home/u/notes.txt" not in dispatcher.outcomes

        fake_api.release("save", "/home/u/notes.txt")
        first_outcome = await first

        assert first_outcome.ok
        assert len(fake_api.calls_to("save")) == 1
        assert dispatcher.outcomes["/home/u/notes.txt"].ok

    @pytest.mark.asyncio
    async def test_distinct_paths_run_concurrently(self, dispatcher, fake_api) -> None:
        fake_api.hold("save", "/home/u/notes.txt")
        fake_api.hold("save", "/home/u/photos")

        tasks = [
            asyncio.create_task(dispatcher.backup(NOTES)),
            asyncio.create_task(dispatcher.backup(PHOTOS)),
        ]
        await asyncio.sleep(0)

        assert dispatcher.in_flight == {"/home/u/notes.txt", "/home/u/photos"}
        assert len(fake_api.calls_to("save")) == 2

        fake_api.release("save", "/home/u/photos")
        fake_api.release("save", "/home/u/notes.txt")
        outcomes = await asyncio.gather(*tasks)

        assert all(o.ok for o in outcomes)
        assert dispatcher.in_flight == frozenset()

    @pytest.mark.asyncio
    async def test_retry_allowed_after_failure(self, dispatcher, fake_api) -> None:
        fake_api.respond("save", "/home/u/notes.txt", ConnectivityFailure("down"))
        assert not (await dispatcher.backup(NOTES)).ok

        fake_api.respond("save", "/home/u/notes.txt", {})
        assert (await dispatcher.backup(NOTES)).ok
        assert len(fake_api.calls_to("save")) == 2


class TestCompletionEvent:
    """Tests for the BackupCompleted announcement."""

    @pytest.mark.asyncio
    async def test_emitted_on_success(self, dispatcher, bus) -> None:
        seen: list[BackupCompleted] = []
        bus.on(BackupCompleted, seen.append)

        await dispatcher.backup(PHOTOS)

        assert len(seen) == 1
        assert seen[0].path == "/home/u/photos"
        assert seen[0].display_name == "photos"

    @pytest.mark.asyncio
    async def test_not_emitted_on_failure(self, dispatcher, bus, fake_api) -> None:
        seen: list[BackupCompleted] = []
        bus.on(BackupCompleted, seen.append)
        fake_api.respond("save", "/home/u/photos", BackendError(500))

        await dispatcher.backup(PHOTOS)

        assert seen == []

    @pytest.mark.asyncio
    async def test_marker_released_before_listeners_run(self, dispatcher, bus) -> None:
        """A listener may immediately back up the same path again."""
        states: list[bool] = []
        bus.on(BackupCompleted, lambda e: states.append(dispatcher.is_in_flight(e.path)))

        await dispatcher.backup(NOTES)

        assert states == [False]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_fail_backup(self, dispatcher, bus) -> None:
        def _broken(event: BackupCompleted) -> None:
            raise ValueError("listener bug")

        bus.on(BackupCompleted, _broken)
        outcome = await dispatcher.backup(NOTES)
        assert outcome.ok
