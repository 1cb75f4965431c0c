"""Tests for the Vault Lister."""

from __future__ import annotations

import asyncio

import pytest

from nimbusvault.errors import BackendError, ConnectivityFailure
from nimbusvault.events import BackupCompleted, EventBus
from nimbusvault.models import Session
from nimbusvault.vault import VaultLister, parse_records

BACKUPS = [
    {"fid": 1, "fname": "notes.txt", "fpath": "/home/u/notes.txt", "fsize": 12,
     "fsavedtime": "2024-03-01T10:15:00Z"},
    {"fid": "b2", "fname": "", "fsize": "4096"},
]


@pytest.fixture
def lister(fake_api, session) -> VaultLister:
    fake_api.respond("list_backups", "7", BACKUPS)
    return VaultLister(fake_api, session)


class TestParseRecords:
    """Tests for backup list parsing."""

    def test_maps_backend_fields(self) -> None:
        records = parse_records(BACKUPS)
        assert records[0].record_id == 1
        assert records[0].display_name == "notes.txt"
        assert records[0].saved_at.year == 2024
        assert records[1].display_name == "Unnamed Backup"
        assert records[1].size == 4096

    def test_skips_records_without_id(self) -> None:
        records = parse_records([{"fname": "orphan"}, BACKUPS[0]])
        assert [r.record_id for r in records] == [1]

    def test_non_list_is_empty(self) -> None:
        assert parse_records({"error": "nope"}) == []


class TestRefresh:
    """Tests for loading the record list."""

    @pytest.mark.asyncio
    async def test_refresh_scoped_to_uid(self, lister, fake_api) -> None:
        result = await lister.refresh()

        assert result.applied
        assert fake_api.calls_to("list_backups") == [("list_backups", "7")]
        assert len(lister.records) == 2
        assert lister.total_bytes == 12 + 4096
        assert not lister.loading

    @pytest.mark.asyncio
    async def test_no_uid_sends_nothing(self, fake_api) -> None:
        lister = VaultLister(fake_api, Session(username="u"))

        result = await lister.refresh()

        assert result.error == "No user ID found"
        assert lister.error == "No user ID found"
        assert lister.records == []
        assert fake_api.calls == []

    @pytest.mark.asyncio
    async def test_failure_clears_records(self, lister, fake_api) -> None:
        await lister.refresh()
        fake_api.respond("list_backups", "7", BackendError(500))

        await lister.refresh()

        assert lister.records == []
        assert lister.error == "Failed to load backups"

    @pytest.mark.asyncio
    async def test_connectivity_failure(self, lister, fake_api) -> None:
        fake_api.respond("list_backups", "7", ConnectivityFailure("down"))
        await lister.refresh()
        assert lister.error == "Failed to connect to server"

    @pytest.mark.asyncio
    async def test_find_compares_as_strings(self, lister) -> None:
        await lister.refresh()
        assert lister.find("1").display_name == "notes.txt"
        assert lister.find("b2") is not None
        assert lister.find(99) is None

    @pytest.mark.asyncio
    async def test_older_refresh_never_overwrites_newer(self, lister, fake_api) -> None:
        """Two overlapping refreshes; the first to be issued answers last."""
        fake_api.hold("list_backups", "7")
        older = asyncio.create_task(lister.refresh())
        await asyncio.sleep(0)
        gate = fake_api._gates.pop(("list_backups", "7"))

        fake_api.respond("list_backups", "7", [BACKUPS[0]])
        newer = await lister.refresh()
        fake_api.respond("list_backups", "7", BACKUPS)
        gate.set()
        stale = await older

        assert newer.applied
        assert not stale.applied
        assert [r.record_id for r in lister.records] == [1]
        assert lister.generation == 2


class TestAttach:
    """Tests for refresh-on-backup wiring."""

    @pytest.mark.asyncio
    async def test_backup_completed_triggers_refresh(self, lister, fake_api) -> None:
        bus = EventBus()
        lister.attach(bus)

        await bus.emit(BackupCompleted(path="/home/u/notes.txt", display_name="notes.txt"))

        assert len(fake_api.calls_to("list_backups")) == 1
        assert len(lister.records) == 2


class TestUsage:
    """Tests for storage usage."""

    @pytest.mark.asyncio
    async def test_usage(self, lister, fake_api) -> None:
        fake_api.respond("storage", "7", {"usedBytes": 5242880, "usedPretty": "5.0 MB"})
        usage = await lister.usage()
        assert usage.used_bytes == 5242880
        assert usage.used_pretty == "5.0 MB"

    @pytest.mark.asyncio
    async def test_usage_failure(self, lister, fake_api) -> None:
        fake_api.respond("storage", "7", BackendError(404, "User not found"))
        assert await lister.usage() is None
        assert lister.error == "User not found"


class TestClear:
    """Tests for forgetting the record list."""

    @pytest.mark.asyncio
    async def test_clear_drops_outstanding_refresh(self, lister, fake_api) -> None:
        fake_api.hold("list_backups", "7")
        pending = asyncio.create_task(lister.refresh())
        await asyncio.sleep(0)

        lister.clear()
        fake_api.release("list_backups", "7")
        result = await pending

        assert not result.applied
        assert lister.records == []
        assert not lister.loading

    @pytest.mark.asyncio
    async def test_unexpected_error_clears_loading(self, lister, fake_api) -> None:
        fake_api.respond("list_backups", "7", RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            await lister.refresh()

        assert not lister.loading
