"""Shared test fixtures for nimbusvault."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

import pytest

from nimbusvault.client import VaultClient
from nimbusvault.models import ClientConfig, Session
from nimbusvault.session import MemorySessionStore

_DEFAULTS: dict[str, Any] = {
    "list_files": [],
    "save": {},
    "list_backups": [],
    "restore": {"details": {}},
    "storage": {"usedBytes": 0, "usedPretty": "0 B"},
    "login": {"uid": "1"},
    "register": {},
}


class FakeVaultAPI:
    """Scripted stand-in for ``VaultAPI``.

    Responses are keyed by (method, key) where key is the path, uid,
    record id or username of the call. A response may be a value, an
    exception instance (raised), or a callable (called with the call's
    arguments). ``hold`` parks matching calls until ``release``.
    """

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.responses: dict[tuple[str, str], Any] = {}
        self._gates: dict[tuple[str, str], asyncio.Event] = {}
        self.closed = False

    def respond(self, method: str, key: Any, value: Any) -> None:
        self.responses[(method, str(key))] = value

    def hold(self, method: str, key: Any) -> None:
        self._gates[(method, str(key))] = asyncio.Event()

    def release(self, method: str, key: Any) -> None:
        self._gates.pop((method, str(key))).set()

    def calls_to(self, method: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == method]

    def close(self) -> None:
        self.closed = True

    async def _answer(self, method: str, key: Any, *args: Any) -> Any:
        self.calls.append((method, *args))
        gate = self._gates.get((method, str(key)))
        if gate is not None:
            await gate.wait()
        value = self.responses.get((method, str(key)), _DEFAULTS[method])
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return value(*args)
        return value

    async def list_files(self, path: str) -> Any:
        return await self._answer("list_files", path, path)

    async def save(self, path: str, username: str) -> Any:
        return await self._answer("save", path, path, username)

    async def list_backups(self, uid: str) -> Any:
        return await self._answer("list_backups", uid, uid)

    async def restore(
        self,
        username: str,
        password: str,
        record_id: Any,
        out_directory: Optional[str] = None,
    ) -> Any:
        return await self._answer(
            "restore", record_id, username, password, record_id, out_directory,
        )

    async def storage(self, uid: str) -> Any:
        return await self._answer("storage", uid, uid)

    async def login(self, username: str, password: str) -> Any:
        return await self._answer("login", username, username, password)

    async def register(self, username: str, password: str) -> Any:
        return await self._answer("register", username, username, password)


@pytest.fixture
def fake_api() -> FakeVaultAPI:
    """A scripted backend with empty defaults."""
    return FakeVaultAPI()


@pytest.fixture
def session() -> Session:
    """A logged-in session."""
    return Session(username="u", uid="7")


@pytest.fixture
def tmp_vault_home(tmp_path: Path) -> Path:
    """Provide a temporary client home directory for testing."""
    home = tmp_path / ".nimbusvault"
    home.mkdir()
    return home


@pytest.fixture
def client(tmp_vault_home: Path, fake_api: FakeVaultAPI, session: Session) -> VaultClient:
    """A fully wired client talking to the fake backend."""
    return VaultClient(
        home=tmp_vault_home,
        config=ClientConfig(),
        api=fake_api,
        store=MemorySessionStore(session),
    )
