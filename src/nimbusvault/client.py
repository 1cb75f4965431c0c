"""
Vault client — one object that owns the session and every component.

Loads configuration and the persisted session from the client home,
builds the backend client and event bus, and wires the Vault Lister to
refresh whenever the Backup Dispatcher reports a completed backup.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

from .api import VaultAPI
from .config import load_config, resolve_home
from .dispatcher import BackupDispatcher
from .errors import VaultError
from .events import EventBus
from .models import AuthOutcome, ClientConfig, ListingResult, OutcomeStatus, RefreshResult
from .navigator import DirectoryNavigator
from .restore import RestoreCoordinator
from .session import FileSessionStore, SessionStore
from .vault import VaultLister

logger = logging.getLogger("nimbusvault.client")

MIN_PASSWORD_LENGTH = 8


class VaultClient:
    """The NimbusVault client.

    Args:
        home: Client home directory. Defaults to ~/.nimbusvault.
        config: Configuration; loaded from ``<home>/config.yaml`` if omitted.
        api: Backend client; built from ``config`` if omitted.
        store: Session persistence; a file under ``home`` if omitted.
    """

    def __init__(
        self,
        home: Optional[Path] = None,
        config: Optional[ClientConfig] = None,
        api: Optional[Any] = None,
        store: Optional[SessionStore] = None,
    ) -> None:
        self.home = resolve_home(home)
        self.config = config or load_config(self.home)
        self.api = api or VaultAPI(
            self.config.api_url,
            timeout=self.config.timeout,
            headers=self.config.headers,
        )
        self.store: SessionStore = store or FileSessionStore(self.home)
        self.session = self.store.load()
        self.bus = EventBus()

        self.navigator = DirectoryNavigator(self.api)
        self.dispatcher = BackupDispatcher(self.api, self.session, self.bus)
        self.restore = RestoreCoordinator(
            self.api,
            self.session,
            out_directory=self.config.restore_out_directory,
        )
        self.vault = VaultLister(self.api, self.session)
        self.vault.attach(self.bus)

    @property
    def username(self) -> Optional[str]:
        return self.session.username

    async def mount(self) -> tuple[ListingResult, RefreshResult]:
        """Load the root listing and the vault at the same time."""
        listing, refresh = await asyncio.gather(
            self.navigator.mount(),
            self.vault.refresh(),
        )
        return listing, refresh

    async def login(self, username: str, password: str) -> AuthOutcome:
        """Log in and persist the session.

        Returns:
            AuthOutcome: with the backend uid on success.
        """
        username = (username or "").strip()
        if not username or not password:
            return AuthOutcome(
                username=username,
                status=OutcomeStatus.REJECTED,
                message="Please enter username and password.",
            )

        try:
            data = await self.api.login(username, password)
        except VaultError as exc:
            message = exc.user_message("An error occurred.")
            logger.info("Login for '%s' failed: %s", username, message)
            return AuthOutcome(username=username, status=OutcomeStatus.FAILED, message=message)

        uid = data.get("uid") if isinstance(data, dict) else None
        if uid in (None, ""):
            return AuthOutcome(
                username=username,
                status=OutcomeStatus.FAILED,
                message="Login response carried no user ID",
            )

        self.session.username = username
        self.session.uid = str(uid)
        self.store.save(self.session)
        logger.info("Logged in as '%s'", username)
        return AuthOutcome(
            username=username,
            status=OutcomeStatus.SUCCEEDED,
            message=f"Logged in as {username}",
            uid=self.session.uid,
        )

    async def register(self, username: str, password: str, confirm_password: str) -> AuthOutcome:
        """Create an account. Does not log in."""
        username = (username or "").strip()

        def _reject(message: str) -> AuthOutcome:
            return AuthOutcome(username=username, status=OutcomeStatus.REJECTED, message=message)

        if not username or not password or not confirm_password:
            return _reject("Please fill in all fields.")
        if password != confirm_password:
            return _reject("Passwords do not match.")
        if len(password) < MIN_PASSWORD_LENGTH:
            return _reject(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

        try:
            await self.api.register(username, password)
        except VaultError as exc:
            return AuthOutcome(
                username=username,
                status=OutcomeStatus.FAILED,
                message=exc.user_message("An error occurred."),
            )

        logger.info("Registered '%s'", username)
        return AuthOutcome(
            username=username,
            status=OutcomeStatus.SUCCEEDED,
            message=f"Welcome, {username}! Registration successful.",
        )

    def logout(self) -> None:
        """Forget the session here and on disk.

        Drops any pending restore, the vault records and the displayed
        listing; replies still in flight for the old user are discarded.
        """
        self.restore.cancel()
        who = self.session.username
        self.session.clear()
        self.store.clear()
        self.vault.clear()
        self.navigator.clear()
        logger.info("Logged out '%s'", who)

    def close(self) -> None:
        """Release the backend connection pool."""
        self.api.close()

    def __enter__(self) -> "VaultClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
