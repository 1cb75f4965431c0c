"""
Directory Navigator — where the user is in the remote file tree.

The current location is an ordered list of path segments; the empty
list is the root sentinel ``"."``. Every move goes through ``list``,
which sets the location to the path it requests.

Every listing request takes a generation number. A response is applied
only when its generation is still the newest one issued, so when the
user clicks through folders faster than the backend answers, a slow
reply for a folder they already left is dropped instead of overwriting
the folder they are looking at.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError

from .errors import VaultError
from .models import ROOT, ListingResult, RemoteEntry

logger = logging.getLogger("nimbusvault.navigator")

LISTING_FAILED = "Failed to load files"


def normalize_path(path: Optional[str]) -> str:
    """Collapse a relative path to ``a/b`` form, or ``.`` for the root.

    Empty and ``.`` segments are dropped, so ``./docs//2024/`` becomes
    ``docs/2024``.
    """
    segments = [s for s in (path or "").split("/") if s not in ("", ".")]
    return "/".join(segments) if segments else ROOT


def _bad_segment(name: str) -> bool:
    return name in ("", ".", "..") or "/" in name


def parse_listing(data: Any) -> list[RemoteEntry]:
    """Turn a ``GET /api/files`` body into entries.

    A body that is not a list is an empty listing; malformed items are
    skipped.
    """
    if not isinstance(data, list):
        return []
    entries: list[RemoteEntry] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        try:
            entries.append(RemoteEntry.from_api(item))
        except ValidationError as exc:
            logger.warning("Skipping malformed listing item: %s", exc)
    return entries


class DirectoryNavigator:
    """Tracks the current remote directory and its listing.

    Attributes:
        entries: The displayed listing.
        error: User-visible message from the last applied listing, or "".
        loading: True while the newest listing request is outstanding.
        listing_path: Path the displayed listing belongs to.

    Args:
        api: Backend client exposing ``list_files(path)``.
    """

    def __init__(self, api: Any) -> None:
        self._api = api
        self._segments: list[str] = []
        self._generation = 0
        self.entries: list[RemoteEntry] = []
        self.error = ""
        self.loading = False
        self.listing_path = ROOT

    @property
    def current_path(self) -> str:
        return "/".join(self._segments) if self._segments else ROOT

    @property
    def segments(self) -> tuple[str, ...]:
        return tuple(self._segments)

    @property
    def is_at_root(self) -> bool:
        return not self._segments

    @property
    def display_path(self) -> str:
        return "~/" if self.is_at_root else f"~/{self.current_path}"

    @property
    def generation(self) -> int:
        return self._generation

    def find(self, name: str) -> Optional[RemoteEntry]:
        """Look up an entry of the displayed listing by name."""
        return next((e for e in self.entries if e.name == name), None)

    async def mount(self) -> ListingResult:
        """Initial listing at the root."""
        return await self.list(self.current_path)

    async def list(self, path: Optional[str] = None) -> ListingResult:
        """Move to ``path`` and display its listing.

        The requested path becomes the current path straight away, so
        ``enter`` and ``up`` always work from the newest request. The
        listing fully replaces the previous one. If a newer request was
        issued while this one was outstanding, the response is discarded
        and ``applied`` is False.

        Args:
            path: Relative path; defaults to the current path.

        Returns:
            ListingResult: The entries or the error for this request.
        """
        target = normalize_path(self.current_path if path is None else path)
        segments = [] if target == ROOT else target.split("/")
        if ".." in segments:
            self.error = f"Invalid path: {target!r}"
            logger.warning("Refusing to list %r", target)
            return ListingResult(path=target, error=self.error, applied=False)

        self._segments = segments
        self._generation += 1
        generation = self._generation
        self.loading = True
        self.error = ""
        logger.debug("Listing %s (generation %d)", target, generation)

        try:
            data = await self._api.list_files(target)
        except VaultError as exc:
            result = ListingResult(path=target, error=exc.user_message(LISTING_FAILED))
        else:
            result = ListingResult(path=target, entries=parse_listing(data))
        finally:
            if generation == self._generation:
                self.loading = False

        if generation != self._generation:
            logger.debug(
                "Dropping stale listing for %s (generation %d < %d)",
                target, generation, self._generation,
            )
            return result.model_copy(update={"applied": False})

        self.listing_path = target
        self.entries = result.entries
        self.error = result.error
        if result.error:
            logger.info("Listing %s failed: %s", target, result.error)
        return result

    async def enter(self, entry: RemoteEntry) -> Optional[ListingResult]:
        """Descend into a directory entry and list it.

        Files are ignored. Names that would smuggle a separator or a
        parent reference into the path are refused.

        Returns:
            The new listing, or None when nothing changed.
        """
        if not entry.is_dir:
            logger.debug("Ignoring enter on file %s", entry.name)
            return None
        if _bad_segment(entry.name):
            self.error = f"Invalid folder name: {entry.name!r}"
            logger.warning("Refusing to enter %r", entry.name)
            return None

        return await self.list("/".join([*self._segments, entry.name]))

    async def up(self) -> Optional[ListingResult]:
        """Go to the parent directory. No-op at the root.

        Returns:
            The new listing, or None at the root.
        """
        if self.is_at_root:
            return None
        return await self.list("/".join(self._segments[:-1]))

    async def reload(self) -> ListingResult:
        """List the current directory again."""
        return await self.list(self.current_path)

    def clear(self) -> None:
        """Back to the root with nothing displayed.

        Any listing still outstanding is dropped when it arrives.
        """
        self._generation += 1
        self._segments = []
        self.entries = []
        self.error = ""
        self.loading = False
        self.listing_path = ROOT
