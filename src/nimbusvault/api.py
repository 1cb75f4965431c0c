"""
Backend REST client.

Thin JSON-over-HTTP transport for the vault backend. Each endpoint is
exposed as a coroutine; the blocking ``requests`` call runs in a worker
thread so the caller's event loop keeps serving other operations while
a request is outstanding.

Endpoints:
    GET  /api/files?path=<relative>   directory listing
    POST /api/save                    create a backup
    GET  /api/backups?uid=<id>        list stored backups
    POST /api/restore                 decrypt and restore a backup
    GET  /api/storage/<uid>           storage usage
    POST /api/login                   obtain a uid
    POST /api/register                create an account
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Union

import requests

from . import DEFAULT_API_URL
from .errors import BackendError, ConnectivityFailure

logger = logging.getLogger("nimbusvault.api")

RecordId = Union[int, str]


class VaultAPI:
    """Client for the vault backend.

    Args:
        base_url: Backend root, e.g. ``http://localhost:8080``.
        timeout: Per-request timeout in seconds.
        headers: Extra headers sent with every request.
        session: Optional ``requests.Session`` (injected by tests).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        headers: Optional[dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = session or requests.Session()
        self._http.headers.update(headers or {})

    def close(self) -> None:
        self._http.close()

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict[str, Any]] = None,
        body: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Issue one request and decode its JSON body.

        Bodies may carry credentials, so only the method, endpoint and
        status are logged.

        Args:
            method: HTTP method.
            endpoint: Path below the base URL.
            params: Query parameters.
            body: JSON request body.

        Returns:
            The decoded JSON body, or None when it is empty/not JSON.

        Raises:
            ConnectivityFailure: No response (refused, reset, timeout).
            BackendError: Non-2xx status.
        """
        url = f"{self.base_url}{endpoint}"
        try:
            resp = self._http.request(
                method, url, params=params, json=body, timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, endpoint, exc.__class__.__name__)
            raise ConnectivityFailure(str(exc)) from exc

        try:
            data = resp.json()
        except ValueError:
            data = None

        if not resp.ok:
            message = data.get("message") if isinstance(data, dict) else None
            logger.info("%s %s -> %d", method, endpoint, resp.status_code)
            raise BackendError(resp.status_code, message)

        logger.debug("%s %s -> %d", method, endpoint, resp.status_code)
        return data

    async def _call(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        return await asyncio.to_thread(self._request, method, endpoint, **kwargs)

    # -- file tree ----------------------------------------------------------

    async def list_files(self, path: str) -> Any:
        return await self._call("GET", "/api/files", params={"path": path})

    # -- vault --------------------------------------------------------------

    async def save(self, path: str, username: str) -> Any:
        return await self._call(
            "POST", "/api/save", body={"path": path, "username": username},
        )

    async def list_backups(self, uid: str) -> Any:
        return await self._call("GET", "/api/backups", params={"uid": uid})

    async def restore(
        self,
        username: str,
        password: str,
        record_id: RecordId,
        out_directory: Optional[str] = None,
    ) -> Any:
        body: dict[str, Any] = {
            "username": username,
            "password": password,
            "fid": record_id,
        }
        if out_directory:
            body["outDirectory"] = out_directory
        return await self._call("POST", "/api/restore", body=body)

    async def storage(self, uid: str) -> Any:
        return await self._call("GET", f"/api/storage/{uid}")

    # -- accounts -----------------------------------------------------------

    async def login(self, username: str, password: str) -> Any:
        return await self._call(
            "POST", "/api/login", body={"username": username, "password": password},
        )

    async def register(self, username: str, password: str) -> Any:
        return await self._call(
            "POST", "/api/register", body={"username": username, "password": password},
        )
