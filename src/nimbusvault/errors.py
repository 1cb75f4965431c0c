"""Error taxonomy for backend calls and locally detected problems.

The API client raises these; every core operation catches them at its
boundary and turns them into a user-visible message.
"""

from __future__ import annotations

from typing import Optional

CONNECTIVITY_MESSAGE = "Failed to connect to server"


class VaultError(Exception):
    """Base class for all client-side failures."""

    def user_message(self, fallback: str) -> str:
        """Message to show the user for this failure.

        Args:
            fallback: Operation-specific text used when the error
                carries nothing better.

        Returns:
            str: Human-readable message.
        """
        return str(self) or fallback


class ConnectivityFailure(VaultError):
    """No response from the backend (refused, reset, timed out)."""

    def user_message(self, fallback: str) -> str:
        return CONNECTIVITY_MESSAGE


class BackendError(VaultError):
    """The backend answered with a non-2xx status.

    Attributes:
        status_code: HTTP status of the response.
        message: The backend's ``message`` field, if it sent one.
    """

    def __init__(self, status_code: int, message: Optional[str] = None) -> None:
        super().__init__(message or f"HTTP {status_code}")
        self.status_code = status_code
        self.message = message

    def user_message(self, fallback: str) -> str:
        return self.message or fallback


class ValidationFailure(VaultError):
    """Rejected locally before any request was issued."""
