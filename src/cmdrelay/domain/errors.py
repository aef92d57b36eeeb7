"""Error taxonomy shared by the store, registry, gateway and client.

The HTTP layer maps the caller-facing errors onto status codes:
``InvalidArgument`` -> 400, ``CommandNotFound`` -> 404 and
``CommandTimeoutError`` -> 504. The remaining errors signal internal
invariant violations or I/O trouble and are logged rather than surfaced.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for all cmdrelay errors."""


class InvalidArgument(RelayError):
    """Raised when a submit or report request is malformed."""


class CommandNotFound(RelayError):
    """Raised when a report references an id that is not pending.

    The command either never existed or has already timed out.
    """

    def __init__(self, command_id: str) -> None:
        super().__init__(f"Command ID not found or timed out: {command_id}")
        self.command_id = command_id


class CommandTimeoutError(RelayError):
    """Raised to the submitting caller when no result arrived in time."""

    def __init__(self, command_id: str | None, message: str) -> None:
        super().__init__(message)
        # None when raised client-side: the 504 body carries no id.
        self.command_id = command_id


class DuplicateCommand(RelayError):
    """Raised when an id is registered twice with the pending registry."""


class EntryNotFound(RelayError):
    """Raised by the log store when an update targets an unknown id."""


class InvalidTransition(RelayError):
    """Raised when a log entry would leave a terminal status."""


class PersistenceError(RelayError):
    """Raised when the log file cannot be read or written."""


class ClientError(RelayError):
    """Raised by the HTTP client when a request fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
