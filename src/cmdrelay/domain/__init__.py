"""Domain models and error types for cmdrelay."""

from cmdrelay.domain.errors import (
    ClientError,
    CommandNotFound,
    CommandTimeoutError,
    DuplicateCommand,
    EntryNotFound,
    InvalidArgument,
    InvalidTransition,
    PersistenceError,
    RelayError,
)
from cmdrelay.domain.models import (
    COMMAND_TIMEOUT,
    REQUEST_SLACK,
    TIMEOUT_MESSAGE,
    CommandStatus,
    LogEntry,
    PendingCommand,
    PolledCommand,
    SubmitResult,
)

__all__ = [
    "COMMAND_TIMEOUT",
    "REQUEST_SLACK",
    "TIMEOUT_MESSAGE",
    "ClientError",
    "CommandNotFound",
    "CommandStatus",
    "CommandTimeoutError",
    "DuplicateCommand",
    "EntryNotFound",
    "InvalidArgument",
    "InvalidTransition",
    "LogEntry",
    "PendingCommand",
    "PersistenceError",
    "PolledCommand",
    "RelayError",
    "SubmitResult",
]
