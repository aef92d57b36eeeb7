"""Core domain models for the cmdrelay system.

These models represent the data flowing through the rendezvous: the
persisted log entries, the in-memory pending commands awaiting a result,
and the payloads returned to callers and agents.
"""

from __future__ import annotations

import asyncio
import enum
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

# Seconds a submitted command may stay pending before it expires.
COMMAND_TIMEOUT = 15.0

# Extra seconds a transport must keep a submit request open beyond the
# timeout window so the timeout response itself can be delivered.
REQUEST_SLACK = 1.0

TIMEOUT_MESSAGE = "Timeout: no response from client"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CommandStatus(str, enum.Enum):
    """Lifecycle status of a logged command."""

    PENDING = "pending"
    EXECUTED = "executed"
    TIMEOUT = "timeout"


class LogEntry(BaseModel):
    """A single record in the append-only execution log.

    Serialized with ``timestamp`` as the key for ``submitted_at`` so that
    log files written by earlier servers load unchanged.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="Correlation identifier")
    command: str = Field(description="Command text as submitted")
    submitted_at: datetime = Field(
        default_factory=utc_now,
        alias="timestamp",
        description="When the command was submitted",
    )
    status: CommandStatus = Field(default=CommandStatus.PENDING)
    result: str | None = Field(default=None, description="Reported result or diagnostic")


class PendingCommand(BaseModel):
    """An outstanding command held by the pending registry.

    ``completion`` is fulfilled exactly once, either with the reported
    result or with a timeout failure. ``timeout_handle`` is the scheduled
    expiry, cancelled when a result arrives first.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    command: str
    submitted_at: datetime = Field(default_factory=utc_now)
    completion: asyncio.Future
    timeout_handle: asyncio.TimerHandle | None = None


class SubmitResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    result: str


class PolledCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    command: str
