"""In-memory registry of commands awaiting a result.

Each registered command carries a future that the submitting caller
awaits and a timer that expires the command after a fixed window. A
reported result and the expiry timer race for the same entry; whichever
removes it from the registry first decides the outcome and the other
finds nothing left to act on.

The registry belongs to a single asyncio event loop. All of its methods
are synchronous and must be called from that loop, which makes each
check-and-remove atomic with respect to the others.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable

from cmdrelay.domain.errors import CommandNotFound, CommandTimeoutError, DuplicateCommand
from cmdrelay.domain.models import COMMAND_TIMEOUT, TIMEOUT_MESSAGE, PendingCommand, utc_now

logger = logging.getLogger(__name__)

TimeoutCallback = Callable[[str], None]


class PendingRegistry:
    """Tracks outstanding commands by correlation id.

    Args:
        timeout: Seconds before an unresolved command expires.
    """

    def __init__(self, timeout: float = COMMAND_TIMEOUT) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self._timeout = timeout
        # Insertion order doubles as submission order for peek_one().
        self._pending: dict[str, PendingCommand] = {}
        self._callbacks: dict[str, TimeoutCallback | None] = {}
        self._seen: set[str] = set()

    @property
    def timeout(self) -> float:
        return self._timeout

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, command_id: object) -> bool:
        return command_id in self._pending

    def register(
        self,
        command_id: str,
        command: str,
        on_timeout: TimeoutCallback | None = None,
        submitted_at: datetime | None = None,
    ) -> PendingCommand:
        """Add a command and schedule its expiry.

        Args:
            command_id: Correlation id. Must never have been registered.
            command: Command text handed to the polling agent.
            on_timeout: Called with the id if the command expires, before
                        the waiting caller is failed.
            submitted_at: Submission time shared with the log entry;
                          defaults to now.

        Returns:
            The pending record; await ``record.completion`` for the result.

        Raises:
            DuplicateCommand: If the id was registered before.
        """
        if command_id in self._seen:
            raise DuplicateCommand(f"Command id {command_id} was already registered")

        loop = asyncio.get_running_loop()
        record = PendingCommand(
            id=command_id,
            command=command,
            submitted_at=submitted_at or utc_now(),
            completion=loop.create_future(),
        )
        record.timeout_handle = loop.call_later(self._timeout, self._expire, command_id)

        self._seen.add(command_id)
        self._pending[command_id] = record
        self._callbacks[command_id] = on_timeout
        logger.debug("Registered command %s (expires in %.1fs)", command_id, self._timeout)
        return record

    def peek_one(self) -> PendingCommand | None:
        """Return the earliest registered pending command, leaving it in place."""
        for record in self._pending.values():
            return record
        return None

    def resolve(self, command_id: str, result: str) -> PendingCommand:
        """Deliver a result for a pending command.

        Raises:
            CommandNotFound: If the id is unknown or already expired.
        """
        record = self._pending.pop(command_id, None)
        if record is None:
            raise CommandNotFound(command_id)
        self._callbacks.pop(command_id, None)

        if record.timeout_handle is not None:
            record.timeout_handle.cancel()
        if not record.completion.done():
            record.completion.set_result(result)
        else:
            logger.info("Command %s resolved after its caller went away", command_id)
        logger.info("Command %s resolved", command_id)
        return record

    def _expire(self, command_id: str) -> None:
        record = self._pending.pop(command_id, None)
        if record is None:
            return
        on_timeout = self._callbacks.pop(command_id, None)
        logger.warning("Command %s timed out after %.1fs", command_id, self._timeout)

        if on_timeout is not None:
            try:
                on_timeout(command_id)
            except Exception:
                logger.exception("Timeout callback for command %s failed", command_id)

        if not record.completion.done():
            record.completion.set_exception(CommandTimeoutError(command_id, TIMEOUT_MESSAGE))

    def close(self) -> None:
        """Cancel every outstanding timer and fail the waiting callers.

        Used at shutdown; the timeout callbacks are not run.
        """
        for command_id, record in list(self._pending.items()):
            if record.timeout_handle is not None:
                record.timeout_handle.cancel()
            if not record.completion.done():
                record.completion.cancel()
            logger.debug("Dropped pending command %s at shutdown", command_id)
        self._pending.clear()
        self._callbacks.clear()
