"""Command gateway: the submit / poll / report rendezvous.

Mediates between the submitting caller, the pending registry and the
execution log. Only :meth:`CommandGateway.submit` suspends; poll and
report return immediately.
"""

from __future__ import annotations

import logging

from cmdrelay.domain.errors import (
    CommandTimeoutError,
    EntryNotFound,
    InvalidArgument,
    InvalidTransition,
)
from cmdrelay.domain.models import (
    TIMEOUT_MESSAGE,
    CommandStatus,
    LogEntry,
    PolledCommand,
    SubmitResult,
)
from cmdrelay.registry.pending import PendingRegistry
from cmdrelay.store.log_store import LogStore
from cmdrelay.utils.ids import IdGenerator

logger = logging.getLogger(__name__)


class CommandGateway:
    """Coordinates command submission, agent polling and result reports.

    The log transition for a command is made by whichever side wins the
    race in the registry: :meth:`report` records ``executed``, the expiry
    callback records ``timeout``. The log therefore reaches a final status
    even when the submitting caller disconnects before the outcome.
    """

    def __init__(
        self,
        log_store: LogStore,
        registry: PendingRegistry | None = None,
        id_generator: IdGenerator | None = None,
    ) -> None:
        self._log = log_store
        self._registry = registry if registry is not None else PendingRegistry()
        if id_generator is None:
            id_generator = IdGenerator.after([e.id for e in log_store.all()])
        self._ids = id_generator

    @property
    def registry(self) -> PendingRegistry:
        return self._registry

    @property
    def log_store(self) -> LogStore:
        return self._log

    async def submit(self, command: object) -> SubmitResult:
        """Submit a command and wait for its result.

        Raises:
            InvalidArgument: If ``command`` is not a non-empty string.
            CommandTimeoutError: If no result was reported within the
                                 registry's timeout window.
        """
        if not isinstance(command, str) or not command:
            raise InvalidArgument("command must be a non-empty string")

        command_id = self._ids.next_id()
        entry = LogEntry(id=command_id, command=command)
        self._log.append(entry)
        record = self._registry.register(
            command_id,
            command,
            on_timeout=self._record_timeout,
            submitted_at=entry.submitted_at,
        )
        logger.info("Submitted command %s: %s", command_id, command[:80])

        try:
            result = await record.completion
        except CommandTimeoutError:
            logger.info("Command %s: no response from agent", command_id)
            raise
        return SubmitResult(id=command_id, result=result)

    def poll(self) -> PolledCommand | None:
        """Return the pending command without consuming it, or None."""
        record = self._registry.peek_one()
        if record is None:
            return None
        return PolledCommand(id=record.id, command=record.command)

    def report(self, command_id: object, result: object) -> None:
        """Deliver an agent's result for a pending command.

        Raises:
            InvalidArgument: If ``command_id`` is missing or ``result`` is
                             not a string.
            CommandNotFound: If the id is unknown or already timed out.
        """
        if not isinstance(command_id, str) or not command_id:
            raise InvalidArgument("id must be a non-empty string")
        if not isinstance(result, str):
            raise InvalidArgument("result must be a string")

        self._registry.resolve(command_id, result)
        self._finish(command_id, CommandStatus.EXECUTED, result)

    def get_logs(self) -> list[LogEntry]:
        return self._log.all()

    def _record_timeout(self, command_id: str) -> None:
        self._finish(command_id, CommandStatus.TIMEOUT, TIMEOUT_MESSAGE)

    def _finish(self, command_id: str, status: CommandStatus, result: str) -> None:
        try:
            self._log.update(command_id, status, result)
        except (EntryNotFound, InvalidTransition) as e:
            logger.error("Log invariant violated for command %s: %s", command_id, e)
