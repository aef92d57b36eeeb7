"""Tests for the command gateway rendezvous."""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from cmdrelay.domain.errors import CommandNotFound, CommandTimeoutError, InvalidArgument
from cmdrelay.domain.models import TIMEOUT_MESSAGE, CommandStatus, LogEntry, PolledCommand
from cmdrelay.gateway.service import CommandGateway
from cmdrelay.store.log_store import LogStore
from cmdrelay.utils.ids import IdGenerator


async def _start_submit(gateway: CommandGateway, command: str) -> asyncio.Task:
    """Start a submit call and let it reach its suspension point."""
    task = asyncio.create_task(gateway.submit(command))
    await asyncio.sleep(0)
    return task


class TestSubmitValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad", ["", None, 42, ["ls"]])
    async def test_rejects_invalid_command(self, gateway: CommandGateway, bad: object) -> None:
        with pytest.raises(InvalidArgument):
            await gateway.submit(bad)
        assert gateway.get_logs() == []
        assert len(gateway.registry) == 0


class TestRendezvous:
    @pytest.mark.asyncio
    async def test_whoami_scenario(self, gateway: CommandGateway) -> None:
        task = await _start_submit(gateway, "whoami")

        polled = gateway.poll()
        assert polled == PolledCommand(id="1001", command="whoami")

        gateway.report(polled.id, "root")
        outcome = await task

        assert outcome.id == "1001"
        assert outcome.result == "root"
        [entry] = gateway.get_logs()
        assert entry.status is CommandStatus.EXECUTED
        assert entry.result == "root"

    @pytest.mark.asyncio
    async def test_pending_entry_logged_before_result(self, gateway: CommandGateway) -> None:
        task = await _start_submit(gateway, "uname -a")
        [entry] = gateway.get_logs()
        assert entry.status is CommandStatus.PENDING
        assert entry.result is None
        assert not task.done()

        gateway.report(entry.id, "Linux")
        await task

    @pytest.mark.asyncio
    async def test_ping_timeout_scenario(self, gateway: CommandGateway) -> None:
        with pytest.raises(CommandTimeoutError) as exc_info:
            await gateway.submit("ping")

        assert str(exc_info.value) == TIMEOUT_MESSAGE
        [entry] = gateway.get_logs()
        assert entry.status is CommandStatus.TIMEOUT
        assert entry.result == TIMEOUT_MESSAGE
        assert gateway.poll() is None

    @pytest.mark.asyncio
    async def test_report_after_timeout_is_not_found(self, gateway: CommandGateway) -> None:
        with pytest.raises(CommandTimeoutError):
            await gateway.submit("ping")
        with pytest.raises(CommandNotFound):
            gateway.report("1001", "pong")
        [entry] = gateway.get_logs()
        assert entry.status is CommandStatus.TIMEOUT

    @pytest.mark.asyncio
    async def test_report_just_before_window_wins(self, gateway: CommandGateway) -> None:
        task = await _start_submit(gateway, "slow")
        await asyncio.sleep(gateway.registry.timeout * 0.5)
        gateway.report("1001", "done")
        outcome = await task
        await asyncio.sleep(gateway.registry.timeout)

        assert outcome.result == "done"
        [entry] = gateway.get_logs()
        assert entry.status is CommandStatus.EXECUTED
        assert entry.result == "done"

    @pytest.mark.asyncio
    async def test_caller_disconnect_still_logs_outcome(self, gateway: CommandGateway) -> None:
        task = await _start_submit(gateway, "ls")
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        # The command stays deliverable until it is reported or expires.
        assert gateway.poll().id == "1001"
        gateway.report("1001", "file.txt")
        assert gateway.get_logs()[0].status is CommandStatus.EXECUTED

    @pytest.mark.asyncio
    async def test_caller_disconnect_then_expiry(self, gateway: CommandGateway) -> None:
        task = await _start_submit(gateway, "ls")
        task.cancel()
        await asyncio.sleep(gateway.registry.timeout * 2)
        assert gateway.get_logs()[0].status is CommandStatus.TIMEOUT


class TestPoll:
    @pytest.mark.asyncio
    async def test_poll_empty_every_time(self, gateway: CommandGateway) -> None:
        assert gateway.poll() is None
        assert gateway.poll() is None

    @pytest.mark.asyncio
    async def test_poll_is_stable_while_pending(self, gateway: CommandGateway) -> None:
        task = await _start_submit(gateway, "whoami")
        seen = {gateway.poll() for _ in range(5)}
        assert seen == {PolledCommand(id="1001", command="whoami")}
        gateway.report("1001", "root")
        await task
        assert gateway.poll() is None


class TestReport:
    @pytest.mark.asyncio
    async def test_unknown_id(self, gateway: CommandGateway, log_store: LogStore) -> None:
        with pytest.raises(CommandNotFound):
            gateway.report("does-not-exist", "x")
        assert log_store.all() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("command_id", "result"),
        [(None, "x"), ("", "x"), (5, "x"), ("1001", None), ("1001", 3)],
    )
    async def test_invalid_arguments(
        self, gateway: CommandGateway, command_id: object, result: object
    ) -> None:
        task = await _start_submit(gateway, "ls")
        with pytest.raises(InvalidArgument):
            gateway.report(command_id, result)
        assert "1001" in gateway.registry
        gateway.report("1001", "ok")
        await task

    @pytest.mark.asyncio
    async def test_empty_result_is_valid(self, gateway: CommandGateway) -> None:
        task = await _start_submit(gateway, "true")
        gateway.report("1001", "")
        assert (await task).result == ""


class TestLogs:
    @pytest.mark.asyncio
    async def test_logs_reproduce_history_in_order(self, gateway: CommandGateway) -> None:
        for command, result in [("whoami", "root"), ("pwd", "/root")]:
            task = await _start_submit(gateway, command)
            polled = gateway.poll()
            gateway.report(polled.id, result)
            await task
        with pytest.raises(CommandTimeoutError):
            await gateway.submit("ping")

        logs = gateway.get_logs()
        assert [(e.command, e.status, e.result) for e in logs] == [
            ("whoami", CommandStatus.EXECUTED, "root"),
            ("pwd", CommandStatus.EXECUTED, "/root"),
            ("ping", CommandStatus.TIMEOUT, TIMEOUT_MESSAGE),
        ]
        assert [e.id for e in logs] == ["1001", "1002", "1003"]

    def test_ids_continue_after_reload(self, log_store: LogStore) -> None:
        log_store.append(LogEntry(id="9999999999999999", command="old"))
        gateway = CommandGateway(log_store)
        assert isinstance(gateway._ids, IdGenerator)
        assert int(gateway._ids.next_id()) > 9999999999999999


class TestTimestamps:
    @pytest.mark.asyncio
    async def test_pending_record_shares_log_timestamp(self, gateway: CommandGateway) -> None:
        task = await _start_submit(gateway, "date")
        record = gateway.registry.peek_one()
        [entry] = gateway.get_logs()

        assert record.submitted_at == entry.submitted_at
        assert entry.submitted_at.tzinfo is not None
        assert entry.submitted_at.utcoffset() == timedelta(0)

        gateway.report(record.id, "today")
        await task
