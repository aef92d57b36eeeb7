"""Shared test fixtures for the cmdrelay test suite.

Provides log stores backed by temporary files, registries with short
timeout windows, and gateways wired from them.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from cmdrelay.gateway.service import CommandGateway
from cmdrelay.registry.pending import PendingRegistry
from cmdrelay.store.log_store import LogStore
from cmdrelay.utils.ids import IdGenerator

# Short window so timeout paths run quickly.
SHORT_TIMEOUT = 0.2


# ---------------------------------------------------------------------------
# Store Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    """Location of the log file inside a not-yet-existing directory."""
    return tmp_path / "db" / "commands.json"


@pytest.fixture
def log_store(log_path: Path) -> LogStore:
    """An empty LogStore persisting to a temporary file."""
    store = LogStore(log_path)
    store.load()
    return store


# ---------------------------------------------------------------------------
# Registry / Gateway Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def registry() -> PendingRegistry:
    return PendingRegistry(timeout=SHORT_TIMEOUT)


@pytest.fixture
def id_generator() -> IdGenerator:
    """Deterministic ids: 1001, 1002, ..."""
    counter = iter(range(1001, 10_000))
    return IdGenerator(clock=lambda: next(counter))


@pytest.fixture
def gateway(
    log_store: LogStore, registry: PendingRegistry, id_generator: IdGenerator
) -> CommandGateway:
    return CommandGateway(log_store, registry, id_generator)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_cmdrelay_logger() -> Iterator[None]:
    """Drop handlers installed by setup_logging() during a test."""
    yield
    logger = logging.getLogger("cmdrelay")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
