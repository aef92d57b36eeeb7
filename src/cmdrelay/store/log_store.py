"""Append-only execution log persisted as a JSON array.

The whole log is kept in memory and rewritten to disk after every
mutation. Disk failures are logged and otherwise ignored: the in-memory
log stays authoritative for the running process.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from cmdrelay.domain.errors import EntryNotFound, InvalidTransition, PersistenceError
from cmdrelay.domain.models import CommandStatus, LogEntry

logger = logging.getLogger(__name__)

_ENTRIES = TypeAdapter(list[LogEntry])


class LogStore:
    """Ordered record of every submitted command and its outcome.

    Args:
        path: JSON file backing the log. ``None`` keeps the log in memory
              only.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._entries: list[LogEntry] = []
        self._index: dict[str, LogEntry] = {}
        self._lock = threading.Lock()

    @property
    def path(self) -> Path | None:
        return self._path

    def __len__(self) -> int:
        return len(self._entries)

    def load(self) -> None:
        """Replace the in-memory log with the contents of the backing file.

        A missing file yields an empty log. A file that cannot be read or
        parsed is reported and also yields an empty log.
        """
        entries: list[LogEntry] = []
        if self._path is not None and self._path.exists():
            try:
                entries = _ENTRIES.validate_json(self._path.read_bytes())
                logger.info("Loaded %d log entries from %s", len(entries), self._path)
            except (OSError, ValidationError) as e:
                logger.error("Failed to read log file %s: %s", self._path, e)
                entries = []
        with self._lock:
            self._entries = entries
            self._index = {e.id: e for e in entries}

    def append(self, entry: LogEntry) -> None:
        """Add a new entry and persist before returning."""
        with self._lock:
            self._entries.append(entry)
            self._index[entry.id] = entry
            self._persist()

    def update(self, entry_id: str, status: CommandStatus, result: str | None) -> LogEntry:
        """Move a pending entry to its final status and persist.

        Raises:
            EntryNotFound: If no entry has ``entry_id``.
            InvalidTransition: If the entry already left ``pending``.
        """
        with self._lock:
            entry = self._index.get(entry_id)
            if entry is None:
                raise EntryNotFound(f"No log entry with id {entry_id}")
            if entry.status is not CommandStatus.PENDING:
                raise InvalidTransition(
                    f"Log entry {entry_id} is already {entry.status.value}"
                )
            entry.status = status
            entry.result = result
            self._persist()
            return entry

    def get(self, entry_id: str) -> LogEntry | None:
        with self._lock:
            entry = self._index.get(entry_id)
            return entry.model_copy() if entry is not None else None

    def all(self) -> list[LogEntry]:
        """Snapshot of all entries in insertion order."""
        with self._lock:
            return [e.model_copy() for e in self._entries]

    def _persist(self) -> None:
        # Caller holds self._lock.
        if self._path is None:
            return
        try:
            self._write()
        except PersistenceError as e:
            logger.error("Failed to save log: %s", e)

    def _write(self) -> None:
        payload = [e.model_dump(mode="json", by_alias=True) for e in self._entries]
        # Replaced by rename; readers never see a half-written log.
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise PersistenceError(f"Cannot write {self._path}: {e}") from e
