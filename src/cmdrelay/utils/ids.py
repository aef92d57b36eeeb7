"""Correlation identifier generation."""

from __future__ import annotations

import threading
import time
from typing import Callable


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class IdGenerator:
    """Issues strictly increasing millisecond-timestamp identifiers.

    Identifiers look like ``"1718000000123"``. Two calls inside the same
    millisecond, or after the wall clock stepped backwards, get the last
    issued value plus one, so no identifier is ever handed out twice.
    """

    def __init__(self, clock: Callable[[], int] = _now_ms, start_after: int = 0) -> None:
        self._clock = clock
        self._last = start_after
        self._lock = threading.Lock()

    @classmethod
    def after(cls, existing_ids: list[str], clock: Callable[[], int] = _now_ms) -> IdGenerator:
        """Create a generator that never reissues any of ``existing_ids``.

        Non-numeric ids are ignored.
        """
        numeric = [int(i) for i in existing_ids if i.isdecimal()]
        return cls(clock=clock, start_after=max(numeric, default=0))

    def next_id(self) -> str:
        with self._lock:
            candidate = self._clock()
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return str(candidate)
