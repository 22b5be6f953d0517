"""
core/common/single_flight.py
============================

Non-blocking in-flight guard for user-triggered write actions.

A second trigger of the same action while the first one is still running is
rejected instead of queued, which is what a disabled button does in a UI.
Only keys that are currently running are remembered.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Hashable, Iterator, Set


class SingleFlight:
    """Per-key guard. ``run(key)`` raises via ``on_busy`` if *key* is already held."""

    def __init__(self, on_busy: Callable[[Hashable], Exception]) -> None:
        self._on_busy = on_busy
        self._lock = threading.Lock()
        self._busy: Set[Hashable] = set()

    def is_busy(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._busy

    def in_flight(self) -> int:
        with self._lock:
            return len(self._busy)

    @contextmanager
    def run(self, key: Hashable) -> Iterator[None]:
        with self._lock:
            if key in self._busy:
                raise self._on_busy(key)
            self._busy.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._busy.discard(key)
