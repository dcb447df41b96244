# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/observers/status.py

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional, Tuple

from .dispatcher import EventBus
from .events import StatusEnded, StatusStarted, new_ctx


class Status:
    """
    One in-flight status line at a time, reported through the EventBus.

    end() is a no-op when nothing is in flight, so callers can always
    end(False) on the way out after an explicit end(True).
    """

    def __init__(self, bus: Optional[EventBus] = None, ctx: Optional[Dict[str, Any]] = None):
        self.bus = bus or EventBus()
        self.ctx = ctx or new_ctx(cluster=None, provider=None)
        self.results: List[Tuple[str, bool]] = []
        self._current: Optional[str] = None
        self._lock = threading.Lock()

    def start(self, message: str) -> None:
        # a new step implies the previous one completed
        self.end(True)
        with self._lock:
            self._current = message
        self.bus.emit(StatusStarted(message=message, **self.ctx))

    def end(self, ok: bool) -> None:
        with self._lock:
            message, self._current = self._current, None
            if message is None:
                return
            self.results.append((message, ok))
        self.bus.emit(StatusEnded(message=message, ok=ok, **self.ctx))

    @property
    def failed(self) -> bool:
        return any(not ok for _, ok in self.results)
