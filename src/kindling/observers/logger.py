# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/observers/logger.py
from __future__ import annotations
import logging
from .events import BaseEvent
from .interface import Observer, is_failure


class LoggerObserver(Observer):
    """Mirrors events into the run log; failures are logged at WARNING."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        etype = event.__class__.__name__
        fields = ", ".join(
            f"{k}={v}" for k, v in event.dict().items() if k not in ("ts", "run_id")
        )
        level = logging.WARNING if is_failure(event) else logging.INFO
        self.logger.log(level, "[EVENT] %s (run %s): %s", etype, event.run_id, fields)
