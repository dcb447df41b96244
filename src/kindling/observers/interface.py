# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/observers/interface.py
from __future__ import annotations
from typing import Protocol
from .events import (
    ActionSummary,
    BaseEvent,
    ImagePullFailed,
    NodeCreationFailed,
    StatusEnded,
    WaiterTimedOut,
)


class Observer(Protocol):
    def notify(self, event: BaseEvent) -> None: ...


def is_failure(event: BaseEvent) -> bool:
    """True for events reporting a failed step, node or action."""
    if isinstance(event, StatusEnded):
        return not event.ok
    if isinstance(event, ActionSummary):
        return event.status != "OK"
    return isinstance(event, (ImagePullFailed, NodeCreationFailed, WaiterTimedOut))
