# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str                 # ISO timestamp
    run_id: str             # correlates all events in a single invocation
    cluster: Optional[str]  # cluster name
    provider: Optional[str] # backend name (docker/ignite)

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(cluster: Optional[str], provider: Optional[str]) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": str(uuid.uuid4()),
        "cluster": cluster,
        "provider": provider,
    }


# ---------------------------------------------------------------------
# Status lines
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class StatusStarted(BaseEvent):
    message: str

@dataclass(frozen=True)
class StatusEnded(BaseEvent):
    message: str
    ok: bool


# ---------------------------------------------------------------------
# Provisioning
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ImagePullFailed(BaseEvent):
    image: str
    error: str

@dataclass(frozen=True)
class NodeCreated(BaseEvent):
    name: str
    role: str

@dataclass(frozen=True)
class NodeCreationFailed(BaseEvent):
    name: str
    role: str
    error: str


# ---------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ManifestApplied(BaseEvent):
    url: str
    node: str

@dataclass(frozen=True)
class WaiterStarted(BaseEvent):
    name: str
    namespace: str
    timeout_s: float

@dataclass(frozen=True)
class WaiterSucceeded(BaseEvent):
    name: str

@dataclass(frozen=True)
class WaiterTimedOut(BaseEvent):
    name: str
    timeout_s: float

@dataclass(frozen=True)
class ActionSummary(BaseEvent):
    name: str
    status: str         # "OK" | "DEGRADED" | "FAILED"
    error: Optional[str] = None
