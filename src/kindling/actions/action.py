# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/actions/action.py

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from kindling.config.models import ClusterConfig
from kindling.nodes.node import Node
from kindling.observers.dispatcher import EventBus
from kindling.observers.status import Status
from kindling.providers.provider import Provider


class ActionError(RuntimeError):
    pass


class ActionContext:
    """
    What a post-provisioning action gets to work with. The node list is
    fetched once from the provider and reused by every action.
    """

    def __init__(
        self,
        *,
        status: Status,
        provider: Provider,
        cfg: ClusterConfig,
        bus: Optional[EventBus] = None,
    ):
        self.status = status
        self.provider = provider
        self.cfg = cfg
        self.bus = bus or provider.bus
        self.run_ctx: Dict[str, Any] = {**status.ctx, "cluster": cfg.name, "provider": provider.name}
        self._nodes: Optional[List[Node]] = None
        self._lock = threading.Lock()

    @property
    def cluster(self) -> str:
        return self.cfg.name

    def nodes(self) -> List[Node]:
        with self._lock:
            if self._nodes is None:
                self._nodes = self.provider.list_nodes(self.cluster)
            return list(self._nodes)


class Action(ABC):
    name: str = "action"

    @abstractmethod
    def execute(self, ctx: ActionContext) -> None:
        ...
