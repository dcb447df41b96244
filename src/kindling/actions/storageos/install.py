# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/actions/storageos/install.py

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, List, Optional

from kindling.actions.action import Action, ActionContext, ActionError
from kindling.config.models import StorageOSConfig
from kindling.exec.local import ExecError
from kindling.kube.kubectl import KubectlError, KubectlRunner
from kindling.nodes.node import CONTROL_PLANE_ROLE, MalformedOutputError, Node
from kindling.observers.events import (
    ActionSummary,
    ManifestApplied,
    WaiterStarted,
    WaiterSucceeded,
    WaiterTimedOut,
)
from kindling.utils.retry import deadline_after, poll_until

log = logging.getLogger("kindling")

# condition status of the most recent pod condition, "True" once Ready
OPERATOR_READY_JSONPATH = "{.items..status.conditions[-1:].status}"
OPERATOR_READY_MARKER = "True"

WORKLOAD_READY_JSONPATH = "{.items..status.phase}"
WORKLOAD_READY_MARKER = "Running"


class InstallState(str, Enum):
    APPLYING = "Applying"
    WAITING_OPERATOR_READY = "WaitingOperatorReady"
    WAITING_WORKLOAD_READY = "WaitingWorkloadReady"
    DONE = "Done"


def all_tokens_match(tokens: List[str], marker: str) -> bool:
    """
    True when every token equals marker. No tokens means nothing reported
    yet, which is not ready.
    """
    cleaned = [t.strip("'\"") for t in tokens]
    cleaned = [t for t in cleaned if t]
    if not cleaned:
        return False
    return all(t == marker for t in cleaned)


def control_plane_node(nodes: List[Node]) -> Node:
    for node in nodes:
        if node.role() == CONTROL_PLANE_ROLE:
            return node
    raise ActionError("no control-plane node found")


class StorageOSAction(Action):
    """
    Applies the StorageOS operator manifest, then waits for the operator
    pods to be Ready and the StorageOS pods to be Running.

    A failed apply fails the action. A wait that runs out of time only
    degrades it: the status line ends failed, a warning is logged, and
    cluster bring-up carries on.
    """

    name = "storageos"

    def __init__(
        self,
        cfg: Optional[StorageOSConfig] = None,
        *,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.cfg = cfg or StorageOSConfig()
        self.clock = clock or time.monotonic
        self.state = InstallState.APPLYING

    def execute(self, ctx: ActionContext) -> None:
        ctx.status.start("Starting storageos")
        try:
            self._execute(ctx)
        finally:
            ctx.status.end(False)

    def _execute(self, ctx: ActionContext) -> None:
        self.state = InstallState.APPLYING
        try:
            node = control_plane_node(ctx.nodes())
        except (ExecError, MalformedOutputError) as e:
            raise ActionError(f"failed to setup storageos: {e}") from e

        log.info("Setting up storageos from node %s", node)
        kubectl = KubectlRunner(node, kubeconfig=self.cfg.kubeconfig)
        try:
            kubectl.apply_url(self.cfg.manifest_url)
        except KubectlError as e:
            ctx.bus.emit(ActionSummary(name=self.name, status="FAILED", error=str(e), **ctx.run_ctx))
            raise ActionError(f"failed to setup storageos: {e}") from e
        ctx.bus.emit(ManifestApplied(url=self.cfg.manifest_url, node=str(node), **ctx.run_ctx))

        self.state = InstallState.WAITING_OPERATOR_READY
        if not self._wait(
            ctx, kubectl,
            label="StorageOS Operator",
            namespace=self.cfg.operator_namespace,
            jsonpath=OPERATOR_READY_JSONPATH,
            marker=OPERATOR_READY_MARKER,
        ):
            return

        self.state = InstallState.WAITING_WORKLOAD_READY
        if not self._wait(
            ctx, kubectl,
            label="StorageOS",
            namespace=self.cfg.namespace,
            jsonpath=WORKLOAD_READY_JSONPATH,
            marker=WORKLOAD_READY_MARKER,
        ):
            return

        self.state = InstallState.DONE
        ctx.status.end(True)
        ctx.bus.emit(ActionSummary(name=self.name, status="OK", **ctx.run_ctx))

    def _wait(
        self,
        ctx: ActionContext,
        kubectl: KubectlRunner,
        *,
        label: str,
        namespace: str,
        jsonpath: str,
        marker: str,
    ) -> bool:
        timeout = self.cfg.wait_timeout_seconds
        log.info("Waiting <= %ss for %s = Ready", timeout, label)
        ctx.bus.emit(WaiterStarted(name=label, namespace=namespace, timeout_s=timeout, **ctx.run_ctx))

        def ready() -> bool:
            try:
                tokens = kubectl.pod_status_tokens(namespace, jsonpath)
            except KubectlError as e:
                log.debug("%s not ready: %s", label, e)
                return False
            return all_tokens_match(tokens, marker)

        deadline = deadline_after(timeout, self.clock)
        if not poll_until(deadline, ready, interval=self.cfg.poll_interval_seconds, clock=self.clock):
            log.warning("Timed out waiting for %s to be Ready", label)
            ctx.status.end(False)
            ctx.bus.emit(WaiterTimedOut(name=label, timeout_s=timeout, **ctx.run_ctx))
            ctx.bus.emit(ActionSummary(
                name=self.name, status="DEGRADED",
                error=f"timed out waiting for {label}", **ctx.run_ctx,
            ))
            return False

        log.info("%s - Ready!", label)
        ctx.bus.emit(WaiterSucceeded(name=label, **ctx.run_ctx))
        return True
