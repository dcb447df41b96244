# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/provision/planner.py

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from kindling.config.models import ClusterConfig, NodeSpec, PortMapping
from kindling.nodes.node import CONTROL_PLANE_ROLE, WORKER_ROLE, Node
from kindling.observers.dispatcher import EventBus
from kindling.observers.events import NodeCreated, NodeCreationFailed

log = logging.getLogger("kindling")

# port the API server listens on inside a control-plane node
API_SERVER_INTERNAL_PORT = 6443


class UnknownRoleError(ValueError):
    pass


class NodeCreationError(RuntimeError):
    pass


# (name, private copy of the node spec, args shared by every node) -> None
CreateNode = Callable[[str, NodeSpec, List[str]], None]
# name -> live handle, only valid once the backend has created the node
NodeHandle = Callable[[str], Node]


@dataclass(frozen=True)
class Fixup:
    """
    A corrective step applied to every freshly created node.
    """
    name: str
    description: str
    apply: Callable[[Node], None]


def fix_hostname(node: Node) -> None:
    node.command("hostnamectl", "set-hostname", node.name).set_retry(False).run()


def regenerate_machine_id(node: Node) -> None:
    node.command(
        "sh", "-c", "rm -f /etc/machine-id && systemd-machine-id-setup"
    ).set_retry(False).run()


# Applied in order. machine-id regeneration needs the node to accept
# commands, which the hostname step has just demonstrated.
POST_CREATE_FIXUPS: Sequence[Fixup] = (
    Fixup("hostname", "change hostname", fix_hostname),
    Fixup("machine-id", "change machine ID", regenerate_machine_id),
)


@dataclass(frozen=True)
class CreationTask:
    name: str
    role: str
    node: NodeSpec
    run: Callable[[], None]

    def __call__(self) -> None:
        self.run()


def make_node_namer(cluster: str) -> Callable[[str], str]:
    """
    Deterministic names: <cluster>-<role> for the first node of a role,
    then <cluster>-<role>2, <cluster>-<role>3, ...
    """
    counter: Dict[str, int] = defaultdict(int)

    def namer(role: str) -> str:
        counter[role] += 1
        suffix = "" if counter[role] == 1 else str(counter[role])
        return f"{cluster}-{role}{suffix}"

    return namer


def plan_creation(
    cluster: str,
    cfg: ClusterConfig,
    *,
    create_node: CreateNode,
    node_handle: NodeHandle,
    common_args: List[str],
    fixups: Sequence[Fixup] = POST_CREATE_FIXUPS,
    bus: Optional[EventBus] = None,
    run_ctx: Optional[Dict[str, Any]] = None,
) -> List[CreationTask]:
    """
    Build one creation task per node in declared order.

    Every node spec is deep-copied before anything touches it, so tasks
    never alias the caller's config. An unknown role fails the whole plan
    before any task exists.
    """
    namer = make_node_namer(cluster)
    networking = cfg.networking
    tasks: List[CreationTask] = []

    for declared in cfg.nodes:
        node = declared.model_copy(deep=True)
        name = namer(node.role)

        if node.role == CONTROL_PLANE_ROLE:
            extra = [
                PortMapping(
                    listen_address=networking.api_server_address,
                    host_port=networking.api_server_port,
                    container_port=API_SERVER_INTERNAL_PORT,
                )
            ]
        elif node.role == WORKER_ROLE:
            extra = []
        else:
            raise UnknownRoleError(f"unknown node role: {node.role!r}")

        tasks.append(
            CreationTask(
                name=name,
                role=node.role,
                node=node,
                run=_creation_fn(
                    name, node, extra,
                    create_node=create_node,
                    node_handle=node_handle,
                    common_args=list(common_args),
                    fixups=tuple(fixups),
                    bus=bus,
                    run_ctx=run_ctx,
                ),
            )
        )

    return tasks


def _creation_fn(
    name: str,
    node: NodeSpec,
    extra_ports: List[PortMapping],
    *,
    create_node: CreateNode,
    node_handle: NodeHandle,
    common_args: List[str],
    fixups: Sequence[Fixup],
    bus: Optional[EventBus],
    run_ctx: Optional[Dict[str, Any]],
) -> Callable[[], None]:
    def _emit(event_cls, **fields) -> None:
        if bus is not None and run_ctx is not None:
            bus.emit(event_cls(name=name, role=node.role, **fields, **run_ctx))

    def run() -> None:
        node.extra_port_mappings.extend(extra_ports)
        try:
            create_node(name, node, common_args)
        except Exception as e:
            _emit(NodeCreationFailed, error=str(e))
            raise NodeCreationError(f"failed to create node {name}: {e}") from e

        handle = node_handle(name)
        for fixup in fixups:
            try:
                fixup.apply(handle)
            except Exception as e:
                _emit(NodeCreationFailed, error=str(e))
                raise NodeCreationError(
                    f"failed to {fixup.description} on node {name}: {e}"
                ) from e

        log.debug("created node %s (%s)", name, node.role)
        _emit(NodeCreated)

    return run
