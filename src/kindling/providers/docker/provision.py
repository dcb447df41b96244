# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/providers/docker/provision.py

from __future__ import annotations

from typing import List

from kindling.config.models import ClusterConfig, NodeSpec, PortMapping
from kindling.providers.common import CLUSTER_LABEL_KEY, NODE_ROLE_LABEL_KEY


def common_args(cluster: str, cfg: ClusterConfig) -> List[str]:
    args = ["--label", f"{CLUSTER_LABEL_KEY}={cluster}"]
    if cfg.networking.network:
        args += ["--network", cfg.networking.network]
    return args


def _publish_arg(pm: PortMapping) -> str:
    host = f"{pm.host_port}" if pm.host_port else ""
    spec = f"{host}:{pm.container_port}/{pm.protocol.lower()}"
    if pm.listen_address:
        spec = f"{pm.listen_address}:{spec}"
    return spec


def run_args_for_node(node: NodeSpec, name: str, args: List[str]) -> List[str]:
    run = [
        "run",
        "--detach",
        "--tty",
        "--privileged",
        "--hostname", name,
        "--name", name,
        "--label", f"{NODE_ROLE_LABEL_KEY}={node.role}",
        "--cpus", str(node.cpus),
        "--memory", node.memory,
    ]
    for key, value in sorted(node.labels.items()):
        run += ["--label", f"{key}={value}"]
    for pm in node.extra_port_mappings:
        run += ["--publish", _publish_arg(pm)]

    return run + list(args) + [node.image]
