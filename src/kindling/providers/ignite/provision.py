# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/providers/ignite/provision.py

from __future__ import annotations

from typing import List

from kindling.config.models import ClusterConfig, NodeSpec, PortMapping
from kindling.providers.common import CLUSTER_LABEL_KEY, NODE_ROLE_LABEL_KEY

DEFAULT_KERNEL_IMAGE = "darkowlzz/ignite-kernel:5.3"

# global flags every VM is created with
RUNTIME_ARGS = ["--runtime=docker", "--network-plugin=docker-bridge"]


def common_args(cluster: str, cfg: ClusterConfig) -> List[str]:
    # ignite VMs share the docker bridge; there is no per-cluster network
    return ["--label", f"{CLUSTER_LABEL_KEY}={cluster}"]


def _port_arg(pm: PortMapping) -> str:
    spec = f"{pm.host_port}:{pm.container_port}/{pm.protocol.lower()}"
    if pm.listen_address:
        spec = f"{pm.listen_address}:{spec}"
    return spec


def run_args_for_node(
    node: NodeSpec,
    name: str,
    args: List[str],
    *,
    kernel_image: str = DEFAULT_KERNEL_IMAGE,
) -> List[str]:
    run = [
        "run",
        "--name", name,
        "--cpus", str(node.cpus),
        "--memory", node.memory,
        "--kernel-image", kernel_image,
        "--size", node.disk,
        "--ssh",
        "--label", f"{NODE_ROLE_LABEL_KEY}={node.role}",
        *RUNTIME_ARGS,
    ]
    for key, value in sorted(node.labels.items()):
        run += ["--label", f"{key}={value}"]
    for pm in node.extra_port_mappings:
        run += ["--ports", _port_arg(pm)]

    # finally, the image to run
    return run + list(args) + [node.image]
