# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/providers/common.py

from __future__ import annotations

from typing import List, Sequence

from kindling.nodes.node import CONTROL_PLANE_ROLE, EXTERNAL_LOAD_BALANCER_ROLE, Node

# labels attached to every node at creation and read back when listing
CLUSTER_LABEL_KEY = "io.kindling.cluster"
NODE_ROLE_LABEL_KEY = "io.kindling.role"

API_SERVER_PORT = 6443


class EndpointNodeError(LookupError):
    pass


def friendly_image_name(image: str) -> str:
    """Drop a @sha256 digest for display."""
    return image.split("@sha256:", 1)[0]


def join_host_port(host: str, port: int | str) -> str:
    if ":" in host and not host.startswith("["):
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def _select_by_role(nodes: Sequence[Node], role: str) -> List[Node]:
    return [n for n in nodes if n.role() == role]


def api_server_endpoint_node(nodes: Sequence[Node]) -> Node:
    """
    Locate the node serving the externally reachable API endpoint: the
    external load balancer when there is one, otherwise the single
    control-plane node.
    """
    balancers = _select_by_role(nodes, EXTERNAL_LOAD_BALANCER_ROLE)
    if len(balancers) > 1:
        raise EndpointNodeError(
            f"unexpected number of external load balancer nodes {len(balancers)}"
        )
    if balancers:
        return balancers[0]

    control_planes = _select_by_role(nodes, CONTROL_PLANE_ROLE)
    if not control_planes:
        raise EndpointNodeError("could not locate any control plane nodes")
    if len(control_planes) > 1:
        raise EndpointNodeError(
            f"multiple control plane nodes ({len(control_planes)}) "
            "but no external load balancer"
        )
    return control_planes[0]
