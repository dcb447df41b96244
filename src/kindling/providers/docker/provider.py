# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/providers/docker/provider.py

from __future__ import annotations

import logging
from typing import List, Sequence

from kindling.config.models import ClusterConfig, NodeSpec
from kindling.exec.local import ExecError, command
from kindling.exec.output import output_lines
from kindling.nodes.node import Node
from kindling.providers.common import CLUSTER_LABEL_KEY
from kindling.providers.docker import images, provision
from kindling.providers.docker.node import DockerNode
from kindling.providers.provider import Provider, ProviderError
from kindling.utils.parallel import CreationPolicy

log = logging.getLogger("kindling")


class DockerProvider(Provider):
    """
    Nodes are privileged containers managed by the docker CLI.
    """

    name = "docker"
    creation_policy = CreationPolicy.CONCURRENT

    def __init__(self, binary_path: str = "docker", **kwargs):
        super().__init__(binary_path, **kwargs)

    def pull_if_not_present(self, image: str, retries: int) -> bool:
        return images.pull_if_not_present(self.binary_path, image, retries)

    def common_args(self, cluster: str, cfg: ClusterConfig) -> List[str]:
        return provision.common_args(cluster, cfg)

    def create_node(self, name: str, node: NodeSpec, common_args: List[str]) -> None:
        args = provision.run_args_for_node(node, name, common_args)
        try:
            command(self.binary_path, *args).run()
        except ExecError as e:
            raise ExecError(f"docker run error: {e}") from e

    def node(self, name: str) -> DockerNode:
        return DockerNode(name, self.binary_path)

    def list_clusters(self) -> List[str]:
        cmd = command(
            self.binary_path,
            "ps", "-a",
            "--filter", f"label={CLUSTER_LABEL_KEY}",
            "--format", f'{{{{.Label "{CLUSTER_LABEL_KEY}"}}}}',
        )
        try:
            lines = output_lines(cmd)
        except ExecError as e:
            raise ProviderError(f"failed to list clusters: {e}") from e
        return sorted({line.strip() for line in lines if line.strip()})

    def list_nodes(self, cluster: str) -> List[Node]:
        cmd = command(
            self.binary_path,
            "ps", "-a",
            "--filter", f"label={CLUSTER_LABEL_KEY}={cluster}",
            "--format", "{{.Names}}",
        )
        try:
            lines = output_lines(cmd)
        except ExecError as e:
            raise ProviderError(f"failed to list cluster nodes: {e}") from e
        return [self.node(line.strip()) for line in lines if line.strip()]

    def delete_nodes(self, nodes: Sequence[Node]) -> None:
        if not nodes:
            return
        args = ["rm", "-f", "-v", *(str(n) for n in nodes)]
        try:
            command(self.binary_path, *args).run()
        except ExecError as e:
            raise ProviderError(f"failed to delete nodes: {e}") from e
