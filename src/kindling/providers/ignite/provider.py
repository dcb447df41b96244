# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/providers/ignite/provider.py

from __future__ import annotations

import logging
from typing import List, Sequence

from kindling.config.models import ClusterConfig, NodeSpec
from kindling.exec.local import ExecError, command
from kindling.exec.output import output_lines
from kindling.nodes.node import Node
from kindling.utils.parallel import CreationPolicy
from kindling.providers.common import CLUSTER_LABEL_KEY
from kindling.providers.provider import Provider, ProviderError
from kindling.providers.ignite import images, provision
from kindling.providers.ignite.node import IgniteNode

log = logging.getLogger("kindling")


class IgniteProvider(Provider):
    """
    Nodes are ignite micro-VMs, driven through the `ignite` binary.
    """

    name = "ignite"
    # VMs are created one at a time
    creation_policy = CreationPolicy.SEQUENTIAL

    def __init__(
        self,
        binary_path: str = "ignite",
        *,
        kernel_image: str = provision.DEFAULT_KERNEL_IMAGE,
        **kwargs,
    ):
        super().__init__(binary_path, **kwargs)
        self.kernel_image = kernel_image

    # -- provisioning hooks ------------------------------------------------

    def pull_if_not_present(self, image: str, retries: int) -> bool:
        return images.pull_if_not_present(self.binary_path, image, retries)

    def common_args(self, cluster: str, cfg: ClusterConfig) -> List[str]:
        return provision.common_args(cluster, cfg)

    def create_node(self, name: str, node: NodeSpec, common_args: List[str]) -> None:
        args = provision.run_args_for_node(
            node, name, common_args, kernel_image=self.kernel_image
        )
        try:
            command(self.binary_path, *args).run()
        except ExecError as e:
            raise ExecError(f"ignite run error: {e}") from e

    def node(self, name: str) -> IgniteNode:
        return IgniteNode(name, self.binary_path)

    # -- discovery ---------------------------------------------------------

    def list_clusters(self) -> List[str]:
        cmd = command(
            self.binary_path,
            "ps", "-q", "-a",
            # only VMs carrying the cluster label
            "--filter", f"{{{{.ObjectMeta.Labels}}}}=~{CLUSTER_LABEL_KEY}",
            # print the cluster name
            "--format", f'{{{{index .ObjectMeta.Labels "{CLUSTER_LABEL_KEY}"}}}}',
        )
        try:
            lines = output_lines(cmd)
        except ExecError as e:
            raise ProviderError(f"failed to list clusters: {e}") from e
        return sorted({line.strip() for line in lines if line.strip()})

    def list_nodes(self, cluster: str) -> List[Node]:
        cmd = command(
            self.binary_path,
            "ps", "-q", "-a",
            "--filter", f"{{{{.ObjectMeta.Labels}}}}=~{CLUSTER_LABEL_KEY}:{cluster}",
            # print "name cluster" so the label can be compared exactly
            "--format", f'{{{{.ObjectMeta.Name}}}} {{{{index .ObjectMeta.Labels "{CLUSTER_LABEL_KEY}"}}}}',
        )
        try:
            lines = output_lines(cmd)
        except ExecError as e:
            raise ProviderError(f"failed to list cluster nodes: {e}") from e

        # the filter is a substring match: "dev" also selects "dev2"
        names = []
        for line in lines:
            name, _, label = line.strip().partition(" ")
            if name and label.strip() == cluster:
                names.append(name)
        return [self.node(name) for name in names]

    def delete_nodes(self, nodes: Sequence[Node]) -> None:
        if not nodes:
            return
        args = ["rm", "-f", *(str(n) for n in nodes)]
        try:
            command(self.binary_path, *args).run()
        except ExecError as e:
            raise ProviderError(f"failed to delete nodes: {e}") from e
