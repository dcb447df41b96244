# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/kube/kubectl.py

from __future__ import annotations

import logging
from typing import List

from kindling.exec.local import ExecError
from kindling.exec.output import combined_output_lines
from kindling.nodes.node import Node

log = logging.getLogger("kindling")

DEFAULT_KUBECONFIG = "/etc/kubernetes/admin.conf"


class KubectlError(RuntimeError):
    pass


class KubectlRunner:
    """
    kubectl executed inside a cluster node through the node's backend.
    """

    def __init__(self, node: Node, *, kubeconfig: str = DEFAULT_KUBECONFIG):
        self.node = node
        self.kubeconfig = kubeconfig

    def _run(self, *args: str) -> List[str]:
        cmd = self.node.command("kubectl", f"--kubeconfig={self.kubeconfig}", *args)
        return combined_output_lines(cmd)

    def apply_url(self, url: str) -> List[str]:
        log.debug("[kubectl.apply_url] %s on %s", url, self.node)
        try:
            lines = self._run("apply", "-f", url)
        except ExecError as e:
            raise KubectlError(f"kubectl apply failed for {url}: {e}") from e
        log.debug("\n".join(lines))
        return lines

    def pod_status_tokens(self, namespace: str, jsonpath: str) -> List[str]:
        """
        Whitespace separated values of a jsonpath query over the pods of a
        namespace, e.g. `Running Running Pending`.
        """
        try:
            lines = self._run("-n", namespace, "get", "pods", f"-o=jsonpath={jsonpath}")
        except ExecError as e:
            raise KubectlError(f"kubectl get pods failed in {namespace}: {e}") from e
        if not lines:
            return []
        return lines[0].split()
