# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/providers/provider.py

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from kindling.config.models import ClusterConfig, NodeSpec
from kindling.exec.local import ExecError
from kindling.nodes.node import MalformedOutputError, Node
from kindling.observers.dispatcher import EventBus
from kindling.observers.events import ImagePullFailed, new_ctx
from kindling.observers.status import Status
from kindling.provision.planner import plan_creation
from kindling.utils.parallel import CreationPolicy, run_tasks
from kindling.providers.common import (
    API_SERVER_PORT,
    EndpointNodeError,
    api_server_endpoint_node,
    friendly_image_name,
    join_host_port,
)

log = logging.getLogger("kindling")

IMAGE_PULL_RETRIES = 4


class ProviderError(RuntimeError):
    pass


class Provider(ABC):
    """
    Owns the nodes of one backend. Nothing is cached between calls: every
    query goes to the backend.

    Subclasses supply the backend specifics (run arguments, listing, image
    pulls, node handles); the provisioning flow itself lives here.
    """

    name: str = "provider"
    creation_policy: CreationPolicy = CreationPolicy.SEQUENTIAL

    def __init__(
        self,
        binary_path: str,
        *,
        creation_policy: Optional[CreationPolicy] = None,
        image_pull_retries: int = IMAGE_PULL_RETRIES,
        bus: Optional[EventBus] = None,
    ):
        self.binary_path = binary_path
        if creation_policy is not None:
            self.creation_policy = CreationPolicy(creation_policy)
        self.image_pull_retries = image_pull_retries
        self.bus = bus or EventBus()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(binary_path={self.binary_path!r})"

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    def provision(self, status: Status, cluster: str, cfg: ClusterConfig) -> None:
        # events share the caller's run_id
        run_ctx = {**status.ctx, "cluster": cluster, "provider": self.name}

        self.ensure_node_images(status, cfg, run_ctx=run_ctx)

        status.start(f"Preparing nodes ({len(cfg.nodes)})")
        ok = False
        try:
            tasks = plan_creation(
                cluster,
                cfg,
                create_node=self.create_node,
                node_handle=self.node,
                common_args=self.common_args(cluster, cfg),
                bus=self.bus,
                run_ctx=run_ctx,
            )
            log.debug(
                "creating %d node(s) for %s (%s)",
                len(tasks), cluster, self.creation_policy.value,
            )
            run_tasks(tasks, self.creation_policy)
            ok = True
        finally:
            status.end(ok)

    def ensure_node_images(self, status: Status, cfg: ClusterConfig, *, run_ctx=None) -> None:
        """
        Best effort: a failed pull is reported but does not stop
        provisioning, since creating the node pulls the image implicitly.
        """
        run_ctx = run_ctx or new_ctx(cluster=cfg.name, provider=self.name)
        for image in cfg.required_images():
            status.start(f"Ensuring node image ({friendly_image_name(image)})")
            try:
                self.pull_if_not_present(image, self.image_pull_retries)
            except ExecError as e:
                log.warning(
                    "Failed to pull image %s: %s; node creation will attempt an implicit pull",
                    image, e,
                )
                self.bus.emit(ImagePullFailed(image=image, error=str(e), **run_ctx))
                status.end(False)
                continue
            status.end(True)

    @abstractmethod
    def pull_if_not_present(self, image: str, retries: int) -> bool:
        """Pull image unless present; returns whether a pull happened."""

    @abstractmethod
    def common_args(self, cluster: str, cfg: ClusterConfig) -> List[str]:
        """Backend run arguments shared by every node of the cluster."""

    @abstractmethod
    def create_node(self, name: str, node: NodeSpec, common_args: List[str]) -> None:
        """Create one node with the backend's run primitive."""

    @abstractmethod
    def node(self, name: str) -> Node:
        """Wrap a backend name into a Node handle."""

    # ------------------------------------------------------------------
    # Discovery / teardown
    # ------------------------------------------------------------------

    @abstractmethod
    def list_clusters(self) -> List[str]:
        ...

    @abstractmethod
    def list_nodes(self, cluster: str) -> List[Node]:
        ...

    @abstractmethod
    def delete_nodes(self, nodes: List[Node]) -> None:
        ...

    def get_api_server_endpoint(self, cluster: str) -> str:
        nodes = self.list_nodes(cluster)

        try:
            n = api_server_endpoint_node(nodes)
        except (EndpointNodeError, ExecError, MalformedOutputError) as e:
            raise ProviderError(f"failed to get api server endpoint: {e}") from e

        try:
            ipv4, ipv6 = n.ip()
        except (ExecError, MalformedOutputError) as e:
            raise ProviderError(f"failed to get node IP: {e}") from e

        return join_host_port(ipv4 or ipv6, API_SERVER_PORT)
