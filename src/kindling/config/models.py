# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/config/models.py

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

DEFAULT_NODE_IMAGE = "kindest/node:v1.18.2"

STORAGEOS_OPERATOR_MANIFEST = (
    "https://gist.githubusercontent.com/darkowlzz/a32f1474151abd9a7f9a79ce563004c2"
    "/raw/ae42181afd4a28ac64ad4aa6df22fb27e51fdf9e/storageos-operator-deploy.yaml"
)


class PortMapping(BaseModel):
    container_port: int
    host_port: int = 0
    listen_address: str = "0.0.0.0"
    protocol: Literal["TCP", "UDP", "SCTP"] = "TCP"


class NodeSpec(BaseModel):
    # kept as a plain string: role validation happens at planning time
    role: str = "control-plane"
    image: str = DEFAULT_NODE_IMAGE
    cpus: int = Field(default=1, ge=1)
    memory: str = "2GB"
    disk: str = "10G"
    extra_port_mappings: List[PortMapping] = Field(default_factory=list)
    labels: Dict[str, str] = Field(default_factory=dict)


class Networking(BaseModel):
    api_server_address: str = "127.0.0.1"
    api_server_port: int = 6443
    network: Optional[str] = None   # backend network shared by all nodes


class StorageOSConfig(BaseModel):
    enabled: bool = False
    manifest_url: str = STORAGEOS_OPERATOR_MANIFEST
    operator_namespace: str = "storageos-operator"
    namespace: str = "storageos"
    kubeconfig: str = "/etc/kubernetes/admin.conf"
    wait_timeout_seconds: float = 500
    poll_interval_seconds: float = 1.0


class ClusterConfig(BaseModel):
    name: str = "kindling"
    nodes: List[NodeSpec] = Field(default_factory=lambda: [NodeSpec()])
    networking: Networking = Field(default_factory=Networking)
    storageos: StorageOSConfig = Field(default_factory=StorageOSConfig)

    def required_images(self) -> List[str]:
        """
        Distinct node images referenced by this cluster, sorted.
        """
        return sorted({n.image for n in self.nodes})
