# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/cluster/lifecycle.py

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from kindling.actions.action import Action, ActionContext
from kindling.actions.storageos.install import StorageOSAction
from kindling.config.models import ClusterConfig
from kindling.observers.status import Status
from kindling.providers.provider import Provider, ProviderError

log = logging.getLogger("kindling")


class ClusterExistsError(RuntimeError):
    pass


def default_actions(cfg: ClusterConfig) -> List[Action]:
    actions: List[Action] = []
    if cfg.storageos.enabled:
        actions.append(StorageOSAction(cfg.storageos))
    return actions


def create_cluster(
    provider: Provider,
    cfg: ClusterConfig,
    *,
    actions: Optional[Sequence[Action]] = None,
    status: Optional[Status] = None,
    retain: bool = False,
) -> None:
    """
    Provision every node of cfg, then run the post-provisioning actions in
    order. On a hard failure the cluster's nodes are removed again unless
    retain is set.
    """
    status = status or Status(bus=provider.bus)
    actions = default_actions(cfg) if actions is None else list(actions)

    if cfg.name in provider.list_clusters():
        raise ClusterExistsError(
            f"node(s) already exist for a cluster with the name {cfg.name!r}"
        )

    log.info("Creating cluster %r on %s ...", cfg.name, provider.name)
    try:
        provider.provision(status, cfg.name, cfg)

        ctx = ActionContext(status=status, provider=provider, cfg=cfg)
        for action in actions:
            log.debug("running action %s", action.name)
            action.execute(ctx)
    except Exception:
        if retain:
            log.warning("Cluster %r failed; keeping its nodes for inspection", cfg.name)
        else:
            _cleanup(provider, cfg.name)
        raise

    log.info("Cluster %r is up", cfg.name)


def _cleanup(provider: Provider, cluster: str) -> None:
    try:
        delete_cluster(provider, cluster)
    except ProviderError as e:
        log.warning("failed to clean up cluster %r: %s", cluster, e)


def delete_cluster(provider: Provider, cluster: str) -> None:
    nodes = provider.list_nodes(cluster)
    log.info("Deleting cluster %r (%d node(s)) ...", cluster, len(nodes))
    provider.delete_nodes(nodes)
