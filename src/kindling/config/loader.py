# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/config/loader.py

import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from .models import ClusterConfig

log = logging.getLogger("kindling")


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    return yaml.safe_load(expanded) or {}


def load_config(path: Optional[str | Path] = None, *, name: Optional[str] = None) -> ClusterConfig:
    """
    Load and validate a cluster config.

    With no path the defaults apply (a single control-plane node).
    `name`, when given, overrides the cluster name from the file.
    """
    data: dict = {}
    if path is not None:
        path = Path(path)
        log.debug("Loading cluster config from %s", path)
        data = _load_yaml(path)

    if name:
        data["name"] = name

    return ClusterConfig.model_validate(data)
