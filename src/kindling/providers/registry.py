# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/providers/registry.py

from __future__ import annotations

import os
from typing import Dict, Optional, Type

from kindling.providers.docker.provider import DockerProvider
from kindling.providers.ignite.provider import IgniteProvider
from kindling.providers.provider import Provider

PROVIDER_ENV = "KINDLING_PROVIDER"
DEFAULT_PROVIDER = "docker"

PROVIDERS: Dict[str, Type[Provider]] = {
    DockerProvider.name: DockerProvider,
    IgniteProvider.name: IgniteProvider,
}


class UnknownProviderError(ValueError):
    pass


def provider_name(name: Optional[str] = None) -> str:
    return name or os.environ.get(PROVIDER_ENV) or DEFAULT_PROVIDER


def get_provider(name: Optional[str] = None, **kwargs) -> Provider:
    """
    Build a provider by name, falling back to $KINDLING_PROVIDER, then docker.
    """
    resolved = provider_name(name)
    try:
        cls = PROVIDERS[resolved]
    except KeyError:
        raise UnknownProviderError(
            f"unknown provider {resolved!r} (known: {', '.join(sorted(PROVIDERS))})"
        ) from None
    return cls(**kwargs)
