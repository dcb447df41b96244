# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/providers/docker/images.py

from __future__ import annotations

import logging

from kindling.exec.local import CommandFailedError, ExecError, command
from kindling.utils.retry import retry_with_backoff

log = logging.getLogger("kindling")


def image_present(binary_path: str, image: str) -> bool:
    try:
        command(binary_path, "inspect", "--type=image", image).run()
    except CommandFailedError:
        return False
    return True


def pull_if_not_present(binary_path: str, image: str, retries: int) -> bool:
    if image_present(binary_path, image):
        log.debug("Image: %s present locally", image)
        return False
    pull(binary_path, image, retries)
    return True


def pull(binary_path: str, image: str, retries: int) -> None:
    log.debug("Pulling image: %s ...", image)

    def _on_retry(attempt: int, exc: Exception) -> None:
        log.debug("Trying again to pull image: %r ... %s", image, exc)

    try:
        retry_with_backoff(
            lambda: command(binary_path, "pull", image).run(),
            retries,
            retry_on=(ExecError,),
            on_retry=_on_retry,
        )
    except ExecError as e:
        log.debug("Failed to pull image: %r %s", image, e)
        raise
