# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/utils/parallel.py

from __future__ import annotations

import concurrent.futures
import logging
from enum import Enum
from typing import Callable, List, Optional, Sequence

log = logging.getLogger("kindling")

Task = Callable[[], None]


class CreationPolicy(str, Enum):
    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


def until_error_sync(tasks: Sequence[Task]) -> None:
    """
    Run tasks in order, stopping at (and raising) the first error.
    """
    for task in tasks:
        task()


def until_error_concurrent(tasks: Sequence[Task], max_workers: Optional[int] = None) -> None:
    """
    Run all tasks at once on a thread pool and wait for every one of them.

    If any fail, the error of the first failing task *in task order* is
    raised; the rest are logged.
    """
    if not tasks:
        return

    with concurrent.futures.ThreadPoolExecutor(
        max_workers=max_workers or len(tasks)
    ) as pool:
        futures = [pool.submit(task) for task in tasks]
        concurrent.futures.wait(futures)

    errors: List[BaseException] = [
        f.exception() for f in futures if f.exception() is not None
    ]
    if not errors:
        return

    for extra in errors[1:]:
        log.warning("additional task failure: %s", extra)
    raise errors[0]


def run_tasks(tasks: Sequence[Task], policy: CreationPolicy) -> None:
    if policy == CreationPolicy.SEQUENTIAL:
        until_error_sync(tasks)
    elif policy == CreationPolicy.CONCURRENT:
        until_error_concurrent(tasks)
    else:
        raise ValueError(f"unknown creation policy: {policy!r}")
