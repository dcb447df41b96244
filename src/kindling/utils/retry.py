# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

import functools
import logging
import time
from typing import Callable, TypeVar

log = logging.getLogger("kindling")

T = TypeVar("T")


def retry(
    *,
    retries: int,
    delay: float,
    retry_on: tuple[type[Exception], ...] = (Exception,),
    give_up: Callable[[Exception], bool] | None = None,
    on_retry: Callable[[int, Exception], None] | None = None,
):
    """
    Retry decorator for idempotent operations.

    retries: total number of attempts
    delay: seconds between attempts
    retry_on: exception types to retry
    give_up: predicate; when it returns True the exception is raised at once
    on_retry: callback(attempt, exception), called before sleeping

    The last exception is re-raised unchanged once attempts are exhausted.
    """

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            for attempt in range(1, retries + 1):
                try:
                    return fn(*args, **kwargs)
                except retry_on as exc:
                    if attempt == retries or (give_up and give_up(exc)):
                        raise
                    if on_retry:
                        on_retry(attempt, exc)
                    time.sleep(delay)
        return wrapper
    return decorator


def retry_with_backoff(
    op: Callable[[], T],
    retries: int,
    *,
    unit: float = 1.0,
    retry_on: tuple[type[Exception], ...] = (Exception,),
    on_retry: Callable[[int, Exception], None] | None = None,
) -> T:
    """
    Call op; on failure sleep attempt * unit seconds and try again, for at
    most `retries` additional attempts. Returns op's result on the first
    success, otherwise raises the last error.
    """
    try:
        return op()
    except retry_on as exc:
        last_exc = exc

    for attempt in range(1, retries + 1):
        time.sleep(unit * attempt)
        if on_retry:
            on_retry(attempt, last_exc)
        try:
            return op()
        except retry_on as exc:
            last_exc = exc

    raise last_exc


def poll_until(
    deadline: float,
    condition: Callable[[], bool],
    *,
    interval: float = 0.5,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """
    Evaluate condition until it returns True or the clock passes deadline.

    deadline is an absolute value of `clock` (time.monotonic by default).
    A short sleep between attempts keeps the loop off the CPU; it never
    sleeps past the deadline. Returns whether condition ever succeeded.
    """
    while clock() < deadline:
        if condition():
            return True
        remaining = deadline - clock()
        if remaining <= 0:
            break
        time.sleep(min(interval, remaining))
    return False


def deadline_after(seconds: float, clock: Callable[[], float] = time.monotonic) -> float:
    return clock() + seconds


def log_retry(what: str) -> Callable[[int, Exception], None]:
    def _cb(attempt: int, exc: Exception) -> None:
        log.debug("%s failed (attempt %d), retrying: %s", what, attempt, exc)
    return _cb
