# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/nodes/node.py

from __future__ import annotations

import contextlib
import io
import logging
from typing import IO, Iterator, List, Optional, Protocol, Tuple

from kindling.exec.local import (
    CommandFailedError,
    LocalCmd,
    TransportError,
    read_input,
)
from kindling.utils.retry import retry

log = logging.getLogger("kindling")

CONTROL_PLANE_ROLE = "control-plane"
WORKER_ROLE = "worker"
EXTERNAL_LOAD_BALANCER_ROLE = "external-load-balancer"

# argument that stands for "read the payload from this command's stdin"
STDIN_MARKER = "/dev/stdin"

# delay before the single retry of a failed node command
RETRY_DELAY_SECONDS = 1.0


class MalformedOutputError(ValueError):
    pass


class Cmd(Protocol):
    def run(self) -> None: ...
    def start(self) -> None: ...
    def wait(self) -> None: ...
    def set_env(self, *env: str) -> "Cmd": ...
    def set_stdin(self, r: IO) -> "Cmd": ...
    def set_stdout(self, w: IO) -> "Cmd": ...
    def set_stderr(self, w: IO) -> "Cmd": ...


class Node(Protocol):
    name: str

    def role(self) -> str: ...
    def ip(self) -> Tuple[str, str]: ...
    def command(self, command: str, *args: str) -> Cmd: ...
    def __str__(self) -> str: ...


def _cancelled(exc: Exception) -> bool:
    return isinstance(exc, CommandFailedError) and exc.cancelled


class NodeCmd:
    """
    A command run inside a node through the backend binary.

    Subclasses describe how the backend invocation is built; this class owns
    the shared behaviour: fluent setters, output capture, and a single retry
    after RETRY_DELAY_SECONDS when the backend invocation fails.
    """

    def __init__(self, node_name: str, binary_path: str, command: str, *args: str):
        self.node_name = node_name
        self.binary_path = binary_path
        self.command = command
        self.args: List[str] = list(args)
        self.env: List[str] = []
        self.stdin: Optional[IO] = None
        self.stdout: Optional[IO] = None
        self.stderr: Optional[IO] = None
        self.retry_once = True
        self._started: Optional[LocalCmd] = None

    def set_env(self, *env: str) -> "NodeCmd":
        self.env = list(env)
        return self

    def set_stdin(self, r: IO) -> "NodeCmd":
        self.stdin = r
        return self

    def set_stdout(self, w: IO) -> "NodeCmd":
        self.stdout = w
        return self

    def set_stderr(self, w: IO) -> "NodeCmd":
        self.stderr = w
        return self

    def set_retry(self, enabled: bool) -> "NodeCmd":
        self.retry_once = enabled
        return self

    # -- backend specific --------------------------------------------------

    @contextlib.contextmanager
    def _invocation(self) -> Iterator[Tuple[List[str], Optional[bytes]]]:
        """
        Yield (argv, stdin payload) for one blocking run. Resources acquired
        here (staged files) must be released when the context exits.
        """
        raise NotImplementedError

    def _start_argv(self) -> List[str]:
        raise NotImplementedError

    # -- execution ---------------------------------------------------------

    def _emit(self, out: str, err: str) -> None:
        if self.stdout is not None and out:
            self.stdout.write(out)
        if self.stderr is not None and err:
            self.stderr.write(err)

    def _attempt(self, argv: List[str], data: Optional[bytes]) -> Tuple[str, str]:
        out, err = io.StringIO(), io.StringIO()
        cmd = LocalCmd(*argv).set_stdout(out).set_stderr(err)
        if data is not None:
            cmd.set_stdin(data)
        cmd.run()
        return out.getvalue(), err.getvalue()

    def run(self) -> None:
        attempts = 2 if self.retry_once else 1

        def _on_retry(attempt: int, exc: Exception) -> None:
            log.warning("node exec on %s failed, retrying: %s", self.node_name, exc)

        attempt = retry(
            retries=attempts,
            delay=RETRY_DELAY_SECONDS,
            retry_on=(CommandFailedError, TransportError),
            give_up=_cancelled,
            on_retry=_on_retry,
        )(self._attempt)

        with self._invocation() as (argv, data):
            try:
                out, err = attempt(argv, data)
            except CommandFailedError as exc:
                self._emit(exc.stdout, exc.stderr)
                raise
        self._emit(out, err)

    def start(self) -> None:
        cmd = LocalCmd(*self._start_argv())
        if self.stdin is not None:
            cmd.set_stdin(read_input(self.stdin))
        if self.stdout is not None:
            cmd.set_stdout(self.stdout)
        if self.stderr is not None:
            cmd.set_stderr(self.stderr)
        cmd.start()
        self._started = cmd

    def wait(self) -> None:
        if self._started is None:
            raise RuntimeError("wait() called before start()")
        self._started.wait()
