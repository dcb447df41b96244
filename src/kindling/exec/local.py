# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/exec/local.py

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import time
from typing import IO, List, Optional, Sequence, Union

log = logging.getLogger("kindling")

Reader = IO
Writer = IO


class ExecError(RuntimeError):
    pass


class CommandFailedError(ExecError):
    """
    The command ran and exited non-zero.
    """

    def __init__(
        self,
        argv: Sequence[str],
        returncode: int,
        stdout: str = "",
        stderr: str = "",
    ):
        self.argv = list(argv)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        detail = (stderr or stdout).strip()
        msg = f"command {shlex.join(self.argv)!r} failed with exit code {returncode}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)

    @property
    def cancelled(self) -> bool:
        # negative return codes mean the process was killed by a signal
        return self.returncode < 0

    @property
    def output(self) -> str:
        return self.stdout + self.stderr


class TransportError(ExecError):
    pass


class StagingError(ExecError):
    pass


def read_input(stream: Optional[Reader]) -> Optional[bytes]:
    """Drain a reader fully, returning bytes (or None when there is no reader)."""
    if stream is None:
        return None
    data = stream.read()
    if isinstance(data, str):
        return data.encode("utf-8")
    return data


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data.decode("utf-8", "replace")


class LocalCmd:
    """
    A command executed on the host, e.g. the backend binary itself.

    Output is captured and copied into the configured stdout/stderr
    writers once the process exits; nothing is captured by default.
    """

    def __init__(self, name: str, *args: str):
        self.argv: List[str] = [name, *args]
        self.env: Optional[List[str]] = None
        self.stdin: Optional[Union[Reader, bytes]] = None
        self.stdout: Optional[Writer] = None
        self.stderr: Optional[Writer] = None
        self._proc: Optional[subprocess.Popen] = None
        self._pending_input: Optional[bytes] = None

    # fluent setters

    def set_env(self, *env: str) -> "LocalCmd":
        self.env = list(env)
        return self

    def set_stdin(self, r) -> "LocalCmd":
        self.stdin = r
        return self

    def set_stdout(self, w: Writer) -> "LocalCmd":
        self.stdout = w
        return self

    def set_stderr(self, w: Writer) -> "LocalCmd":
        self.stderr = w
        return self

    # execution

    def _environ(self) -> Optional[dict]:
        if self.env is None:
            return None
        merged = dict(os.environ)
        for entry in self.env:
            key, _, value = entry.partition("=")
            merged[key] = value
        return merged

    def _input(self) -> Optional[bytes]:
        if isinstance(self.stdin, (bytes, bytearray)):
            return bytes(self.stdin)
        return read_input(self.stdin)

    def _emit(self, out: str, err: str) -> None:
        if self.stdout is not None and out:
            self.stdout.write(out)
        if self.stderr is not None and err:
            self.stderr.write(err)

    def run(self) -> None:
        cmd_str = shlex.join(self.argv)
        log.debug("$ %s", cmd_str)

        data = self._input()
        start = time.time()
        try:
            result = subprocess.run(
                self.argv,
                input=data,
                stdin=None if data is not None else subprocess.DEVNULL,
                capture_output=True,
                env=self._environ(),
                check=False,
            )
        except OSError as e:
            raise TransportError(f"failed to execute {self.argv[0]}: {e}") from e

        out = _decode(result.stdout)
        err = _decode(result.stderr)
        self._emit(out, err)

        duration = time.time() - start
        log.debug("[exit %d] (%.2fs) %s", result.returncode, duration, cmd_str)

        if result.returncode != 0:
            if out.strip():
                log.debug("[stdout]\n%s", out.rstrip())
            if err.strip():
                log.debug("[stderr]\n%s", err.rstrip())
            raise CommandFailedError(self.argv, result.returncode, out, err)

    def start(self) -> None:
        """
        Launch without waiting. Any stdin is delivered and output collected
        by wait().
        """
        log.debug("$ %s &", shlex.join(self.argv))
        self._pending_input = self._input()
        try:
            self._proc = subprocess.Popen(
                self.argv,
                stdin=subprocess.PIPE if self._pending_input is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=self._environ(),
            )
        except OSError as e:
            raise TransportError(f"failed to execute {self.argv[0]}: {e}") from e

    def wait(self) -> None:
        if self._proc is None:
            raise RuntimeError("wait() called before start()")
        out_b, err_b = self._proc.communicate(input=self._pending_input)
        out, err = _decode(out_b), _decode(err_b)
        self._emit(out, err)
        if self._proc.returncode != 0:
            raise CommandFailedError(self.argv, self._proc.returncode, out, err)


def command(name: str, *args: str) -> LocalCmd:
    return LocalCmd(name, *args)
