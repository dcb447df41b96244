# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/providers/ignite/node.py

from __future__ import annotations

import contextlib
import json
import os
import shlex
import tempfile
from typing import Iterator, List, Optional, Tuple

from kindling.exec.local import ExecError, StagingError, command, read_input
from kindling.exec.output import combined_output_lines, output_lines
from kindling.nodes.node import STDIN_MARKER, MalformedOutputError, NodeCmd
from kindling.providers.common import NODE_ROLE_LABEL_KEY


class IgniteNode:
    """
    Handle to an ignite micro-VM, identified by its VM name.
    """

    def __init__(self, name: str, binary_path: str):
        self.name = name
        self.binary_path = binary_path

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"IgniteNode({self.name!r})"

    def role(self) -> str:
        cmd = command(
            self.binary_path, "inspect", "vm", self.name,
            "--format", f'{{{{ index .ObjectMeta.Labels "{NODE_ROLE_LABEL_KEY}" }}}}',
        )
        try:
            lines = output_lines(cmd)
        except ExecError as e:
            raise ExecError(f"failed to get role for node {self.name}: {e}") from e

        if len(lines) != 1:
            raise MalformedOutputError(
                f"failed to get role for node {self.name}: output lines {len(lines)} != 1"
            )
        role = lines[0].strip()
        if not role:
            raise MalformedOutputError(f"node {self.name} has no role label")
        return role

    def ip(self) -> Tuple[str, str]:
        cmd = command(self.binary_path, "inspect", "vm", self.name)
        try:
            raw = "".join(combined_output_lines(cmd))
        except ExecError as e:
            raise ExecError(f"failed to get vm details for {self.name}: {e}") from e
        return parse_vm_addresses(raw, self.name)

    def command(self, command: str, *args: str) -> "IgniteNodeCmd":
        return IgniteNodeCmd(self.name, self.binary_path, command, *args)


def parse_vm_addresses(raw: str, name: str = "vm") -> Tuple[str, str]:
    """
    Pull (ipv4, ipv6) out of `ignite inspect vm` JSON: status.ipAddresses.
    """
    try:
        result = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedOutputError(f"failed to parse vm details for {name}: {e}") from e

    status = result.get("status") if isinstance(result, dict) else None
    addresses = status.get("ipAddresses") if isinstance(status, dict) else None
    if not isinstance(addresses, list) or not addresses:
        raise MalformedOutputError(f"vm {name} reports no ip addresses")

    ipv4 = next((a for a in addresses if isinstance(a, str) and ":" not in a), "")
    ipv6 = next((a for a in addresses if isinstance(a, str) and ":" in a), "")
    if not ipv4 and not ipv6:
        raise MalformedOutputError(f"vm {name} reports no ip addresses")
    return ipv4, ipv6


class IgniteNodeCmd(NodeCmd):
    """
    ignite exec takes a single command string, and ignite cp cannot read
    from a pipe, so stdin payloads are staged into a temp file first.
    """

    def _shell_string(self) -> str:
        words: List[str] = [self.command, *self.args]
        if self.env:
            words = ["env", *self.env, *words]
        return shlex.join(words)

    def _stdin_index(self) -> Optional[int]:
        for i, arg in enumerate(self.args):
            if STDIN_MARKER in arg:
                return i
        return None

    @contextlib.contextmanager
    def _staged_stdin(self) -> Iterator[str]:
        try:
            data = read_input(self.stdin) or b""
            fd, path = tempfile.mkstemp(prefix="kindling-file-")
        except OSError as e:
            raise StagingError(f"failed to stage stdin for {self.node_name}: {e}") from e
        try:
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
            except OSError as e:
                raise StagingError(f"failed to stage stdin for {self.node_name}: {e}") from e
            yield path
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.remove(path)

    def _cp_argv(self, args: List[str]) -> List[str]:
        # ignite cp <src> <vm>:<dest>
        if len(args) < 2:
            raise ValueError("cp needs a source and a destination")
        *sources, dest = args
        return [self.binary_path, "cp", *sources, f"{self.node_name}:{dest}"]

    @contextlib.contextmanager
    def _invocation(self):
        if self.command == "cp":
            index = self._stdin_index()
            if index is None:
                yield self._cp_argv(self.args), None
                return
            with self._staged_stdin() as path:
                args = list(self.args)
                args[index] = path
                yield self._cp_argv(args), None
            return

        data = read_input(self.stdin) if self.stdin is not None else None
        yield [self.binary_path, "exec", self.node_name, self._shell_string()], data

    def _start_argv(self) -> List[str]:
        return [self.binary_path, "exec", self.node_name, self._shell_string()]
