# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/providers/docker/node.py

from __future__ import annotations

import contextlib
from typing import List, Tuple

from kindling.exec.local import ExecError, command, read_input
from kindling.exec.output import output_lines
from kindling.nodes.node import MalformedOutputError, NodeCmd
from kindling.providers.common import NODE_ROLE_LABEL_KEY


class DockerNode:
    def __init__(self, name: str, binary_path: str = "docker"):
        self.name = name
        self.binary_path = binary_path

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"DockerNode({self.name!r})"

    def role(self) -> str:
        cmd = command(
            self.binary_path, "inspect",
            "--format", f'{{{{ index .Config.Labels "{NODE_ROLE_LABEL_KEY}" }}}}',
            self.name,
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
        cmd = command(
            self.binary_path, "inspect",
            "-f", "{{range .NetworkSettings.Networks}}{{.IPAddress}},{{.GlobalIPv6Address}}{{end}}",
            self.name,
        )
        try:
            lines = output_lines(cmd)
        except ExecError as e:
            raise ExecError(f"failed to get container details for {self.name}: {e}") from e

        if len(lines) != 1:
            raise MalformedOutputError(
                f"file should only be one line, got {len(lines)} lines"
            )
        ips = lines[0].split(",")
        if len(ips) != 2:
            raise MalformedOutputError(
                f"container addresses should have 2 values, got {len(ips)} values"
            )
        ipv4, ipv6 = ips[0].strip(), ips[1].strip()
        if not ipv4 and not ipv6:
            raise MalformedOutputError(f"container {self.name} reports no ip addresses")
        return ipv4, ipv6

    def command(self, command: str, *args: str) -> "DockerNodeCmd":
        return DockerNodeCmd(self.name, self.binary_path, command, *args)


class DockerNodeCmd(NodeCmd):
    """
    docker exec takes the command as argv and streams stdin with -i.
    """

    def _argv(self, interactive: bool) -> List[str]:
        argv = [self.binary_path, "exec", "--privileged"]
        if interactive:
            argv.append("-i")
        for kv in self.env:
            argv += ["-e", kv]
        return argv + [self.node_name, self.command, *self.args]

    @contextlib.contextmanager
    def _invocation(self):
        data = read_input(self.stdin) if self.stdin is not None else None
        yield self._argv(data is not None), data

    def _start_argv(self) -> List[str]:
        return self._argv(self.stdin is not None)
