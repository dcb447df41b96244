from __future__ import annotations

import subprocess
import time
from typing import Callable, Dict, List, Optional, Tuple, Union

import pytest

from kindling.config.models import ClusterConfig, NodeSpec
from kindling.exec.local import CommandFailedError
from kindling.observers.dispatcher import EventBus
from kindling.providers.provider import Provider


# ------------------------------------------------------------------------------
# subprocess.run stand-in
# ------------------------------------------------------------------------------

class DummyCP:
    def __init__(self, rc=0, out="", err=""):
        self.returncode = rc
        self.stdout = out.encode() if isinstance(out, str) else out
        self.stderr = err.encode() if isinstance(err, str) else err


Match = Union[str, Callable[[List[str]], bool]]


class FakeRun:
    """
    Records every argv and answers from scripted responses. A string match
    is a substring of the space-joined argv; the first match wins. Several
    responses for one match are used in turn, the last one repeating.
    """

    def __init__(self):
        self.calls: List[List[str]] = []
        self.inputs: List[Optional[bytes]] = []
        self.kwargs: List[dict] = []
        self._script: List[Tuple[Match, list]] = []

    def on(self, match: Match, *responses) -> "FakeRun":
        self._script.append((match, list(responses)))
        return self

    def _matches(self, match: Match, argv: List[str]) -> bool:
        if callable(match):
            return match(argv)
        return match in " ".join(argv)

    def __call__(self, argv, **kwargs):
        argv = list(argv)
        self.calls.append(argv)
        self.inputs.append(kwargs.get("input"))
        self.kwargs.append(kwargs)
        for match, responses in self._script:
            if self._matches(match, argv):
                response = responses.pop(0) if len(responses) > 1 else responses[0]
                if callable(response):
                    response = response(argv)
                if isinstance(response, BaseException):
                    raise response
                return response
        return DummyCP(0)

    def matching(self, needle: str) -> List[List[str]]:
        return [c for c in self.calls if needle in " ".join(c)]


@pytest.fixture
def fake_run(monkeypatch):
    fake = FakeRun()
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


@pytest.fixture
def sleeps(monkeypatch):
    recorded: List[float] = []
    monkeypatch.setattr(time, "sleep", recorded.append)
    return recorded


class FakeClock:
    """Monotonic clock that only moves when something sleeps."""

    def __init__(self, now: float = 100.0):
        self.now = now
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock(monkeypatch):
    c = FakeClock()
    monkeypatch.setattr(time, "sleep", c.sleep)
    return c


# ------------------------------------------------------------------------------
# Events
# ------------------------------------------------------------------------------

class Capture:
    def __init__(self):
        self.events = []

    def notify(self, e):
        self.events.append(e)

    def of(self, cls):
        return [e for e in self.events if isinstance(e, cls)]


@pytest.fixture
def capture():
    return Capture()


@pytest.fixture
def bus(capture):
    return EventBus(observers=[capture])


# ------------------------------------------------------------------------------
# Nodes and providers
# ------------------------------------------------------------------------------

class FakeCmd:
    def __init__(self, node: "FakeNode", argv: List[str]):
        self.node = node
        self.argv = argv
        self.env: List[str] = []
        self.stdin = None
        self.stdout = None
        self.stderr = None
        self.retry = True

    def set_env(self, *env):
        self.env = list(env)
        return self

    def set_stdin(self, r):
        self.stdin = r
        return self

    def set_stdout(self, w):
        self.stdout = w
        return self

    def set_stderr(self, w):
        self.stderr = w
        return self

    def set_retry(self, enabled):
        self.retry = enabled
        return self

    def run(self):
        self.node.ran.append(self)
        joined = " ".join(self.argv)
        for needle, response in self.node.script:
            if needle in joined:
                if callable(response):
                    response = response()
                if isinstance(response, BaseException):
                    raise response
                if self.stdout is not None:
                    self.stdout.write(response)
                return
        return

    def start(self):
        self.run()

    def wait(self):
        pass


class FakeNode:
    def __init__(
        self,
        name: str,
        role: str = "control-plane",
        *,
        ip: Tuple[str, str] = ("10.0.0.2", ""),
        script: Optional[List[Tuple[str, object]]] = None,
    ):
        self.name = name
        self._role = role
        self._ip = ip
        self.script = list(script or [])
        self.ran: List[FakeCmd] = []

    def __str__(self):
        return self.name

    def role(self):
        if isinstance(self._role, BaseException):
            raise self._role
        return self._role

    def ip(self):
        return self._ip

    def command(self, command, *args):
        return FakeCmd(self, [command, *args])

    @property
    def commands(self) -> List[List[str]]:
        return [c.argv for c in self.ran]


def command_failed(*argv: str, rc: int = 1, stderr: str = "boom") -> CommandFailedError:
    return CommandFailedError(list(argv) or ["cmd"], rc, "", stderr)


class FakeProvider(Provider):
    name = "fake"

    def __init__(self, *, nodes: Optional[Dict[str, List[FakeNode]]] = None, **kwargs):
        super().__init__("fake", **kwargs)
        self.nodes = nodes or {}
        self.provisioned: List[str] = []
        self.deleted: List[List[str]] = []
        self.provision_error: Optional[Exception] = None

    def provision(self, status, cluster, cfg):
        status.start(f"Preparing nodes ({len(cfg.nodes)})")
        if self.provision_error is not None:
            status.end(False)
            raise self.provision_error
        self.provisioned.append(cluster)
        self.nodes.setdefault(
            cluster,
            [FakeNode(f"{cluster}-{n.role}", n.role) for n in cfg.nodes],
        )
        status.end(True)

    def pull_if_not_present(self, image, retries):
        return False

    def common_args(self, cluster, cfg):
        return []

    def create_node(self, name, node, common_args):
        pass

    def node(self, name):
        return FakeNode(name)

    def list_clusters(self):
        return sorted(self.nodes)

    def list_nodes(self, cluster):
        return list(self.nodes.get(cluster, []))

    def delete_nodes(self, nodes):
        if not nodes:
            return
        self.deleted.append([str(n) for n in nodes])
        for cluster, members in self.nodes.items():
            self.nodes[cluster] = [m for m in members if m not in nodes]


@pytest.fixture
def make_node():
    return FakeNode


@pytest.fixture
def make_provider(bus):
    def _make(**kwargs):
        kwargs.setdefault("bus", bus)
        return FakeProvider(**kwargs)
    return _make


@pytest.fixture
def failed():
    return command_failed


@pytest.fixture
def two_node_cfg():
    return ClusterConfig(
        name="c",
        nodes=[NodeSpec(role="control-plane"), NodeSpec(role="worker")],
    )


@pytest.fixture
def cp():
    return DummyCP
