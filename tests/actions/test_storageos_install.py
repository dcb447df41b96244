import pytest

from kindling.actions.action import ActionContext, ActionError
from kindling.actions.storageos.install import (
    InstallState,
    StorageOSAction,
    all_tokens_match,
    control_plane_node,
)
from kindling.config.models import STORAGEOS_OPERATOR_MANIFEST, ClusterConfig, StorageOSConfig
from kindling.observers.events import (
    ActionSummary,
    ManifestApplied,
    WaiterSucceeded,
    WaiterTimedOut,
)
from kindling.observers.status import Status

OPERATOR_QUERY = "-n storageos-operator get pods"
WORKLOAD_QUERY = "-n storageos get pods"


@pytest.mark.parametrize(
    "text, marker, ready",
    [
        ("True True True", "True", True),
        ("True False True", "True", False),
        ("'True True'", "True", True),
        ("Running Running Running", "Running", True),
        ("Running Pending Running", "Running", False),
        ("", "Running", False),
        ("''", "True", False),
        ("NotTrue", "True", False),
    ],
)
def test_all_tokens_match(text, marker, ready):
    assert all_tokens_match(text.split(), marker) is ready


def _ctx(make_provider, nodes, bus):
    provider = make_provider(nodes={"c": nodes})
    status = Status(bus=bus)
    return ActionContext(status=status, provider=provider, cfg=ClusterConfig(name="c"), bus=bus)


def _action(clock, **cfg):
    cfg.setdefault("wait_timeout_seconds", 5)
    return StorageOSAction(StorageOSConfig(enabled=True, **cfg), clock=clock)


def test_control_plane_node_is_the_first_control_plane(make_node):
    nodes = [make_node("w", "worker"), make_node("cp1"), make_node("cp2")]
    assert str(control_plane_node(nodes)) == "cp1"


def test_no_control_plane_is_an_error(make_node):
    with pytest.raises(ActionError):
        control_plane_node([make_node("w", "worker")])


def test_install_reaches_done(make_node, make_provider, bus, capture, clock):
    cp = make_node("c-control-plane", script=[
        (OPERATOR_QUERY, "'True True'"),
        (WORKLOAD_QUERY, "'Running Running Running'"),
    ])
    worker = make_node("c-worker", "worker")
    ctx = _ctx(make_provider, [worker, cp], bus)
    action = _action(clock)

    assert action.execute(ctx) is None

    assert action.state == InstallState.DONE
    assert ctx.status.results == [("Starting storageos", True)]
    assert worker.ran == []
    apply = cp.commands[0]
    assert apply == [
        "kubectl", "--kubeconfig=/etc/kubernetes/admin.conf",
        "apply", "-f", STORAGEOS_OPERATOR_MANIFEST,
    ]
    assert cp.commands[1][-1] == "-o=jsonpath={.items..status.conditions[-1:].status}"
    assert cp.commands[2][-1] == "-o=jsonpath={.items..status.phase}"
    assert capture.of(ManifestApplied)[0].node == "c-control-plane"
    assert [e.name for e in capture.of(WaiterSucceeded)] == ["StorageOS Operator", "StorageOS"]
    assert capture.of(ActionSummary)[-1].status == "OK"


def test_failed_apply_is_a_hard_failure(make_node, make_provider, bus, capture, clock, failed):
    cp = make_node("c-control-plane", script=[("apply", failed("kubectl", stderr="connection refused"))])
    ctx = _ctx(make_provider, [cp], bus)
    action = _action(clock)

    with pytest.raises(ActionError, match="failed to setup storageos"):
        action.execute(ctx)

    assert action.state == InstallState.APPLYING
    assert ctx.status.results == [("Starting storageos", False)]
    assert len(cp.commands) == 1
    assert capture.of(ActionSummary)[-1].status == "FAILED"


def test_operator_timeout_is_a_soft_failure(make_node, make_provider, bus, capture, clock):
    cp = make_node("c-control-plane", script=[(OPERATOR_QUERY, "True False")])
    ctx = _ctx(make_provider, [cp], bus)
    action = _action(clock, wait_timeout_seconds=3, poll_interval_seconds=1.0)
    start = clock()

    assert action.execute(ctx) is None

    assert action.state == InstallState.WAITING_OPERATOR_READY
    assert ctx.status.results == [("Starting storageos", False)]
    assert ctx.status.failed
    # polled until the deadline, then gave up without touching the workload
    assert clock() == start + 3
    assert len(cp.commands) == 1 + 3
    assert not any(WORKLOAD_QUERY in " ".join(c) for c in cp.commands)
    [timed_out] = capture.of(WaiterTimedOut)
    assert timed_out.name == "StorageOS Operator"
    assert capture.of(ActionSummary)[-1].status == "DEGRADED"


def test_workload_timeout_is_a_soft_failure(make_node, make_provider, bus, capture, clock):
    cp = make_node("c-control-plane", script=[
        (OPERATOR_QUERY, "True"),
        (WORKLOAD_QUERY, "Running Pending Running"),
    ])
    ctx = _ctx(make_provider, [cp], bus)
    action = _action(clock, wait_timeout_seconds=2, poll_interval_seconds=0.5)

    assert action.execute(ctx) is None

    assert action.state == InstallState.WAITING_WORKLOAD_READY
    assert ctx.status.results == [("Starting storageos", False)]
    assert [e.name for e in capture.of(WaiterTimedOut)] == ["StorageOS"]


def test_query_errors_count_as_not_ready(make_node, make_provider, bus, clock, failed):
    attempts = iter([failed("kubectl"), "True", "Running"])

    def flaky():
        return next(attempts)

    cp = make_node("c-control-plane", script=[
        (OPERATOR_QUERY, flaky),
        (WORKLOAD_QUERY, flaky),
    ])
    ctx = _ctx(make_provider, [cp], bus)
    action = _action(clock)
    action.execute(ctx)

    assert action.state == InstallState.DONE
    assert clock.sleeps == [1.0]


def test_role_lookup_failure_fails_the_action(make_node, make_provider, bus, clock, failed):
    cp = make_node("c-control-plane", role=failed("ignite", "inspect"))
    ctx = _ctx(make_provider, [cp], bus)
    with pytest.raises(ActionError, match="failed to setup storageos"):
        _action(clock).execute(ctx)
    assert ctx.status.results == [("Starting storageos", False)]


def test_nodes_are_listed_once(make_node, make_provider, bus):
    provider = make_provider(nodes={"c": [make_node("c-control-plane")]})
    calls = []
    original = provider.list_nodes

    def counting(cluster):
        calls.append(cluster)
        return original(cluster)

    provider.list_nodes = counting
    ctx = ActionContext(status=Status(bus=bus), provider=provider, cfg=ClusterConfig(name="c"))
    ctx.nodes()
    ctx.nodes()
    assert calls == ["c"]
