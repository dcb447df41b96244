import json
import logging

import pytest

from kindling.observers.console import ConsoleObserver
from kindling.observers.dispatcher import EventBus
from kindling.observers.events import (
    ActionSummary,
    ImagePullFailed,
    NodeCreated,
    StatusEnded,
    StatusStarted,
    WaiterTimedOut,
    new_ctx,
)
from kindling.observers.interface import is_failure
from kindling.observers.jsonfile import JsonFileObserver
from kindling.observers.logger import LoggerObserver
from kindling.observers.status import Status


def test_start_ends_the_previous_step_successfully(bus, capture):
    status = Status(bus=bus)
    status.start("one")
    status.start("two")
    status.end(False)

    assert status.results == [("one", True), ("two", False)]
    assert status.failed
    kinds = [(type(e).__name__, e.message) for e in capture.events]
    assert kinds == [
        ("StatusStarted", "one"),
        ("StatusEnded", "one"),
        ("StatusStarted", "two"),
        ("StatusEnded", "two"),
    ]


def test_end_without_a_step_is_a_noop(bus, capture):
    status = Status(bus=bus)
    status.end(False)
    status.start("step")
    status.end(True)
    status.end(False)

    assert status.results == [("step", True)]
    assert not status.failed
    assert len(capture.of(StatusEnded)) == 1


def test_events_carry_the_context(bus, capture):
    ctx = new_ctx(cluster="c", provider="ignite")
    Status(bus=bus, ctx=ctx).start("x")
    [ev] = capture.of(StatusStarted)
    assert (ev.cluster, ev.provider, ev.run_id) == ("c", "ignite", ctx["run_id"])


def test_bus_keeps_going_when_an_observer_fails(capture):
    class Broken:
        def notify(self, e):
            raise RuntimeError("observer bug")

    bus = EventBus(observers=[Broken(), capture])
    bus.emit(NodeCreated(name="n", role="worker", **new_ctx("c", "docker")))
    assert len(capture.events) == 1


def test_json_file_observer_appends_lines(tmp_path):
    path = tmp_path / "logs" / "run.jsonl"
    ob = JsonFileObserver(path)
    ctx = new_ctx("c", "docker")
    ob.notify(NodeCreated(name="c-worker", role="worker", **ctx))
    ob.notify(StatusEnded(message="Preparing nodes (1)", ok=True, **ctx))

    rows = [json.loads(line) for line in path.read_text().splitlines()]
    assert [r["type"] for r in rows] == ["NodeCreated", "StatusEnded"]
    assert rows[0]["name"] == "c-worker"
    assert rows[1]["ok"] is True


def test_console_observer(capsys):
    ctx = new_ctx("c", "docker")
    ob = ConsoleObserver()
    ob.notify(StatusStarted(message="Preparing nodes (1)", **ctx))
    ob.notify(StatusEnded(message="Preparing nodes (1)", ok=False, **ctx))
    ob.notify(NodeCreated(name="c-worker", role="worker", **ctx))

    out = capsys.readouterr().out.splitlines()
    assert out[0] == " • Preparing nodes (1) ..."
    assert out[1] == " ✗ Preparing nodes (1)"
    assert "NodeCreated" in out[2] and "name=c-worker" in out[2]


def test_logger_observer(caplog):
    ob = LoggerObserver(logging.getLogger("kindling.events-test"))
    with caplog.at_level(logging.INFO, logger="kindling.events-test"):
        ob.notify(NodeCreated(name="c-worker", role="worker", **new_ctx("c", "docker")))
    assert "[EVENT] NodeCreated" in caplog.text
    assert "name=c-worker" in caplog.text


def test_logger_observer_logs_failures_as_warnings(caplog):
    ob = LoggerObserver(logging.getLogger("kindling.events-test"))
    with caplog.at_level(logging.INFO, logger="kindling.events-test"):
        ob.notify(StatusEnded(message="Preparing nodes (2)", ok=False, **new_ctx("c", "docker")))
        ob.notify(StatusEnded(message="Preparing nodes (2)", ok=True, **new_ctx("c", "docker")))
        ob.notify(ActionSummary(name="storageos", status="DEGRADED", **new_ctx("c", "docker")))

    assert [r.levelno for r in caplog.records] == [logging.WARNING, logging.INFO, logging.WARNING]
    assert "[EVENT] StatusEnded" in caplog.records[0].getMessage()


@pytest.mark.parametrize(
    "event, failed",
    [
        (ImagePullFailed(image="x", error="e", **new_ctx("c", "docker")), True),
        (WaiterTimedOut(name="StorageOS", timeout_s=500, **new_ctx("c", "docker")), True),
        (ActionSummary(name="storageos", status="OK", **new_ctx("c", "docker")), False),
        (NodeCreated(name="c-worker", role="worker", **new_ctx("c", "docker")), False),
    ],
)
def test_is_failure(event, failed):
    assert is_failure(event) is failed
