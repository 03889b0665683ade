import pytest

from scriptdecl.core.events import (
    EventBus,
    EventObserver,
    MemoryObserver,
    StdoutObserver,
    build_default_bus,
    publish_event,
    set_global_bus,
    timed_stage,
)


@pytest.fixture()
def observer():
    memory = MemoryObserver()
    set_global_bus(EventBus(build_id="b-1", build_name="events", observers=[memory]))
    yield memory
    set_global_bus(None)


def test_publish_without_bus_is_noop():
    set_global_bus(None)
    publish_event(stage="build", status="started")


def test_auto_duration_for_paired_events(observer):
    publish_event(stage="declarations.load", status="started")
    publish_event(stage="declarations.load", status="completed")

    first, second = observer.events
    assert first.duration_ms is None
    assert second.duration_ms is not None
    assert [e.seq_no for e in observer.events] == [1, 2]
    assert second.build_id == "b-1"


def test_timed_stage_publishes_failure_and_reraises(observer):
    with pytest.raises(RuntimeError):
        with timed_stage("unit.compile", details={"unit": "main"}):
            raise RuntimeError("boom")

    assert [e.status for e in observer.events] == ["started", "failed"]
    assert observer.events[-1].error == {"code": "RuntimeError", "message": "boom"}


def test_failing_observer_is_isolated():
    class _Broken(EventObserver):
        def handle(self, event):
            raise ValueError("nope")

    memory = MemoryObserver()
    bus = EventBus(build_id="b", build_name="n", observers=[_Broken(), memory])

    bus.publish(stage="build", status="started")

    assert memory.stages() == ["build"]


def test_stdout_observer_prints_one_line(capsys):
    bus = EventBus(build_id="b-9", build_name="feeds", observers=[StdoutObserver()])
    bus.publish(stage="build", status="completed", counts={"units": 1})

    out = capsys.readouterr().out
    assert "build=b-9" in out
    assert "build completed" in out
    assert "counts={'units': 1}" in out


def test_default_bus_disabled_unless_enabled(monkeypatch):
    monkeypatch.delenv("SCRIPTDECL_EVENTS_ENABLED", raising=False)
    assert build_default_bus(build_id="b", build_name="n") is None

    monkeypatch.setenv("SCRIPTDECL_EVENTS_ENABLED", "true")
    monkeypatch.setenv("SCRIPTDECL_EVENTS_TRANSPORTS", "memory")
    bus = build_default_bus(build_id="b", build_name="n")
    assert bus is not None
