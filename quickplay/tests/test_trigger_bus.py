import logging

import pytest

from quickplay.core.metrics import trigger_failures_total
from quickplay.features.pipeline import set_pipeline
from quickplay.features.triggers.bus import (
    SESSION_CREATED,
    STATISTICS_UPDATED,
    TriggerBus,
    build_bus,
    dispatch_trigger,
)


class FakeQueue:
    def __init__(self):
        self.jobs = []

    def enqueue(self, func, *args, **kwargs):
        self.jobs.append((func, args, kwargs))
        return type("Job", (), {"id": f"job-{len(self.jobs)}"})()


def test_inline_publish_runs_handlers_in_order():
    bus = TriggerBus()
    calls = []
    bus.subscribe(SESSION_CREATED, lambda payload: calls.append(("first", payload["userId"])))
    bus.subscribe(SESSION_CREATED, lambda payload: calls.append(("second", payload["userId"])))

    bus.publish(SESSION_CREATED, {"userId": "u1"})

    assert calls == [("first", "u1"), ("second", "u1")]


def test_topics_are_separate():
    bus = TriggerBus()
    calls = []
    bus.subscribe(STATISTICS_UPDATED, calls.append)
    bus.publish(SESSION_CREATED, {"userId": "u1"})
    assert calls == []


def test_subscribing_twice_registers_once():
    bus = TriggerBus()
    calls = []
    bus.subscribe(SESSION_CREATED, calls.append)
    bus.subscribe(SESSION_CREATED, calls.append)
    bus.publish(SESSION_CREATED, {})
    assert len(calls) == 1


def test_inline_failure_is_logged_counted_and_isolated(caplog):
    bus = TriggerBus()
    calls = []

    def broken(_payload):
        raise ValueError("boom")

    bus.subscribe(SESSION_CREATED, broken)
    bus.subscribe(SESSION_CREATED, calls.append)

    with caplog.at_level(logging.ERROR, logger="quickplay.triggers"):
        completed = bus.dispatch(SESSION_CREATED, {"userId": "u1", "gameId": "snap"})

    assert completed == 1
    assert len(calls) == 1
    assert trigger_failures_total.value({"topic": SESSION_CREATED}) == 1
    [record] = caplog.records
    assert record.user_id == "u1"
    assert record.exc_info is not None


def test_raise_errors_propagates():
    bus = TriggerBus()

    def broken(_payload):
        raise ValueError("boom")

    bus.subscribe(SESSION_CREATED, broken)
    with pytest.raises(ValueError):
        bus.dispatch(SESSION_CREATED, {}, raise_errors=True)


def test_queue_mode_enqueues_instead_of_running(caplog):
    queue = FakeQueue()
    bus = TriggerBus(mode="queue", queue=queue)
    calls = []
    bus.subscribe(SESSION_CREATED, calls.append)

    with caplog.at_level(logging.INFO, logger="quickplay"):
        bus.publish(SESSION_CREATED, {"userId": "u1"})

    assert calls == []
    assert queue.jobs == [(dispatch_trigger, (SESSION_CREATED, {"userId": "u1"}), {"job_timeout": "2m"})]
    [record] = [r for r in caplog.records if r.getMessage() == "trigger enqueued"]
    assert record.job_id == "job-1"
    assert record.user_id == "u1"


def test_worker_entry_point_dispatches_through_pipeline(pipeline):
    set_pipeline(pipeline)

    completed = dispatch_trigger(SESSION_CREATED, {"userId": "u1", "gameId": "maths", "scoreIndex": 12.0})

    assert completed == 2
    assert pipeline.summaries.get_summary("u1", "maths").total_plays == 1


def test_worker_entry_point_reraises(pipeline):
    def broken(_payload):
        raise RuntimeError("boom")

    pipeline.bus.subscribe(STATISTICS_UPDATED, broken)
    set_pipeline(pipeline)

    with pytest.raises(RuntimeError):
        dispatch_trigger(STATISTICS_UPDATED, {"userId": "u1", "gameId": "maths"})


@pytest.mark.parametrize("mode, expected", [("inline", "inline"), ("QUEUE", "queue"), ("carrier-pigeon", "inline")])
def test_build_bus_mode(mode, expected):
    assert build_bus(mode).mode == expected
