import json
import logging

import pytest

from datastore.scheduler import Policy, State, WriteScheduler, threading_timer


class Recorder:
    def __init__(self) -> None:
        self.contents = []

    @property
    def calls(self) -> int:
        return len(self.contents)

    def __call__(self, content: str) -> None:
        self.contents.append(content)


def render() -> str:
    return "{}"


def test_zero_debounce_writes_synchronously(timers):
    write = Recorder()
    scheduler = WriteScheduler(render, write, debounce_ms=0, timer=timers)
    scheduler.save()
    scheduler.save()
    assert write.calls == 2
    assert timers.scheduled == []
    assert scheduler.state is State.IDLE


def test_debounced_saves_coalesce_into_one_write(timers):
    write = Recorder()
    scheduler = WriteScheduler(render, write, debounce_ms=50, timer=timers)
    for _ in range(5):
        scheduler.save()

    assert write.calls == 0
    assert scheduler.state is State.PENDING
    assert len(timers.scheduled) == 5
    assert len(timers.active) == 1
    assert timers.active[0].delay == pytest.approx(0.05)

    timers.fire()
    assert write.calls == 1
    assert scheduler.writes == 1
    assert scheduler.state is State.IDLE


def test_first_policy_keeps_original_timer(timers):
    write = Recorder()
    scheduler = WriteScheduler(render, write, debounce_ms=50, timer=timers, policy=Policy.FIRST)
    for _ in range(5):
        scheduler.save()
    assert len(timers.scheduled) == 1
    timers.fire()
    assert write.calls == 1


def test_flush_writes_pending_now(timers):
    write = Recorder()
    scheduler = WriteScheduler(render, write, debounce_ms=50, timer=timers)
    assert scheduler.flush() is False
    scheduler.save()
    assert scheduler.flush() is True
    assert write.calls == 1
    assert timers.active == []


def test_write_file_cancels_pending(timers):
    write = Recorder()
    scheduler = WriteScheduler(render, write, debounce_ms=50, timer=timers)
    scheduler.save()
    scheduler.write_file()
    assert write.calls == 1
    assert timers.active == []
    assert not scheduler.pending


def test_cancel_drops_pending_write(timers):
    write = Recorder()
    scheduler = WriteScheduler(render, write, debounce_ms=50, timer=timers)
    scheduler.save()
    stale = timers.scheduled[0]
    scheduler.cancel()
    # a timer that was already running when cancelled must not write
    stale.callback()
    assert write.calls == 0
    assert scheduler.state is State.IDLE


def test_deferred_failure_is_reported_not_raised(timers, caplog):
    errors = []

    def write(content: str) -> None:
        raise OSError("disk full")

    scheduler = WriteScheduler(render, write, debounce_ms=10, timer=timers, on_error=errors.append)
    scheduler.save()
    with caplog.at_level(logging.ERROR, logger="datastore.scheduler"):
        timers.fire()

    assert len(errors) == 1
    assert "disk full" in str(errors[0])
    assert "Deferred write failed" in caplog.text
    assert scheduler.state is State.IDLE


def test_synchronous_failure_propagates(timers):
    def write(content: str) -> None:
        raise OSError("disk full")

    scheduler = WriteScheduler(render, write, debounce_ms=0, timer=timers)
    with pytest.raises(OSError):
        scheduler.save()


def test_threading_timer_can_be_cancelled():
    fired = []
    timer = threading_timer(30.0, lambda: fired.append(True))
    timer.cancel()
    timer.join(timeout=1)
    assert not timer.is_alive()
    assert fired == []


def test_pending_write_carries_state_as_of_last_save(timers):
    document = {"n": 0}
    write = Recorder()
    scheduler = WriteScheduler(lambda: json.dumps(document), write, debounce_ms=50, timer=timers)

    document["n"] = 1
    scheduler.save()
    document["n"] = 2
    scheduler.save()
    # changed without a save: not part of the pending write
    document["n"] = 3

    timers.fire()
    assert write.contents == ['{"n": 2}']


def test_first_policy_still_writes_latest_saved_state(timers):
    document = {"n": 0}
    write = Recorder()
    scheduler = WriteScheduler(
        lambda: json.dumps(document), write, debounce_ms=50, timer=timers, policy=Policy.FIRST
    )
    for n in range(1, 4):
        document["n"] = n
        scheduler.save()
    timers.fire()
    assert write.contents == ['{"n": 3}']


def test_flush_renders_current_state(timers):
    document = {"n": 0}
    write = Recorder()
    scheduler = WriteScheduler(lambda: json.dumps(document), write, debounce_ms=50, timer=timers)
    scheduler.save()
    document["n"] = 1
    scheduler.flush()
    assert write.contents == ['{"n": 1}']
