import threading
import time

import pytest

from bossraid import socketio
from bossraid.services.raid import TickScheduler

INTERVAL = 0.02


@pytest.fixture()
def scheduler(flask_app):
    sched = TickScheduler(socketio, INTERVAL, logger=flask_app.logger)
    yield sched
    sched.stop_all()


def test_ticks_at_configured_rate(scheduler):
    ticks = []
    scheduler.start('ABCD', ticks.append)
    time.sleep(0.3)
    scheduler.stop('ABCD')
    assert 8 <= len(ticks) <= 18
    assert all(dt == INTERVAL for dt in ticks)


def test_restart_replaces_loop(scheduler):
    ticks = []
    scheduler.start('ABCD', ticks.append)
    scheduler.start('ABCD', ticks.append)
    assert scheduler.active_count() == 1
    time.sleep(0.3)
    scheduler.stop('ABCD')
    # two live timers would give roughly double this
    assert 8 <= len(ticks) <= 18


def test_stop_unknown_key_is_noop(scheduler):
    assert scheduler.stop('NOPE') is False
    assert not scheduler.is_running('NOPE')


def test_no_ticks_after_stop(scheduler):
    ticks = []
    scheduler.start('ABCD', ticks.append)
    time.sleep(0.1)
    scheduler.stop('ABCD')
    count = len(ticks)
    time.sleep(0.15)
    assert len(ticks) == count
    assert not scheduler.is_running('ABCD')


def test_stop_waits_for_in_flight_tick(scheduler):
    entered = threading.Event()
    release = threading.Event()
    ticks = []

    def slow_tick(dt):
        ticks.append(dt)
        entered.set()
        release.wait(1.0)
        # always overrun the interval so the runner has no sleep to yield in
        time.sleep(INTERVAL * 3)

    scheduler.start('ABCD', slow_tick)
    assert entered.wait(1.0)
    stopper = threading.Thread(target=scheduler.stop, args=('ABCD',))
    stopper.start()
    time.sleep(0.05)
    # stop is blocked behind the running tick
    assert stopper.is_alive()
    release.set()
    stopper.join(1.0)
    assert not stopper.is_alive()
    count = len(ticks)
    time.sleep(0.1)
    assert len(ticks) == count == 1


def test_overrunning_tick_gets_no_successor_after_stop(scheduler):
    entered = threading.Event()
    release = threading.Event()
    stop_requested = threading.Event()
    late = []

    def slow_tick(dt):
        if stop_requested.is_set():
            late.append(dt)
        entered.set()
        release.wait(1.0)
        time.sleep(INTERVAL * 3)

    scheduler.start('ABCD', slow_tick)
    assert entered.wait(1.0)

    def request_stop():
        stop_requested.set()
        scheduler.stop('ABCD')

    stopper = threading.Thread(target=request_stop)
    stopper.start()
    assert stop_requested.wait(1.0)
    release.set()
    stopper.join(1.0)
    assert not stopper.is_alive()
    time.sleep(INTERVAL * 5)
    assert late == []


def test_stop_from_inside_tick(scheduler):
    ticks = []

    def tick(dt):
        ticks.append(dt)
        scheduler.stop('ABCD')

    gate = threading.RLock()
    scheduler.start('ABCD', tick, gate=gate)
    time.sleep(0.15)
    assert len(ticks) == 1


def test_faulty_tick_does_not_kill_loop(scheduler):
    ticks = []

    def flaky(dt):
        ticks.append(dt)
        if len(ticks) == 1:
            raise RuntimeError('boom')

    broadcasts = []
    scheduler.start('ABCD', flaky, on_broadcast=lambda: broadcasts.append(1))
    time.sleep(0.2)
    scheduler.stop('ABCD')
    assert len(ticks) >= 3
    # the faulted tick skipped its broadcast
    assert len(ticks) - 2 <= len(broadcasts) <= len(ticks) - 1


def test_rooms_tick_independently(scheduler):
    slow_entered = threading.Event()
    release = threading.Event()
    fast = []

    def slow(dt):
        slow_entered.set()
        release.wait(1.0)

    scheduler.start('SLOW', slow)
    scheduler.start('FAST', fast.append)
    assert slow_entered.wait(1.0)
    time.sleep(0.2)
    assert len(fast) >= 5
    release.set()
