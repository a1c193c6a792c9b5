from absence.scheduler import LoopScheduler


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


def test_call_soon_runs_in_order():
    scheduler = LoopScheduler()
    calls = []
    scheduler.call_soon(lambda: calls.append(1))
    scheduler.call_soon(lambda: calls.append(2))

    assert scheduler.run_once()
    assert calls == [1, 2]
    assert not scheduler.run_once()


def test_callbacks_scheduled_while_running_wait_for_next_turn():
    scheduler = LoopScheduler()
    calls = []

    def first():
        calls.append("first")
        scheduler.call_soon(lambda: calls.append("second"))

    scheduler.call_soon(first)
    scheduler.run_once()
    assert calls == ["first"]
    scheduler.run_once()
    assert calls == ["first", "second"]


def test_call_later_sleeps_until_due():
    clock = FakeClock()
    scheduler = LoopScheduler(clock=clock, sleep=clock.sleep)
    calls = []
    scheduler.call_later(1.5, lambda: calls.append(clock.now))

    assert scheduler.run_until(lambda: bool(calls))
    assert calls == [1.5]


def test_cancelled_timer_never_runs():
    clock = FakeClock()
    scheduler = LoopScheduler(clock=clock, sleep=clock.sleep)
    calls = []
    handle = scheduler.call_later(1.0, lambda: calls.append("late"))
    handle.cancel()

    assert scheduler.pending == 0
    assert not scheduler.run_until(lambda: bool(calls))
    assert clock.now == 0.0


def test_run_until_respects_iteration_limit():
    scheduler = LoopScheduler()

    def spin():
        scheduler.call_soon(spin)

    scheduler.call_soon(spin)
    assert not scheduler.run_until(lambda: False, max_iterations=50)
    assert scheduler.pending == 1


def test_timer_cancelled_earlier_in_the_same_turn_does_not_run():
    scheduler = LoopScheduler()
    calls = []
    handles = []
    scheduler.call_soon(lambda: handles[0].cancel())
    handles.append(scheduler.call_later(0, lambda: calls.append("timer")))

    scheduler.run_once()
    scheduler.run_once()

    assert calls == []
    assert scheduler.pending == 0
