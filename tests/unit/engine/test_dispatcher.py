# tests/unit/engine/test_dispatcher.py
"""Tests for the Dispatcher: paced, in-order admission of every item."""

import pytest

from idcheck.contracts.run_state import RunState
from idcheck.engine.admission import AdmissionQueue, QueueClosedError
from idcheck.engine.clock import MockClock
from idcheck.engine.dispatcher import Dispatcher
from idcheck.engine.governor import SteadyGovernor


def _drain(queue: AdmissionQueue) -> list[str]:
    items = []
    while (item := queue.take()) is not None:
        items.append(item)
    return items


class _SlowHandOffQueue(AdmissionQueue):
    """Queue whose put() stalls the clock, as a full queue would block it."""

    def __init__(self, capacity: int, clock: MockClock, stalls: dict[str, float]) -> None:
        super().__init__(capacity)
        self._clock = clock
        self._stalls = stalls
        self.handed_off_at: list[float] = []

    def put(self, item: str) -> None:
        self._clock.advance(self._stalls.get(item, 0.0))
        super().put(item)
        self.handed_off_at.append(self._clock.monotonic())


class TestDispatcher:
    def test_admits_in_input_order_and_closes(self) -> None:
        items = ["a@x.com", "b@x.com", "a@x.com"]
        queue = AdmissionQueue(len(items))
        run_state = RunState(total=len(items))
        dispatcher = Dispatcher(queue, SteadyGovernor(0.0, clock=MockClock()), run_state)

        admitted = dispatcher.run(items)

        assert admitted == 3
        assert queue.closed
        assert _drain(queue) == items
        counts = run_state.snapshot()
        assert counts.admitted == 3
        assert counts.pending == 0

    def test_each_admission_waits_for_a_permit(self) -> None:
        clock = MockClock()
        queue = AdmissionQueue(4)
        dispatcher = Dispatcher(queue, SteadyGovernor(2.0, clock=clock), RunState(total=4))

        dispatcher.run(["a", "b", "c", "d"])

        assert clock.sleeps == [2.0, 2.0, 2.0]

    def test_empty_input_closes_immediately(self) -> None:
        queue = AdmissionQueue(1)
        dispatcher = Dispatcher(queue, SteadyGovernor(5.0, clock=MockClock()), RunState(total=0))

        assert dispatcher.run([]) == 0
        assert queue.closed
        assert queue.take() is None

    def test_queue_closed_on_admission_failure(self) -> None:
        """A closed queue stops admission and the error propagates."""
        queue = AdmissionQueue(1)
        queue.close()
        dispatcher = Dispatcher(queue, SteadyGovernor(0.0, clock=MockClock()), RunState(total=2))

        with pytest.raises(QueueClosedError):
            dispatcher.run(["a", "b"])

        assert queue.closed

    def test_failed_hand_off_not_counted_as_admitted(self) -> None:
        queue = AdmissionQueue(1)
        queue.close()
        run_state = RunState(total=2)
        dispatcher = Dispatcher(queue, SteadyGovernor(0.0, clock=MockClock()), run_state)

        with pytest.raises(QueueClosedError):
            dispatcher.run(["a", "b"])

        counts = run_state.snapshot()
        assert counts.admitted == 0
        assert counts.pending == 2

    def test_interval_measured_from_completed_hand_off(self) -> None:
        """A hand-off that blocks still leaves a full interval before the next one."""
        clock = MockClock()
        queue = _SlowHandOffQueue(4, clock, stalls={"b": 0.5})
        dispatcher = Dispatcher(queue, SteadyGovernor(0.2, clock=clock), RunState(total=4))

        dispatcher.run(["a", "b", "c", "d"])

        times = queue.handed_off_at
        gaps = [later - earlier for earlier, later in zip(times, times[1:], strict=False)]
        assert gaps == pytest.approx([0.7, 0.2, 0.2])
        assert all(gap >= 0.2 - 1e-9 for gap in gaps)
