# tests/unit/contracts/test_run_state.py
"""Tests for RunState counters and RunSummary exit codes."""

import threading

import pytest

from idcheck.contracts.enums import PipelineState
from idcheck.contracts.events import RunSummary
from idcheck.contracts.run_state import RunState


class TestRunState:
    def test_initial_counts(self) -> None:
        counts = RunState(total=3).snapshot()

        assert counts.pending == 3
        assert counts.admitted == 0
        assert counts.produced == 0
        assert not counts.completed

    def test_admission_moves_pending_to_admitted(self) -> None:
        state = RunState(total=2)
        state.record_admission()

        counts = state.snapshot()
        assert counts.pending == 1
        assert counts.admitted == 1

    def test_admission_beyond_total_rejected(self) -> None:
        state = RunState(total=1)
        state.record_admission()

        with pytest.raises(RuntimeError, match="beyond input size"):
            state.record_admission()

    def test_revoke_returns_item_to_pending(self) -> None:
        state = RunState(total=2)
        state.record_admission()
        state.record_admission()
        state.revoke_admission()

        counts = state.snapshot()
        assert counts.pending == 1
        assert counts.admitted == 1

    def test_revoke_without_outstanding_admission_rejected(self) -> None:
        state = RunState(total=1)
        state.record_admission()
        state.record_outcome(succeeded=True)

        with pytest.raises(RuntimeError, match="awaiting an outcome"):
            state.revoke_admission()

    def test_negative_total_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            RunState(total=-1)

    def test_record_outcome_counts_success_and_failure(self) -> None:
        state = RunState(total=2)

        assert state.record_outcome(succeeded=True) == 1
        assert state.record_outcome(succeeded=False) == 2

        counts = state.snapshot()
        assert counts.succeeded == 1
        assert counts.failed == 1

    def test_mark_completed(self) -> None:
        state = RunState(total=0)
        state.mark_completed()

        assert state.snapshot().completed

    def test_concurrent_outcomes_all_counted(self) -> None:
        state = RunState(total=800)

        def record() -> None:
            for _ in range(100):
                state.record_outcome(succeeded=True)

        threads = [threading.Thread(target=record) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert state.snapshot().produced == 800


class TestRunSummaryExitCode:
    @pytest.mark.parametrize(
        ("succeeded", "failed", "expected"),
        [(0, 0, 0), (5, 0, 0), (4, 1, 1), (0, 3, 2)],
    )
    def test_exit_code(self, succeeded: int, failed: int, expected: int) -> None:
        summary = RunSummary(
            state=PipelineState.COMPLETED,
            total=succeeded + failed,
            admitted=succeeded + failed,
            produced=succeeded + failed,
            succeeded=succeeded,
            failed=failed,
            duration_seconds=0.0,
        )

        assert summary.exit_code == expected
