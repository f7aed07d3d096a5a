# src/idcheck/engine/pipeline.py
"""Pipeline coordinator: wires dispatcher, workers and sink for one run.

State machine:
    IDLE -> RUNNING -> DRAINING -> COMPLETED
    IDLE -> COMPLETED                       (empty input)

- RUNNING: the dispatcher admits items under the governor while the
  workers consume them.
- DRAINING: every item is admitted and end-of-input is signalled; the
  coordinator waits on the worker barrier.
- COMPLETED: every admitted item has an outcome and every worker has
  exited. Reported once via the returned RunSummary; never left.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from idcheck.contracts.enums import PipelineState
from idcheck.contracts.errors import OrchestrationInvariantError, PipelineStateError
from idcheck.contracts.events import RunSummary
from idcheck.contracts.run_state import RunState
from idcheck.core.logging import ensure_stdlib_routing
from idcheck.engine.admission import AdmissionQueue, QueueClosedError
from idcheck.engine.dispatcher import Dispatcher
from idcheck.engine.governor import build_governor
from idcheck.engine.workers import WorkerPool

if TYPE_CHECKING:
    from idcheck.core.config import PipelineSettings
    from idcheck.engine.clock import Clock
    from idcheck.engine.governor import RateGovernor
    from idcheck.plugins.clients.base import ValidationService
    from idcheck.plugins.sinks.base import ResultSink

logger = structlog.get_logger(__name__)


class Pipeline:
    """Run-to-completion coordinator for a single list of identifiers.

    A Pipeline is single-use: run() may be called once.

    Logging goes through stdlib logging unless structlog is already
    configured; applications normally call configure_logging() first so
    diagnostics land on stderr and stdout carries result lines only.

    Example:
        configure_logging()
        settings = PipelineSettings(workers=5, pacing=BatchPacing(size=20, pause_ms=60_000))
        with CredentialTypeClient() as service, LineSink.open(SinkPolicy.FULL) as sink:
            summary = Pipeline(settings, service, sink).run(identifiers)
        assert summary.produced == len(identifiers)
    """

    def __init__(
        self,
        settings: PipelineSettings,
        service: ValidationService,
        sink: ResultSink,
        *,
        governor: RateGovernor | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize pipeline.

        Args:
            settings: Validated run settings
            service: Validation service shared by all workers
            sink: Destination for outcomes (owned by the caller)
            governor: Pacing override; built from settings.pacing if None
            clock: Clock for the governor built from settings (tests)
        """
        ensure_stdlib_routing()
        self._settings = settings
        self._service = service
        self._sink = sink
        self._governor = governor if governor is not None else build_governor(settings.pacing, clock=clock)
        self._state = PipelineState.IDLE
        self._run_state: RunState | None = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def run_state(self) -> RunState | None:
        """Counters of the current or finished run (None before run())."""
        return self._run_state

    def _transition(self, target: PipelineState) -> None:
        logger.debug("pipeline state", previous=str(self._state), state=str(target))
        self._state = target

    def run(self, items: Sequence[str]) -> RunSummary:
        """Validate every item and return once all outcomes are sunk.

        Args:
            items: Identifiers in input order. Duplicates are processed
                independently.

        Returns:
            RunSummary with state COMPLETED.

        Raises:
            PipelineStateError: If the pipeline has already run.
            OrchestrationInvariantError: If outcomes do not match admissions.
        """
        if self._state != PipelineState.IDLE:
            raise PipelineStateError(f"Pipeline already ran (state={self._state})")

        started = time.monotonic()
        run_state = RunState(total=len(items))
        self._run_state = run_state

        if not items:
            # Nothing to admit: no workers, no service calls
            self._governor.close()
            run_state.mark_completed()
            self._transition(PipelineState.COMPLETED)
            logger.info("run completed", total=0, produced=0)
            return self._summary(run_state, started)

        queue = AdmissionQueue(self._settings.effective_queue_capacity)
        pool = WorkerPool(
            queue,
            self._service,
            self._sink,
            run_state,
            workers=self._settings.workers,
            call_timeout=self._settings.call_timeout_seconds,
            progress_interval=self._settings.progress_interval,
        )
        dispatcher = Dispatcher(queue, self._governor, run_state)

        logger.info(
            "run started",
            total=len(items),
            workers=self._settings.workers,
            pacing=self._settings.pacing.kind,
            queue_capacity=queue.capacity,
        )
        self._transition(PipelineState.RUNNING)
        pool.start()
        try:
            try:
                dispatcher.run(items)
            except QueueClosedError:
                # A worker crashed and closed the queue; join() re-raises its error
                logger.error("admission stopped by worker failure", admitted=run_state.snapshot().admitted)
            self._transition(PipelineState.DRAINING)
        finally:
            # Barrier: wait for every worker even when admission failed
            try:
                pool.join()
            finally:
                self._governor.close()

        counts = run_state.snapshot()
        if counts.admitted != counts.produced or counts.admitted != len(items):
            raise OrchestrationInvariantError(
                f"Run finished with {counts.admitted} admitted, {counts.produced} produced for {len(items)} items"
            )

        run_state.mark_completed()
        self._transition(PipelineState.COMPLETED)
        summary = self._summary(run_state, started, max_concurrent=pool.max_concurrent)
        logger.info(
            "run completed",
            total=summary.total,
            produced=summary.produced,
            succeeded=summary.succeeded,
            failed=summary.failed,
            duration_seconds=round(summary.duration_seconds, 3),
        )
        return summary

    def _summary(self, run_state: RunState, started: float, *, max_concurrent: int = 0) -> RunSummary:
        counts = run_state.snapshot()
        return RunSummary(
            state=self._state,
            total=run_state.total,
            admitted=counts.admitted,
            produced=counts.produced,
            succeeded=counts.succeeded,
            failed=counts.failed,
            duration_seconds=time.monotonic() - started,
            max_concurrent_calls=max_concurrent,
            governor_stats=self._governor.get_stats(),
            sink_stats=self._sink.get_stats(),
        )
