"""Worker pool: fixed number of threads validating admitted items.

Each worker loops independently:
- take the next admitted identifier (None means closed and drained)
- call the validation service with a bounded timeout
- map the answer, or the service failure, to exactly one Outcome
- count the Outcome in RunState and hand it to the sink

Failed calls are never retried and never stop the worker: any exception
raised by the service becomes a failure Outcome. An exception anywhere
else in the loop (sink, counters) is a bug: the worker closes the queue
so the dispatcher stops admitting, and the error re-raises from join().
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from threading import Lock
from typing import TYPE_CHECKING

import structlog

from idcheck.contracts.errors import PipelineStateError, ValidationServiceError
from idcheck.contracts.results import Outcome

if TYPE_CHECKING:
    from idcheck.contracts.run_state import RunState
    from idcheck.engine.admission import AdmissionQueue
    from idcheck.plugins.clients.base import ValidationService
    from idcheck.plugins.sinks.base import ResultSink

logger = structlog.get_logger(__name__)


class WorkerPool:
    """Static pool of worker threads draining the admission queue.

    Usage:
        pool = WorkerPool(queue, service, sink, run_state, workers=5, call_timeout=10.0)
        pool.start()
        ...             # dispatcher admits and closes the queue
        pool.join()     # returns once every worker has exited
    """

    def __init__(
        self,
        queue: AdmissionQueue,
        service: ValidationService,
        sink: ResultSink,
        run_state: RunState,
        *,
        workers: int,
        call_timeout: float,
        progress_interval: int = 100,
    ) -> None:
        """Initialize pool.

        Args:
            queue: Admission queue fed by the dispatcher
            service: Validation service shared by all workers
            sink: Result sink receiving every outcome
            run_state: Run counters (outcomes are recorded here)
            workers: Number of concurrent workers (>= 1)
            call_timeout: Per-call timeout in seconds
            progress_interval: Log progress every N outcomes
        """
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self._queue = queue
        self._service = service
        self._sink = sink
        self._run_state = run_state
        self._workers = workers
        self._call_timeout = call_timeout
        self._progress_interval = progress_interval

        self._executor: ThreadPoolExecutor | None = None
        self._futures: list[Future[int]] = []

        # Concurrency tracking for the run summary
        self._stats_lock = Lock()
        self._active_calls = 0
        self._max_concurrent = 0

    @property
    def workers(self) -> int:
        return self._workers

    @property
    def max_concurrent(self) -> int:
        """Highest number of service calls observed in flight at once."""
        with self._stats_lock:
            return self._max_concurrent

    def start(self) -> None:
        """Spawn the worker threads.

        Raises:
            PipelineStateError: If the pool was already started.
        """
        if self._executor is not None:
            raise PipelineStateError("WorkerPool already started")
        self._executor = ThreadPoolExecutor(max_workers=self._workers, thread_name_prefix="idcheck-worker")
        self._futures = [self._executor.submit(self._worker_loop, worker_id) for worker_id in range(self._workers)]
        logger.debug("workers started", workers=self._workers)

    def join(self) -> int:
        """Wait until every worker has exited.

        Workers exit only once the queue is closed and drained.

        Returns:
            Total number of items processed across workers.

        Raises:
            PipelineStateError: If the pool was never started.
            Exception: The first unexpected error raised inside a worker.
        """
        if self._executor is None:
            raise PipelineStateError("WorkerPool was never started")
        wait(self._futures)
        self._executor.shutdown(wait=True)
        # result() re-raises a worker crash in the coordinator thread
        return sum(future.result() for future in self._futures)

    def _worker_loop(self, worker_id: int) -> int:
        log = logger.bind(worker=worker_id)
        processed = 0
        try:
            while True:
                identifier = self._queue.take()
                if identifier is None:
                    break
                outcome = self._validate(identifier)
                produced = self._run_state.record_outcome(succeeded=outcome.succeeded)
                self._sink.emit(outcome)
                processed += 1
                if produced % self._progress_interval == 0:
                    counts = self._run_state.snapshot()
                    logger.info(
                        "progress",
                        produced=counts.produced,
                        admitted=counts.admitted,
                        pending=counts.pending,
                        succeeded=counts.succeeded,
                        failed=counts.failed,
                    )
        except BaseException:
            # Stop the dispatcher rather than leave it blocked on a full queue
            self._queue.close()
            log.exception("worker crashed", processed=processed)
            raise
        log.debug("worker finished", processed=processed)
        return processed

    def _validate(self, identifier: str) -> Outcome:
        """Call the service once and map the result to an Outcome."""
        self._enter_call()
        try:
            verdict = self._service.check(identifier, timeout=self._call_timeout)
        except ValidationServiceError as e:
            logger.warning(
                "validation call failed",
                identifier=identifier,
                error=str(e),
                error_type=type(e).__name__,
                status_code=e.status_code,
            )
            return Outcome.failure(identifier, e)
        except Exception as e:
            # Service contract breach; still exactly one outcome for the item
            logger.exception(
                "validation call raised unexpected error",
                identifier=identifier,
                error_type=type(e).__name__,
            )
            return Outcome.failure(identifier, e)
        finally:
            self._exit_call()
        return Outcome.success(identifier, verdict)

    def _enter_call(self) -> None:
        with self._stats_lock:
            self._active_calls += 1
            if self._active_calls > self._max_concurrent:
                self._max_concurrent = self._active_calls

    def _exit_call(self) -> None:
        with self._stats_lock:
            self._active_calls -= 1
