"""Dispatcher: paced admission of every input item, exactly once."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from idcheck.contracts.run_state import RunState
from idcheck.engine.admission import AdmissionQueue, QueueClosedError
from idcheck.engine.governor import RateGovernor

logger = structlog.get_logger(__name__)


class Dispatcher:
    """Feed input items into the admission queue in input order.

    Each item is admitted only after the governor permits it. Once the
    last item is admitted the queue is closed, which tells the workers
    that no more work will arrive. The queue is also closed when
    admission fails part-way, so workers never wait forever.

    Usage:
        dispatcher = Dispatcher(queue, governor, run_state)
        admitted = dispatcher.run(["a@x.com", "b@x.com"])
    """

    def __init__(self, queue: AdmissionQueue, governor: RateGovernor, run_state: RunState) -> None:
        self._queue = queue
        self._governor = governor
        self._run_state = run_state

    def run(self, items: Iterable[str]) -> int:
        """Admit every item, then signal end-of-input.

        Args:
            items: Identifiers in input order (may be empty)

        Returns:
            Number of items admitted.

        Raises:
            QueueClosedError: If the queue was closed before every item was
                handed off. The item that failed is returned to pending.
        """
        admitted = 0
        try:
            for item in items:
                self._governor.permit()
                # Count before the hand-off so produced never overtakes admitted
                self._run_state.record_admission()
                try:
                    self._queue.put(item)
                except QueueClosedError:
                    self._run_state.revoke_admission()
                    raise
                self._governor.mark_admitted()
                admitted += 1
                logger.debug("admitted", identifier=item, admitted=admitted)
        finally:
            self._queue.close()
        logger.debug("end of input", admitted=admitted)
        return admitted
