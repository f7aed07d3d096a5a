"""Dispatch core: pacing, admission, worker pool and run coordination."""

from idcheck.engine.admission import AdmissionQueue, QueueClosedError
from idcheck.engine.clock import DEFAULT_CLOCK, Clock, MockClock, SystemClock
from idcheck.engine.dispatcher import Dispatcher
from idcheck.engine.governor import (
    BatchGovernor,
    CeilingGovernor,
    RateGovernor,
    SteadyGovernor,
    build_governor,
)
from idcheck.engine.pipeline import Pipeline
from idcheck.engine.workers import WorkerPool

__all__ = [
    "DEFAULT_CLOCK",
    "AdmissionQueue",
    "BatchGovernor",
    "CeilingGovernor",
    "Clock",
    "Dispatcher",
    "MockClock",
    "Pipeline",
    "QueueClosedError",
    "RateGovernor",
    "SteadyGovernor",
    "SystemClock",
    "WorkerPool",
    "build_governor",
]
