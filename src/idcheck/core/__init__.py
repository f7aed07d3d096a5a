"""Core infrastructure: configuration, logging, rate limiting."""

from idcheck.core.config import (
    BatchPacing,
    CeilingPacing,
    PipelineSettings,
    ServiceSettings,
    SinkSettings,
    SteadyPacing,
    load_settings,
)
from idcheck.core.logging import configure_logging, get_logger

__all__ = [
    "BatchPacing",
    "CeilingPacing",
    "PipelineSettings",
    "ServiceSettings",
    "SinkSettings",
    "SteadyPacing",
    "configure_logging",
    "get_logger",
    "load_settings",
]
