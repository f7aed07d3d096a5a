"""Shared test configuration for idcheck.

Provides:
- Hypothesis profiles (ci, nightly, debug)
- In-memory sink fixtures (stub collaborators live in tests/helpers/stubs.py)
- Logging isolation so CLI tests do not leak handlers between tests
"""

from __future__ import annotations

import io
import logging
import os
from collections.abc import Iterator

import pytest
from hypothesis import Phase, Verbosity, settings

from idcheck.contracts.enums import SinkPolicy
from idcheck.plugins.sinks import LineSink

# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def output_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def full_sink(output_buffer: io.StringIO) -> LineSink:
    """LineSink writing full records into output_buffer."""
    return LineSink(SinkPolicy.FULL, output_buffer)


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Restore root logger handlers and level after a test reconfigures them."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
