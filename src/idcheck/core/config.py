"""
Configuration schema and loading for idcheck runs.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from idcheck.contracts.enums import SinkPolicy

DEFAULT_SERVICE_URL = "https://login.microsoftonline.com/common/GetCredentialType"


class SteadyPacing(BaseModel):
    """Fixed minimum interval between successive admissions.

    Example YAML:
        pacing:
          kind: steady
          interval_ms: 3000
    """

    model_config = {"frozen": True, "extra": "forbid"}

    kind: Literal["steady"] = "steady"
    interval_ms: int = Field(default=3000, ge=0, description="Minimum milliseconds between admissions")


class BatchPacing(BaseModel):
    """Admit a whole batch back-to-back, then pause before the next one.

    Example YAML:
        pacing:
          kind: batch
          size: 20
          pause_ms: 60000
    """

    model_config = {"frozen": True, "extra": "forbid"}

    kind: Literal["batch"] = "batch"
    size: int = Field(gt=0, description="Admissions per batch")
    pause_ms: int = Field(ge=0, description="Milliseconds to pause between batches")


class CeilingPacing(BaseModel):
    """Cap admissions at a number per rolling minute.

    Bursts up to the cap are admitted immediately; further admissions
    block until the window frees a slot.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    kind: Literal["ceiling"] = "ceiling"
    requests_per_minute: int = Field(gt=0, description="Maximum admissions per rolling minute")


PacingSettings = Annotated[SteadyPacing | BatchPacing | CeilingPacing, Field(discriminator="kind")]


class SinkSettings(BaseModel):
    """Where and what to emit for each outcome.

    path=None writes to stdout. A path is opened once in append mode.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    policy: SinkPolicy = Field(default=SinkPolicy.FULL, description="full records or valid identifiers only")
    path: Path | None = Field(default=None, description="Append-only output file (default: stdout)")


class ServiceSettings(BaseModel):
    """Verification endpoint configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    url: str = Field(default=DEFAULT_SERVICE_URL, description="Credential-type endpoint URL")
    user_agent: str | None = Field(default=None, description="Override the User-Agent header")


class PipelineSettings(BaseModel):
    """Top-level settings for one idcheck run.

    Example YAML:
        workers: 5
        call_timeout_ms: 10000
        pacing:
          kind: batch
          size: 20
          pause_ms: 60000
        sink:
          policy: valid_only
          path: ./valid.txt
    """

    model_config = {"frozen": True, "extra": "forbid"}

    workers: int = Field(default=5, ge=1, le=256, description="Concurrent workers")
    pacing: PacingSettings = Field(default_factory=SteadyPacing)
    sink: SinkSettings = Field(default_factory=SinkSettings)
    call_timeout_ms: int = Field(default=10_000, gt=0, description="Per-call timeout in milliseconds")
    queue_capacity: int | None = Field(default=None, gt=0, description="Admission queue bound (default: workers)")
    progress_interval: int = Field(default=100, gt=0, description="Log progress every N outcomes")
    service: ServiceSettings = Field(default_factory=ServiceSettings)

    @property
    def effective_queue_capacity(self) -> int:
        return self.queue_capacity if self.queue_capacity is not None else self.workers

    @property
    def call_timeout_seconds(self) -> float:
        return self.call_timeout_ms / 1000

    def with_overrides(self, overrides: dict[str, Any]) -> PipelineSettings:
        """Return validated settings with top-level keys replaced.

        Nested models (pacing, sink, service) are replaced whole, so
        pass a complete dict or model for them. None values are ignored.

        Raises:
            ValidationError: If the merged settings are invalid.
        """
        merged = self.model_dump()
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return PipelineSettings.model_validate(merged)


def load_settings(config_path: Path) -> PipelineSettings:
    """Load settings from a YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (IDCHECK_*) - highest priority
    2. Config file
    3. Defaults from the Pydantic schema - lowest priority

    Environment variable format: IDCHECK_SINK__POLICY for nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated PipelineSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="IDCHECK",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; Pydantic fields are lowercase
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = _lowercase_keys({k: v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys})

    return PipelineSettings.model_validate(raw_config)


def _lowercase_keys(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively lowercase mapping keys produced by Dynaconf."""
    result: dict[str, Any] = {}
    for key, value in config.items():
        result[key.lower()] = _lowercase_keys(value) if isinstance(value, dict) else value
    return result
