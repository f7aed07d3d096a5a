# tests/unit/core/test_config.py
"""Tests for configuration schema and loading."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError


class TestPipelineSettingsDefaults:
    def test_defaults(self) -> None:
        from idcheck.contracts.enums import SinkPolicy
        from idcheck.core.config import DEFAULT_SERVICE_URL, PipelineSettings, SteadyPacing

        settings = PipelineSettings()

        assert settings.workers == 5
        assert settings.pacing == SteadyPacing(interval_ms=3000)
        assert settings.sink.policy == SinkPolicy.FULL
        assert settings.sink.path is None
        assert settings.call_timeout_seconds == 10.0
        assert settings.effective_queue_capacity == 5
        assert settings.service.url == DEFAULT_SERVICE_URL

    def test_explicit_queue_capacity(self) -> None:
        from idcheck.core.config import PipelineSettings

        assert PipelineSettings(workers=2, queue_capacity=50).effective_queue_capacity == 50

    def test_frozen(self) -> None:
        from idcheck.core.config import PipelineSettings

        settings = PipelineSettings()
        with pytest.raises(ValidationError):
            settings.workers = 10  # type: ignore[misc]

    def test_unknown_field_rejected(self) -> None:
        from idcheck.core.config import PipelineSettings

        with pytest.raises(ValidationError):
            PipelineSettings.model_validate({"wrokers": 3})

    @pytest.mark.parametrize("workers", [0, -1, 257])
    def test_worker_bounds(self, workers: int) -> None:
        from idcheck.core.config import PipelineSettings

        with pytest.raises(ValidationError):
            PipelineSettings(workers=workers)


class TestPacingSettings:
    def test_discriminated_by_kind(self) -> None:
        from idcheck.core.config import BatchPacing, CeilingPacing, PipelineSettings

        batch = PipelineSettings.model_validate({"pacing": {"kind": "batch", "size": 20, "pause_ms": 60000}})
        ceiling = PipelineSettings.model_validate({"pacing": {"kind": "ceiling", "requests_per_minute": 20}})

        assert batch.pacing == BatchPacing(size=20, pause_ms=60000)
        assert ceiling.pacing == CeilingPacing(requests_per_minute=20)

    def test_unknown_kind_rejected(self) -> None:
        from idcheck.core.config import PipelineSettings

        with pytest.raises(ValidationError):
            PipelineSettings.model_validate({"pacing": {"kind": "jitter"}})

    def test_batch_requires_positive_size(self) -> None:
        from idcheck.core.config import BatchPacing

        with pytest.raises(ValidationError):
            BatchPacing(size=0, pause_ms=10)

    def test_negative_interval_rejected(self) -> None:
        from idcheck.core.config import SteadyPacing

        with pytest.raises(ValidationError):
            SteadyPacing(interval_ms=-1)


class TestWithOverrides:
    def test_none_values_ignored(self) -> None:
        from idcheck.core.config import PipelineSettings

        settings = PipelineSettings(workers=7).with_overrides({"workers": None, "call_timeout_ms": None})

        assert settings.workers == 7

    def test_replaces_top_level_and_nested_models(self) -> None:
        from idcheck.contracts.enums import SinkPolicy
        from idcheck.core.config import BatchPacing, PipelineSettings, SinkSettings

        settings = PipelineSettings().with_overrides(
            {
                "workers": 2,
                "pacing": BatchPacing(size=3, pause_ms=100),
                "sink": SinkSettings(policy=SinkPolicy.VALID_ONLY, path=Path("out.txt")),
            }
        )

        assert settings.workers == 2
        assert settings.pacing == BatchPacing(size=3, pause_ms=100)
        assert settings.sink.policy == SinkPolicy.VALID_ONLY
        assert settings.sink.path == Path("out.txt")

    def test_invalid_override_rejected(self) -> None:
        from idcheck.core.config import PipelineSettings

        with pytest.raises(ValidationError):
            PipelineSettings().with_overrides({"workers": 0})


class TestLoadSettings:
    def test_load_from_yaml(self, tmp_path: Path) -> None:
        from idcheck.contracts.enums import SinkPolicy
        from idcheck.core.config import BatchPacing, load_settings

        config_file = tmp_path / "settings.yaml"
        config_file.write_text(
            yaml.safe_dump(
                {
                    "workers": 3,
                    "call_timeout_ms": 2500,
                    "pacing": {"kind": "batch", "size": 20, "pause_ms": 60000},
                    "sink": {"policy": "valid_only", "path": "valid.txt"},
                }
            )
        )

        settings = load_settings(config_file)

        assert settings.workers == 3
        assert settings.call_timeout_seconds == 2.5
        assert settings.pacing == BatchPacing(size=20, pause_ms=60000)
        assert settings.sink.policy == SinkPolicy.VALID_ONLY
        assert settings.sink.path == Path("valid.txt")

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        from idcheck.core.config import load_settings

        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.safe_dump({"workers": 3}))
        monkeypatch.setenv("IDCHECK_WORKERS", "9")

        assert load_settings(config_file).workers == 9

    def test_missing_file(self, tmp_path: Path) -> None:
        from idcheck.core.config import load_settings

        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yaml")

    def test_invalid_file_content(self, tmp_path: Path) -> None:
        from idcheck.core.config import load_settings

        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.safe_dump({"workers": 0}))

        with pytest.raises(ValidationError):
            load_settings(config_file)
