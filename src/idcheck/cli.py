"""idcheck Command Line Interface.

Entry point for the idcheck CLI tool.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from idcheck import __version__
from idcheck.contracts.enums import SinkPolicy
from idcheck.contracts.errors import InputSourceError, SinkWriteError
from idcheck.core.config import (
    BatchPacing,
    CeilingPacing,
    PipelineSettings,
    SinkSettings,
    SteadyPacing,
    load_settings,
)
from idcheck.core.logging import get_logger

__all__ = ["app"]

logger = get_logger(__name__)

app = typer.Typer(
    name="idcheck",
    help="idcheck: paced, concurrent validation of identifier lists.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"idcheck version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from a .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(f"Error: .env file not found: {env_file}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)


def _fail(title: str, message: str, hint: str | None = None) -> None:
    """Print a setup error to stderr."""
    typer.secho(f"{title}: {message}", fg=typer.colors.RED, err=True)
    if hint:
        typer.secho(f"Hint: {hint}", fg=typer.colors.YELLOW, err=True)


def _format_validation_error(e: ValidationError) -> str:
    details = []
    for error in e.errors():
        loc = ".".join(str(part) for part in error["loc"]) or "<root>"
        details.append(f"  - {loc}: {error['msg']}")
    return "\n".join(details)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,  # Existence checked in _load_dotenv for a better message
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs on stderr.",
    ),
) -> None:
    """idcheck: paced, concurrent validation of identifier lists."""
    # Configure logging before any subcommand runs
    from idcheck.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho("Warning: --env-file ignored because --no-dotenv is set.", fg=typer.colors.YELLOW, err=True)


def _pacing_override(
    interval_ms: int | None,
    batch_size: int | None,
    pause_ms: int | None,
    rpm: int | None,
) -> SteadyPacing | BatchPacing | CeilingPacing | None:
    """Build a pacing override from CLI flags, or None to keep settings."""
    flags = (("--interval-ms", interval_ms), ("--batch-size", batch_size), ("--rpm", rpm))
    chosen = [name for name, value in flags if value is not None]
    if len(chosen) > 1:
        raise typer.BadParameter(f"Choose one pacing policy, got {', '.join(chosen)}")
    if pause_ms is not None and batch_size is None:
        raise typer.BadParameter("--pause-ms requires --batch-size")
    if interval_ms is not None:
        return SteadyPacing(interval_ms=interval_ms)
    if batch_size is not None:
        return BatchPacing(size=batch_size, pause_ms=pause_ms if pause_ms is not None else 0)
    if rpm is not None:
        return CeilingPacing(requests_per_minute=rpm)
    return None


def _resolve_settings(settings_file: Path | None, overrides: dict[str, Any]) -> PipelineSettings:
    """Load settings (file or defaults) and apply CLI overrides.

    Raises:
        typer.Exit: On missing file or invalid settings.
    """
    try:
        base = load_settings(settings_file) if settings_file is not None else PipelineSettings()
        return base.with_overrides(overrides)
    except FileNotFoundError:
        _fail("File Not Found", f"Settings file does not exist: {settings_file}")
        raise typer.Exit(1) from None
    except ValidationError as e:
        _fail("Invalid settings", "\n" + _format_validation_error(e))
        raise typer.Exit(1) from None


def _read_input(input_file: Path | None) -> list[str]:
    """Read identifiers from piped stdin, else from the input file.

    Piped input wins when it carries any data.

    Raises:
        typer.Exit: When no input is available or it cannot be read.
    """
    from idcheck.plugins.sources import read_identifiers, read_identifiers_from_stream, stdin_is_piped

    try:
        if stdin_is_piped(sys.stdin):
            piped = read_identifiers_from_stream(sys.stdin)
            if piped:
                return piped
        if input_file is not None:
            return read_identifiers(input_file)
    except InputSourceError as e:
        _fail("Input error", str(e))
        raise typer.Exit(1) from None

    _fail(
        "No input",
        "pipe identifiers on stdin or pass --input FILE",
        hint="idcheck check -i emails.txt -o results.jsonl",
    )
    raise typer.Exit(1)


@app.command()
def check(
    input_file: Path | None = typer.Option(
        None,
        "--input",
        "-i",
        help="File with one identifier per line (ignored when data is piped on stdin).",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Append results to this file instead of stdout.",
    ),
    valid_only: bool = typer.Option(
        False,
        "--valid-only",
        "-e",
        help="Only write identifiers that are valid.",
    ),
    workers: int | None = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Number of concurrent workers.",
    ),
    interval_ms: int | None = typer.Option(
        None,
        "--interval-ms",
        min=0,
        help="Steady pacing: minimum milliseconds between admissions.",
    ),
    batch_size: int | None = typer.Option(
        None,
        "--batch-size",
        min=1,
        help="Batch pacing: admissions per batch.",
    ),
    pause_ms: int | None = typer.Option(
        None,
        "--pause-ms",
        min=0,
        help="Batch pacing: milliseconds to pause between batches.",
    ),
    rpm: int | None = typer.Option(
        None,
        "--rpm",
        min=1,
        help="Ceiling pacing: maximum admissions per rolling minute.",
    ),
    timeout_ms: int | None = typer.Option(
        None,
        "--timeout-ms",
        min=1,
        help="Per-call timeout in milliseconds.",
    ),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """Validate every identifier and write one result per valid answer."""
    from idcheck.engine.pipeline import Pipeline
    from idcheck.plugins.clients import CredentialTypeClient
    from idcheck.plugins.sinks import LineSink

    pacing = _pacing_override(interval_ms, batch_size, pause_ms, rpm)
    config = _resolve_settings(settings, {"workers": workers, "call_timeout_ms": timeout_ms, "pacing": pacing})
    if output is not None or valid_only:
        sink_settings = SinkSettings(
            policy=SinkPolicy.VALID_ONLY if valid_only else config.sink.policy,
            path=output if output is not None else config.sink.path,
        )
        config = config.with_overrides({"sink": sink_settings})
    logger.debug(
        "settings resolved",
        workers=config.workers,
        pacing=config.pacing.kind,
        sink_policy=str(config.sink.policy),
        sink_path=str(config.sink.path) if config.sink.path else None,
    )

    # Fatal setup failures happen here, before any admission
    identifiers = _read_input(input_file)

    try:
        sink = LineSink.open(config.sink.policy, path=config.sink.path)
    except SinkWriteError as e:
        _fail("Output error", str(e))
        raise typer.Exit(1) from None

    with sink, CredentialTypeClient(config.service.url, user_agent=config.service.user_agent) as service:
        summary = Pipeline(config, service, sink).run(identifiers)

    typer.secho(
        f"All identifiers processed: {summary.produced} checked, {summary.succeeded} answered, {summary.failed} failed.",
        fg=typer.colors.GREEN if summary.failed == 0 else typer.colors.YELLOW,
        err=True,
    )
    raise typer.Exit(summary.exit_code)


@app.command()
def validate(
    settings: Path = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """Validate a settings file without running."""
    config = _resolve_settings(settings, {})
    typer.secho(f"Settings valid: {settings}", fg=typer.colors.GREEN)
    typer.echo(f"  workers: {config.workers}")
    typer.echo(f"  pacing: {config.pacing.model_dump_json()}")
    typer.echo(f"  sink: policy={config.sink.policy}, path={config.sink.path or '<stdout>'}")
    typer.echo(f"  call_timeout_ms: {config.call_timeout_ms}")
    typer.echo(f"  queue_capacity: {config.effective_queue_capacity}")


if __name__ == "__main__":
    app()
