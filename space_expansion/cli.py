from __future__ import annotations

import json
import logging
from typing import Any, Optional

import typer

from space_expansion.core.config.defaults import load_and_merge
from space_expansion.core.config.sanitize import sanitize_config
from space_expansion.core.cosmology.expansion_engine import ExpansionEngine
from space_expansion.core.errors import (
    ConfigLoadError,
    ConfigurationError,
    ExpansionError,
)
from space_expansion.core.io.load_config import load_config
from space_expansion.core.model import ALLOWED_MODES, EngineConfig
from space_expansion.core.playback import run_playback, speed_gyr_per_second
from space_expansion.core.validate.validate_config import summarize_config, validate_config

app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.callback()
def _callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Space expansion timeline CLI."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    return


@app.command("validate")
def validate(
    path: str = typer.Argument(..., help="Path to a config file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Validate a config file (merged over the built-in defaults)."""
    _check_format(format)

    def _emit_json(
        ok: bool,
        *,
        exit_code: int,
        errors: list[ExpansionError],
        summary: dict | None,
    ) -> None:
        payload = {
            "tool": "space-expansion",
            "command": "validate",
            "ok": ok,
            "error_count": len(errors),
            "errors": [e.to_item() for e in errors],
            "summary": summary,
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=exit_code)

    try:
        merged = load_and_merge(path)
    except ConfigLoadError as e:
        if format == "json":
            _emit_json(False, exit_code=1, errors=[e], summary=None)
        _print_errors([e])
        raise typer.Exit(code=1)

    config, errors = validate_config(merged)
    if errors:
        if format == "json":
            _emit_json(False, exit_code=2, errors=list(errors), summary=None)
        _print_errors(list(errors))
        raise typer.Exit(code=2)

    assert config is not None

    if format == "text":
        typer.echo(summarize_config(config))
        return

    engine = ExpansionEngine.from_config(config)
    summary = {
        "default_mode": config.default_mode,
        "default_a_max": config.default_a_max,
        "timeline_max_gyr": engine.get_timeline_max_gyr(),
        "timeline_sample_count": config.parameters.timeline_sample_count,
    }
    _emit_json(True, exit_code=0, errors=[], summary=summary)


@app.command("modes")
def modes(
    config_file: Optional[str] = typer.Option(
        None, "--config", help="Optional YAML/JSON config merged over the defaults"
    ),
) -> None:
    """List expansion modes and the a_max range options."""
    config = _engine_config_or_exit(config_file, sanitize=False)

    typer.echo("Modes:")
    for mode in ALLOWED_MODES:
        marker = " (default)" if mode == config.default_mode else ""
        typer.echo(f"- {mode}: {config.mode_labels.get(mode, mode)}{marker}")

    if config.a_max_options:
        typer.echo("Ranges:")
        for value, label in config.a_max_options:
            typer.echo(f"- {value:g}: {label}")


@app.command("timeline")
def timeline(
    config_file: Optional[str] = typer.Option(
        None, "--config", help="Optional YAML/JSON config merged over the defaults"
    ),
    mode: Optional[str] = typer.Option(None, "--mode", help="lcdm|desitter|linear"),
    a_max: Optional[float] = typer.Option(None, "--a-max", help="Upper scale factor bound"),
    points: int = typer.Option(11, "--points", min=2, help="Number of evenly spaced samples"),
    sanitize: bool = typer.Option(
        False, "--sanitize", help="Replace invalid config values with defaults instead of failing"
    ),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Print a(t) sampled over the whole timeline of a mode."""
    _check_format(format)
    config = _engine_config_or_exit(config_file, sanitize=sanitize)
    engine = _engine_or_exit(config, mode, a_max)

    samples = engine.sample_timeline(points)

    if format == "json":
        payload = {
            "tool": "space-expansion",
            "command": "timeline",
            "mode": engine.mode,
            "a_max": engine.a_max,
            "timeline_max_gyr": engine.get_timeline_max_gyr(),
            "samples": [
                {
                    "normalized": s.normalized,
                    "time_gyr": s.time_gyr,
                    "scale_factor": s.scale_factor,
                }
                for s in samples
            ],
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    typer.echo(
        f"Mode: {engine.mode}  a_max={engine.a_max:g}  length={engine.get_timeline_max_gyr():.3f} Gyr"
    )
    for s in samples:
        typer.echo(f"{s.normalized:6.3f}  t={s.time_gyr:10.4f} Gyr  a={s.scale_factor:.6f}")


@app.command("simulate")
def simulate(
    config_file: Optional[str] = typer.Option(
        None, "--config", help="Optional YAML/JSON config merged over the defaults"
    ),
    mode: Optional[str] = typer.Option(None, "--mode", help="lcdm|desitter|linear"),
    a_max: Optional[float] = typer.Option(None, "--a-max", help="Upper scale factor bound"),
    speed: Optional[float] = typer.Option(
        None, "--speed", help="Speed slider value (defaults to the configured default)"
    ),
    frames: int = typer.Option(10, "--frames", min=1, help="Number of frames to step"),
    frame_seconds: float = typer.Option(
        1.0 / 60.0, "--frame-seconds", help="Real seconds per frame"
    ),
    from_start: bool = typer.Option(
        False, "--from-start", help="Start at t=0 instead of a_start"
    ),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Step the engine frame by frame like the animation loop does."""
    _check_format(format)
    config = _engine_config_or_exit(config_file, sanitize=False)
    engine = _engine_or_exit(config, mode, a_max)
    if from_start:
        engine.set_timeline_normalized(0.0)

    slider_value = config.speed.default_value if speed is None else speed
    gyr_per_second = speed_gyr_per_second(slider_value, config.speed, config.numeric_safety)
    played = list(run_playback(engine, frames, frame_seconds, gyr_per_second))

    if format == "json":
        payload = {
            "tool": "space-expansion",
            "command": "simulate",
            "mode": engine.mode,
            "gyr_per_second": gyr_per_second,
            "frames": [
                {
                    "index": f.index,
                    "time_gyr": f.time_gyr,
                    "scale_factor": f.scale_factor,
                    "scale_relative_to_start": f.scale_relative_to_start,
                    "timeline_normalized": f.timeline_normalized,
                }
                for f in played
            ],
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    typer.echo(f"Mode: {engine.mode}  speed={gyr_per_second:.3f} Gyr/s")
    for f in played:
        typer.echo(
            f"#{f.index:<4d} t={f.time_gyr:10.4f} Gyr  a={f.scale_factor:.6f}  "
            f"x{f.scale_relative_to_start:.4f}"
        )


def _check_format(format: str) -> None:
    if format not in ("text", "json"):
        _print_errors(
            [
                ConfigurationError(
                    code="E_CLI_UNKNOWN_FORMAT",
                    message=f"unknown format: {format} (choose one of: text, json)",
                    file=None,
                    path="format",
                )
            ]
        )
        raise typer.Exit(code=2)


def _engine_config_or_exit(config_file: Optional[str], *, sanitize: bool) -> EngineConfig:
    try:
        raw: dict[str, Any] = load_config(config_file) if sanitize and config_file else {}
        merged = sanitize_config(raw) if sanitize else load_and_merge(config_file)
    except ConfigLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)

    config, errors = validate_config(merged)
    if errors or config is None:
        _print_errors(list(errors))
        raise typer.Exit(code=2)
    return config


def _engine_or_exit(
    config: EngineConfig, mode: Optional[str], a_max: Optional[float]
) -> ExpansionEngine:
    if mode is not None and mode not in ALLOWED_MODES:
        _print_errors(
            [
                ConfigurationError(
                    code="E_CLI_UNKNOWN_MODE",
                    message=f"unknown mode: {mode} (choose one of: {', '.join(ALLOWED_MODES)})",
                    file=None,
                    path="mode",
                )
            ]
        )
        raise typer.Exit(code=2)

    try:
        engine = ExpansionEngine.from_config(config)
    except ConfigurationError as e:
        _print_errors([e])
        raise typer.Exit(code=2)

    if mode is not None:
        engine.set_mode(mode)  # type: ignore[arg-type]
    if a_max is not None:
        engine.set_max_scale(a_max)
    return engine


def _print_errors(errors: list[ExpansionError]) -> None:
    errors_sorted = sorted(errors, key=ExpansionError.sort_key)
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="space-expansion")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
