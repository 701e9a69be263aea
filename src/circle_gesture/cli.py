"""circle-gesture CLI: offline tools around the recognizer.

Usage:
    circle-gesture replay      Feed a recording through a recognizer
    circle-gesture synth       Write a synthetic recording
    circle-gesture diagnose    Show the fitted circle and stray samples
    circle-gesture benchmark   Time the geometry and the per-tick work
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

import typer

from circle_gesture.config import RecognitionParameters
from circle_gesture.geometry import (
    FitMethod,
    evaluate_circle,
    find_furthest_pair,
    fit_circle,
    fit_circle_by_three_points,
    incorrect_points,
    is_within_tolerance_band,
    off_rim_points,
)
from circle_gesture.profiler import RecognizerProfiler
from circle_gesture.recognizer import GestureRecognizer, PhaseEvent
from circle_gesture.recorder import RecordingError, StreamPlayer, save_ticks
from circle_gesture.synth import SHAPES, circle_stream, with_release

app = typer.Typer(
    name="circle-gesture",
    help="Hold-and-draw circle gesture recognition tools.",
    add_completion=False,
)


def _load_parameters(config: Optional[str], fit_method: Optional[str]) -> RecognitionParameters:
    if config:
        path = Path(config)
        if not path.exists():
            typer.echo(f"Config not found: {config}", err=True)
            raise typer.Exit(1)
        params = RecognitionParameters.from_yaml(path)
    else:
        params = RecognitionParameters()

    if fit_method:
        data = params.to_dict()
        data["fit_method"] = fit_method
        params = RecognitionParameters.from_dict(data)
    return params


def _load_player(recording: str) -> StreamPlayer:
    path = Path(recording)
    if not path.exists():
        typer.echo(f"Recording not found: {recording}", err=True)
        raise typer.Exit(1)
    try:
        return StreamPlayer.load(path)
    except RecordingError as e:
        typer.echo(f"Could not read recording: {e}", err=True)
        raise typer.Exit(1)


def _setup_logging(log_level: str):
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def replay(
    recording: str = typer.Argument(..., help="Path to a recording (.json)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Recognition parameters YAML"),
    fit_method: Optional[str] = typer.Option(None, help="Override fit method: diameter, three_point, radial"),
    log_level: str = typer.Option("warning", help="Log level"),
):
    """Replay a recording through a recognizer and print each phase event."""
    _setup_logging(log_level)
    params = _load_parameters(config, fit_method)
    player = _load_player(recording)

    typer.echo(
        f"Replaying {Path(recording).name} ({player.tick_count} ticks, {player.duration:.2f}s) "
        f"fit={params.fit_method.value} accuracy={params.accuracy_percent:.0f}%"
    )

    events = player.replay(GestureRecognizer(params))
    for evt in events:
        line = f"  t={evt.timestamp:8.3f}  {evt.event.value:<9}  samples={evt.sample_count:<4} after {evt.duration:.3f}s"
        if evt.circle is not None:
            cx, cy = evt.circle.center
            line += f"  circle=({cx:.3f}, {cy:.3f}) r={evt.circle.radius:.3f}"
        if evt.reason:
            line += f"  [{evt.reason}]"
        typer.echo(line)

    performed = sum(1 for e in events if e.event == PhaseEvent.PERFORMED)
    typer.echo(f"\n{performed} gesture(s) performed.")


@app.command()
def synth(
    output: str = typer.Argument(..., help="Output recording path"),
    shape: str = typer.Option("circle", help="circle, arc, line or stick"),
    samples: int = typer.Option(16, help="Number of samples"),
    duration: float = typer.Option(0.3, help="Seconds spanned by the samples"),
    release: bool = typer.Option(True, help="Append a release tick"),
):
    """Write a synthetic recording."""
    factory = SHAPES.get(shape)
    if factory is None:
        typer.echo(f"Unknown shape '{shape}'. Choose from: {', '.join(SHAPES)}", err=True)
        raise typer.Exit(1)

    ticks = factory(samples=samples, duration=duration)
    if release:
        ticks = with_release(ticks)
    save_ticks(ticks, output)
    typer.echo(f"Wrote {len(ticks)} ticks ({shape}) to {output}")


@app.command()
def diagnose(
    recording: str = typer.Argument(..., help="Path to a recording (.json)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Recognition parameters YAML"),
    fit_method: Optional[str] = typer.Option(None, help="Override fit method: diameter, three_point, radial"),
):
    """Fit a circle to the held samples and list the ones that fail its test.

    Band fits list the samples outside the tolerance band. Radial devices are
    judged on rim coverage, so they list the samples off the rim instead.
    """
    params = _load_parameters(config, fit_method)
    player = _load_player(recording)

    points = [t.position for t in player.play() if t.is_actuated]
    if not points:
        typer.echo("No actuated samples in recording.", err=True)
        raise typer.Exit(1)

    circle = fit_circle(points, params.fit_method)
    if circle is None:
        typer.echo(f"{len(points)} samples: no circle could be fitted ({params.fit_method.value}).")
        return

    matched, _ = evaluate_circle(points, params.accuracy_percent, params.fit_method, params.band_width_rule)
    if params.fit_method == FitMethod.RADIAL:
        label = "Off rim"
        stray = off_rim_points(points, circle)
    else:
        label = "Outside band"
        stray = incorrect_points(points, circle, params.accuracy_percent, params.band_width_rule)

    cx, cy = circle.center
    typer.echo(f"Samples:   {len(points)}")
    typer.echo(f"Circle:    center=({cx:.4f}, {cy:.4f}) radius={circle.radius:.4f}")
    typer.echo(f"Is circle: {'yes' if matched else 'no'}")
    typer.echo(f"{label} ({len(stray)}):")
    for x, y in stray:
        typer.echo(f"  ({x:.4f}, {y:.4f})")


@app.command()
def benchmark(
    iterations: int = typer.Option(500, help="Number of iterations"),
    samples: int = typer.Option(120, help="Samples per synthetic gesture"),
):
    """Time geometry calls and full recognizer ticks on synthetic circles."""
    ticks = circle_stream(samples=samples, radius=100.0, duration=1.0, noise=1.0)
    points = [t.position for t in ticks]
    profiler = RecognizerProfiler()
    circle = fit_circle(points, FitMethod.DIAMETER)

    typer.echo(f"Running benchmark: {iterations} iterations, {samples} samples")

    t0 = time.perf_counter()
    for _ in range(iterations):
        with profiler.stage("furthest_pair"):
            find_furthest_pair(points)
        with profiler.stage("three_point_fit"):
            fit_circle_by_three_points(points)
        with profiler.stage("band_test"):
            is_within_tolerance_band(points, circle, 80.0)

    player = StreamPlayer(ticks)
    for _ in range(max(1, iterations // 10)):
        player.replay(GestureRecognizer(RecognitionParameters(min_hold_duration=0.05), profiler=profiler))
    elapsed = time.perf_counter() - t0

    typer.echo(f"\nTotal: {elapsed:.2f}s")
    typer.echo("Stage breakdown:")
    for name, stats in profiler.summary().items():
        typer.echo(f"   {name:18s} avg={stats['avg_ms']:.4f}ms  p95={stats['p95_ms']:.4f}ms  calls={stats['calls']}")
    typer.echo("Evaluation cost by buffered samples:")
    for size, stats in profiler.evaluation_cost().items():
        typer.echo(f"   >= {size:<6d}        avg={stats['avg_ms']:.4f}ms  max={stats['max_ms']:.4f}ms  calls={stats['calls']}")
    attempts = profiler.attempt_summary()
    if attempts["attempts"]:
        typer.echo(
            f"Attempts: {attempts['attempts']} {attempts['outcomes']}  "
            f"avg evaluations={attempts['avg_evaluations']}  avg samples={attempts['avg_samples']}"
        )
    else:
        typer.echo("Attempts: 0")


def main():
    app()


if __name__ == "__main__":
    main()
