#!/usr/bin/env python3
"""Accuracy sweep: how often noisy circles (and near-misses) are recognized.

Runs synthetic strokes through ``evaluate_circle`` for each fit method over a
range of accuracy settings and jitter levels. Useful for picking an
``accuracy_percent`` for a given input device. No input hardware required.

Usage:
    python examples/accuracy_sweep.py
    python examples/accuracy_sweep.py --trials 500 --radius 40
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from circle_gesture.geometry import FitMethod, evaluate_circle
from circle_gesture.synth import arc_stream, circle_stream


def pass_rate(strokes: list[np.ndarray], accuracy: float, method: FitMethod) -> float:
    hits = sum(1 for pts in strokes if evaluate_circle(pts, accuracy, method)[0])
    return 100.0 * hits / len(strokes)


def noisy_circles(trials: int, radius: float, noise: float, samples: int) -> list[np.ndarray]:
    strokes = []
    for seed in range(trials):
        ticks = circle_stream(samples=samples, radius=radius, noise=noise, seed=seed)
        strokes.append(np.array([t.position for t in ticks]))
    return strokes


def print_table(title: str, header: list[str], rows: list[list[str]]):
    """Print a formatted table."""
    widths = [max(len(header[i]), *(len(r[i]) for r in rows)) for i in range(len(header))]
    line = "  ".join(h.rjust(w) for h, w in zip(header, widths))
    width = len(line) + 2

    print()
    print(f"  ╭{'─' * width}╮")
    print(f"  │ {title:<{width - 2}} │")
    print(f"  ├{'─' * width}┤")
    print(f"  │ {line} │")
    for row in rows:
        print(f"  │ {'  '.join(c.rjust(w) for c, w in zip(row, widths))} │")
    print(f"  ╰{'─' * width}╯")


def main():
    parser = argparse.ArgumentParser(description="circle-gesture accuracy sweep")
    parser.add_argument("-n", "--trials", type=int, default=200, help="Strokes per noise level")
    parser.add_argument("--radius", type=float, default=50.0, help="Circle radius")
    parser.add_argument("--samples", type=int, default=48, help="Samples per stroke")
    args = parser.parse_args()

    accuracies = [60.0, 70.0, 80.0, 90.0, 95.0]
    noise_levels = [0.0, 0.02, 0.05, 0.1]  # fraction of the radius

    for method in (FitMethod.DIAMETER, FitMethod.THREE_POINT):
        rows = []
        for frac in noise_levels:
            strokes = noisy_circles(args.trials, args.radius, frac * args.radius, args.samples)
            rows.append([f"{frac:.0%}"] + [f"{pass_rate(strokes, a, method):.0f}%" for a in accuracies])
        print_table(
            f"Noisy circles, {method.value} fit",
            ["jitter"] + [f"acc {a:.0f}" for a in accuracies],
            rows,
        )

    # Open arcs close within the offset only at low accuracy settings
    rows = []
    for sweep in (270.0, 330.0, 350.0):
        ticks = arc_stream(samples=args.samples, radius=args.radius, sweep_degrees=sweep)
        pts = [np.array([t.position for t in ticks])]
        rows.append([f"{sweep:.0f}°"] + [f"{pass_rate(pts, a, FitMethod.DIAMETER):.0f}%" for a in accuracies])
    print_table("Open arcs, diameter fit", ["sweep"] + [f"acc {a:.0f}" for a in accuracies], rows)
    print()


if __name__ == "__main__":
    main()
