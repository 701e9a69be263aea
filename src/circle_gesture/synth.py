"""Synthetic input streams for tests, demos and benchmarks.

Every generator returns a list of RecordedTick with evenly spaced timestamps
and the control held throughout. Use ``with_release`` to append the tick on
which the control is let go.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from circle_gesture.recorder import RecordedTick


def _ticks(
    points: np.ndarray,
    duration: float,
    start_time: float,
    trigger: Optional[str],
) -> list[RecordedTick]:
    times = np.linspace(start_time, start_time + duration, len(points))
    return [
        RecordedTick(
            timestamp=float(t),
            position=[float(p[0]), float(p[1])],
            trigger=trigger,
        )
        for t, p in zip(times, points)
    ]


def circle_stream(
    samples: int = 16,
    radius: float = 5.0,
    center: tuple[float, float] = (0.0, 0.0),
    duration: float = 0.3,
    start_time: float = 0.0,
    start_angle: float = 0.0,
    clockwise: bool = False,
    noise: float = 0.0,
    seed: int = 0,
    trigger: Optional[str] = None,
) -> list[RecordedTick]:
    """One full turn; the last sample lands back on the first.

    ``noise`` adds gaussian jitter (same units as ``radius``) to every sample
    except the first and last, so the path still closes.
    """
    sweep = -2 * math.pi if clockwise else 2 * math.pi
    angles = start_angle + np.linspace(0.0, sweep, samples)
    points = np.column_stack([
        center[0] + radius * np.cos(angles),
        center[1] + radius * np.sin(angles),
    ])
    if noise > 0 and samples > 2:
        rng = np.random.default_rng(seed)
        points[1:-1] += rng.normal(0.0, noise, size=(samples - 2, 2))
    return _ticks(points, duration, start_time, trigger)


def arc_stream(
    samples: int = 16,
    radius: float = 5.0,
    sweep_degrees: float = 180.0,
    duration: float = 0.3,
    start_time: float = 0.0,
    trigger: Optional[str] = None,
) -> list[RecordedTick]:
    """A partial turn that never comes back to its start."""
    angles = np.linspace(0.0, math.radians(sweep_degrees), samples)
    points = np.column_stack([radius * np.cos(angles), radius * np.sin(angles)])
    return _ticks(points, duration, start_time, trigger)


def line_stream(
    samples: int = 22,
    length: float = 10.0,
    duration: float = 2.1,
    start_time: float = 0.0,
    trigger: Optional[str] = None,
) -> list[RecordedTick]:
    """Straight horizontal stroke from the origin."""
    xs = np.linspace(0.0, length, samples)
    points = np.column_stack([xs, np.zeros(samples)])
    return _ticks(points, duration, start_time, trigger)


def stick_circle_stream(
    samples: int = 16,
    duration: float = 0.3,
    start_time: float = 0.0,
) -> list[RecordedTick]:
    """Stick pushed to full deflection and rolled once around its rim."""
    return circle_stream(
        samples=samples, radius=1.0, duration=duration, start_time=start_time,
    )


def with_release(ticks: list[RecordedTick], delay: float = 0.02) -> list[RecordedTick]:
    """Copy of ``ticks`` followed by one tick with the control released."""
    if not ticks:
        return []
    last = ticks[-1]
    released = RecordedTick(
        timestamp=last.timestamp + delay,
        position=list(last.position),
        is_actuated=False,
        is_trigger_held=False,
        trigger=None,
    )
    return list(ticks) + [released]


SHAPES = {
    "circle": circle_stream,
    "arc": arc_stream,
    "line": line_stream,
    "stick": stick_circle_stream,
}
