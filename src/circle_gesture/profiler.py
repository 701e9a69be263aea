"""Cost accounting for a GestureRecognizer.

Answers two questions a host tuning its sample rate and hold durations has:
how many geometry evaluations does an attempt take before it is decided,
and how does one evaluation's cost grow with the number of buffered samples
(the diameter fit scans every pair, so this grows quadratically).

Usage:
    profiler = RecognizerProfiler()
    recognizer = GestureRecognizer(params, profiler=profiler)
    ...
    print(profiler.attempt_summary())
    print(profiler.evaluation_cost())
"""

from __future__ import annotations

import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass
class StageStats:
    """Timing statistics for a single stage."""
    name: str
    avg_ms: float
    min_ms: float
    max_ms: float
    p95_ms: float
    call_count: int


@dataclass
class AttemptRecord:
    """Cost of one gesture attempt, from STARTED to its outcome."""
    outcome: str  # "performed", "timeout", "released" or "reset"
    duration: float  # gesture time in seconds
    sample_count: int
    ticks: int
    evaluations: int
    evaluation_ms: float


def _size_bucket(size: int) -> int:
    """Largest power of two not above ``size`` (0 for an empty buffer)."""
    return 1 << (size.bit_length() - 1) if size > 0 else 0


class RecognizerProfiler:
    """Stage timings, per-attempt records and evaluation cost by buffer size.

    The recognizer times its ``buffer`` and ``tick`` stages through
    ``stage()`` and each geometry evaluation through ``evaluation()``.
    Attempts are opened and closed by the recognizer as it changes phase.
    """

    STAGES = [
        "buffer",
        "evaluate",
        "tick",
    ]

    def __init__(self, window_size: int = 240, max_attempts: int = 100):
        self._window_size = window_size
        self._timings: dict[str, deque[float]] = {
            s: deque(maxlen=window_size) for s in self.STAGES
        }
        self._counts: dict[str, int] = {s: 0 for s in self.STAGES}
        self._by_size: dict[int, list[float]] = {}
        self._attempts: deque[AttemptRecord] = deque(maxlen=max_attempts)
        self._open: Optional[dict] = None
        self._in_tick = False
        self._enabled = True

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Context manager timing one stage."""
        if not self._enabled:
            yield
            return

        if name not in self._timings:
            self._timings[name] = deque(maxlen=self._window_size)
            self._counts[name] = 0

        if name == "tick":
            self._in_tick = True
        t0 = time.perf_counter()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter() - t0) * 1000.0
            self._timings[name].append(elapsed_ms)
            self._counts[name] += 1
            if name == "tick":
                self._in_tick = False

    @contextmanager
    def evaluation(self, buffer_size: int) -> Iterator[None]:
        """Time one geometry evaluation over ``buffer_size`` samples."""
        t0 = time.perf_counter()
        try:
            with self.stage("evaluate"):
                yield
        finally:
            if self._enabled:
                elapsed_ms = (time.perf_counter() - t0) * 1000.0
                bucket = self._by_size.setdefault(_size_bucket(buffer_size), [0, 0.0, 0.0])
                bucket[0] += 1
                bucket[1] += elapsed_ms
                bucket[2] = max(bucket[2], elapsed_ms)
                if self._open is not None:
                    self._open["evaluations"] += 1
                    self._open["evaluation_ms"] += elapsed_ms

    def begin_attempt(self):
        if not self._enabled:
            return
        self._open = {
            "tick_mark": self._counts["tick"],
            "evaluations": 0,
            "evaluation_ms": 0.0,
        }

    def end_attempt(self, outcome: str, duration: float, sample_count: int):
        """Close the open attempt. Ignored when no attempt is open."""
        if self._open is None:
            return
        # The tick in progress is counted only once its stage exits.
        ticks = self._counts["tick"] - self._open["tick_mark"] + (1 if self._in_tick else 0)
        self._attempts.append(AttemptRecord(
            outcome=outcome,
            duration=duration,
            sample_count=sample_count,
            ticks=ticks,
            evaluations=self._open["evaluations"],
            evaluation_ms=self._open["evaluation_ms"],
        ))
        self._open = None

    @property
    def attempts(self) -> list[AttemptRecord]:
        return list(self._attempts)

    def attempt_summary(self) -> dict:
        """Outcome counts and average evaluation work per finished attempt."""
        attempts = self._attempts
        if not attempts:
            return {"attempts": 0}

        outcomes: dict[str, int] = {}
        for a in attempts:
            outcomes[a.outcome] = outcomes.get(a.outcome, 0) + 1
        n = len(attempts)
        return {
            "attempts": n,
            "outcomes": outcomes,
            "avg_evaluations": round(sum(a.evaluations for a in attempts) / n, 2),
            "avg_evaluation_ms": round(sum(a.evaluation_ms for a in attempts) / n, 4),
            "avg_samples": round(sum(a.sample_count for a in attempts) / n, 1),
        }

    def evaluation_cost(self) -> dict[int, dict]:
        """Evaluation time keyed by buffer size, bucketed by powers of two."""
        return {
            size: {
                "avg_ms": round(total / calls, 4),
                "max_ms": round(worst, 4),
                "calls": calls,
            }
            for size, (calls, total, worst) in sorted(self._by_size.items())
        }

    def get_stage_stats(self, name: str) -> StageStats | None:
        timings = self._timings.get(name)
        if not timings:
            return None

        sorted_t = sorted(timings)
        n = len(sorted_t)
        return StageStats(
            name=name,
            avg_ms=sum(sorted_t) / n,
            min_ms=sorted_t[0],
            max_ms=sorted_t[-1],
            p95_ms=sorted_t[int(n * 0.95)] if n >= 2 else sorted_t[-1],
            call_count=self._counts.get(name, 0),
        )

    def summary(self) -> dict[str, dict]:
        """Stats for every stage that has been timed at least once."""
        result = {}
        for name in self._timings:
            stats = self.get_stage_stats(name)
            if stats and stats.call_count > 0:
                result[name] = {
                    "avg_ms": round(stats.avg_ms, 4),
                    "p95_ms": round(stats.p95_ms, 4),
                    "max_ms": round(stats.max_ms, 4),
                    "calls": stats.call_count,
                }
        return result

    def reset(self):
        for d in self._timings.values():
            d.clear()
        for k in self._counts:
            self._counts[k] = 0
        self._by_size.clear()
        self._attempts.clear()
        self._open = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool):
        self._enabled = value
