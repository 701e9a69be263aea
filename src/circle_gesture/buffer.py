"""Per-attempt sample storage for the circle recognizer."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

import numpy as np

logger = logging.getLogger("circle_gesture.buffer")


@dataclass(frozen=True)
class Sample:
    """A 2D position reported by the host at a given time (seconds)."""
    position: tuple[float, float]
    timestamp: float

    def __post_init__(self):
        x, y = self.position
        object.__setattr__(self, "position", (float(x), float(y)))
        object.__setattr__(self, "timestamp", float(self.timestamp))

    @classmethod
    def at(cls, x: float, y: float, timestamp: float) -> Sample:
        return cls(position=(x, y), timestamp=timestamp)

    @property
    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (*self.position, self.timestamp))


class DuplicatePolicy(Enum):
    """Which repeated positions are dropped before buffering."""
    KEEP = "keep"
    CONSECUTIVE = "consecutive"  # same position as the previous sample
    ANY = "any"  # same position as any buffered sample


class GestureBuffer:
    """Ordered samples collected during one gesture attempt.

    Samples whose timestamp runs backwards are rejected so the buffer stays
    in arrival order. Repeated positions are filtered per ``duplicate_policy``.
    """

    def __init__(self, duplicate_policy: DuplicatePolicy = DuplicatePolicy.CONSECUTIVE):
        self.duplicate_policy = duplicate_policy
        self._samples: list[Sample] = []
        self._seen: set[tuple[float, float]] = set()

    def append(self, sample: Sample) -> bool:
        """Add a sample. Returns False if it was rejected or filtered."""
        if not sample.is_finite:
            logger.debug("Rejecting non-finite sample %r", sample)
            return False

        if self._samples:
            last = self._samples[-1]
            if sample.timestamp < last.timestamp:
                logger.debug(
                    "Rejecting out-of-order sample at t=%.4f (last t=%.4f)",
                    sample.timestamp, last.timestamp,
                )
                return False

            if self.duplicate_policy == DuplicatePolicy.CONSECUTIVE:
                if sample.position == last.position:
                    return False
            elif self.duplicate_policy == DuplicatePolicy.ANY:
                if sample.position in self._seen:
                    return False

        self._samples.append(sample)
        self._seen.add(sample.position)
        return True

    def clear(self):
        self._samples.clear()
        self._seen.clear()

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self._samples)

    @property
    def samples(self) -> tuple[Sample, ...]:
        return tuple(self._samples)

    @property
    def points(self) -> np.ndarray:
        """Buffered positions as a float64 array of shape (N, 2)."""
        if not self._samples:
            return np.empty((0, 2), dtype=np.float64)
        return np.array([s.position for s in self._samples], dtype=np.float64)

    @property
    def first(self) -> Optional[Sample]:
        return self._samples[0] if self._samples else None

    @property
    def last(self) -> Optional[Sample]:
        return self._samples[-1] if self._samples else None

    @property
    def duration(self) -> float:
        """Seconds between the first and last buffered samples."""
        if len(self._samples) < 2:
            return 0.0
        return self._samples[-1].timestamp - self._samples[0].timestamp
