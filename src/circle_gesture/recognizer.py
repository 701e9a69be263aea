"""Hold-and-draw circle recognition as a four-state interaction.

The host calls ``process()`` once per input update with the latest sample
and whether the bound control (and, for pointers, the auxiliary button) is
held. The recognizer answers with the phase event for that tick:

    WAITING --actuated--> STARTED --circle closed--> PERFORMED
                             |                          |
                             +--released / timeout------+--> CANCELED (back to WAITING)

Usage:
    recognizer = GestureRecognizer(RecognitionParameters(accuracy_percent=80))
    recognizer.on_event(lambda evt: print(evt.event, evt.duration))
    # In the input loop:
    event = recognizer.process(Sample.at(x, y, now), is_actuated=pressed)
"""

from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Hashable, Optional

import numpy as np

from circle_gesture.buffer import GestureBuffer, Sample
from circle_gesture.config import RecognitionParameters
from circle_gesture.geometry import (
    Circle,
    FitMethod,
    evaluate_circle,
    fit_circle,
    incorrect_points,
)
from circle_gesture.profiler import RecognizerProfiler

logger = logging.getLogger("circle_gesture.recognizer")


class Phase(Enum):
    WAITING = "waiting"
    STARTED = "started"
    PERFORMED = "performed"


class PhaseEvent(Enum):
    NONE = "none"
    STARTED = "started"
    PERFORMED = "performed"
    CANCELED = "canceled"


class _TriggerHeld:
    """Latch used when a trigger is required but the host names no token."""

    def __repr__(self):
        return "<trigger held>"


TRIGGER_HELD = _TriggerHeld()


@dataclass
class GestureEvent:
    """Delivered to callbacks for every STARTED, PERFORMED or CANCELED event."""
    event: PhaseEvent
    phase: Phase  # phase after the transition
    timestamp: float
    duration: float  # seconds since the attempt started
    sample_count: int
    circle: Optional[Circle] = None
    reason: str = ""  # why a CANCELED fired: "timeout" or "released"


class GestureRecognizer:
    """Stateful recognizer for one input device.

    Owns the sample buffer of the current attempt. The fit method and all
    thresholds come from ``parameters`` and never change mid-attempt.
    """

    def __init__(
        self,
        parameters: Optional[RecognitionParameters] = None,
        profiler: Optional[RecognizerProfiler] = None,
    ):
        self._params = parameters or RecognitionParameters()
        self._profiler = profiler
        self._buffer = GestureBuffer(self._params.duplicate_policy)
        self._phase = Phase.WAITING
        self._latch: Any = None
        self._attempt_start: Optional[float] = None
        self._last_circle: Optional[Circle] = None
        self._callbacks: list[Callable[[GestureEvent], None]] = []

    def on_event(self, callback: Callable[[GestureEvent], None]):
        """Register a callback for phase events."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[GestureEvent], None]):
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def process(
        self,
        sample: Sample,
        is_actuated: bool,
        is_trigger_held: bool = True,
        trigger: Optional[Hashable] = None,
    ) -> PhaseEvent:
        """Advance the state machine by one tick.

        Args:
            sample: Position and timestamp reported this tick.
            is_actuated: Whether the bound control is held.
            is_trigger_held: Whether the auxiliary button is held. Devices
                without one leave it at True.
            trigger: Optional token naming the button that is held. The token
                seen at start is latched; the attempt cancels once that token
                is no longer reported as held.
        """
        with self._stage("tick"):
            if self._phase == Phase.WAITING:
                return self._process_waiting(sample, is_actuated, is_trigger_held, trigger)
            if self._phase == Phase.STARTED:
                return self._process_started(sample, is_actuated, is_trigger_held, trigger)
            return self._process_performed(sample, is_actuated, is_trigger_held, trigger)

    def reset(self):
        """Drop the current attempt and return to WAITING without an event."""
        if self._phase != Phase.WAITING:
            logger.debug("Reset from %s with %d samples", self._phase.value, len(self._buffer))
        if self._phase == Phase.STARTED:
            self._end_attempt("reset", self._buffer.duration)
        self._clear()

    def incorrect_points(self) -> np.ndarray:
        """Buffered points outside the tolerance band of the current fit.

        Read-only view for debug overlays. Does not change the phase, the
        buffer, or ``last_circle``.
        """
        points = self._buffer.points
        circle = fit_circle(points, self._params.fit_method)
        return incorrect_points(
            points, circle, self._params.accuracy_percent, self._params.band_width_rule,
        )

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def buffer(self) -> GestureBuffer:
        return self._buffer

    @property
    def latch(self) -> Any:
        return self._latch

    @property
    def attempt_start(self) -> Optional[float]:
        return self._attempt_start

    @property
    def parameters(self) -> RecognitionParameters:
        return self._params

    @property
    def last_circle(self) -> Optional[Circle]:
        """Circle fitted on the most recent evaluation, if any."""
        return self._last_circle

    # -- phase handlers --

    def _process_waiting(self, sample, is_actuated, is_trigger_held, trigger) -> PhaseEvent:
        if not is_actuated:
            return PhaseEvent.NONE
        if self._params.requires_trigger and not is_trigger_held:
            return PhaseEvent.NONE
        if not sample.is_finite:
            logger.debug("Ignoring non-finite sample while waiting: %r", sample)
            return PhaseEvent.NONE

        self._buffer.clear()
        self._last_circle = None
        self._attempt_start = sample.timestamp
        if trigger is not None:
            self._latch = trigger
        elif self._params.requires_trigger:
            self._latch = TRIGGER_HELD
        else:
            self._latch = None

        if self._profiler is not None:
            self._profiler.begin_attempt()
        with self._stage("buffer"):
            self._buffer.append(sample)
        self._phase = Phase.STARTED
        logger.debug("Started at t=%.3f (latch=%r)", sample.timestamp, self._latch)
        self._emit(PhaseEvent.STARTED, sample.timestamp)
        return PhaseEvent.STARTED

    def _process_started(self, sample, is_actuated, is_trigger_held, trigger) -> PhaseEvent:
        now = self._tick_time(sample)
        elapsed = now - self._attempt_start
        if elapsed > self._params.max_hold_duration:
            return self._cancel(now, "timeout")

        if not is_actuated or not self._latch_held(is_trigger_held, trigger):
            return self._cancel(now, "released")

        with self._stage("buffer"):
            self._buffer.append(sample)

        if elapsed < self._params.min_hold_duration:
            return PhaseEvent.NONE

        with self._evaluation():
            matched, circle = evaluate_circle(
                self._buffer.points,
                self._params.accuracy_percent,
                self._params.fit_method,
                self._params.band_width_rule,
            )
        self._last_circle = circle
        if not matched:
            return PhaseEvent.NONE

        self._end_attempt("performed", elapsed)
        self._phase = Phase.PERFORMED
        logger.debug(
            "Performed after %.3fs with %d samples (%s)",
            elapsed, len(self._buffer), circle,
        )
        self._emit(PhaseEvent.PERFORMED, now, circle=circle)
        return PhaseEvent.PERFORMED

    def _process_performed(self, sample, is_actuated, is_trigger_held, trigger) -> PhaseEvent:
        if not is_actuated or not self._latch_held(is_trigger_held, trigger):
            return self._cancel(self._tick_time(sample), "released")
        return PhaseEvent.NONE

    # -- helpers --

    def _tick_time(self, sample: Sample) -> float:
        """Sample time, never earlier than the newest buffered sample."""
        last = self._buffer.last
        if last is not None and not sample.timestamp >= last.timestamp:
            return last.timestamp
        return sample.timestamp

    def _latch_held(self, is_trigger_held: bool, trigger: Optional[Hashable]) -> bool:
        if self._latch is None:
            return True
        if not is_trigger_held:
            return False
        if self._latch is TRIGGER_HELD or trigger is None:
            return True
        return trigger == self._latch

    def _cancel(self, timestamp: float, reason: str) -> PhaseEvent:
        duration = timestamp - self._attempt_start if self._attempt_start is not None else 0.0
        count = len(self._buffer)
        if self._phase == Phase.STARTED:
            self._end_attempt(reason, duration)
        logger.debug(
            "Canceled (%s) from %s after %.3fs with %d samples",
            reason, self._phase.value, duration, count,
        )
        self._clear()
        self._emit(
            PhaseEvent.CANCELED, timestamp,
            duration=duration, sample_count=count, reason=reason,
        )
        return PhaseEvent.CANCELED

    def _clear(self):
        self._phase = Phase.WAITING
        self._buffer.clear()
        self._latch = None
        self._attempt_start = None
        self._last_circle = None

    def _emit(
        self,
        event: PhaseEvent,
        timestamp: float,
        circle: Optional[Circle] = None,
        duration: Optional[float] = None,
        sample_count: Optional[int] = None,
        reason: str = "",
    ):
        if not self._callbacks:
            return

        if duration is None:
            duration = timestamp - self._attempt_start
        if sample_count is None:
            sample_count = len(self._buffer)

        evt = GestureEvent(
            event=event,
            phase=self._phase,
            timestamp=timestamp,
            duration=duration,
            sample_count=sample_count,
            circle=circle,
            reason=reason,
        )
        for callback in self._callbacks:
            try:
                callback(evt)
            except Exception as e:
                logger.error("Gesture event callback error: %s", e)

    def _stage(self, name: str):
        if self._profiler is None:
            return nullcontext()
        return self._profiler.stage(name)

    def _evaluation(self):
        if self._profiler is None:
            return nullcontext()
        return self._profiler.evaluation(len(self._buffer))

    def _end_attempt(self, outcome: str, duration: float):
        if self._profiler is not None:
            self._profiler.end_attempt(outcome, duration, len(self._buffer))

    @classmethod
    def for_radial_device(cls, accuracy_percent: float = 80.0, **kwargs) -> GestureRecognizer:
        """Recognizer for a normalized two-axis stick (no trigger button)."""
        return cls(RecognitionParameters(
            accuracy_percent=accuracy_percent,
            fit_method=FitMethod.RADIAL,
            requires_trigger=False,
            **kwargs,
        ))
