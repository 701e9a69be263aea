"""Input stream recording and replay.

Capture the exact ticks a host fed to a recognizer so a gesture attempt can
be replayed later:
- Reproducible tests without an input device
- Diagnosing why a drawn circle was rejected
- Tuning accuracy / hold settings against real recordings
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterator, Optional

from circle_gesture.buffer import Sample
from circle_gesture.recognizer import GestureEvent, GestureRecognizer, PhaseEvent

FORMAT_VERSION = 1


class RecordingError(ValueError):
    """A recording file is missing fields or is not valid JSON."""


@dataclass
class RecordedTick:
    """One host update: the sample and the button state that came with it."""
    timestamp: float
    position: list[float]  # [x, y]
    is_actuated: bool = True
    is_trigger_held: bool = True
    trigger: Optional[str] = None

    def to_sample(self) -> Sample:
        return Sample(position=(self.position[0], self.position[1]), timestamp=self.timestamp)


class StreamRecorder:
    """Collects ticks and writes them to a JSON file.

    Usage:
        recorder = StreamRecorder()
        recorder.start()
        # In the input loop, next to recognizer.process(...):
        recorder.add_tick(sample, is_actuated, is_trigger_held)
        # When done:
        recorder.save("attempt.json")
    """

    def __init__(self):
        self._ticks: list[RecordedTick] = []
        self._recording = False

    def start(self):
        """Begin a new recording session."""
        self._ticks = []
        self._recording = True

    def stop(self) -> int:
        """Stop recording. Returns number of ticks captured."""
        self._recording = False
        return len(self._ticks)

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def tick_count(self) -> int:
        return len(self._ticks)

    @property
    def ticks(self) -> list[RecordedTick]:
        return list(self._ticks)

    def add_tick(
        self,
        sample: Sample,
        is_actuated: bool,
        is_trigger_held: bool = True,
        trigger: Optional[str] = None,
    ):
        if not self._recording:
            return

        self._ticks.append(RecordedTick(
            timestamp=sample.timestamp,
            position=list(sample.position),
            is_actuated=bool(is_actuated),
            is_trigger_held=bool(is_trigger_held),
            trigger=trigger,
        ))

    def save(self, path: str | Path):
        save_ticks(self._ticks, path)


def save_ticks(ticks: list[RecordedTick], path: str | Path):
    """Write ticks to a versioned JSON recording."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    duration = ticks[-1].timestamp - ticks[0].timestamp if ticks else 0.0
    data = {
        "version": FORMAT_VERSION,
        "tick_count": len(ticks),
        "duration": duration,
        "ticks": [asdict(t) for t in ticks],
    }

    with open(path, "w") as f:
        json.dump(data, f)


class StreamPlayer:
    """Replays a recorded tick stream.

    Usage:
        player = StreamPlayer.load("attempt.json")
        events = player.replay(GestureRecognizer(params))
    """

    def __init__(self, ticks: list[RecordedTick]):
        self._ticks = ticks

    @classmethod
    def load(cls, path: str | Path) -> StreamPlayer:
        path = Path(path)
        try:
            with open(path) as f:
                data = json.load(f)
            version = int(data.get("version", FORMAT_VERSION))
            ticks = [
                RecordedTick(
                    timestamp=float(t["timestamp"]),
                    position=[float(v) for v in t["position"]][:2],
                    is_actuated=bool(t.get("is_actuated", True)),
                    is_trigger_held=bool(t.get("is_trigger_held", True)),
                    trigger=t.get("trigger"),
                )
                for t in data["ticks"]
            ]
        except json.JSONDecodeError as e:
            raise RecordingError(f"{path}: not valid JSON ({e})") from e
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise RecordingError(f"{path}: malformed recording ({e})") from e

        if version > FORMAT_VERSION:
            raise RecordingError(f"{path}: unsupported recording version {version}")
        return cls(ticks)

    @property
    def tick_count(self) -> int:
        return len(self._ticks)

    @property
    def duration(self) -> float:
        if not self._ticks:
            return 0.0
        return self._ticks[-1].timestamp - self._ticks[0].timestamp

    def play(self) -> Iterator[RecordedTick]:
        yield from self._ticks

    def replay(self, recognizer: GestureRecognizer) -> list[GestureEvent]:
        """Feed every tick to ``recognizer`` and collect the non-NONE events."""
        events: list[GestureEvent] = []
        recognizer.on_event(events.append)
        try:
            for tick in self._ticks:
                recognizer.process(
                    tick.to_sample(),
                    tick.is_actuated,
                    tick.is_trigger_held,
                    tick.trigger,
                )
        finally:
            recognizer.remove_callback(events.append)
        return events

    def phase_events(self, recognizer: GestureRecognizer) -> list[PhaseEvent]:
        """Per-tick phase events, NONE included."""
        return [
            recognizer.process(t.to_sample(), t.is_actuated, t.is_trigger_held, t.trigger)
            for t in self._ticks
        ]
