"""Edge case tests for circle_gesture."""

import math

import numpy as np
import pytest

from circle_gesture.buffer import GestureBuffer, Sample
from circle_gesture.config import RecognitionParameters
from circle_gesture.geometry import (
    FitMethod,
    circumcircle,
    evaluate_circle,
    find_furthest_pair,
    fit_circle,
    incorrect_points,
    is_circle,
)
from circle_gesture.recognizer import GestureRecognizer, Phase, PhaseEvent
from circle_gesture.recorder import StreamPlayer, StreamRecorder
from circle_gesture.synth import with_release


def ring(center=(0.0, 0.0), radius=1.0, n=16):
    """n points evenly around a circle, plus the first again to close it."""
    angles = np.arange(n + 1) * (2 * math.pi / n)
    angles[-1] = 0.0
    return np.column_stack([
        center[0] + radius * np.cos(angles),
        center[1] + radius * np.sin(angles),
    ])


class TestPointSetEdgeCases:
    """Malformed and extreme point sets."""

    def test_empty(self):
        assert find_furthest_pair([]) is None
        assert evaluate_circle([], 80.0, FitMethod.DIAMETER) == (False, None)
        assert incorrect_points([], None, 80.0).shape == (0, 2)

    def test_single_point(self):
        assert find_furthest_pair([[1.0, 1.0]]) is None
        assert fit_circle([[1.0, 1.0]], FitMethod.THREE_POINT) is None

    @pytest.mark.parametrize("method", [FitMethod.DIAMETER, FitMethod.THREE_POINT])
    def test_nan_point_never_matches(self, method):
        pts = ring(radius=5.0)
        pts[5] = [np.nan, np.nan]
        assert not is_circle(pts, 80.0, method)

    def test_inf_point_never_matches(self):
        pts = ring(radius=5.0)
        pts[3] = [np.inf, 0.0]
        assert not is_circle(pts, 80.0)

    def test_identical_points(self):
        pts = np.ones((12, 2))
        matched, circle = evaluate_circle(pts, 80.0, FitMethod.DIAMETER)
        assert not matched
        assert circle.radius == 0.0

    def test_collinear_three(self):
        assert circumcircle((0, 0), (1, 1), (2, 2)) is None
        assert circumcircle((0, 0), (0, 0), (1, 0)) is None

    def test_very_large_coordinates(self):
        pts = ring(center=(1e6, -1e6), radius=1e3)
        matched, circle = evaluate_circle(pts, 90.0, FitMethod.DIAMETER)
        assert matched
        assert circle.center[0] == pytest.approx(1e6)
        assert circle.radius == pytest.approx(1e3)

    def test_very_small_circle(self):
        pts = ring(radius=1e-6)
        assert is_circle(pts, 90.0)

    def test_negative_quadrant(self):
        pts = ring(center=(-500.0, -250.0), radius=20.0)
        assert is_circle(pts, 80.0, FitMethod.THREE_POINT)

    def test_accuracy_one_hundred_cardinal_points(self):
        # Cardinal points land exactly on the fitted circle
        pts = ring(radius=3.0, n=4)
        assert is_circle(pts, 100.0)


class TestSampleEdgeCases:
    def test_nan_sample_not_finite(self):
        assert not Sample.at(np.nan, 0.0, 0.0).is_finite
        assert not Sample.at(0.0, 0.0, np.inf).is_finite
        assert Sample.at(-1e9, 1e9, 0.0).is_finite

    def test_buffer_rejects_non_finite(self):
        buf = GestureBuffer()
        assert not buf.append(Sample.at(np.nan, 1.0, 0.0))
        assert not buf.append(Sample.at(1.0, 1.0, np.nan))
        assert len(buf) == 0


class TestRecognizerEdgeCases:
    def test_nan_sample_does_not_start(self):
        rec = GestureRecognizer()
        assert rec.process(Sample.at(np.nan, 0.0, 0.0), True) == PhaseEvent.NONE
        assert rec.phase == Phase.WAITING

    def test_nan_sample_mid_attempt_skipped(self):
        rec = GestureRecognizer(RecognitionParameters(min_hold_duration=0.1))
        rec.process(Sample.at(0.0, 0.0, 0.0), True)
        assert rec.process(Sample.at(np.nan, 1.0, 0.05), True) == PhaseEvent.NONE
        assert rec.process(Sample.at(1.0, 1.0, np.nan), True) == PhaseEvent.NONE
        assert rec.phase == Phase.STARTED
        assert len(rec.buffer) == 1

    def test_nan_timestamp_cannot_block_timeout(self):
        rec = GestureRecognizer(RecognitionParameters(max_hold_duration=0.5))
        rec.process(Sample.at(0.0, 0.0, 0.0), True)
        rec.process(Sample.at(1.0, 0.0, np.nan), True)
        assert rec.process(Sample.at(2.0, 0.0, 0.6), True) == PhaseEvent.CANCELED

    def test_out_of_order_sample_dropped(self):
        rec = GestureRecognizer(RecognitionParameters(min_hold_duration=0.1))
        rec.process(Sample.at(0.0, 0.0, 0.0), True)
        rec.process(Sample.at(1.0, 0.0, 0.2), True)
        assert rec.process(Sample.at(2.0, 0.0, 0.1), True) == PhaseEvent.NONE
        assert [s.timestamp for s in rec.buffer] == [0.0, 0.2]

    def test_release_on_first_tick(self):
        rec = GestureRecognizer()
        rec.process(Sample.at(0.0, 0.0, 0.0), True)
        assert rec.process(Sample.at(0.0, 0.0, 0.0), False) == PhaseEvent.CANCELED
        assert rec.phase == Phase.WAITING

    def test_reset_when_waiting(self):
        rec = GestureRecognizer()
        rec.reset()
        assert rec.phase == Phase.WAITING
        assert len(rec.buffer) == 0

    def test_incorrect_points_with_empty_buffer(self):
        rec = GestureRecognizer()
        assert rec.incorrect_points().shape == (0, 2)

    def test_min_equals_max_hold(self):
        params = RecognitionParameters(min_hold_duration=0.5, max_hold_duration=0.5)
        rec = GestureRecognizer(params)
        rec.process(Sample.at(0.0, 0.0, 0.0), True)
        assert rec.process(Sample.at(1.0, 0.0, 0.5), True) == PhaseEvent.NONE
        assert rec.process(Sample.at(2.0, 0.0, 0.51), True) == PhaseEvent.CANCELED


class TestRecorderEdgeCases:
    def test_empty_recording_roundtrip(self, tmp_path):
        rec = StreamRecorder()
        rec.start()
        rec.stop()
        path = tmp_path / "empty.json"
        rec.save(path)

        player = StreamPlayer.load(path)
        assert player.tick_count == 0
        assert player.duration == 0.0
        assert player.replay(GestureRecognizer()) == []

    def test_add_tick_when_not_recording(self):
        rec = StreamRecorder()
        rec.add_tick(Sample.at(0.0, 0.0, 0.0), True)
        assert rec.tick_count == 0

    def test_release_of_nothing(self):
        assert with_release([]) == []
