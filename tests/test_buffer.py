"""Tests for samples and the per-attempt gesture buffer."""

import dataclasses

import numpy as np
import pytest

from circle_gesture.buffer import DuplicatePolicy, GestureBuffer, Sample


class TestSample:
    def test_coerces_to_floats(self):
        s = Sample(position=(1, 2), timestamp=3)
        assert s.position == (1.0, 2.0)
        assert isinstance(s.position[0], float)
        assert s.timestamp == 3.0

    def test_accepts_numpy_position(self):
        s = Sample(position=np.array([0.5, -0.5]), timestamp=0.0)
        assert s.position == (0.5, -0.5)

    def test_immutable(self):
        s = Sample.at(1.0, 2.0, 0.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            s.timestamp = 1.0


class TestGestureBuffer:
    def test_append_and_points(self):
        buf = GestureBuffer()
        assert buf.append(Sample.at(0, 0, 0.0))
        assert buf.append(Sample.at(1, 2, 0.1))
        assert len(buf) == 2
        np.testing.assert_allclose(buf.points, [[0, 0], [1, 2]])
        assert buf.points.dtype == np.float64

    def test_empty_points_shape(self):
        buf = GestureBuffer()
        assert buf.points.shape == (0, 2)
        assert buf.first is None
        assert buf.last is None
        assert buf.duration == 0.0

    def test_consecutive_duplicates_dropped(self):
        buf = GestureBuffer(DuplicatePolicy.CONSECUTIVE)
        buf.append(Sample.at(1, 1, 0.0))
        assert not buf.append(Sample.at(1, 1, 0.1))
        assert buf.append(Sample.at(2, 2, 0.2))
        assert buf.append(Sample.at(1, 1, 0.3))  # not consecutive
        assert len(buf) == 3

    def test_any_duplicates_dropped(self):
        buf = GestureBuffer(DuplicatePolicy.ANY)
        buf.append(Sample.at(1, 1, 0.0))
        buf.append(Sample.at(2, 2, 0.1))
        assert not buf.append(Sample.at(1, 1, 0.2))
        assert len(buf) == 2

    def test_keep_policy(self):
        buf = GestureBuffer(DuplicatePolicy.KEEP)
        for t in range(4):
            assert buf.append(Sample.at(1, 1, t * 0.1))
        assert len(buf) == 4

    def test_out_of_order_rejected(self):
        buf = GestureBuffer()
        buf.append(Sample.at(0, 0, 1.0))
        assert not buf.append(Sample.at(1, 1, 0.5))
        assert len(buf) == 1
        assert buf.last.timestamp == 1.0

    def test_equal_timestamps_accepted(self):
        buf = GestureBuffer()
        buf.append(Sample.at(0, 0, 1.0))
        assert buf.append(Sample.at(1, 1, 1.0))

    def test_clear(self):
        buf = GestureBuffer(DuplicatePolicy.ANY)
        buf.append(Sample.at(1, 1, 0.0))
        buf.clear()
        assert len(buf) == 0
        # Seen positions are forgotten too
        assert buf.append(Sample.at(1, 1, 0.0))

    def test_duration_and_iteration(self):
        buf = GestureBuffer()
        buf.append(Sample.at(0, 0, 0.25))
        buf.append(Sample.at(1, 0, 0.75))
        assert buf.duration == pytest.approx(0.5)
        assert [s.timestamp for s in buf] == [0.25, 0.75]
        assert buf.samples[0].position == (0.0, 0.0)
