"""circle_gesture - Hold-and-draw circle gesture recognition for 2D input."""

__version__ = "0.1.0"

from circle_gesture.geometry import (
    BandWidthRule,
    Circle,
    FitMethod,
    ToleranceBand,
    evaluate_circle,
    find_furthest_pair,
    fit_circle,
    fit_circle_by_diameter,
    fit_circle_by_three_points,
    fit_circle_for_radial_device,
    incorrect_points,
    is_circle,
    is_evenly_distributed_on_radial_circle,
    is_within_tolerance_band,
    off_rim_points,
    on_rim,
)
from circle_gesture.buffer import DuplicatePolicy, GestureBuffer, Sample
from circle_gesture.config import HostSettings, RecognitionParameters
from circle_gesture.recognizer import GestureEvent, GestureRecognizer, Phase, PhaseEvent
from circle_gesture.recorder import RecordedTick, RecordingError, StreamPlayer, StreamRecorder
from circle_gesture.profiler import RecognizerProfiler
