"""Integration tests: full flows across multiple components."""

import json

import pytest
from typer.testing import CliRunner

from circle_gesture.cli import app
from circle_gesture.config import RecognitionParameters
from circle_gesture.geometry import FitMethod
from circle_gesture.profiler import RecognizerProfiler
from circle_gesture.recognizer import GestureRecognizer, PhaseEvent
from circle_gesture.recorder import RecordedTick, StreamPlayer, StreamRecorder, save_ticks
from circle_gesture.synth import circle_stream, line_stream, stick_circle_stream, with_release

runner = CliRunner()


class TestRecordThenReplay:
    def test_live_and_replayed_events_match(self, tmp_path):
        """Events seen live are reproduced when the recording is replayed."""
        params = RecognitionParameters(min_hold_duration=0.1)
        live = GestureRecognizer(params)
        recorder = StreamRecorder()
        recorder.start()

        live_events = []
        for tick in with_release(circle_stream()):
            sample = tick.to_sample()
            recorder.add_tick(sample, tick.is_actuated, tick.is_trigger_held, tick.trigger)
            live_events.append(live.process(sample, tick.is_actuated))
        recorder.stop()

        path = tmp_path / "attempt.json"
        recorder.save(path)
        replayed = StreamPlayer.load(path).phase_events(GestureRecognizer(params))

        assert replayed == live_events
        assert replayed.count(PhaseEvent.PERFORMED) == 1
        assert replayed[-1] == PhaseEvent.CANCELED

    def test_yaml_config_drives_recognizer(self, tmp_path):
        config = tmp_path / "circle.yml"
        RecognitionParameters(min_hold_duration=0.1, fit_method=FitMethod.THREE_POINT).to_yaml(config)

        rec = GestureRecognizer(RecognitionParameters.from_yaml(config))
        events = StreamPlayer(with_release(circle_stream())).replay(rec)

        kinds = [e.event for e in events]
        assert kinds == [PhaseEvent.STARTED, PhaseEvent.PERFORMED, PhaseEvent.CANCELED]
        assert events[1].circle.radius == pytest.approx(5.0)
        assert events[2].reason == "released"

    def test_profiler_records_stages(self):
        profiler = RecognizerProfiler()
        rec = GestureRecognizer(RecognitionParameters(min_hold_duration=0.1), profiler=profiler)
        StreamPlayer(circle_stream()).replay(rec)

        summary = profiler.summary()
        assert summary["tick"]["calls"] == 16
        assert summary["buffer"]["calls"] == 16
        assert summary["evaluate"]["calls"] >= 1


class TestCli:
    def test_synth_then_replay(self, tmp_path):
        path = tmp_path / "circle.json"
        result = runner.invoke(app, ["synth", str(path), "--duration", "0.6"])
        assert result.exit_code == 0
        assert "Wrote 17 ticks" in result.output

        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 0
        assert "performed" in result.output
        assert "1 gesture(s) performed." in result.output

    def test_replay_line_performs_nothing(self, tmp_path):
        path = tmp_path / "line.json"
        save_ticks(with_release(line_stream(samples=16, duration=0.6)), path)

        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 0
        assert "[released]" in result.output
        assert "0 gesture(s) performed." in result.output

    def test_replay_with_config_and_override(self, tmp_path):
        path = tmp_path / "stick.json"
        config = tmp_path / "params.yml"
        config.write_text("min_hold_duration: 0.1\naccuracy_percent: 80\n")
        runner.invoke(app, ["synth", str(path), "--shape", "stick"])

        result = runner.invoke(app, ["replay", str(path), "-c", str(config), "--fit-method", "radial"])
        assert result.exit_code == 0
        assert "fit=radial" in result.output
        assert "1 gesture(s) performed." in result.output

    def test_diagnose(self, tmp_path):
        path = tmp_path / "circle.json"
        save_ticks(circle_stream(), path)

        result = runner.invoke(app, ["diagnose", str(path)])
        assert result.exit_code == 0
        assert "Samples:   16" in result.output
        assert "Is circle: yes" in result.output
        assert "Outside band (0):" in result.output

    def test_diagnose_radial_lists_off_rim_samples(self, tmp_path):
        path = tmp_path / "stick.json"
        ticks = stick_circle_stream()
        ticks.insert(5, RecordedTick(timestamp=ticks[5].timestamp, position=[0.5, 0.0]))
        save_ticks(ticks, path)

        result = runner.invoke(app, ["diagnose", str(path), "--fit-method", "radial"])
        assert result.exit_code == 0
        assert "Off rim (1):" in result.output
        assert "(0.5000, 0.0000)" in result.output
        assert "Outside band" not in result.output

    def test_missing_recording(self, tmp_path):
        result = runner.invoke(app, ["replay", str(tmp_path / "nope.json")])
        assert result.exit_code == 1

    def test_corrupt_recording(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"version": 1, "ticks": [{"position": [0, 0]}]}))
        result = runner.invoke(app, ["diagnose", str(path)])
        assert result.exit_code == 1

    def test_unknown_shape(self, tmp_path):
        result = runner.invoke(app, ["synth", str(tmp_path / "x.json"), "--shape", "star"])
        assert result.exit_code == 1

    def test_benchmark_runs(self):
        result = runner.invoke(app, ["benchmark", "--iterations", "10", "--samples", "32"])
        assert result.exit_code == 0
        assert "furthest_pair" in result.output
        assert "Evaluation cost by buffered samples:" in result.output
        assert "Attempts:" in result.output
