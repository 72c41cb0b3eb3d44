"""
Tests for Event Bus, Logging, Performance and Preview
======================================================
"""

import time
import pytest
import numpy as np
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from nebula.core.events import EventBus, Events
from nebula.core.types import FrameResult, PatternId
from nebula.main import parse_args, build_overrides, resolve_log_file
from nebula.modules.utils.config import Config
from nebula.modules.utils.logger import PatternLogger, setup_logging
from nebula.modules.utils.performance_monitor import PerformanceMonitor
from nebula.modules.visualization.pattern_label import PatternLabel
from nebula.modules.visualization.preview import PointCloudPreview

from test_gesture_mapper import FakeClock


class TestEventBus:
    """Test suite for EventBus."""

    def test_priority_order(self):
        bus = EventBus()
        calls = []
        bus.subscribe("evt", lambda **kw: calls.append("low"), priority=0)
        bus.subscribe("evt", lambda **kw: calls.append("high"), priority=10)

        bus.emit("evt")

        assert calls == ["high", "low"]

    def test_handler_error_isolated(self):
        bus = EventBus()
        calls = []

        def broken(**kwargs):
            raise RuntimeError("boom")

        bus.subscribe("evt", broken, priority=5)
        bus.subscribe("evt", lambda **kw: calls.append(kw["value"]))

        delivered = bus.emit("evt", value=3)

        assert calls == [3]
        assert delivered == 1
        assert bus.failure_count == 1

    def test_equal_priority_keeps_subscription_order(self):
        bus = EventBus()
        calls = []
        for n in range(4):
            bus.subscribe("evt", lambda n=n, **kw: calls.append(n))

        bus.emit("evt")

        assert calls == [0, 1, 2, 3]

    def test_history_filter(self):
        bus = EventBus()
        bus.emit(Events.HAND_DETECTED)
        bus.emit(Events.PATTERN_CHANGED, pattern=PatternId.GRID, name="Stardust Grid")
        bus.emit(Events.HAND_LOST)

        records = bus.get_history(event_name=Events.PATTERN_CHANGED)

        assert len(records) == 1
        assert records[0].keys == ("pattern", "name")
        assert records[0].delivered == 0

    def test_unsubscribe_and_clear(self):
        bus = EventBus()
        handler = lambda **kw: None
        bus.subscribe("a", handler)
        bus.subscribe("b", handler)

        bus.unsubscribe("a", handler)
        assert bus.listener_count == 1

        bus.clear()
        assert bus.listener_count == 0

    def test_history_bounded(self):
        bus = EventBus(max_history=5)
        for _ in range(20):
            bus.emit(Events.HAND_LOST)

        assert len(bus.get_history(last_n=100)) == 5

    def test_instances_independent(self):
        first, second = EventBus(), EventBus()
        calls = []
        first.subscribe("evt", lambda **kw: calls.append(1))

        second.emit("evt")

        assert calls == []


class TestPatternLogger:
    """Test suite for PatternLogger."""

    def test_records_changes(self):
        pattern_logger = PatternLogger(max_history=3)
        for pattern in (PatternId.SPHERE, PatternId.SPIRAL, PatternId.HELIX):
            pattern_logger.on_pattern_changed(pattern=pattern, name=pattern.display_name)
        pattern_logger.on_advance_requested(source="keyboard")

        history = pattern_logger.get_history()
        assert len(history) == 3
        assert history[-1]["kind"] == "advance"
        assert history[-1]["source"] == "keyboard"
        assert history[0]["name"] == "Spiral Nebula"
        assert pattern_logger.total_changes == 2

    def test_setup_logging_file(self, tmp_path):
        log_file = tmp_path / "logs" / "nebula.log"
        root = setup_logging(level="DEBUG", log_file=str(log_file))

        assert len(root.handlers) == 2
        assert log_file.parent.exists()
        for handler in root.handlers:
            handler.close()
        root.handlers.clear()


class TestPerformanceMonitor:
    """Test suite for PerformanceMonitor."""

    def test_measure_records_latency(self):
        monitor = PerformanceMonitor()
        with monitor.measure("render"):
            time.sleep(0.01)

        assert monitor.get_stage_latency("render") >= 5.0
        assert monitor.get_stage_latency("camera") == 0.0

    def test_measure_records_on_error(self):
        monitor = PerformanceMonitor()
        with pytest.raises(ValueError):
            with monitor.measure("generate"):
                raise ValueError("bad")

        assert monitor.get_stage_latency("generate") >= 0.0
        assert "generate" in monitor.get_report()["stages"]

    def test_stage_peak(self):
        monitor = PerformanceMonitor(window_size=3)
        for elapsed in (2.0, 9.0, 4.0):
            monitor.record("render", elapsed)

        assert monitor.get_stage_peak("render") == 9.0
        assert monitor.get_stage_latency("render") == pytest.approx(5.0)
        assert monitor.get_stage_peak("camera") == 0.0

        monitor.record("render", 1.0)
        monitor.record("render", 1.0)
        assert monitor.get_stage_peak("render") == 4.0

    def test_tick_and_reset(self):
        monitor = PerformanceMonitor()
        for _ in range(5):
            monitor.tick()
            time.sleep(0.002)

        assert monitor.frame_count == 5
        assert monitor.fps > 0.0

        monitor.reset()
        assert monitor.frame_count == 0
        assert monitor.fps == 0.0


class TestPatternLabel:
    """Test suite for the fading pattern label."""

    def test_visible_then_fades(self):
        clock = FakeClock()
        label = PatternLabel(clock=clock)
        label.on_pattern_changed(pattern=PatternId.HELIX, name="Quantum Helix")

        assert label.text == "Quantum Helix"
        assert label.opacity() == 1.0

        clock.advance(2.25)
        assert label.opacity() == pytest.approx(0.5)

        clock.advance(0.5)
        assert label.opacity() == 0.0
        assert not label.is_active
        assert label.text is None

    def test_render_draws_text(self):
        label = PatternLabel(clock=FakeClock())
        label.show("Cosmic Sphere")
        frame = np.zeros((200, 400, 3), dtype=np.uint8)

        label.render(frame)

        assert frame.any()


class TestPointCloudPreview:
    """Test suite for the OpenCV preview renderer."""

    @pytest.fixture
    def preview(self):
        return PointCloudPreview({"width": 320, "height": 240, "show_hud": False})

    def test_origin_projects_to_center(self, preview):
        pixels, visible = preview.project(np.zeros(3, dtype=np.float32), (0.0, 5.0, 100.0))

        assert visible[0]
        assert tuple(pixels[0]) == (160, 120)

    def test_point_behind_camera_hidden(self, preview):
        positions = np.array([0.0, 0.0, 200.0], dtype=np.float32)
        _, visible = preview.project(positions, (0.0, 0.0, 100.0))
        assert not visible[0]

    def test_render_frame(self, preview):
        result = FrameResult()
        result.positions = np.zeros(6, dtype=np.float32)
        result.colors = np.ones(6, dtype=np.float32)
        result.camera_position = (0.0, 0.0, 100.0)

        image = preview.render(result)

        assert image.shape == (240, 320, 3)
        assert image.dtype == np.uint8
        assert image[120, 160].max() > 0


class TestCommandLine:
    """Test suite for CLI parsing."""

    def test_overrides(self):
        args = parse_args(["--particles", "5000", "--patterns", "extended", "--seed", "4",
                           "--camera", "1", "--no-camera"])
        overrides = build_overrides(args)

        assert args.no_camera
        assert overrides == {
            "camera": {"device_id": 1},
            "particles": {"count": 5000, "pattern_set": "extended", "seed": 4},
        }

    def test_no_flags_no_overrides(self):
        assert build_overrides(parse_args([])) == {}

    def test_start_pattern_flag(self):
        args = parse_args(["--pattern", "Cube_Grid"])

        assert args.pattern == "cube_grid"
        assert build_overrides(args) == {"particles": {"start_pattern": "cube_grid"}}

    def test_unknown_start_pattern_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["--pattern", "blob"])

    def test_log_file_anchored_at_project_root(self):
        Config.reset()
        try:
            config = Config()
            assert resolve_log_file(config) is None

            config.override({"logging": {"file": "logs/nebula.log"}})
            assert resolve_log_file(config) == str(Path(config.base_dir) / "logs" / "nebula.log")

            absolute = str(Path(config.base_dir).anchor) + "tmp/nebula.log"
            config.override({"logging": {"file": absolute}})
            assert resolve_log_file(config) == absolute
        finally:
            Config.reset()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
