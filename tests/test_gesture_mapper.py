"""
Tests for Gesture Signal Mapping
=================================
"""

from collections import namedtuple

import pytest
import numpy as np
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from nebula.core.types import ControlOutput, ControlState
from nebula.modules.control.debouncer import AdvanceDebouncer
from nebula.modules.control.gesture_mapper import (
    GestureSignalMapper, GestureMapperConfig, to_landmark_array,
)

Landmark = namedtuple("Landmark", ["x", "y", "z"])


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def create_mock_landmarks(
    wrist_x: float = 0.5,
    wrist_y: float = 0.6,
    pointing: bool = False,
    pinch: float = None,
) -> np.ndarray:
    """
    Create a (21, 3) landmark array for one hand.

    Args:
        wrist_x, wrist_y: Normalized wrist position
        pointing: Index finger extended upwards, others curled
        pinch: Thumb-to-index-tip distance; None keeps a natural thumb

    Returns:
        np.ndarray of shape (21, 3)
    """
    points = np.zeros((21, 3), dtype=np.float64)
    points[0] = (wrist_x, wrist_y, 0.0)

    # Thumb (1-4)
    for k, off in enumerate([0.02, 0.04, 0.06, 0.08]):
        points[1 + k] = (wrist_x - 0.05 - off, wrist_y - off, 0.0)

    # Index (5-8): MCP, PIP, DIP, TIP
    tip_off = 0.35 if pointing else 0.10
    for k, off in enumerate([0.08, 0.14, 0.20, tip_off]):
        points[5 + k] = (wrist_x - 0.05, wrist_y - off, 0.0)

    # Middle (9-12), ring (13-16), pinky (17-20): curled
    for base, dx in ((9, 0.0), (13, 0.05), (17, 0.1)):
        for k, off in enumerate([0.09, 0.15, 0.13, 0.11]):
            points[base + k] = (wrist_x + dx, wrist_y - off, 0.0)

    if pinch is not None:
        points[4] = points[8] + np.array([pinch, 0.0, 0.0])
    return points


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mapper(clock):
    return GestureSignalMapper(GestureMapperConfig(), clock=clock)


@pytest.fixture
def swipe_mapper(clock):
    return GestureSignalMapper(GestureMapperConfig(advance_mode="swipe"), clock=clock)


class TestGestureMapperConfig:
    """Test suite for GestureMapperConfig."""

    def test_default_values(self):
        config = GestureMapperConfig()

        assert config.zoom_mode == "wrist_height"
        assert config.advance_mode == "pointing"

    def test_out_of_range_values_clamped(self, caplog):
        with caplog.at_level("WARNING"):
            config = GestureMapperConfig(swipe_trigger=-0.5, swipe_reset=0.3,
                                         pip_margin=-1.0, cooldown_sec=-3.0)

        assert config.swipe_trigger == 0.01
        assert config.swipe_reset == 0.0
        assert config.pip_margin == 0.0
        assert config.cooldown_sec == 0.0
        assert "gesture.swipe_trigger" in caplog.text
        assert "clamped" in caplog.text

    def test_swapped_ranges_warn(self, caplog):
        with caplog.at_level("WARNING"):
            config = GestureMapperConfig(min_z=300.0, max_z=50.0, min_pinch=0.3, max_pinch=0.1)

        assert (config.min_z, config.max_z) == (50.0, 300.0)
        assert (config.min_pinch, config.max_pinch) == (0.1, 0.3)
        assert "min_z" in caplog.text and "swapped" in caplog.text

    def test_negative_swipe_trigger_does_not_fire_when_still(self, clock):
        config = GestureMapperConfig(advance_mode="swipe", swipe_trigger=-0.5, cooldown_sec=0.0)
        mapper = GestureSignalMapper(config, clock=clock)

        fired = [mapper.map(create_mock_landmarks(wrist_x=0.4)).advance_event for _ in range(10)]

        assert not any(fired)
        assert config.min_z == 40.0
        assert config.max_z == 250.0
        assert config.cooldown_sec == 2.0

    def test_from_dict_partial(self):
        config = GestureMapperConfig.from_dict({"zoom_mode": "pinch", "cooldown_sec": 1})

        assert config.zoom_mode == "pinch"
        assert config.cooldown_sec == 1.0
        assert config.advance_mode == "pointing"

    def test_unknown_modes_fall_back(self):
        config = GestureMapperConfig(zoom_mode="elbow", advance_mode="wink")

        assert config.zoom_mode == "wrist_height"
        assert config.advance_mode == "pointing"


class TestLandmarkInput:
    """Test suite for landmark normalization."""

    def test_accepts_attribute_objects(self):
        points = create_mock_landmarks()
        objects = [Landmark(*p) for p in points]

        arr = to_landmark_array(objects)

        assert arr.shape == (21, 3)
        assert np.allclose(arr, points)

    def test_rejects_short_input(self):
        assert to_landmark_array(create_mock_landmarks()[:10]) is None
        assert to_landmark_array([]) is None
        assert to_landmark_array(None) is None

    def test_rejects_non_finite(self):
        points = create_mock_landmarks()
        points[8, 1] = np.nan
        assert to_landmark_array(points) is None


class TestZoom:
    """Test suite for zoom mapping."""

    def test_no_hand_keeps_zoom(self, mapper):
        out = mapper.map(None)

        assert isinstance(out, ControlOutput)
        assert out.hand_detected is False
        assert out.advance_event is False
        assert out.zoom_target == 100.0

    @pytest.mark.parametrize("wrist_y,expected", [
        (0.0, 250.0), (1.0, 40.0), (0.5, 145.0), (-0.4, 250.0), (1.6, 40.0),
    ])
    def test_wrist_height(self, mapper, wrist_y, expected):
        out = mapper.map(create_mock_landmarks(wrist_y=wrist_y))

        assert out.hand_detected is True
        assert out.zoom_target == pytest.approx(expected)

    def test_zoom_held_after_hand_lost(self, mapper):
        mapper.map(create_mock_landmarks(wrist_y=0.0))
        out = mapper.map(None)
        assert out.zoom_target == pytest.approx(250.0)

    @pytest.mark.parametrize("pinch,expected", [
        (0.0, 40.0), (0.02, 40.0), (0.25, 250.0), (0.6, 250.0), (0.135, 145.0),
    ])
    def test_pinch(self, clock, pinch, expected):
        mapper = GestureSignalMapper(GestureMapperConfig(zoom_mode="pinch"), clock=clock)
        out = mapper.map(create_mock_landmarks(pinch=pinch))
        assert out.zoom_target == pytest.approx(expected)


class TestPointingAdvance:
    """Test suite for the pointing-up advance gesture."""

    def test_pose_detection(self, mapper):
        assert mapper.is_pointing_up(create_mock_landmarks(pointing=True))
        assert not mapper.is_pointing_up(create_mock_landmarks(pointing=False))

    def test_fires_once_while_held(self, mapper, clock):
        fired = []
        for _ in range(10):
            fired.append(mapper.map(create_mock_landmarks(pointing=True)).advance_event)
            clock.advance(0.5)

        assert fired.count(True) == 1
        assert fired[0] is True

    def test_cooldown_after_release(self, mapper, clock):
        """A fresh pose inside the cooldown is dropped, after it fires."""
        assert mapper.map(create_mock_landmarks(pointing=True)).advance_event

        clock.advance(0.5)
        mapper.map(create_mock_landmarks(pointing=False))
        clock.advance(0.5)
        assert not mapper.map(create_mock_landmarks(pointing=True)).advance_event

        clock.advance(0.5)
        mapper.map(create_mock_landmarks(pointing=False))
        clock.advance(1.0)
        assert mapper.map(create_mock_landmarks(pointing=True)).advance_event

    def test_hand_lost_rearms(self, mapper, clock):
        assert mapper.map(create_mock_landmarks(pointing=True)).advance_event
        clock.advance(2.5)
        mapper.map(None)
        assert mapper.map(create_mock_landmarks(pointing=True)).advance_event


class TestSwipeAdvance:
    """Test suite for the rightward swipe advance gesture."""

    def test_swipe_fires(self, swipe_mapper):
        assert not swipe_mapper.map(create_mock_landmarks(wrist_x=0.1)).advance_event
        assert not swipe_mapper.map(create_mock_landmarks(wrist_x=0.2)).advance_event
        assert swipe_mapper.map(create_mock_landmarks(wrist_x=0.35)).advance_event
        assert swipe_mapper.swipe_distance == 0.0

    def test_leftward_step_resets(self, swipe_mapper):
        """0.15 right, then a small step left, needs a fresh 0.2 to fire."""
        swipe_mapper.map(create_mock_landmarks(wrist_x=0.10))
        swipe_mapper.map(create_mock_landmarks(wrist_x=0.25))
        assert swipe_mapper.swipe_distance == pytest.approx(0.15)

        swipe_mapper.map(create_mock_landmarks(wrist_x=0.22))
        assert swipe_mapper.swipe_distance == 0.0

        assert not swipe_mapper.map(create_mock_landmarks(wrist_x=0.35)).advance_event
        assert swipe_mapper.map(create_mock_landmarks(wrist_x=0.48)).advance_event

    def test_tiny_leftward_drift_does_not_reset(self, swipe_mapper):
        swipe_mapper.map(create_mock_landmarks(wrist_x=0.10))
        swipe_mapper.map(create_mock_landmarks(wrist_x=0.25))
        swipe_mapper.map(create_mock_landmarks(wrist_x=0.24))
        assert swipe_mapper.swipe_distance == pytest.approx(0.15)

    def test_swipe_in_cooldown_dropped(self, swipe_mapper, clock):
        swipe_mapper.map(create_mock_landmarks(wrist_x=0.1))
        assert swipe_mapper.map(create_mock_landmarks(wrist_x=0.35)).advance_event

        clock.advance(0.5)
        swipe_mapper.map(create_mock_landmarks(wrist_x=0.35))
        clock.advance(0.1)
        assert not swipe_mapper.map(create_mock_landmarks(wrist_x=0.6)).advance_event
        assert swipe_mapper.swipe_distance == 0.0

        clock.advance(2.0)
        swipe_mapper.map(create_mock_landmarks(wrist_x=0.3))
        clock.advance(0.1)
        assert swipe_mapper.map(create_mock_landmarks(wrist_x=0.55)).advance_event

    def test_hand_lost_clears_accumulator(self, swipe_mapper):
        swipe_mapper.map(create_mock_landmarks(wrist_x=0.1))
        swipe_mapper.map(create_mock_landmarks(wrist_x=0.25))
        swipe_mapper.map(None)

        assert swipe_mapper.swipe_distance == 0.0
        swipe_mapper.map(create_mock_landmarks(wrist_x=0.3))
        assert not swipe_mapper.map(create_mock_landmarks(wrist_x=0.4)).advance_event


class TestAdvanceDebouncer:
    """Test suite for AdvanceDebouncer."""

    def test_cooldown_boundary(self):
        debouncer = AdvanceDebouncer(cooldown_sec=2.0, require_release=False)

        assert debouncer.try_fire(True, now=10.0)
        assert not debouncer.try_fire(True, now=11.9)
        assert debouncer.try_fire(True, now=12.0)
        assert debouncer.last_fire_time == 12.0

    def test_reset(self):
        debouncer = AdvanceDebouncer(cooldown_sec=5.0)
        debouncer.try_fire(True, now=0.0)
        debouncer.reset()

        assert debouncer.last_fire_time is None
        assert debouncer.try_fire(True, now=0.1)


class TestControlState:
    """Test suite for the shared control state."""

    def test_advance_latched_until_consumed(self):
        state = ControlState()
        state.apply(ControlOutput(120.0, advance_event=True, hand_detected=True))
        state.apply(ControlOutput(130.0, advance_event=False, hand_detected=True))

        assert state.target_zoom == 130.0
        assert state.consume_advance() is True
        assert state.consume_advance() is False

    def test_repeated_requests_collapse(self):
        state = ControlState()
        state.request_advance()
        state.request_advance()

        assert state.consume_advance() is True
        assert state.consume_advance() is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
