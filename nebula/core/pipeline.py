"""
Core pipeline orchestrator for the particle system.

Two entry points, one per loop:

    Perception loop:  landmarks -> GestureSignalMapper -> ControlState
    Render loop:      ControlState -> TransitionEngine / ambient jitter
                      -> CameraRig -> FrameResult

The perception side only writes ControlState; the render side exclusively
owns the particle buffers. Pattern changes can also be requested by any
external trigger through the same command.
"""

import logging
from typing import Optional, Tuple

import numpy as np

from nebula.core.events import EventBus, Events
from nebula.core.types import (
    ControlOutput, ControlState, FrameResult, PatternId,
    PATTERN_SETS, CANONICAL_PATTERNS,
)
from nebula.modules.animation.camera_rig import CameraRig
from nebula.modules.animation.clock import AnimationClock
from nebula.modules.animation.params import AnimationParams
from nebula.modules.control.gesture_mapper import GestureSignalMapper
from nebula.modules.particles.field import ParticleField
from nebula.modules.particles.transition import TransitionEngine
from nebula.modules.utils.performance_monitor import PerformanceMonitor

logger = logging.getLogger(__name__)


class Pipeline:
    """Composable pattern/gesture/animation pipeline.

    Manages:
    - Gesture frames -> zoom target and latched advance requests
    - Pattern cycling with preemptive transitions
    - Per-tick blending or ambient jitter, camera follow
    - Event bus notifications and per-stage timing
    """

    def __init__(
        self,
        params: Optional[AnimationParams] = None,
        mapper: Optional[GestureSignalMapper] = None,
        event_bus: Optional[EventBus] = None,
        performance_monitor: Optional[PerformanceMonitor] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self._params = params or AnimationParams()
        self._bus = event_bus or EventBus()
        self._perf = performance_monitor or PerformanceMonitor()
        self._rng = rng if rng is not None else np.random.default_rng(self._params.seed)

        self._cycle = PATTERN_SETS.get(self._params.pattern_set)
        if self._cycle is None:
            logger.warning("Unknown pattern set %r, using 'canonical'", self._params.pattern_set)
            self._cycle = CANONICAL_PATTERNS
        start = self._resolve_start_pattern(self._params.start_pattern)
        self._pattern_index = self._cycle.index(start)

        # Gesture side
        self._mapper = mapper or GestureSignalMapper()
        mapper_config = self._mapper.config
        self._control = ControlState(self._mapper.zoom_target,
                                     mapper_config.min_z, mapper_config.max_z)
        self._hand_detected = False

        # Render side
        with self._perf.measure("generate"):
            self._field = ParticleField(self._params.particle_count, start, self._rng)
        self._engine = TransitionEngine(self._field, self._bus)
        self._clock = AnimationClock()
        self._camera = CameraRig(
            follow_rate=self._params.camera_follow_rate,
            orbit_speed=self._params.camera_speed,
            distance=self._control.target_zoom,
        )
        self._frame_id = 0

    def _resolve_start_pattern(self, name: Optional[str]) -> PatternId:
        """Pattern shown first: ``name`` if it belongs to the cycle, else the cycle head."""
        if not name:
            return self._cycle[0]
        try:
            pattern = PatternId.from_string(str(name))
        except ValueError:
            logger.warning("Unknown start pattern %r, using %s", name, self._cycle[0].value)
            return self._cycle[0]
        if pattern.is_extended and pattern not in self._cycle:
            logger.warning("Start pattern %r needs the extended pattern set, using %s",
                           name, self._cycle[0].value)
            return self._cycle[0]
        return pattern

    def start(self):
        """Announce startup and the initial pattern to subscribers."""
        self._bus.emit(Events.SYSTEM_STARTED, particle_count=self._field.count)
        self._announce(self._field.current_pattern)

    # =========================================================================
    # Perception side
    # =========================================================================

    def submit_landmarks(self, landmarks, now: Optional[float] = None) -> ControlOutput:
        """Map one perception frame and publish the result to ControlState."""
        output = self._mapper.map(landmarks, now)
        self._control.apply(output)

        if output.hand_detected != self._hand_detected:
            self._hand_detected = output.hand_detected
            self._bus.emit(Events.HAND_DETECTED if output.hand_detected else Events.HAND_LOST)

        if output.advance_event:
            self._bus.emit(Events.ADVANCE_REQUESTED, source="gesture")
        return output

    def request_advance(self, source: str = "external"):
        """Thread-safe advance request; served on the next render tick."""
        self._control.request_advance()
        self._bus.emit(Events.ADVANCE_REQUESTED, source=source)

    # =========================================================================
    # Render side
    # =========================================================================

    def advance_pattern(self) -> PatternId:
        """Move to the next pattern in the cycle (render thread only)."""
        next_index = (self._pattern_index + 1) % len(self._cycle)
        return self.set_pattern(self._cycle[next_index])

    def set_pattern(self, pattern: PatternId) -> PatternId:
        """Start a transition to ``pattern`` (render thread only).

        A running transition is completed first. A pending particle-count
        change is applied here, between transitions.
        """
        self._engine.force_complete()

        if self._params.particle_count != self._field.count:
            logger.info("Applying particle count change: %d -> %d",
                        self._field.count, self._params.particle_count)
            with self._perf.measure("generate"):
                self._field.resize(self._params.particle_count, self._field.current_pattern, self._rng)

        with self._perf.measure("generate"):
            self._engine.begin(pattern, self._rng)

        if pattern in self._cycle:
            self._pattern_index = self._cycle.index(pattern)
        self._announce(pattern)
        return pattern

    def tick(self, dt: float) -> FrameResult:
        """Execute one render-loop iteration.

        Returns:
            FrameResult with buffers, dirty flags, camera pose and progress
        """
        with self._perf.measure("total"):
            if self._control.consume_advance():
                self.advance_pattern()

            dt = self._clock.advance(dt)

            if self._engine.is_blending:
                with self._perf.measure("transition"):
                    self._engine.tick(dt, self._params.transition_speed)
            elif dt > 0.0 and self._params.wave_intensity > 0.0:
                with self._perf.measure("jitter"):
                    self._clock.apply_jitter(self._field.position_view(), dt,
                                             self._params.wave_intensity)
                    self._field.mark_dirty(positions=True)

            with self._perf.measure("camera"):
                self._camera.follow_rate = self._params.camera_follow_rate
                self._camera.orbit_speed = self._params.camera_speed
                camera_position = self._camera.update(self._control.target_zoom, self._clock.time)

        self._perf.tick()
        self._frame_id += 1

        result = FrameResult()
        result.frame_id = self._frame_id
        result.time = self._clock.time
        result.positions = self._field.positions
        result.colors = self._field.colors
        result.positions_dirty, result.colors_dirty = self._field.take_dirty_flags()
        result.camera_position = camera_position
        result.pattern = self._field.current_pattern
        result.transitioning = self._engine.is_blending
        result.progress = self._engine.progress
        result.hand_detected = self._control.hand_detected
        return result

    def _announce(self, pattern: PatternId):
        self._bus.emit(Events.PATTERN_CHANGED, pattern=pattern, name=pattern.display_name)

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def field(self) -> ParticleField:
        return self._field

    @property
    def engine(self) -> TransitionEngine:
        return self._engine

    @property
    def control(self) -> ControlState:
        return self._control

    @property
    def params(self) -> AnimationParams:
        return self._params

    @property
    def camera(self) -> CameraRig:
        return self._camera

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def performance(self) -> PerformanceMonitor:
        return self._perf

    @property
    def pattern_cycle(self) -> Tuple[PatternId, ...]:
        return self._cycle

    @property
    def displayed_pattern(self) -> PatternId:
        """Pattern being shown or blended towards."""
        return self._engine.target or self._field.current_pattern

    @property
    def frame_count(self) -> int:
        return self._frame_id
