"""
Cross-pattern transition engine.

Two explicit states:
    Idle      - the field shows a finished pattern
    Blending  - from/to snapshots plus progress towards a target pattern

Each tick interpolates every particle's position and color with a cubic
ease-in-out. Completion copies the target buffers verbatim so no lerp error
is left in the field. Starting a new transition while blending first
completes the running one, so at most two patterns ever mix.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from nebula.core.events import EventBus, Events
from nebula.core.types import PatternId
from nebula.modules.geometry.generator import materialize_pattern
from .easing import cubic_in_out
from .field import ParticleField

logger = logging.getLogger(__name__)

# Transition speed is expressed per frame at this nominal frame rate.
FRAME_RATE_NORMALIZATION = 60.0


@dataclass
class Idle:
    """No transition in progress."""

    progress: float = 0.0


@dataclass
class Blending:
    """Transition in progress towards ``target``."""

    target: PatternId
    from_positions: np.ndarray
    to_positions: np.ndarray
    from_colors: np.ndarray
    to_colors: np.ndarray
    progress: float = 0.0


TransitionState = Union[Idle, Blending]


class TransitionEngine:
    """Blends a ParticleField from its current content to a new pattern."""

    def __init__(self, field: ParticleField, event_bus: Optional[EventBus] = None,
                 frame_rate_normalization: float = FRAME_RATE_NORMALIZATION):
        self._field = field
        self._bus = event_bus or EventBus()
        self._frame_rate_normalization = frame_rate_normalization
        self._state: TransitionState = Idle()

    @property
    def state(self) -> TransitionState:
        return self._state

    @property
    def is_blending(self) -> bool:
        return isinstance(self._state, Blending)

    @property
    def progress(self) -> float:
        return min(self._state.progress, 1.0)

    @property
    def target(self) -> Optional[PatternId]:
        return self._state.target if isinstance(self._state, Blending) else None

    def begin(self, target: PatternId, rng: Optional[np.random.Generator] = None) -> Blending:
        """Start blending towards ``target``.

        A transition already in progress is completed first, so the new
        one always starts from the previous target's exact endpoint.
        """
        if self.is_blending:
            logger.debug("Preempting transition to %s", self._state.target.value)
            self.force_complete()

        from_positions, from_colors = self._field.snapshot()
        to_positions, to_colors = materialize_pattern(target, self._field.count, rng)

        self._state = Blending(
            target=target,
            from_positions=from_positions,
            to_positions=to_positions,
            from_colors=from_colors,
            to_colors=to_colors,
        )
        logger.debug("Transition started: %s -> %s (%d particles)",
                     self._field.current_pattern.value, target.value, self._field.count)
        self._bus.emit(Events.TRANSITION_STARTED,
                       source=self._field.current_pattern, target=target)
        return self._state

    def tick(self, dt: float, speed: float) -> bool:
        """Advance the blend by ``dt`` seconds.

        Args:
            dt: Elapsed seconds; negative values count as 0
            speed: Progress per nominal frame

        Returns:
            True if the transition finished (or was aborted) on this tick
        """
        state = self._state
        if not isinstance(state, Blending):
            return False

        if not self._snapshots_valid(state):
            logger.error("Transition data length mismatch during interpolation!")
            self._finish(state)
            return True

        state.progress += speed * max(dt, 0.0) * self._frame_rate_normalization
        if state.progress >= 1.0:
            self._finish(state)
            return True

        eased = cubic_in_out(state.progress)
        self._blend(state.from_positions, state.to_positions, eased, self._field.positions)
        self._blend(state.from_colors, state.to_colors, eased, self._field.colors)
        self._field.mark_dirty(positions=True, colors=True)
        return False

    def force_complete(self):
        """Jump the running transition to its endpoint. No-op when idle."""
        if isinstance(self._state, Blending):
            self._finish(self._state)

    @staticmethod
    def _blend(start: np.ndarray, end: np.ndarray, eased: float, out: np.ndarray):
        np.multiply(start, 1.0 - eased, out=out)
        out += end * eased

    def _snapshots_valid(self, state: Blending) -> bool:
        return (
            self._field.matches(state.from_positions, state.from_colors)
            and self._field.matches(state.to_positions, state.to_colors)
        )

    def _finish(self, state: Blending):
        """Commit the target buffers, or drop the transition if they no longer fit."""
        self._state = Idle()
        if self._field.matches(state.to_positions, state.to_colors):
            self._field.assign(state.to_positions, state.to_colors)
            self._field.current_pattern = state.target
            logger.debug("Transition complete: %s", state.target.value)
            self._bus.emit(Events.TRANSITION_COMPLETED, pattern=state.target)
        else:
            logger.error("Transition data length mismatch on completion!")
            self._bus.emit(Events.TRANSITION_ABORTED, pattern=state.target)
