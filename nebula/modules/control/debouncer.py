"""
Fire-once cooldown gate for the discrete "advance pattern" gesture.

    - A gesture fires at most once per cooldown window (monotonic clock).
    - Events inside the window are dropped, not queued.
    - With ``require_release`` a held pose fires once and must be released
      (or the hand lost) before it can fire again.

Lifecycle (called by GestureSignalMapper):
    try_fire(active, now)   - once per perception frame
    release()               - hand lost
"""

import time
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class AdvanceDebouncer:
    """Cooldown plus release-to-rearm gating for advance events."""

    def __init__(self, cooldown_sec: float = 2.0, require_release: bool = True,
                 clock: Callable[[], float] = time.monotonic):
        self._cooldown = max(0.0, float(cooldown_sec))
        self._require_release = require_release
        self._clock = clock
        self._last_fire_time: Optional[float] = None
        self._armed = True

    def in_cooldown(self, now: Optional[float] = None) -> bool:
        """True while strictly inside the window after the last fire."""
        if self._last_fire_time is None:
            return False
        now = self._clock() if now is None else now
        return (now - self._last_fire_time) < self._cooldown

    def try_fire(self, active: bool, now: Optional[float] = None) -> bool:
        """Feed the current trigger condition; returns True if an event fires."""
        now = self._clock() if now is None else now

        if not active:
            if not self._armed:
                logger.debug("Advance gesture released, re-armed")
            self._armed = True
            return False

        if not self._armed or self.in_cooldown(now):
            return False

        self._last_fire_time = now
        if self._require_release:
            self._armed = False
        logger.debug("Advance fired at %.3f (cooldown %.2fs)", now, self._cooldown)
        return True

    def release(self):
        """Re-arm after the hand disappears. Cooldown timing is kept."""
        self._armed = True

    @property
    def last_fire_time(self) -> Optional[float]:
        return self._last_fire_time

    def reset(self):
        """Clear all state."""
        self._last_fire_time = None
        self._armed = True
