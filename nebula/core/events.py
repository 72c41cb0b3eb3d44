"""
Synchronous publish/subscribe bus for particle-system notifications.

The pipeline publishes pattern, transition and hand-tracking events; the
pattern label, the pattern logger and any embedding UI listen to them.
Handlers run on the emitting thread, in priority order.

Usage:
    bus = EventBus()
    bus.subscribe(Events.PATTERN_CHANGED, label.on_pattern_changed)
    bus.emit(Events.PATTERN_CHANGED, pattern=PatternId.HELIX, name="Quantum Helix")
"""

import time
import bisect
import logging
import itertools
import threading
from collections import deque
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)

# (negated priority, subscription order, callback)
_Entry = Tuple[int, int, Callable]


class EventRecord(NamedTuple):
    """One emitted event as kept in the history."""
    name: str
    timestamp: float
    keys: Tuple[str, ...]
    delivered: int


def _callback_name(callback: Callable) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


class EventBus:
    """Thread-safe event bus owned by one pipeline.

    Higher priority handlers run first; equal priorities run in subscription
    order. A handler that raises is logged and counted, and the remaining
    handlers still run.
    """

    def __init__(self, max_history: int = 100):
        self._handlers: Dict[str, List[_Entry]] = {}
        self._order = itertools.count()
        self._lock = threading.Lock()
        self._history = deque(maxlen=max_history)
        self._failures = 0

    def subscribe(self, event_name: str, callback: Callable, priority: int = 0) -> Callable:
        """Register ``callback(**payload)`` for ``event_name``. Returns the callback."""
        entry = (-priority, next(self._order), callback)
        with self._lock:
            bisect.insort(self._handlers.setdefault(event_name, []), entry)
        logger.debug("Subscribed %s to '%s' (priority=%d)",
                     _callback_name(callback), event_name, priority)
        return callback

    def unsubscribe(self, event_name: str, callback: Callable) -> bool:
        """Remove ``callback`` from ``event_name``. Returns True if it was registered."""
        with self._lock:
            entries = self._handlers.get(event_name, [])
            kept = [e for e in entries if e[2] is not callback]
            if kept:
                self._handlers[event_name] = kept
            else:
                self._handlers.pop(event_name, None)
            return len(kept) != len(entries)

    def emit(self, event_name: str, **payload) -> int:
        """Deliver an event to its handlers.

        Returns:
            Number of handlers that completed without raising
        """
        with self._lock:
            entries = list(self._handlers.get(event_name, ()))

        delivered = 0
        for _, _, callback in entries:
            try:
                callback(**payload)
                delivered += 1
            except Exception as e:
                logger.error("Event handler error [%s -> %s]: %s",
                             event_name, _callback_name(callback), e)
                with self._lock:
                    self._failures += 1

        with self._lock:
            self._history.append(
                EventRecord(event_name, time.time(), tuple(payload), delivered)
            )
        return delivered

    def clear(self, event_name: Optional[str] = None):
        """Drop every handler, or only those of ``event_name``."""
        with self._lock:
            if event_name is None:
                self._handlers.clear()
            else:
                self._handlers.pop(event_name, None)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return sum(len(entries) for entries in self._handlers.values())

    @property
    def failure_count(self) -> int:
        """Handler exceptions caught since the bus was created."""
        with self._lock:
            return self._failures

    def get_history(self, last_n: int = 10, event_name: Optional[str] = None) -> List[EventRecord]:
        """Most recent events, oldest first, optionally filtered by name."""
        with self._lock:
            records = [r for r in self._history if event_name is None or r.name == event_name]
        return records[-last_n:] if last_n else records


# =============================================================================
# Event names
# =============================================================================

class Events:
    """Event names published by the pipeline."""

    # Patterns and transitions
    PATTERN_CHANGED = "pattern_changed"
    TRANSITION_STARTED = "transition_started"
    TRANSITION_COMPLETED = "transition_completed"
    TRANSITION_ABORTED = "transition_aborted"
    ADVANCE_REQUESTED = "advance_requested"

    # Perception
    HAND_DETECTED = "hand_detected"
    HAND_LOST = "hand_lost"
    CAMERA_ERROR = "camera_error"

    # Lifecycle
    SYSTEM_STARTED = "system_started"
    SYSTEM_SHUTDOWN = "system_shutdown"
