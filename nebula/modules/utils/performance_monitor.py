"""
Render-loop timing: rolling FPS plus mean and peak latency per stage.
"""

import time
import threading
import logging
from collections import deque
from contextlib import contextmanager
from typing import Dict, Iterable

logger = logging.getLogger(__name__)

STAGE_NAMES = ("generate", "transition", "jitter", "camera", "render", "total")


class RollingStat:
    """Fixed-size window of samples with mean and peak."""

    __slots__ = ("_samples",)

    def __init__(self, window: int):
        self._samples = deque(maxlen=window)

    def add(self, value: float):
        self._samples.append(value)

    @property
    def mean(self) -> float:
        return sum(self._samples) / len(self._samples) if self._samples else 0.0

    @property
    def peak(self) -> float:
        return max(self._samples) if self._samples else 0.0

    def clear(self):
        self._samples.clear()

    def __len__(self):
        return len(self._samples)


class PerformanceMonitor:
    """Tracks frame rate and per-stage latency of the render loop.

    ``measure`` may be called from any thread; stages not known up front are
    created on first use.
    """

    def __init__(self, window_size: int = 100, stages: Iterable[str] = STAGE_NAMES):
        self._window = window_size
        self._lock = threading.Lock()
        self._intervals = RollingStat(window_size)
        self._stages: Dict[str, RollingStat] = {name: RollingStat(window_size) for name in stages}
        self._last_tick = None
        self._frames = 0
        self._started = time.time()

    @contextmanager
    def measure(self, stage: str):
        """Time the enclosed block; recorded even if it raises."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record(stage, (time.perf_counter() - start) * 1000.0)

    def record(self, stage: str, elapsed_ms: float):
        with self._lock:
            stat = self._stages.get(stage)
            if stat is None:
                stat = self._stages[stage] = RollingStat(self._window)
            stat.add(elapsed_ms)

    def tick(self):
        """Mark the end of one rendered frame."""
        now = time.perf_counter()
        with self._lock:
            if self._last_tick is not None:
                self._intervals.add(now - self._last_tick)
            self._last_tick = now
            self._frames += 1

    @property
    def fps(self) -> float:
        with self._lock:
            if len(self._intervals) < 2:
                return 0.0
            mean = self._intervals.mean
        return 1.0 / mean if mean > 0 else 0.0

    @property
    def frame_count(self) -> int:
        return self._frames

    def get_stage_latency(self, stage: str) -> float:
        """Mean latency of ``stage`` in ms (0.0 if never measured)."""
        with self._lock:
            stat = self._stages.get(stage)
            return stat.mean if stat else 0.0

    def get_stage_peak(self, stage: str) -> float:
        """Worst latency of ``stage`` in the current window, in ms."""
        with self._lock:
            stat = self._stages.get(stage)
            return stat.peak if stat else 0.0

    def get_report(self) -> dict:
        with self._lock:
            stages = {
                name: {"mean_ms": round(stat.mean, 2), "peak_ms": round(stat.peak, 2)}
                for name, stat in self._stages.items()
            }
        return {
            "fps": round(self.fps, 1),
            "frames": self._frames,
            "uptime_seconds": round(time.time() - self._started, 1),
            "stages": stages,
        }

    def print_report(self):
        """Log the report as a table."""
        report = self.get_report()
        logger.info("=" * 60)
        logger.info("PERFORMANCE  %.1f FPS  |  %d frames  |  %.1fs up",
                    report["fps"], report["frames"], report["uptime_seconds"])
        logger.info("-" * 60)
        logger.info("  %-12s %10s %10s", "stage", "mean ms", "peak ms")
        for name, stat in report["stages"].items():
            logger.info("  %-12s %10.2f %10.2f", name, stat["mean_ms"], stat["peak_ms"])
        logger.info("=" * 60)

    def reset(self):
        with self._lock:
            self._intervals.clear()
            for stat in self._stages.values():
                stat.clear()
            self._last_tick = None
            self._frames = 0
            self._started = time.time()
