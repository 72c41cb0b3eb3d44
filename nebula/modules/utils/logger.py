"""
Logging setup plus a pattern-change event log.
"""

import os
import time
import logging
import logging.handlers
from functools import wraps

CONSOLE_FORMAT = "%(asctime)s  %(levelname)-5s  %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)-7s] %(threadName)-16s %(name)-36s | %(message)s"
DATE_FORMAT = "%H:%M:%S"

# Chatty third-party loggers capped at WARNING
NOISY_LOGGERS = ("absl", "mediapipe", "PIL")


def _rotating_file_handler(log_file, max_size_mb, backup_count):
    directory = os.path.dirname(log_file)
    if directory:
        os.makedirs(directory, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=int(max_size_mb * 1024 * 1024),
        backupCount=backup_count,
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Route the root logger to the console and, optionally, a rotating file.

    The console shows INFO and above in a compact format; the file receives
    everything down to ``level`` with thread and logger names, which is where
    perception-thread and render-loop messages are told apart.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(console)

    if log_file:
        root.addHandler(_rotating_file_handler(log_file, max_size_mb, backup_count))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return root


class PatternLogger:
    """Logs pattern changes and advance triggers, keeping a short history.

    Subscribe ``on_pattern_changed`` and ``on_advance_requested`` to a
    pipeline's event bus.
    """

    def __init__(self, max_history: int = 500):
        self.logger = logging.getLogger("pattern_events")
        self._history = []
        self._max_history = max_history

    def on_pattern_changed(self, pattern=None, name="", **kwargs):
        self._record("pattern", name=name, pattern=getattr(pattern, "value", pattern))
        self.logger.info("Pattern: %-18s", name)

    def on_advance_requested(self, source="unknown", **kwargs):
        self._record("advance", source=source)
        self.logger.info("Advance requested by %s", source)

    def _record(self, kind, **data):
        self._history.append({"timestamp": time.time(), "kind": kind, **data})
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

    def get_history(self, last_n=None):
        if last_n:
            return self._history[-last_n:]
        return self._history.copy()

    @property
    def total_changes(self):
        return sum(1 for entry in self._history if entry["kind"] == "pattern")


def log_timing(func):
    """Decorator to log function execution time at DEBUG."""
    logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug("%s took %.2fms", func.__name__, elapsed)
        return result

    return wrapper
