"""Configuration, logging and performance utilities."""
from .config import Config
from .logger import setup_logging, PatternLogger, log_timing
from .performance_monitor import PerformanceMonitor

__all__ = ["Config", "setup_logging", "PatternLogger", "log_timing", "PerformanceMonitor"]
