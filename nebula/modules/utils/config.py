"""
YAML configuration with built-in defaults.

``config/config.yaml`` is layered over ``DEFAULTS``. Every value a user
supplies is type-checked against the default of the same key; a mismatched
value is logged and replaced by the default, so a bad file never stops the
application.

    config = Config().load()
    config.get("transition.speed")      # 0.015
    config.get_section("camera")        # {"device_id": 0, ...}
"""

import os
import copy
import logging
from typing import List

import yaml

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(
    os.path.abspath(__file__)))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")

DEFAULTS = {
    "particles": {"count": 25000, "pattern_set": "canonical", "start_pattern": None, "seed": None},
    "transition": {"speed": 0.015},
    "animation": {"wave_intensity": 0.2, "camera_speed": 0.08, "camera_follow_rate": 0.05},
    "gesture": {
        "zoom_mode": "wrist_height",
        "advance_mode": "pointing",
        "cooldown_sec": 2.0,
        "require_release": True,
    },
    "camera": {"device_id": 0, "width": 640, "height": 360, "fps": 30, "backend": "auto"},
    "mediapipe": {
        "model_complexity": 1,
        "min_detection_confidence": 0.6,
        "min_tracking_confidence": 0.6,
    },
    "visualization": {"window_name": "Hand Nebula", "width": 960, "height": 540},
    "performance": {"metrics_window": 100},
    "logging": {"level": "INFO", "file": None, "max_size_mb": 10, "backup_count": 3},
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _matches_default(value, default) -> bool:
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, float):
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if isinstance(default, int):
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, type(default))


def validate(data: dict) -> List[str]:
    """Drop values whose type disagrees with DEFAULTS. Returns the warnings.

    ``data`` is modified in place. Sections and keys without a default
    (or with a ``None`` default) are accepted as they are.
    """
    warnings = []
    for section_name in list(data):
        defaults = DEFAULTS.get(section_name)
        if defaults is None:
            continue
        section = data[section_name]
        if not isinstance(section, dict):
            warnings.append(f"section '{section_name}' should be a mapping, "
                            f"got {type(section).__name__}")
            del data[section_name]
            continue
        for key, default in defaults.items():
            if default is None or key not in section:
                continue
            if not _matches_default(section[key], default):
                warnings.append(f"{section_name}.{key}: expected {type(default).__name__}, "
                                f"got {type(section[key]).__name__} ({section[key]!r})")
                del section[key]
    return warnings


class Config:
    """Process-wide configuration (singleton)."""

    _instance = None
    _data = {}
    _warnings = []

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._data = copy.deepcopy(DEFAULTS)
        return cls._instance

    def load(self, config_path=None):
        """Read a YAML file over the defaults. A missing file leaves the defaults."""
        config_path = config_path or os.path.join(_CONFIG_DIR, "config.yaml")
        loaded = {}
        try:
            with open(config_path, "r") as f:
                loaded = yaml.safe_load(f) or {}
            logger.info("Loaded config from %s", config_path)
        except FileNotFoundError:
            logger.warning("Config file not found: %s, using defaults", config_path)

        if not isinstance(loaded, dict):
            logger.warning("Config root in %s is not a mapping, using defaults", config_path)
            loaded = {}

        self._warnings = validate(loaded)
        for warning in self._warnings:
            logger.warning("Config validation: %s (default used)", warning)
        self._data = _deep_merge(copy.deepcopy(DEFAULTS), loaded)
        return self

    def override(self, values: dict):
        """Merge command-line or runtime overrides into the loaded config."""
        values = copy.deepcopy(values)
        for warning in validate(values):
            logger.warning("Config override ignored: %s", warning)
        self._data = _deep_merge(self._data, values)
        return self

    def get(self, key_path: str, default=None):
        """Nested lookup by dot path, e.g. ``get("gesture.cooldown_sec")``."""
        value = self._data
        for key in key_path.split("."):
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value

    def get_section(self, section: str) -> dict:
        value = self._data.get(section, {})
        return value if isinstance(value, dict) else {}

    @property
    def warnings(self) -> List[str]:
        """Validation warnings from the last ``load``."""
        return list(self._warnings)

    @property
    def gesture(self) -> dict:
        return self.get_section("gesture")

    @property
    def camera(self) -> dict:
        return self.get_section("camera")

    @property
    def mediapipe(self) -> dict:
        return self.get_section("mediapipe")

    @property
    def visualization(self) -> dict:
        return self.get_section("visualization")

    @property
    def base_dir(self) -> str:
        return _BASE_DIR

    @classmethod
    def reset(cls):
        """Forget the singleton (for tests)."""
        cls._instance = None
        cls._data = {}
        cls._warnings = []
