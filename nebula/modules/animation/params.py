"""
Live-tunable animation knobs.

Every value is clamped into a sane range instead of being rejected; a
clamped value logs a warning. Updates may arrive at any time. A changed
particle count takes effect at the next pattern change, not mid-blend.
"""

import logging
from dataclasses import dataclass, fields
from typing import Optional

logger = logging.getLogger(__name__)

_BOUNDS = {
    "particle_count": (1, 200_000),
    "transition_speed": (0.0005, 1.0),
    "wave_intensity": (0.0, 1.0),
    "camera_speed": (0.0, 0.5),
    "camera_follow_rate": (0.001, 1.0),
}


def _clamp(name: str, value):
    low, high = _BOUNDS[name]
    clamped = min(high, max(low, value))
    if clamped != value:
        logger.warning("%s=%r out of range [%s, %s], clamped to %r",
                       name, value, low, high, clamped)
    return clamped


@dataclass
class AnimationParams:
    """Numeric knobs read by the render loop every tick."""
    particle_count: int = 25_000
    transition_speed: float = 0.015
    wave_intensity: float = 0.2
    camera_speed: float = 0.08
    camera_follow_rate: float = 0.05
    pattern_set: str = "canonical"
    start_pattern: Optional[str] = None
    seed: Optional[int] = None

    def __post_init__(self):
        self.particle_count = int(_clamp("particle_count", int(self.particle_count)))
        for name in ("transition_speed", "wave_intensity", "camera_speed", "camera_follow_rate"):
            setattr(self, name, float(_clamp(name, float(getattr(self, name)))))

    def update(self, **changes):
        """Apply live changes; unknown names raise AttributeError."""
        known = {f.name for f in fields(self)}
        for name, value in changes.items():
            if name not in known:
                raise AttributeError(f"Unknown animation parameter: {name}")
            if name in _BOUNDS:
                value = _clamp(name, value)
                value = int(value) if name == "particle_count" else float(value)
            setattr(self, name, value)
            logger.debug("Parameter %s -> %r", name, value)

    @classmethod
    def from_config(cls, config) -> "AnimationParams":
        """Create params from a Config (dot-path ``get``)."""
        defaults = cls()
        return cls(
            particle_count=config.get("particles.count", defaults.particle_count),
            transition_speed=config.get("transition.speed", defaults.transition_speed),
            wave_intensity=config.get("animation.wave_intensity", defaults.wave_intensity),
            camera_speed=config.get("animation.camera_speed", defaults.camera_speed),
            camera_follow_rate=config.get("animation.camera_follow_rate",
                                          defaults.camera_follow_rate),
            pattern_set=config.get("particles.pattern_set", defaults.pattern_set),
            start_pattern=config.get("particles.start_pattern", defaults.start_pattern),
            seed=config.get("particles.seed", defaults.seed),
        )
