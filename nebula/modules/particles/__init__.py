"""Particle buffers and pattern transitions."""
from .field import ParticleField
from .transition import TransitionEngine, Idle, Blending
from .easing import cubic_in_out

__all__ = ["ParticleField", "TransitionEngine", "Idle", "Blending", "cubic_in_out"]
