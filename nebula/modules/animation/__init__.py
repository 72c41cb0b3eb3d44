"""Scene time, ambient motion and camera follow."""
from .clock import AnimationClock
from .camera_rig import CameraRig
from .params import AnimationParams

__all__ = ["AnimationClock", "CameraRig", "AnimationParams"]
