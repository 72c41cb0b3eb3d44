"""MediaPipe hand detection."""
from .hand_detector import HandDetector

__all__ = ["HandDetector"]
