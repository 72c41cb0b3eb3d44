"""Core types and the event bus."""
from .types import PatternId, ControlOutput, ControlState, FrameResult
from .events import EventBus, Events

__all__ = ["PatternId", "ControlOutput", "ControlState", "FrameResult", "EventBus", "Events"]
