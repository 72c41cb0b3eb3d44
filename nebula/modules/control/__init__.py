"""Hand landmarks to zoom and advance signals."""
from .gesture_mapper import GestureSignalMapper, GestureMapperConfig
from .debouncer import AdvanceDebouncer

__all__ = ["GestureSignalMapper", "GestureMapperConfig", "AdvanceDebouncer"]
