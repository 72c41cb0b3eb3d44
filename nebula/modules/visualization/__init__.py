"""OpenCV preview rendering."""
from .preview import PointCloudPreview
from .pattern_label import PatternLabel

__all__ = ["PointCloudPreview", "PatternLabel"]
