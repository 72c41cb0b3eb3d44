"""
Hand Nebula
===========

A gesture-driven morphing particle cloud. A webcam hand tracker zooms the
camera and advances the cloud through a cycle of parametric shapes.

Modules:
    - core: Shared types, event bus and the pipeline orchestrator
    - geometry: Pattern generators and color palettes
    - particles: Particle buffers and the transition engine
    - control: Landmark-to-signal mapping and advance debouncing
    - animation: Scene clock, ambient jitter, camera follow, live params
    - capture / detection: Webcam frames and MediaPipe hand landmarks
    - visualization: OpenCV point-cloud preview and pattern label
    - utils: Configuration, logging, performance monitoring
"""

__version__ = "1.0.0"
