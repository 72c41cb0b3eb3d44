#!/usr/bin/env python3
"""
Hand Nebula - gesture-driven morphing particle cloud.
Application entry point wiring perception and rendering.

Architecture:
    - Perception thread: CameraManager -> HandDetector -> Pipeline.submit_landmarks
    - Render loop: Pipeline.tick -> PointCloudPreview -> cv2 window
    - EventBus carries pattern changes to the logger and the on-screen label

Usage:
    nebula                              # Webcam + canonical patterns
    nebula --patterns extended          # Cycle all eleven patterns
    nebula --pattern torus              # Start on the torus
    nebula --no-camera --particles 5000 # Keyboard-only preview
"""

import os
import sys
import time
import signal
import argparse
import logging
import threading

from nebula.core.events import Events
from nebula.core.pipeline import Pipeline
from nebula.core.types import PATTERN_SETS, PatternId
from nebula.modules.animation.params import AnimationParams
from nebula.modules.capture.camera_manager import CameraManager
from nebula.modules.control.gesture_mapper import GestureMapperConfig, GestureSignalMapper
from nebula.modules.detection.hand_detector import HandDetector
from nebula.modules.utils.config import Config
from nebula.modules.utils.logger import setup_logging, PatternLogger
from nebula.modules.utils.performance_monitor import PerformanceMonitor
from nebula.modules.visualization.pattern_label import PatternLabel
from nebula.modules.visualization.preview import PointCloudPreview

logger = logging.getLogger(__name__)

_KEY_QUIT = ord("q")
_KEY_ADVANCE = (ord("n"), ord(" "))
_KEY_REPORT = ord("p")


class HandNebula:
    """Main application: owns the perception thread and the render loop."""

    def __init__(self, config: Config, use_camera: bool = True):
        self._config = config
        self._use_camera = use_camera
        self._running = False

        params = AnimationParams.from_config(config)
        mapper = GestureSignalMapper(GestureMapperConfig.from_dict(config.gesture))
        self._perf = PerformanceMonitor(
            window_size=config.get("performance.metrics_window", 100)
        )
        self._pipeline = Pipeline(params=params, mapper=mapper, performance_monitor=self._perf)

        self._camera = CameraManager(config.camera) if use_camera else None
        self._detector = HandDetector(config.mediapipe) if use_camera else None
        self._perception_thread = None

        self._preview = PointCloudPreview(config.visualization)
        self._label = PatternLabel(config.visualization)
        self._pattern_logger = PatternLogger()

        bus = self._pipeline.event_bus
        bus.subscribe(Events.PATTERN_CHANGED, self._label.on_pattern_changed)
        bus.subscribe(Events.PATTERN_CHANGED, self._pattern_logger.on_pattern_changed)
        bus.subscribe(Events.ADVANCE_REQUESTED, self._pattern_logger.on_advance_requested)
        bus.subscribe(Events.CAMERA_ERROR, self._on_camera_error)

        logger.info("HandNebula initialized (%d particles, %d patterns, camera=%s)",
                    params.particle_count, len(self._pipeline.pattern_cycle), use_camera)

    @property
    def pipeline(self) -> Pipeline:
        return self._pipeline

    def _on_camera_error(self, reason="", **kwargs):
        logger.warning("Perception unavailable (%s); zoom frozen, keyboard still active", reason)

    # =========================================================================
    # Perception
    # =========================================================================

    def start_perception(self) -> bool:
        """Open the camera and detector, then start the perception thread.

        On failure CAMERA_ERROR is emitted and False returned; the render loop
        keeps running without gesture input.
        """
        if not self._use_camera:
            return False
        if not self._camera.open():
            self._pipeline.event_bus.emit(Events.CAMERA_ERROR, reason="camera could not be opened")
            return False
        self._camera.start_async()
        try:
            self._detector.initialize()
        except Exception as e:
            logger.error("Hand detector failed to initialize: %s", e)
            self._pipeline.event_bus.emit(Events.CAMERA_ERROR, reason="hand detector unavailable")
            self._camera.stop()
            return False

        self._perception_thread = threading.Thread(
            target=self._perception_loop, name="perception", daemon=True,
        )
        self._perception_thread.start()
        return True

    def _perception_loop(self):
        last_frame_id = None
        while self._running:
            frame = self._camera.read()
            if frame is None or frame.frame_id == last_frame_id:
                time.sleep(0.005)
                continue
            last_frame_id = frame.frame_id

            try:
                landmarks = self._detector.detect(frame.image)
            except Exception as e:
                logger.warning("Hand detection failed on frame %d: %s", frame.frame_id, e)
                landmarks = None
            self._pipeline.submit_landmarks(landmarks, now=frame.timestamp)

    # =========================================================================
    # Render loop
    # =========================================================================

    def run(self):
        """Run until the window is closed with 'q' or a signal arrives."""
        window_name = self._config.get("visualization.window_name", "Hand Nebula")
        self._running = True
        self.start_perception()
        self._pipeline.start()

        last = time.perf_counter()
        while self._running:
            now = time.perf_counter()
            dt, last = now - last, now

            result = self._pipeline.tick(dt)
            with self._perf.measure("render"):
                image = self._preview.render(result, fps=self._perf.fps, label=self._label)
                self._preview.show(window_name, image)

            self._handle_key(self._preview.poll_key(1))

        self._shutdown()

    def _handle_key(self, key):
        if key is None:
            return
        if key == _KEY_QUIT:
            self._running = False
        elif key in _KEY_ADVANCE:
            self._pipeline.request_advance(source="keyboard")
        elif key == _KEY_REPORT:
            self._perf.print_report()

    def _shutdown(self):
        """Clean shutdown of all modules."""
        logger.info("Shutting down...")
        self._running = False
        if self._perception_thread and self._perception_thread.is_alive():
            self._perception_thread.join(timeout=2.0)
        if self._camera is not None:
            self._camera.stop()
        if self._detector is not None:
            self._detector.close()
        self._preview.close()

        self._pipeline.event_bus.emit(Events.SYSTEM_SHUTDOWN)
        self._perf.print_report()
        logger.info("Pattern changes this session: %d", self._pattern_logger.total_changes)
        logger.info("Shutdown complete.")

    def handle_signal(self, signum, frame):
        """Handle SIGINT/SIGTERM for graceful shutdown."""
        logger.info("Signal %d received, shutting down...", signum)
        self._running = False


def _pattern_arg(value: str) -> str:
    try:
        return PatternId.from_string(value).value
    except ValueError:
        raise argparse.ArgumentTypeError(
            "unknown pattern %r (choose from %s)" % (value, ", ".join(p.value for p in PatternId))
        )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Hand Nebula - gesture-driven morphing particle cloud"
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to config.yaml"
    )
    parser.add_argument(
        "--camera", type=int, default=None,
        help="Camera device ID"
    )
    parser.add_argument(
        "--particles", type=int, default=None,
        help="Number of particles"
    )
    parser.add_argument(
        "--patterns", choices=sorted(PATTERN_SETS), default=None,
        help="Pattern set to cycle through"
    )
    parser.add_argument(
        "--pattern", type=_pattern_arg, default=None,
        help="Pattern shown at startup"
    )
    parser.add_argument(
        "--no-camera", action="store_true",
        help="Run without webcam input (keyboard only)"
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="Seed for reproducible stochastic patterns"
    )
    return parser.parse_args(argv)


def build_overrides(args) -> dict:
    """Translate CLI flags into a config override dict."""
    overrides = {}
    if args.camera is not None:
        overrides.setdefault("camera", {})["device_id"] = args.camera
    if args.particles is not None:
        overrides.setdefault("particles", {})["count"] = args.particles
    if args.patterns is not None:
        overrides.setdefault("particles", {})["pattern_set"] = args.patterns
    if args.pattern is not None:
        overrides.setdefault("particles", {})["start_pattern"] = args.pattern
    if args.seed is not None:
        overrides.setdefault("particles", {})["seed"] = args.seed
    return overrides


def resolve_log_file(config: Config):
    """Log file path from config; relative paths are anchored at the project root."""
    log_file = config.get("logging.file")
    if log_file and not os.path.isabs(log_file):
        log_file = os.path.join(config.base_dir, log_file)
    return log_file


def main(argv=None):
    args = parse_args(argv)

    config = Config().load(args.config)
    config.override(build_overrides(args))

    log_cfg = config.get_section("logging")
    setup_logging(
        level=log_cfg.get("level", "INFO"),
        log_file=resolve_log_file(config),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )

    logger.info("=" * 60)
    logger.info("  Hand Nebula")
    logger.info("=" * 60)

    app = HandNebula(config, use_camera=not args.no_camera)

    signal.signal(signal.SIGINT, app.handle_signal)
    signal.signal(signal.SIGTERM, app.handle_signal)

    try:
        app.run()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.critical("Fatal error: %s", e, exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
