"""
Webcam capture for the perception loop.

A background thread keeps only the newest frame. Perception polls it at its
own pace; a slow detector skips frames instead of building up latency.
"""

import time
import threading
import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional

import cv2
import numpy as np

logger = logging.getLogger(__name__)

_BACKENDS = {
    "auto": cv2.CAP_ANY,
    "v4l2": cv2.CAP_V4L2,
    "dshow": cv2.CAP_DSHOW,
    "avfoundation": cv2.CAP_AVFOUNDATION,
}

# Consecutive failed reads before the stream is reported as stalled
_STALL_READS = 60


@dataclass
class CameraSettings:
    """Capture device settings."""
    device_id: int = 0
    width: int = 640
    height: int = 360
    fps: int = 30
    backend: str = "auto"
    flip_horizontal: bool = True
    warmup_frames: int = 5

    @classmethod
    def from_dict(cls, config: dict) -> "CameraSettings":
        """Create settings from the ``camera`` config section."""
        defaults = cls()
        return cls(**{
            name: config.get(name, getattr(defaults, name))
            for name in defaults.__dataclass_fields__
        })


class CapturedFrame(NamedTuple):
    """Newest camera image with its sequence number."""
    frame_id: int
    image: np.ndarray
    timestamp: float


class CameraManager:
    """Threaded latest-frame capture from one OpenCV device."""

    def __init__(self, config: dict):
        self.settings = CameraSettings.from_dict(config)
        self._cap: Optional[cv2.VideoCapture] = None
        self._latest: Optional[CapturedFrame] = None
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._failed_reads = 0

    def open(self) -> bool:
        """Open and warm up the device. Returns False if it is unavailable."""
        s = self.settings
        backend = _BACKENDS.get(s.backend)
        if backend is None:
            logger.warning("Unknown camera backend %r, using auto", s.backend)
            backend = cv2.CAP_ANY

        cap = cv2.VideoCapture(s.device_id, backend)
        if not cap.isOpened():
            logger.error("Cannot open camera %d (backend=%s)", s.device_id, s.backend)
            cap.release()
            return False

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, s.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, s.height)
        cap.set(cv2.CAP_PROP_FPS, s.fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        for _ in range(s.warmup_frames):
            cap.read()

        self._cap = cap
        logger.info("Camera %d opened at %dx%d, %.0f FPS",
                    s.device_id,
                    int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
                    int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
                    cap.get(cv2.CAP_PROP_FPS))
        return True

    def start_async(self):
        """Spawn the capture thread (no-op if closed or already running)."""
        if self._cap is None or (self._thread and self._thread.is_alive()):
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="camera-capture", daemon=True)
        self._thread.start()

    def _run(self):
        frame_id = 0
        while not self._stop.is_set():
            ok, image = self._cap.read()
            if not ok or image is None:
                self._failed_reads += 1
                if self._failed_reads == _STALL_READS:
                    logger.warning("Camera stream stalled (%d failed reads)", _STALL_READS)
                time.sleep(0.005)
                continue

            self._failed_reads = 0
            if self.settings.flip_horizontal:
                image = cv2.flip(image, 1)
            frame_id += 1
            with self._lock:
                self._latest = CapturedFrame(frame_id, image, time.monotonic())

    def read(self) -> Optional[CapturedFrame]:
        """Newest frame, or None before the first one arrives."""
        with self._lock:
            return self._latest

    @property
    def is_open(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    @property
    def stalled(self) -> bool:
        return self._failed_reads >= _STALL_READS

    def stop(self):
        """Join the capture thread and release the device."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info("Camera released")

    def __enter__(self):
        if self.open():
            self.start_async()
        return self

    def __exit__(self, *args):
        self.stop()
