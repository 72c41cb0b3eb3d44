"""
OpenCV point-cloud preview.

Projects the particle field through the orbiting camera (perspective, looking
at the origin) into a BGR image. Points are splatted additively and a light
Gaussian glow is layered on top, with a small HUD for FPS and hand status.
"""

import math
import logging
from typing import Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)

_WORLD_UP = np.array([0.0, 1.0, 0.0])


class PointCloudPreview:
    """Renders a FrameResult into an image for ``cv2.imshow``."""

    def __init__(self, config: dict = None):
        config = config or {}
        self._width = config.get("width", 960)
        self._height = config.get("height", 540)
        self._fov = config.get("fov", 65.0)
        self._near = config.get("near", 0.1)
        self._point_gain = config.get("point_gain", 0.6)
        self._glow_sigma = config.get("glow_sigma", 3.0)
        self._glow_strength = config.get("glow_strength", 0.8)
        self._show_hud = config.get("show_hud", True)

        colors = config.get("colors", {})
        self._color_text = tuple(colors.get("text", [255, 255, 255]))
        self._color_hand_on = tuple(colors.get("hand_detected", [0, 255, 0]))
        self._color_hand_off = tuple(colors.get("hand_lost", [0, 150, 255]))

        self._focal = (self._height / 2.0) / math.tan(math.radians(self._fov) / 2.0)
        logger.info("Preview %dx%d, fov=%.0f", self._width, self._height, self._fov)

    def project(self, positions: np.ndarray, camera_position) -> Tuple[np.ndarray, np.ndarray]:
        """Project flat or (N, 3) positions into pixel coordinates.

        Returns:
            (pixels, visible) where pixels is an (N, 2) int array and visible
            is a boolean mask of points in front of the camera and on screen
        """
        points = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        eye = np.asarray(camera_position, dtype=np.float64)

        forward = -eye / max(np.linalg.norm(eye), 1e-9)
        right = np.cross(forward, _WORLD_UP)
        right /= max(np.linalg.norm(right), 1e-9)
        up = np.cross(right, forward)

        rel = points - eye
        x_cam = rel @ right
        y_cam = rel @ up
        z_cam = rel @ forward

        in_front = z_cam > self._near
        safe_z = np.where(in_front, z_cam, 1.0)
        px = self._width / 2.0 + self._focal * x_cam / safe_z
        py = self._height / 2.0 - self._focal * y_cam / safe_z

        pixels = np.stack([px, py], axis=1)
        pixels = np.rint(np.nan_to_num(pixels, nan=-1.0, posinf=-1.0, neginf=-1.0)).astype(np.int64)
        visible = (
            in_front
            & (pixels[:, 0] >= 0) & (pixels[:, 0] < self._width)
            & (pixels[:, 1] >= 0) & (pixels[:, 1] < self._height)
        )
        return pixels, visible

    def render(self, frame_result, fps: float = 0.0, label=None) -> np.ndarray:
        """Draw one FrameResult and return a BGR uint8 image."""
        canvas = np.zeros((self._height, self._width, 3), dtype=np.float32)

        if frame_result.positions is not None and len(frame_result.positions) > 0:
            pixels, visible = self.project(frame_result.positions, frame_result.camera_position)
            colors = np.asarray(frame_result.colors, dtype=np.float32).reshape(-1, 3)
            if colors.shape[0] == pixels.shape[0]:
                px = pixels[visible]
                bgr = colors[visible][:, ::-1] * (255.0 * self._point_gain)
                np.add.at(canvas, (px[:, 1], px[:, 0]), bgr)

        if self._glow_strength > 0.0:
            glow = cv2.GaussianBlur(canvas, (0, 0), self._glow_sigma)
            canvas = canvas + glow * self._glow_strength

        image = np.clip(canvas, 0, 255).astype(np.uint8)

        if self._show_hud:
            self._draw_hud(image, frame_result, fps)
        if label is not None:
            label.render(image)
        return image

    def _draw_hud(self, image, frame_result, fps):
        cv2.putText(
            image, f"FPS: {fps:.1f}",
            (15, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.6, self._color_text, 1,
        )

        if frame_result.hand_detected:
            text, color = "Hand: tracking", self._color_hand_on
        else:
            text, color = "Hand: not detected", self._color_hand_off
        cv2.putText(
            image, text,
            (15, 55), cv2.FONT_HERSHEY_SIMPLEX, 0.5, color, 1,
        )

        if frame_result.transitioning:
            bar_w = 160
            x, y = self._width - bar_w - 15, 20
            cv2.rectangle(image, (x, y), (x + bar_w, y + 8), (60, 60, 60), -1)
            cv2.rectangle(image, (x, y), (x + int(frame_result.progress * bar_w), y + 8),
                          self._color_text, -1)

    def show(self, window_name: str, image: np.ndarray):
        cv2.imshow(window_name, image)

    @staticmethod
    def poll_key(delay_ms: int = 1) -> Optional[int]:
        """Pump the window event loop. Returns the pressed key code or None."""
        key = cv2.waitKey(delay_ms) & 0xFF
        return None if key == 0xFF else key

    @staticmethod
    def close():
        cv2.destroyAllWindows()
