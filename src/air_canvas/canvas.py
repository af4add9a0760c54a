"""Drawing surface, draw commands and the skeleton overlay.

The surface is a transparent BGRA image that strokes are painted onto with
OpenCV. Draw commands are the serializable form of what the frame processor
asks for, so they can be applied locally or streamed to browser clients.

Usage:
    surface = DrawingSurface(1280, 720)
    for cmd in effects.commands:
        surface.apply(cmd)
    png = surface.encode_png()
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from air_canvas.landmarks import HAND_CONNECTIONS, Point

DEFAULT_BRUSH_COLOR = "#ff3e3e"
DEFAULT_BRUSH_WIDTH = 8

PALETTE = [
    "#ff3e3e",  # red
    "#ffa43e",  # orange
    "#ffe83e",  # yellow
    "#3eff8b",  # green
    "#3ec5ff",  # blue
    "#a43eff",  # purple
    "#ffffff",  # white
]

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")

# Fixed-point bits for sub-pixel line endpoints
_SHIFT = 4


def hex_to_bgr(color: str) -> tuple[int, int, int]:
    """Convert '#rrggbb' to an OpenCV BGR tuple."""
    match = _HEX_RE.match(color or "")
    if not match:
        raise ValueError(f"Invalid color {color!r}, expected '#rrggbb'")
    value = match.group(1)
    r, g, b = (int(value[i:i + 2], 16) for i in (0, 2, 4))
    return b, g, r


@dataclass(frozen=True)
class Brush:
    """Stroke color and width, read by the frame processor every frame."""
    color: str = DEFAULT_BRUSH_COLOR
    width: int = DEFAULT_BRUSH_WIDTH

    def __post_init__(self):
        hex_to_bgr(self.color)
        if isinstance(self.width, bool) or not isinstance(self.width, int) or self.width < 1:
            raise ValueError(f"Brush width must be a positive integer, got {self.width!r}")


@dataclass
class DrawCommand:
    """A single drawing command for the persistent surface."""
    type: str  # "line", "clear"
    x: float = 0.0
    y: float = 0.0
    x2: float = 0.0
    y2: float = 0.0
    color: str = DEFAULT_BRUSH_COLOR
    width: int = DEFAULT_BRUSH_WIDTH
    cap: str = "round"
    join: str = "round"
    timestamp: float = 0.0

    @classmethod
    def line(cls, start: Point, end: Point, brush: Brush, timestamp: float = 0.0) -> DrawCommand:
        return cls(
            type="line",
            x=start[0], y=start[1],
            x2=end[0], y2=end[1],
            color=brush.color,
            width=brush.width,
            timestamp=timestamp,
        )

    @classmethod
    def clear(cls, timestamp: float = 0.0) -> DrawCommand:
        return cls(type="clear", timestamp=timestamp)

    def to_dict(self) -> dict:
        if self.type == "line":
            return {
                "type": "line",
                "x1": round(self.x, 1),
                "y1": round(self.y, 1),
                "x2": round(self.x2, 1),
                "y2": round(self.y2, 1),
                "color": self.color,
                "width": self.width,
                "cap": self.cap,
                "join": self.join,
            }
        return {"type": self.type}


class DrawingSurface:
    """Persistent transparent canvas that strokes accumulate on."""

    def __init__(self, width: int = 1280, height: int = 720):
        self.width = width
        self.height = height
        self._image = np.zeros((height, width, 4), dtype=np.uint8)

    def draw_segment(self, start: Point, end: Point, color: str, width: int):
        """Draw one anti-aliased segment. OpenCV thick lines have round caps."""
        b, g, r = hex_to_bgr(color)
        scale = 1 << _SHIFT
        p1 = (int(round(start[0] * scale)), int(round(start[1] * scale)))
        p2 = (int(round(end[0] * scale)), int(round(end[1] * scale)))
        cv2.line(
            self._image, p1, p2, (b, g, r, 255),
            thickness=max(1, int(width)),
            lineType=cv2.LINE_AA,
            shift=_SHIFT,
        )

    def apply(self, command: DrawCommand):
        if command.type == "line":
            self.draw_segment(
                (command.x, command.y), (command.x2, command.y2),
                command.color, command.width,
            )
        elif command.type == "clear":
            self.clear()
        else:
            raise ValueError(f"Unknown draw command type: {command.type!r}")

    def clear(self):
        self._image[:] = 0

    def resize(self, width: int, height: int):
        """Resize the surface. Like a browser canvas, this drops its content."""
        self.width = width
        self.height = height
        self._image = np.zeros((height, width, 4), dtype=np.uint8)

    def snapshot(self) -> np.ndarray:
        return self._image.copy()

    def encode_png(self) -> bytes:
        ok, buf = cv2.imencode(".png", self._image)
        if not ok:
            raise RuntimeError("PNG encoding failed")
        return buf.tobytes()

    def composite(self, background: np.ndarray) -> np.ndarray:
        """Alpha-blend the strokes over a BGR frame of the same size."""
        alpha = self._image[:, :, 3:4].astype(np.float32) / 255.0
        strokes = self._image[:, :, :3].astype(np.float32)
        blended = strokes * alpha + background.astype(np.float32) * (1.0 - alpha)
        return blended.astype(np.uint8)

    @property
    def image(self) -> np.ndarray:
        return self._image

    @property
    def is_blank(self) -> bool:
        return not self._image[:, :, 3].any()


@dataclass(frozen=True)
class OverlayStyle:
    connector_color: str = "#6c5ce7"
    connector_width: int = 1
    landmark_color: str = "#ffffff"
    landmark_radius: float = 1.5


def render_overlay(
    image: np.ndarray,
    landmarks: Optional[np.ndarray],
    style: Optional[OverlayStyle] = None,
) -> np.ndarray:
    """Draw the hand skeleton onto `image` in place.

    Args:
        image: BGR or BGRA image to draw on.
        landmarks: Normalized (already mirrored) landmarks, shape (21, 2+).
        style: Colors and sizes; defaults to OverlayStyle().
    """
    if landmarks is None:
        return image
    style = style or OverlayStyle()
    h, w = image.shape[:2]
    channels = image.shape[2] if image.ndim == 3 else 1

    def color(hex_color: str):
        bgr = hex_to_bgr(hex_color)
        return (*bgr, 255) if channels == 4 else bgr

    pts = [(int(lm[0] * w), int(lm[1] * h)) for lm in landmarks]

    for a, b in HAND_CONNECTIONS:
        cv2.line(image, pts[a], pts[b], color(style.connector_color),
                 style.connector_width, cv2.LINE_AA)

    radius = max(1, int(round(style.landmark_radius)))
    for p in pts:
        cv2.circle(image, p, radius, color(style.landmark_color), -1, cv2.LINE_AA)

    return image
