"""Application configuration, loaded from YAML.

Example config.yml:

    canvas_width: 1280
    canvas_height: 720
    brush_color: "#ff3e3e"
    brush_width: 8
    capture_dir: captures
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

from air_canvas.canvas import DEFAULT_BRUSH_COLOR, DEFAULT_BRUSH_WIDTH, PALETTE, Brush, hex_to_bgr
from air_canvas.gallery import DEFAULT_GALLERY_SIZE
from air_canvas.smoothing import DEFAULT_ALPHA
from air_canvas.stroke import DEFAULT_DEBOUNCE_FRAMES, DEFAULT_MIN_STROKE_MS

logger = logging.getLogger("air_canvas.config")


@dataclass
class AppConfig:
    # Drawing
    canvas_width: int = 1280
    canvas_height: int = 720
    brush_color: str = DEFAULT_BRUSH_COLOR
    brush_width: int = DEFAULT_BRUSH_WIDTH
    palette: list[str] = field(default_factory=lambda: list(PALETTE))
    max_brush_width: int = 40

    # Frame processing
    smoothing_alpha: float = DEFAULT_ALPHA
    debounce_frames: int = DEFAULT_DEBOUNCE_FRAMES
    min_stroke_ms: float = DEFAULT_MIN_STROKE_MS
    mirror: bool = True

    # Persistence
    gallery_size: int = DEFAULT_GALLERY_SIZE
    capture_dir: str = "captures"

    # Landmark source
    camera_index: int = 0
    camera_width: int = 1280
    camera_height: int = 720
    max_hands: int = 1
    min_detection_confidence: float = 0.7
    min_tracking_confidence: float = 0.7

    # Server
    host: str = "127.0.0.1"
    port: int = 8765
    log_level: str = "info"

    def validate(self) -> AppConfig:
        """Check value ranges. Returns self so calls can be chained."""
        if self.canvas_width < 1 or self.canvas_height < 1:
            raise ValueError(
                f"Canvas size must be positive, got {self.canvas_width}x{self.canvas_height}"
            )
        if not 0.0 < self.smoothing_alpha <= 1.0:
            raise ValueError(f"smoothing_alpha must be in (0, 1], got {self.smoothing_alpha}")
        if self.debounce_frames < 0:
            raise ValueError(f"debounce_frames must be >= 0, got {self.debounce_frames}")
        if self.min_stroke_ms < 0:
            raise ValueError(f"min_stroke_ms must be >= 0, got {self.min_stroke_ms}")
        if self.gallery_size < 1:
            raise ValueError(f"gallery_size must be >= 1, got {self.gallery_size}")
        if not self.palette:
            raise ValueError("palette must contain at least one color")
        for color in self.palette:
            hex_to_bgr(color)
        if not 1 <= self.brush_width <= self.max_brush_width:
            raise ValueError(
                f"brush_width must be between 1 and {self.max_brush_width}, got {self.brush_width}"
            )
        Brush(self.brush_color, self.brush_width)
        if not self.in_palette(self.brush_color):
            raise ValueError(f"brush_color {self.brush_color!r} is not in the palette")
        for name in ("min_detection_confidence", "min_tracking_confidence"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        return self

    def in_palette(self, color: str) -> bool:
        return color.lower() in (c.lower() for c in self.palette)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> AppConfig:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in known}).validate()

    @classmethod
    def from_yaml(cls, path: str | Path) -> AppConfig:
        """Load config from a YAML file. Missing keys keep their defaults."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return cls.from_dict(data)

    def to_yaml(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)


def load_config(path: Optional[str | Path] = None) -> AppConfig:
    """Load config from `path`, or return defaults when no path is given."""
    if path is None:
        return AppConfig().validate()
    logger.info("Loading config from %s", path)
    return AppConfig.from_yaml(path)
