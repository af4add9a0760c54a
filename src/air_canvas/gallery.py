"""Snapshot gallery and image capture export."""

from __future__ import annotations

import logging
import time
from collections import deque
from pathlib import Path
from typing import Iterator, Optional

import cv2
import numpy as np

logger = logging.getLogger("air_canvas.gallery")

DEFAULT_GALLERY_SIZE = 10


class CaptureError(RuntimeError):
    """Raised when a snapshot or capture image cannot be persisted."""


def _write_png(path: Path, image: np.ndarray):
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        ok = cv2.imwrite(str(path), image)
    except (OSError, cv2.error) as e:
        raise CaptureError(f"Could not write {path}: {e}") from e
    if not ok:
        raise CaptureError(f"Could not write {path}")


class SnapshotGallery:
    """Most-recent-first collection of committed canvas snapshots.

    Holds at most `capacity` images; adding to a full gallery evicts the
    oldest one.
    """

    def __init__(self, capacity: int = DEFAULT_GALLERY_SIZE):
        if capacity < 1:
            raise ValueError(f"Gallery capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._items: deque[np.ndarray] = deque(maxlen=capacity)

    def add(self, image: np.ndarray):
        if image is None or image.size == 0:
            raise CaptureError("Cannot store an empty snapshot")
        self._items.appendleft(image.copy())
        logger.debug("Snapshot saved (%d/%d)", len(self._items), self.capacity)

    def clear(self):
        self._items.clear()

    @property
    def latest(self) -> Optional[np.ndarray]:
        return self._items[0] if self._items else None

    def save_all(self, directory: str | Path, prefix: str = "snapshot") -> list[Path]:
        """Write every snapshot as PNG, newest first (index 0)."""
        directory = Path(directory)
        paths = []
        for i, image in enumerate(self._items):
            path = directory / f"{prefix}-{i:02d}.png"
            _write_png(path, image)
            paths.append(path)
        return paths

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self._items)


class CaptureExporter:
    """Exports the drawing surface as a timestamped PNG download."""

    def __init__(self, directory: str | Path = "captures", prefix: str = "air-art"):
        self.directory = Path(directory)
        self.prefix = prefix
        self._count = 0

    def filename(self, timestamp_ms: int) -> str:
        return f"{self.prefix}-{timestamp_ms}.png"

    def capture(self, image: np.ndarray, timestamp_ms: Optional[int] = None) -> Path:
        """Write `image` and return the path.

        Raises:
            CaptureError: if the image cannot be written.
        """
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)
        path = self.directory / self.filename(timestamp_ms)
        _write_png(path, image)
        self._count += 1
        logger.info("Captured canvas to %s", path)
        return path

    @property
    def capture_count(self) -> int:
        return self._count
