"""Carries out FrameEffects against the surface, gallery and exporter.

This is the boundary between the pure frame processor and the side-effecting
collaborators. Persistence failures are logged and reported as status; they
never propagate back into the processor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

import numpy as np

from air_canvas.canvas import DrawCommand, DrawingSurface, OverlayStyle, render_overlay
from air_canvas.gallery import CaptureError, CaptureExporter, SnapshotGallery
from air_canvas.processor import FrameEffects, StatusKind

logger = logging.getLogger("air_canvas.effects")


@dataclass
class StatusReport:
    """What the status panel should show after a frame."""
    text: str
    kind: StatusKind
    gesture_label: str
    frame_rate: Optional[int]


@dataclass
class ExecutionResult:
    """Outcome of applying one frame's effects."""
    segments_drawn: int = 0
    snapshot_saved: bool = False
    capture_path: Optional[Path] = None
    errors: list[str] = field(default_factory=list)

    @property
    def flash(self) -> bool:
        """True when a capture succeeded and the UI should flash."""
        return self.capture_path is not None


StatusSink = Callable[[StatusReport], None]


class EffectExecutor:
    """Applies frame effects to the real rendering and persistence objects."""

    def __init__(
        self,
        surface: DrawingSurface,
        gallery: SnapshotGallery,
        exporter: CaptureExporter,
        status_sink: Optional[StatusSink] = None,
        overlay_style: Optional[OverlayStyle] = None,
    ):
        self.surface = surface
        self.gallery = gallery
        self.exporter = exporter
        self.status_sink = status_sink
        self.overlay_style = overlay_style or OverlayStyle()
        self.last_status: Optional[StatusReport] = None

    def apply(
        self,
        effects: FrameEffects,
        overlay_target: Optional[np.ndarray] = None,
    ) -> ExecutionResult:
        """Execute one frame's effects in order: draw, overlay, snapshot, capture, status."""
        result = ExecutionResult()

        for cmd in effects.commands:
            self.surface.apply(cmd)
            if cmd.type == "line":
                result.segments_drawn += 1

        if overlay_target is not None and effects.overlay is not None:
            render_overlay(overlay_target, effects.overlay, self.overlay_style)

        if effects.save_snapshot:
            try:
                self.gallery.add(self.surface.snapshot())
                result.snapshot_saved = True
            except CaptureError as e:
                logger.error("Snapshot failed: %s", e)
                result.errors.append(f"Snapshot failed: {e}")

        if effects.trigger_capture:
            try:
                result.capture_path = self.exporter.capture(self.surface.snapshot())
            except CaptureError as e:
                logger.error("Capture failed: %s", e)
                result.errors.append(f"Capture failed: {e}")

        if result.errors:
            self._report(StatusReport(
                text=result.errors[-1],
                kind=StatusKind.INACTIVE,
                gesture_label=effects.gesture.value,
                frame_rate=effects.frame_rate,
            ))
        else:
            self._report(StatusReport(
                text=effects.status.text,
                kind=effects.status.kind,
                gesture_label=effects.gesture.value,
                frame_rate=effects.frame_rate,
            ))

        return result

    def capture(self) -> Optional[Path]:
        """User-initiated download of the current surface.

        Returns the written path, or None when the export failed (the
        failure is reported through the status sink).
        """
        try:
            return self.exporter.capture(self.surface.snapshot())
        except CaptureError as e:
            logger.error("Capture failed: %s", e)
            previous = self.last_status
            self._report(StatusReport(
                text=f"Capture failed: {e}",
                kind=StatusKind.INACTIVE,
                gesture_label=previous.gesture_label if previous else "None",
                frame_rate=previous.frame_rate if previous else None,
            ))
            return None

    def clear(self) -> DrawCommand:
        """Erase the surface and empty the gallery."""
        self.surface.clear()
        self.gallery.clear()
        logger.info("Canvas cleared")
        return DrawCommand.clear()

    def _report(self, status: StatusReport):
        self.last_status = status
        if self.status_sink is not None:
            self.status_sink(status)
