"""air-canvas CLI - the main entry point for all operations.

Usage:
    air-canvas serve    - Start the WebSocket server for the browser front end
    air-canvas run      - Draw with a local camera in an OpenCV window
    air-canvas record   - Record landmark frames from the camera
    air-canvas replay   - Replay a recording through the frame processor
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from pathlib import Path
from typing import Optional

import typer

from air_canvas.config import AppConfig, load_config

app = typer.Typer(
    name="air-canvas",
    help="✍️  Freehand drawing in the air from hand landmarks.",
    add_completion=False,
)

WINDOW_NAME = "air-canvas"


@app.callback()
def main_callback(
    log_level: str = typer.Option("warning", "--log-level", help="Log level"),
):
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load(config_path: Optional[str]) -> AppConfig:
    try:
        return load_config(config_path)
    except (OSError, ValueError) as e:
        typer.echo(f"❌ Invalid config: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def serve(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config YAML"),
    host: Optional[str] = typer.Option(None, help="Bind address (overrides config)"),
    port: Optional[int] = typer.Option(None, help="Port (overrides config)"),
):
    """Start the landmark-frame WebSocket server."""
    import uvicorn
    from air_canvas.server import app as fastapi_app, state

    cfg = _load(config)
    state.configure(cfg)

    bind_host = host or cfg.host
    bind_port = port or cfg.port
    typer.echo(f"🚀 Starting air-canvas server on {bind_host}:{bind_port}")
    typer.echo(f"   Frames: ws://{bind_host}:{bind_port}/ws/frames")
    uvicorn.run(fastapi_app, host=bind_host, port=bind_port, log_level=cfg.log_level)


def _open_camera(cfg: AppConfig):
    import cv2

    cap = cv2.VideoCapture(cfg.camera_index)
    if not cap.isOpened():
        typer.echo(f"❌ Could not open camera {cfg.camera_index} (permission required?)", err=True)
        raise typer.Exit(1)
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, cfg.camera_width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, cfg.camera_height)
    return cap


def _draw_status(image, status, brush):
    import cv2

    if status is None:
        return
    color = (120, 220, 120) if status.kind.value == "active" else (80, 80, 230)
    fps = status.frame_rate if status.frame_rate is not None else "-"
    lines = [
        status.text,
        f"Gesture: {status.gesture_label}",
        f"FPS: {fps}",
        f"Brush: {brush.color} / {brush.width}px",
    ]
    for i, text in enumerate(lines):
        cv2.putText(image, text, (12, 28 + i * 24), cv2.FONT_HERSHEY_SIMPLEX,
                    0.6, color if i == 0 else (255, 255, 255), 2, cv2.LINE_AA)


@app.command()
def run(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config YAML"),
    camera: Optional[int] = typer.Option(None, help="Camera device index (overrides config)"),
):
    """Draw with the local camera. Keys: q quit, c clear, s capture, 1-9 color, +/- width."""
    import cv2
    import numpy as np
    from air_canvas.canvas import DrawingSurface
    from air_canvas.detector import HandDetector
    from air_canvas.effects import EffectExecutor
    from air_canvas.gallery import CaptureExporter, SnapshotGallery
    from air_canvas.processor import FrameProcessor

    cfg = _load(config)
    if camera is not None:
        cfg.camera_index = camera

    typer.echo("🖐  Initializing hands...")
    detector = HandDetector.from_config(cfg)
    typer.echo("🎥 Starting camera...")
    cap = _open_camera(cfg)

    width, height = cfg.canvas_width, cfg.canvas_height
    processor = FrameProcessor.from_config(cfg)
    surface = DrawingSurface(width, height)
    gallery = SnapshotGallery(cfg.gallery_size)
    board = {}
    executor = EffectExecutor(
        surface, gallery, CaptureExporter(cfg.capture_dir),
        status_sink=lambda report: board.update(status=report),
    )

    white = np.full((height, width, 3), 255, dtype=np.uint8)
    flash_until = 0.0
    typer.echo("✅ Camera Active. Point to draw, make a fist to capture.")

    try:
        while True:
            ret, image = cap.read()
            if not ret:
                continue

            now = time.perf_counter() * 1000.0
            frame = detector.detect(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))
            effects = processor.process_frame(frame, now)

            view = cv2.resize(image, (width, height))
            if cfg.mirror:
                view = cv2.flip(view, 1)
            result = executor.apply(effects, overlay_target=view)
            if result.flash:
                typer.echo(f"📸 Saved {result.capture_path}")
                flash_until = now + 150.0

            display = surface.composite(view)
            if now < flash_until:
                display = cv2.addWeighted(display, 0.4, white, 0.6, 0)
            _draw_status(display, board.get("status"), processor.brush)
            cv2.imshow(WINDOW_NAME, display)

            key = cv2.waitKey(1) & 0xFF
            if key == ord("q"):
                break
            elif key == ord("c"):
                executor.clear()
            elif key == ord("s"):
                path = executor.capture()
                if path is not None:
                    typer.echo(f"📸 Saved {path}")
                    flash_until = now + 150.0
            elif ord("1") <= key <= ord("9"):
                index = key - ord("1")
                if index < len(cfg.palette):
                    processor.set_brush(color=cfg.palette[index])
            elif key in (ord("+"), ord("=")):
                processor.set_brush(width=min(cfg.max_brush_width, processor.brush.width + 1))
            elif key == ord("-"):
                processor.set_brush(width=max(1, processor.brush.width - 1))
    except KeyboardInterrupt:
        pass
    finally:
        cap.release()
        detector.close()
        cv2.destroyAllWindows()

    typer.echo(f"\n🖼  {len(gallery)} snapshot(s) in gallery, {executor.exporter.capture_count} capture(s)")


@app.command()
def record(
    output: str = typer.Option("recording.json", "-o", help="Output file path"),
    duration: float = typer.Option(0, help="Recording duration in seconds (0 = until Ctrl+C)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config YAML"),
):
    """Record landmark frames from the camera."""
    import cv2
    from air_canvas.detector import HandDetector
    from air_canvas.recorder import FrameRecorder

    cfg = _load(config)
    detector = HandDetector.from_config(cfg)
    cap = _open_camera(cfg)
    recorder = FrameRecorder()

    typer.echo(f"🎥 Recording from camera {cfg.camera_index}...")
    typer.echo("   Press Ctrl+C to stop")
    recorder.start()
    start = time.monotonic()

    try:
        while True:
            ret, image = cap.read()
            if not ret:
                continue

            frame = detector.detect(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))
            recorder.add_frame(frame)

            if recorder.frame_count % 30 == 0:
                elapsed = time.monotonic() - start
                typer.echo(
                    f"\r   Frames: {recorder.frame_count} | Duration: {elapsed:.1f}s | "
                    f"Hand: {'yes' if frame.has_hand else 'no'}",
                    nl=False,
                )

            if duration > 0 and (time.monotonic() - start) >= duration:
                break
    except KeyboardInterrupt:
        pass
    finally:
        recorder.stop()
        cap.release()
        detector.close()

    recorder.save(output)
    typer.echo(f"\n\n📼 Recorded {recorder.frame_count} frames ({recorder.duration / 1000:.1f}s)")
    typer.echo(f"💾 Saved to: {output}")


@app.command()
def replay(
    recording: str = typer.Argument(..., help="Path to recording file"),
    output: str = typer.Option("replay-output", "-o", help="Directory for canvas, gallery and captures"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config YAML"),
    realtime: bool = typer.Option(False, help="Play at original timing"),
    speed: float = typer.Option(1.0, help="Playback speed multiplier"),
):
    """Replay a recorded session through the frame processor."""
    import cv2
    from air_canvas.canvas import DrawingSurface
    from air_canvas.effects import EffectExecutor
    from air_canvas.gallery import CaptureExporter, SnapshotGallery
    from air_canvas.landmarks import MalformedLandmarksError
    from air_canvas.processor import FrameProcessor
    from air_canvas.recorder import FramePlayer

    path = Path(recording)
    if not path.exists():
        typer.echo(f"❌ Recording not found: {recording}", err=True)
        raise typer.Exit(1)

    try:
        player = FramePlayer.load(path)
    except (ValueError, KeyError) as e:
        typer.echo(f"❌ Could not read recording: {e}", err=True)
        raise typer.Exit(1)

    cfg = _load(config)
    out_dir = Path(output)
    processor = FrameProcessor.from_config(cfg)
    surface = DrawingSurface(cfg.canvas_width, cfg.canvas_height)
    gallery = SnapshotGallery(cfg.gallery_size)
    executor = EffectExecutor(surface, gallery, CaptureExporter(out_dir / "captures"))

    typer.echo(f"▶️  Replaying {path.name} ({player.frame_count} frames, {player.duration / 1000:.1f}s)")

    gestures: Counter = Counter()
    outcomes: Counter = Counter()
    segments = captures = rejected = 0

    frames = player.play_realtime(speed=speed) if realtime else player.play()
    for recorded in frames:
        try:
            frame = recorded.to_frame()
        except MalformedLandmarksError as e:
            rejected += 1
            logging.getLogger("air_canvas.cli").warning("Skipping frame at %.0f ms: %s", recorded.timestamp, e)
            continue

        effects = processor.process_frame(frame, recorded.timestamp)
        result = executor.apply(effects)

        gestures[effects.gesture.value] += 1
        if effects.stroke_outcome is not None:
            outcomes[effects.stroke_outcome.value] += 1
        segments += result.segments_drawn
        if result.capture_path is not None:
            captures += 1
            typer.echo(f"   📸 {result.capture_path.name}")
        for error in result.errors:
            typer.echo(f"   ⚠️  {error}", err=True)

    out_dir.mkdir(parents=True, exist_ok=True)
    canvas_path = out_dir / "canvas.png"
    cv2.imwrite(str(canvas_path), surface.image)
    saved = gallery.save_all(out_dir / "gallery")

    typer.echo("\n📊 Summary:")
    typer.echo(f"   Gestures:  {dict(gestures)}")
    typer.echo(f"   Segments:  {segments}")
    typer.echo(f"   Strokes:   {outcomes.get('committed', 0)} committed, {outcomes.get('discarded', 0)} discarded")
    typer.echo(f"   Captures:  {captures}")
    if rejected:
        typer.echo(f"   Rejected:  {rejected} malformed frame(s)")
    typer.echo(f"✅ Canvas saved to {canvas_path}, {len(saved)} snapshot(s) in {out_dir / 'gallery'}")


def main():
    app()


if __name__ == "__main__":
    main()
