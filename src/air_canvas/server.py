"""WebSocket server for browser-based air drawing.

The browser runs the hand-pose estimator and streams landmark frames to
`/ws/frames`; the server runs the frame processor, paints its own copy of
the canvas, and answers each frame with the effects the client should
render. Viewers on `/ws/canvas` receive the same draw commands.

Usage:
    air-canvas serve
    # or
    uvicorn air_canvas.server:app --host 127.0.0.1 --port 8765
"""

from __future__ import annotations

import base64
import json
import logging
import time
from typing import Optional

import cv2
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from air_canvas import __version__
from air_canvas.canvas import DrawingSurface
from air_canvas.config import AppConfig
from air_canvas.effects import EffectExecutor, ExecutionResult, StatusReport
from air_canvas.gallery import CaptureExporter, SnapshotGallery
from air_canvas.landmarks import NO_HAND, Frame, MalformedLandmarksError
from air_canvas.processor import FrameProcessor

logger = logging.getLogger("air_canvas.server")

app = FastAPI(title="air-canvas", version=__version__)


# --- State ---

class ServerState:
    def __init__(self):
        self.canvas_clients: set[WebSocket] = set()
        self.frame_clients = 0
        self.config = AppConfig()
        self.processor: Optional[FrameProcessor] = None
        self.surface: Optional[DrawingSurface] = None
        self.gallery: Optional[SnapshotGallery] = None
        self.executor: Optional[EffectExecutor] = None
        self.status: Optional[StatusReport] = None
        self.total_frames = 0
        self.rejected_frames = 0
        self.captures = 0
        self.configure(self.config)

    def configure(self, config: AppConfig):
        """(Re)build the processing stack for a new configuration."""
        self.config = config
        self.processor = FrameProcessor.from_config(config)
        self.surface = DrawingSurface(config.canvas_width, config.canvas_height)
        self.gallery = SnapshotGallery(config.gallery_size)
        self.executor = EffectExecutor(
            self.surface,
            self.gallery,
            CaptureExporter(config.capture_dir),
            status_sink=self._on_status,
        )
        self.status = None
        self.total_frames = 0
        self.rejected_frames = 0
        self.captures = 0

    def _on_status(self, report: StatusReport):
        self.status = report


state = ServerState()


# --- Request bodies ---

class BrushUpdate(BaseModel):
    color: Optional[str] = None
    width: Optional[int] = None


# --- API endpoints ---

@app.get("/api/status")
async def api_status():
    status = state.status
    return {
        "frames": state.total_frames,
        "rejected_frames": state.rejected_frames,
        "frame_clients": state.frame_clients,
        "canvas_clients": len(state.canvas_clients),
        "status": {"text": status.text, "kind": status.kind.value} if status else None,
        "gesture": state.processor.gesture.value,
        "frame_rate": state.processor.frame_rate,
        "stroke_state": state.processor.strokes.state.value,
        "gallery_size": len(state.gallery),
        "captures": state.captures,
    }


@app.get("/api/config")
async def api_config():
    brush = state.processor.brush
    return {
        "canvas": {"width": state.surface.width, "height": state.surface.height},
        "brush": {"color": brush.color, "width": brush.width},
        "palette": state.config.palette,
        "max_brush_width": state.config.max_brush_width,
    }


@app.post("/api/brush")
async def api_brush(update: BrushUpdate):
    if update.color is not None and not state.config.in_palette(update.color):
        raise HTTPException(status_code=400, detail=f"Color {update.color!r} is not in the palette")
    if update.width is not None and not 1 <= update.width <= state.config.max_brush_width:
        raise HTTPException(
            status_code=400,
            detail=f"Width must be between 1 and {state.config.max_brush_width}",
        )
    try:
        brush = state.processor.set_brush(color=update.color, width=update.width)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"color": brush.color, "width": brush.width}


@app.post("/api/clear")
async def api_clear():
    cmd = state.executor.clear()
    await broadcast_canvas({"type": "canvas_commands", "commands": [cmd.to_dict()]})
    return {"cleared": True}


@app.post("/api/capture")
async def api_capture():
    path = state.executor.capture()
    if path is None:
        detail = state.status.text if state.status else "Capture failed"
        raise HTTPException(status_code=500, detail=detail)
    state.captures += 1
    return {"filename": path.name, "path": str(path)}


@app.get("/api/gallery")
async def api_gallery():
    snapshots = []
    for image in state.gallery:
        ok, buf = cv2.imencode(".png", image)
        if ok:
            snapshots.append(base64.b64encode(buf.tobytes()).decode("ascii"))
    return {"count": len(snapshots), "capacity": state.gallery.capacity, "snapshots": snapshots}


# --- WebSocket: landmark frames ---

def handle_frame(data: dict) -> tuple[dict, Optional[ExecutionResult]]:
    """Run one client frame through the processor and executor."""
    raw = data.get("landmarks")
    now = data.get("timestamp")
    if now is None:
        now = time.monotonic() * 1000.0

    try:
        frame = NO_HAND if raw is None else Frame.hand(raw)
        now = float(now)
    except (MalformedLandmarksError, TypeError, ValueError) as e:
        state.rejected_frames += 1
        return {"type": "error", "message": f"Rejected frame: {e}"}, None

    state.total_frames += 1
    effects = state.processor.process_frame(frame, now)
    result = state.executor.apply(effects)
    if result.capture_path is not None:
        state.captures += 1

    reply = {
        "type": "effects",
        **effects.to_dict(),
        "snapshot_saved": result.snapshot_saved,
        "capture": result.capture_path.name if result.capture_path else None,
        "flash": result.flash,
        "errors": result.errors,
    }
    if state.status is not None:
        reply["status"] = {"text": state.status.text, "kind": state.status.kind.value}
    return reply, result


@app.websocket("/ws/frames")
async def frames_websocket(ws: WebSocket):
    await ws.accept()
    # One processor, one stroke machine: a second source would interleave
    if state.frame_clients > 0:
        logger.warning("Rejecting frame source, one is already connected")
        await ws.send_json({"type": "error", "message": "Another frame source is already connected"})
        await ws.close(code=1013)
        return

    state.frame_clients += 1
    logger.info("Frame source connected")

    try:
        while True:
            msg = await ws.receive_text()
            try:
                data = json.loads(msg)
            except json.JSONDecodeError:
                await ws.send_json({"type": "error", "message": "Invalid JSON"})
                continue

            kind = data.get("type") if isinstance(data, dict) else None
            if kind == "ping":
                await ws.send_json({"type": "pong", "server_time": time.time()})
            elif kind == "frame":
                reply, _ = handle_frame(data)
                await ws.send_json(reply)
                if reply["type"] == "effects" and reply["commands"]:
                    await broadcast_canvas({"type": "canvas_commands", "commands": reply["commands"]})
            else:
                await ws.send_json({"type": "error", "message": f"Unknown message type: {kind!r}"})
    except WebSocketDisconnect:
        pass
    finally:
        state.frame_clients -= 1
        logger.info("Frame source disconnected")


# --- WebSocket: canvas viewers ---

@app.websocket("/ws/canvas")
async def canvas_websocket(ws: WebSocket):
    await ws.accept()
    state.canvas_clients.add(ws)
    logger.info("Canvas client connected (%d total)", len(state.canvas_clients))

    try:
        await ws.send_json({
            "type": "canvas_sync",
            "width": state.surface.width,
            "height": state.surface.height,
            "png": base64.b64encode(state.surface.encode_png()).decode("ascii"),
        })

        while True:
            msg = await ws.receive_text()
            try:
                data = json.loads(msg)
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict) and data.get("type") == "ping":
                await ws.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        state.canvas_clients.discard(ws)


async def broadcast_canvas(message: dict):
    """Send message to all canvas viewers."""
    if not state.canvas_clients:
        return
    dead = set()
    payload = json.dumps(message)
    for ws in state.canvas_clients:
        try:
            await ws.send_text(payload)
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug("Dropping canvas client: %s", e)
            dead.add(ws)
    state.canvas_clients -= dead
