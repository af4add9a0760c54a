"""air-canvas - Freehand drawing in the air from hand landmarks."""

__version__ = "0.1.0"

from air_canvas.landmarks import Frame, NO_HAND, Point, MalformedLandmarksError, parse_landmarks
from air_canvas.gestures import Gesture, HandGeometry
from air_canvas.classifier import GestureClassifier, Classification, classify
from air_canvas.smoothing import EmaSmoother, ema
from air_canvas.stroke import StrokeMachine, StrokeState, StrokeOutcome, FistTrigger
from air_canvas.canvas import Brush, DrawCommand, DrawingSurface, OverlayStyle, render_overlay
from air_canvas.gallery import SnapshotGallery, CaptureExporter, CaptureError
from air_canvas.processor import FrameProcessor, FrameEffects, Status, StatusKind
from air_canvas.effects import EffectExecutor, ExecutionResult, StatusReport
from air_canvas.config import AppConfig, load_config
from air_canvas.recorder import FrameRecorder, FramePlayer
