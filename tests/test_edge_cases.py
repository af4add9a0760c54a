"""Edge case tests: degenerate landmarks, odd timing and empty persistence."""

import numpy as np

from air_canvas.canvas import DrawingSurface
from air_canvas.classifier import classify
from air_canvas.effects import EffectExecutor
from air_canvas.gallery import CaptureExporter, SnapshotGallery
from air_canvas.gestures import Gesture, measure_geometry
from air_canvas.landmarks import NO_HAND, Frame
from air_canvas.processor import FrameProcessor
from air_canvas.recorder import FramePlayer, FrameRecorder


class TestLandmarkEdgeCases:
    def test_zero_landmarks(self):
        lm = np.zeros((21, 2), dtype=np.float32)
        # Tips level with PIPs count as not extended, and level with the
        # knuckles counts as below them
        assert classify(lm) == Gesture.FIST

    def test_zero_landmarks_geometry(self):
        geometry = measure_geometry(np.zeros((21, 2), dtype=np.float32))
        assert geometry.hand_scale == 0.0
        assert geometry.pinch_ratio == 0.0

    def test_xyz_input(self, poses):
        lm = np.concatenate([poses.pointing(), np.full((21, 1), -0.1, dtype=np.float32)], axis=1)
        assert classify(lm) == Gesture.POINTING


class TestOutOfBounds:
    def test_cursor_outside_frame(self, poses):
        proc = FrameProcessor(width=100, height=100)
        surface = DrawingSurface(100, 100)
        # Start right of the frame (x = 152), then hold the tip left of it
        # (raw x = -38, y = 110) until the smoothed cursor crosses over
        proc.process_frame(Frame.hand(poses.pointing(dx=-0.9)), 0.0)
        commands = []
        for i in range(1, 11):
            effects = proc.process_frame(Frame.hand(poses.pointing(dx=1.0, dy=0.8)), i * 33.0)
            commands.extend(effects.commands)
        assert effects.cursor.x < 0
        assert effects.cursor.y > 100
        assert any(cmd.x2 < 0 and cmd.y2 > 100 for cmd in commands)
        for cmd in commands:
            surface.apply(cmd)  # clipped by OpenCV, never raises

    def test_overlay_outside_frame(self, poses):
        proc = FrameProcessor(width=50, height=50)
        executor = EffectExecutor(DrawingSurface(50, 50), SnapshotGallery(), CaptureExporter("unused"))
        target = np.zeros((50, 50, 3), dtype=np.uint8)
        executor.apply(proc.process_frame(Frame.hand(poses.open_palm(dx=3.0)), 0.0), overlay_target=target)


class TestTimingEdgeCases:
    def test_duplicate_timestamps(self, poses):
        proc = FrameProcessor()
        for _ in range(5):
            effects = proc.process_frame(Frame.hand(poses.pointing()), 100.0)
            assert effects.frame_rate is None

    def test_time_going_backwards_still_processes(self, poses):
        proc = FrameProcessor()
        proc.process_frame(Frame.hand(poses.pointing()), 500.0)
        effects = proc.process_frame(Frame.hand(poses.pointing(dx=-0.1)), 400.0)
        assert len(effects.commands) == 1

    def test_no_hand_only(self):
        proc = FrameProcessor()
        for i in range(20):
            effects = proc.process_frame(NO_HAND, i * 33.0)
            assert effects.stroke_outcome is None
            assert not effects.save_snapshot
            assert not effects.trigger_capture


class TestRecorderEdgeCases:
    def test_empty_recording_save(self, tmp_path):
        rec = FrameRecorder()
        rec.start(now_ms=0.0)
        rec.stop()
        path = tmp_path / "empty.json"
        rec.save(path)
        player = FramePlayer.load(path)
        assert player.frame_count == 0
        assert player.duration == 0.0

    def test_restart_drops_previous_frames(self):
        rec = FrameRecorder()
        rec.start(now_ms=0.0)
        rec.add_frame(NO_HAND, now_ms=10.0)
        rec.start(now_ms=100.0)
        assert rec.frame_count == 0
