"""Tests for landmark recording and replay."""

import json

import numpy as np
import pytest

from air_canvas.landmarks import NO_HAND, Frame
from air_canvas.recorder import FORMAT_VERSION, FramePlayer, FrameRecorder, RecordedFrame


class TestRecorder:
    def test_record_and_count(self, poses):
        rec = FrameRecorder()
        rec.start(now_ms=1000.0)
        for i in range(10):
            rec.add_frame(Frame.hand(poses.pointing()), now_ms=1000.0 + 33.0 * i)
        assert rec.stop() == 10
        rec.add_frame(NO_HAND, now_ms=2000.0)
        assert rec.frame_count == 10
        assert rec.duration == pytest.approx(297.0)

    def test_not_recording_ignores_frames(self, poses):
        rec = FrameRecorder()
        rec.add_frame(Frame.hand(poses.fist()))
        assert rec.frame_count == 0

    def test_timestamps_relative_to_start(self):
        rec = FrameRecorder()
        rec.start(now_ms=5000.0)
        rec.add_frame(NO_HAND, now_ms=5040.0)
        assert rec.duration == 40.0

    def test_save_and_load(self, tmp_path, poses):
        rec = FrameRecorder()
        rec.start(now_ms=0.0)
        rec.add_frame(Frame.hand(poses.open_palm()), now_ms=0.0)
        rec.add_frame(NO_HAND, now_ms=33.0)
        rec.stop()

        path = tmp_path / "nested" / "session.json"
        rec.save(path)

        data = json.loads(path.read_text())
        assert data["version"] == FORMAT_VERSION
        assert data["frame_count"] == 2

        player = FramePlayer.load(path)
        assert player.frame_count == 2
        assert player.duration == 33.0
        first, second = list(player.play())
        np.testing.assert_allclose(first.to_frame().landmarks, poses.open_palm(), atol=1e-6)
        assert second.to_frame() is NO_HAND


class TestPlayer:
    def test_rejects_unknown_version(self, tmp_path):
        path = tmp_path / "old.json"
        path.write_text(json.dumps({"version": 99, "frames": []}))
        with pytest.raises(ValueError):
            FramePlayer.load(path)

    def test_speed_must_be_positive(self):
        player = FramePlayer([RecordedFrame(0.0)])
        with pytest.raises(ValueError):
            list(player.play_realtime(speed=0))

    def test_empty(self):
        player = FramePlayer([])
        assert player.duration == 0.0
        assert list(player.play_realtime()) == []

    def test_realtime_keeps_order(self):
        frames = [RecordedFrame(float(t), None) for t in (0, 5, 10)]
        played = list(FramePlayer(frames).play_realtime(speed=10.0))
        assert [f.timestamp for f in played] == [0.0, 5.0, 10.0]

    def test_malformed_landmarks_rejected_on_replay(self):
        recorded = RecordedFrame(0.0, [[0.1, 0.2]] * 20)
        with pytest.raises(ValueError):
            recorded.to_frame()
