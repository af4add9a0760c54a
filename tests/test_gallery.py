"""Tests for the snapshot gallery and capture export."""

import cv2
import numpy as np
import pytest

from air_canvas.gallery import CaptureError, CaptureExporter, SnapshotGallery


def make_image(value, size=8):
    image = np.zeros((size, size, 4), dtype=np.uint8)
    image[:, :] = value
    return image


class TestSnapshotGallery:
    def test_newest_first(self):
        gallery = SnapshotGallery(capacity=3)
        for v in (1, 2, 3):
            gallery.add(make_image(v))
        assert [int(img[0, 0, 0]) for img in gallery] == [3, 2, 1]
        assert int(gallery.latest[0, 0, 0]) == 3

    def test_evicts_oldest(self):
        gallery = SnapshotGallery(capacity=3)
        for v in range(1, 6):
            gallery.add(make_image(v))
        assert len(gallery) == 3
        assert [int(img[0, 0, 0]) for img in gallery] == [5, 4, 3]

    def test_default_capacity(self):
        gallery = SnapshotGallery()
        for v in range(15):
            gallery.add(make_image(v))
        assert len(gallery) == 10

    def test_stores_copies(self):
        gallery = SnapshotGallery()
        image = make_image(7)
        gallery.add(image)
        image[:] = 0
        assert int(gallery.latest[0, 0, 0]) == 7

    def test_rejects_empty(self):
        with pytest.raises(CaptureError):
            SnapshotGallery().add(np.zeros((0, 0, 4), dtype=np.uint8))

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            SnapshotGallery(capacity=0)

    def test_clear(self):
        gallery = SnapshotGallery()
        gallery.add(make_image(1))
        gallery.clear()
        assert len(gallery) == 0
        assert gallery.latest is None

    def test_save_all(self, tmp_path):
        gallery = SnapshotGallery()
        gallery.add(make_image(10))
        gallery.add(make_image(20))
        paths = gallery.save_all(tmp_path / "gallery")
        assert [p.name for p in paths] == ["snapshot-00.png", "snapshot-01.png"]
        newest = cv2.imread(str(paths[0]), cv2.IMREAD_UNCHANGED)
        assert newest.shape == (8, 8, 4)
        assert int(newest[0, 0, 0]) == 20


class TestCaptureExporter:
    def test_filename(self, tmp_path):
        exporter = CaptureExporter(tmp_path)
        assert exporter.filename(1700000000123) == "air-art-1700000000123.png"

    def test_capture_writes_png(self, tmp_path):
        exporter = CaptureExporter(tmp_path / "out")
        path = exporter.capture(make_image(255), timestamp_ms=42)
        assert path == tmp_path / "out" / "air-art-42.png"
        assert path.read_bytes()[:4] == b"\x89PNG"
        assert exporter.capture_count == 1

    def test_default_timestamp(self, tmp_path):
        path = CaptureExporter(tmp_path).capture(make_image(1))
        assert path.name.startswith("air-art-")
        assert path.exists()

    def test_unwritable_directory(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        exporter = CaptureExporter(blocker / "captures")
        with pytest.raises(CaptureError):
            exporter.capture(make_image(1), timestamp_ms=1)
        assert exporter.capture_count == 0
