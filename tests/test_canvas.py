"""Tests for the drawing surface, draw commands and overlay."""

import numpy as np
import pytest

from air_canvas.canvas import (
    PALETTE,
    Brush,
    DrawCommand,
    DrawingSurface,
    OverlayStyle,
    hex_to_bgr,
    render_overlay,
)
from air_canvas.landmarks import Point


class TestHexToBgr:
    def test_converts(self):
        assert hex_to_bgr("#ff3e3e") == (0x3E, 0x3E, 0xFF)

    def test_without_hash(self):
        assert hex_to_bgr("00ff00") == (0, 255, 0)

    @pytest.mark.parametrize("bad", ["", "#fff", "#gggggg", "red", None])
    def test_rejects_bad_colors(self, bad):
        with pytest.raises(ValueError):
            hex_to_bgr(bad)

    def test_palette_is_valid(self):
        for color in PALETTE:
            hex_to_bgr(color)


class TestBrush:
    def test_defaults(self):
        brush = Brush()
        assert brush.color == "#ff3e3e"
        assert brush.width == 8

    @pytest.mark.parametrize("width", [0, -3, 2.5, True])
    def test_rejects_bad_width(self, width):
        with pytest.raises(ValueError):
            Brush(width=width)

    def test_rejects_bad_color(self):
        with pytest.raises(ValueError):
            Brush(color="blue")


class TestDrawCommand:
    def test_line_to_dict(self):
        cmd = DrawCommand.line(Point(10.04, 20.0), Point(30.0, 40.06), Brush("#ffffff", 4))
        d = cmd.to_dict()
        assert d == {
            "type": "line",
            "x1": 10.0, "y1": 20.0,
            "x2": 30.0, "y2": 40.1,
            "color": "#ffffff",
            "width": 4,
            "cap": "round",
            "join": "round",
        }

    def test_clear_to_dict(self):
        assert DrawCommand.clear().to_dict() == {"type": "clear"}


class TestDrawingSurface:
    def test_starts_blank(self):
        surface = DrawingSurface(64, 48)
        assert surface.image.shape == (48, 64, 4)
        assert surface.is_blank

    def test_draw_segment_paints_pixels(self):
        surface = DrawingSurface(100, 100)
        surface.draw_segment(Point(10.0, 50.0), Point(90.0, 50.0), "#ff0000", 6)
        pixel = surface.image[50, 50]
        assert pixel[3] > 200
        assert pixel[2] > 200
        assert pixel[0] == 0
        assert not surface.is_blank

    def test_round_caps_extend_past_endpoints(self):
        surface = DrawingSurface(100, 100)
        surface.draw_segment(Point(50.0, 50.0), Point(50.0, 50.0), "#ffffff", 10)
        # A zero-length thick segment still leaves a round dot
        assert surface.image[50, 53, 3] > 0
        assert surface.image[53, 50, 3] > 0

    def test_apply_line_and_clear(self):
        surface = DrawingSurface(100, 100)
        surface.apply(DrawCommand.line(Point(0, 0), Point(99, 99), Brush()))
        assert not surface.is_blank
        surface.apply(DrawCommand.clear())
        assert surface.is_blank

    def test_apply_unknown(self):
        with pytest.raises(ValueError):
            DrawingSurface(10, 10).apply(DrawCommand(type="erase"))

    def test_snapshot_is_copy(self):
        surface = DrawingSurface(20, 20)
        snap = surface.snapshot()
        surface.draw_segment(Point(0, 0), Point(19, 19), "#ffffff", 3)
        assert not snap.any()

    def test_resize_clears(self):
        surface = DrawingSurface(20, 20)
        surface.draw_segment(Point(0, 0), Point(19, 19), "#ffffff", 3)
        surface.resize(40, 30)
        assert surface.image.shape == (30, 40, 4)
        assert surface.is_blank

    def test_encode_png(self):
        png = DrawingSurface(8, 8).encode_png()
        assert png[:8] == b"\x89PNG\r\n\x1a\n"

    def test_composite(self):
        surface = DrawingSurface(10, 10)
        background = np.full((10, 10, 3), 50, dtype=np.uint8)
        assert np.array_equal(surface.composite(background), background)
        surface.draw_segment(Point(0, 5), Point(9, 5), "#ffffff", 3)
        out = surface.composite(background)
        assert (out[5, 5] > 200).all()
        assert tuple(out[0, 0]) == (50, 50, 50)


class TestOverlay:
    def test_draws_skeleton(self, make_hand):
        image = np.zeros((200, 200, 3), dtype=np.uint8)
        render_overlay(image, make_hand())
        assert image.any()

    def test_bgra_target(self, make_hand):
        image = np.zeros((200, 200, 4), dtype=np.uint8)
        render_overlay(image, make_hand(), OverlayStyle(landmark_radius=3))
        assert image[:, :, 3].any()

    def test_none_is_noop(self):
        image = np.zeros((10, 10, 3), dtype=np.uint8)
        render_overlay(image, None)
        assert not image.any()
