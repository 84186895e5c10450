"""
Tests for the canvas view transform.

Only the pure transform math is exercised; no QApplication is created.
"""

import pytest

pytest.importorskip("PySide6.QtWidgets")

from ai_photo_edit.ui.canvas import MAX_ZOOM, MIN_ZOOM, CanvasTransform  # noqa: E402


class TestCanvasTransform:

    def test_round_trip(self):
        t = CanvasTransform(offset_x=10, offset_y=-5, zoom=2.0)
        sx, sy = t.canvas_to_screen(3, 4)
        assert (sx, sy) == (16, 3)
        assert t.screen_to_canvas(sx, sy) == (3, 4)

    def test_zoom_keeps_point_under_cursor(self):
        t = CanvasTransform()
        before = t.screen_to_canvas(100, 50)
        t.zoom_at(100, 50, 2.0)
        after = t.screen_to_canvas(100, 50)
        assert after == pytest.approx(before)
        assert t.zoom == 2.0

    def test_zoom_bounds(self):
        t = CanvasTransform()
        for _ in range(50):
            t.zoom_at(0, 0, 1.5)
        assert t.zoom == MAX_ZOOM
        for _ in range(100):
            t.zoom_at(0, 0, 0.5)
        assert t.zoom == MIN_ZOOM
