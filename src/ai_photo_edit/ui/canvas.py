"""
Preview canvas.

The canvas draws whatever frame the session rendered, scaled to the
photo's natural size, and lets the user pan and zoom it. View state is
kept apart from the filters: exports never see it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import (
    QColor,
    QImage,
    QMouseEvent,
    QPainter,
    QPaintEvent,
    QPen,
    QPixmap,
    QResizeEvent,
    QWheelEvent,
)
from PySide6.QtWidgets import QWidget

if TYPE_CHECKING:
    from ai_photo_edit.core.data_types import ImageData


MIN_ZOOM = 0.1
MAX_ZOOM = 5.0

FIT_MARGIN = 20
TILE = 16

BACKGROUND = QColor("#0a0e17")
FRAME_PEN = QColor("#313244")
HINT_COLOR = QColor("#6c7086")


@dataclass
class CanvasTransform:
    """Screen position of image pixel (x, y) is ``(x * zoom + offset_x, y * zoom + offset_y)``."""
    offset_x: float = 0.0
    offset_y: float = 0.0
    zoom: float = 1.0

    def canvas_to_screen(self, x: float, y: float) -> tuple[float, float]:
        return (x * self.zoom + self.offset_x, y * self.zoom + self.offset_y)

    def screen_to_canvas(self, x: float, y: float) -> tuple[float, float]:
        return ((x - self.offset_x) / self.zoom, (y - self.offset_y) / self.zoom)

    def zoom_at(self, x: float, y: float, factor: float) -> None:
        """Scale by ``factor`` while the image point under (x, y) stays put."""
        anchor = self.screen_to_canvas(x, y)
        self.zoom = min(MAX_ZOOM, max(MIN_ZOOM, self.zoom * factor))
        sx, sy = self.canvas_to_screen(*anchor)
        self.offset_x += x - sx
        self.offset_y += y - sy


def image_data_to_qimage(image_data: ImageData) -> QImage:
    """A QImage with its own copy of the pixels."""
    pixels = image_data.to_numpy(np.uint8)
    height, width, channels = pixels.shape
    fmt = QImage.Format.Format_RGBA8888 if channels == 4 else QImage.Format.Format_RGB888
    # QImage points into the bytes object; detach before it is freed
    return QImage(pixels.tobytes(), width, height, width * channels, fmt).copy()


def _checker_tile() -> QPixmap:
    tile = QPixmap(TILE * 2, TILE * 2)
    tile.fill(QColor("#404040"))
    painter = QPainter(tile)
    light = QColor("#505050")
    painter.fillRect(0, 0, TILE, TILE, light)
    painter.fillRect(TILE, TILE, TILE, TILE, light)
    painter.end()
    return tile


class ImageCanvas(QWidget):
    """
    Shows the current preview.

    Drag with the left or middle button to pan, Ctrl+wheel zooms at the
    cursor. A translucent overlay with a message covers the image while
    ``set_busy`` has text.
    """

    def __init__(self, parent: QWidget | None = None):
        super().__init__(parent)
        self.setMinimumSize(200, 200)
        self.setMouseTracking(True)

        self._view = CanvasTransform()
        self._frame: QImage | None = None
        # The frame may be a downscaled proxy; this is what it stands for
        self._natural_size: tuple[int, int] = (0, 0)
        self._drag_origin: QPointF | None = None
        self._drag_offset = (0.0, 0.0)
        self._busy_text = ""
        self._checker = _checker_tile()

    @property
    def transform(self) -> CanvasTransform:
        return self._view

    def set_image_from_data(
        self,
        image_data: ImageData | None,
        natural_size: tuple[int, int] | None = None,
        keep_view: bool = False,
    ) -> None:
        """
        Replace the displayed frame; ``None`` clears it.

        ``keep_view`` leaves zoom and pan alone, which is what a filter
        change wants. A new photo refits the view.
        """
        if image_data is None:
            self._frame = None
            self._natural_size = (0, 0)
        else:
            self._frame = image_data_to_qimage(image_data)
            self._natural_size = natural_size or image_data.size
            if not keep_view:
                self.fit_to_view()
        self.update()

    def set_busy(self, text: str) -> None:
        self._busy_text = text
        self.update()

    def fit_to_view(self) -> None:
        """Centre the photo, shrinking it to fit but never enlarging past 100%."""
        if self._frame is None:
            return
        room_w = self.width() - 2 * FIT_MARGIN
        room_h = self.height() - 2 * FIT_MARGIN
        if room_w <= 0 or room_h <= 0:
            return

        nat_w, nat_h = self._natural_size
        zoom = max(MIN_ZOOM, min(1.0, room_w / nat_w, room_h / nat_h))
        self._view.zoom = zoom
        self._view.offset_x = (self.width() - nat_w * zoom) / 2
        self._view.offset_y = (self.height() - nat_h * zoom) / 2
        self.update()

    def zoom_in(self) -> None:
        self._zoom_centre(1.25)

    def zoom_out(self) -> None:
        self._zoom_centre(0.8)

    def _zoom_centre(self, factor: float) -> None:
        self._view.zoom_at(self.width() / 2, self.height() / 2, factor)
        self.update()

    def _image_rect(self) -> QRectF:
        x, y = self._view.canvas_to_screen(0, 0)
        nat_w, nat_h = self._natural_size
        return QRectF(x, y, nat_w * self._view.zoom, nat_h * self._view.zoom)

    # -------------------------------------------------------------------------
    # Qt events
    # -------------------------------------------------------------------------

    def paintEvent(self, event: QPaintEvent) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.fillRect(self.rect(), BACKGROUND)

        if self._frame is None:
            painter.setPen(HINT_COLOR)
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "Open a photo to start editing")
        else:
            target = self._image_rect()
            # Transparent areas show the checker tiles underneath
            painter.drawTiledPixmap(target, self._checker)
            painter.drawImage(target, self._frame)
            painter.setPen(QPen(FRAME_PEN, 1))
            painter.drawRect(target)

            if self._busy_text:
                painter.fillRect(self.rect(), QColor(0, 0, 0, 140))
                painter.setPen(QColor("#e2e8f0"))
                painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, self._busy_text)

        painter.end()

    def resizeEvent(self, event: QResizeEvent) -> None:
        super().resizeEvent(event)
        self.fit_to_view()

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() not in (Qt.MouseButton.LeftButton, Qt.MouseButton.MiddleButton):
            return
        self._drag_origin = event.position()
        self._drag_offset = (self._view.offset_x, self._view.offset_y)
        self.setCursor(Qt.CursorShape.ClosedHandCursor)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        if self._drag_origin is None:
            return
        delta = event.position() - self._drag_origin
        self._view.offset_x = self._drag_offset[0] + delta.x()
        self._view.offset_y = self._drag_offset[1] + delta.y()
        self.update()

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if self._drag_origin is not None:
            self._drag_origin = None
            self.unsetCursor()

    def wheelEvent(self, event: QWheelEvent) -> None:
        # Plain wheel is left to the parent
        if not event.modifiers() & Qt.KeyboardModifier.ControlModifier:
            event.ignore()
            return
        pos = event.position()
        self._view.zoom_at(pos.x(), pos.y(), 1.1 if event.angleDelta().y() > 0 else 0.9)
        self.update()
