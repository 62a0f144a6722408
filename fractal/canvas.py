"""Fractal canvas: square QImage display with hover coordinate readout.

Displays the latest rendered level scaled to fit (nearest neighbour, so
coarse preview levels show their pixel grid). Mouse hover is mapped back
through the frame's viewport so the status bar can show the complex
coordinate under the cursor.
"""

from __future__ import annotations

import numpy as np
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QPainter, QColor, QImage
from PyQt6.QtWidgets import QWidget

from fractal.coloring import numpy_to_qimage, rgba_to_bgra
from fractal.compute import plane_at
from newton import FrameParams

BACKGROUND_COLOR = QColor(20, 20, 30)
PLACEHOLDER_COLOR = QColor(100, 100, 120)


def _display_to_uv(fraction: float, resolution: int) -> float:
    """Fraction of the displayed side to grid UV (sample centers line up)."""
    if resolution == 1:
        return 0.0
    return (fraction * resolution - 0.5) / (resolution - 1)


class FractalCanvas(QWidget):
    """Widget that displays the fractal image."""

    hover_moved = pyqtSignal(float, float)  # re, im under the cursor

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setMinimumSize(400, 400)
        self.setMouseTracking(True)

        self._current_image: QImage | None = None
        self._params: FrameParams | None = None
        self._resolution = 0
        self._placeholder = ""

    # -- Public interface --

    def display(self, colors: np.ndarray, resolution: int, params: FrameParams) -> None:
        """Show (N, 4) float RGBA colors rendered for ``params``."""
        self._current_image = numpy_to_qimage(rgba_to_bgra(colors, resolution))
        self._params = params
        self._resolution = resolution
        self.update()

    def clear(self, message: str | None = None) -> None:
        """Drop the image and show placeholder text."""
        self._current_image = None
        self._params = None
        self._resolution = 0
        if message is not None:
            self._placeholder = message
        self.update()

    @property
    def has_image(self) -> bool:
        return self._current_image is not None

    # -- Geometry --

    def _image_rect(self) -> tuple[float, float, float]:
        """Return (x, y, side) of the centered square image area."""
        side = min(self.width(), self.height())
        x = (self.width() - side) / 2
        y = (self.height() - side) / 2
        return x, y, side

    def _pixel_to_uv(self, px: float, py: float) -> tuple[float, float] | None:
        """Widget position to the UV of the image's sample grid.

        Image pixel j is drawn over [j, j + 1) / res of the square but was
        sampled at UV j / (res - 1), so pixel centers map onto sample UVs.
        """
        img_x, img_y, side = self._image_rect()
        if side <= 0 or self._resolution <= 0:
            return None
        s = (px - img_x) / side
        t = (py - img_y) / side
        if not (0.0 <= s <= 1.0 and 0.0 <= t <= 1.0):
            return None
        return _display_to_uv(s, self._resolution), _display_to_uv(t, self._resolution)

    # -- Qt events --

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), BACKGROUND_COLOR)

        if self._current_image is None:
            painter.setPen(PLACEHOLDER_COLOR)
            painter.drawText(
                self.rect(), Qt.AlignmentFlag.AlignCenter, self._placeholder,
            )
            painter.end()
            return

        img_x, img_y, side = self._image_rect()

        # Nearest-neighbor scaling (preserves pixel grid)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, False)
        painter.drawImage(
            int(img_x), int(img_y),
            self._current_image.scaled(
                int(side), int(side),
                Qt.AspectRatioMode.IgnoreAspectRatio,
                Qt.TransformationMode.FastTransformation,
            ),
        )
        painter.end()

    def mouseMoveEvent(self, event):
        if self._params is None:
            return
        pos = event.position()
        uv = self._pixel_to_uv(pos.x(), pos.y())
        if uv is None:
            return
        re, im = plane_at(self._params, uv[0], uv[1])
        self.hover_moved.emit(re, im)
