"""Shared UI widgets for the fractal explorer.

Contains LoadingOverlay, ComplexInput, ColorButton and spin box helpers.
"""

import math

from PyQt6.QtCore import Qt, QTimer, QPointF, QRectF, pyqtSignal
from PyQt6.QtGui import QPainter, QPen, QBrush, QColor, QFont
from PyQt6.QtWidgets import (
    QWidget, QHBoxLayout, QDoubleSpinBox, QPushButton, QColorDialog,
)

from fractal.coloring import color_to_rgb8


# ---------------------------------------------------------------------------
# Spin box helpers
# ---------------------------------------------------------------------------

def make_float_spinbox(minimum, maximum, value, step=0.01, decimals=4):
    """Create a QDoubleSpinBox that only reports committed edits."""
    spin = QDoubleSpinBox()
    spin.setRange(minimum, maximum)
    spin.setDecimals(decimals)
    spin.setSingleStep(step)
    spin.setValue(value)
    spin.setKeyboardTracking(False)
    return spin


# ---------------------------------------------------------------------------
# ComplexInput
# ---------------------------------------------------------------------------

class ComplexInput(QWidget):
    """Pair of spin boxes editing a complex number (re, im)."""

    value_changed = pyqtSignal(tuple)

    def __init__(self, value=(0.0, 0.0), limit=1000.0, parent=None):
        super().__init__(parent)
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.re_spin = make_float_spinbox(-limit, limit, value[0])
        self.im_spin = make_float_spinbox(-limit, limit, value[1])
        self.re_spin.setPrefix("re ")
        self.im_spin.setPrefix("im ")
        layout.addWidget(self.re_spin)
        layout.addWidget(self.im_spin)

        self.re_spin.valueChanged.connect(self._emit)
        self.im_spin.valueChanged.connect(self._emit)

    def value(self) -> tuple:
        return (self.re_spin.value(), self.im_spin.value())

    def set_value(self, value) -> None:
        """Set both components without emitting value_changed."""
        for spin, v in ((self.re_spin, value[0]), (self.im_spin, value[1])):
            spin.blockSignals(True)
            spin.setValue(v)
            spin.blockSignals(False)

    def _emit(self, _value):
        self.value_changed.emit(self.value())


# ---------------------------------------------------------------------------
# ColorButton
# ---------------------------------------------------------------------------

class ColorButton(QPushButton):
    """Swatch button that opens a color dialog.

    Colors are float RGBA tuples; the dialog edits RGB only and the
    emitted color always has alpha 1.
    """

    color_changed = pyqtSignal(tuple)

    def __init__(self, color=(0.0, 0.0, 0.0, 1.0), parent=None):
        super().__init__(parent)
        self.setFixedWidth(48)
        self._color = tuple(color)
        self._update_swatch()
        self.clicked.connect(self._pick)

    def color(self) -> tuple:
        return self._color

    def set_color(self, color) -> None:
        self._color = tuple(color)
        self._update_swatch()

    def _update_swatch(self):
        r, g, b = color_to_rgb8(self._color)
        self.setStyleSheet(
            f"background-color: rgb({r}, {g}, {b}); border: 1px solid #555;"
        )

    def _pick(self):
        chosen = QColorDialog.getColor(QColor(*color_to_rgb8(self._color)), self)
        if not chosen.isValid():
            return
        self.set_color((chosen.redF(), chosen.greenF(), chosen.blueF(), 1.0))
        self.color_changed.emit(self._color)


# ---------------------------------------------------------------------------
# LoadingOverlay
# ---------------------------------------------------------------------------

class LoadingOverlay(QWidget):
    """Semi-transparent overlay with three orbiting markers and a message."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.message = "Rendering..."
        self.t = 0.0
        self._timer = QTimer()
        self._timer.setInterval(16)  # ~60 fps
        self._timer.timeout.connect(self._tick)
        self.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)
        self.hide()

    def start(self, message="Rendering..."):
        self.message = message
        self.t = 0.0
        if self.parentWidget():
            self.resize(self.parentWidget().size())
        self.show()
        self.raise_()
        self._timer.start()

    def stop(self):
        self._timer.stop()
        self.hide()

    def _tick(self):
        self.t += 0.016
        self.update()

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        w, h = self.width(), self.height()

        painter.fillRect(self.rect(), QColor(20, 20, 30, 140))

        cx, cy = w / 2, h / 2 - 15
        orbit = 26

        # Faint orbit ring
        ring_pen = QPen(QColor(255, 255, 255, 40))
        ring_pen.setWidthF(2)
        painter.setPen(ring_pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawEllipse(QPointF(cx, cy), orbit, orbit)

        # One marker per default root color, 120 degrees apart
        painter.setPen(Qt.PenStyle.NoPen)
        base = 2 * math.pi * self.t / 1.6
        for k, color in enumerate((
            QColor(0, 204, 204), QColor(204, 0, 204), QColor(204, 204, 0),
        )):
            angle = base + k * 2 * math.pi / 3
            painter.setBrush(QBrush(color))
            painter.drawEllipse(
                QPointF(cx + orbit * math.cos(angle), cy + orbit * math.sin(angle)),
                6, 6,
            )

        painter.setPen(QColor(255, 255, 255, 200))
        font = QFont()
        font.setPointSizeF(14)
        font.setBold(True)
        painter.setFont(font)
        text_rect = QRectF(0, cy + orbit + 20, w, 40)
        painter.drawText(
            text_rect,
            Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignTop,
            self.message,
        )

        painter.end()
