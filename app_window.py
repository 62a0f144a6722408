"""App window: hosts the fractal view and its status bar."""

import logging

from PyQt6.QtWidgets import QMainWindow, QStatusBar, QLabel

from fractal.view import FractalView

logger = logging.getLogger(__name__)


class AppWindow(QMainWindow):
    """Top-level window for the Newton fractal explorer."""

    def __init__(self):
        super().__init__()
        self.setWindowTitle("Newton Fractal")
        self.resize(1200, 750)

        self.fractal_view = FractalView()
        self.setCentralWidget(self.fractal_view)

        # --- Status bar ---
        self._status_bar = QStatusBar()
        self.setStatusBar(self._status_bar)

        self._coord_label = QLabel()
        self._backend_label = QLabel(self.fractal_view.backend_name)
        self._cache_label = QLabel()
        self._status_bar.addWidget(self._coord_label)
        self._status_bar.addPermanentWidget(self._cache_label)
        self._status_bar.addPermanentWidget(self._backend_label)

        self.fractal_view.canvas.hover_moved.connect(self._on_hover_moved)
        self.fractal_view.controls.config_event.connect(self._update_cache_label)

        self.fractal_view.activate()
        self._update_cache_label()

    def _on_hover_moved(self, re: float, im: float) -> None:
        sign = "-" if im < 0 else "+"
        self._coord_label.setText(f"z = {re:.6f} {sign} {abs(im):.6f}i")
        self._update_cache_label()

    def _update_cache_label(self, *_args) -> None:
        cache = self.fractal_view.cache
        self._cache_label.setText(
            f"Cache: {cache.entry_count} frames, {cache.memory_used_mb:.1f} MB"
        )

    def closeEvent(self, event):
        logger.info("Shutting down, cancelling render workers")
        self.fractal_view.deactivate()
        super().closeEvent(event)
