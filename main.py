"""Newton Fractal explorer entry point.

Colors each pixel by the root Newton's method reaches from it, for a
polynomial defined by up to ten editable roots.
"""

import logging
import sys

from PyQt6.QtCore import QThread
from PyQt6.QtWidgets import QApplication

from app_window import AppWindow

logger = logging.getLogger(__name__)


class JitWarmup(QThread):
    """Compiles the Numba kernel off the UI thread."""

    def run(self):
        from fractal._numba_backend import NumbaBackend
        NumbaBackend.warmup()
        logger.info("Numba kernel compiled")


def _numba_available() -> bool:
    try:
        import numba  # noqa: F401
    except ImportError:
        return False
    return True


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
    app = QApplication(sys.argv)

    warmup = JitWarmup() if _numba_available() else None
    if warmup is not None:
        warmup.start()

    window = AppWindow()
    window.show()
    status = app.exec()

    if warmup is not None:
        warmup.wait()
    sys.exit(status)


if __name__ == "__main__":
    main()
