"""Fractal worker: QThread for background rendering with progressive levels.

Each worker owns one immutable FractalTask (and thus one FrameParams
snapshot). A new frame gets a new worker; the old one is cancelled and
its pending levels are never started.
"""

from __future__ import annotations

import logging

from PyQt6.QtCore import QThread, pyqtSignal

from fractal.compute import ComputeBackend, FractalTask, build_starting_points

logger = logging.getLogger(__name__)


class FractalWorker(QThread):
    """Background worker for fractal rendering.

    Renders one resolution level at a time, emitting level_complete for
    each. Supports cancellation between levels and, with the NumPy
    backend, between Newton steps (via the cancel_check callback).
    """

    level_complete = pyqtSignal(int, object)  # resolution, RenderResult
    progress = pyqtSignal(int, int)           # steps_done, total_steps
    all_complete = pyqtSignal()

    def __init__(
        self,
        task: FractalTask,
        backend: ComputeBackend,
        progressive_levels: list[int],
    ):
        super().__init__()
        self._task = task
        self._backend = backend
        # Preview levels below the target resolution, then the target itself
        self._progressive_levels = [
            lev for lev in progressive_levels if lev < task.resolution
        ] + [task.resolution]
        self._cancelled = False

    @property
    def task(self) -> FractalTask:
        return self._task

    def cancel(self) -> None:
        """Request cancellation. Takes effect before the next level starts."""
        self._cancelled = True

    def _cancel_check(self) -> bool:
        return self._cancelled

    def run(self) -> None:
        task = self._task

        for level_res in self._progressive_levels:
            if self._cancelled:
                return

            start_points = build_starting_points(task.params, level_res)

            logger.debug(
                "Rendering level %dx%d (%d pixels, %d iterations)",
                level_res, level_res, start_points.shape[0],
                task.params.num_iterations,
            )

            try:
                result = self._backend.render_batch(
                    params=task.params,
                    start_points=start_points,
                    cancel_check=self._cancel_check,
                    progress_callback=lambda done, total: self.progress.emit(done, total),
                )
            except Exception:
                logger.exception("Fractal rendering failed at level %d", level_res)
                return

            if self._cancelled:
                return
            self.level_complete.emit(level_res, result)

        if not self._cancelled:
            self.all_complete.emit()
