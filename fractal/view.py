"""Fractal view: ties the scene, controls, canvas, cache and workers together.

Each scene edit produces a fresh FrameParams snapshot. A full-resolution
cache hit is shown immediately; otherwise a FractalWorker renders the
snapshot level by level and every finished level is cached and displayed.
Starting a new frame retires the previous worker without waiting for it.
"""

from __future__ import annotations

import logging

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QWidget, QHBoxLayout, QSplitter

from fractal.cache import FrameCache, CacheKey
from fractal.canvas import FractalCanvas
from fractal.compute import (
    FractalTask, RenderResult, get_default_backend, get_progressive_levels,
)
from fractal.controls import FractalControls
from fractal.worker import FractalWorker
from scene import SceneConfig, STRUCTURAL_EVENTS
from ui_common import LoadingOverlay

logger = logging.getLogger(__name__)

# Cache budgets: the Numba backend re-renders fast enough to need less
CACHE_BUDGETS = {
    "NumbaBackend": 128 * 1024 * 1024,
    "NumpyBackend": 256 * 1024 * 1024,
}

NO_ROOTS_MESSAGE = "Newton Fractal\nAdd a root to render"


class FractalView(QWidget):
    """Canvas and controls side by side, with background rendering."""

    def __init__(self, parent=None):
        super().__init__(parent)

        self._backend = get_default_backend()
        self._levels = get_progressive_levels(self._backend)
        self._cache = FrameCache(
            max_bytes=CACHE_BUDGETS.get(self.backend_name, 256 * 1024 * 1024),
        )
        self._config = SceneConfig()

        self.canvas = FractalCanvas()
        self.controls = FractalControls()
        self.controls.set_config(self._config)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.addWidget(self.canvas)
        splitter.addWidget(self.controls)
        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 1)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(splitter)

        self.loading_overlay = LoadingOverlay(self.canvas)

        self._worker: FractalWorker | None = None
        # Cancelled workers still running; held so Qt doesn't destroy them
        self._retired: list[FractalWorker] = []

        self.controls.config_event.connect(self._on_config_event)
        self.controls.resolution_changed.connect(lambda _res: self.refresh())

    @property
    def config(self) -> SceneConfig:
        return self._config

    @property
    def cache(self) -> FrameCache:
        return self._cache

    @property
    def backend_name(self) -> str:
        return type(self._backend).__name__

    def activate(self) -> None:
        self.refresh()

    def deactivate(self) -> None:
        """Cancel rendering and wait briefly for worker threads to exit."""
        self._retire_current()
        for worker in list(self._retired):
            worker.wait(3000)
        self._retired.clear()

    def refresh(self) -> None:
        """Render the current scene, from cache when possible."""
        self._retire_current()

        try:
            params = self._config.to_frame_params()
        except ValueError as exc:
            logger.info("Not rendering: %s", exc)
            self.canvas.clear(NO_ROOTS_MESSAGE)
            return

        resolution = self.controls.get_resolution()
        key = CacheKey.from_params(params, resolution)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Cache hit at %dx%d", resolution, resolution)
            self.canvas.display(cached, resolution, params)
            return

        # Show the same frame at another resolution while this one renders
        match = self._cache.best_match(key)
        if match is not None:
            match_key, colors = match
            self.canvas.display(colors, match_key.resolution, params)

        self._launch(FractalTask(params=params, resolution=resolution))

    # -- Worker lifecycle --

    def _connections(self, worker: FractalWorker):
        return (
            (worker.level_complete, self._on_level_complete),
            (worker.progress, self._on_progress),
            (worker.all_complete, self.loading_overlay.stop),
            (worker.finished, self._on_worker_finished),
        )

    def _launch(self, task: FractalTask) -> None:
        worker = FractalWorker(task, self._backend, self._levels)
        for signal, slot in self._connections(worker):
            signal.connect(slot)
        self._worker = worker

        if not self.canvas.has_image:
            self.loading_overlay.start("Rendering fractal...")
        worker.start()

    def _retire_current(self) -> None:
        # The retired worker can no longer reach stop()
        self.loading_overlay.stop()
        worker, self._worker = self._worker, None
        if worker is None:
            return

        for signal, slot in self._connections(worker):
            try:
                signal.disconnect(slot)
            except TypeError:
                pass  # never connected or already gone

        if worker.isRunning():
            worker.cancel()
            self._retired.append(worker)
            worker.finished.connect(lambda w=worker: self._forget(w))

    def _forget(self, worker: FractalWorker) -> None:
        if worker in self._retired:
            self._retired.remove(worker)
        logger.debug("Worker exited, %d still retiring", len(self._retired))

    # -- Worker signals --

    def _on_level_complete(self, resolution: int, result: RenderResult) -> None:
        worker = self.sender()
        if worker is None:
            return
        params = worker.task.params

        self._cache.put(CacheKey.from_params(params, resolution), result.colors)
        self.canvas.display(result.colors, resolution, params)
        logger.debug(
            "Level %dx%d displayed, cache at %.1f MB",
            resolution, resolution, self._cache.memory_used_mb,
        )

    def _on_progress(self, done: int, total: int) -> None:
        if total > 0:
            self.loading_overlay.message = f"Rendering fractal... {100 * done // total}%"

    def _on_worker_finished(self) -> None:
        self.loading_overlay.stop()
        if self.sender() is self._worker:
            self._worker = None

    # -- Scene edits --

    def _on_config_event(self, event) -> None:
        self._config.apply(event)
        if isinstance(event, STRUCTURAL_EVENTS):
            self.controls.set_config(self._config)
        self.refresh()
