"""NumPy vectorized backend for fractal rendering.

All N pixels advance through each Newton step simultaneously as a single
(N, 2) float32 array, using the broadcasting core in newton.py. There is
no Python-level loop over pixels, only over iterations.

IMPORTANT: No in-place mutation (uses z = newton_step(z, ...), never
z -= ...). Each step builds a new array, so a cancelled render can still
classify the last complete state.
"""

from __future__ import annotations

import numpy as np

from fractal.compute import RenderResult
from newton import FrameParams, nearest_root, newton_step


class NumpyBackend:
    """Pure NumPy vectorized compute backend."""

    def render_batch(
        self,
        params: FrameParams,
        start_points: np.ndarray,
        cancel_check: callable | None = None,
        progress_callback: callable | None = None,
    ) -> RenderResult:
        """Iterate and classify N starting points.

        Args:
            params: Frame parameters (read-only for the whole call).
            start_points: (N, 2) array of complex starting positions.
            cancel_check: Optional callable returning True to abort.
            progress_callback: Optional callable(steps_done, total_steps).

        Returns:
            RenderResult with colors (N, 4), root_indices (N,) and
            final_positions (N, 2). If cancelled, pixels are classified
            from the partially iterated positions.
        """
        return newton_batch(params, start_points, cancel_check, progress_callback)


def newton_batch(
    params: FrameParams,
    start_points: np.ndarray,
    cancel_check: callable | None = None,
    progress_callback: callable | None = None,
) -> RenderResult:
    """Run the per-pixel pipeline over a batch of starting points."""
    positions = params.root_positions()
    colors = params.root_colors()
    coefficients = params.coefficient_array()
    n_steps = params.num_iterations

    z = np.asarray(start_points, dtype=np.float32).reshape(-1, 2)

    for step in range(n_steps):
        if cancel_check is not None and cancel_check():
            break

        if progress_callback is not None:
            progress_callback(step, n_steps)

        z = newton_step(z, positions, coefficients, params.num_roots)

    indices = nearest_root(z, positions, params.num_roots)

    if progress_callback is not None:
        progress_callback(n_steps, n_steps)

    return RenderResult(colors[indices], indices, z)

