"""Numba JIT-compiled backend for fractal rendering.

Uses @njit(parallel=True) with prange, one lane per pixel, for a large
speedup over NumPy. This module is optional: if numba is not installed,
get_default_backend() falls back to the NumPy backend automatically.

IMPORTANT: The JIT-compiled functions use explicit float32 scalar
arithmetic (not NumPy vectorization). Literals are wrapped in np.float32
so nothing is promoted to float64. error_model="numpy" makes 0/0 produce
NaN instead of raising ZeroDivisionError, matching the NumPy backend at
critical points of the polynomial.
"""

from __future__ import annotations

import numpy as np
from numba import njit, prange

from fractal.compute import RenderResult
from newton import FrameParams


@njit(cache=True, error_model="numpy")
def _cmul(a_re, a_im, b_re, b_im):
    """Complex product of two scalars (Numba-compiled)."""
    return a_re * b_re - a_im * b_im, a_re * b_im + a_im * b_re


@njit(cache=True, error_model="numpy")
def _newton_step_single(z_re, z_im, positions, coefficients, num_roots):
    """One Newton-Raphson update for a single pixel (Numba-compiled)."""
    # Value from the factored form
    v_re = np.float32(1.0)
    v_im = np.float32(0.0)
    for i in range(num_roots):
        v_re, v_im = _cmul(
            v_re, v_im, z_re - positions[i, 0], z_im - positions[i, 1],
        )

    # Derivative from the coefficient form
    g_re = np.float32(0.0)
    g_im = np.float32(0.0)
    p_re = np.float32(1.0)
    p_im = np.float32(0.0)
    for i in range(num_roots):
        t_re, t_im = _cmul(coefficients[i + 1, 0], coefficients[i + 1, 1], p_re, p_im)
        k = np.float32(i + 1)
        g_re = g_re + k * t_re
        g_im = g_im + k * t_im
        p_re, p_im = _cmul(p_re, p_im, z_re, z_im)

    # Reciprocal of the derivative
    norm_sq = g_re * g_re + g_im * g_im
    r_re = g_re / norm_sq
    r_im = -g_im / norm_sq

    d_re, d_im = _cmul(v_re, v_im, r_re, r_im)
    return z_re - d_re, z_im - d_im


@njit(parallel=True, cache=True, error_model="numpy")
def _newton_batch_numba(
    start_points,   # (N, 2) float32
    positions,      # (num_roots, 2) float32
    coefficients,   # (num_roots + 1, 2) float32
    num_roots,
    num_iterations,
):
    """Numba-compiled parallel Newton iteration + nearest-root scan.

    Each pixel is computed independently in parallel via prange.
    Returns (final_positions (N, 2) float32, root_indices (N,) int32).
    """
    n_pixels = start_points.shape[0]
    final_positions = np.empty((n_pixels, 2), dtype=np.float32)
    root_indices = np.zeros(n_pixels, dtype=np.int32)

    for i in prange(n_pixels):
        z_re = start_points[i, 0]
        z_im = start_points[i, 1]

        for _ in range(num_iterations):
            z_re, z_im = _newton_step_single(
                z_re, z_im, positions, coefficients, num_roots,
            )

        final_positions[i, 0] = z_re
        final_positions[i, 1] = z_im

        # Strictly-closer scan from root 0; NaN never beats the initial pick
        dx = z_re - positions[0, 0]
        dy = z_im - positions[0, 1]
        best = np.sqrt(dx * dx + dy * dy)
        best_index = 0
        for r in range(1, num_roots):
            dx = z_re - positions[r, 0]
            dy = z_im - positions[r, 1]
            d = np.sqrt(dx * dx + dy * dy)
            if d < best:
                best = d
                best_index = r
        root_indices[i] = best_index

    return final_positions, root_indices


class NumbaBackend:
    """Numba JIT-compiled compute backend.

    First call incurs JIT compilation overhead (~2-5s). Subsequent calls
    use the cached compiled version.
    """

    def render_batch(
        self,
        params: FrameParams,
        start_points: np.ndarray,
        cancel_check: callable | None = None,
        progress_callback: callable | None = None,
    ) -> RenderResult:
        """Render N pixels using the Numba-parallelized kernel.

        Note: cancel_check is not supported inside the Numba kernel.
        Cancellation happens between progressive levels only.
        """
        points = np.ascontiguousarray(start_points, dtype=np.float32).reshape(-1, 2)
        positions = np.ascontiguousarray(params.root_positions())
        colors = params.root_colors()

        final_positions, root_indices = _newton_batch_numba(
            points,
            positions,
            np.ascontiguousarray(params.coefficient_array()),
            params.num_roots,
            params.num_iterations,
        )

        if progress_callback is not None:
            progress_callback(params.num_iterations, params.num_iterations)

        return RenderResult(colors[root_indices], root_indices, final_positions)

    @staticmethod
    def warmup() -> None:
        """Trigger JIT compilation with a tiny dummy grid.

        Call this at app startup in a background thread to avoid
        the 2-5s compilation delay on the first render.
        """
        dummy_points = np.zeros((4, 2), dtype=np.float32)
        dummy_points[:, 0] = [0.1, 0.2, 0.3, 0.4]
        positions = np.array([[1.0, 0.0], [-1.0, 0.0]], dtype=np.float32)
        coefficients = np.array([[-1.0, 0.0], [0.0, 0.0], [1.0, 0.0]], dtype=np.float32)
        _newton_batch_numba(dummy_points, positions, coefficients, 2, 10)
