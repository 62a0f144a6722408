"""Fractal compute: ComputeBackend Protocol, pixel geometry, backend selection.

The geometry stage turns an image grid into starting points in the complex
plane, for either viewport variant:
  FixedViewport: plane = minimum * (1 - uv) + maximum * uv
  Camera:        plane = clip / zoom + position

The ComputeBackend Protocol abstracts the per-pixel pipeline over a batch
of starting points. Two backends are auto-selected via try/except
ImportError: Numba > NumPy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import NamedTuple, Protocol

import numpy as np

from newton import Camera, FixedViewport, FrameParams

logger = logging.getLogger(__name__)


class RenderResult(NamedTuple):
    """Immutable result from rendering a batch of pixels.

    Supports tuple unpacking: ``colors, indices, positions = result``.
    """

    colors: np.ndarray           # (N, 4) float32 RGBA
    root_indices: np.ndarray     # (N,) int32
    final_positions: np.ndarray  # (N, 2) float32


@dataclass(frozen=True)
class FractalTask:
    """Immutable description of a render job."""

    params: FrameParams
    resolution: int


class ComputeBackend(Protocol):
    """Protocol for pluggable per-pixel compute backends."""

    def render_batch(
        self,
        params: FrameParams,
        start_points: np.ndarray,  # (N, 2)
        cancel_check: callable | None = None,
        progress_callback: callable | None = None,
    ) -> RenderResult:
        """Iterate and classify N starting points independently."""
        ...


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

def build_uv_grid(resolution: int) -> np.ndarray:
    """Generate (resolution*resolution, 2) UV coordinates in [0, 1].

    u varies along columns (left to right), v along rows (top to bottom).
    Endpoints are included, so corner pixels sit exactly on the corners.
    """
    values = np.linspace(0.0, 1.0, resolution, dtype=np.float32)
    u_grid, v_grid = np.meshgrid(values, values)

    uv = np.empty((resolution * resolution, 2), dtype=np.float32)
    uv[:, 0] = u_grid.ravel()
    uv[:, 1] = v_grid.ravel()
    return uv


def uv_to_clip(uv: np.ndarray) -> np.ndarray:
    """UV in [0, 1]^2 to clip position in [-1, 1]^2 (y up)."""
    uv = np.asarray(uv, dtype=np.float32)
    clip = np.empty_like(uv)
    clip[..., 0] = 2.0 * uv[..., 0] - 1.0
    clip[..., 1] = 1.0 - 2.0 * uv[..., 1]
    return clip


def uv_to_plane(uv: np.ndarray, viewport: FixedViewport) -> np.ndarray:
    """Linear interpolation across the viewport rectangle."""
    uv = np.asarray(uv, dtype=np.float32)
    lo = np.asarray(viewport.minimum, dtype=np.float32)
    hi = np.asarray(viewport.maximum, dtype=np.float32)
    # Two-sided lerp form is exact at both ends
    return lo * (1.0 - uv) + hi * uv


def clip_to_plane(clip: np.ndarray, camera: Camera) -> np.ndarray:
    clip = np.asarray(clip, dtype=np.float32)
    position = np.asarray(camera.position, dtype=np.float32)
    return clip / np.float32(camera.zoom) + position


def uv_to_start(uv: np.ndarray, params: FrameParams) -> np.ndarray:
    """Map UV coordinates to starting points for the frame's viewport variant."""
    viewport = params.viewport
    if isinstance(viewport, Camera):
        return clip_to_plane(uv_to_clip(uv), viewport)
    return uv_to_plane(uv, viewport)


def build_starting_points(params: FrameParams, resolution: int) -> np.ndarray:
    """(resolution*resolution, 2) float32 starting points, row-major."""
    return uv_to_start(build_uv_grid(resolution), params)


def plane_at(params: FrameParams, u: float, v: float) -> tuple[float, float]:
    """Complex-plane coordinate under a single UV position."""
    point = uv_to_start(np.array([u, v], dtype=np.float32), params)
    return float(point[0]), float(point[1])


# ---------------------------------------------------------------------------
# Backend selection
# ---------------------------------------------------------------------------

def get_default_backend() -> ComputeBackend:
    """Auto-select the best available compute backend.

    Priority: Numba > NumPy.
    """
    try:
        from fractal._numba_backend import NumbaBackend
        logger.info("Using Numba compute backend")
        return NumbaBackend()
    except ImportError:
        pass

    from fractal._numpy_backend import NumpyBackend
    logger.info("Using NumPy compute backend")
    return NumpyBackend()


def get_progressive_levels(backend: ComputeBackend) -> list[int]:
    """Return the list of progressive resolution levels for a backend.

    Faster backends use fewer (larger) preview levels.
    """
    backend_name = type(backend).__name__

    if backend_name == "NumbaBackend":
        return [128, 512]

    # NumPy fallback: 3-level progressive
    return [64, 128, 256]
