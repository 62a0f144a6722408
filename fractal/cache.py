"""Frame cache: rendered colors keyed by view, parameters and resolution.

Entries are (N, 4) float32 color arrays. Camera/viewport coordinates are
quantized so that float jitter from the spin boxes maps to the same key.
Coarse preview levels are pinned; everything else is evicted least
recently used first once the byte budget is exceeded. Entries for earlier
parameters are not dropped on edit, so undoing an edit is a cache hit.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass

import numpy as np

from newton import Camera, FrameParams

logger = logging.getLogger(__name__)

# Complex-plane units per quantization step
VIEWPORT_QUANTUM = 1e-6

# Levels at or below this resolution are never evicted
PROTECTED_RESOLUTION = 64


def _quantize(value: float) -> int:
    return round(value / VIEWPORT_QUANTUM)


def _params_hash(params: FrameParams) -> int:
    """Hash of everything in the frame except the view."""
    return hash((
        params.num_iterations, params.num_roots,
        params.roots[:params.num_roots],
        params.coefficients[:params.num_roots + 1],
    ))


def _view_key(params: FrameParams) -> tuple:
    viewport = params.viewport
    if isinstance(viewport, Camera):
        values = (*viewport.position, viewport.zoom)
        return ("camera", *(_quantize(v) for v in values))
    values = (*viewport.minimum, *viewport.maximum)
    return ("viewport", *(_quantize(v) for v in values))


@dataclass(frozen=True)
class CacheKey:
    resolution: int
    view: tuple
    params_hash: int

    @classmethod
    def from_params(cls, params: FrameParams, resolution: int) -> CacheKey:
        return cls(resolution, _view_key(params), _params_hash(params))

    def same_frame(self, other: CacheKey) -> bool:
        """True if both keys describe the same frame at any resolution."""
        return self.view == other.view and self.params_hash == other.params_hash


class FrameCache:
    """Byte-budgeted LRU of rendered frames."""

    def __init__(self, max_bytes: int = 256 * 1024 * 1024):
        self._max_bytes = max_bytes
        self._entries: OrderedDict[CacheKey, np.ndarray] = OrderedDict()
        self._used = 0

    @property
    def memory_used_mb(self) -> float:
        return self._used / (1024 * 1024)

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    def get(self, key: CacheKey) -> np.ndarray | None:
        data = self._entries.get(key)
        if data is not None:
            self._entries.move_to_end(key)
        return data

    def best_match(self, key: CacheKey) -> tuple[CacheKey, np.ndarray] | None:
        """Highest-resolution entry for the frame ``key`` describes.

        Returns the matching (key, colors) pair, or None.
        """
        candidates = [k for k in self._entries if k.same_frame(key)]
        if not candidates:
            return None
        best = max(candidates, key=lambda k: k.resolution)
        return best, self.get(best)

    def put(self, key: CacheKey, data: np.ndarray) -> None:
        """Store a rendered frame.

        Raises:
            ValueError: if ``data`` is not float32 with shape
                (resolution**2, 4).
        """
        expected = (key.resolution * key.resolution, 4)
        if data.shape != expected:
            raise ValueError(f"expected frame shape {expected}, got {data.shape}")
        if data.dtype != np.float32:
            raise ValueError(f"expected float32 frame, got {data.dtype}")

        self._drop(key)
        self._entries[key] = data
        self._used += data.nbytes
        self._shrink()

    def _drop(self, key: CacheKey) -> np.ndarray | None:
        data = self._entries.pop(key, None)
        if data is not None:
            self._used -= data.nbytes
        return data

    def _shrink(self) -> None:
        if self._used <= self._max_bytes:
            return
        # Oldest first; pinned levels are skipped
        for key in [k for k in self._entries if k.resolution > PROTECTED_RESOLUTION]:
            data = self._drop(key)
            logger.debug(
                "Evicted %dx%d frame (%.1f MB)",
                key.resolution, key.resolution, data.nbytes / (1024 * 1024),
            )
            if self._used <= self._max_bytes:
                break
