"""Editable scene configuration and the change events the UI sends.

The controls panel never mutates the scene directly: it emits change
events, and the view applies them here. Each frame is rendered from an
immutable FrameParams snapshot taken with to_frame_params(), so edits made
while a frame is in flight never reach that frame.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Union

from newton import MAX_ROOTS, DEFAULT_NUM_ITERATIONS, Camera, FrameParams, Root, from_polar

logger = logging.getLogger(__name__)


@dataclass
class RootConfig:
    position: tuple[float, float] = (0.0, 0.0)
    color: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)


@dataclass
class CameraConfig:
    position: tuple[float, float] = (0.0, 0.0)
    zoom: float = 1.0


def _scaled(color, factor):
    return tuple(c * factor for c in color)


def default_roots() -> list[RootConfig]:
    """Three roots on a circle of radius 0.5, cyan/magenta/yellow."""
    return [
        RootConfig(from_polar(0.5, math.radians(0.0)), _scaled((0.0, 1.0, 1.0, 1.0), 0.8)),
        RootConfig(from_polar(0.5, math.radians(120.0)), _scaled((1.0, 0.0, 1.0, 1.0), 0.8)),
        RootConfig(from_polar(0.5, math.radians(240.0)), _scaled((1.0, 1.0, 0.0, 1.0), 0.8)),
    ]


# ---------------------------------------------------------------------------
# Change events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NumIterations:
    value: int


@dataclass(frozen=True)
class AddRoot:
    pass


@dataclass(frozen=True)
class RemoveRoot:
    index: int


@dataclass(frozen=True)
class RootPosition:
    index: int
    position: tuple[float, float]


@dataclass(frozen=True)
class RootColor:
    index: int
    color: tuple[float, float, float, float]


@dataclass(frozen=True)
class CameraPosition:
    position: tuple[float, float]


@dataclass(frozen=True)
class CameraZoom:
    zoom: float


ConfigChangeEvent = Union[
    NumIterations, AddRoot, RemoveRoot, RootPosition, RootColor,
    CameraPosition, CameraZoom,
]

# Events that change the number of roots (the root editor must be rebuilt)
STRUCTURAL_EVENTS = (AddRoot, RemoveRoot)


@dataclass
class SceneConfig:
    """Mutable scene state owned by the UI thread."""

    num_iterations: int = DEFAULT_NUM_ITERATIONS
    roots: list[RootConfig] = field(default_factory=default_roots)
    camera: CameraConfig = field(default_factory=CameraConfig)

    def apply(self, event: ConfigChangeEvent) -> None:
        """Apply one change event in place."""
        if isinstance(event, NumIterations):
            self.num_iterations = max(int(event.value), 0)

        elif isinstance(event, AddRoot):
            if len(self.roots) >= MAX_ROOTS:
                logger.warning("Ignoring AddRoot: already at %d roots", MAX_ROOTS)
                return
            self.roots.append(RootConfig())

        elif isinstance(event, RemoveRoot):
            if not 0 <= event.index < len(self.roots):
                logger.warning("Ignoring RemoveRoot for missing index %d", event.index)
                return
            del self.roots[event.index]

        elif isinstance(event, RootPosition):
            root = self._root_at(event.index)
            if root is not None:
                root.position = tuple(event.position)

        elif isinstance(event, RootColor):
            root = self._root_at(event.index)
            if root is not None:
                root.color = tuple(event.color)

        elif isinstance(event, CameraPosition):
            if not all(math.isfinite(v) for v in event.position):
                logger.warning("Ignoring non-finite camera position %r", event.position)
                return
            self.camera.position = tuple(event.position)

        elif isinstance(event, CameraZoom):
            if not (math.isfinite(event.zoom) and event.zoom > 0):
                logger.warning("Ignoring invalid camera zoom %r", event.zoom)
                return
            self.camera.zoom = float(event.zoom)

        else:
            raise TypeError(f"Unknown config change event: {event!r}")

    def _root_at(self, index: int) -> RootConfig | None:
        if 0 <= index < len(self.roots):
            return self.roots[index]
        logger.warning("Ignoring edit of missing root %d", index)
        return None

    def to_frame_params(self) -> FrameParams:
        """Snapshot the scene as camera-variant frame parameters.

        Raises:
            ValueError: if the scene has no roots.
        """
        return FrameParams.from_roots(
            [Root(position=r.position, color=r.color) for r in self.roots],
            num_iterations=self.num_iterations,
            viewport=Camera(position=self.camera.position, zoom=self.camera.zoom),
        )
