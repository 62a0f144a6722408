"""Newton's fractal numerical core.

Complex numbers are float32 NumPy arrays whose last axis has length 2
([..., 0] real, [..., 1] imaginary). Every function here broadcasts over
the leading axes, so the same code evaluates a single point of shape (2,)
or a whole batch of pixels of shape (N, 2).

The polynomial is carried twice: as its roots (factored form, used for the
value) and as ascending-power coefficients (used for the derivative). The
two must describe the same polynomial; FrameParams.from_roots guarantees
this, direct construction leaves it to the caller.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

MAX_ROOTS = 10
MAX_COEFFICIENTS = MAX_ROOTS + 1
DEFAULT_NUM_ITERATIONS = 30


# ---------------------------------------------------------------------------
# Frame parameters
# ---------------------------------------------------------------------------

def _require_finite(what, values):
    if not all(math.isfinite(v) for v in values):
        raise ValueError(f"{what} must be finite, got {tuple(values)!r}")


@dataclass(frozen=True)
class Root:
    """A polynomial root and the color of its basin of attraction."""

    position: tuple[float, float]
    color: tuple[float, float, float, float]


@dataclass(frozen=True)
class FixedViewport:
    """Rectangle of the complex plane mapped onto the whole image.

    UV (0, 0) lands on ``minimum`` and UV (1, 1) on ``maximum``.
    """

    minimum: tuple[float, float] = (-1.0, 1.0)
    maximum: tuple[float, float] = (1.0, -1.0)

    def __post_init__(self):
        _require_finite("viewport corners", (*self.minimum, *self.maximum))


@dataclass(frozen=True)
class Camera:
    """Pannable/zoomable view: plane = clip / zoom + position."""

    position: tuple[float, float] = (0.0, 0.0)
    zoom: float = 1.0

    def __post_init__(self):
        _require_finite("camera position", self.position)
        if not (math.isfinite(self.zoom) and self.zoom > 0):
            raise ValueError(f"camera zoom must be finite and positive, got {self.zoom!r}")


@dataclass(frozen=True)
class FrameParams:
    """Read-only per-frame input to the per-pixel pipeline.

    Only the first ``num_roots`` roots and ``num_roots + 1`` coefficients
    are meaningful. Instances are hashable, so a frame can be snapshotted
    and used as a cache key.
    """

    num_iterations: int
    num_roots: int
    roots: tuple[Root, ...]
    coefficients: tuple[tuple[float, float], ...]
    viewport: FixedViewport | Camera = FixedViewport()

    @classmethod
    def from_roots(
        cls,
        roots,
        num_iterations: int = DEFAULT_NUM_ITERATIONS,
        viewport: FixedViewport | Camera | None = None,
    ) -> FrameParams:
        """Build frame parameters, deriving the coefficient form from the roots."""
        roots = tuple(roots)
        if not roots:
            raise ValueError("at least one root is required")
        if len(roots) > MAX_ROOTS:
            raise ValueError(
                f"too many roots ({len(roots)}), must be at most {MAX_ROOTS}"
            )

        positions = np.array([r.position for r in roots], dtype=np.float32)
        coefficients = coefficients_from_roots(positions)

        params = cls(
            num_iterations=int(num_iterations),
            num_roots=len(roots),
            roots=roots,
            coefficients=tuple(
                (float(c[0]), float(c[1])) for c in coefficients
            ),
            viewport=viewport if viewport is not None else FixedViewport(),
        )

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Coefficient form residual at roots: %.3g",
                check_consistency(params),
            )
        return params

    def root_positions(self) -> np.ndarray:
        """(num_roots, 2) float32 array of root positions."""
        return np.array(
            [r.position for r in self.roots[:self.num_roots]], dtype=np.float32,
        ).reshape(-1, 2)

    def root_colors(self) -> np.ndarray:
        """(num_roots, 4) float32 array of root colors."""
        return np.array(
            [r.color for r in self.roots[:self.num_roots]], dtype=np.float32,
        ).reshape(-1, 4)

    def coefficient_array(self) -> np.ndarray:
        """(num_roots + 1, 2) float32 array, ascending power order."""
        return np.array(
            self.coefficients[:self.num_roots + 1], dtype=np.float32,
        ).reshape(-1, 2)


# ---------------------------------------------------------------------------
# Complex arithmetic
# ---------------------------------------------------------------------------

def complex_mul(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Complex product (not the component-wise product)."""
    a = np.asarray(a, dtype=np.float32)
    b = np.asarray(b, dtype=np.float32)
    re = a[..., 0] * b[..., 0] - a[..., 1] * b[..., 1]
    im = a[..., 0] * b[..., 1] + a[..., 1] * b[..., 0]
    return np.stack([re, im], axis=-1)


def conjugate(a: np.ndarray) -> np.ndarray:
    a = np.asarray(a, dtype=np.float32)
    return np.stack([a[..., 0], -a[..., 1]], axis=-1)


def reciprocal(a: np.ndarray) -> np.ndarray:
    """1 / a as conjugate(a) / |a|^2.

    At a == (0, 0) this yields NaN components instead of raising.
    """
    a = np.asarray(a, dtype=np.float32)
    norm_sq = a[..., 0] * a[..., 0] + a[..., 1] * a[..., 1]
    with np.errstate(divide="ignore", invalid="ignore"):
        return conjugate(a) / norm_sq[..., np.newaxis]


def distance(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Euclidean distance between a and b viewed as real 2-vectors."""
    d = np.asarray(a, dtype=np.float32) - np.asarray(b, dtype=np.float32)
    return np.sqrt(d[..., 0] * d[..., 0] + d[..., 1] * d[..., 1])


def from_polar(r: float, theta: float) -> tuple[float, float]:
    return (r * math.cos(theta), r * math.sin(theta))


def _one_like(z: np.ndarray) -> np.ndarray:
    one = np.zeros_like(z, dtype=np.float32)
    one[..., 0] = 1.0
    return one


# ---------------------------------------------------------------------------
# Polynomial evaluation
# ---------------------------------------------------------------------------

def coefficients_from_roots(positions: np.ndarray) -> np.ndarray:
    """Expand prod(z - r_i) into ascending-power coefficients.

    Args:
        positions: (k, 2) root positions.

    Returns:
        (k + 1, 2) float32 array; the last entry is (1, 0).
    """
    positions = np.asarray(positions, dtype=np.float32).reshape(-1, 2)
    coefficients = np.zeros((positions.shape[0] + 1, 2), dtype=np.float32)
    coefficients[0] = (1.0, 0.0)

    for root in positions:
        # p(z) * (z - root) = shift(p) - p * root
        shifted = np.roll(coefficients, 1, axis=0)
        shifted[0] = 0.0
        coefficients = shifted - complex_mul(coefficients, root)

    return coefficients


def evaluate(z: np.ndarray, root_positions: np.ndarray, num_roots: int) -> np.ndarray:
    """Polynomial value from the factored form: prod(z - root_i)."""
    z = np.asarray(z, dtype=np.float32)
    value = _one_like(z)
    for i in range(num_roots):
        value = complex_mul(value, z - root_positions[i])
    return value


def gradient(z: np.ndarray, coefficients: np.ndarray, num_roots: int) -> np.ndarray:
    """Derivative from the coefficient form via the power rule.

    coefficients[0] has no derivative contribution and is never read.
    """
    z = np.asarray(z, dtype=np.float32)
    total = np.zeros_like(z, dtype=np.float32)
    z_power = _one_like(z)
    for i in range(num_roots):
        total = total + np.float32(i + 1) * complex_mul(coefficients[i + 1], z_power)
        z_power = complex_mul(z_power, z)
    return total


def evaluate_coefficients(
    z: np.ndarray, coefficients: np.ndarray, num_roots: int,
) -> np.ndarray:
    """Polynomial value from the coefficient form (Horner's scheme)."""
    z = np.asarray(z, dtype=np.float32)
    value = np.zeros_like(z, dtype=np.float32) + coefficients[num_roots]
    for i in range(num_roots - 1, -1, -1):
        value = complex_mul(value, z) + coefficients[i]
    return value


def check_consistency(params: FrameParams) -> float:
    """Largest |p(root_i)| of the coefficient form over the active roots.

    Near zero when the two polynomial representations agree. Diagnostic
    only; rendering never depends on it.
    """
    positions = params.root_positions()
    residual = evaluate_coefficients(
        positions, params.coefficient_array(), params.num_roots,
    )
    return float(np.max(np.hypot(residual[:, 0], residual[:, 1])))


# ---------------------------------------------------------------------------
# Newton iteration and classification
# ---------------------------------------------------------------------------

def newton_step(
    z: np.ndarray,
    root_positions: np.ndarray,
    coefficients: np.ndarray,
    num_roots: int,
) -> np.ndarray:
    """One Newton-Raphson update: z - p(z) * (1 / p'(z))."""
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        value = evaluate(z, root_positions, num_roots)
        slope = gradient(z, coefficients, num_roots)
        return z - complex_mul(value, reciprocal(slope))


def newton_iterate(
    z0: np.ndarray,
    root_positions: np.ndarray,
    coefficients: np.ndarray,
    num_roots: int,
    num_iterations: int,
) -> np.ndarray:
    """Apply exactly ``num_iterations`` Newton steps, no early exit.

    A zero derivative produces non-finite values that propagate to the
    result.
    """
    z = np.asarray(z0, dtype=np.float32)
    for _ in range(num_iterations):
        z = newton_step(z, root_positions, coefficients, num_roots)
    return z


def nearest_root(z: np.ndarray, root_positions: np.ndarray, num_roots: int) -> np.ndarray:
    """Index of the closest root; the lowest index wins ties.

    Root 0 is the starting candidate and later roots replace it only when
    strictly closer, so a NaN position always resolves to root 0.
    Requires num_roots >= 1.
    """
    with np.errstate(invalid="ignore", over="ignore"):
        best_distance = distance(z, root_positions[0])
        best_index = np.zeros(best_distance.shape, dtype=np.int32)
        for i in range(1, num_roots):
            d = distance(z, root_positions[i])
            closer = d < best_distance
            best_index = np.where(closer, np.int32(i), best_index)
            best_distance = np.where(closer, d, best_distance)
    return best_index


def classify(
    z: np.ndarray,
    root_positions: np.ndarray,
    root_colors: np.ndarray,
    num_roots: int,
) -> np.ndarray:
    """Color of the nearest root, returned unmodified."""
    return np.asarray(root_colors, dtype=np.float32)[
        nearest_root(z, root_positions, num_roots)
    ]


def shade(z0, params: FrameParams) -> np.ndarray:
    """Run the per-pixel pipeline for one or more starting points.

    Returns RGBA float32 with shape z0.shape[:-1] + (4,).
    """
    positions = params.root_positions()
    z = newton_iterate(
        z0, positions, params.coefficient_array(),
        params.num_roots, params.num_iterations,
    )
    return classify(z, positions, params.root_colors(), params.num_roots)
