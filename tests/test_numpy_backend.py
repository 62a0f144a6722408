"""Tests for fractal/_numpy_backend.py: vectorized pipeline cross-validation.

Verifies that the batch render produces results consistent with the
single-point newton.py pipeline.
"""

import numpy as np
import pytest

from newton import FixedViewport, FrameParams, Root, shade
from fractal.compute import RenderResult, build_starting_points
from fractal._numpy_backend import NumpyBackend, newton_batch


CUBE_ROOTS = [(1.0, 0.0), (-0.5, 0.866), (-0.5, -0.866)]
CUBE_COLORS = [(1.0, 0.0, 0.0, 1.0), (0.0, 1.0, 0.0, 1.0), (0.0, 0.0, 1.0, 1.0)]


def _cube_params(num_iterations=30):
    roots = [Root(p, c) for p, c in zip(CUBE_ROOTS, CUBE_COLORS)]
    return FrameParams.from_roots(
        roots, num_iterations=num_iterations,
        viewport=FixedViewport((-1.5, 1.5), (1.5, -1.5)),
    )


class TestRenderBatch:
    """Test the full vectorized render."""

    def test_output_shapes(self):
        params = _cube_params()
        points = build_starting_points(params, 16)
        result = NumpyBackend().render_batch(params, points)
        assert isinstance(result, RenderResult)
        assert result.colors.shape == (256, 4)
        assert result.root_indices.shape == (256,)
        assert result.final_positions.shape == (256, 2)
        assert result.colors.dtype == np.float32
        assert result.final_positions.dtype == np.float32

    def test_colors_match_indices(self):
        params = _cube_params()
        result = newton_batch(params, build_starting_points(params, 16))
        np.testing.assert_array_equal(
            result.colors, params.root_colors()[result.root_indices],
        )

    def test_points_near_roots(self):
        params = _cube_params()
        points = np.array(CUBE_ROOTS, dtype=np.float32) * np.float32(0.95)
        result = newton_batch(params, points)
        np.testing.assert_array_equal(result.root_indices, [0, 1, 2])
        for i, root in enumerate(CUBE_ROOTS):
            assert np.hypot(*(result.final_positions[i] - root)) < 1e-4

    def test_all_basins_present(self):
        params = _cube_params()
        result = newton_batch(params, build_starting_points(params, 32))
        assert set(np.unique(result.root_indices)) == {0, 1, 2}

    def test_matches_single_point_pipeline(self):
        params = _cube_params()
        points = build_starting_points(params, 8)
        result = newton_batch(params, points)
        for i in range(0, points.shape[0], 7):
            np.testing.assert_array_equal(result.colors[i], shade(points[i], params))

    def test_does_not_mutate_input(self):
        params = _cube_params()
        points = build_starting_points(params, 8)
        before = points.copy()
        newton_batch(params, points)
        np.testing.assert_array_equal(points, before)

    def test_zero_iterations_classifies_start(self):
        params = _cube_params(num_iterations=0)
        points = np.array([[0.9, 0.0], [-0.4, 0.8]], dtype=np.float32)
        result = newton_batch(params, points)
        np.testing.assert_array_equal(result.final_positions, points)
        np.testing.assert_array_equal(result.root_indices, [0, 1])


class TestCriticalPoint:
    """Zero derivative: non-finite position, first root's color."""

    def test_origin_of_z_squared_minus_one(self):
        roots = [
            Root((1.0, 0.0), (1.0, 0.0, 0.0, 1.0)),
            Root((-1.0, 0.0), (0.0, 0.0, 1.0, 1.0)),
        ]
        params = FrameParams.from_roots(roots, num_iterations=30)
        points = np.array([[0.0, 0.0], [0.5, 0.1]], dtype=np.float32)
        result = newton_batch(params, points)

        assert np.all(np.isnan(result.final_positions[0]))
        assert result.root_indices[0] == 0
        np.testing.assert_array_equal(result.colors[0], [1.0, 0.0, 0.0, 1.0])
        # The neighbouring pixel is unaffected
        assert np.all(np.isfinite(result.final_positions[1]))


class TestCancellationAndProgress:
    """Test cancel_check and progress_callback plumbing."""

    def test_cancellation(self):
        """Cancellation should still classify the partial state."""
        params = _cube_params(num_iterations=50)
        points = build_starting_points(params, 8)

        call_count = [0]
        def cancel_after_two():
            call_count[0] += 1
            return call_count[0] > 2

        result = newton_batch(params, points, cancel_check=cancel_after_two)
        assert call_count[0] == 3
        assert result.colors.shape == (64, 4)

    def test_cancel_immediately_keeps_start(self):
        params = _cube_params()
        points = build_starting_points(params, 4)
        result = newton_batch(params, points, cancel_check=lambda: True)
        np.testing.assert_array_equal(result.final_positions, points)

    def test_progress_callback(self):
        params = _cube_params(num_iterations=10)
        progress_calls = []
        def on_progress(done, total):
            progress_calls.append((done, total))

        newton_batch(params, build_starting_points(params, 4), progress_callback=on_progress)
        assert len(progress_calls) == 11
        # Last call should have done == total
        assert progress_calls[-1] == (10, 10)
