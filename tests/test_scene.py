"""Tests for scene.py: change events, defaults and frame snapshots."""

import math

import pytest

from newton import MAX_ROOTS, Camera, FrameParams
from scene import (
    SceneConfig, RootConfig, CameraConfig, NumIterations, AddRoot, RemoveRoot,
    RootPosition, RootColor, CameraPosition, CameraZoom, default_roots,
)


class TestDefaults:
    """Test the default scene."""

    def test_three_roots_on_circle(self):
        roots = default_roots()
        assert len(roots) == 3
        for root in roots:
            assert math.hypot(*root.position) == pytest.approx(0.5)

    def test_first_root_on_real_axis(self):
        root = default_roots()[0]
        assert root.position[0] == pytest.approx(0.5)
        assert root.position[1] == pytest.approx(0.0)

    def test_colors_scaled(self):
        """Cyan, magenta, yellow at 80% (alpha included)."""
        colors = [r.color for r in default_roots()]
        assert colors[0] == pytest.approx((0.0, 0.8, 0.8, 0.8))
        assert colors[1] == pytest.approx((0.8, 0.0, 0.8, 0.8))
        assert colors[2] == pytest.approx((0.8, 0.8, 0.0, 0.8))

    def test_scene_defaults(self):
        config = SceneConfig()
        assert config.num_iterations == 30
        assert config.camera == CameraConfig((0.0, 0.0), 1.0)

    def test_instances_do_not_share_roots(self):
        a, b = SceneConfig(), SceneConfig()
        a.apply(AddRoot())
        assert len(b.roots) == 3


class TestApply:
    """Test each change event."""

    def test_num_iterations(self):
        config = SceneConfig()
        config.apply(NumIterations(50))
        assert config.num_iterations == 50

    def test_num_iterations_clamped(self):
        config = SceneConfig()
        config.apply(NumIterations(-4))
        assert config.num_iterations == 0

    def test_add_root(self):
        config = SceneConfig()
        config.apply(AddRoot())
        assert len(config.roots) == 4
        assert config.roots[-1] == RootConfig((0.0, 0.0), (0.0, 0.0, 0.0, 1.0))

    def test_add_root_capped(self):
        config = SceneConfig(roots=[RootConfig() for _ in range(MAX_ROOTS)])
        config.apply(AddRoot())
        assert len(config.roots) == MAX_ROOTS

    def test_remove_root(self):
        config = SceneConfig()
        second = config.roots[1]
        config.apply(RemoveRoot(0))
        assert len(config.roots) == 2
        assert config.roots[0] is second

    def test_remove_missing_root_ignored(self):
        config = SceneConfig()
        config.apply(RemoveRoot(7))
        assert len(config.roots) == 3

    def test_root_position(self):
        config = SceneConfig()
        config.apply(RootPosition(2, (1.5, -2.0)))
        assert config.roots[2].position == (1.5, -2.0)

    def test_root_color(self):
        config = SceneConfig()
        config.apply(RootColor(1, (0.1, 0.2, 0.3, 1.0)))
        assert config.roots[1].color == (0.1, 0.2, 0.3, 1.0)

    def test_edit_missing_root_ignored(self):
        config = SceneConfig()
        before = [RootConfig(r.position, r.color) for r in config.roots]
        config.apply(RootPosition(9, (1.0, 1.0)))
        config.apply(RootColor(-1, (1.0, 1.0, 1.0, 1.0)))
        assert config.roots == before

    def test_camera_position(self):
        config = SceneConfig()
        config.apply(CameraPosition((0.25, -0.5)))
        assert config.camera.position == (0.25, -0.5)

    def test_camera_zoom(self):
        config = SceneConfig()
        config.apply(CameraZoom(2.5))
        assert config.camera.zoom == 2.5

    @pytest.mark.parametrize("zoom", [0.0, -1.0, float("nan"), float("inf")])
    def test_invalid_zoom_ignored(self, zoom):
        config = SceneConfig()
        config.apply(CameraZoom(zoom))
        assert config.camera.zoom == 1.0

    def test_non_finite_camera_position_ignored(self):
        config = SceneConfig()
        config.apply(CameraPosition((float("nan"), 0.0)))
        assert config.camera.position == (0.0, 0.0)
        assert config.to_frame_params().viewport == Camera()

    def test_unknown_event(self):
        with pytest.raises(TypeError):
            SceneConfig().apply("zoom in")

    def test_events_immutable(self):
        event = RootPosition(0, (1.0, 0.0))
        with pytest.raises(AttributeError):
            event.index = 1


class TestSnapshots:
    """Test to_frame_params() snapshots."""

    def test_to_frame_params(self):
        config = SceneConfig()
        config.apply(NumIterations(12))
        config.apply(CameraPosition((0.5, 0.5)))
        config.apply(CameraZoom(2.0))
        params = config.to_frame_params()
        assert isinstance(params, FrameParams)
        assert params.num_iterations == 12
        assert params.num_roots == 3
        assert params.viewport == Camera((0.5, 0.5), 2.0)

    def test_frame_params_unaffected_by_later_edits(self):
        config = SceneConfig()
        params = config.to_frame_params()
        config.apply(RootPosition(0, (4.0, 4.0)))
        assert params.roots[0].position != (4.0, 4.0)

    def test_no_roots_rejected(self):
        config = SceneConfig(roots=[])
        with pytest.raises(ValueError):
            config.to_frame_params()
