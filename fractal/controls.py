"""Fractal controls: iterations, camera, resolution and the root editor.

Every edit is emitted as a scene change event (see scene.py); the panel
never mutates the SceneConfig itself. After structural edits the view
calls set_config() so the root rows match the scene again.
"""

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QGridLayout,
    QLabel, QPushButton, QComboBox, QGroupBox, QSpinBox,
)

from newton import MAX_ROOTS
from scene import (
    SceneConfig, NumIterations, AddRoot, RemoveRoot, RootPosition, RootColor,
    CameraPosition, CameraZoom,
)
from ui_common import ComplexInput, ColorButton, make_float_spinbox

RESOLUTIONS = [128, 256, 512, 1024]
DEFAULT_RESOLUTION = 256


class RootRow(QWidget):
    """One editable root: index label, position, color, remove button."""

    def __init__(self, index, root, parent=None):
        super().__init__(parent)
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.index = index
        self.position_input = ComplexInput(root.position)
        self.color_button = ColorButton(root.color)
        self.remove_btn = QPushButton("✕")
        self.remove_btn.setFixedWidth(28)
        self.remove_btn.setToolTip("Remove root")

        layout.addWidget(QLabel(f"{index + 1}"))
        layout.addWidget(self.position_input, 1)
        layout.addWidget(self.color_button)
        layout.addWidget(self.remove_btn)


class FractalControls(QWidget):
    """Control panel for the fractal explorer."""

    # Signals
    config_event = pyqtSignal(object)    # scene change event
    resolution_changed = pyqtSignal(int)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._building = True
        self._root_rows: list[RootRow] = []
        self._init_ui()
        self._building = False

    def _init_ui(self):
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(8, 8, 8, 8)

        # --- Simulation ---
        sim_group = QGroupBox("Simulation")
        sim_layout = QGridLayout()
        sim_group.setLayout(sim_layout)

        sim_layout.addWidget(QLabel("Iterations:"), 0, 0)
        self.iterations_spin = QSpinBox()
        self.iterations_spin.setRange(0, 1000)
        self.iterations_spin.setKeyboardTracking(False)
        sim_layout.addWidget(self.iterations_spin, 0, 1)

        main_layout.addWidget(sim_group)

        # --- Camera ---
        camera_group = QGroupBox("Camera")
        camera_layout = QGridLayout()
        camera_group.setLayout(camera_layout)

        camera_layout.addWidget(QLabel("Position:"), 0, 0)
        self.camera_position = ComplexInput()
        camera_layout.addWidget(self.camera_position, 0, 1)

        camera_layout.addWidget(QLabel("Zoom:"), 1, 0)
        self.zoom_spin = make_float_spinbox(1e-4, 1e6, 1.0, step=0.01)
        camera_layout.addWidget(self.zoom_spin, 1, 1)

        main_layout.addWidget(camera_group)

        # --- Display ---
        display_group = QGroupBox("Display")
        display_layout = QGridLayout()
        display_group.setLayout(display_layout)

        display_layout.addWidget(QLabel("Resolution:"), 0, 0)
        self.resolution_combo = QComboBox()
        for res in RESOLUTIONS:
            self.resolution_combo.addItem(f"{res}x{res}", res)
        self.resolution_combo.setCurrentIndex(RESOLUTIONS.index(DEFAULT_RESOLUTION))
        display_layout.addWidget(self.resolution_combo, 0, 1)

        main_layout.addWidget(display_group)

        # --- Roots ---
        roots_group = QGroupBox("Roots")
        roots_layout = QVBoxLayout()
        roots_group.setLayout(roots_layout)

        self._rows_layout = QVBoxLayout()
        roots_layout.addLayout(self._rows_layout)

        self.add_root_btn = QPushButton("Add Root")
        roots_layout.addWidget(self.add_root_btn)

        main_layout.addWidget(roots_group)
        main_layout.addStretch()

        # --- Wire signals ---
        self.iterations_spin.valueChanged.connect(self._on_iterations_changed)
        self.camera_position.value_changed.connect(self._on_camera_position_changed)
        self.zoom_spin.valueChanged.connect(self._on_zoom_changed)
        self.resolution_combo.currentIndexChanged.connect(self._on_resolution_changed)
        self.add_root_btn.clicked.connect(self._on_add_root)

    # -- Public accessors --

    def get_resolution(self) -> int:
        return self.resolution_combo.currentData()

    def set_config(self, config: SceneConfig) -> None:
        """Show ``config`` without emitting any change events."""
        self._building = True
        self.iterations_spin.setValue(config.num_iterations)
        self.camera_position.set_value(config.camera.position)
        self.zoom_spin.setValue(config.camera.zoom)
        self._rebuild_roots(config)
        self._building = False

    def _rebuild_roots(self, config: SceneConfig) -> None:
        for row in self._root_rows:
            self._rows_layout.removeWidget(row)
            row.deleteLater()
        self._root_rows = []

        for i, root in enumerate(config.roots):
            row = RootRow(i, root)
            row.position_input.value_changed.connect(
                lambda pos, idx=i: self._emit(RootPosition(idx, pos))
            )
            row.color_button.color_changed.connect(
                lambda color, idx=i: self._emit(RootColor(idx, color))
            )
            row.remove_btn.clicked.connect(
                lambda _checked=False, idx=i: self._emit(RemoveRoot(idx))
            )
            self._rows_layout.addWidget(row)
            self._root_rows.append(row)

        self.add_root_btn.setEnabled(len(config.roots) < MAX_ROOTS)

    # -- Callbacks --

    def _emit(self, event) -> None:
        if not self._building:
            self.config_event.emit(event)

    def _on_iterations_changed(self, value):
        self._emit(NumIterations(value))

    def _on_camera_position_changed(self, position):
        self._emit(CameraPosition(position))

    def _on_zoom_changed(self, zoom):
        # Step scales with the zoom level
        self.zoom_spin.setSingleStep(max(zoom * 0.01, 1e-4))
        self._emit(CameraZoom(zoom))

    def _on_resolution_changed(self, _index):
        if not self._building:
            self.resolution_changed.emit(self.get_resolution())

    def _on_add_root(self):
        self._emit(AddRoot())
