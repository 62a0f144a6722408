"""Color output: float RGBA pixels to BGRA bytes and QImage construction.

The core emits each root's color unmodified (unclamped floats). Clamping
to [0, 1] happens only here, when quantizing for display. The surface is
opaque: the alpha byte is carried but the QImage format ignores it.
"""

import numpy as np
from PyQt6.QtGui import QImage


def rgba_to_bgra(colors: np.ndarray, resolution: int) -> np.ndarray:
    """Quantize float RGBA colors to an image array.

    Args:
        colors: (N, 4) float RGBA, N = resolution * resolution, row-major.
        resolution: Grid side length (image is resolution x resolution).

    Returns:
        (resolution, resolution, 4) uint8 BGRA array (Qt's ARGB32 byte
        layout on little-endian systems). Non-finite components become 0.
    """
    rgba = np.nan_to_num(
        np.asarray(colors, dtype=np.float32), nan=0.0, posinf=1.0, neginf=0.0,
    )
    rgba = np.clip(rgba, 0.0, 1.0)
    rgba8 = np.rint(rgba * 255.0).astype(np.uint8)

    bgra = np.empty_like(rgba8)
    bgra[:, 0] = rgba8[:, 2]
    bgra[:, 1] = rgba8[:, 1]
    bgra[:, 2] = rgba8[:, 0]
    bgra[:, 3] = rgba8[:, 3]

    return bgra.reshape(resolution, resolution, 4)


def color_to_rgb8(color) -> tuple[int, int, int]:
    """Float RGBA color to an (r, g, b) byte triple for swatches."""
    rgb = np.clip(np.nan_to_num(np.asarray(color[:3], dtype=np.float32)), 0.0, 1.0)
    r, g, b = np.rint(rgb * 255.0).astype(int)
    return int(r), int(g), int(b)


def numpy_to_qimage(bgra: np.ndarray) -> QImage:
    """Create a QImage from a BGRA pixel array with GC safety.

    Args:
        bgra: (H, W, 4) uint8 BGRA array.

    Returns:
        QImage with Format_RGB32. The numpy array is attached to the
        QImage as _numpy_ref to prevent garbage collection.
    """
    h, w = bgra.shape[:2]
    # Ensure contiguous
    data = np.ascontiguousarray(bgra)
    stride = 4 * w
    image = QImage(data.data, w, h, stride, QImage.Format.Format_RGB32)
    # Prevent GC of the numpy array while QImage is alive
    image._numpy_ref = data
    return image
