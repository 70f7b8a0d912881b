"""Convert rendered slices into ``QImage`` objects for Qt hosts."""

from __future__ import annotations

import importlib.util
from typing import Optional

import numpy as np

from .slice_viewer import RenderedSlice

_HAS_PYQT5 = importlib.util.find_spec("PyQt5") is not None
if _HAS_PYQT5:
    from PyQt5.QtCore import Qt
    from PyQt5.QtGui import QImage
else:
    Qt = None
    QImage = None

HAS_PYQT5 = _HAS_PYQT5


def frame_to_qimage(frame: RenderedSlice, keep_aspect: bool = True):
    """Return a ``QImage`` holding its own copy of *frame*'s RGBA pixels.

    With *keep_aspect* the image is rescaled to ``display_height`` rows so
    anisotropic voxels appear with their physical proportions.
    """
    if not HAS_PYQT5:
        raise RuntimeError("Qt image conversion requires the optional 'PyQt5' dependency.")
    arr = np.ascontiguousarray(frame.pixels)
    h, w = arr.shape[:2]
    img = QImage(arr.tobytes(), w, h, w * 4, QImage.Format_RGBA8888).copy()
    target_h = max(1, int(round(frame.display_height)))
    if keep_aspect and target_h != h:
        img = img.scaled(w, target_h, Qt.IgnoreAspectRatio, Qt.SmoothTransformation)
    return img


class QImageSink:
    """Pixel sink keeping the most recent frame as a ``QImage``."""

    def __init__(self, keep_aspect: bool = True) -> None:
        self.keep_aspect = keep_aspect
        self.image: Optional["QImage"] = None
        self.caption = ""

    def __call__(self, frame: RenderedSlice) -> None:
        self.image = frame_to_qimage(frame, keep_aspect=self.keep_aspect)
        self.caption = frame.caption


__all__ = ["HAS_PYQT5", "QImageSink", "frame_to_qimage"]
