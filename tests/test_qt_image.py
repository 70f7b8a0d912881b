import numpy as np
import pytest

pytest.importorskip("PyQt5.QtGui")

from mri_viewer.spaces import Space  # noqa: E402
from mri_viewer.visualization.qt_image import QImageSink, frame_to_qimage  # noqa: E402
from mri_viewer.visualization.slice_viewer import SliceViewer  # noqa: E402
from mri_viewer.volume import ScalarData, VolumeModel  # noqa: E402


def _viewer(pixdim=(1.0, 1.0, 1.0)) -> SliceViewer:
    viewer = SliceViewer()
    viewer.initialize(
        VolumeModel((4, 6, 5), pixdim, ScalarData(np.arange(120, dtype=float))),
        space=Space.VOXEL,
        plane="axial",
    )
    return viewer


def test_qimage_matches_frame_pixels():
    frame = _viewer().frame
    img = frame_to_qimage(frame)
    assert (img.width(), img.height()) == (frame.width, frame.height)
    color = img.pixelColor(1, 2)
    assert [color.red(), color.green(), color.blue(), color.alpha()] == frame.pixels[2, 1].tolist()


def test_qimage_keeps_physical_aspect():
    frame = _viewer(pixdim=(1.0, 2.0, 1.0)).frame
    img = frame_to_qimage(frame)
    assert (img.width(), img.height()) == (4, 12)
    assert frame_to_qimage(frame, keep_aspect=False).height() == 6


def test_sink_tracks_latest_frame():
    viewer = _viewer()
    sink = QImageSink()
    viewer.sink = sink
    viewer.set_slice(0)
    assert sink.image is not None
    assert sink.caption == "Axial 0/4 (voxel)"
