"""Rasterization and view-state layer of the slice viewer."""

from .rasterizer import SliceRasterizer
from .slice_viewer import RenderedSlice, SliceViewer, ViewerHost
from .view_state import ViewState

__all__ = [
    "RenderedSlice",
    "SliceRasterizer",
    "SliceViewer",
    "ViewState",
    "ViewerHost",
]
