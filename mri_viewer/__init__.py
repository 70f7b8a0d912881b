"""Orthogonal slice rendering for 3-D scalar and vector volumes."""

from importlib import metadata

# The host-facing API lives in ``mri_viewer.visualization``; re-export it
# together with the volume and geometry types so callers only need the
# package root.
from .config import DEFAULT_CONFIG, ViewerConfig, load_viewer_config
from .sampling import IntensityNormalizer, compute_display_ceiling, trilinear
from .spaces import Plane, Space, SpaceDescriptor, SpaceResolver
from .transforms import CoordinateTransform
from .visualization import RenderedSlice, SliceRasterizer, SliceViewer, ViewerHost, ViewState
from .volume import AxisMapping, MalformedVolumeError, ScalarData, Vector3Data, VolumeModel

__all__ = [
    "__version__",
    "AxisMapping",
    "CoordinateTransform",
    "DEFAULT_CONFIG",
    "IntensityNormalizer",
    "MalformedVolumeError",
    "Plane",
    "RenderedSlice",
    "ScalarData",
    "SliceRasterizer",
    "SliceViewer",
    "Space",
    "SpaceDescriptor",
    "SpaceResolver",
    "Vector3Data",
    "ViewState",
    "ViewerConfig",
    "ViewerHost",
    "VolumeModel",
    "compute_display_ceiling",
    "load_viewer_config",
    "trilinear",
]

try:  # pragma: no cover - version resolution
    __version__ = metadata.version("mri-viewer")
except metadata.PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
