"""Raster geometry for every (space, plane) combination."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Dict, Optional, Tuple, Union

import numpy as np

from .config import DEFAULT_CONFIG, ViewerConfig
from .volume import VolumeModel

LOGGER = logging.getLogger(__name__)


class Space(str, Enum):
    VOXEL = "voxel"
    WORLD = "world"
    ABSOLUTE = "absolute"


class Plane(str, Enum):
    SAGITTAL = "sagittal"
    CORONAL = "coronal"
    AXIAL = "axial"


_PLANE_ALIASES = {"sag": Plane.SAGITTAL, "cor": Plane.CORONAL, "axi": Plane.AXIAL}

# (W, H, D) axes of each plane, in the space's own axis order.
PLANE_AXES: Dict[Plane, Tuple[int, int, int]] = {
    Plane.SAGITTAL: (1, 2, 0),
    Plane.CORONAL: (0, 2, 1),
    Plane.AXIAL: (0, 1, 2),
}


def parse_space(value: Union[Space, str]) -> Optional[Space]:
    """Return the :class:`Space` named by *value* or ``None`` if unknown."""
    if isinstance(value, Space):
        return value
    try:
        return Space(str(value).strip().lower())
    except ValueError:
        return None


def parse_plane(value: Union[Plane, str]) -> Optional[Plane]:
    """Return the :class:`Plane` named by *value* (``"sag"`` style accepted)."""
    if isinstance(value, Plane):
        return value
    text = str(value).strip().lower()
    if text in _PLANE_ALIASES:
        return _PLANE_ALIASES[text]
    try:
        return Plane(text)
    except ValueError:
        return None


@dataclass(frozen=True)
class SpaceDescriptor:
    """Raster size, slice count and physical pixel spacing of one view."""

    W: int
    H: int
    D: int
    Wdim: float
    Hdim: float

    @property
    def display_height(self) -> float:
        """On-screen height correcting non-square pixels to physical aspect."""
        return self.H * self.Hdim / self.Wdim

    @property
    def max_slice(self) -> int:
        return self.D - 1

    @property
    def mid_slice(self) -> int:
        return (self.D - 1) // 2


class SpaceResolver:
    """Compute :class:`SpaceDescriptor` values for a loaded volume."""

    def __init__(self, volume: VolumeModel, config: ViewerConfig = DEFAULT_CONFIG) -> None:
        self.volume = volume
        self.config = config
        self._cache: Dict[Tuple[Space, Plane], SpaceDescriptor] = {}
        self.absolute_edge, self.absolute_pitch = self._absolute_cube()

    def _absolute_cube(self) -> Tuple[int, float]:
        vol = self.volume
        mapping = vol.axis_mapping
        wdim = mapping.world_dim(vol.dim)
        wpixdim = mapping.world_pixdim(vol.pixdim)
        pitch = float(np.median(vol.pixdim))
        extent = max(d * p / pitch for d, p in zip(wdim, wpixdim))
        edge = max(1, int(round(self.config.absolute_cube_scale * extent)))
        LOGGER.debug("Absolute cube edge=%d pitch=%.4g mm", edge, pitch)
        return edge, pitch

    def extents(self, space: Space) -> Tuple[Tuple[int, int, int], Tuple[float, float, float]]:
        """Three extents and spacings of *space* in its own axis order."""
        vol = self.volume
        if space is Space.VOXEL:
            return vol.dim, vol.pixdim
        if space is Space.WORLD:
            mapping = vol.axis_mapping
            return mapping.world_dim(vol.dim), mapping.world_pixdim(vol.pixdim)
        edge, pitch = self.absolute_edge, self.absolute_pitch
        return (edge, edge, edge), (pitch, pitch, pitch)

    def resolve(self, space: Space, plane: Plane) -> SpaceDescriptor:
        key = (space, plane)
        desc = self._cache.get(key)
        if desc is None:
            dims, spacing = self.extents(space)
            w, h, d = PLANE_AXES[plane]
            desc = SpaceDescriptor(dims[w], dims[h], dims[d], spacing[w], spacing[h])
            self._cache[key] = desc
        return desc

    def max_slice(self, space: Space, plane: Plane) -> int:
        return self.resolve(space, plane).max_slice

    def mid_slice(self, space: Space, plane: Plane) -> int:
        return self.resolve(space, plane).mid_slice


__all__ = [
    "PLANE_AXES",
    "Plane",
    "Space",
    "SpaceDescriptor",
    "SpaceResolver",
    "parse_plane",
    "parse_space",
]
