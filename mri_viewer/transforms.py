"""Conversions between voxel, world and absolute coordinates.

World coordinates are integer grid positions related to voxel indices by the
volume's signed permutation, so no interpolation is needed there.  Absolute
coordinates are millimetres measured from the volume centre and go through
the full mm-to-voxel affine.

All methods accept either plain 3-sequences or a sequence of three
broadcastable arrays; the vectorised form is what the rasterizer uses.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np

from .volume import VolumeModel


def _stack(points) -> np.ndarray:
    pts = np.asarray(points, dtype=float)
    if pts.shape[0] != 3:
        raise ValueError(f"Expected three coordinates, got shape {pts.shape}")
    return pts


def _apply_affine(matrix: np.ndarray, pts: np.ndarray) -> np.ndarray:
    flat = pts.reshape(3, -1)
    out = matrix[:3, :3] @ flat + matrix[:3, 3:4]
    return out.reshape(pts.shape)


class CoordinateTransform:
    """Coordinate conversions for one :class:`VolumeModel`."""

    def __init__(self, volume: VolumeModel) -> None:
        self.volume = volume
        self.mapping = volume.axis_mapping
        centre_voxel = (np.asarray(volume.dim, dtype=float) - 1.0) / 2.0
        self.centre_mm = _apply_affine(volume.affine, centre_voxel)

    # -- world <-> voxel -------------------------------------------------
    def world_to_voxel(self, s) -> Tuple:
        """Voxel coordinates (native order) of world point *s* (S2IJK)."""
        m = self.mapping
        v = [None, None, None]
        for w in range(3):
            v[m.axes[w]] = m.offsets[w] + m.signs[w] * s[w]
        return tuple(v)

    def voxel_to_world(self, v) -> Tuple:
        """World coordinates of voxel *v* (IJK2S); inverse of :meth:`world_to_voxel`."""
        m = self.mapping
        return tuple(m.signs[w] * (v[m.axes[w]] - m.offsets[w]) for w in range(3))

    def world_to_voxel_index(self, s):
        """Flat index of world point *s*.  No bounds check is performed."""
        return self.volume.flat_index(*self.world_to_voxel(s))

    def world_to_voxel_index_checked(self, s: Sequence[int]) -> Optional[int]:
        """Flat index of *s*, or ``None`` when it falls outside the grid."""
        v = self.world_to_voxel(s)
        if not self.volume.contains(*v):
            return None
        return int(self.volume.flat_index(*v))

    # -- absolute <-> voxel ----------------------------------------------
    def absolute_to_voxel_coord(self, a) -> np.ndarray:
        """Fractional voxel coordinates of absolute point *a* (mm, centred)."""
        pts = _stack(a)
        centre = self.centre_mm.reshape((3,) + (1,) * (pts.ndim - 1))
        return _apply_affine(self.volume.mm_to_voxel, pts + centre)

    def voxel_to_absolute(self, v) -> np.ndarray:
        pts = _stack(v)
        centre = self.centre_mm.reshape((3,) + (1,) * (pts.ndim - 1))
        return _apply_affine(self.volume.affine, pts) - centre

    def absolute_to_voxel_index(self, a) -> Optional[int]:
        """Flat index of the voxel containing *a*, or ``None`` outside the grid."""
        ijk, inside = self.floor_in_bounds(self.absolute_to_voxel_coord(a))
        if not inside:
            return None
        return int(self.volume.flat_index(*ijk))

    def floor_in_bounds(self, coords: np.ndarray):
        """Floor fractional *coords* and report which land inside the grid."""
        ijk = np.floor(coords).astype(np.int64)
        inside = self.volume.contains(ijk[0], ijk[1], ijk[2])
        return ijk, inside


__all__ = ["CoordinateTransform"]
