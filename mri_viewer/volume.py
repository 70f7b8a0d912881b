"""Volume description consumed by the slice engine.

A :class:`VolumeModel` holds the voxel grid geometry, the flat voxel buffer
and the header-derived transforms.  It is built once when loading finishes
and never mutated afterwards.

The flat buffer uses numpy's Fortran order: the primary channel of voxel
``(x, y, z)`` lives at ``z*dim1*dim0 + y*dim0 + x`` and channel ``c`` of a
vector volume at that index plus ``c*dim0*dim1*dim2``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Optional, Sequence, Tuple, Union

import numpy as np
from nibabel.affines import voxel_sizes
from nibabel.orientations import io_orientation

LOGGER = logging.getLogger(__name__)


class MalformedVolumeError(ValueError):
    """Raised when a volume cannot be used for rendering."""


@dataclass(frozen=True)
class ScalarData:
    """Single-channel voxel buffer (anatomy, maps...)."""

    buffer: np.ndarray
    channels: int = field(default=1, init=False)


@dataclass(frozen=True)
class Vector3Data:
    """Three-channel voxel buffer rendered directly as RGB."""

    buffer: np.ndarray
    channels: int = field(default=3, init=False)


VoxelData = Union[ScalarData, Vector3Data]


@dataclass(frozen=True)
class AxisMapping:
    """Signed permutation between world axes and native voxel axes.

    For world axis ``w`` the native axis is ``axes[w]`` and
    ``voxel[axes[w]] = offsets[w] + signs[w] * world[w]``.
    """

    axes: Tuple[int, int, int] = (0, 1, 2)
    signs: Tuple[int, int, int] = (1, 1, 1)
    offsets: Tuple[int, int, int] = (0, 0, 0)

    def __post_init__(self) -> None:
        if sorted(self.axes) != [0, 1, 2]:
            raise MalformedVolumeError(f"Axis assignment {self.axes} is not a permutation of (0, 1, 2)")
        if any(s not in (1, -1) for s in self.signs):
            raise MalformedVolumeError(f"Axis signs must be +1 or -1, got {self.signs}")

    @classmethod
    def from_affine(cls, affine: np.ndarray, dim: Sequence[int]) -> "AxisMapping":
        """Derive the closest signed permutation to *affine*.

        Flipped axes are offset by ``dim - 1`` so world indices ``0..dim-1``
        cover the voxel grid without interpolation.
        """
        ornt = io_orientation(np.asarray(affine, dtype=float))
        if np.isnan(ornt).any():
            raise MalformedVolumeError("Affine does not define an orientation for every axis")
        axes = [0, 0, 0]
        signs = [1, 1, 1]
        offsets = [0, 0, 0]
        for native, (world, flip) in enumerate(ornt[:3]):
            w = int(world)
            axes[w] = native
            signs[w] = int(flip)
            offsets[w] = 0 if flip > 0 else int(dim[native]) - 1
        return cls(tuple(axes), tuple(signs), tuple(offsets))

    def world_dim(self, dim: Sequence[int]) -> Tuple[int, int, int]:
        return tuple(int(dim[a]) for a in self.axes)

    def world_pixdim(self, pixdim: Sequence[float]) -> Tuple[float, float, float]:
        return tuple(float(pixdim[a]) for a in self.axes)


class VolumeModel:
    """Immutable scalar or 3-vector volume with its voxel geometry."""

    def __init__(
        self,
        dim: Sequence[int],
        pixdim: Sequence[float],
        voxels: VoxelData,
        affine: Optional[np.ndarray] = None,
        axis_mapping: Optional[AxisMapping] = None,
    ) -> None:
        if len(dim) != 3 or len(pixdim) != 3:
            raise MalformedVolumeError("dim and pixdim must have three entries")
        self.dim: Tuple[int, int, int] = tuple(int(d) for d in dim)
        self.pixdim: Tuple[float, float, float] = tuple(float(p) for p in pixdim)
        if any(d <= 0 for d in self.dim):
            raise MalformedVolumeError(f"All dimensions must be positive, got {self.dim}")
        if any(not np.isfinite(p) or p <= 0 for p in self.pixdim):
            raise MalformedVolumeError(f"All voxel spacings must be positive, got {self.pixdim}")
        if not isinstance(voxels, (ScalarData, Vector3Data)):
            raise MalformedVolumeError("voxels must be ScalarData or Vector3Data")

        data = np.asarray(voxels.buffer).reshape(-1)
        expected = self.n_voxels * voxels.channels
        if data.size != expected:
            raise MalformedVolumeError(
                f"Buffer holds {data.size} values but dim {self.dim} with "
                f"{voxels.channels} channel(s) needs {expected}"
            )
        data = data.copy()
        data.flags.writeable = False
        self.voxels: VoxelData = type(voxels)(data)

        if affine is None:
            affine = np.diag([*self.pixdim, 1.0])
        affine = np.array(affine, dtype=float)
        if affine.shape != (4, 4):
            raise MalformedVolumeError(f"Affine must be 4x4, got shape {affine.shape}")
        try:
            mm_to_voxel = np.linalg.inv(affine)
        except np.linalg.LinAlgError as exc:
            raise MalformedVolumeError("Affine is not invertible") from exc
        affine.flags.writeable = False
        mm_to_voxel.flags.writeable = False
        self.affine = affine
        self.mm_to_voxel = mm_to_voxel

        self.axis_mapping = axis_mapping or AxisMapping.from_affine(affine, self.dim)
        LOGGER.debug(
            "Volume dim=%s pixdim=%s channels=%d axes=%s signs=%s",
            self.dim,
            self.pixdim,
            self.data_dim,
            self.axis_mapping.axes,
            self.axis_mapping.signs,
        )

    @classmethod
    def from_array(
        cls,
        array: np.ndarray,
        pixdim: Optional[Sequence[float]] = None,
        affine: Optional[np.ndarray] = None,
    ) -> "VolumeModel":
        """Build a model from an ``(X, Y, Z)`` or ``(X, Y, Z, 3)`` array.

        Without *pixdim* the spacing is read from *affine*, or 1 mm if neither
        is given.
        """
        arr = np.asarray(array)
        if arr.ndim == 3:
            voxels: VoxelData = ScalarData(arr.ravel(order="F"))
        elif arr.ndim == 4 and arr.shape[3] == 3:
            voxels = Vector3Data(arr.ravel(order="F"))
        else:
            raise MalformedVolumeError(f"Unsupported array shape {arr.shape}")
        if pixdim is None:
            pixdim = voxel_sizes(np.asarray(affine, dtype=float)) if affine is not None else (1.0, 1.0, 1.0)
        return cls(arr.shape[:3], pixdim, voxels, affine=affine)

    @property
    def data(self) -> np.ndarray:
        return self.voxels.buffer

    @property
    def data_dim(self) -> int:
        return self.voxels.channels

    @property
    def is_vector(self) -> bool:
        return isinstance(self.voxels, Vector3Data)

    @property
    def n_voxels(self) -> int:
        return self.dim[0] * self.dim[1] * self.dim[2]

    @property
    def primary_channel(self) -> np.ndarray:
        return self.data[: self.n_voxels]

    def channel(self, c: int) -> np.ndarray:
        n = self.n_voxels
        return self.data[c * n : (c + 1) * n]

    def flat_index(self, x, y, z):
        """Flat index of the primary channel; no bounds check."""
        return z * self.dim[1] * self.dim[0] + y * self.dim[0] + x

    def contains(self, x, y, z):
        """Whether integer voxel coordinates fall inside the grid (array-aware)."""
        return (
            (x >= 0) & (x < self.dim[0])
            & (y >= 0) & (y < self.dim[1])
            & (z >= 0) & (z < self.dim[2])
        )

    def __repr__(self) -> str:
        kind = "vector" if self.is_vector else "scalar"
        return f"VolumeModel(dim={self.dim}, pixdim={self.pixdim}, {kind})"


__all__ = [
    "AxisMapping",
    "MalformedVolumeError",
    "ScalarData",
    "Vector3Data",
    "VolumeModel",
    "VoxelData",
]
