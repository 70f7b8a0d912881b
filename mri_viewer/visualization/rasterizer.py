"""Slice rasterization for the nine (space, plane) combinations."""

from __future__ import annotations

import logging
from typing import Optional, Tuple, Union

import numpy as np

from ..config import DEFAULT_CONFIG, ViewerConfig
from ..sampling import IntensityNormalizer, trilinear
from ..spaces import PLANE_AXES, Plane, Space, SpaceDescriptor, SpaceResolver
from ..transforms import CoordinateTransform
from ..volume import VolumeModel

LOGGER = logging.getLogger(__name__)

RawSample = Union[float, Tuple[float, float, float], None]


class SliceRasterizer:
    """Fill RGBA buffers with one slice of a :class:`VolumeModel`.

    The whole raster is computed at once with numpy, but every pixel follows
    the same path: screen position -> 3-tuple in the plane's axis order (row 0
    is the top) -> volume sample -> display colour.  Pixels without a sample
    get the sentinel colour of the active space.
    """

    def __init__(
        self,
        volume: VolumeModel,
        config: ViewerConfig = DEFAULT_CONFIG,
        resolver: Optional[SpaceResolver] = None,
        normalizer: Optional[IntensityNormalizer] = None,
    ) -> None:
        self.volume = volume
        self.config = config
        self.resolver = resolver or SpaceResolver(volume, config)
        self.transform = CoordinateTransform(volume)
        self.normalizer = normalizer or IntensityNormalizer.from_volume(
            volume, config.normalization_sample_count
        )
        self._sentinels = {
            Space.VOXEL: np.array(config.voxel_sentinel_color, dtype=np.uint8),
            Space.WORLD: np.array(config.world_sentinel_color, dtype=np.uint8),
            Space.ABSOLUTE: np.array(config.absolute_sentinel_color, dtype=np.uint8),
        }

    # -- geometry --------------------------------------------------------
    def _plane_tuple(self, plane: Plane, slice_index: int, x, y, height: int):
        w_axis, h_axis, d_axis = PLANE_AXES[plane]
        x = np.asarray(x)
        t = [None, None, None]
        t[w_axis] = x
        t[h_axis] = height - 1 - np.asarray(y)
        t[d_axis] = np.full(x.shape, slice_index, dtype=np.int64)
        return t

    def _lookup(self, ijk, valid) -> np.ndarray:
        vol = self.volume
        idx = np.where(valid, vol.flat_index(ijk[0], ijk[1], ijk[2]), 0)
        if vol.is_vector:
            return np.stack([vol.channel(c)[idx] for c in range(3)]).astype(float)
        return vol.primary_channel[idx].astype(float)

    def _sample_grid(self, space: Space, t) -> Tuple[np.ndarray, np.ndarray]:
        """Raw values (``(3, ...)`` for vector volumes) and a validity mask."""
        vol = self.volume
        if space is Space.VOXEL:
            ijk = t
            valid = vol.contains(*ijk)
            return self._lookup(ijk, valid), valid
        if space is Space.WORLD:
            ijk = self.transform.world_to_voxel(t)
            valid = vol.contains(*ijk)
            return self._lookup(ijk, valid), valid

        edge, pitch = self.resolver.absolute_edge, self.resolver.absolute_pitch
        a = [(np.asarray(c, dtype=float) - edge / 2.0) * pitch for c in t]
        coords = self.transform.absolute_to_voxel_coord(a)
        ijk, valid = self.transform.floor_in_bounds(coords)
        if vol.is_vector:
            return self._lookup(ijk, valid), valid
        values = trilinear(vol, coords[0], coords[1], coords[2])
        return np.where(valid, values, 0.0), valid

    # -- public API ------------------------------------------------------
    def render(
        self,
        space: Space,
        plane: Plane,
        slice_index: int,
        desc: Optional[SpaceDescriptor] = None,
    ) -> np.ndarray:
        """Return the ``(H, W, 4)`` uint8 RGBA raster of one slice.

        The flat buffer ``render(...).ravel()`` holds pixel ``(x, y)`` at
        ``(y * W + x) * 4``.

        A *desc* already resolved for ``(space, plane)`` may be passed in.
        """
        if desc is None:
            desc = self.resolver.resolve(space, plane)
        width, height = desc.W, desc.H
        ys, xs = np.mgrid[0:height, 0:width]
        t = self._plane_tuple(plane, slice_index, xs, ys, height)
        raw, valid = self._sample_grid(space, t)

        rgba = np.empty((height, width, 4), dtype=np.uint8)
        if self.volume.is_vector:
            rgba[..., :3] = np.moveaxis(self.normalizer.to_display(raw), 0, -1)
        else:
            rgba[..., :3] = self.normalizer.to_display(raw)[..., np.newaxis]
        rgba[..., 3] = 255
        rgba[~valid] = self._sentinels[space]

        if space is Space.ABSOLUTE:
            self._blend_crosshair(rgba)

        LOGGER.debug(
            "Rendered %s/%s slice %d (%dx%d, %d empty pixels)",
            space.value,
            plane.value,
            slice_index,
            width,
            height,
            int((~valid).sum()),
        )
        return rgba

    def _blend_crosshair(self, rgba: np.ndarray) -> None:
        height, width = rgba.shape[:2]
        opacity = self.config.crosshair_opacity
        accent = np.array(self.config.crosshair_color, dtype=float)
        mask = np.zeros((height, width), dtype=bool)
        mask[height // 2, :] = True
        mask[:, width // 2] = True
        blended = rgba[mask].astype(float) * (1.0 - opacity) + accent * opacity
        rgba[mask] = np.rint(np.clip(blended, 0, 255)).astype(np.uint8)

    def sample(self, space: Space, plane: Plane, slice_index: int, x: int, y: int) -> RawSample:
        """Raw volume value behind screen pixel ``(x, y)``, ``None`` if empty."""
        desc = self.resolver.resolve(space, plane)
        t = self._plane_tuple(plane, slice_index, x, y, desc.H)
        raw, valid = self._sample_grid(space, t)
        if not bool(valid):
            return None
        if self.volume.is_vector:
            return tuple(float(v) for v in raw)
        return float(raw)


__all__ = ["RawSample", "SliceRasterizer"]
