"""Volume sampling and display-intensity scaling."""

from __future__ import annotations

import logging

import numpy as np

from .volume import VolumeModel

LOGGER = logging.getLogger(__name__)

# Rank of the display ceiling inside the sorted sample set (99.99th percentile
# of a 10000-element sample).
DEFAULT_SAMPLE_COUNT = 10000


def _gather(volume: VolumeModel, buffer: np.ndarray, i, j, k):
    """Values at integer corners, reading zero outside the grid."""
    inside = volume.contains(i, j, k)
    idx = np.where(inside, volume.flat_index(i, j, k), 0)
    return np.where(inside, buffer[idx], 0.0)


def trilinear(volume: VolumeModel, x, y, z, channel: int = 0):
    """Trilinearly interpolate *channel* of *volume* at fractional ``(x, y, z)``.

    Corners outside the voxel grid contribute zero.  Scalars in give a float
    back, arrays in give an array of the broadcast shape.
    """
    buffer = volume.channel(channel)
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    z = np.asarray(z, dtype=float)
    i = np.floor(x).astype(np.int64)
    j = np.floor(y).astype(np.int64)
    k = np.floor(z).astype(np.int64)
    fx = x - i
    fy = y - j
    fz = z - k

    v000 = _gather(volume, buffer, i, j, k)
    v100 = _gather(volume, buffer, i + 1, j, k)
    v010 = _gather(volume, buffer, i, j + 1, k)
    v110 = _gather(volume, buffer, i + 1, j + 1, k)
    v001 = _gather(volume, buffer, i, j, k + 1)
    v101 = _gather(volume, buffer, i + 1, j, k + 1)
    v011 = _gather(volume, buffer, i, j + 1, k + 1)
    v111 = _gather(volume, buffer, i + 1, j + 1, k + 1)

    gx, gy, gz = 1.0 - fx, 1.0 - fy, 1.0 - fz
    value = (
        v000 * gx * gy * gz
        + v100 * fx * gy * gz
        + v010 * gx * fy * gz
        + v110 * fx * fy * gz
        + v001 * gx * gy * fz
        + v101 * fx * gy * fz
        + v011 * gx * fy * fz
        + v111 * fx * fy * fz
    )
    if np.ndim(value) == 0:
        return float(value)
    return value


def compute_display_ceiling(values: np.ndarray, sample_count: int = DEFAULT_SAMPLE_COUNT) -> float:
    """Return the value at rank ``sample_count - 1`` of a strided, sorted sample.

    The sample takes every ``max(1, len // sample_count)``-th value and drops
    non-finite entries; when it ends up shorter than *sample_count* its last
    element is used instead.
    """
    values = np.asarray(values).reshape(-1)
    if values.size == 0:
        raise ValueError("Cannot derive a display ceiling from an empty buffer")
    stride = max(1, values.size // sample_count)
    samples = values[::stride]
    samples = np.sort(samples[np.isfinite(samples)])
    if samples.size == 0:
        raise ValueError("Cannot derive a display ceiling: no finite values in the sample")
    rank = min(sample_count - 1, samples.size - 1)
    return float(samples[rank])


class IntensityNormalizer:
    """Scale raw voxel values to 0-255 using a fixed display ceiling."""

    def __init__(self, ceiling: float) -> None:
        self.ceiling = float(ceiling)
        if not self.ceiling > 0:
            LOGGER.warning("Display ceiling %r is not positive; slices will render black", ceiling)
            self._scale = 0.0
        else:
            self._scale = 255.0 / self.ceiling

    @classmethod
    def from_volume(cls, volume: VolumeModel, sample_count: int = DEFAULT_SAMPLE_COUNT) -> "IntensityNormalizer":
        ceiling = compute_display_ceiling(volume.primary_channel, sample_count)
        LOGGER.debug("Display ceiling %.6g from %d voxels", ceiling, volume.n_voxels)
        return cls(ceiling)

    def to_display(self, raw):
        """Return ``clamp(255 * raw / ceiling, 0, 255)`` as ``uint8``."""
        scaled = np.asarray(raw, dtype=float) * self._scale
        scaled = np.nan_to_num(scaled, nan=0.0, posinf=255.0, neginf=0.0)
        return np.rint(np.clip(scaled, 0.0, 255.0)).astype(np.uint8)


__all__ = ["DEFAULT_SAMPLE_COUNT", "IntensityNormalizer", "compute_display_ceiling", "trilinear"]
