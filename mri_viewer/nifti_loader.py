"""Build :class:`VolumeModel` instances from NIfTI images.

This is the volume-data provider used by hosts that read from disk.  The
rendering core itself only depends on :mod:`mri_viewer.volume`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import nibabel as nib
import numpy as np
from numpy.lib import recfunctions as rfn

from .volume import MalformedVolumeError, ScalarData, Vector3Data, VolumeModel

LOGGER = logging.getLogger(__name__)


def _image_array(img) -> np.ndarray:
    """Voxel data as a float ndarray, unpacking structured RGB dtypes.

    Colour maps (e.g. colour FA) can be stored with a structured ``void``
    dtype that :meth:`get_fdata` refuses to promote; their fields become a
    trailing vector axis instead.
    """
    if img.get_data_dtype().fields:
        return rfn.structured_to_unstructured(np.asanyarray(img.dataobj)).astype(np.float32)
    return np.asarray(img.get_fdata(dtype=np.float32))


def volume_from_image(img) -> VolumeModel:
    """Convert a loaded nibabel image into a :class:`VolumeModel`."""
    data = _image_array(img)
    if data.ndim == 5 and data.shape[3] == 1:
        data = data[:, :, :, 0, :]
    if data.ndim == 3:
        voxels = ScalarData(data.ravel(order="F"))
    elif data.ndim == 4 and data.shape[3] == 3:
        voxels = Vector3Data(data.ravel(order="F"))
    elif data.ndim == 4:
        LOGGER.info("Image has %d volumes; displaying the first", data.shape[3])
        voxels = ScalarData(data[..., 0].ravel(order="F"))
    else:
        raise MalformedVolumeError(f"Unsupported image shape {data.shape}")

    zooms = img.header.get_zooms()[:3]
    pixdim = [float(z) if z and z > 0 else 1.0 for z in zooms]
    return VolumeModel(data.shape[:3], pixdim, voxels, affine=np.asarray(img.affine))


def load_volume(path: Union[str, Path]) -> VolumeModel:
    """Load the NIfTI file at *path*."""
    img = nib.load(str(path))
    LOGGER.debug("Loaded %s with shape %s", path, img.shape)
    return volume_from_image(img)


__all__ = ["load_volume", "volume_from_image"]
