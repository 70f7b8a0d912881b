import itertools

import numpy as np

from mri_viewer.transforms import CoordinateTransform
from mri_viewer.volume import ScalarData, VolumeModel


def _volume(affine=None, dim=(4, 5, 6)) -> VolumeModel:
    n = dim[0] * dim[1] * dim[2]
    return VolumeModel(dim, (1.0, 1.0, 1.0), ScalarData(np.arange(n, dtype=float)), affine=affine)


_PERMUTED = np.array(
    [
        [0.0, -1.0, 0.0, 0.0],
        [0.0, 0.0, 1.0, 0.0],
        [-1.0, 0.0, 0.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ]
)


def test_world_to_voxel_applies_signed_permutation():
    tr = CoordinateTransform(_volume(np.diag([-1.0, 1.0, 1.0, 1.0])))
    assert tr.world_to_voxel((0, 2, 3)) == (3, 2, 3)
    assert tr.world_to_voxel_index((0, 2, 3)) == 3 * 20 + 2 * 4 + 3


def test_world_voxel_round_trip():
    vol = _volume(_PERMUTED)
    tr = CoordinateTransform(vol)
    wdim = vol.axis_mapping.world_dim(vol.dim)
    for s in itertools.product(*(range(d) for d in wdim)):
        v = tr.world_to_voxel(s)
        assert vol.contains(*v)
        assert tr.voxel_to_world(v) == s
    for v in itertools.product(*(range(d) for d in vol.dim)):
        assert tr.world_to_voxel(tr.voxel_to_world(v)) == v


def test_checked_index_distinguishes_zero_from_missing():
    tr = CoordinateTransform(_volume())
    assert tr.world_to_voxel_index_checked((0, 0, 0)) == 0
    assert tr.world_to_voxel_index_checked((4, 0, 0)) is None
    assert tr.world_to_voxel_index_checked((-1, 0, 0)) is None


def test_world_to_voxel_is_vectorised():
    tr = CoordinateTransform(_volume(np.diag([-1.0, 1.0, 1.0, 1.0])))
    xs = np.array([0, 1, 2])
    v = tr.world_to_voxel((xs, np.zeros(3, dtype=int), np.ones(3, dtype=int)))
    assert v[0].tolist() == [3, 2, 1]


def test_absolute_origin_is_volume_centre():
    vol = _volume(np.diag([2.0, 2.0, 2.0, 1.0]))
    tr = CoordinateTransform(vol)
    np.testing.assert_allclose(tr.absolute_to_voxel_coord((0.0, 0.0, 0.0)), [1.5, 2.0, 2.5])
    np.testing.assert_allclose(tr.absolute_to_voxel_coord((2.0, -2.0, 1.0)), [2.5, 1.0, 3.0])


def test_absolute_round_trip():
    vol = _volume(_PERMUTED)
    tr = CoordinateTransform(vol)
    v = np.array([1.25, 3.0, 0.5])
    np.testing.assert_allclose(tr.absolute_to_voxel_coord(tr.voxel_to_absolute(v)), v)


def test_absolute_index_invalid_outside_grid():
    vol = _volume()
    tr = CoordinateTransform(vol)
    # centre voxel is (1.5, 2, 2.5); +0.2 mm stays in voxel (1, 2, 2)
    assert tr.absolute_to_voxel_index((0.2, 0.0, 0.0)) == vol.flat_index(1, 2, 2)
    assert tr.absolute_to_voxel_index((-1.6, 0.0, 0.0)) is None
    assert tr.absolute_to_voxel_index((0.0, 0.0, 3.5)) is None
