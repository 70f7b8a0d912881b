import numpy as np
import pytest

from mri_viewer.config import ViewerConfig
from mri_viewer.spaces import Plane, Space, SpaceResolver, parse_plane, parse_space
from mri_viewer.volume import ScalarData, VolumeModel

_PERMUTED = np.array(
    [
        [0.0, 2.0, 0.0, 0.0],
        [1.0, 0.0, 0.0, 0.0],
        [0.0, 0.0, 3.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ]
)


def _volume(dim=(4, 5, 6), pixdim=(1.0, 2.0, 3.0), affine=None) -> VolumeModel:
    n = dim[0] * dim[1] * dim[2]
    return VolumeModel(dim, pixdim, ScalarData(np.zeros(n)), affine=affine)


@pytest.mark.parametrize(
    "plane, expected",
    [
        (Plane.SAGITTAL, (5, 6, 4, 2.0, 3.0)),
        (Plane.CORONAL, (4, 6, 5, 1.0, 3.0)),
        (Plane.AXIAL, (4, 5, 6, 1.0, 2.0)),
    ],
)
def test_voxel_space_plane_axes(plane, expected):
    desc = SpaceResolver(_volume()).resolve(Space.VOXEL, plane)
    assert (desc.W, desc.H, desc.D, desc.Wdim, desc.Hdim) == expected


def test_world_space_uses_permuted_extents():
    resolver = SpaceResolver(_volume(affine=_PERMUTED))
    desc = resolver.resolve(Space.WORLD, Plane.SAGITTAL)
    # world extents are (5, 4, 6) with spacing (2, 1, 3)
    assert (desc.W, desc.H, desc.D, desc.Wdim, desc.Hdim) == (4, 6, 5, 1.0, 3.0)


def test_slice_dims_are_permutation_of_extents():
    resolver = SpaceResolver(_volume(affine=_PERMUTED))
    for space in (Space.VOXEL, Space.WORLD):
        for plane in Plane:
            desc = resolver.resolve(space, plane)
            assert sorted((desc.W, desc.H, desc.D)) == [4, 5, 6]


def test_absolute_cube_is_isotropic_and_shared():
    resolver = SpaceResolver(_volume(affine=_PERMUTED))
    # median spacing 2 mm; largest extent 6 * 3 / 2 = 9 voxels; 1.3 * 9 = 11.7
    assert resolver.absolute_edge == 12
    assert resolver.absolute_pitch == 2.0
    for plane in Plane:
        desc = resolver.resolve(Space.ABSOLUTE, plane)
        assert (desc.W, desc.H, desc.D) == (12, 12, 12)
        assert desc.Wdim == desc.Hdim == 2.0


def test_absolute_cube_scale_is_configurable():
    resolver = SpaceResolver(_volume(), ViewerConfig(absolute_cube_scale=1.5))
    assert resolver.absolute_edge == 14  # round(1.5 * 9) = 13.5 -> 14 (half-even)


def test_display_height_corrects_aspect():
    desc = SpaceResolver(_volume()).resolve(Space.VOXEL, Plane.AXIAL)
    assert desc.display_height == pytest.approx(5 * 2.0 / 1.0)


def test_mid_and_max_slice():
    resolver = SpaceResolver(_volume())
    assert resolver.max_slice(Space.VOXEL, Plane.AXIAL) == 5
    assert resolver.mid_slice(Space.VOXEL, Plane.AXIAL) == 2
    assert resolver.mid_slice(Space.VOXEL, Plane.SAGITTAL) == 1


def test_parse_helpers_accept_aliases():
    assert parse_plane("sag") is Plane.SAGITTAL
    assert parse_plane("Axial") is Plane.AXIAL
    assert parse_plane("oblique") is None
    assert parse_space("WORLD") is Space.WORLD
    assert parse_space("scanner") is None
