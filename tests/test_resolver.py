"""Unit tests for dimension and spacing resolution."""

from __future__ import annotations

import pytest

from tiffnii.metadata.imagej import parse_imagej_description
from tiffnii.metadata.lsm import parse_lsm_info
from tiffnii.metadata.ome import parse_ome_xml
from tiffnii.metadata.resolver import DimensionSpec, resolve_dimensions
from tiffnii.metadata.sources import ImageJSource, LsmSource, NoSource, OmeSource, TiffDirectory


def _lsm_source(make_lsm_info, **values) -> LsmSource:
    return LsmSource(parse_lsm_info(make_lsm_info(**values)))


def test_lsm_thumbnail_spacing_is_scaled(make_lsm_info) -> None:
    source = _lsm_source(
        make_lsm_info,
        dimension_x=512,
        dimension_y=512,
        dimension_z=7,
        voxel_size_x=2e-7,
        voxel_size_y=2e-7,
        voxel_size_z=1e-6,
        time_interval=0.0,
    )

    full = resolve_dimensions(source, 512, 512)
    thumb = resolve_dimensions(source, 128, 128)

    assert full.spacing_x == pytest.approx(0.2)
    assert thumb.spacing_x == pytest.approx((512 / 128) * 2e-7 * 1e6)
    assert thumb.spacing_x == pytest.approx(0.8)
    assert thumb.spacing_y == pytest.approx(0.8)
    # Z spacing is never thumbnail-scaled
    assert thumb.spacing_z == pytest.approx(1.0)
    assert (thumb.size_z, thumb.size_t, thumb.size_c) == (7, 1, 1)
    assert thumb.xyzt_units == 3 + 8
    assert thumb.source == 'lsm'


def test_lsm_sizes_and_time_interval(make_lsm_info) -> None:
    source = _lsm_source(
        make_lsm_info,
        dimension_x=64,
        dimension_y=32,
        dimension_z=4,
        dimension_channels=2,
        dimension_time=3,
        voxel_size_x=1e-6,
        voxel_size_y=1e-6,
        voxel_size_z=5e-6,
        time_interval=2.5,
    )
    dims = resolve_dimensions(source, 64, 32)
    assert (dims.size_z, dims.size_t, dims.size_c) == (4, 3, 2)
    assert dims.n_planes == 24
    assert dims.time_interval == pytest.approx(2.5)
    assert dims.spacing == pytest.approx((1.0, 1.0, 5.0))


def test_imagej_spacing_from_description_only() -> None:
    source = ImageJSource(parse_imagej_description("ImageJ=1.53\nslices=4\nunit=um\nspacing=2.5\n"))
    dims = resolve_dimensions(source, 16, 16, TiffDirectory())
    assert dims.spacing == pytest.approx((2.5, 2.5, 2.5))
    assert dims.size_z == 4
    assert dims.length_unit == 3
    assert dims.time_unit == 0
    assert dims.xyzt_units == 3
    assert dims.imagej_axis_order == ('z',)


def test_imagej_in_plane_spacing_from_resolution_tags() -> None:
    source = ImageJSource(parse_imagej_description("ImageJ=1.53\nslices=2\nunit=um\nspacing=3.0\n"))

    uncalibrated = TiffDirectory({'ResolutionUnit': 1, 'XResolution': (4, 1), 'YResolution': (2, 1)})
    dims = resolve_dimensions(source, 16, 16, uncalibrated)
    assert dims.spacing_x == pytest.approx(0.25)
    assert dims.spacing_y == pytest.approx(0.5)
    assert dims.spacing_z == pytest.approx(3.0)

    inches = TiffDirectory({'ResolutionUnit': 2, 'XResolution': (254, 1), 'YResolution': (254, 1)})
    dims = resolve_dimensions(source, 16, 16, inches)
    assert dims.spacing_x == pytest.approx(0.01)


def test_imagej_frame_interval_sets_time_unit() -> None:
    source = ImageJSource(parse_imagej_description("ImageJ=1.53\nframes=5\nunit=um\nfinterval=0.5\n"))
    dims = resolve_dimensions(source, 8, 8)
    assert dims.size_t == 5
    assert dims.time_interval == pytest.approx(0.5)
    assert dims.xyzt_units == 3 + 8


def test_ome_resolution() -> None:
    xml = (
        '<OME xmlns="http://www.openmicroscopy.org/Schemas/OME/2016-06"><Image><Pixels '
        'SizeZ="3" SizeT="2" SizeC="1" PhysicalSizeX="0.1" PhysicalSizeY="0.2" '
        'PhysicalSizeZ="0.3" PhysicalSizeXUnit="mm">'
        '<Plane TheZ="0" TheT="1" TheC="0"/></Pixels></Image></OME>'
    )
    dims = resolve_dimensions(OmeSource(parse_ome_xml(xml)), 8, 8)
    assert (dims.size_z, dims.size_t, dims.size_c) == (3, 2, 1)
    assert dims.spacing == pytest.approx((0.1, 0.2, 0.3))
    assert dims.length_unit == 2
    assert dims.time_unit == 0
    assert len(dims.planes) == 1
    assert dims.source == 'ome'


def test_no_metadata_defaults() -> None:
    dims = resolve_dimensions(NoSource(), 8, 8)
    assert dims == DimensionSpec()
    assert dims.n_planes == 1
    assert dims.xyzt_units == 0
    assert dims.spacing == (1.0, 1.0, 1.0)


def test_with_sizes_returns_new_value() -> None:
    dims = DimensionSpec(size_z=5, size_c=2)
    collapsed = dims.with_sizes(size_c=1)
    assert collapsed.size_c == 1
    assert collapsed.size_z == 5
    assert dims.size_c == 2
