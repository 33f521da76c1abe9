"""Unit tests for LSM, ImageJ and OME-XML metadata parsing and detection."""

from __future__ import annotations

import pytest

from tiffnii.core.exceptions import MalformedMetadata
from tiffnii.metadata.imagej import is_imagej_description, parse_imagej_description
from tiffnii.metadata.lsm import LSM_INFO_TAG, is_lsm_info, parse_lsm_info
from tiffnii.metadata.ome import NIFTI_UNITS_MICRON, NIFTI_UNITS_MM, is_ome_description, parse_ome_xml
from tiffnii.metadata.sources import (
    ImageJSource,
    LsmSource,
    NoSource,
    OmeSource,
    TiffDirectory,
    detect_metadata_source,
)


OME_XML = """<?xml version="1.0" encoding="UTF-8"?>
<OME xmlns="http://www.openmicroscopy.org/Schemas/OME/2016-06">
  <Image ID="Image:0">
    <Pixels ID="Pixels:0" DimensionOrder="XYZTC" Type="uint8"
            SizeX="4" SizeY="3" SizeZ="3" SizeT="2" SizeC="1"
            PhysicalSizeX="0.25" PhysicalSizeXUnit="mm"
            PhysicalSizeY="0.5" PhysicalSizeZ="2.0" TimeIncrement="1.5">
      <Plane TheZ="2" TheT="1" TheC="0"/>
      <Plane TheZ="0" TheT="0" TheC="0"/>
    </Pixels>
  </Image>
</OME>
"""


def test_parse_lsm_info_fields(make_lsm_info) -> None:
    raw = make_lsm_info(
        dimension_x=512,
        dimension_y=256,
        dimension_z=7,
        dimension_channels=2,
        dimension_time=3,
        voxel_size_x=2e-7,
        voxel_size_y=3e-7,
        voxel_size_z=1e-6,
        scan_type=4,
        time_interval=0.5,
        offset_unmix_parameters=99,
    )
    assert len(raw) == 224
    assert is_lsm_info(raw)

    info = parse_lsm_info(raw)
    assert (info.dimension_x, info.dimension_y, info.dimension_z) == (512, 256, 7)
    assert info.dimension_channels == 2
    assert info.dimension_time == 3
    assert info.voxel_size_x == pytest.approx(2e-7)
    assert info.voxel_size_z == pytest.approx(1e-6)
    assert info.scan_type == 4
    assert info.time_interval == pytest.approx(0.5)
    # last field of the record proves every preceding field had the right width
    assert info.offset_unmix_parameters == 99
    assert info.to_dict()['dimension_y'] == 256


def test_lsm_rejects_wrong_magic_and_short_records(make_lsm_info) -> None:
    raw = make_lsm_info(dimension_x=8)
    assert not is_lsm_info(b'XX' + raw[2:])
    assert not is_lsm_info(raw[:100])
    assert not is_lsm_info(None)
    with pytest.raises(MalformedMetadata):
        parse_lsm_info(raw[:100])


def test_parse_imagej_hyperstack_description() -> None:
    text = (
        "ImageJ=1.53t\nimages=30\nchannels=2\nslices=5\nframes=3\n"
        "hyperstack=true\nmode=composite\nunit=micron\nspacing=0.75\nfinterval=2.0\nloop=false\n"
    )
    assert is_imagej_description(text)
    desc = parse_imagej_description(text)
    assert (desc.slices, desc.frames, desc.channels) == (5, 3, 2)
    assert desc.spacing == pytest.approx(0.75)
    assert desc.unit == 'micron'
    assert desc.is_micrometer
    assert desc.frame_interval == pytest.approx(2.0)
    assert desc.axis_order == ('c', 'z', 't')


def test_imagej_micrometer_spellings() -> None:
    for unit in ('µm', 'μm', 'um', r'\u00B5m'):
        assert parse_imagej_description(f"ImageJ=1.53\nunit={unit}\n").is_micrometer
    assert not parse_imagej_description("ImageJ=1.53\nunit=inch\n").is_micrometer
    # 'xunit=' must not be mistaken for 'unit='
    assert parse_imagej_description("ImageJ=1.53\nxunit=um\n").unit == ''


def test_imagej_defaults_when_keys_missing() -> None:
    desc = parse_imagej_description("ImageJ=1.53\nimages=4\n")
    assert (desc.slices, desc.frames, desc.channels) == (1, 1, 1)
    assert desc.spacing == 1.0
    assert desc.frame_interval is None
    assert desc.axis_order == ()


def test_parse_ome_pixels_and_planes() -> None:
    assert is_ome_description(OME_XML)
    ome = parse_ome_xml(OME_XML)
    assert (ome.size_z, ome.size_t, ome.size_c) == (3, 2, 1)
    assert ome.physical_size_x == pytest.approx(0.25)
    assert ome.physical_size_y == pytest.approx(0.5)
    assert ome.physical_size_z == pytest.approx(2.0)
    assert ome.length_unit == NIFTI_UNITS_MM
    assert ome.time_increment == pytest.approx(1.5)
    assert [(p.the_z, p.the_t, p.the_c) for p in ome.planes] == [(2, 1, 0), (0, 0, 0)]


def test_ome_micrometer_unit_and_defaults() -> None:
    xml = (
        '<OME><Image><Pixels SizeZ="0" SizeC="2" PhysicalSizeXUnit="µm"/></Image></OME>'
    )
    ome = parse_ome_xml(xml)
    assert (ome.size_z, ome.size_t, ome.size_c) == (1, 1, 2)
    assert ome.physical_size_x == 1.0
    assert ome.length_unit == NIFTI_UNITS_MICRON
    assert ome.planes == ()


def test_ome_malformed_xml_raises() -> None:
    with pytest.raises(MalformedMetadata):
        parse_ome_xml('<OME><Image><Pixels SizeZ="3"></Image></OME>')
    with pytest.raises(MalformedMetadata):
        parse_ome_xml('<OME><Image/></OME>')


def test_detect_metadata_source_precedence(make_lsm_info) -> None:
    lsm = make_lsm_info(dimension_x=4)
    imagej = "ImageJ=1.53\nslices=2\n"

    assert isinstance(
        detect_metadata_source(TiffDirectory({LSM_INFO_TAG: lsm, 'ImageDescription': imagej})),
        LsmSource,
    )
    assert isinstance(detect_metadata_source(TiffDirectory({'ImageDescription': imagej})), ImageJSource)
    assert isinstance(detect_metadata_source(TiffDirectory({'ImageDescription': OME_XML})), OmeSource)
    assert isinstance(detect_metadata_source(TiffDirectory({'ImageDescription': 'scanner 3'})), NoSource)
    assert isinstance(detect_metadata_source(TiffDirectory()), NoSource)


def test_detect_metadata_source_degrades_on_broken_ome() -> None:
    directory = TiffDirectory({'ImageDescription': '<OME><Pixels SizeZ="3"></OME>'})
    assert isinstance(detect_metadata_source(directory), NoSource)


def test_tiff_directory_accessors() -> None:
    directory = TiffDirectory({
        'ImageDescription': b'ImageJ=1.53',
        'SampleFormat': (3, 3, 3),
        'ResolutionUnit': 2,
        'XResolution': (300, 1),
        'YResolution': (150, 2),
    })
    assert directory.try_get_image_description() == 'ImageJ=1.53'
    assert directory.try_get_sample_format() == 3
    assert directory.try_get_resolution_unit() == 2
    assert directory.try_get_x_resolution() == pytest.approx(300.0)
    assert directory.try_get_y_resolution() == pytest.approx(75.0)
    assert directory.try_get_lsm_info() is None

    empty = TiffDirectory()
    assert empty.try_get_image_description() is None
    assert empty.try_get_sample_format() is None
    assert empty.try_get_x_resolution() is None
