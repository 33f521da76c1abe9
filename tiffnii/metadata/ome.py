"""
OME-XML parsing for OME-TIFF ``ImageDescription`` text.

Only the first ``<Pixels>`` element is used: its SizeZ/T/C, physical sizes
and the TheZ/TheT/TheC coordinates of its ``<Plane>`` children. Element names
are matched without regard to the schema namespace, so 2013, 2015 and 2016
OME schemas are handled the same way.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import logging
import re
import xml.etree.ElementTree as ET

from ..core.exceptions import MalformedMetadata


logger = logging.getLogger(__name__)

_OME_ROOT = re.compile(r'<(?:\w+:)?OME[\s>]')

# NIfTI xyzt_units spatial codes
NIFTI_UNITS_MM = 2
NIFTI_UNITS_MICRON = 3

OME_LENGTH_UNITS = {
    'µm': NIFTI_UNITS_MICRON,
    'mm': NIFTI_UNITS_MM,
}


@dataclass(frozen=True)
class OmePlane:
    the_z: int = 0
    the_t: int = 0
    the_c: int = 0


@dataclass(frozen=True)
class OmeMetadata:
    size_z: int = 1
    size_t: int = 1
    size_c: int = 1
    physical_size_x: float = 1.0
    physical_size_y: float = 1.0
    physical_size_z: float = 1.0
    physical_size_unit: str = ''
    time_increment: Optional[float] = None
    planes: Tuple[OmePlane, ...] = ()

    @property
    def length_unit(self) -> int:
        """NIfTI spatial unit code, 0 when the unit is not recognised."""
        return OME_LENGTH_UNITS.get(self.physical_size_unit, 0)


def is_ome_description(text: Optional[str]) -> bool:
    return bool(text) and _OME_ROOT.search(text) is not None


def _local_name(tag: str) -> str:
    return tag.rsplit('}', 1)[-1]


def _positive_int(value: Optional[str], default: int = 1) -> int:
    try:
        parsed = int(float(value))
    except (TypeError, ValueError):
        return default
    return parsed or default


def _positive_float(value: Optional[str], default: float = 1.0) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    return parsed or default


def _index(value: Optional[str]) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def parse_ome_xml(text: str) -> OmeMetadata:
    """Parse sizes, physical sizes and plane coordinates from OME-XML.

    Args:
        text: OME-XML document, typically the first page's ImageDescription.

    Returns:
        OmeMetadata for the first ``<Pixels>`` element.

    Raises:
        MalformedMetadata: If the XML does not parse or has no ``<Pixels>``.
    """
    try:
        root = ET.fromstring(text.strip())
    except ET.ParseError as e:
        raise MalformedMetadata(f"OME-XML does not parse: {e}") from e

    pixels = next((el for el in root.iter() if _local_name(el.tag) == 'Pixels'), None)
    if pixels is None:
        raise MalformedMetadata("OME-XML has no <Pixels> element")

    planes = tuple(
        OmePlane(
            the_z=_index(el.get('TheZ')),
            the_t=_index(el.get('TheT')),
            the_c=_index(el.get('TheC')),
        )
        for el in pixels.iter()
        if _local_name(el.tag) == 'Plane'
    )

    time_increment = pixels.get('TimeIncrement')
    try:
        time_increment = float(time_increment) if time_increment is not None else None
    except ValueError:
        logger.warning(f"Ignoring unparsable OME TimeIncrement: {time_increment!r}")
        time_increment = None

    return OmeMetadata(
        size_z=_positive_int(pixels.get('SizeZ')),
        size_t=_positive_int(pixels.get('SizeT')),
        size_c=_positive_int(pixels.get('SizeC')),
        physical_size_x=_positive_float(pixels.get('PhysicalSizeX')),
        physical_size_y=_positive_float(pixels.get('PhysicalSizeY')),
        physical_size_z=_positive_float(pixels.get('PhysicalSizeZ')),
        physical_size_unit=pixels.get('PhysicalSizeXUnit') or '',
        time_increment=time_increment,
        planes=planes,
    )
