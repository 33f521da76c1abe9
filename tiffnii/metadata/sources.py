"""
Typed access to a TIFF file directory and detection of the microscopy
metadata flavour it carries.

A file directory is handed over by the TIFF reader as a plain mapping of tag
name (or tag code for private tags) to value. ``TiffDirectory`` wraps that
mapping so every lookup returns an explicit ``Optional`` instead of relying on
missing keys coalescing to defaults.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union
import logging

from .imagej import ImageJDescription, is_imagej_description, parse_imagej_description
from .lsm import LSM_INFO_TAG, LsmInfo, is_lsm_info, parse_lsm_info
from .ome import OmeMetadata, is_ome_description, parse_ome_xml
from ..core.exceptions import MalformedMetadata


logger = logging.getLogger(__name__)

# TIFF ResolutionUnit values
RESUNIT_NONE = 1
RESUNIT_INCH = 2
RESUNIT_CENTIMETER = 3


def _first(value: Any) -> Any:
    if isinstance(value, (tuple, list)):
        return value[0] if value else None
    return value


def _rational(value: Any) -> Optional[float]:
    """Convert a TIFF RATIONAL (numerator, denominator) or number to float."""
    if value is None:
        return None
    if isinstance(value, (tuple, list)):
        if len(value) != 2 or not value[1]:
            return None
        return value[0] / value[1]
    return float(value)


class TiffDirectory:
    """Capability-checked accessor over one TIFF file directory."""

    def __init__(self, tags: Optional[Mapping[Union[str, int], Any]] = None):
        self._tags = dict(tags or {})

    def __contains__(self, key) -> bool:
        return key in self._tags

    def try_get_image_description(self) -> Optional[str]:
        value = self._tags.get('ImageDescription')
        if value is None:
            return None
        if isinstance(value, (bytes, bytearray)):
            value = value.decode('latin-1')
        return str(value)

    def try_get_sample_format(self) -> Optional[int]:
        value = _first(self._tags.get('SampleFormat'))
        return int(value) if value is not None else None

    def try_get_resolution_unit(self) -> Optional[int]:
        value = self._tags.get('ResolutionUnit')
        return int(value) if value is not None else None

    def try_get_x_resolution(self) -> Optional[float]:
        return _rational(self._tags.get('XResolution'))

    def try_get_y_resolution(self) -> Optional[float]:
        return _rational(self._tags.get('YResolution'))

    def try_get_lsm_info(self) -> Optional[bytes]:
        value = self._tags.get(LSM_INFO_TAG)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value)
        return None


@dataclass(frozen=True)
class LsmSource:
    info: LsmInfo
    kind: str = 'lsm'


@dataclass(frozen=True)
class ImageJSource:
    description: ImageJDescription
    kind: str = 'imagej'


@dataclass(frozen=True)
class OmeSource:
    metadata: OmeMetadata
    kind: str = 'ome'


@dataclass(frozen=True)
class NoSource:
    kind: str = 'none'


MetadataSource = Union[LsmSource, ImageJSource, OmeSource, NoSource]


def detect_metadata_source(directory: TiffDirectory) -> MetadataSource:
    """Pick the metadata flavour of a file directory.

    LSM is checked first, then an ImageJ description, then OME-XML. A payload
    that is recognised but cannot be decoded is logged and the next flavour is
    tried, so this never raises.
    """
    raw_lsm = directory.try_get_lsm_info()
    if is_lsm_info(raw_lsm):
        try:
            return LsmSource(parse_lsm_info(raw_lsm))
        except MalformedMetadata as e:
            logger.warning(f"Ignoring LSM info tag: {e}")

    description = directory.try_get_image_description()

    if is_imagej_description(description):
        return ImageJSource(parse_imagej_description(description))

    if is_ome_description(description):
        try:
            return OmeSource(parse_ome_xml(description))
        except MalformedMetadata as e:
            logger.warning(f"Ignoring OME-XML description: {e}")

    return NoSource()
