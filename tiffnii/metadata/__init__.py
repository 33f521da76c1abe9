"""Microscopy metadata parsing: LSM struct, ImageJ description, OME-XML."""

from .binary_reader import BinaryStructReader
from .lsm import LSM_INFO_TAG, LsmInfo, is_lsm_info, parse_lsm_info
from .imagej import ImageJDescription, is_imagej_description, parse_imagej_description
from .ome import OmeMetadata, OmePlane, is_ome_description, parse_ome_xml
from .sources import (
    ImageJSource,
    LsmSource,
    MetadataSource,
    NoSource,
    OmeSource,
    TiffDirectory,
    detect_metadata_source,
)
from .resolver import DimensionSpec, resolve_dimensions

__all__ = [
    "BinaryStructReader",
    "LSM_INFO_TAG",
    "LsmInfo",
    "is_lsm_info",
    "parse_lsm_info",
    "ImageJDescription",
    "is_imagej_description",
    "parse_imagej_description",
    "OmeMetadata",
    "OmePlane",
    "is_ome_description",
    "parse_ome_xml",
    "ImageJSource",
    "LsmSource",
    "MetadataSource",
    "NoSource",
    "OmeSource",
    "TiffDirectory",
    "detect_metadata_source",
    "DimensionSpec",
    "resolve_dimensions",
]
