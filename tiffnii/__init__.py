"""
tiffnii: convert TIFF-family microscopy stacks to NIfTI-1.

Reads plain TIFF, Zeiss LSM, ImageJ hyperstacks and OME-TIFF, resolves the
true Z/T/C layout and voxel spacing from whichever metadata the file carries,
and writes single-file .nii volumes.
"""

__version__ = "0.1.0"

# Core utilities
from .core import (
    ConversionConfig,
    TiffToNiftiConverter,
    ConversionResult,
    convert_stack,
    convert_first_stack,
    TiffNiiError,
    UnsupportedInputType,
    UnsupportedPixelFormat,
    DimensionMismatch,
    SliceIndexOutOfRange,
    MalformedMetadata,
)

# Metadata
from .metadata import DimensionSpec, resolve_dimensions, detect_metadata_source

# Data processing
from .data_processing import (
    StackConfig,
    group_slices,
    SliceOrder,
    compute_slice_order,
    PixelType,
    select_pixel_type,
    assemble_voxels,
)

# NIfTI output
from .nifti import NiftiHeader, build_affine, build_header, decode_header, encode_header

# Export all public components
__all__ = [
    # Version
    "__version__",

    # Conversion
    "ConversionConfig",
    "TiffToNiftiConverter",
    "ConversionResult",
    "convert_stack",
    "convert_first_stack",

    # Errors
    "TiffNiiError",
    "UnsupportedInputType",
    "UnsupportedPixelFormat",
    "DimensionMismatch",
    "SliceIndexOutOfRange",
    "MalformedMetadata",

    # Metadata
    "DimensionSpec",
    "resolve_dimensions",
    "detect_metadata_source",

    # Data processing
    "StackConfig",
    "group_slices",
    "SliceOrder",
    "compute_slice_order",
    "PixelType",
    "select_pixel_type",
    "assemble_voxels",

    # NIfTI output
    "NiftiHeader",
    "build_affine",
    "build_header",
    "decode_header",
    "encode_header",
]
