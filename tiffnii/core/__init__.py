"""Core infrastructure modules."""

from .exceptions import (
    TiffNiiError,
    UnsupportedInputType,
    UnsupportedPixelFormat,
    DimensionMismatch,
    SliceIndexOutOfRange,
    MalformedMetadata,
)
from .config import ConversionConfig
from .utils import (
    validate_file_path,
    ensure_directory,
    nifti_output_path,
    group_output_path,
    find_input_files,
    format_bytes,
)
from .format_converter import (
    TiffToNiftiConverter,
    ConversionResult,
    convert_stack,
    convert_first_stack,
)

__all__ = [
    # Exceptions
    "TiffNiiError",
    "UnsupportedInputType",
    "UnsupportedPixelFormat",
    "DimensionMismatch",
    "SliceIndexOutOfRange",
    "MalformedMetadata",

    # Configuration
    "ConversionConfig",

    # Utility functions
    "validate_file_path",
    "ensure_directory",
    "nifti_output_path",
    "group_output_path",
    "find_input_files",
    "format_bytes",

    # Format converter
    "TiffToNiftiConverter",
    "ConversionResult",
    "convert_stack",
    "convert_first_stack",
]
