"""NIfTI-1 affine construction and header encoding."""

from .affine import build_affine
from .header import NiftiHeader, build_header, decode_header, encode_header, encode_nifti

__all__ = [
    "build_affine",
    "NiftiHeader",
    "build_header",
    "decode_header",
    "encode_header",
    "encode_nifti",
]
