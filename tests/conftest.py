"""Shared builders for synthetic TIFF, LSM, ImageJ and OME-TIFF inputs."""

from __future__ import annotations

import io
import struct
from typing import Callable, Optional, Sequence

import numpy as np
import pytest
import tifffile

from tiffnii.metadata.lsm import LSM_INFO_LAYOUT, LSM_INFO_SIZE, LSM_INFO_TAG, LSM_MAGIC


_STRUCT_CODES = {'u2': 'H', 'u4': 'I', 'f8': 'd'}


def lsm_info_bytes(**values) -> bytes:
    """Pack a CZ_LSMINFO record; unspecified fields are zero."""
    fmt = '<' + ''.join(_STRUCT_CODES[kind] for _, kind in LSM_INFO_LAYOUT)
    defaults = {
        'magic_number': struct.unpack('<I', LSM_MAGIC)[0],
        'structure_size': LSM_INFO_SIZE,
    }
    defaults.update(values)
    packed = [defaults.get(name, 0) for name, _ in LSM_INFO_LAYOUT]
    return struct.pack(fmt, *packed)


def tiff_bytes(*stacks: np.ndarray, description: Optional[str] = None,
               extratags: Sequence = (), **kwargs) -> bytes:
    """Write each array as consecutive pages; description and extratags go on page 0."""
    buffer = io.BytesIO()
    with tifffile.TiffWriter(buffer) as tw:
        for i, stack in enumerate(stacks):
            tw.write(
                stack,
                description=description if i == 0 else None,
                extratags=extratags if i == 0 else (),
                metadata=None,
                **kwargs,
            )
    return buffer.getvalue()


@pytest.fixture
def make_lsm_info() -> Callable[..., bytes]:
    return lsm_info_bytes


@pytest.fixture
def make_tiff() -> Callable[..., bytes]:
    return tiff_bytes


@pytest.fixture
def make_lsm() -> Callable[..., bytes]:
    def _make(full: np.ndarray, thumbnails: Optional[np.ndarray] = None, **info) -> bytes:
        raw = lsm_info_bytes(**info)
        stacks = [full] if thumbnails is None else [full, thumbnails]
        return tiff_bytes(*stacks, extratags=[(LSM_INFO_TAG, 1, len(raw), raw, True)],
                          photometric='minisblack')
    return _make
