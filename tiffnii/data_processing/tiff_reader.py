"""
TIFF page access for the conversion pipeline, backed by tifffile.

``TiffStackReader`` exposes only what the converter needs from a multi-page
TIFF: the page count, per-page geometry and sample layout, the raw file
directory of a page, and the decoded raster of a page in interleaved-sample
order.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Union
import io
import logging

import numpy as np
import tifffile

from ..core.exceptions import UnsupportedInputType
from ..metadata.lsm import LSM_INFO_TAG
from ..metadata.sources import TiffDirectory


logger = logging.getLogger(__name__)

# Tags copied from a page into its TiffDirectory
DIRECTORY_TAGS = (
    'ImageDescription',
    'SampleFormat',
    'ResolutionUnit',
    'XResolution',
    'YResolution',
)


@dataclass(frozen=True)
class SliceInfo:
    """Geometry and sample layout of one TIFF page."""

    index: int
    width: int
    height: int
    samples_per_pixel: int
    bits_per_sample: int
    sample_format: int = 1

    @property
    def bytes_per_pixel(self) -> int:
        return self.bits_per_sample * self.samples_per_pixel // 8

    @property
    def bit_depth(self) -> int:
        """Bits per pixel summed over all samples."""
        return self.bits_per_sample * self.samples_per_pixel


def as_bytes(data: Any) -> bytes:
    """Accept the supported byte-buffer forms, reject anything else."""
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    raise UnsupportedInputType(data)


class TiffStackReader:
    """Read-only view over the pages of an in-memory TIFF file.

    Usable as a context manager; the underlying tifffile handle is closed on
    exit.
    """

    def __init__(self, data: Union[bytes, bytearray, memoryview]):
        """Open a TIFF held in memory.

        Args:
            data: Complete TIFF, LSM or OME-TIFF file contents.

        Raises:
            UnsupportedInputType: If ``data`` is not a byte buffer.
            tifffile.TiffFileError: If the bytes are not a valid TIFF.
        """
        self._stream = io.BytesIO(as_bytes(data))
        # LSM metadata is decoded here, not by tifffile's LSM series handling
        self._tif = tifffile.TiffFile(self._stream, is_lsm=False)

    def __enter__(self) -> 'TiffStackReader':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._tif.close()

    def get_image_count(self) -> int:
        return len(self._tif.pages)

    def _page(self, index: int):
        return self._tif.pages[index]

    def get_image(self, index: int) -> SliceInfo:
        page = self._page(index)
        return SliceInfo(
            index=index,
            width=int(page.imagewidth),
            height=int(page.imagelength),
            samples_per_pixel=int(page.samplesperpixel),
            bits_per_sample=int(page.bitspersample),
            sample_format=int(page.sampleformat),
        )

    def iter_images(self) -> Iterator[SliceInfo]:
        for index in range(self.get_image_count()):
            yield self.get_image(index)

    def list_images(self) -> List[SliceInfo]:
        return list(self.iter_images())

    def file_directory(self, index: int = 0) -> TiffDirectory:
        """Collect the metadata tags of one page into a TiffDirectory."""
        page = self._page(index)
        tags: Dict[Union[str, int], Any] = {}

        for name in DIRECTORY_TAGS:
            tag = page.tags.get(name)
            if tag is not None:
                tags[name] = tag.value

        lsm_tag = page.tags.get(LSM_INFO_TAG)
        if lsm_tag is not None:
            tags[LSM_INFO_TAG] = self._read_raw_tag(lsm_tag)

        return TiffDirectory(tags)

    def _read_raw_tag(self, tag) -> bytes:
        # tifffile decodes CZ_LSMINFO into a dict; the raw record is re-read from the file
        fh = self._tif.filehandle
        position = fh.tell()
        try:
            fh.seek(tag.valueoffset)
            return fh.read(tag.valuebytecount)
        finally:
            fh.seek(position)

    def read_raster(self, index: int) -> np.ndarray:
        """Decode one page with samples interleaved: shape (Y, X) or (Y, X, S)."""
        page = self._page(index)
        raster = page.asarray()
        if page.samplesperpixel > 1 and page.planarconfig == tifffile.PLANARCONFIG.SEPARATE:
            raster = np.moveaxis(raster, 0, -1)
        return raster
