"""
Format converter for TIFF-family microscopy files.
Converts plain TIFF, Zeiss LSM, ImageJ hyperstacks and OME-TIFF to single-file
NIfTI-1 (.nii) while preserving stack dimensions and voxel spacing.

Voxels are written in canonical NIfTI order:
- X: Width (fastest)
- Y: Height
- Z: Slices
- T: Timepoints
- C: Channels (slowest)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union
import logging

from .config import ConversionConfig
from .utils import (
    ensure_directory,
    find_input_files,
    format_bytes,
    group_output_path,
    nifti_output_path,
    validate_file_path,
)
from ..data_processing.pixel_types import select_pixel_type
from ..data_processing.slice_order import (
    compute_slice_order,
    exclude_mismatched_slices,
    output_dims,
)
from ..data_processing.stack_grouper import group_slices
from ..data_processing.tiff_reader import TiffStackReader
from ..data_processing.voxel_assembler import assemble_voxels
from ..metadata.resolver import resolve_dimensions
from ..metadata.sources import detect_metadata_source
from ..nifti.affine import build_affine
from ..nifti.header import NiftiHeader, build_header, encode_nifti

logger = logging.getLogger(__name__)

ByteBuffer = Union[bytes, bytearray, memoryview]


@dataclass(frozen=True)
class ConversionResult:
    """One converted stack group.

    Attributes:
        nifti_bytes: Complete ``.nii`` stream (header, pad, voxels).
        stack_configs: Keys of every stack group found in the file, e.g.
            ``['512x512c1b8', '128x128c1b8']``.
        group_index: Group that was converted.
        dims: NIfTI ``dim[8]`` written to the header.
        pixdim: NIfTI ``pixdim[8]`` written to the header.
        datatype: NIfTI datatype code.
        header: The header value that was serialised.
        diagnostics: Notes about fallbacks applied to inconsistent metadata.
    """

    nifti_bytes: bytes
    stack_configs: Tuple[str, ...]
    group_index: int
    dims: Tuple[int, ...]
    pixdim: Tuple[float, ...]
    datatype: int
    header: Optional[NiftiHeader] = None
    diagnostics: Tuple[str, ...] = ()

    @property
    def num_groups(self) -> int:
        return len(self.stack_configs)


class TiffToNiftiConverter:
    """Convert TIFF-family byte streams and files to NIfTI-1.

    The converter holds only its configuration; every call builds and
    discards its own reader, buffers and header.
    """

    def __init__(self, config: Optional[ConversionConfig] = None):
        """Initialize the converter.

        Args:
            config: Conversion settings. Defaults to ``ConversionConfig()``.
        """
        self.config = config or ConversionConfig()
        self._setup_logging()

    def _setup_logging(self, verbose: Optional[bool] = None) -> None:
        """Setup logging configuration."""
        if verbose is None:
            verbose = self.config.verbose
        if verbose:
            level = getattr(logging, self.config.log_level)
            logging.basicConfig(
                level=level,
                format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            logging.getLogger(__package__.split('.')[0]).setLevel(level)

    def _convert_group(self, reader: TiffStackReader, group_index: int) -> ConversionResult:
        slices = reader.list_images()
        if not slices:
            raise ValueError("TIFF contains no images")

        # calibration metadata comes from the first directory, whichever group is converted
        directory = reader.file_directory(0)
        source = detect_metadata_source(directory)

        groups = group_slices(slices, group_index)
        selected = groups.selected if self.config.group_slices else tuple(slices)
        first = selected[0]
        width, height = first.width, first.height

        dims = resolve_dimensions(source, width, height, directory)
        order = compute_slice_order(dims, len(selected))
        if not self.config.group_slices:
            order = exclude_mismatched_slices(order, selected, first)

        pixel_type = select_pixel_type(first.bit_depth, first.samples_per_pixel, first.sample_format)

        dim = output_dims(order.dims, order.n_frames, width, height)
        pixdim = (1.0, dims.spacing_x, dims.spacing_y, dims.spacing_z, dims.time_interval,
                  0.0, 0.0, 0.0)
        logger.info(
            f"NIfTI dimensions: {'x'.join(str(d) for d in dim[1:dim[0] + 1])}, "
            f"bit-depth: {first.bit_depth}, channels: {first.samples_per_pixel}, "
            f"pixdim: {dims.spacing_x:g}x{dims.spacing_y:g}x{dims.spacing_z:g} "
            f"unit: {order.dims.xyzt_units}"
        )

        voxels = assemble_voxels(reader, selected, order, pixel_type, width, height)
        affine = build_affine(dims.spacing, dim[1:4])
        header = build_header(
            dim,
            pixdim,
            pixel_type,
            affine,
            xyzt_units=order.dims.xyzt_units,
            description=self.config.description,
            aux_file=self.config.aux_file,
            qform_code=self.config.qform_code,
            sform_code=self.config.sform_code,
        )
        nifti_bytes = encode_nifti(header, voxels)
        logger.info(f"Encoded NIfTI stream: {format_bytes(len(nifti_bytes))}")

        return ConversionResult(
            nifti_bytes=nifti_bytes,
            stack_configs=tuple(groups.config_keys),
            group_index=groups.group_index,
            dims=header.dim,
            pixdim=header.pixdim,
            datatype=header.datatype,
            header=header,
            diagnostics=order.diagnostics,
        )

    def convert_stack(self, data: ByteBuffer, group_index: int = 0,
                      verbose: Optional[bool] = None) -> ConversionResult:
        """Convert one stack group of an in-memory TIFF.

        Args:
            data: Complete file contents.
            group_index: Stack group to convert; out-of-range values fall
                back to group 0.
            verbose: Override the configured verbosity for this call.

        Returns:
            ConversionResult with the NIfTI stream and the list of stack
            groups available in the file.

        Raises:
            UnsupportedInputType: If ``data`` is not a byte buffer.
            UnsupportedPixelFormat: If the slice layout has no NIfTI datatype.
            DimensionMismatch: If slice shapes vary with a non-sequential order.
            SliceIndexOutOfRange: If metadata maps a slice outside the volume.
        """
        self._setup_logging(verbose)
        with TiffStackReader(data) as reader:
            return self._convert_group(reader, group_index)

    def convert_first_stack(self, data: ByteBuffer, verbose: Optional[bool] = None) -> bytes:
        """Convert stack group 0 and return only the NIfTI bytes."""
        return self.convert_stack(data, 0, verbose).nifti_bytes

    def convert_all_stacks(self, data: ByteBuffer,
                           verbose: Optional[bool] = None) -> List[ConversionResult]:
        """Convert every stack group (e.g. full resolution and thumbnails)."""
        self._setup_logging(verbose)
        with TiffStackReader(data) as reader:
            first = self._convert_group(reader, 0)
            results = [first]
            for group_index in range(1, first.num_groups):
                results.append(self._convert_group(reader, group_index))
        return results

    def _write(self, path: Path, nifti_bytes: bytes) -> None:
        if path.exists() and not self.config.overwrite:
            raise FileExistsError(f"Output exists and overwrite is disabled: {path}")
        ensure_directory(path.parent)
        path.write_bytes(nifti_bytes)
        logger.info(f"Saved {path} ({format_bytes(len(nifti_bytes))})")

    def convert_file(self, input_path: Union[str, Path],
                     output_path: Optional[Union[str, Path]] = None,
                     group_index: Optional[int] = None) -> Path:
        """Convert a TIFF/LSM file and write the NIfTI file(s).

        Args:
            input_path: Source file.
            output_path: Destination file, or an existing directory. If None
                or a directory, the file is named after the input with
                ``config.output_suffix``; groups other than 0 get a
                ``_stack{n}`` suffix.
            group_index: Stack group to convert. If None, uses
                ``config.stack_group``.

        Returns:
            Path of the file written for the requested group. With
            ``config.write_all_groups`` the other groups are written next to
            it with ``_stack{n}`` suffixes.

        Raises:
            FileNotFoundError: If the input file doesn't exist.
            ValueError: If the input extension is not supported.
        """
        input_path = Path(input_path)
        validate_file_path(input_path, self.config.input_extensions)
        if group_index is None:
            group_index = self.config.stack_group

        if output_path is not None and Path(output_path).is_dir():
            base_path = nifti_output_path(input_path, Path(output_path), self.config.output_suffix)
            output_path = None
        elif output_path is not None:
            base_path = Path(output_path)
        else:
            base_path = nifti_output_path(input_path, suffix=self.config.output_suffix)

        logger.info(f"Converting {input_path}")
        data = input_path.read_bytes()

        if not self.config.write_all_groups:
            result = self.convert_stack(data, group_index)
            if output_path is None:
                base_path = group_output_path(base_path, result.group_index)
            self._write(base_path, result.nifti_bytes)
            logger.info(f"Successfully converted {input_path.name} -> {base_path.name}")
            return base_path

        results = self.convert_all_stacks(data)
        selected = group_index if 0 <= group_index < len(results) else 0
        written = base_path
        for result in results:
            path = group_output_path(base_path, result.group_index)
            self._write(path, result.nifti_bytes)
            if result.group_index == selected:
                written = path

        logger.info(f"Successfully converted {input_path.name} -> {len(results)} stack group file(s)")
        return written

    def batch_convert(
        self,
        input_dir: Union[str, Path],
        output_dir: Optional[Union[str, Path]] = None,
        patterns: Optional[Sequence[str]] = None,
    ) -> Dict[Path, Optional[Path]]:
        """Convert every TIFF/LSM file in a directory, one after another.

        Args:
            input_dir: Directory containing TIFF/LSM files.
            output_dir: Output directory for NIfTI files. If None, uses input_dir.
            patterns: File extensions to match. If None, uses
                ``config.input_extensions`` (.tif, .tiff, .lsm).

        Returns:
            Dictionary mapping input paths to output paths (or None on failure).
        """
        input_dir = Path(input_dir)
        if not input_dir.exists():
            raise FileNotFoundError(f"Input directory not found: {input_dir}")

        if output_dir is None:
            output_dir = input_dir
        else:
            output_dir = ensure_directory(output_dir)

        tiff_files = find_input_files(input_dir, patterns or self.config.input_extensions)
        logger.info(f"Found {len(tiff_files)} files to convert")

        conversions: Dict[Path, Optional[Path]] = {}
        for tiff_file in tiff_files:
            try:
                output_file = nifti_output_path(tiff_file, output_dir, self.config.output_suffix)
                conversions[tiff_file] = self.convert_file(tiff_file, output_file)
            except Exception as e:
                logger.error(f"Failed to convert {tiff_file}: {e}")
                conversions[tiff_file] = None

        failed = sum(1 for path in conversions.values() if path is None)
        logger.info(f"Batch conversion complete: {len(conversions) - failed} converted, {failed} failed")
        return conversions


def convert_stack(data: ByteBuffer, verbose: bool = False, group_index: int = 0) -> ConversionResult:
    """Convert one stack group with default settings."""
    return TiffToNiftiConverter().convert_stack(data, group_index, verbose)


def convert_first_stack(data: ByteBuffer, verbose: bool = False) -> bytes:
    """Convert stack group 0 with default settings and return the NIfTI bytes."""
    return TiffToNiftiConverter().convert_first_stack(data, verbose)
