"""
Command line interface: convert one TIFF/LSM file or every file in a directory.

Usage:
    tiffnii cells.tif
    tiffnii cells.lsm --group 1
    tiffnii data/ --output-dir nifti/ --all-groups
    tiffnii cells.nii --info
"""

from pathlib import Path
from typing import List, Optional
import argparse
import logging
import sys

from .core.config import ConversionConfig
from .core.format_converter import TiffToNiftiConverter
from .core.utils import ensure_directory
from .data_processing.pixel_types import DATATYPE_NAMES
from .nifti.header import HEADER_SIZE, decode_header

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tiffnii",
        description="Convert TIFF, LSM, ImageJ and OME-TIFF stacks to NIfTI-1 (.nii).",
    )
    parser.add_argument("path", type=Path, help="Input file, or a directory to batch convert")
    parser.add_argument("--group", type=int, default=None,
                        help="Stack group to convert (default: config stack_group, 0)")
    parser.add_argument("--all-groups", action="store_true",
                        help="Also write thumbnail/other stack groups as _stack{n} files")
    parser.add_argument("--output-dir", type=Path, default=None,
                        help="Folder for .nii files (default: next to the input)")
    parser.add_argument("--config", type=Path, default=None,
                        help="YAML or JSON conversion settings")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log progress at INFO level")
    parser.add_argument("--info", action="store_true",
                        help="Print the header of an existing .nii file instead of converting")
    return parser


def print_header_info(path: Path) -> None:
    with open(path, 'rb') as f:
        header = decode_header(f.read(HEADER_SIZE))
    ndim = header.dim[0]
    print(f"{path.name}")
    print(f"  dim:        {' x '.join(str(d) for d in header.dim[1:ndim + 1])}")
    print(f"  pixdim:     {' x '.join(f'{p:g}' for p in header.pixdim[1:ndim + 1])}")
    print(f"  datatype:   {DATATYPE_NAMES.get(header.datatype, header.datatype)} ({header.bitpix} bits)")
    print(f"  xyzt_units: {header.xyzt_units}")
    print(f"  sform_code: {header.sform_code}, qform_code: {header.qform_code}")
    print(f"  vox_offset: {header.vox_offset:g}")
    if header.descrip:
        print(f"  descrip:    {header.descrip.decode('utf-8', 'replace')}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = ConversionConfig.load(args.config) if args.config else ConversionConfig()
    if args.verbose:
        config.verbose = True
    if args.all_groups:
        config.write_all_groups = True

    logging.basicConfig(
        level=getattr(logging, config.log_level) if config.verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    path: Path = args.path
    if not path.exists():
        logger.error(f"Path not found: {path}")
        return 1

    if args.info:
        try:
            print_header_info(path)
        except (OSError, ValueError) as e:
            logger.error(f"Cannot read NIfTI header from {path}: {e}")
            return 1
        return 0

    converter = TiffToNiftiConverter(config)

    if path.is_dir():
        conversions = converter.batch_convert(path, args.output_dir)
        if not conversions:
            logger.warning(f"No TIFF or LSM files found in {path}")
            return 0

        successful = sum(1 for output in conversions.values() if output is not None)
        failed = len(conversions) - successful
        print(f"Conversion complete: {successful} successful, {failed} failed")
        for input_path, output_path in conversions.items():
            if output_path is None:
                print(f"  failed: {input_path.name}")
        return 0 if failed == 0 else 1

    if args.output_dir is not None:
        ensure_directory(args.output_dir)
    try:
        written = converter.convert_file(path, args.output_dir, args.group)
    except Exception as e:
        logger.error(f"Failed to convert {path}: {e}")
        return 1
    print(f"Saved {written}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
