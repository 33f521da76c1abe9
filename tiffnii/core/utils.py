"""
Utility functions for file handling around the converter.
"""

from pathlib import Path
from typing import Iterable, List, Optional, Union
import logging


logger = logging.getLogger(__name__)


def validate_file_path(filepath: Path, valid_extensions: List[str]) -> None:
    """Validate that a file exists and has the correct extension.

    Args:
        filepath: Path to validate.
        valid_extensions: List of valid file extensions (e.g., ['.tif', '.lsm']).

    Raises:
        FileNotFoundError: If file doesn't exist.
        ValueError: If file extension is not valid.
    """
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    if not filepath.is_file():
        raise ValueError(f"Path is not a file: {filepath}")

    extension = filepath.suffix.lower()
    valid_extensions = [ext.lower() for ext in valid_extensions]

    if extension not in valid_extensions:
        raise ValueError(
            f"Invalid file extension: {extension}. "
            f"Valid extensions: {valid_extensions}"
        )


def ensure_directory(directory: Union[str, Path]) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        directory: Directory path.

    Returns:
        Path: Directory path as Path object.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def nifti_output_path(input_path: Path, output_dir: Optional[Path] = None,
                      suffix: str = '.nii') -> Path:
    """Sibling (or ``output_dir``) path with the NIfTI suffix: ``cells.tif`` -> ``cells.nii``."""
    directory = input_path.parent if output_dir is None else Path(output_dir)
    return directory / f"{input_path.stem}{suffix}"


def group_output_path(base_path: Path, group_index: int) -> Path:
    """Path for one stack group: group 0 is ``base_path``, others get ``_stack{n}``."""
    if group_index == 0:
        return base_path
    return base_path.with_name(f"{base_path.stem}_stack{group_index}{base_path.suffix}")


def find_input_files(input_dir: Path, extensions: Iterable[str]) -> List[Path]:
    """Files directly inside ``input_dir`` whose extension is in ``extensions``."""
    wanted = {ext.lower() for ext in extensions}
    return sorted(
        path for path in input_dir.iterdir()
        if path.is_file() and path.suffix.lower() in wanted
    )


def format_bytes(bytes_value: float) -> str:
    """Format bytes value as human-readable string.

    Args:
        bytes_value: Number of bytes.

    Returns:
        str: Formatted string (e.g., "1.5 GB").
    """
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if bytes_value < 1024.0:
            return f"{bytes_value:.2f} {unit}"
        bytes_value /= 1024.0
    return f"{bytes_value:.2f} PB"
