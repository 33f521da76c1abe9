"""Voxel-to-world affine for axis-aligned microscopy volumes."""

from typing import Sequence

import numpy as np


def build_affine(spacing: Sequence[float], extent: Sequence[int]) -> np.ndarray:
    """Diagonal scaling affine centred on the volume.

    Args:
        spacing: Voxel size (dx, dy, dz).
        extent: Volume size in voxels (nx, ny, nz).

    Returns:
        4x4 float64 matrix; row ``i`` holds ``spacing[i]`` on the diagonal
        and ``-(spacing[i] * extent[i]) / 2`` as translation.
    """
    if len(spacing) != 3 or len(extent) != 3:
        raise ValueError(f"Expected 3 spacings and 3 extents, got {len(spacing)} and {len(extent)}")

    affine = np.eye(4, dtype=np.float64)
    for axis in range(3):
        affine[axis, axis] = spacing[axis]
        affine[axis, 3] = -(spacing[axis] * extent[axis]) / 2
    return affine
