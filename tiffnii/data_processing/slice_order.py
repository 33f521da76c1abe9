"""
Canonical slice ordering for NIfTI output.

NIfTI stores a 5D volume with Z varying fastest, then T, then C. TIFF files
store their 2D planes in whatever order the acquisition software chose: OME
files describe each plane with TheZ/TheT/TheC, ImageJ hyperstacks interleave
channels fastest. This module maps every source slice to its canonical
position, checks the result against the resolved dimensions, and falls back
to file order when the metadata does not describe the slices that are
actually present.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple
import logging

from .tiff_reader import SliceInfo
from ..core.exceptions import DimensionMismatch, SliceIndexOutOfRange
from ..metadata.ome import OmePlane
from ..metadata.resolver import DimensionSpec


logger = logging.getLogger(__name__)

EXCLUDED = -1


@dataclass(frozen=True)
class SliceOrder:
    """Mapping from source slice position to canonical linear index.

    Attributes:
        indices: Canonical index for each selected slice, ``EXCLUDED`` (-1)
            for slices skipped during assembly.
        n_frames: Number of 2D frames in the output volume.
        dims: Dimensions after any channel collapse.
        consistent: False when Z x T x C could not be reconciled with the
            frame count and file order is used instead.
        diagnostics: Human-readable notes about fallbacks that were applied.
    """

    indices: Tuple[int, ...]
    n_frames: int
    dims: DimensionSpec
    consistent: bool = True
    diagnostics: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_identity(self) -> bool:
        return all(index == position for position, index in enumerate(self.indices))

    def __iter__(self):
        return iter(self.indices)

    def __len__(self) -> int:
        return len(self.indices)


def identity_order(n_frames: int) -> Tuple[int, ...]:
    return tuple(range(n_frames))


def canonical_index(z: int, t: int, c: int, size_z: int, size_t: int) -> int:
    return z + t * size_z + c * size_z * size_t


def _order_from_planes(planes: Sequence[OmePlane], dims: DimensionSpec,
                       n_frames: int) -> Tuple[int, ...]:
    if len(planes) < n_frames:
        logger.warning(f"OME lists {len(planes)} planes for {n_frames} slices; missing planes map to Z=T=C=0")
    order = []
    for i in range(n_frames):
        plane = planes[i] if i < len(planes) else OmePlane()
        order.append(canonical_index(plane.the_z, plane.the_t, plane.the_c, dims.size_z, dims.size_t))
    return tuple(order)


def _order_from_imagej(axis_order: Sequence[str], dims: DimensionSpec,
                       n_frames: int) -> Tuple[int, ...]:
    sizes = {'z': dims.size_z, 't': dims.size_t, 'c': dims.size_c}
    # axes missing from the description rank first; their size is 1 anyway
    rank = {axis: axis_order.index(axis) if axis in axis_order else -1 for axis in sizes}
    steps: Dict[str, int] = {}
    for axis in sizes:
        step = 1
        for other in sizes:
            if other != axis and rank[axis] > rank[other]:
                step *= sizes[other]
        steps[axis] = step

    order = []
    for i in range(n_frames):
        z = (i // steps['z']) % dims.size_z
        t = (i // steps['t']) % dims.size_t
        c = (i // steps['c']) % dims.size_c
        order.append(canonical_index(z, t, c, dims.size_z, dims.size_t))
    return tuple(order)


def validate_order(indices: Sequence[int], n_frames: int) -> None:
    """Raise SliceIndexOutOfRange for any index outside [0, n_frames)."""
    for source_index, index in enumerate(indices):
        if index == EXCLUDED:
            continue
        if index < 0 or index >= n_frames:
            raise SliceIndexOutOfRange(index, n_frames, source_index)


def compute_slice_order(dims: DimensionSpec, n_frames: int) -> SliceOrder:
    """Compute the canonical position of each source slice.

    Args:
        dims: Resolved dimensions, optionally carrying OME planes or an
            ImageJ axis order.
        n_frames: Number of slices in the selected stack group.

    Returns:
        SliceOrder. When Z x T x C differs from ``n_frames`` but Z x T
        matches, C is collapsed to 1 (channels stored as separate slice
        groups). When neither matches, the order is the identity over
        ``n_frames`` and ``consistent`` is False.
        Files without metadata are a single Z stack in page order.

    Raises:
        SliceIndexOutOfRange: If metadata maps a slice outside the volume.
    """
    diagnostics: List[str] = []

    if dims.source == 'none' and dims.n_planes != n_frames:
        dims = dims.with_sizes(size_z=n_frames)

    if dims.n_planes != n_frames:
        if dims.size_z * dims.size_t == n_frames:
            msg = (
                f"{dims.size_z}x{dims.size_t}x{dims.size_c} (ZxTxC) != {n_frames} slices; "
                f"channels stored as separate slice groups, using C=1"
            )
            logger.warning(msg)
            diagnostics.append(msg)
            dims = dims.with_sizes(size_c=1)
        else:
            msg = (
                f"Inconsistent {dims.source} TIFF {dims.size_z}x{dims.size_t}x{dims.size_c} "
                f"!= {n_frames} (perhaps multi-dimensional), using file order"
            )
            logger.warning(msg)
            diagnostics.append(msg)
            return SliceOrder(
                indices=identity_order(n_frames),
                n_frames=n_frames,
                dims=dims,
                consistent=False,
                diagnostics=tuple(diagnostics),
            )

    if dims.planes:
        indices = _order_from_planes(dims.planes, dims, n_frames)
    elif dims.imagej_axis_order and n_frames > 1:
        indices = _order_from_imagej(dims.imagej_axis_order, dims, n_frames)
    else:
        indices = identity_order(n_frames)

    validate_order(indices, n_frames)

    if len(set(indices)) != len(indices):
        msg = f"{dims.source} slice coordinates are not unique, using file order"
        logger.warning(msg)
        diagnostics.append(msg)
        indices = identity_order(n_frames)

    order = SliceOrder(indices=indices, n_frames=n_frames, dims=dims, diagnostics=tuple(diagnostics))
    if not order.is_identity:
        logger.info(f"Reordering {n_frames} slices from {dims.source} metadata")
    return order


def exclude_mismatched_slices(order: SliceOrder, slices: Sequence[SliceInfo],
                              reference: SliceInfo) -> SliceOrder:
    """Drop slices whose shape differs from ``reference`` (ungrouped input).

    Matching slices keep file order and are renumbered consecutively; the
    others get the ``EXCLUDED`` sentinel.

    Raises:
        DimensionMismatch: If shapes vary and ``order`` is not the identity,
            since no remapping is defined for that case.
    """
    def same_shape(info: SliceInfo) -> bool:
        return (
            info.width == reference.width
            and info.height == reference.height
            and info.samples_per_pixel == reference.samples_per_pixel
            and info.bit_depth == reference.bit_depth
        )

    matches = [same_shape(info) for info in slices]
    if all(matches):
        return order

    if not order.is_identity:
        raise DimensionMismatch("Slice order is not sequential and slice dimensions vary")

    indices = []
    kept = 0
    for match in matches:
        if match:
            indices.append(kept)
            kept += 1
        else:
            indices.append(EXCLUDED)

    msg = f"Skipping {len(slices) - kept} of {len(slices)} slices whose dimensions differ from the first"
    logger.warning(msg)
    return SliceOrder(
        indices=tuple(indices),
        n_frames=kept,
        dims=order.dims,
        consistent=order.consistent and order.dims.n_planes == kept,
        diagnostics=order.diagnostics + (msg,),
    )


def output_dims(dims: DimensionSpec, n_frames: int, width: int, height: int) -> Tuple[int, ...]:
    """NIfTI ``dim[8]`` for the assembled volume.

    3D ``[3, X, Y, frames]`` unless Z x T x C matches the frame count and
    there is more than one timepoint or channel; then 4D ``[4, X, Y, Z, T]``
    or, with several channels, 5D ``[5, X, Y, Z, T, C]``.
    """
    result = [3, width, height, n_frames, 1, 1, 1, 1]
    if dims.n_planes == n_frames and dims.size_t * dims.size_c > 1 and n_frames > 1:
        result[0] = 4
        result[3] = dims.size_z
        result[4] = dims.size_t
        if dims.size_c > 1:
            result[0] = 5
            result[5] = dims.size_c
    return tuple(result)
