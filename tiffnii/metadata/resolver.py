"""
Resolution of stack dimensionality and voxel spacing from microscopy metadata.

The resolver turns one ``MetadataSource`` variant into a ``DimensionSpec``:
sizes along Z (space), T (time) and C (channel), physical spacing and NIfTI
unit codes. It never fails; files without recognised metadata resolve to a
single-channel, single-timepoint stack with unit spacing.
"""

from dataclasses import dataclass, replace
from typing import Optional, Tuple
import logging

from .ome import NIFTI_UNITS_MICRON, OmePlane
from .sources import (
    ImageJSource,
    LsmSource,
    MetadataSource,
    NoSource,
    OmeSource,
    RESUNIT_INCH,
    TiffDirectory,
)


logger = logging.getLogger(__name__)

NIFTI_UNITS_UNKNOWN = 0
NIFTI_UNITS_SEC = 8

METERS_TO_MICRONS = 1e6
INCH_TO_CM = 2.54


@dataclass(frozen=True)
class DimensionSpec:
    """Resolved stack layout and calibration.

    Attributes:
        size_z, size_t, size_c: Stack extents along space, time and channel.
        spacing_x, spacing_y, spacing_z: Voxel size in ``length_unit``.
        time_interval: Frame interval in ``time_unit`` (1 when unknown).
        length_unit: NIfTI spatial unit code (0 unknown, 2 mm, 3 micron).
        time_unit: NIfTI temporal unit code (0 unknown, 8 second).
        source: Metadata flavour the values came from.
        planes: Per-slice OME (TheZ, TheT, TheC), empty when not provided.
        imagej_axis_order: Axis keys in ImageJ description order, for
            de-interleaving hyperstacks.
    """

    size_z: int = 1
    size_t: int = 1
    size_c: int = 1
    spacing_x: float = 1.0
    spacing_y: float = 1.0
    spacing_z: float = 1.0
    time_interval: float = 1.0
    length_unit: int = NIFTI_UNITS_UNKNOWN
    time_unit: int = NIFTI_UNITS_UNKNOWN
    source: str = 'none'
    planes: Tuple[OmePlane, ...] = ()
    imagej_axis_order: Tuple[str, ...] = ()

    @property
    def n_planes(self) -> int:
        return self.size_z * self.size_t * self.size_c

    @property
    def xyzt_units(self) -> int:
        return self.length_unit + self.time_unit

    @property
    def spacing(self) -> Tuple[float, float, float]:
        return (self.spacing_x, self.spacing_y, self.spacing_z)

    def with_sizes(self, size_z: Optional[int] = None, size_t: Optional[int] = None,
                   size_c: Optional[int] = None) -> 'DimensionSpec':
        return replace(
            self,
            size_z=self.size_z if size_z is None else size_z,
            size_t=self.size_t if size_t is None else size_t,
            size_c=self.size_c if size_c is None else size_c,
        )


def _resolve_lsm(source: LsmSource, observed_width: int, observed_height: int) -> DimensionSpec:
    info = source.info
    # thumbnails share the LSM tag of the full-resolution image: scale in-plane only
    scale_x = info.dimension_x / observed_width if observed_width else 1.0
    scale_y = info.dimension_y / observed_height if observed_height else 1.0
    # TODO: confirm Zeiss TimeInterval is in seconds for all ScanType values
    return DimensionSpec(
        size_z=info.dimension_z or 1,
        size_t=info.dimension_time or 1,
        size_c=info.dimension_channels or 1,
        spacing_x=scale_x * info.voxel_size_x * METERS_TO_MICRONS,
        spacing_y=scale_y * info.voxel_size_y * METERS_TO_MICRONS,
        spacing_z=info.voxel_size_z * METERS_TO_MICRONS,
        time_interval=info.time_interval,
        length_unit=NIFTI_UNITS_MICRON,
        time_unit=NIFTI_UNITS_SEC,
        source=source.kind,
    )


def _resolve_imagej(source: ImageJSource, directory: TiffDirectory) -> DimensionSpec:
    desc = source.description
    spacing_x = spacing_y = desc.spacing

    # ImageJ treats ResolutionUnit NONE as its own calibration unit
    scale = INCH_TO_CM if directory.try_get_resolution_unit() == RESUNIT_INCH else 1.0
    x_res = directory.try_get_x_resolution()
    y_res = directory.try_get_y_resolution()
    if x_res:
        spacing_x = scale / x_res
    if y_res:
        spacing_y = scale / y_res

    time_interval = desc.frame_interval
    return DimensionSpec(
        size_z=desc.slices,
        size_t=desc.frames,
        size_c=desc.channels,
        spacing_x=spacing_x,
        spacing_y=spacing_y,
        spacing_z=desc.spacing,
        time_interval=time_interval or 1.0,
        length_unit=NIFTI_UNITS_MICRON if desc.is_micrometer else NIFTI_UNITS_UNKNOWN,
        time_unit=NIFTI_UNITS_SEC if time_interval else NIFTI_UNITS_UNKNOWN,
        source=source.kind,
        imagej_axis_order=desc.axis_order,
    )


def _resolve_ome(source: OmeSource) -> DimensionSpec:
    ome = source.metadata
    time_interval = ome.time_increment
    return DimensionSpec(
        size_z=ome.size_z,
        size_t=ome.size_t,
        size_c=ome.size_c,
        spacing_x=ome.physical_size_x,
        spacing_y=ome.physical_size_y,
        spacing_z=ome.physical_size_z,
        time_interval=time_interval or 1.0,
        length_unit=ome.length_unit,
        time_unit=NIFTI_UNITS_SEC if time_interval else NIFTI_UNITS_UNKNOWN,
        source=source.kind,
        planes=ome.planes,
    )


def resolve_dimensions(source: MetadataSource, observed_width: int, observed_height: int,
                       directory: Optional[TiffDirectory] = None) -> DimensionSpec:
    """Combine one metadata source into sizes, spacing and units.

    Args:
        source: Detected metadata variant.
        observed_width: Width of the slices actually being stacked. LSM
            in-plane spacing is scaled by ``native / observed`` so thumbnail
            groups keep their true field of view.
        observed_height: Height of the slices actually being stacked.
        directory: File directory, consulted for ImageJ resolution tags.

    Returns:
        DimensionSpec; the all-ones default when ``source`` is ``NoSource``.
    """
    if isinstance(source, LsmSource):
        dims = _resolve_lsm(source, observed_width, observed_height)
    elif isinstance(source, ImageJSource):
        dims = _resolve_imagej(source, directory or TiffDirectory())
    elif isinstance(source, OmeSource):
        dims = _resolve_ome(source)
    elif isinstance(source, NoSource):
        dims = DimensionSpec()
    else:
        raise TypeError(f"Unknown metadata source: {type(source).__name__}")

    logger.info(
        f"Resolved {dims.source} metadata: Z={dims.size_z}, T={dims.size_t}, C={dims.size_c}, "
        f"spacing={dims.spacing_x:g}x{dims.spacing_y:g}x{dims.spacing_z:g}, units={dims.xyzt_units}"
    )
    return dims
