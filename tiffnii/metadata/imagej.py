"""ImageJ ``ImageDescription`` parsing (``ImageJ=...`` key=value text)."""

from dataclasses import dataclass
from typing import Optional, Tuple
import re


IMAGEJ_MARKER = 'ImageJ='

# Spellings of micrometre seen in ImageJ descriptions across encodings
MICROMETER_UNITS = frozenset({
    'µm',   # micro sign
    'μm',   # greek mu
    '�m',   # latin-1 micro sign decoded as utf-8
    r'\u00B5m',  # ImageJ escapes non-ASCII in descriptions
    'um',
    'micron',
    'microns',
})

_SLICES = re.compile(r'slices=(\d+)')
_FRAMES = re.compile(r'frames=(\d+)')
_CHANNELS = re.compile(r'channels=(\d+)')
_SPACING = re.compile(r'spacing=([\d.]+)')
_UNIT = re.compile(r'(?:^|\s)unit=(\S+)')
_FINTERVAL = re.compile(r'finterval=([\d.eE+-]+)')


@dataclass(frozen=True)
class ImageJDescription:
    """Hyperstack sizes and calibration extracted from an ImageJ description.

    ``axis_order`` lists 'z', 't', 'c' in the order their keys appear in the
    text; ImageJ writes channels, then slices, then frames, which is also the
    order in which planes are interleaved (channels vary fastest).
    """

    slices: int = 1
    frames: int = 1
    channels: int = 1
    spacing: float = 1.0
    unit: str = ''
    frame_interval: Optional[float] = None
    axis_order: Tuple[str, ...] = ()

    @property
    def is_micrometer(self) -> bool:
        return is_micrometer(self.unit)


def is_imagej_description(text: Optional[str]) -> bool:
    return bool(text) and IMAGEJ_MARKER in text


def is_micrometer(unit: str) -> bool:
    return unit in MICROMETER_UNITS


def _int_or(pattern: re.Pattern, text: str, default: int) -> int:
    match = pattern.search(text)
    return int(match.group(1)) if match else default


def _float_or(pattern: re.Pattern, text: str, default):
    match = pattern.search(text)
    if not match:
        return default
    try:
        return float(match.group(1))
    except ValueError:
        return default


def parse_imagej_description(text: str) -> ImageJDescription:
    """Extract slices/frames/channels/spacing/unit from ImageJ description text.

    Missing keys fall back to 1 (sizes), 1.0 (spacing) or '' (unit).
    """
    unit_match = _UNIT.search(text)

    positions = []
    for axis, key in (('z', 'slices='), ('t', 'frames='), ('c', 'channels=')):
        pos = text.find(key)
        if pos >= 0:
            positions.append((pos, axis))
    axis_order = tuple(axis for _, axis in sorted(positions))

    return ImageJDescription(
        slices=_int_or(_SLICES, text, 1),
        frames=_int_or(_FRAMES, text, 1),
        channels=_int_or(_CHANNELS, text, 1),
        spacing=_float_or(_SPACING, text, 1.0),
        unit=unit_match.group(1) if unit_match else '',
        frame_interval=_float_or(_FINTERVAL, text, None),
        axis_order=axis_order,
    )
