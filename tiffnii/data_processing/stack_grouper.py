"""Partitioning of TIFF pages into stackable slice groups."""

from dataclasses import dataclass
from typing import List, Sequence, Tuple
import logging

from .tiff_reader import SliceInfo


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StackConfig:
    """Slice configuration shared by every page of one stack group."""

    width: int
    height: int
    samples_per_pixel: int
    bit_depth: int

    @classmethod
    def from_slice(cls, info: SliceInfo) -> 'StackConfig':
        return cls(info.width, info.height, info.samples_per_pixel, info.bit_depth)

    @property
    def key(self) -> str:
        return f"{self.width}x{self.height}c{self.samples_per_pixel}b{self.bit_depth}"


@dataclass(frozen=True)
class StackGroups:
    """Result of grouping.

    Attributes:
        selected: Slices of the chosen group, in file order.
        group_index: Group actually selected after clamping.
        configs: Distinct configurations in first-seen order.
        assignments: Group index of every input slice.
        total_slices: Number of input slices before filtering.
    """

    selected: Tuple[SliceInfo, ...]
    group_index: int
    configs: Tuple[StackConfig, ...]
    assignments: Tuple[int, ...]
    total_slices: int

    @property
    def num_groups(self) -> int:
        return len(self.configs)

    @property
    def config_keys(self) -> List[str]:
        return [config.key for config in self.configs]


def group_slices(slices: Sequence[SliceInfo], group_index: int = 0) -> StackGroups:
    """Assign every slice to a configuration group and select one group.

    Args:
        slices: Per-page slice descriptions in file order.
        group_index: Requested group. Values outside ``[0, num_groups)`` fall
            back to 0.

    Returns:
        StackGroups with the filtered slice subset. With a single
        configuration all slices are selected unchanged.

    Raises:
        ValueError: If ``slices`` is empty.
    """
    if not slices:
        raise ValueError("Cannot group an empty slice list")

    configs: List[StackConfig] = []
    assignments: List[int] = []
    for info in slices:
        config = StackConfig.from_slice(info)
        if config not in configs:
            configs.append(config)
        assignments.append(configs.index(config))

    if len(configs) == 1:
        return StackGroups(
            selected=tuple(slices),
            group_index=0,
            configs=tuple(configs),
            assignments=tuple(assignments),
            total_slices=len(slices),
        )

    if group_index < 0 or group_index >= len(configs):
        logger.warning(f"Stack group {group_index} out of range [0, {len(configs)}), using group 0")
        group_index = 0

    selected = tuple(info for info, group in zip(slices, assignments) if group == group_index)
    logger.info(
        f"{len(selected)} of {len(slices)} slices match dimensions of stack group "
        f"{group_index} ({configs[group_index].key})"
    )
    return StackGroups(
        selected=selected,
        group_index=group_index,
        configs=tuple(configs),
        assignments=tuple(assignments),
        total_slices=len(slices),
    )
