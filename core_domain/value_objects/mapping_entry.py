from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union


class Formula(Enum):
    """Post-query computation applied to a mapped metric."""
    FLOOR = "floor"
    ROUND = "round"
    CONVERTED_VISITS = "converted_visits"
    CONVERSIONS_TOTAL = "conversions_total"
    GOAL_GROUP = "goal_group"


@dataclass(frozen=True)
class SimpleMapping:
    """A metric index read straight from one GA metric column."""
    name: str

    def __post_init__(self):
        if not self.name or not isinstance(self.name, str):
            raise ValueError("SimpleMapping name must be a non-empty string.")

    @property
    def names(self) -> Tuple[str, ...]:
        return (self.name,)

    @property
    def primary_name(self) -> str:
        return self.name


@dataclass(frozen=True)
class ComputedMapping:
    """
    A metric index computed from one or more GA metric columns.

    The first name is the primary column: its absence in a result row means the
    metric is absent and the formula is not applied.
    """
    names: Tuple[str, ...]
    formula: Formula

    def __post_init__(self):
        if isinstance(self.names, str):
            object.__setattr__(self, 'names', (self.names,))
        elif not isinstance(self.names, tuple):
            object.__setattr__(self, 'names', tuple(self.names))
        if not self.names:
            raise ValueError("ComputedMapping requires at least one GA metric name.")
        if not isinstance(self.formula, Formula):
            raise ValueError(f"Invalid formula for ComputedMapping: {self.formula!r}")

    @property
    def primary_name(self) -> str:
        return self.names[0]


MappingEntry = Union[SimpleMapping, ComputedMapping]


def to_mapping_entry(value) -> MappingEntry:
    """Accepts a ready entry or a bare GA metric name."""
    if isinstance(value, (SimpleMapping, ComputedMapping)):
        return value
    if isinstance(value, str):
        return SimpleMapping(value)
    raise ValueError(f"Cannot build a metric mapping entry from {value!r}")
