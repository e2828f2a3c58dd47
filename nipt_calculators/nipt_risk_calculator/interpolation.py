"""Age-based interpolation over sparse risk tables.

Risk tables list values only at a handful of ages ("breakpoints"). A lookup
for any other age is resolved as follows:

    - exact breakpoint: the stored value, untouched
    - below the first breakpoint: the first breakpoint's value
    - above the last breakpoint: the last breakpoint's value
    - between two breakpoints: linear interpolation

Record tables (one denominator per condition) interpolate each field with the
same ratio and round the result to a whole denominator.

Example:
    >>> table = AgeRiskTable.scalar({30: 100, 40: 200})
    >>> interpolate(35, table)
    150.0
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from nipt_calculators.nipt_risk_calculator.models import InvalidInputError


class TableKind(str, Enum):
    scalar = "scalar"
    record = "record"


@dataclass(frozen=True)
class AgeRiskTable:
    """Read-only lookup table keyed by age.

    Attributes:
        kind: Shape of every value in the table ('scalar' or 'record')
        values: Mapping of age to a positive number or a record of positive numbers
        breakpoints: Ages present in the table, strictly increasing
    """

    kind: TableKind
    values: Mapping[int, float | Mapping[str, float]]
    breakpoints: tuple[int, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", TableKind(self.kind))
        if not self.values:
            raise InvalidInputError("risk table must contain at least one age")
        for age in self.values:
            if isinstance(age, bool) or not isinstance(age, int):
                raise InvalidInputError(f"risk table ages must be integers, got {age!r}")

        frozen: dict[int, float | Mapping[str, float]] = {}
        fields: frozenset[str] | None = None

        for age in sorted(self.values):
            value = self.values[age]
            if self.kind is TableKind.scalar:
                _check_positive(age, value)
                frozen[age] = value
                continue

            if fields is None:
                fields = frozenset(value)
            elif frozenset(value) != fields:
                raise InvalidInputError(
                    f"risk table record at age {age} has fields {sorted(value)}, "
                    f"expected {sorted(fields)}"
                )
            for v in value.values():
                _check_positive(age, v)
            frozen[age] = MappingProxyType(dict(value))

        object.__setattr__(self, "values", MappingProxyType(frozen))
        object.__setattr__(self, "breakpoints", tuple(frozen))

    @classmethod
    def scalar(cls, values: Mapping[int, float]) -> "AgeRiskTable":
        return cls(kind=TableKind.scalar, values=values)

    @classmethod
    def record(cls, values: Mapping[int, Mapping[str, float]]) -> "AgeRiskTable":
        return cls(kind=TableKind.record, values=values)


def _check_positive(age: int, value: float) -> None:
    if not value > 0:
        raise InvalidInputError(f"risk table value at age {age} must be positive, got {value}")


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up."""
    return math.floor(value + 0.5)


def find_breakpoints(age: float, breakpoints: tuple[int, ...]) -> tuple[int | None, int | None]:
    """Find the nearest breakpoints on each side of an age.

    Args:
        age: Age to look up
        breakpoints: Strictly increasing table ages

    Returns:
        Tuple of (greatest breakpoint <= age, least breakpoint >= age).
        Either side is None when no such breakpoint exists.
    """
    lower = None
    upper = None
    for bp in breakpoints:
        if bp <= age:
            lower = bp
        if bp >= age and upper is None:
            upper = bp
    return lower, upper


def interpolation_ratio(age: float, lower_age: int, upper_age: int) -> float:
    """Position of age between two distinct breakpoints (0 at lower, 1 at upper)."""
    return (age - lower_age) / (upper_age - lower_age)


def _resolve(age: float, table: AgeRiskTable):
    """Return either the value to use as-is, or the bracketing values and ratio."""
    lower_age, upper_age = find_breakpoints(age, table.breakpoints)

    if lower_age is not None and lower_age == upper_age:
        return table.values[lower_age], None
    if lower_age is None:
        return table.values[upper_age], None
    if upper_age is None:
        return table.values[lower_age], None

    ratio = interpolation_ratio(age, lower_age, upper_age)
    return None, (table.values[lower_age], table.values[upper_age], ratio)


def interpolate_scalar(age: float, table: AgeRiskTable) -> float:
    """Interpolate a scalar table at an age."""
    exact, bracket = _resolve(age, table)
    if bracket is None:
        return exact

    lower, upper, ratio = bracket
    return lower + (upper - lower) * ratio


def interpolate_record(age: float, table: AgeRiskTable) -> dict[str, float]:
    """Interpolate every field of a record table at an age.

    Interpolated fields are rounded to whole denominators; exact and clamped
    lookups return the stored record unchanged.
    """
    exact, bracket = _resolve(age, table)
    if bracket is None:
        return dict(exact)

    lower, upper, ratio = bracket
    return {key: round_half_up(value + (upper[key] - value) * ratio) for key, value in lower.items()}


def interpolate(age: float, table: AgeRiskTable) -> float | dict[str, float]:
    """Interpolate a risk table at an age, dispatching on the table kind.

    Args:
        age: Age in years
        table: Non-empty risk table

    Returns:
        A float for scalar tables, or a dict of field -> value for record tables
    """
    if table.kind is TableKind.record:
        return interpolate_record(age, table)
    return interpolate_scalar(age, table)
