"""
Validation functions for attrs.
"""

import math
from typing import Any

from attrs import define

__all__ = ["range_", "non_negative", "at_least"]


@define(repr=False, frozen=True)
class _RangeValidator:
    minimum: float
    maximum: float

    def __call__(self, inst: Any, attr: Any, value: Any) -> None:
        try:
            in_range = self.minimum <= value <= self.maximum
        except TypeError:
            in_range = False

        if not in_range:
            raise ValueError(
                "'{name}' must be in range [{minimum!r}, {maximum!r}]: {value!r}".format(
                    name=attr.name,
                    minimum=self.minimum,
                    maximum=self.maximum,
                    value=value,
                )
            )

    def __repr__(self) -> str:
        return "<range_ validator with [{minimum!r}, {maximum!r}]>".format(
            minimum=self.minimum, maximum=self.maximum
        )


@define(repr=False, frozen=True)
class _LowerBoundValidator:
    minimum: float

    def __call__(self, inst: Any, attr: Any, value: Any) -> None:
        try:
            valid = not math.isnan(value) and value >= self.minimum
        except TypeError:
            valid = False

        if not valid:
            raise ValueError(
                "'{name}' must be >= {minimum!r}: {value!r}".format(
                    name=attr.name, minimum=self.minimum, value=value
                )
            )

    def __repr__(self) -> str:
        return "<at_least validator with {minimum!r}>".format(minimum=self.minimum)


def range_(minimum: float, maximum: float) -> _RangeValidator:
    """
    A validator that raises a :exc:`ValueError` if the initializer is called
    with a value that does not belong in the [minimum, maximum] range. The
    check is performed using ``minimum <= value and value <= maximum``
    """
    return _RangeValidator(minimum, maximum)


def at_least(minimum: float) -> _LowerBoundValidator:
    """
    A validator that raises a :exc:`ValueError` if the value is NaN or lower
    than `minimum`.
    """
    return _LowerBoundValidator(minimum)


def non_negative() -> _LowerBoundValidator:
    return _LowerBoundValidator(0)
