import typing

import numpy as np
import numpy.typing as npt
from typing_extensions import TypeAlias


__all__ = [
    "Numeric",
    "FloatOrArray",
    "FractionalIndex",
    "Differentiable",
    "TextSink",
]

Numeric = typing.Union[int, float, np.floating, np.integer]
FloatOrArray = typing.Union[float, npt.NDArray[np.floating]]

FractionalIndex: TypeAlias = float
"""
Interval index plus the position inside that interval, e.g. `2.25` is a quarter
of the way from sample point 2 to sample point 3.
"""


@typing.runtime_checkable
class Differentiable(typing.Protocol):
    """
    Protocol for a number carrying forward-mode derivatives.

    `derivatives[k]` is the partial derivative of `value` with respect to the
    k-th upstream independent variable. An empty sequence means the number is
    a constant.
    """

    @property
    def value(self) -> float:
        """The plain value of the number."""
        ...

    @property
    def derivatives(self) -> typing.Sequence[float]:
        """Partial derivatives with respect to the upstream variables."""
        ...


class TextSink(typing.Protocol):
    """Protocol for a writable text stream."""

    def write(self, s: str, /) -> typing.Any: ...
