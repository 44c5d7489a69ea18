"""Forward-mode automatic differentiation numbers used by the table evaluators."""

import typing

import attrs
import numpy as np
import numpy.typing as npt
from typing_extensions import Self

from uxtab.errors import ValidationError
from uxtab.types import Differentiable, Numeric


__all__ = ["Evaluation", "is_differentiable", "as_evaluation"]


def _as_derivatives(derivatives: typing.Any) -> npt.NDArray[np.float64]:
    array = np.array(derivatives, dtype=np.float64, copy=True).reshape(-1)
    array.flags.writeable = False
    return array


def _align(
    first: npt.NDArray[np.float64], second: npt.NDArray[np.float64]
) -> typing.Tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Bring two derivative vectors to a common length.

    An empty vector stands for a constant and is widened with zeros.
    """
    if first.size == second.size:
        return first, second
    if first.size == 0:
        return np.zeros_like(second), second
    if second.size == 0:
        return first, np.zeros_like(first)
    raise ValidationError(
        f"Cannot combine derivative vectors of different lengths. "
        f"Got {first.size} vs {second.size}"
    )


@attrs.frozen(slots=True, eq=False)
class Evaluation:
    """
    A number carrying its partial derivatives with respect to a set of
    upstream independent variables (a dual number).

    The value is always computed with the same floating point operations as
    plain arithmetic on floats, so mixing plain and dual evaluation of the same
    formula yields identical values. Derivatives follow the sum, product and
    quotient rules entry by entry.

    Example:
    ```python
    saturation = Evaluation.variable(0.3, index=0, size=2)
    pressure = Evaluation.variable(250.0, index=1, size=2)
    result = saturation * pressure + 1.0
    result.derivatives  # array([250. ,   0.3])
    ```
    """

    value: float = attrs.field(converter=float)
    """The plain value."""
    derivatives: npt.NDArray[np.float64] = attrs.field(
        factory=lambda: np.zeros(0), converter=_as_derivatives
    )
    """Partial derivatives with respect to the upstream variables. Empty for constants."""

    @classmethod
    def constant(cls, value: Numeric, size: int = 0) -> Self:
        """
        Create a number that does not depend on any upstream variable.

        :param value: The plain value.
        :param size: Number of upstream variables to carry zero derivatives for.
        :return: The constant.
        """
        return cls(value, np.zeros(size))

    @classmethod
    def variable(cls, value: Numeric, index: int, size: int) -> Self:
        """
        Create the `index`-th of `size` upstream independent variables.

        :param value: The plain value.
        :param index: Position of this variable in the derivative vector.
        :param size: Total number of upstream variables.
        :return: A number whose derivative is 1 for `index` and 0 elsewhere.
        """
        if not 0 <= index < size:
            raise ValidationError(
                f"Variable index must lie in [0, {size}), got {index}"
            )
        derivatives = np.zeros(size)
        derivatives[index] = 1.0
        return cls(value, derivatives)

    @classmethod
    def from_differentiable(cls, number: Differentiable) -> Self:
        """Copy any object exposing `value` and `derivatives` into an `Evaluation`."""
        if isinstance(number, cls):
            return number
        return cls(number.value, number.derivatives)

    @property
    def size(self) -> int:
        """Number of upstream variables carried."""
        return int(self.derivatives.size)

    def __neg__(self) -> "Evaluation":
        return Evaluation(-self.value, -self.derivatives)

    def __add__(self, other: typing.Any) -> "Evaluation":
        if isinstance(other, Evaluation):
            first, second = _align(self.derivatives, other.derivatives)
            return Evaluation(self.value + other.value, first + second)
        if isinstance(other, (int, float, np.number)):
            return Evaluation(self.value + float(other), self.derivatives)
        return NotImplemented

    def __radd__(self, other: typing.Any) -> "Evaluation":
        if isinstance(other, (int, float, np.number)):
            return Evaluation(float(other) + self.value, self.derivatives)
        return NotImplemented

    def __sub__(self, other: typing.Any) -> "Evaluation":
        if isinstance(other, Evaluation):
            first, second = _align(self.derivatives, other.derivatives)
            return Evaluation(self.value - other.value, first - second)
        if isinstance(other, (int, float, np.number)):
            return Evaluation(self.value - float(other), self.derivatives)
        return NotImplemented

    def __rsub__(self, other: typing.Any) -> "Evaluation":
        if isinstance(other, (int, float, np.number)):
            return Evaluation(float(other) - self.value, -self.derivatives)
        return NotImplemented

    def __mul__(self, other: typing.Any) -> "Evaluation":
        if isinstance(other, Evaluation):
            first, second = _align(self.derivatives, other.derivatives)
            return Evaluation(
                self.value * other.value,
                first * other.value + second * self.value,
            )
        if isinstance(other, (int, float, np.number)):
            other = float(other)
            return Evaluation(self.value * other, self.derivatives * other)
        return NotImplemented

    def __rmul__(self, other: typing.Any) -> "Evaluation":
        if isinstance(other, (int, float, np.number)):
            other = float(other)
            return Evaluation(other * self.value, other * self.derivatives)
        return NotImplemented

    def __truediv__(self, other: typing.Any) -> "Evaluation":
        if isinstance(other, Evaluation):
            first, second = _align(self.derivatives, other.derivatives)
            return Evaluation(
                self.value / other.value,
                (first * other.value - second * self.value)
                / (other.value * other.value),
            )
        if isinstance(other, (int, float, np.number)):
            other = float(other)
            return Evaluation(self.value / other, self.derivatives / other)
        return NotImplemented

    def __rtruediv__(self, other: typing.Any) -> "Evaluation":
        if isinstance(other, (int, float, np.number)):
            other = float(other)
            return Evaluation(
                other / self.value,
                -other * self.derivatives / (self.value * self.value),
            )
        return NotImplemented


def is_differentiable(number: typing.Any) -> bool:
    """Check whether `number` carries derivatives, i.e. is not a plain real number."""
    if isinstance(number, (int, float, np.number)):
        return False
    return isinstance(number, Differentiable)


def as_evaluation(number: typing.Any, size: int = 0) -> Evaluation:
    """
    Lift a plain or differentiable number to an `Evaluation`.

    Plain numbers become constants carrying `size` zero derivatives.
    """
    if is_differentiable(number):
        return Evaluation.from_differentiable(number)
    return Evaluation.constant(number, size)
