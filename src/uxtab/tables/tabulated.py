"""
Two-dimensional tabulated functions whose Y sampling varies per X column.

Tables are filled column by column, evaluated bilinearly at single points
(plain or differentiable) or in bulk through the compiled kernels of
`uxtab.tables.locator`.
"""

import logging
import math
import os
import typing

import attrs
import numpy as np
import numpy.typing as npt
from typing_extensions import Self

from uxtab.config import Config
from uxtab.errors import DegenerateTableError, OutOfRangeError, ValidationError
from uxtab.evaluation import Evaluation, as_evaluation, is_differentiable
from uxtab.tables.export import export_grid, sample_grid
from uxtab.tables.locator import evaluate_points, split_fractional_index
from uxtab.tables.samples import SamplePoint, SampleStore
from uxtab.types import FloatOrArray, FractionalIndex, Numeric, TextSink


logger = logging.getLogger(__name__)

__all__ = ["UniformXTabulatedFunction"]

_Stencil = typing.Tuple[int, float, int, float, int, float]


def _check_coordinate(name: str, number: Numeric) -> float:
    number = float(number)
    if not math.isfinite(number):
        raise OutOfRangeError(f"`{name}` must be finite, got {number}")
    return number


@attrs.define
class UniformXTabulatedFunction:
    """
    Scalar function of two variables sampled column by column.

    The function is tabulated on a set of X coordinates ("columns"). Every
    column holds its own ascending list of Y coordinates with the function
    values sampled there, so columns may differ in both the number and the
    location of their Y samples. This suits tables whose sample points are only
    known at run time, e.g. saturation functions tabulated per pressure.

    Evaluation is bilinear: the value is first interpolated along Y within the
    two columns bracketing X, then the two results are blended along X. The
    tabulated domain is therefore the region between the linearly blended
    Y-extents of neighbouring columns, not a rectangle.

    Points may be evaluated as plain numbers or as differentiable numbers
    (anything exposing `value` and `derivatives`, e.g. `Evaluation`). The latter
    also yields the exact partial derivatives of the result with respect to
    every upstream variable carried by the inputs.

    Example:
    ```python
    table = UniformXTabulatedFunction()
    for x, column in [(0.0, [(0.0, 0.0), (1.0, 1.0)]), (1.0, [(0.0, 2.0), (1.0, 3.0)])]:
        i = table.append_x_position(x)
        for y, value in column:
            table.append_sample_point(i, y, value)

    table.eval(0.5, 0.5)  # 1.5
    ```
    """

    config: Config = attrs.field(factory=Config)
    """Evaluation and export settings."""
    _store: SampleStore = attrs.field(factory=SampleStore, init=False, repr=False)

    @classmethod
    def from_columns(
        cls,
        x_positions: typing.Iterable[Numeric],
        columns: typing.Iterable[typing.Iterable[typing.Tuple[Numeric, Numeric]]],
        config: typing.Optional[Config] = None,
    ) -> Self:
        """
        Build a table from X coordinates and, per X coordinate, its `(y, value)` samples.

        Both axes must be given in monotonic (ascending or descending) order.

        :param x_positions: X coordinates of the columns.
        :param columns: For each X coordinate, an iterable of `(y, value)` pairs.
        :param config: Evaluation and export settings. Defaults to `Config()`.
        :return: The populated table.
        """
        x_positions = list(x_positions)
        columns = [list(column) for column in columns]
        if len(x_positions) != len(columns):
            raise ValidationError(
                f"Number of X coordinates and columns must match. "
                f"Got {len(x_positions)} vs {len(columns)}"
            )

        table = cls(config=config if config is not None else Config())
        for x, column in zip(x_positions, columns):
            i = table.append_x_position(x)
            for y, value in column:
                table.append_sample_point(i, y, value)
        return table

    def with_config(self, config: Config) -> Self:
        """Return a copy of this table using `config`."""
        table = type(self)(config=config)
        table._store = self._store.copy()
        return table

    def append_x_position(self, x: Numeric) -> int:
        """
        Add an empty column at X coordinate `x`.

        `x` must lie above or below all existing X coordinates.

        :return: Index of the new column, `num_x() - 1` when appended, 0 when prepended.
        :raises ConstructionOrderError: If `x` lies within the current X range.
        """
        return self._store.append_x_position(x)

    def append_sample_point(self, i: int, y: Numeric, value: Numeric) -> int:
        """
        Add the sample `f(x_at(i), y) = value` to column `i`.

        `y` must lie above or below all existing Y coordinates of the column.

        :return: Index of the new sample within the column.
        :raises ConstructionOrderError: If `y` lies within the column's current Y range.
        """
        return self._store.append_sample_point(i, y, value)

    def x_min(self) -> float:
        """Smallest X coordinate."""
        return self._store.x_min()

    def x_max(self) -> float:
        """Largest X coordinate."""
        return self._store.x_max()

    def x_at(self, i: int) -> float:
        """X coordinate of column `i`."""
        return self._store.x_at(i)

    def num_x(self) -> int:
        """Number of columns."""
        return self._store.num_x()

    def y_min(self, i: int) -> float:
        """Smallest Y coordinate of column `i`."""
        return self._store.y_min(i)

    def y_max(self, i: int) -> float:
        """Largest Y coordinate of column `i`."""
        return self._store.y_max(i)

    def y_at(self, i: int, j: int) -> float:
        """Y coordinate of the `j`-th sample of column `i`."""
        return self._store.point_at(i, j).y

    def value_at(self, i: int, j: int) -> float:
        """Function value of the `j`-th sample of column `i`."""
        return self._store.point_at(i, j).value

    def num_y(self, i: int) -> int:
        """Number of samples in column `i`."""
        return self._store.num_y(i)

    def column(self, i: int) -> typing.Tuple[SamplePoint, ...]:
        """Sample points of column `i`, ordered by Y."""
        return self._store.column_points(i)

    i_to_x = x_at
    j_to_y = y_at

    def x_to_i(self, x: Numeric, extrapolate: bool = False) -> FractionalIndex:
        """
        Map an X coordinate to a fractional column index.

        :param x: The X coordinate.
        :param extrapolate: Whether `x` may lie outside `[x_min(), x_max()]`.
        :return: `i + frac` where `i` is the index of the interval holding `x`.
        :raises OutOfRangeError: If `x` is not finite, or out of range and `extrapolate` is False.
        """
        self._check_num_x()
        x = _check_coordinate("x", x)
        if not extrapolate and not (self.x_min() <= x <= self.x_max()):
            raise OutOfRangeError(
                f"x={x} lies outside [{self.x_min()}, {self.x_max()}]"
            )
        return self._store.locate_x(x)

    def y_to_j(self, i: int, y: Numeric, extrapolate: bool = False) -> FractionalIndex:
        """
        Map a Y coordinate to a fractional sample index within column `i`.

        :param i: Index of the column.
        :param y: The Y coordinate.
        :param extrapolate: Whether `y` may lie outside `[y_min(i), y_max(i)]`.
        :return: `j + frac` where `j` is the index of the interval holding `y`.
        :raises OutOfRangeError: If `y` is not finite, or out of range and `extrapolate` is False.
        """
        self._check_column(i)
        y = _check_coordinate("y", y)
        if not extrapolate and not (self.y_min(i) <= y <= self.y_max(i)):
            raise OutOfRangeError(
                f"y={y} lies outside [{self.y_min(i)}, {self.y_max(i)}] of column {i}"
            )
        return self._store.locate_y(i, y)

    def applies(self, x: Numeric, y: Numeric) -> bool:
        """
        Check whether `(x, y)` lies in the tabulated domain.

        Between two columns the admissible Y range is the linear blend of both
        columns' Y ranges, weighted by the position of `x` between them.

        :raises DegenerateTableError: If the table has fewer than two columns,
            or a column bracketing `x` has fewer than two samples.
        """
        self._check_num_x()
        x = float(x)
        y = float(y)
        if not (self.x_min() <= x <= self.x_max()) or not math.isfinite(y):
            return False

        i, alpha = self._locate_x(x)
        return self._within_blended_range(i, alpha, y)

    def eval(
        self,
        x: typing.Any,
        y: typing.Any,
        extrapolate: typing.Optional[bool] = None,
    ) -> typing.Union[float, Evaluation]:
        """
        Evaluate the tabulated function at `(x, y)`.

        If either coordinate is differentiable (exposes `value` and
        `derivatives`), the result is an `Evaluation` whose derivatives are the
        exact partial derivatives of the interpolant with respect to the same
        upstream variables. Otherwise the result is a float.

        :param x: X coordinate, plain or differentiable.
        :param y: Y coordinate, plain or differentiable.
        :param extrapolate: Whether to extend the outermost intervals linearly
            beyond the tabulated domain. Defaults to `config.extrapolate`.
        :return: The interpolated (or extrapolated) value.
        :raises OutOfRangeError: If `(x, y)` is outside the domain and extrapolation is
            disabled, or if either coordinate is not finite.
        :raises DegenerateTableError: If the columns involved have too few samples.
        """
        if extrapolate is None:
            extrapolate = self.config.extrapolate
        if is_differentiable(x) or is_differentiable(y):
            return self._eval_differentiable(x, y, extrapolate)
        return self._eval_plain(float(x), float(y), extrapolate)

    def evaluate_many(
        self,
        x: FloatOrArray,
        y: FloatOrArray,
        extrapolate: typing.Optional[bool] = None,
    ) -> npt.NDArray[np.float64]:
        """
        Evaluate the tabulated function at many points using a compiled kernel.

        `x` and `y` are broadcast against each other. The arithmetic is the same
        as for `eval` with plain numbers.

        :param x: X coordinate(s).
        :param y: Y coordinate(s).
        :param extrapolate: Whether to extrapolate beyond the tabulated domain.
            Defaults to `config.extrapolate`.
        :return: Array of values with the broadcast shape of `x` and `y`.
        :raises OutOfRangeError: If any point is outside the domain and extrapolation
            is disabled, or if any coordinate is not finite.
        :raises DegenerateTableError: If any column has fewer than two samples.
        """
        if extrapolate is None:
            extrapolate = self.config.extrapolate
        self._check_num_x()
        degenerate = [
            i for i in range(self.num_x()) if self._store.num_y(i) < 2
        ]
        if degenerate:
            raise DegenerateTableError(
                f"Columns {degenerate} have fewer than two sample points"
            )

        xs, ys = np.broadcast_arrays(
            np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64)
        )
        finite = np.isfinite(xs) & np.isfinite(ys)
        if not finite.all():
            first = np.unravel_index(int(np.argmin(finite)), finite.shape)
            raise OutOfRangeError(
                f"Cannot get tabulated value for non-finite coordinates "
                f"({float(xs[first])}, {float(ys[first])})"
            )
        shape = xs.shape
        packed = self._store.to_arrays()
        result, in_domain = evaluate_points(
            packed.x_positions,
            packed.offsets,
            packed.y_coordinates,
            packed.values,
            np.ascontiguousarray(xs).reshape(-1),
            np.ascontiguousarray(ys).reshape(-1),
        )

        if not in_domain.all():
            outside = int(np.argmin(in_domain))
            point = (
                float(np.ravel(xs)[outside]),
                float(np.ravel(ys)[outside]),
            )
            if not extrapolate:
                raise OutOfRangeError(
                    f"Attempt to get tabulated value for {point} outside the table "
                    f"({int(np.count_nonzero(~in_domain))} points out of range)"
                )
            if self.config.log_extrapolation:
                logger.debug(
                    f"Extrapolating {int(np.count_nonzero(~in_domain))} of {in_domain.size} points, "
                    f"first at {point}"
                )
        return result.reshape(shape)

    def sample_grid(
        self, refinement: typing.Optional[int] = None
    ) -> typing.Tuple[
        npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64]
    ]:
        """
        Evaluate the table on a regular grid covering its bounding box.

        :param refinement: Grid steps per sample interval. Defaults to `config.export_refinement`.
        :return: Tuple of (X coordinates, Y coordinates, values of shape `(len(xs), len(ys))`).
        """
        if refinement is None:
            refinement = self.config.export_refinement
        return sample_grid(self, refinement)

    def export_grid(
        self,
        sink: typing.Union[TextSink, str, os.PathLike],
        refinement: typing.Optional[int] = None,
    ) -> None:
        """
        Write the table sampled on a regular grid as `x y value` lines, for plotting.

        Each fixed-X scanline is followed by a blank line, the format gnuplot's
        `splot` expects.

        :param sink: Writable text stream or path of the file to write.
        :param refinement: Grid steps per sample interval. Defaults to `config.export_refinement`.
        """
        if refinement is None:
            refinement = self.config.export_refinement
        export_grid(self, sink, refinement)

    def _check_num_x(self) -> None:
        if self._store.num_x() < 2:
            raise DegenerateTableError(
                f"At least 2 X coordinates are required for interpolation, "
                f"got {self._store.num_x()}"
            )

    def _check_column(self, i: int) -> None:
        if self._store.num_y(i) < 2:
            raise DegenerateTableError(
                f"At least 2 sample points are required in column {i} for interpolation, "
                f"got {self._store.num_y(i)}"
            )

    def _locate_x(self, x: float) -> typing.Tuple[int, float]:
        """Return the clamped column interval of `x` and the weight of its right column."""
        i, alpha = split_fractional_index(
            self._store.locate_x(x), self._store.num_x()
        )
        self._check_column(i)
        self._check_column(i + 1)
        return i, alpha

    def _within_blended_range(self, i: int, alpha: float, y: float) -> bool:
        y_low = (1.0 - alpha) * self.y_min(i) + alpha * self.y_min(i + 1)
        y_high = (1.0 - alpha) * self.y_max(i) + alpha * self.y_max(i + 1)
        return y_low <= y <= y_high

    def _stencil(self, x: float, y: float, extrapolate: bool) -> _Stencil:
        """
        Locate the four samples surrounding `(x, y)`.

        :return: Tuple of (i, alpha, j1, beta1, j2, beta2) where `i` is the left
            column, `j1`/`j2` the lower samples in columns `i`/`i + 1`, and
            alpha/beta the interpolation weights of the upper neighbours.
        """
        self._check_num_x()
        if not (math.isfinite(x) and math.isfinite(y)):
            raise OutOfRangeError(
                f"Cannot get tabulated value for non-finite coordinates ({x}, {y})"
            )
        i, alpha = self._locate_x(x)
        inside = (
            self.x_min() <= x <= self.x_max()
            and self._within_blended_range(i, alpha, y)
        )
        if not inside:
            if not extrapolate:
                raise OutOfRangeError(
                    f"Attempt to get tabulated value for ({x}, {y}) outside the table"
                )
            if self.config.log_extrapolation:
                logger.debug(f"Extrapolating table value at ({x}, {y})")

        j1, beta1 = split_fractional_index(
            self._store.locate_y(i, y), self._store.num_y(i)
        )
        j2, beta2 = split_fractional_index(
            self._store.locate_y(i + 1, y),
            self._store.num_y(i + 1),
        )
        return i, alpha, j1, beta1, j2, beta2

    def _eval_plain(self, x: float, y: float, extrapolate: bool) -> float:
        i, alpha, j1, beta1, j2, beta2 = self._stencil(x, y, extrapolate)
        point_at = self._store.point_at
        s1 = point_at(i, j1).value * (1.0 - beta1) + point_at(i, j1 + 1).value * beta1
        s2 = (
            point_at(i + 1, j2).value * (1.0 - beta2)
            + point_at(i + 1, j2 + 1).value * beta2
        )
        return s1 * (1.0 - alpha) + s2 * alpha

    def _eval_differentiable(
        self, x: typing.Any, y: typing.Any, extrapolate: bool
    ) -> Evaluation:
        x = as_evaluation(x)
        y = as_evaluation(y)
        if x.size and y.size and x.size != y.size:
            raise ValidationError(
                f"Coordinates must carry the same number of derivatives. "
                f"Got {x.size} vs {y.size}"
            )
        size = max(x.size, y.size)
        dx = x.derivatives if x.size else np.zeros(size)
        dy = y.derivatives if y.size else np.zeros(size)

        i, alpha_value, j1, beta1_value, j2, beta2_value = self._stencil(
            x.value, y.value, extrapolate
        )
        lower1, upper1 = self._store.point_at(i, j1), self._store.point_at(i, j1 + 1)
        lower2, upper2 = (
            self._store.point_at(i + 1, j2),
            self._store.point_at(i + 1, j2 + 1),
        )

        # The weights are piecewise linear in x and y, so within the located
        # intervals their derivatives are the input derivatives over the interval width.
        alpha = Evaluation(
            alpha_value, dx / (self.x_at(i + 1) - self.x_at(i))
        )
        beta1 = Evaluation(beta1_value, dy / (upper1.y - lower1.y))
        beta2 = Evaluation(beta2_value, dy / (upper2.y - lower2.y))

        s1 = lower1.value * (1.0 - beta1) + upper1.value * beta1
        s2 = lower2.value * (1.0 - beta2) + upper2.value * beta2
        return s1 * (1.0 - alpha) + s2 * alpha
