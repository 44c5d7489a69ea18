"""Storage of sample points for tables sampled column by column along X."""

import logging
import math
import typing

import attrs
import numpy as np
import numpy.typing as npt

from uxtab.errors import ConstructionOrderError, DegenerateTableError, ValidationError
from uxtab.tables.locator import fractional_index


logger = logging.getLogger(__name__)

__all__ = ["SamplePoint", "SampleStore", "PackedSamples"]


@attrs.frozen(slots=True)
class SamplePoint:
    """A tabulated value `value = f(x, y)`."""

    x: float
    """X coordinate. Equal to the X coordinate of the column holding the point."""
    y: float
    """Y coordinate."""
    value: float
    """Function value at (x, y)."""


class PackedSamples(typing.NamedTuple):
    """
    Contiguous snapshot of a `SampleStore`, laid out for compiled kernels.

    The samples of column `i` occupy `y_coordinates[offsets[i]:offsets[i + 1]]`
    and `values[offsets[i]:offsets[i + 1]]`.
    """

    x_positions: npt.NDArray[np.float64]
    offsets: npt.NDArray[np.int64]
    y_coordinates: npt.NDArray[np.float64]
    values: npt.NDArray[np.float64]


def _check_finite(name: str, number: float) -> float:
    number = float(number)
    if not math.isfinite(number):
        raise ValidationError(f"`{name}` must be finite, got {number}")
    return number


@attrs.define
class SampleStore:
    """
    Ordered X coordinates, each paired with a column of sample points ordered by Y.

    Columns may hold different numbers of samples. Both axes only grow at
    their ends: a new coordinate must be either smaller than all or larger than
    all coordinates already present on that axis.
    """

    _x_positions: typing.List[float] = attrs.field(factory=list, init=False)
    _columns: typing.List[typing.List[SamplePoint]] = attrs.field(
        factory=list, init=False
    )
    _y_coordinates: typing.List[typing.List[float]] = attrs.field(
        factory=list, init=False
    )

    def append_x_position(self, x: float) -> int:
        """
        Add a new, empty column at X coordinate `x`.

        :param x: X coordinate of the column. Must be larger or smaller than all existing ones.
        :return: Index of the new column.
        :raises ConstructionOrderError: If `x` is not a new extremum.
        """
        x = _check_finite("x", x)
        if not self._x_positions or self._x_positions[-1] < x:
            self._x_positions.append(x)
            self._columns.append([])
            self._y_coordinates.append([])
            logger.debug(f"Appended column {len(self._x_positions) - 1} at x={x}")
            return len(self._x_positions) - 1

        if self._x_positions[0] > x:
            self._x_positions.insert(0, x)
            self._columns.insert(0, [])
            self._y_coordinates.insert(0, [])
            logger.debug(f"Prepended column at x={x}")
            return 0

        raise ConstructionOrderError(
            f"Cannot insert x={x} into [{self._x_positions[0]}, {self._x_positions[-1]}]. "
            "X coordinates must be specified in either monotonically ascending or descending order."
        )

    def append_sample_point(self, i: int, y: float, value: float) -> int:
        """
        Add a sample point to column `i`.

        :param i: Index of the column.
        :param y: Y coordinate of the sample. Must be larger or smaller than all existing ones in the column.
        :param value: Tabulated function value at (x_i, y).
        :return: Index of the new sample within the column.
        :raises ConstructionOrderError: If `y` is not a new extremum of the column.
        """
        column = self._column(i)
        y_coordinates = self._y_coordinates[i]
        y = _check_finite("y", y)
        value = _check_finite("value", value)
        point = SamplePoint(x=self._x_positions[i], y=y, value=value)

        if not column or column[-1].y < y:
            column.append(point)
            y_coordinates.append(y)
            return len(column) - 1

        if column[0].y > y:
            column.insert(0, point)
            y_coordinates.insert(0, y)
            return 0

        raise ConstructionOrderError(
            f"Cannot insert y={y} into [{column[0].y}, {column[-1].y}] of column {i}. "
            "Y coordinates must be specified in either monotonically ascending or descending order."
        )

    def _column(self, i: int) -> typing.List[SamplePoint]:
        if not 0 <= i < len(self._columns):
            raise IndexError(
                f"Column index {i} out of range for {len(self._columns)} columns"
            )
        return self._columns[i]

    def column_points(self, i: int) -> typing.Tuple[SamplePoint, ...]:
        """Sample points of column `i`, ordered by Y."""
        return tuple(self._column(i))

    @property
    def x_positions(self) -> typing.Tuple[float, ...]:
        return tuple(self._x_positions)

    def num_x(self) -> int:
        return len(self._x_positions)

    def num_y(self, i: int) -> int:
        return len(self._column(i))

    def x_at(self, i: int) -> float:
        if not 0 <= i < len(self._x_positions):
            raise IndexError(
                f"Column index {i} out of range for {len(self._x_positions)} columns"
            )
        return self._x_positions[i]

    def point_at(self, i: int, j: int) -> SamplePoint:
        column = self._column(i)
        if not 0 <= j < len(column):
            raise IndexError(
                f"Sample index {j} out of range for {len(column)} samples in column {i}"
            )
        return column[j]

    def x_min(self) -> float:
        if not self._x_positions:
            raise DegenerateTableError("Table has no X coordinates")
        return self._x_positions[0]

    def x_max(self) -> float:
        if not self._x_positions:
            raise DegenerateTableError("Table has no X coordinates")
        return self._x_positions[-1]

    def y_min(self, i: int) -> float:
        column = self._column(i)
        if not column:
            raise DegenerateTableError(f"Column {i} has no sample points")
        return column[0].y

    def y_max(self, i: int) -> float:
        column = self._column(i)
        if not column:
            raise DegenerateTableError(f"Column {i} has no sample points")
        return column[-1].y

    def y_coordinates(self, i: int) -> typing.Tuple[float, ...]:
        """Y coordinates of column `i`, ascending."""
        self._column(i)
        return tuple(self._y_coordinates[i])

    def locate_x(self, x: float) -> float:
        """Fractional column index of `x`. Requires at least two columns."""
        return fractional_index(self._x_positions, x)

    def locate_y(self, i: int, y: float) -> float:
        """Fractional sample index of `y` within column `i`. Requires at least two samples."""
        self._column(i)
        return fractional_index(self._y_coordinates[i], y)

    def to_arrays(self) -> PackedSamples:
        """Pack all columns into contiguous arrays."""
        counts = [len(column) for column in self._columns]
        offsets = np.zeros(len(counts) + 1, dtype=np.int64)
        offsets[1:] = np.cumsum(counts, dtype=np.int64)
        y_coordinates = np.fromiter(
            (point.y for column in self._columns for point in column),
            dtype=np.float64,
            count=int(offsets[-1]),
        )
        values = np.fromiter(
            (point.value for column in self._columns for point in column),
            dtype=np.float64,
            count=int(offsets[-1]),
        )
        return PackedSamples(
            x_positions=np.asarray(self._x_positions, dtype=np.float64),
            offsets=offsets,
            y_coordinates=y_coordinates,
            values=values,
        )

    def copy(self) -> "SampleStore":
        """Return an independent copy of the store. Sample points are immutable and shared."""
        new = SampleStore()
        new._x_positions = list(self._x_positions)
        new._columns = [list(column) for column in self._columns]
        new._y_coordinates = [list(column) for column in self._y_coordinates]
        return new
