"""
Mapping of continuous coordinates to fractional sample indices.

The functions here are written in the subset of Python understood by numba, so
the same code serves both the per-point evaluators (called as plain Python on
lists) and the compiled batch kernels (called on contiguous arrays).
"""

import typing

import numba
import numpy as np
import numpy.typing as npt


__all__ = ["fractional_index", "split_fractional_index", "evaluate_points"]


def fractional_index(coordinates: typing.Sequence[float], value: float) -> float:
    """
    Locate `value` among strictly ascending `coordinates`.

    The integer part of the result is the index `i` of the interval
    `[coordinates[i], coordinates[i + 1]]` and the decimal part is the relative
    position of `value` within it. Values beyond either end are mapped using the
    outermost interval, so the result may be negative or exceed
    `len(coordinates) - 1`.

    Values near either end are resolved without searching. Everything else is
    located by interval halving.

    :param coordinates: At least two strictly ascending coordinates.
    :param value: The coordinate to locate.
    :return: The fractional index of `value`.
    """
    n = len(coordinates)
    if value <= coordinates[1]:
        segment = 0
    elif value >= coordinates[n - 2]:
        segment = n - 2
    else:
        segment = 1
        upper = n - 2
        while segment + 1 < upper:
            pivot = (segment + upper) // 2
            if value < coordinates[pivot]:
                upper = pivot
            else:
                segment = pivot

    lower_coordinate = coordinates[segment]
    upper_coordinate = coordinates[segment + 1]
    return segment + (value - lower_coordinate) / (upper_coordinate - lower_coordinate)


def split_fractional_index(index: float, count: int) -> typing.Tuple[int, float]:
    """
    Split a fractional index into an interval index and the weight within it.

    The interval index is clamped to `[0, count - 2]`, the weight takes up the
    remainder so that extrapolated points get weights below 0 or above 1.

    :param index: Fractional index as returned by `fractional_index`.
    :param count: Number of coordinates the index refers to.
    :return: Tuple of (interval index, weight).
    """
    # Clamp before truncating, `int` cannot represent huge or non-finite indices
    interval = int(max(0.0, min(count - 2.0, index)))
    return interval, index - interval


_fractional_index_kernel = numba.njit(cache=True)(fractional_index)
_split_fractional_index_kernel = numba.njit(cache=True)(split_fractional_index)


@numba.njit(cache=True)
def _evaluate_points_kernel(
    x_positions: npt.NDArray[np.float64],
    offsets: npt.NDArray[np.int64],
    y_coordinates: npt.NDArray[np.float64],
    values: npt.NDArray[np.float64],
    xs: npt.NDArray[np.float64],
    ys: npt.NDArray[np.float64],
    result: npt.NDArray[np.float64],
    in_domain: npt.NDArray[np.bool_],
) -> None:
    num_x = x_positions.shape[0]
    x_min = x_positions[0]
    x_max = x_positions[num_x - 1]

    for k in range(xs.shape[0]):
        x = xs[k]
        y = ys[k]

        i, alpha = _split_fractional_index_kernel(
            _fractional_index_kernel(x_positions, x), num_x
        )
        first_start = offsets[i]
        second_start = offsets[i + 1]
        first_column = y_coordinates[first_start:second_start]
        second_column = y_coordinates[second_start : offsets[i + 2]]

        j1, beta1 = _split_fractional_index_kernel(
            _fractional_index_kernel(first_column, y), first_column.shape[0]
        )
        j2, beta2 = _split_fractional_index_kernel(
            _fractional_index_kernel(second_column, y), second_column.shape[0]
        )

        s1 = (
            values[first_start + j1] * (1.0 - beta1)
            + values[first_start + j1 + 1] * beta1
        )
        s2 = (
            values[second_start + j2] * (1.0 - beta2)
            + values[second_start + j2 + 1] * beta2
        )
        result[k] = s1 * (1.0 - alpha) + s2 * alpha

        if x < x_min or x > x_max:
            in_domain[k] = False
        else:
            y_low = (1.0 - alpha) * first_column[0] + alpha * second_column[0]
            y_high = (1.0 - alpha) * first_column[first_column.shape[0] - 1] + (
                alpha * second_column[second_column.shape[0] - 1]
            )
            in_domain[k] = y_low <= y and y <= y_high


def evaluate_points(
    x_positions: npt.NDArray[np.float64],
    offsets: npt.NDArray[np.int64],
    y_coordinates: npt.NDArray[np.float64],
    values: npt.NDArray[np.float64],
    xs: npt.NDArray[np.float64],
    ys: npt.NDArray[np.float64],
) -> typing.Tuple[npt.NDArray[np.float64], npt.NDArray[np.bool_]]:
    """
    Bilinearly interpolate (or extrapolate) packed table samples at many points.

    Requires at least two columns and at least two samples in every column.

    :param x_positions: Ascending X coordinates of the columns.
    :param offsets: Start offset of each column in `y_coordinates`/`values`, plus the total count.
    :param y_coordinates: Concatenated ascending Y coordinates of all columns.
    :param values: Concatenated sample values of all columns.
    :param xs: One-dimensional array of X coordinates to evaluate at.
    :param ys: One-dimensional array of Y coordinates to evaluate at, same length as `xs`.
    :return: Tuple of (interpolated values, mask of points inside the tabulated domain).
    """
    result = np.empty(xs.shape[0], dtype=np.float64)
    in_domain = np.ones(xs.shape[0], dtype=np.bool_)
    _evaluate_points_kernel(
        x_positions, offsets, y_coordinates, values, xs, ys, result, in_domain
    )
    return result, in_domain
