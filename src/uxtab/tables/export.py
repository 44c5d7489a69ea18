"""Diagnostic text export of tabulated functions for external plotting (e.g. gnuplot)."""

import logging
import os
import typing
from pathlib import Path

import numpy as np
import numpy.typing as npt

from uxtab.errors import ValidationError
from uxtab.types import TextSink

if typing.TYPE_CHECKING:
    from uxtab.tables.tabulated import UniformXTabulatedFunction


logger = logging.getLogger(__name__)

__all__ = ["sample_grid", "export_grid", "format_grid"]


def sample_grid(
    table: "UniformXTabulatedFunction", refinement: int = 3
) -> typing.Tuple[
    npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64]
]:
    """
    Evaluate `table` on a regular grid spanning its bounding box.

    The grid has `refinement * num_x + 1` X coordinates from `x_min` to `x_max`
    and `refinement * max(num_y) + 1` Y coordinates from the smallest to the
    largest Y coordinate of any column. Since the bounding box is larger than
    the tabulated domain, points are extrapolated where needed.

    :param table: The table to sample.
    :param refinement: Grid steps per sample interval.
    :return: Tuple of (X coordinates, Y coordinates, values of shape `(len(xs), len(ys))`).
    """
    if refinement < 1:
        raise ValidationError(f"`refinement` must be at least 1, got {refinement}")

    num_x = table.num_x()
    x_low = table.x_min()
    x_high = table.x_max()
    y_low = min(table.y_min(i) for i in range(num_x))
    y_high = max(table.y_max(i) for i in range(num_x))
    num_y = max(table.num_y(i) for i in range(num_x))

    m = num_x * refinement
    n = num_y * refinement
    xs = x_low + (x_high - x_low) * np.arange(m + 1, dtype=np.float64) / m
    ys = y_low + (y_high - y_low) * np.arange(n + 1, dtype=np.float64) / n

    grid_x, grid_y = np.meshgrid(xs, ys, indexing="ij")
    values = table.evaluate_many(grid_x, grid_y, extrapolate=True)
    return xs, ys, values


def format_grid(
    xs: npt.NDArray[np.float64],
    ys: npt.NDArray[np.float64],
    values: npt.NDArray[np.float64],
) -> typing.Iterator[str]:
    """Yield `x y value` lines, with an empty line closing every fixed-X scanline."""
    for a, x in enumerate(xs):
        for b, y in enumerate(ys):
            yield f"{float(x)} {float(y)} {float(values[a, b])}\n"
        yield "\n"


def export_grid(
    table: "UniformXTabulatedFunction",
    sink: typing.Union[TextSink, str, os.PathLike],
    refinement: int = 3,
) -> None:
    """
    Sample `table` on a regular grid and write it as whitespace separated
    `x y value` lines.

    :param table: The table to export.
    :param sink: Writable text stream or path of the file to write.
    :param refinement: Grid steps per sample interval.
    """
    xs, ys, values = sample_grid(table, refinement)
    if isinstance(sink, (str, os.PathLike)):
        path = Path(sink)
        with path.open("w", encoding="utf-8") as stream:
            stream.writelines(format_grid(xs, ys, values))
        logger.info(f"Exported {values.size} grid points to {path}")
        return

    for line in format_grid(xs, ys, values):
        sink.write(line)
    logger.info(f"Exported {values.size} grid points")
