import math

import pytest

from uxtab import UniformXTabulatedFunction


def smooth_surface(x: float, y: float) -> float:
    return math.sin(x) + y * y - 0.3 * x * y


RAGGED_COLUMNS = {
    0.0: [0.0, 0.5, 1.0],
    1.0: [0.2, 0.6, 0.9, 1.4],
    3.0: [-0.1, 0.4, 1.2],
    4.0: [0.0, 1.0],
    6.0: [0.1, 0.3, 0.7, 1.1],
}


@pytest.fixture
def linear_table() -> UniformXTabulatedFunction:
    """Three columns at x = 0, 1, 2 sampled at y = 0, 1 with f(x, y) = 2x + y."""
    return UniformXTabulatedFunction.from_columns(
        [0.0, 1.0, 2.0],
        [
            [(0.0, 0.0), (1.0, 1.0)],
            [(0.0, 2.0), (1.0, 3.0)],
            [(0.0, 4.0), (1.0, 5.0)],
        ],
    )


@pytest.fixture
def ragged_table() -> UniformXTabulatedFunction:
    """Columns with differing numbers and locations of Y samples."""
    return UniformXTabulatedFunction.from_columns(
        list(RAGGED_COLUMNS),
        [[(y, smooth_surface(x, y)) for y in ys] for x, ys in RAGGED_COLUMNS.items()],
    )
