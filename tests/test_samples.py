import math

import numpy as np
import pytest

from uxtab import (
    ConstructionOrderError,
    DegenerateTableError,
    SamplePoint,
    SampleStore,
    UniformXTabulatedFunction,
    ValidationError,
)


def test_ascending_x_positions_are_appended():
    table = UniformXTabulatedFunction()
    for expected, x in enumerate([-1.0, 0.0, 2.5, 7.0]):
        assert table.append_x_position(x) == expected
        assert table.x_at(expected) == x
    assert table.num_x() == 4
    assert table.x_min() == -1.0
    assert table.x_max() == 7.0


def test_descending_x_positions_are_prepended():
    table = UniformXTabulatedFunction()
    assert table.append_x_position(5.0) == 0
    for x in [3.0, 1.0, -2.0]:
        assert table.append_x_position(x) == 0
        assert table.x_at(0) == x
    assert [table.x_at(i) for i in range(table.num_x())] == [-2.0, 1.0, 3.0, 5.0]


def test_interior_x_position_is_rejected(linear_table):
    with pytest.raises(ConstructionOrderError):
        linear_table.append_x_position(0.5)
    assert linear_table.num_x() == 3
    assert [linear_table.x_at(i) for i in range(3)] == [0.0, 1.0, 2.0]


@pytest.mark.parametrize("x", [0.0, 1.0, 2.0])
def test_duplicate_x_position_is_rejected(linear_table, x):
    with pytest.raises(ConstructionOrderError):
        linear_table.append_x_position(x)


def test_construction_order_error_is_a_value_error():
    assert issubclass(ConstructionOrderError, ValidationError)
    assert issubclass(ConstructionOrderError, ValueError)


def test_sample_points_grow_from_both_ends():
    table = UniformXTabulatedFunction()
    i = table.append_x_position(1.5)
    assert table.append_sample_point(i, 0.5, 10.0) == 0
    assert table.append_sample_point(i, 0.7, 11.0) == 1
    assert table.append_sample_point(i, 0.1, 9.0) == 0
    assert table.num_y(i) == 3
    assert [table.y_at(i, j) for j in range(3)] == [0.1, 0.5, 0.7]
    assert [table.value_at(i, j) for j in range(3)] == [9.0, 10.0, 11.0]
    assert table.y_min(i) == 0.1
    assert table.y_max(i) == 0.7


@pytest.mark.parametrize("y", [0.0, 0.5, 1.0])
def test_interior_or_duplicate_sample_point_is_rejected(linear_table, y):
    with pytest.raises(ConstructionOrderError):
        linear_table.append_sample_point(1, y, 42.0)
    assert linear_table.num_y(1) == 2
    assert linear_table.value_at(1, 0) == 2.0


def test_sample_points_record_their_column_x():
    table = UniformXTabulatedFunction()
    i = table.append_x_position(3.0)
    table.append_sample_point(i, 0.0, 1.0)
    # Prepending a column shifts indices but not coordinates
    table.append_x_position(1.0)
    assert table.column(1) == (SamplePoint(x=3.0, y=0.0, value=1.0),)
    assert table.column(0) == ()


def test_columns_are_independent(ragged_table):
    assert [ragged_table.num_y(i) for i in range(ragged_table.num_x())] == [3, 4, 3, 2, 4]


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
def test_non_finite_coordinates_are_rejected(bad):
    table = UniformXTabulatedFunction()
    with pytest.raises(ValidationError):
        table.append_x_position(bad)
    i = table.append_x_position(0.0)
    with pytest.raises(ValidationError):
        table.append_sample_point(i, bad, 1.0)
    with pytest.raises(ValidationError):
        table.append_sample_point(i, 1.0, bad)
    assert table.num_y(i) == 0


def test_column_indices_are_bounds_checked(linear_table):
    with pytest.raises(IndexError):
        linear_table.append_sample_point(3, 5.0, 1.0)
    with pytest.raises(IndexError):
        linear_table.x_at(-1)
    with pytest.raises(IndexError):
        linear_table.y_at(0, 2)
    with pytest.raises(IndexError):
        linear_table.num_y(7)


def test_empty_table_and_column_have_no_extent():
    table = UniformXTabulatedFunction()
    with pytest.raises(DegenerateTableError):
        table.x_min()
    with pytest.raises(DegenerateTableError):
        table.x_max()
    i = table.append_x_position(0.0)
    with pytest.raises(DegenerateTableError):
        table.y_min(i)
    with pytest.raises(DegenerateTableError):
        table.y_max(i)


def test_positional_aliases(linear_table):
    assert linear_table.i_to_x(2) == 2.0
    assert linear_table.j_to_y(1, 1) == 1.0


def test_from_columns_accepts_descending_input():
    table = UniformXTabulatedFunction.from_columns(
        [2.0, 1.0, 0.0],
        [
            [(1.0, 5.0), (0.0, 4.0)],
            [(1.0, 3.0), (0.0, 2.0)],
            [(1.0, 1.0), (0.0, 0.0)],
        ],
    )
    assert [table.x_at(i) for i in range(3)] == [0.0, 1.0, 2.0]
    assert [table.value_at(2, j) for j in range(2)] == [4.0, 5.0]


def test_from_columns_rejects_mismatched_lengths():
    with pytest.raises(ValidationError):
        UniformXTabulatedFunction.from_columns([0.0, 1.0], [[(0.0, 1.0)]])


def test_from_columns_rejects_interleaved_input():
    with pytest.raises(ConstructionOrderError):
        UniformXTabulatedFunction.from_columns(
            [0.0, 2.0, 1.0], [[(0.0, 0.0)], [(0.0, 0.0)], [(0.0, 0.0)]]
        )


def test_packed_arrays_follow_column_layout(ragged_table):
    packed = ragged_table._store.to_arrays()
    np.testing.assert_array_equal(packed.x_positions, [0.0, 1.0, 3.0, 4.0, 6.0])
    np.testing.assert_array_equal(packed.offsets, [0, 3, 7, 10, 12, 16])
    start, stop = packed.offsets[2], packed.offsets[3]
    np.testing.assert_array_equal(packed.y_coordinates[start:stop], [-0.1, 0.4, 1.2])
    assert packed.values[start] == ragged_table.value_at(2, 0)


def test_store_copy_is_independent():
    store = SampleStore()
    i = store.append_x_position(0.0)
    store.append_sample_point(i, 0.0, 1.0)
    copy = store.copy()
    copy.append_sample_point(i, 1.0, 2.0)
    copy.append_x_position(1.0)
    assert store.num_y(i) == 1
    assert store.num_x() == 1


def test_accessors_return_independent_snapshots():
    store = SampleStore()
    for x in [0.0, 1.0]:
        i = store.append_x_position(x)
        store.append_sample_point(i, 0.0, x)
        store.append_sample_point(i, 1.0, x + 1.0)

    x_positions = store.x_positions
    points = store.column_points(0)
    y_coordinates = store.y_coordinates(0)
    assert isinstance(x_positions, tuple)
    assert isinstance(points, tuple)
    assert isinstance(y_coordinates, tuple)

    store.append_x_position(2.0)
    store.append_sample_point(0, 2.0, 5.0)
    assert x_positions == (0.0, 1.0)
    assert len(points) == 2
    assert y_coordinates == (0.0, 1.0)
    assert store.x_positions == (0.0, 1.0, 2.0)
    assert store.y_coordinates(0) == (0.0, 1.0, 2.0)


def test_locate_uses_stored_coordinates():
    store = SampleStore()
    for x in [0.0, 2.0, 3.0]:
        i = store.append_x_position(x)
        for y in [0.0, 4.0]:
            store.append_sample_point(i, y, 0.0)
    assert store.locate_x(1.0) == 0.5
    assert store.locate_x(2.5) == 1.5
    assert store.locate_y(1, 1.0) == 0.25
    with pytest.raises(IndexError):
        store.locate_y(3, 1.0)
