import attrs
import numpy as np
import pytest

from uxtab import Evaluation, ValidationError, as_evaluation, is_differentiable


@attrs.frozen
class ForeignDual:
    value: float
    derivatives: tuple


def test_variable_seeds_unit_derivative():
    variable = Evaluation.variable(2.0, index=1, size=3)
    assert variable.value == 2.0
    np.testing.assert_array_equal(variable.derivatives, [0.0, 1.0, 0.0])
    assert variable.size == 3


def test_variable_index_must_be_in_range():
    with pytest.raises(ValidationError):
        Evaluation.variable(1.0, index=2, size=2)


def test_constant_has_zero_derivatives():
    assert Evaluation.constant(4.0).size == 0
    np.testing.assert_array_equal(Evaluation.constant(4.0, size=2).derivatives, [0.0, 0.0])


def test_sum_and_difference():
    a = Evaluation(3.0, [1.0, 2.0])
    b = Evaluation(5.0, [0.5, -1.0])
    total = a + b
    assert total.value == 8.0
    np.testing.assert_allclose(total.derivatives, [1.5, 1.0])
    difference = a - b
    assert difference.value == -2.0
    np.testing.assert_allclose(difference.derivatives, [0.5, 3.0])
    reverse = 1.0 - a
    assert reverse.value == -2.0
    np.testing.assert_allclose(reverse.derivatives, [-1.0, -2.0])
    np.testing.assert_allclose((-a).derivatives, [-1.0, -2.0])
    assert (2 + a).value == 5.0


def test_product_rule():
    a = Evaluation(3.0, [1.0, 0.0])
    b = Evaluation(5.0, [0.0, 1.0])
    product = a * b
    assert product.value == 15.0
    np.testing.assert_allclose(product.derivatives, [5.0, 3.0])
    scaled = 2.0 * a
    assert scaled.value == 6.0
    np.testing.assert_allclose(scaled.derivatives, [2.0, 0.0])


def test_quotient_rule():
    a = Evaluation(3.0, [1.0, 0.0])
    b = Evaluation(4.0, [0.0, 1.0])
    quotient = a / b
    assert quotient.value == 0.75
    np.testing.assert_allclose(quotient.derivatives, [0.25, -3.0 / 16.0])
    inverse = 2.0 / b
    assert inverse.value == 0.5
    np.testing.assert_allclose(inverse.derivatives, [0.0, -2.0 / 16.0])
    np.testing.assert_allclose((a / 2.0).derivatives, [0.5, 0.0])


def test_values_match_plain_arithmetic():
    a, b, c = 0.1, 0.7, 1.3
    plain = a * (1.0 - b) + c * b
    dual = a * (1.0 - Evaluation(b, [1.0])) + c * Evaluation(b, [1.0])
    assert dual.value == plain


def test_constants_widen_to_any_length():
    a = Evaluation(2.0, [1.0, 2.0, 3.0])
    b = Evaluation.constant(3.0)
    np.testing.assert_allclose((a * b).derivatives, [3.0, 6.0, 9.0])
    np.testing.assert_allclose((b - a).derivatives, [-1.0, -2.0, -3.0])


def test_mismatched_lengths_are_rejected():
    with pytest.raises(ValidationError):
        Evaluation(1.0, [1.0]) + Evaluation(1.0, [1.0, 0.0])


def test_derivatives_are_read_only():
    seed = np.array([1.0, 2.0])
    evaluation = Evaluation(1.0, seed)
    seed[0] = 10.0
    assert evaluation.derivatives[0] == 1.0
    with pytest.raises(ValueError):
        evaluation.derivatives[0] = 5.0


def test_foreign_differentiable_numbers_are_lifted():
    foreign = ForeignDual(1.5, (0.0, 2.0))
    assert is_differentiable(foreign)
    lifted = as_evaluation(foreign)
    assert isinstance(lifted, Evaluation)
    assert lifted.value == 1.5
    np.testing.assert_array_equal(lifted.derivatives, [0.0, 2.0])


@pytest.mark.parametrize("number", [1, 1.0, np.float64(2.0), np.int32(3)])
def test_plain_numbers_are_not_differentiable(number):
    assert not is_differentiable(number)
    lifted = as_evaluation(number, size=2)
    assert lifted.value == float(number)
    np.testing.assert_array_equal(lifted.derivatives, [0.0, 0.0])


def test_unsupported_operand_types():
    with pytest.raises(TypeError):
        Evaluation(1.0) + "a"
