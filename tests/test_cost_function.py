import numpy as np
import pytest

from zmpopt import create_min_acc_cost_function, Axis, Coeff, var_index
from zmpopt.errors import InvalidGaitRequest

from conftest import swing_splines


def test_unit_duration_values():
    cost = create_min_acc_cost_function(swing_splines([1.0]), np.array([1.0, 1.0]))
    a, b = var_index(0, Axis.X, Coeff.A), var_index(0, Axis.X, Coeff.B)
    c, d = var_index(0, Axis.X, Coeff.C), var_index(0, Axis.X, Coeff.D)
    assert cost.M[a, a] == pytest.approx(400 / 7)
    assert cost.M[a, b] == pytest.approx(40.0)
    assert cost.M[a, c] == pytest.approx(24.0)
    assert cost.M[a, d] == pytest.approx(10.0)
    assert cost.M[b, b] == pytest.approx(144 / 5)
    assert cost.M[b, c] == pytest.approx(18.0)
    assert cost.M[b, d] == pytest.approx(8.0)
    assert cost.M[c, c] == pytest.approx(12.0)
    assert cost.M[c, d] == pytest.approx(6.0)
    assert cost.M[d, d] == pytest.approx(4.0)
    np.testing.assert_array_equal(cost.v, 0.0)


def test_weighted_single_spline():
    # T = 2, wx = 3: entry (A, A) is 3 * 400/7 * 2^7
    cost = create_min_acc_cost_function(swing_splines([2.0]), np.array([3.0, 0.5]))
    ax, ay = var_index(0, Axis.X, Coeff.A), var_index(0, Axis.Y, Coeff.A)
    assert cost.M[ax, ax] == pytest.approx(3.0 * 400 / 7 * 2 ** 7)
    assert cost.M[ay, ay] == pytest.approx(0.5 * 400 / 7 * 2 ** 7)


def test_matrix_symmetric_and_block_diagonal():
    splines = swing_splines([0.5, 0.8, 1.2])
    cost = create_min_acc_cost_function(splines, np.array([1.0, 2.0]))
    np.testing.assert_allclose(cost.M, cost.M.T)
    # no coupling between splines or axes
    for i in range(cost.M.shape[0]):
        for j in range(cost.M.shape[1]):
            if i // 4 != j // 4:
                assert cost.M[i, j] == 0.0


def test_cost_equals_integrated_squared_acceleration():
    splines = swing_splines([0.7])
    cost = create_min_acc_cost_function(splines, np.array([1.0, 1.0]))
    x = np.random.default_rng(2).normal(size=8)
    coeffs = splines.get_spline_coefficients(x, np.zeros(2), np.zeros(2))

    expected = 0.0
    for dim in Axis:
        acc = np.polyder(coeffs[0, dim], 2)
        expected += np.polyval(np.polyint(np.polymul(acc, acc)), 0.7)
    assert x @ cost.M @ x == pytest.approx(expected, rel=1e-9)


def test_zero_weight_axis_has_empty_block():
    cost = create_min_acc_cost_function(swing_splines([1.0]), np.array([1.0, 0.0]))
    ay = var_index(0, Axis.Y, Coeff.A)
    assert not np.any(cost.M[ay:ay + 4, :])
    assert not np.any(cost.M[:, ay:ay + 4])
    assert np.any(cost.M[:4, :4])


def test_zero_weights_give_zero_matrix():
    cost = create_min_acc_cost_function(swing_splines([0.5, 0.5]), np.zeros(2))
    assert not np.any(cost.M)


def test_jerk_cost():
    cost = create_min_acc_cost_function(swing_splines([1.0]), np.ones(2), derivative=3)
    a, d = var_index(0, Axis.X, Coeff.A), var_index(0, Axis.X, Coeff.D)
    # jerk of A t^5 is 60 t^2, of D t^2 zero
    assert cost.M[a, a] == pytest.approx(3600 / 5)
    assert cost.M[d, d] == 0.0
    np.testing.assert_allclose(cost.M, cost.M.T)


def test_invalid_arguments():
    splines = swing_splines([1.0])
    with pytest.raises(ValueError):
        create_min_acc_cost_function(splines, np.ones(2), derivative=1)
    with pytest.raises(InvalidGaitRequest):
        create_min_acc_cost_function(splines, np.ones(3))
