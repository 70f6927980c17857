import math
import numpy as np
from .errors import InvalidGaitRequest

MAX_EXPONENT = 10  # highest power handed out by cache_exponents

# power of t multiplying each letter A..F
COEFF_POWERS = (5, 4, 3, 2, 1, 0)


def cache_exponents(t, order):
    """
    Precompute the powers of a duration.
    Args:
        t: Time or duration (float)
        order: Highest power required

    Returns:
        Array [t^0, t^1, ..., t^order]
    """
    if order < 0 or order > MAX_EXPONENT:
        raise ValueError(f"exponent order must be in [0, {MAX_EXPONENT}]; got {order}")
    t_span = np.empty(order + 1)
    t_span[0] = 1.0
    for i in range(1, order + 1):
        t_span[i] = t_span[i - 1] * t
    return t_span


def derivative_factor(power, derivative):
    """
    Factor n!/(n-r)! produced when differentiating t^n r times (0 if r > n).
    """
    if derivative > power:
        return 0
    return math.perm(power, derivative)


def evaluate_spline(coeffs, t, derivative=0):
    """
    Evaluate a quintic spline or one of its derivatives at time t.
    Args:
        coeffs: Coefficients A..F (shape [..., 6]), A multiplies t^5
        t: Local time inside the spline
        derivative: 0 position, 1 velocity, 2 acceleration, 3 jerk

    Returns:
        Value of the derivative (shape [...])
    """
    t_span = cache_exponents(t, 5)
    basis = np.array([
        derivative_factor(n, derivative) * t_span[n - derivative] if n >= derivative else 0.0
        for n in COEFF_POWERS
    ])
    return np.asarray(coeffs) @ basis


def evaluate_spline_position(coeffs, t):
    return evaluate_spline(coeffs, t, 0)

def evaluate_spline_velocity(coeffs, t):
    return evaluate_spline(coeffs, t, 1)

def evaluate_spline_acceleration(coeffs, t):
    return evaluate_spline(coeffs, t, 2)


def as_xy(vec, name):
    """Read-only float copy of a planar vector, shape (2,)."""
    arr = np.array(vec, dtype=float).reshape(-1)
    if arr.shape != (2,):
        raise InvalidGaitRequest(f"{name} must have 2 entries (x, y); got shape {arr.shape}")
    arr.setflags(write=False)
    return arr
