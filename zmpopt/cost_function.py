import logging
import time
import numpy as np

from .zmp_dataclasses import *
from .helpers import cache_exponents, derivative_factor, COEFF_POWERS
from .splines import SplineContainer, var_index
from .errors import InvalidGaitRequest

logger = logging.getLogger(__name__)


def create_min_acc_cost_function(splines: SplineContainer, weights, derivative: int = 2) -> MatVec:
    """
    Quadratic cost x^T M x approximating the integrated squared acceleration
    (derivative=2) or jerk (derivative=3) of the CoM over all splines.

    For two free letters with powers n_i, n_j the entry is
        w * c_i * c_j * T^(n_i + n_j - 2r + 1) / (n_i + n_j - 2r + 1),  c = n!/(n-r)!
    see M. Kalakrishnan et al., "Learning, Planning and Control for Quadruped
    Robots over challenging Terrain", IJRR 2010, p. 248.
    """
    if derivative not in (2, 3):
        raise ValueError(f"cost derivative must be 2 (acceleration) or 3 (jerk); got {derivative}")
    weights = np.asarray(weights, dtype=float).reshape(-1)
    if weights.shape != (len(AXES),):
        raise InvalidGaitRequest(f"weights must have one entry per axis; got shape {weights.shape}")

    start = time.perf_counter()
    n_coeff = splines.get_opt_coeff_count()
    cf = MatVec.zeros(n_coeff, n_coeff)

    max_order = 2 * COEFF_POWERS[Coeff.A] - 2 * derivative + 1
    for s in splines:
        if not s.duration > 0.0:
            raise InvalidGaitRequest(f"spline {s.id} has non-positive duration {s.duration}")
        t_span = cache_exponents(s.duration, max_order)

        for dim in AXES:
            for i in FREE_COEFFS:
                for j in FREE_COEFFS[i:]:
                    n_i, n_j = COEFF_POWERS[i], COEFF_POWERS[j]
                    c = derivative_factor(n_i, derivative) * derivative_factor(n_j, derivative)
                    if c == 0:
                        continue
                    order = n_i + n_j - 2 * derivative + 1
                    cf.M[var_index(s.id, dim, i), var_index(s.id, dim, j)] = \
                        c / order * t_span[order] * weights[dim]

    # mirror values over the diagonal to fill the bottom left triangle
    lower = np.tril_indices(n_coeff, -1)
    cf.M[lower] = cf.M.T[lower]

    logger.info("Calc. time cost function:\t\t%.3f\tms", (time.perf_counter() - start) * 1000.0)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Cost matrix:\n%s", np.array2string(cf.M, precision=2))
    return cf
