import logging
import math
import time
from dataclasses import dataclass
import numpy as np

from .zmp_dataclasses import *
from .helpers import cache_exponents, derivative_factor, COEFF_POWERS
from .splines import SplineContainer, var_index, N_OPT_COEFF, N_DIM2D
from .support_polygon import TrLine
from .errors import InvalidGaitRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SampledLine:
    line: TrLine
    node: ConstraintNode
    edge: int  # index of the line inside its support triangle


def n_equality_constraints(n_splines: int) -> int:
    """
    Rows of the equality system, x and y axis included: 4 + 6 + 4*(n_splines - 1).
    One spline gives 10 rows, there is no extra factor for the axes.
    """
    n = N_DIM2D * 2                      # init {x,y} * {acc, jerk}, pos and vel implied
    n += N_DIM2D * 3                     # end  {x,y} * {pos, vel, acc}
    n += (n_splines - 1) * N_DIM2D * 2   # junctions {acc, jerk}, pos and vel implied
    return n


def create_equality_constraints(splines: SplineContainer, start_p, start_v, end_cog,
                                settings: FormulationSettings | None = None) -> MatVec:
    """
    Start, end and junction conditions, one column per equality M[:, i] @ x = v[i].
    Position and velocity continuity hold through the eliminated e, f coefficients.
    """
    settings = FormulationSettings() if settings is None else settings
    start = time.perf_counter()

    n_coeff = splines.get_opt_coeff_count()
    ec = MatVec.zeros(n_coeff, n_equality_constraints(len(splines)))

    last = splines.splines[-1]
    T = cache_exponents(last.duration, 5)

    i = 0  # counter of equality constraints
    for dim in AXES:
        # 1. Initial acceleration and jerk
        ec.M[var_index(0, dim, Coeff.D), i] = 2.0
        ec.v[i] = settings.acc_start[dim]
        i += 1
        ec.M[var_index(0, dim, Coeff.C), i] = 6.0
        ec.v[i] = settings.jerk_start[dim]
        i += 1

        # 2. Final conditions
        e = splines.describe_e_by_prev(last.id, dim, start_v[dim])
        f = splines.describe_f_by_prev(last.id, dim, start_v[dim], start_p[dim])
        a = var_index(last.id, dim, Coeff.A)

        # position
        ec.M[a:a + N_OPT_COEFF, i] = [T[5], T[4], T[3], T[2]]
        ec.M[:, i] += e.vector * T[1] + f.vector
        ec.v[i] = end_cog[dim] - (e.constant * T[1] + f.constant)
        i += 1

        # velocity
        ec.M[a:a + N_OPT_COEFF, i] = [5 * T[4], 4 * T[3], 3 * T[2], 2 * T[1]]
        ec.M[:, i] += e.vector
        ec.v[i] = settings.vel_end[dim] - e.constant
        i += 1

        # acceleration
        ec.M[a:a + N_OPT_COEFF, i] = [20 * T[3], 12 * T[2], 6 * T[1], 2.0]
        ec.v[i] = settings.acc_end[dim]
        i += 1

    # 3. Equal acceleration and jerk at spline junctions
    for s in splines.splines[:-1]:
        T = cache_exponents(s.duration, 5)
        for dim in AXES:
            curr_spline = var_index(s.id, dim, Coeff.A)
            next_spline = var_index(s.id + 1, dim, Coeff.A)

            ec.M[curr_spline:curr_spline + N_OPT_COEFF, i] = [20 * T[3], 12 * T[2], 6 * T[1], 2.0]
            ec.M[next_spline + Coeff.D, i] = -2.0
            i += 1

            ec.M[curr_spline:curr_spline + 3, i] = [60 * T[2], 24 * T[1], 6.0]
            ec.M[next_spline + Coeff.C, i] = -6.0
            i += 1

    logger.info("Calc. time equality constraints:\t%.3f\tms", (time.perf_counter() - start) * 1000.0)
    logger.debug("Dim: %d x %d", *ec.M.shape)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Matrix:\n%s\nVector:\n%s",
                     np.array2string(ec.M, precision=2), np.array2string(ec.v, precision=2))
    return ec


def n_constraint_nodes(spline, dt: float) -> int:
    if spline.four_leg_supp:
        return 0
    # tolerance keeps e.g. 0.3/0.1 from flooring to 2
    return int(math.floor(spline.duration / dt + 1e-9))


def line_for_constraint(splines: SplineContainer, supp_triangles, dt: float):
    """
    Support triangle lines for every sampled time node, in the order the
    inequality rows are built. Four leg support splines are left unconstrained.
    """
    if not dt > 0.0:
        raise ValueError(f"sampling interval dt must be positive; got {dt}")

    sampled = []
    for s in splines:
        if s.four_leg_supp:
            continue  # no constraints in 4ls phase
        if not 0 <= s.step < len(supp_triangles):
            raise InvalidGaitRequest(f"spline {s.id} belongs to step {s.step}, "
                                     f"but only {len(supp_triangles)} support triangles exist")
        lines = supp_triangles[s.step].calc_lines()
        for i in range(n_constraint_nodes(s, dt)):
            node = ConstraintNode(spline_id=s.id, step=s.step, time=i * dt)
            for edge, line in enumerate(lines):
                sampled.append(SampledLine(line, node, edge))
    return tuple(sampled)


def create_inequality_constraints(splines: SplineContainer, start_p, start_v, sampled_lines,
                                  height: float, settings: FormulationSettings | None = None):
    """
    The zero moment point must lie on the inner side of every sampled line:
        p*x_zmp + q*y_zmp + r >= stability_margin
    with x_zmp = x_pos - height/(g + z_acc) * x_acc
         x_pos = at^5 + bt^4 + ct^3 + dt^2 + et + f
         x_acc = 20at^3 + 12bt^2 + 6ct + 2d

    Returns:
        MatVec with M[:, c] @ x >= v[c], and the unscaled ZmpMap
    """
    settings = FormulationSettings() if settings is None else settings
    start = time.perf_counter()

    n_coeff = splines.get_opt_coeff_count()
    n = len(sampled_lines)
    ineq = MatVec.zeros(n_coeff, n)
    Mx, My = np.zeros((n_coeff, n)), np.zeros((n_coeff, n))
    vx, vy = np.zeros(n), np.zeros(n)

    dependencies = {}
    for c, sl in enumerate(sampled_lines):
        s = splines.splines[sl.node.spline_id]
        if s.id not in dependencies:
            dependencies[s.id] = [(splines.describe_e_by_prev(s.id, dim, start_v[dim]),
                                   splines.describe_f_by_prev(s.id, dim, start_v[dim], start_p[dim]))
                                  for dim in AXES]

        t = cache_exponents(sl.node.time, 5)
        z_acc = settings.vertical_acceleration(s, sl.node.time)
        h_g = height / (settings.gravity + z_acc)

        for dim, zm, zv in ((Axis.X, Mx, vx), (Axis.Y, My, vy)):
            e, f = dependencies[s.id][dim]
            for letter in FREE_COEFFS:
                power = COEFF_POWERS[letter]
                zm[var_index(s.id, dim, letter), c] = \
                    t[power] - h_g * derivative_factor(power, 2) * t[power - 2]
            zm[:, c] += t[1] * e.vector + f.vector
            zv[c] = e.constant * t[1] + f.constant

        l = sl.line.coeff
        ineq.M[:, c] = l.p * Mx[:, c] + l.q * My[:, c]
        ineq.v[c] = -(l.p * vx[c] + l.q * vy[c] + l.r - sl.line.s_margin)

    zmp = ZmpMap(Mx=Mx, vx=vx, My=My, vy=vy,
                 triangle_ids=np.array([sl.node.step for sl in sampled_lines], dtype=int),
                 edge_ids=np.array([sl.edge for sl in sampled_lines], dtype=int))

    logger.info("Calc. time inequality constraints:\t%.3f\tms", (time.perf_counter() - start) * 1000.0)
    logger.debug("Dim: %d x %d", *ineq.M.shape)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Matrix:\n%s\nVector:\n%s",
                     np.array2string(ineq.M, precision=2), np.array2string(ineq.v, precision=2))
    return ineq, zmp
