import logging
from dataclasses import dataclass
from typing import NamedTuple
import numpy as np

from .zmp_dataclasses import *
from .helpers import cache_exponents
from .errors import InvalidGaitRequest

logger = logging.getLogger(__name__)

N_OPT_COEFF = len(FREE_COEFFS)  # a, b, c, d per axis
N_DIM2D = len(AXES)


def var_index(spline_id, dim, coeff):
    """
    Position of a free coefficient inside the optimization vector.
    Layout: ax0 bx0 cx0 dx0 ay0 by0 cy0 dy0 ax1 bx1 ...
    """
    if spline_id < 0:
        raise ValueError(f"spline id must be non-negative; got {spline_id}")
    if int(dim) not in (Axis.X, Axis.Y):
        raise ValueError(f"dim must be X or Y; got {dim}")
    if not 0 <= int(coeff) < N_OPT_COEFF:
        raise ValueError(f"only the free coefficients A..D are optimized; got {coeff}")
    return spline_id * N_DIM2D * N_OPT_COEFF + int(dim) * N_OPT_COEFF + int(coeff)


@dataclass(frozen=True)
class ZmpSpline:
    id: int              # position in the sequence
    duration: float      # [s]
    four_leg_supp: bool  # all feet on the ground, ZMP unconstrained
    step: int            # step (and support triangle) this spline belongs to


class LinearDependency(NamedTuple):
    """Eliminated coefficient written as vector @ x + constant."""
    vector: np.ndarray
    constant: float

    def evaluate(self, x):
        return float(self.vector @ np.asarray(x) + self.constant)


def insert_4ls_phase(prev_leg: LegID, next_leg: LegID) -> bool:
    # swinging diagonal legs one after another leaves two disjoint triangles
    disjoint = {(LegID.LF, LegID.RH), (LegID.RF, LegID.LH)}
    return (prev_leg, next_leg) in disjoint or (next_leg, prev_leg) in disjoint


class SplineContainer:
    def __init__(self, splines=()):
        self.splines = tuple(splines)
        for i, s in enumerate(self.splines):
            if s.id != i:
                raise InvalidGaitRequest(f"spline ids must be ordered 0..n-1; spline {i} has id {s.id}")
            if not s.duration > 0.0:
                raise InvalidGaitRequest(f"spline {s.id} has non-positive duration {s.duration}")
        self._e_vectors = None
        self._f_vectors = None

    @classmethod
    def construct(cls, step_sequence, times: SplineTimes | None = None) -> "SplineContainer":
        """
        Build the spline sequence for a list of swing legs.
        An initial and a final four leg stance frame the steps; an extra stance
        is inserted whenever two consecutive swing legs are diagonal.
        """
        times = SplineTimes() if times is None else times
        legs = [LegID(getattr(s, "leg", s)) for s in step_sequence]

        splines = [ZmpSpline(0, times.t_stance_initial, True, 0)]
        for step, leg in enumerate(legs):
            if step > 0 and insert_4ls_phase(legs[step - 1], leg):
                splines.append(ZmpSpline(len(splines), times.t_stance, True, step))
            splines.append(ZmpSpline(len(splines), times.t_swing, False, step))
        splines.append(ZmpSpline(len(splines), times.t_stance_final, True, len(legs)))

        logger.debug("Constructed %d splines for %d steps", len(splines), len(legs))
        return cls(splines)

    def __len__(self):
        return len(self.splines)

    def __iter__(self):
        return iter(self.splines)

    def get_opt_coeff_count(self) -> int:
        return len(self.splines) * N_DIM2D * N_OPT_COEFF

    def get_total_time(self) -> float:
        return float(sum(s.duration for s in self.splines))

    def start_time(self, k: int) -> float:
        return float(sum(s.duration for s in self.splines[:k]))

    def get_spline(self, t_global: float):
        """Spline active at t_global and the local time inside it."""
        if not self.splines:
            raise InvalidGaitRequest("spline sequence is empty")
        t_start = 0.0
        for s in self.splines:
            if t_global < t_start + s.duration:
                return s, max(t_global - t_start, 0.0)
            t_start += s.duration
        last = self.splines[-1]
        return last, last.duration

    # -------- eliminated coefficients e, f --------
    def _build_dependencies(self):
        n = len(self.splines)
        n_coeff = self.get_opt_coeff_count()
        E = np.zeros((n, N_DIM2D, n_coeff))
        F = np.zeros((n, N_DIM2D, n_coeff))

        for k in range(1, n):
            T = cache_exponents(self.splines[k - 1].duration, 5)
            for dim in AXES:
                a = var_index(k - 1, dim, Coeff.A)
                # velocity at the end of the previous spline
                E[k, dim] = E[k - 1, dim]
                E[k, dim, a:a + N_OPT_COEFF] += [5 * T[4], 4 * T[3], 3 * T[2], 2 * T[1]]
                # position at the end of the previous spline
                F[k, dim] = F[k - 1, dim] + T[1] * E[k - 1, dim]
                F[k, dim, a:a + N_OPT_COEFF] += [T[5], T[4], T[3], T[2]]

        self._e_vectors, self._f_vectors = E, F

    def describe_e_by_prev(self, k, dim, start_v) -> LinearDependency:
        """Linear coefficient e of spline k from the free coefficients of splines 0..k-1."""
        if self._e_vectors is None:
            self._build_dependencies()
        return LinearDependency(self._e_vectors[k, dim].copy(), float(start_v))

    def describe_f_by_prev(self, k, dim, start_v, start_p) -> LinearDependency:
        """Constant coefficient f of spline k from the free coefficients of splines 0..k-1."""
        if self._f_vectors is None:
            self._build_dependencies()
        return LinearDependency(self._f_vectors[k, dim].copy(),
                                float(start_p) + float(start_v) * self.start_time(k))

    def get_spline_coefficients(self, x, start_p, start_v) -> np.ndarray:
        """
        Full coefficients A..F of every spline from an optimization vector.
        Returns array of shape (n_splines, 2, 6).
        """
        x = np.asarray(x, dtype=float)
        if x.shape != (self.get_opt_coeff_count(),):
            raise InvalidGaitRequest(f"coefficient vector has shape {x.shape}; "
                                     f"expected ({self.get_opt_coeff_count()},)")
        coeffs = np.zeros((len(self.splines), N_DIM2D, len(Coeff)))
        for s in self.splines:
            for dim in AXES:
                a = var_index(s.id, dim, Coeff.A)
                coeffs[s.id, dim, :N_OPT_COEFF] = x[a:a + N_OPT_COEFF]
                coeffs[s.id, dim, Coeff.E] = self.describe_e_by_prev(s.id, dim, start_v[dim]).evaluate(x)
                coeffs[s.id, dim, Coeff.F] = self.describe_f_by_prev(s.id, dim, start_v[dim], start_p[dim]).evaluate(x)
        return coeffs
