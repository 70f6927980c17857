from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable
import numpy as np


class LegID(IntEnum):
    LF = 0  # left front
    RF = 1  # right front
    LH = 2  # left hind
    RH = 3  # right hind

LEG_IDS = (LegID.LF, LegID.RF, LegID.LH, LegID.RH)


class Axis(IntEnum):
    X = 0
    Y = 1

AXES = (Axis.X, Axis.Y)


class Coeff(IntEnum):
    # x(t) = A t^5 + B t^4 + C t^3 + D t^2 + E t + F
    A = 0
    B = 1
    C = 2
    D = 3
    E = 4  # eliminated by velocity continuity
    F = 5  # eliminated by position continuity

FREE_COEFFS = (Coeff.A, Coeff.B, Coeff.C, Coeff.D)


@dataclass(frozen=True)
class Foothold:
    x: float
    y: float
    z: float
    leg: LegID

    @property
    def xy(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=float)


@dataclass
class MarginValues:
    front: float = 0.10  # LF-RF
    hind: float = 0.10   # LH-RH
    side: float = 0.10   # LF-LH, RF-RH
    diag: float = 0.04   # LF-RH, RF-LH


@dataclass
class SplineTimes:
    t_swing: float = 0.7           # Duration of a swing (three leg support) phase [s]
    t_stance: float = 0.2          # Four leg stance inserted between disjoint triangles [s]
    t_stance_initial: float = 1.0  # Four leg stance before the first step [s]
    t_stance_final: float = 0.4    # Four leg stance after the last step [s]


def zero_vertical_acceleration(spline, t: float) -> float:
    return 0.0


@dataclass
class FormulationSettings:
    dt: float = 0.1                 # Sampling interval of the ZMP constraints [s]
    gravity: float = 9.81
    cost_derivative: int = 2        # 2: minimize acceleration, 3: minimize jerk
    acc_start: np.ndarray = field(default_factory=lambda: np.zeros(2))
    jerk_start: np.ndarray = field(default_factory=lambda: np.zeros(2))
    vel_end: np.ndarray = field(default_factory=lambda: np.zeros(2))
    acc_end: np.ndarray = field(default_factory=lambda: np.zeros(2))
    # z_acc(spline, t) entering zmp = pos - h/(g + z_acc) * acc
    vertical_acceleration: Callable = zero_vertical_acceleration


@dataclass
class SolverSettings:
    qp_solver: str = "quadprog"
    qp_regularization: float = 1e-9   # added to the cost diagonal, quadprog needs P > 0
    min_cost: float | None = None     # optional sanity guard on the achieved QP cost
    foothold_bound: float = 0.05      # NLP box around the nominal footholds [m]
    ipopt_options: dict = field(default_factory=lambda: {
        "hessian_approximation": "exact",
        "print_level": 0,
        "sb": "yes",
        "max_iter": 300,
        "tol": 1e-8,
        "acceptable_tol": 1e-4,
        "print_timing_statistics": "no",
    })


@dataclass
class MatVec:
    """Linear system or quadratic form over the optimization vector.

    M has one row per coefficient and one column per constraint.
    """
    M: np.ndarray
    v: np.ndarray

    @classmethod
    def zeros(cls, rows: int, cols: int) -> "MatVec":
        return cls(M=np.zeros((rows, cols)), v=np.zeros(cols))

    @property
    def n_constraints(self) -> int:
        return self.M.shape[1]


@dataclass(frozen=True)
class GaitRequest:
    start_position: np.ndarray  # CoM xy at t=0
    start_velocity: np.ndarray  # CoM xy velocity at t=0
    start_stance: tuple         # Foothold for every leg
    footholds: tuple            # Step sequence, one Foothold per step
    weights: np.ndarray         # Cost weight per axis (x, y)
    margins: MarginValues
    robot_height: float         # CoM height above ground [m]


@dataclass(frozen=True)
class ConstraintNode:
    spline_id: int
    step: int
    time: float  # local time inside the spline


@dataclass(frozen=True)
class ZmpMap:
    """Unscaled ZMP rows: zmp_x = Mx.T @ x + vx, zmp_y = My.T @ x + vy."""
    Mx: np.ndarray
    vx: np.ndarray
    My: np.ndarray
    vy: np.ndarray
    triangle_ids: np.ndarray  # support triangle of each row
    edge_ids: np.ndarray      # edge of that triangle


@dataclass(frozen=True)
class FormulationResult:
    cost: MatVec
    eq: MatVec
    ineq: MatVec
    lines: tuple       # SampledLine per inequality column
    zmp: ZmpMap
    triangles: tuple   # SuppTriangle per step
    final_stance: dict
    end_cog: np.ndarray
    request: GaitRequest

    @property
    def n_coeff(self) -> int:
        return self.cost.M.shape[0]
