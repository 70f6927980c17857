import logging
import time
import numpy as np
from qpsolvers import solve_qp

from .zmp_dataclasses import *
from .splines import SplineContainer
from .support_polygon import SuppTriangle
from .cost_function import create_min_acc_cost_function
from .constraints import (
    create_equality_constraints,
    create_inequality_constraints,
    line_for_constraint,
)
from .helpers import as_xy
from .errors import PreconditionViolation, InvalidGaitRequest, DegenerateSolution

logger = logging.getLogger(__name__)


class ZmpOptimizer():
    """
    Formulates the CoM spline optimization for a foothold sequence and solves it,
    either as a dense QP or, starting from the QP solution, as an NLP that also
    moves the footholds.

    Every call to formulate() returns a new FormulationResult; the optimizer
    itself only holds the spline sequence and the settings.
    """

    def __init__(self, splines: SplineContainer,
                 settings: FormulationSettings | None = None,
                 solver_settings: SolverSettings | None = None):
        self.splines = splines
        self.settings = FormulationSettings() if settings is None else settings
        self.solver_settings = SolverSettings() if solver_settings is None else solver_settings

    def formulate(self, start_position, start_velocity, start_stance, footholds,
                  weights, margins: MarginValues | None = None,
                  robot_height: float = 0.58) -> FormulationResult:
        if len(self.splines) == 0:
            raise PreconditionViolation("spline sequence is empty. Construct the spline sequence first")

        request = GaitRequest(
            start_position=as_xy(start_position, "start_position"),
            start_velocity=as_xy(start_velocity, "start_velocity"),
            start_stance=tuple(start_stance),
            footholds=tuple(footholds),
            weights=as_xy(weights, "weights"),
            margins=MarginValues() if margins is None else margins,
            robot_height=float(robot_height),
        )
        if not request.robot_height > 0.0:
            raise InvalidGaitRequest(f"robot height must be positive; got {request.robot_height}")

        p0, v0 = request.start_position, request.start_velocity

        cost = create_min_acc_cost_function(self.splines, request.weights, self.settings.cost_derivative)

        triangles, final_stance = SuppTriangle.from_footholds(request.start_stance, request.footholds,
                                                              request.margins)

        # average (x,y) of the last stance to move the robot there in the end
        end_cog = np.mean([final_stance[leg].xy for leg in LEG_IDS], axis=0)
        eq = create_equality_constraints(self.splines, p0, v0, end_cog, self.settings)

        lines = line_for_constraint(self.splines, triangles, self.settings.dt)
        ineq, zmp = create_inequality_constraints(self.splines, p0, v0, lines,
                                                  request.robot_height, self.settings)

        logger.debug("Formulated %d coefficients, %d equality and %d inequality constraints",
                     cost.M.shape[0], eq.n_constraints, ineq.n_constraints)
        return FormulationResult(cost=cost, eq=eq, ineq=ineq, lines=lines, zmp=zmp,
                                 triangles=triangles, final_stance=final_stance,
                                 end_cog=end_cog, request=request)

    def solve_qp(self, formulation: FormulationResult | None) -> np.ndarray:
        """
        Minimize 1/2 x^T M x + v^T x subject to the equality and ZMP constraints.
        Returns the optimal coefficients (ax0, bx0, cx0, dx0, ay0, ..., dy_last).
        """
        if formulation is None:
            raise PreconditionViolation("no formulation given. Call formulate() first")

        cost, eq, ineq = formulation.cost, formulation.eq, formulation.ineq
        n = formulation.n_coeff
        P = cost.M + self.solver_settings.qp_regularization * np.eye(n)
        if ineq.n_constraints > 0:
            # M^T x >= v  <=>  -M^T x <= -v
            G, h = -ineq.M.T, -ineq.v
        else:
            G, h = None, None
        start = time.perf_counter()
        x = solve_qp(P=P,
                     q=cost.v,
                     G=G,
                     h=h,
                     A=eq.M.T,
                     b=eq.v,
                     solver=self.solver_settings.qp_solver)
        logger.info("Time QP solver:\t\t%.3f\tms", (time.perf_counter() - start) * 1000.0)

        if x is None:
            raise DegenerateSolution(f"{self.solver_settings.qp_solver} did not find a solution")

        x = np.asarray(x, dtype=float)
        qp_cost = float(0.5 * x @ P @ x + cost.v @ x)
        logger.info("Cost:\t\t%g", qp_cost)

        min_cost = self.solver_settings.min_cost
        if not np.isfinite(qp_cost) or (min_cost is not None and qp_cost < min_cost):
            raise DegenerateSolution(f"implausible QP cost {qp_cost}")

        logger.debug("x = %s", np.array2string(x, precision=4))
        return x

    def solve_nlp(self, formulation: FormulationResult | None, opt_coefficients,
                  options: dict | None = None):
        """
        Refine coefficients and footholds with Ipopt, warm started at opt_coefficients.

        Returns:
            coefficients (n_coeff,), footholds (n_steps, 2)
        """
        if formulation is None:
            raise PreconditionViolation("no formulation given. Call formulate() first")

        # jax and cyipopt are only loaded for the nonlinear refinement
        from .nlp import NlpZmp
        nlp = NlpZmp(formulation, opt_coefficients, self.solver_settings)
        return nlp.solve(options)
