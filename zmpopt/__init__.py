# Re-export selected symbols
from .problem_class import ZmpOptimizer
from .splines import SplineContainer, ZmpSpline, LinearDependency, var_index, insert_4ls_phase
from .support_polygon import SuppTriangle, TrLine, LineCoeff2d, line_coefficients, vertex_points
from .cost_function import create_min_acc_cost_function
from .constraints import (
    SampledLine,
    create_equality_constraints,
    create_inequality_constraints,
    line_for_constraint,
    n_constraint_nodes,
    n_equality_constraints,
)
from .helpers import (
    cache_exponents,
    derivative_factor,
    evaluate_spline,
    evaluate_spline_position,
    evaluate_spline_velocity,
    evaluate_spline_acceleration,
)
from .errors import (
    ZmpOptimizerError,
    PreconditionViolation,
    InvalidGaitRequest,
    DegenerateSolution,
    SolverInitializationFailure,
)

from .zmp_dataclasses import *

from .trajectory import get_trajectory_function, zmp_from_com
from .plot_sol import plot_com_and_zmp, plot_axes_over_time

__all__ = [
    'ZmpOptimizer',
    'SplineContainer', 'ZmpSpline', 'LinearDependency', 'var_index', 'insert_4ls_phase',
    'SuppTriangle', 'TrLine', 'LineCoeff2d', 'line_coefficients', 'vertex_points',
    'create_min_acc_cost_function', 'SampledLine', 'create_equality_constraints',
    'create_inequality_constraints', 'line_for_constraint', 'n_constraint_nodes',
    'n_equality_constraints',
    'cache_exponents', 'derivative_factor', 'evaluate_spline', 'evaluate_spline_position',
    'evaluate_spline_velocity', 'evaluate_spline_acceleration',
    'ZmpOptimizerError', 'PreconditionViolation', 'InvalidGaitRequest',
    'DegenerateSolution', 'SolverInitializationFailure',
    'LegID', 'Axis', 'Coeff', 'Foothold', 'MarginValues', 'SplineTimes',
    'FormulationSettings', 'SolverSettings', 'MatVec', 'GaitRequest',
    'ConstraintNode', 'ZmpMap', 'FormulationResult',
    'get_trajectory_function', 'zmp_from_com', 'plot_com_and_zmp', 'plot_axes_over_time',
]
