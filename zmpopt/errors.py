class ZmpOptimizerError(Exception):
    """Base class for all errors raised while formulating or solving."""


class PreconditionViolation(ZmpOptimizerError):
    """Formulation requested without splines, or solve requested before formulation."""


class InvalidGaitRequest(ZmpOptimizerError, ValueError):
    """The gait request (durations, stance, footholds, vectors) is malformed."""


class DegenerateSolution(ZmpOptimizerError):
    """The QP solver reported no solution or an implausible cost."""


class SolverInitializationFailure(ZmpOptimizerError):
    """The nonlinear solver could not be set up."""
