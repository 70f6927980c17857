import numpy as np

from .zmp_dataclasses import *
from .helpers import evaluate_spline_position, evaluate_spline_velocity, evaluate_spline_acceleration
from .splines import SplineContainer


def zmp_from_com(pos, acc, height, gravity=9.81, z_acc=0.0):
    """Flat ground ZMP of a point mass at constant height."""
    return np.asarray(pos) - height / (gravity + z_acc) * np.asarray(acc)


def get_trajectory_function(coefficients, formulation: FormulationResult, splines: SplineContainer,
                            settings: FormulationSettings | None = None):
    """
    Builds a CoM trajectory that can be sampled at a uniform timestep.
    Returns a function trajectory(dt) -> (times, com_pos, com_vel, com_acc, zmp)
        times:   (N,)
        com_pos: (N, 2)
        com_vel: (N, 2)
        com_acc: (N, 2)
        zmp:     (N, 2)
    """
    settings = FormulationSettings() if settings is None else settings
    request = formulation.request
    coeffs = splines.get_spline_coefficients(coefficients, request.start_position, request.start_velocity)
    total_time = splines.get_total_time()

    def com_trajectory(dt: float, include_endpoint: bool = True):
        if dt <= 0:
            raise ValueError("dt must be positive")

        end = total_time + (1e-12 if include_endpoint else 0.0)
        times = np.arange(0.0, end, dt, dtype=float)
        if include_endpoint and (total_time - times[-1]) > 1e-9:
            times = np.append(times, total_time)

        pos, vel, acc, zmp = [], [], [], []
        for t in times:
            s, t_local = splines.get_spline(t)
            p = evaluate_spline_position(coeffs[s.id], t_local)
            a = evaluate_spline_acceleration(coeffs[s.id], t_local)
            pos.append(p)
            vel.append(evaluate_spline_velocity(coeffs[s.id], t_local))
            acc.append(a)
            zmp.append(zmp_from_com(p, a, request.robot_height, settings.gravity,
                                    settings.vertical_acceleration(s, t_local)))

        return times, np.stack(pos), np.stack(vel), np.stack(acc), np.stack(zmp)

    # Metadata
    com_trajectory.total_time = total_time
    com_trajectory.num_splines = len(splines)

    return com_trajectory
