import numpy as np
import matplotlib.pyplot as plt

from .zmp_dataclasses import *
from .splines import SplineContainer
from .trajectory import get_trajectory_function


def plot_com_and_zmp(coefficients, formulation: FormulationResult, splines: SplineContainer,
                     settings: FormulationSettings | None = None, dt: float = 0.02,
                     footholds=None):
    """
    Top view of the support triangles, the footholds, the CoM path and the ZMP path.
    footholds: optional (n_steps, 2) array, e.g. the NLP result, drawn over the nominal ones.
    """
    traj_fn = get_trajectory_function(coefficients, formulation, splines, settings)
    times, com_pos, _, _, zmp = traj_fn(dt)

    fig, ax = plt.subplots(figsize=(10, 8))
    tri_colors = ["tab:blue", "tab:green", "tab:purple", "tab:orange"]

    # ---- Support triangles ----
    for i, tri in enumerate(formulation.triangles):
        pts = np.array([f.xy for f in tri.footholds])
        color = tri_colors[i % len(tri_colors)]
        ax.fill(pts[:, 0], pts[:, 1], color=color, alpha=0.12)
        ax.plot(np.append(pts[:, 0], pts[0, 0]), np.append(pts[:, 1], pts[0, 1]),
                color=color, linewidth=1.0)

    # ---- Footholds ----
    request = formulation.request
    start = np.array([f.xy for f in request.start_stance])
    ax.scatter(start[:, 0], start[:, 1], color="k", marker="x", s=60, label="Start stance")
    for j, f in enumerate(request.footholds):
        ax.scatter(f.x, f.y, color="k", marker="o", s=40)
        ax.annotate(f"{j}:{f.leg.name}", (f.x, f.y), textcoords="offset points", xytext=(4, 4))
    if footholds is not None:
        footholds = np.asarray(footholds).reshape(-1, 2)
        ax.scatter(footholds[:, 0], footholds[:, 1], color="tab:red", marker="o",
                   facecolors="none", s=80, label="Optimized footholds")

    # ---- CoM and ZMP ----
    ax.plot(com_pos[:, 0], com_pos[:, 1], color="k", linewidth=2.2, label="CoM")
    ax.plot(zmp[:, 0], zmp[:, 1], color="tab:red", linestyle="--", linewidth=1.5, label="ZMP")
    ax.scatter(com_pos[0, 0], com_pos[0, 1], color="k", s=70, marker="^", edgecolors="w", zorder=6)
    ax.scatter(com_pos[-1, 0], com_pos[-1, 1], color="k", s=70, marker="s", edgecolors="w", zorder=6)

    ax.set_aspect("equal")
    ax.set_xlabel("x [m]")
    ax.set_ylabel("y [m]")
    ax.set_title(f"CoM and ZMP over {times[-1]:.2f} s")
    ax.legend(loc="best")
    fig.tight_layout()
    return fig


def plot_axes_over_time(coefficients, formulation: FormulationResult, splines: SplineContainer,
                        settings: FormulationSettings | None = None, dt: float = 0.02):
    """CoM position, acceleration and ZMP per axis against time, spline junctions marked."""
    traj_fn = get_trajectory_function(coefficients, formulation, splines, settings)
    times, com_pos, _, com_acc, zmp = traj_fn(dt)

    fig, axes = plt.subplots(2, 1, figsize=(10, 6), sharex=True)
    for dim, ax in zip(AXES, axes):
        ax.plot(times, com_pos[:, dim], color="k", label="CoM")
        ax.plot(times, zmp[:, dim], color="tab:red", linestyle="--", label="ZMP")
        ax.plot(times, com_acc[:, dim], color="tab:gray", linewidth=0.8, label="CoM acc")
        t_junction = 0.0
        for s in splines:
            if s.four_leg_supp:
                ax.axvspan(t_junction, t_junction + s.duration, color="tab:gray", alpha=0.1)
            t_junction += s.duration
            ax.axvline(t_junction, color="tab:gray", linewidth=0.5)
        ax.set_ylabel(f"{dim.name.lower()} [m]")
        ax.legend(loc="best")
    axes[-1].set_xlabel("t [s]")
    fig.tight_layout()
    return fig
