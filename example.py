import logging
import numpy as np
import matplotlib.pyplot as plt
from zmpopt import (
    ZmpOptimizer, SplineContainer, SplineTimes, FormulationSettings, MarginValues,
    Foothold, LegID, plot_com_and_zmp, plot_axes_over_time, get_trajectory_function,
)

logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s: %(message)s")

# Nominal stance of the robot [m]
half_length, half_width = 0.36, 0.33
start_stance = [
    Foothold( half_length,  half_width, 0.0, LegID.LF),
    Foothold( half_length, -half_width, 0.0, LegID.RF),
    Foothold(-half_length,  half_width, 0.0, LegID.LH),
    Foothold(-half_length, -half_width, 0.0, LegID.RH),
]

# Crawl gait, every foot moves step_length forward
step_length = 0.15
by_leg = {f.leg: f for f in start_stance}
footholds = []
for _ in range(2):
    for leg in (LegID.LH, LegID.LF, LegID.RH, LegID.RF):
        prev = by_leg[leg]
        by_leg[leg] = Foothold(prev.x + step_length, prev.y, 0.0, leg)
        footholds.append(by_leg[leg])

times = SplineTimes(t_swing=0.7, t_stance=0.4, t_stance_initial=1.0, t_stance_final=0.6)
splines = SplineContainer.construct([f.leg for f in footholds], times)

settings = FormulationSettings(dt=0.1)
optimizer = ZmpOptimizer(splines, settings)

formulation = optimizer.formulate(
    start_position=np.array([0.0, 0.0]),
    start_velocity=np.array([0.0, 0.0]),
    start_stance=start_stance,
    footholds=footholds,
    weights=np.array([1.0, 1.0]),
    margins=MarginValues(front=0.1, hind=0.1, side=0.1, diag=0.04),
    robot_height=0.58,
)

x_qp = optimizer.solve_qp(formulation)
x_nlp, final_footholds = optimizer.solve_nlp(formulation, x_qp)

print("Nominal footholds:\n", np.array([f.xy for f in footholds]))
print("Optimized footholds:\n", final_footholds)

plot_com_and_zmp(x_qp, formulation, splines, settings, dt=0.02)
plot_com_and_zmp(x_nlp, formulation, splines, settings, dt=0.02, footholds=final_footholds)
plot_axes_over_time(x_qp, formulation, splines, settings, dt=0.02)

trajectory_fn = get_trajectory_function(x_qp, formulation, splines, settings)
time, com_pos, com_vel, com_acc, zmp = trajectory_fn(0.02)  # shapes: (N,), (N, 2) ...

plt.show()
