import matplotlib
import numpy as np
import pytest

matplotlib.use("Agg")

from zmpopt import (
    ZmpOptimizer, SplineContainer, ZmpSpline, SplineTimes, MarginValues, Foothold, LegID,
)

HALF_LENGTH, HALF_WIDTH = 0.36, 0.33
STEP_LENGTH = 0.1
CRAWL = (LegID.LH, LegID.LF, LegID.RH, LegID.RF)


def square_stance(half_length=HALF_LENGTH, half_width=HALF_WIDTH):
    return [
        Foothold( half_length,  half_width, 0.0, LegID.LF),
        Foothold( half_length, -half_width, 0.0, LegID.RF),
        Foothold(-half_length,  half_width, 0.0, LegID.LH),
        Foothold(-half_length, -half_width, 0.0, LegID.RH),
    ]


def crawl_steps(start_stance, legs=CRAWL, step_length=STEP_LENGTH):
    by_leg = {f.leg: f for f in start_stance}
    steps = []
    for leg in legs:
        prev = by_leg[leg]
        by_leg[leg] = Foothold(prev.x + step_length, prev.y, 0.0, leg)
        steps.append(by_leg[leg])
    return steps


def swing_splines(durations, four_leg=None):
    """Splines with one step each, all in three leg support unless flagged."""
    four_leg = [False] * len(durations) if four_leg is None else four_leg
    return SplineContainer([ZmpSpline(i, d, fl, i) for i, (d, fl) in enumerate(zip(durations, four_leg))])


@pytest.fixture
def start_stance():
    return square_stance()


@pytest.fixture
def crawl_footholds(start_stance):
    return crawl_steps(start_stance)


@pytest.fixture
def crawl_splines(crawl_footholds):
    times = SplineTimes(t_swing=0.6, t_stance=0.4, t_stance_initial=1.0, t_stance_final=0.6)
    return SplineContainer.construct([f.leg for f in crawl_footholds], times)


@pytest.fixture
def margins():
    return MarginValues(front=0.05, hind=0.05, side=0.05, diag=0.02)


@pytest.fixture
def crawl_problem(crawl_splines, start_stance, crawl_footholds, margins):
    optimizer = ZmpOptimizer(crawl_splines)
    formulation = optimizer.formulate(
        start_position=np.zeros(2),
        start_velocity=np.zeros(2),
        start_stance=start_stance,
        footholds=crawl_footholds,
        weights=np.array([1.0, 1.0]),
        margins=margins,
        robot_height=0.58,
    )
    return optimizer, formulation
