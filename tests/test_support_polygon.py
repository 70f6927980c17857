import numpy as np
import pytest

from zmpopt import SuppTriangle, MarginValues, Foothold, LegID, line_coefficients, vertex_points
from zmpopt.errors import InvalidGaitRequest

from conftest import square_stance, crawl_steps

MARGINS = MarginValues(front=0.1, hind=0.2, side=0.3, diag=0.04)


def test_line_coefficients_normalized_left_positive():
    p, q, r = line_coefficients(np.array([0.0, 0.0]), np.array([2.0, 0.0]))
    assert p ** 2 + q ** 2 == pytest.approx(1.0)
    # (0, 1) lies left of the line walking from (0,0) to (2,0)
    assert p * 0.0 + q * 1.0 + r == pytest.approx(1.0)
    assert p * 1.0 + q * -0.5 + r == pytest.approx(-0.5)


@pytest.mark.parametrize("order", [(0, 1, 2), (0, 2, 1)])
def test_triangle_interior_is_positive(order):
    feet = [Foothold(0.3, 0.2, 0.0, LegID.LF),
            Foothold(0.3, -0.2, 0.0, LegID.RF),
            Foothold(-0.3, -0.2, 0.0, LegID.RH)]
    tri = SuppTriangle([feet[i] for i in order], MARGINS)
    centroid = np.mean([f.xy for f in feet], axis=0)
    for line in tri.calc_lines():
        assert line.coeff.p ** 2 + line.coeff.q ** 2 == pytest.approx(1.0)
        assert line.distance(centroid) > 0.0
        # every vertex lies on two of the lines and inside the third
        assert min(abs(line.distance(f.xy)) for f in feet) == pytest.approx(0.0, abs=1e-12)


def test_reordering_keeps_vertex_ids_aligned():
    # LF -> RF -> RH runs clockwise
    feet = [Foothold(0.3, 0.2, 0.0, LegID.LF),
            Foothold(0.3, -0.2, 0.0, LegID.RF),
            Foothold(-0.3, -0.2, 0.0, LegID.RH)]
    tri = SuppTriangle(feet, MARGINS, vertex_ids=(0, 1, 3))
    assert [f.leg for f in tri.footholds] == [LegID.LF, LegID.RH, LegID.RF]
    assert tri.vertex_ids == (0, 3, 1)


def test_edge_margins_by_leg_pair():
    feet = [Foothold(0.3, 0.2, 0.0, LegID.LF),
            Foothold(0.3, -0.2, 0.0, LegID.RF),
            Foothold(-0.3, -0.2, 0.0, LegID.RH)]
    # edges LF-RF (front), RF-RH (side), RH-LF (diagonal)
    assert sorted(SuppTriangle(feet, MARGINS).edge_margins()) == pytest.approx([0.04, 0.1, 0.3])

    feet = [Foothold(0.3, 0.2, 0.0, LegID.LF),
            Foothold(-0.3, -0.2, 0.0, LegID.RH),
            Foothold(-0.3, 0.2, 0.0, LegID.LH)]
    assert sorted(SuppTriangle(feet, MARGINS).edge_margins()) == pytest.approx([0.04, 0.2, 0.3])


def test_degenerate_triangle_raises():
    feet = [Foothold(0.0, 0.0, 0.0, LegID.LF),
            Foothold(1.0, 1.0, 0.0, LegID.RF),
            Foothold(2.0, 2.0, 0.0, LegID.RH)]
    with pytest.raises(InvalidGaitRequest):
        SuppTriangle(feet, MARGINS)


def test_from_footholds_follows_the_stance():
    stance = square_stance()
    steps = crawl_steps(stance)
    triangles, final_stance = SuppTriangle.from_footholds(stance, steps, MARGINS)

    assert len(triangles) == len(steps)
    for tri, step in zip(triangles, steps):
        assert step.leg not in [f.leg for f in tri.footholds]
    # second triangle uses the moved LH foot (vertex id 4 = first step)
    assert 4 in triangles[1].vertex_ids
    for f in stance:
        assert final_stance[f.leg].x == pytest.approx(f.x + 0.1)

    points = vertex_points(stance, steps)
    assert points.shape == (8, 2)
    for tri in triangles:
        for f, vid in zip(tri.footholds, tri.vertex_ids):
            np.testing.assert_allclose(points[vid], f.xy)


def test_stance_must_hold_each_leg_once():
    stance = square_stance()
    with pytest.raises(InvalidGaitRequest):
        SuppTriangle.from_footholds(stance[:3], [], MARGINS)
    with pytest.raises(InvalidGaitRequest):
        SuppTriangle.from_footholds(stance + [stance[0]], [], MARGINS)
