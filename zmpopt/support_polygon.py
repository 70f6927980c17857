import logging
from dataclasses import dataclass
import numpy as np

from .zmp_dataclasses import LegID, LEG_IDS, MarginValues
from .errors import InvalidGaitRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineCoeff2d:
    p: float
    q: float
    r: float


@dataclass(frozen=True)
class TrLine:
    """Edge of a support triangle: p*x + q*y + r >= s_margin inside."""
    coeff: LineCoeff2d
    s_margin: float

    def distance(self, point) -> float:
        """Signed distance of a point to the edge, positive towards the interior."""
        return self.coeff.p * point[0] + self.coeff.q * point[1] + self.coeff.r


def line_coefficients(start, end, xp=np):
    """
    Normalized line through two points, left side positive.
    Args:
        start: Start point(s) (shape [..., 2])
        end: End point(s) (shape [..., 2])
        xp: Array module, numpy or jax.numpy

    Returns:
        p, q, r with p^2 + q^2 = 1
    """
    p = start[..., 1] - end[..., 1]
    q = end[..., 0] - start[..., 0]
    norm = xp.sqrt(p * p + q * q)
    p = p / norm
    q = q / norm
    r = -(p * start[..., 0] + q * start[..., 1])
    return p, q, r


def margin_for(leg_a: LegID, leg_b: LegID, margins: MarginValues) -> float:
    pair = {leg_a, leg_b}
    if pair == {LegID.LF, LegID.RF}:
        return margins.front
    if pair == {LegID.LH, LegID.RH}:
        return margins.hind
    if pair in ({LegID.LF, LegID.LH}, {LegID.RF, LegID.RH}):
        return margins.side
    return margins.diag


class SuppTriangle:
    def __init__(self, footholds, margins: MarginValues, vertex_ids=(0, 1, 2)):
        footholds = list(footholds)
        vertex_ids = list(vertex_ids)
        if len(footholds) != 3 or len(vertex_ids) != 3:
            raise InvalidGaitRequest(f"support triangle needs 3 footholds; got {len(footholds)}")

        a, b, c = (f.xy for f in footholds)
        area2 = (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])
        if abs(area2) < 1e-9:
            raise InvalidGaitRequest(f"support triangle {[f.leg.name for f in footholds]} is degenerate")
        if area2 < 0.0:
            # store counter-clockwise so the interior lies left of every edge
            footholds[1], footholds[2] = footholds[2], footholds[1]
            vertex_ids[1], vertex_ids[2] = vertex_ids[2], vertex_ids[1]

        self.footholds = tuple(footholds)
        self.vertex_ids = tuple(vertex_ids)
        self.margins = margins

    def calc_lines(self):
        lines = []
        for i in range(3):
            start = self.footholds[i]
            end = self.footholds[(i + 1) % 3]
            p, q, r = line_coefficients(start.xy, end.xy)
            lines.append(TrLine(LineCoeff2d(float(p), float(q), float(r)),
                                margin_for(start.leg, end.leg, self.margins)))
        return tuple(lines)

    def edge_margins(self) -> np.ndarray:
        return np.array([line.s_margin for line in self.calc_lines()])

    @classmethod
    def from_footholds(cls, start_stance, steps, margins: MarginValues):
        """
        One support triangle per step: the stance legs without the swing leg.
        Vertex ids index into vertex_points(start_stance, steps).

        Returns:
            triangles, final stance (dict LegID -> Foothold)
        """
        stance = {}
        for f in start_stance:
            if f.leg in stance:
                raise InvalidGaitRequest(f"start stance holds leg {f.leg.name} twice")
            stance[f.leg] = (f, int(f.leg))
        if set(stance) != set(LEG_IDS):
            missing = [leg.name for leg in LEG_IDS if leg not in stance]
            raise InvalidGaitRequest(f"start stance misses legs {missing}")

        triangles = []
        for j, step in enumerate(steps):
            supp = [stance[leg] for leg in LEG_IDS if leg != step.leg]
            triangles.append(cls([f for f, _ in supp], margins, [vid for _, vid in supp]))
            stance[step.leg] = (step, len(LEG_IDS) + j)

        final_stance = {leg: f for leg, (f, _) in stance.items()}
        logger.debug("Built %d support triangles", len(triangles))
        return tuple(triangles), final_stance


def vertex_points(start_stance, steps) -> np.ndarray:
    """Footholds xy addressed by SuppTriangle.vertex_ids: start stance by leg, then steps."""
    by_leg = {f.leg: f for f in start_stance}
    pts = [by_leg[leg].xy for leg in LEG_IDS] + [f.xy for f in steps]
    return np.asarray(pts, dtype=float).reshape(-1, 2)
