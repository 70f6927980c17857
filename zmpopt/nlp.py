import logging
import time
import numpy as np
import jax
import jax.numpy as jnp
from jax import jit, value_and_grad, jacfwd, jacrev

from .zmp_dataclasses import *
from .support_polygon import line_coefficients, vertex_points
from .errors import InvalidGaitRequest, SolverInitializationFailure

# Ipopt works in double precision
jax.config.update("jax_enable_x64", True)

logger = logging.getLogger(__name__)


class NlpZmp():
    """
    Ipopt problem over [spline coefficients, step footholds xy].

    The cost and equality constraints are the quadratic/linear ones of the QP.
    The ZMP rows keep their linear map in the coefficients, but the support
    lines are recomputed from the foothold variables.
    """

    def __init__(self, formulation: FormulationResult, opt_coefficients,
                 solver_settings: SolverSettings | None = None):
        self.formulation = formulation
        self.solver_settings = SolverSettings() if solver_settings is None else solver_settings
        request = formulation.request

        self.n_coeff = formulation.n_coeff
        x_coeff = np.asarray(opt_coefficients, dtype=float).reshape(-1)
        if x_coeff.shape != (self.n_coeff,):
            raise InvalidGaitRequest(f"warm start has {x_coeff.size} coefficients; expected {self.n_coeff}")

        # Decision vector and bounds
        self.n_steps = len(request.footholds)
        feet0 = np.array([f.xy for f in request.footholds], dtype=float).reshape(-1)
        self.x0 = np.concatenate([x_coeff, feet0])
        self.n = int(self.x0.size)
        bound = self.solver_settings.foothold_bound
        self.lb = np.concatenate([np.full(self.n_coeff, -np.inf), feet0 - bound])
        self.ub = np.concatenate([np.full(self.n_coeff, np.inf), feet0 + bound])

        cost, eq, zmp = formulation.cost, formulation.eq, formulation.zmp
        self._P = jnp.asarray(cost.M)
        self._q = jnp.asarray(cost.v)
        self._A = jnp.asarray(eq.M.T)
        self._b = jnp.asarray(eq.v)
        self._Zx, self._zx0 = jnp.asarray(zmp.Mx.T), jnp.asarray(zmp.vx)
        self._Zy, self._zy0 = jnp.asarray(zmp.My.T), jnp.asarray(zmp.vy)

        # Support line of every ZMP row as (from, to) vertex ids
        self._start_xy = jnp.asarray(vertex_points(request.start_stance, ()))
        tri_vertices = np.array([t.vertex_ids for t in formulation.triangles], dtype=int).reshape(-1, 3)
        row_tri, row_edge = zmp.triangle_ids, zmp.edge_ids
        self._row_from = jnp.asarray(tri_vertices[row_tri, row_edge])
        self._row_to = jnp.asarray(tri_vertices[row_tri, (row_edge + 1) % 3])
        self._margin = jnp.asarray([sl.line.s_margin for sl in formulation.lines], dtype=float)

        m_eq = eq.n_constraints
        m_ineq = formulation.ineq.n_constraints
        self.m = m_eq + m_ineq
        self.cl = np.zeros(self.m)
        self.cu = np.concatenate([np.zeros(m_eq), np.full(m_ineq, np.inf)])

        self._f_valgrad = jit(value_and_grad(lambda z: self.compute_objective(z)))
        self._c_all = jit(lambda z: self.compute_constraints(z))
        self._J_all = jit(jacfwd(lambda z: self.compute_constraints(z)))
        self._hess_L = jit(jacfwd(jacrev(lambda z, lam, rho:
                                         rho * self.compute_objective(z)
                                         + jnp.dot(lam, self.compute_constraints(z)),
                                         argnums=0),
                                  argnums=0))

        # Dense Jacobian structure (row-major)
        self._jac_rows = np.repeat(np.arange(self.m), self.n).astype(np.int64)
        self._jac_cols = np.tile(np.arange(self.n), self.m).astype(np.int64)
        # Lower-triangular Hessian structure
        tri = np.tril_indices(self.n)
        self._H_rows = tri[0].astype(np.int64)
        self._H_cols = tri[1].astype(np.int64)

        self.status = None
        self.status_msg = None
        self.iter_count = 0
        self.obj_val = None

    def _split(self, z):
        return z[:self.n_coeff], z[self.n_coeff:].reshape(-1, 2)

    def compute_objective(self, z):
        x, _ = self._split(z)
        return 0.5 * x @ self._P @ x + self._q @ x

    def compute_constraints(self, z):
        x, feet = self._split(z)
        eq = self._A @ x - self._b

        points = jnp.concatenate([self._start_xy, feet], axis=0)
        p, q, r = line_coefficients(points[self._row_from], points[self._row_to], xp=jnp)
        zmp_x = self._Zx @ x + self._zx0
        zmp_y = self._Zy @ x + self._zy0
        ineq = p * zmp_x + q * zmp_y + r - self._margin
        return jnp.concatenate([eq, ineq])

    # ============== Ipopt callbacks ==============
    def objective(self, z):
        v, _ = self._f_valgrad(jnp.asarray(z))
        return float(v)

    def gradient(self, z):
        _, g = self._f_valgrad(jnp.asarray(z))
        return np.asarray(g, dtype=float)

    def constraints(self, z):
        return np.asarray(self._c_all(jnp.asarray(z)), dtype=float)

    def jacobian(self, z):
        J = self._J_all(jnp.asarray(z))
        return np.asarray(J, dtype=float).ravel(order="C")

    def jacobianstructure(self):
        return (self._jac_rows, self._jac_cols)

    def hessianstructure(self):
        return (self._H_rows, self._H_cols)

    def hessian(self, z, lagrange, obj_factor):
        H = self._hess_L(jnp.asarray(z), jnp.asarray(lagrange), jnp.asarray(obj_factor))
        H = np.asarray(H, dtype=float)
        return H[(self._H_rows, self._H_cols)]

    def intermediate(self, alg_mod, iter_count, obj_value, inf_pr, inf_du, mu,
                     d_norm, regularization_size, alpha_du, alpha_pr, ls_trials):
        self.iter_count = int(iter_count)
        return True

    # Solve helper
    def solve(self, options: dict | None = None):
        # Ipopt is only needed here, the callbacks run on jax alone
        import cyipopt

        try:
            nlp = cyipopt.Problem(
                n=self.n, m=self.m, problem_obj=self,
                lb=self.lb, ub=self.ub, cl=self.cl, cu=self.cu
            )
            ipopt_opts = dict(self.solver_settings.ipopt_options)
            if options:
                ipopt_opts.update(options)
            for k, v in ipopt_opts.items():
                nlp.add_option(k, v)
        except (ValueError, TypeError, RuntimeError) as err:
            raise SolverInitializationFailure("Ipopt could not initialize correctly") from err

        start = time.perf_counter()
        z_sol, info = nlp.solve(self.x0)
        logger.info("Time NLP solver:\t\t%.3f\tms", (time.perf_counter() - start) * 1000.0)

        self.status = int(info["status"])
        self.status_msg = info["status_msg"]
        self.obj_val = float(info["obj_val"])
        if self.status in (0, 1):  # solved, solved to acceptable level
            logger.info("The problem solved in %d iterations, final objective %g",
                        self.iter_count, self.obj_val)
        else:
            logger.warning("Ipopt finished with status %d (%s) after %d iterations",
                           self.status, self.status_msg, self.iter_count)

        x, feet = self._split(np.asarray(z_sol, dtype=float))
        return x, feet
