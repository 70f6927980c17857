import numpy as np
import pytest

pytest.importorskip("jax")
pytest.importorskip("quadprog")

from zmpopt.nlp import NlpZmp
from zmpopt.errors import InvalidGaitRequest, SolverInitializationFailure


@pytest.fixture
def qp_solution(crawl_problem):
    optimizer, formulation = crawl_problem
    return optimizer, formulation, optimizer.solve_qp(formulation)


def test_constraints_at_warm_start_match_qp_rows(qp_solution):
    optimizer, formulation, x = qp_solution
    nlp = NlpZmp(formulation, x, optimizer.solver_settings)
    values = nlp.constraints(nlp.x0)

    m_eq = formulation.eq.n_constraints
    np.testing.assert_allclose(values[:m_eq], formulation.eq.M.T @ x - formulation.eq.v, atol=1e-9)
    np.testing.assert_allclose(values[m_eq:], formulation.ineq.M.T @ x - formulation.ineq.v, atol=1e-9)
    assert nlp.objective(nlp.x0) == pytest.approx(0.5 * x @ formulation.cost.M @ x, rel=1e-9)


def test_structure_sizes(qp_solution):
    optimizer, formulation, x = qp_solution
    nlp = NlpZmp(formulation, x, optimizer.solver_settings)
    rows, cols = nlp.jacobianstructure()
    assert rows.size == nlp.m * nlp.n
    assert nlp.jacobian(nlp.x0).size == rows.size
    h_rows, _ = nlp.hessianstructure()
    assert h_rows.size == nlp.n * (nlp.n + 1) // 2
    assert nlp.hessian(nlp.x0, np.ones(nlp.m), 1.0).size == h_rows.size


def test_solve_nlp(qp_solution, crawl_footholds):
    pytest.importorskip("cyipopt")
    optimizer, formulation, x = qp_solution
    coeffs, feet = optimizer.solve_nlp(formulation, x, {"max_iter": 20})
    assert coeffs.shape == x.shape
    assert feet.shape == (len(crawl_footholds), 2)
    assert np.all(np.isfinite(coeffs))

    nominal = np.array([f.xy for f in crawl_footholds])
    bound = optimizer.solver_settings.foothold_bound
    assert np.all(np.abs(feet - nominal) <= bound + 1e-6)


def test_wrong_warm_start(crawl_problem):
    optimizer, formulation = crawl_problem
    with pytest.raises(InvalidGaitRequest):
        NlpZmp(formulation, np.zeros(3))


def test_unknown_ipopt_option(qp_solution):
    pytest.importorskip("cyipopt")
    optimizer, formulation, x = qp_solution
    with pytest.raises(SolverInitializationFailure):
        optimizer.solve_nlp(formulation, x, {"no_such_option": 1})
