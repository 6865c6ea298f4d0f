"""
Copyright 2019 Anqi Fu, Junzi Zhang

This file is part of NLADMM.

NLADMM is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

NLADMM is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU General Public License for more details.

You should have received a copy of the GNU General Public License
along with NLADMM. If not, see <http://www.gnu.org/licenses/>.
"""

import io
from concurrent.futures import ThreadPoolExecutor
from contextlib import redirect_stdout
import numpy as np
import numpy.linalg as LA
import cvxpy as cp

from nladmm import NonlinearADMM, Constraint, admm_minimizer, ConfigurationError
from nladmm.lbfgs import LBFGS
from nladmm.objective import QuadraticCost, L2Regularized
from nladmm.problems import logistic_problem
from nladmm.proximal import NoOp, NonNegative, Box, Hyperplane, L1, ProbabilitySimplex
from nladmm.tests.base_test import BaseTest

class TestSolver(BaseTest):
    """Unit tests for the ADMM solver."""

    def setUp(self):
        np.random.seed(1)
        self.eps_abs = 1e-6
        self.eps_rel = 1e-6
        self.MAX_ITER = 5000

    def solve_cvxpy(self, cost, constr_fun = None, reg_fun = None):
        x = cp.Variable(cost.q.shape[0])
        obj = 0.5*cp.quad_form(x, cp.psd_wrap(cost.H)) + cost.q @ x
        if reg_fun is not None:
            obj = obj + reg_fun(x)
        constrs = [] if constr_fun is None else constr_fun(x)
        cp.Problem(cp.Minimize(obj), constrs).solve()
        return x.value

    def test_unconstrained(self):
        # minimize 1/2 x^T H x + q^T x.
        n = 20
        cost = self.random_quadratic(n)
        x_np = LA.solve(cost.H, -cost.q)

        solver = NonlinearADMM(n, NoOp(), seed = 1)
        for policy in ["warm", "cold"]:
            result = solver.solve(cost, policy = policy)
            self.assertTrue(result.converged)
            self.assertEqual(result.iterations, 0)
            self.assertItemsAlmostEqual(result.x, x_np, places = 5)
            self.assertItemsAlmostEqual(result.u, np.zeros(n))
            self.assertItemsAlmostEqual(result.z, np.zeros(n))

        # Same point as the inner solver run directly.
        x_lbfgs = LBFGS().minimize(cost, np.random.default_rng(1).standard_normal(n))
        self.assertItemsAlmostEqual(solver.minimize(cost), x_lbfgs, places = 6)

    def test_nonneg_small(self):
        # n = 5, random Gram matrix, non-negativity, rho = 1, default tolerances and iteration cap.
        n = 5
        A = np.random.randn(n, n)
        cost = QuadraticCost(A.T.dot(A) + np.eye(n), np.random.randn(n))
        x_cvxpy = self.solve_cvxpy(cost, lambda x: [x >= 0])

        solver = NonlinearADMM(n, NonNegative(), seed = 1)
        self.assertEqual(solver.max_iter, 1000)
        for result in [solver.iterations_admm(cost, rho = 1.0), solver.iterations_admm_warm(cost, rho = 1.0)]:
            self.assertTrue(result.converged)
            self.assertTrue(result.iterations < 1000)
            self.assertEqual(result.z.shape, (n,))
            self.assertTrue(np.all(result.z >= 0))
            self.assertItemsAlmostEqual(result.z, x_cvxpy, places = 2)
            self.assertEqual(result.primal.shape, (result.iterations + 1,))
            self.assertEqual(result.dual.shape, (result.iterations + 1,))

    def test_box(self):
        n = 10
        cost = self.random_quadratic(n)
        lb = -np.abs(np.random.randn(n))/10
        ub = np.abs(np.random.randn(n))/10
        x_cvxpy = self.solve_cvxpy(cost, lambda x: [x >= lb, x <= ub])

        solver = NonlinearADMM(n, Box(lb, ub), eps_abs = self.eps_abs, eps_rel = self.eps_rel,
                               max_iter = self.MAX_ITER, seed = 1)
        for policy in ["cold", "warm"]:
            result = solver.solve(cost, policy = policy)
            self.assertTrue(result.converged)
            self.assertTrue(np.all(result.z >= lb) and np.all(result.z <= ub))
            self.assertItemsAlmostEqual(result.z, x_cvxpy, places = 3)

    def test_hyperplane(self):
        # Sum-to-one constraint on a 10-dimensional quadratic.
        n = 10
        cost = self.random_quadratic(n)
        x_cvxpy = self.solve_cvxpy(cost, lambda x: [cp.sum(x) == 1])

        solver = admm_minimizer(n, Constraint.EQUALITY, seed = 1)
        for policy in ["cold", "warm"]:
            result = solver.solve(cost, policy = policy)
            self.assertTrue(result.converged)
            self.assertTrue(abs(np.sum(result.z) - 1) < 1e-3)
            self.assertItemsAlmostEqual(result.z, x_cvxpy, places = 2)

        # General normal vector.
        a = np.random.randn(n)
        result = NonlinearADMM(n, Hyperplane(a, 2.0), seed = 1).iterations_admm(cost)
        self.assertTrue(result.converged)
        self.assertTrue(abs(a.dot(result.z) - 2.0) < 1e-3)

    def test_l1_sparsity(self):
        # minimize sum_i d_i/2 x_i^2 + q_i x_i + lam*||x||_1, solved by x_i = -soft(q_i, lam)/d_i.
        q = np.array([0.1, -0.3, 0.5, -0.7, 0.9, -1.1, 1.3, -1.5])
        d = np.linspace(1, 2, q.shape[0])
        cost = QuadraticCost(np.diag(d), q)
        n = q.shape[0]

        nnz = []
        for lam in [0.2, 0.6, 1.0, 1.4, 2.0]:
            solver = admm_minimizer(n, Constraint.SPARSE, lam, seed = 1, max_iter = self.MAX_ITER, eps_abs = self.eps_abs,
                                    eps_rel = self.eps_rel)
            result = solver.iterations_admm(cost)
            self.assertTrue(result.converged)
            x_true = -np.sign(q)*np.maximum(np.abs(q) - lam, 0)/d
            self.assertItemsAlmostEqual(result.z, x_true, places = 3)
            nnz.append(np.count_nonzero(result.z))
            self.assertEqual(nnz[-1], np.count_nonzero(x_true))
        self.assertEqual(nnz, sorted(nnz, reverse = True))

    def test_policies_agree(self):
        n = 10
        cost = self.random_quadratic(n)
        solver = NonlinearADMM(n, NonNegative(), eps_abs = self.eps_abs, eps_rel = self.eps_rel,
                               max_iter = self.MAX_ITER, seed = 1)
        cold = solver.iterations_admm(cost, rho = 1.0)
        warm = solver.iterations_admm_warm(cost, rho = 1.0)
        self.assertTrue(cold.converged and warm.converged)
        self.assertTrue(LA.norm(cold.z - warm.z) <= 1e-3*max(1.0, LA.norm(cold.z)))
        self.assertTrue(LA.norm(cold.x - warm.x) <= 1e-3*max(1.0, LA.norm(cold.x)))
        obj_cold, obj_warm = cost.value(cold.z), cost.value(warm.z)
        self.assertTrue(abs(obj_cold - obj_warm) <= 1e-3*max(1.0, abs(obj_cold)))
        self.assertItemsAlmostEqual(solver.minimize(cost), warm.x, places = 8)

    def test_simplex(self):
        n = 6
        cost = self.random_quadratic(n)
        x_cvxpy = self.solve_cvxpy(cost, lambda x: [x >= 0, cp.sum(x) == 1])
        result = admm_minimizer(n, "simplex", seed = 1, max_iter = self.MAX_ITER, eps_abs = self.eps_abs,
                                eps_rel = self.eps_rel).iterations_admm(cost)
        self.assertTrue(result.converged)
        self.assertTrue(np.all(result.z >= 0))
        self.assertAlmostEqual(np.sum(result.z), 1.0, places = 6)
        self.assertItemsAlmostEqual(result.z, x_cvxpy, places = 3)

    def test_logistic_elastic_net(self):
        n = 10
        lam_l1, lam_l2 = 0.5, 1.0
        loss = logistic_problem(n, seed = 1)
        cost = L2Regularized(loss, lam_l2)
        x = cp.Variable(n)
        signs = 2*loss.labels - 1
        obj = cp.sum(cp.logistic(-cp.multiply(signs, loss.data @ x))) + 0.5*lam_l2*cp.sum_squares(x) \
              + lam_l1*cp.norm1(x)
        prob = cp.Problem(cp.Minimize(obj))
        prob.solve()

        solver = admm_minimizer(n, Constraint.SPARSE, lam_l1, seed = 1, max_iter = self.MAX_ITER, eps_abs = self.eps_abs,
                                eps_rel = self.eps_rel)
        result = solver.iterations_admm(cost)
        self.assertTrue(result.converged)
        obj_admm = cost.value(result.z) + solver.prox.value(result.z)
        self.assertAlmostEqual(obj_admm, prob.value, places = 3)

    def test_over_relaxation(self):
        n = 8
        cost = self.random_quadratic(n)
        kwargs = {"eps_abs": self.eps_abs, "eps_rel": self.eps_rel, "max_iter": self.MAX_ITER, "seed": 1}
        plain = NonlinearADMM(n, NonNegative(), **kwargs).iterations_admm(cost)
        relaxed = NonlinearADMM(n, NonNegative(), alpha = 1.5, **kwargs).iterations_admm(cost)
        self.assertTrue(plain.converged and relaxed.converged)
        self.assertItemsAlmostEqual(plain.z, relaxed.z, places = 3)

    def test_max_iter(self):
        n = 10
        cost = self.random_quadratic(n)
        solver = NonlinearADMM(n, NonNegative(), max_iter = 1, seed = 1)
        for policy in ["cold", "warm"]:
            result = solver.solve(cost, policy = policy)
            self.assertFalse(result.converged)
            self.assertEqual(result.iterations, 1)
            self.assertTrue(np.all(np.isfinite(result.x)))
            self.assertTrue(np.all(np.isfinite(result.z)))
            self.assertEqual(result.primal.shape, (1,))

    def test_default_max_iter(self):
        self.assertEqual(NonlinearADMM(5, NonNegative()).max_iter, 1000)
        self.assertEqual(NonlinearADMM(100, NonNegative()).max_iter, 4000)
        self.assertEqual(NonlinearADMM(100, NonNegative(), max_iter = 7).max_iter, 7)

    def test_reproducible(self):
        n = 10
        cost = self.random_quadratic(n)
        result_a = NonlinearADMM(n, NonNegative(), seed = 7, max_iter = 5).iterations_admm(cost)
        result_b = NonlinearADMM(n, NonNegative(), seed = 7, max_iter = 5).iterations_admm(cost)
        self.assertItemsAlmostEqual(result_a.x, result_b.x, places = 12)
        self.assertItemsAlmostEqual(result_a.u, result_b.u, places = 12)

        x_init = np.random.randn(n)
        solver = NonlinearADMM(n, NonNegative(), max_iter = 5)
        result_a = solver.iterations_admm(cost, x_init = x_init)
        result_b = solver.iterations_admm(cost, x_init = x_init)
        self.assertItemsAlmostEqual(result_a.z, result_b.z, places = 12)
        with self.assertRaises(ConfigurationError):
            solver.iterations_admm(cost, x_init = np.zeros(n + 1))

    def test_independent_solves(self):
        n = 10
        costs = [self.random_quadratic(n) for _ in range(4)]
        solver = NonlinearADMM(n, NonNegative(), seed = 1)
        sequential = [solver.iterations_admm_warm(cost) for cost in costs]
        with ThreadPoolExecutor(max_workers = 4) as pool:
            concurrent = list(pool.map(solver.iterations_admm_warm, costs))
        for res_seq, res_con in zip(sequential, concurrent):
            self.assertEqual(res_seq.iterations, res_con.iterations)
            self.assertItemsAlmostEqual(res_seq.x, res_con.x, places = 12)
            self.assertItemsAlmostEqual(res_seq.z, res_con.z, places = 12)

    def test_result_read_only(self):
        n = 5
        result = NonlinearADMM(n, NonNegative(), max_iter = 3, seed = 1).iterations_admm(self.random_quadratic(n))
        with self.assertRaises(ValueError):
            result.z[0] = 1.0
        with self.assertRaises(AttributeError):
            result.converged = True

    def test_callable_objective(self):
        # Plain (value, gradient) callables are accepted.
        n = 5
        cost = self.random_quadratic(n)
        result = NonlinearADMM(n, NonNegative(), seed = 1).iterations_admm(lambda x: cost.evaluate(x))
        self.assertTrue(result.converged)
        self.assertTrue(np.all(result.z >= 0))

    def test_verbose(self):
        n = 5
        solver = NonlinearADMM(n, NonNegative(), seed = 1, verbose = True)
        out = io.StringIO()
        with redirect_stdout(out):
            result = solver.iterations_admm(self.random_quadratic(n))
        self.assertTrue(result.converged)
        self.assertIn("Status: Solved", out.getvalue())
        self.assertIn("primal res", out.getvalue())

        solver = NonlinearADMM(n, NonNegative(), seed = 1, verbose = True, max_iter = 2)
        out = io.StringIO()
        with redirect_stdout(out):
            solver.iterations_admm(self.random_quadratic(n))
        self.assertIn("Status: Reach maximum iterations", out.getvalue())

    def test_factory(self):
        n = 4
        expected = {Constraint.SMOOTH: NoOp, Constraint.POSITIVE: NonNegative, Constraint.BOX: Box,
                    Constraint.EQUALITY: Hyperplane, Constraint.SPARSE: L1, Constraint.SIMPLEX: ProbabilitySimplex}
        for constraint, prox_type in expected.items():
            solver = admm_minimizer(n, constraint, 0.3)
            self.assertTrue(isinstance(solver, NonlinearADMM))
            self.assertTrue(type(solver.prox) is prox_type)
            self.assertEqual(solver.ndim, n)
            self.assertTrue(type(admm_minimizer(n, constraint.name.lower()).prox) is prox_type)

        box = admm_minimizer(n, "BOX").prox
        self.assertItemsAlmostEqual(box.lb, np.zeros(n))
        self.assertItemsAlmostEqual(box.ub, np.ones(n))
        plane = admm_minimizer(n, Constraint.EQUALITY).prox
        self.assertItemsAlmostEqual(plane.a, np.ones(n))
        self.assertEqual(plane.b, 1.0)
        self.assertEqual(admm_minimizer(n, Constraint.SPARSE, 0.3).prox.lam, 0.3)
        self.assertEqual(admm_minimizer(n, Constraint.POSITIVE, max_iter = 11).max_iter, 11)

        with self.assertRaises(ConfigurationError):
            admm_minimizer(n, "simplexx")
        with self.assertRaises(ConfigurationError):
            admm_minimizer(n, Constraint.SPARSE, -1.0)

    def test_invalid(self):
        n = 5
        cost = self.random_quadratic(n)
        solver = NonlinearADMM(n, NonNegative())
        with self.assertRaises(ConfigurationError):
            solver.iterations_admm(cost, rho = 0)
        with self.assertRaises(ConfigurationError):
            solver.iterations_admm_warm(cost, rho = -1.0)
        with self.assertRaises(ConfigurationError):
            solver.solve(cost, policy = "lukewarm")
        with self.assertRaises(ConfigurationError):
            NonlinearADMM(n, None)
        with self.assertRaises(ConfigurationError):
            NonlinearADMM(0, NonNegative())
        with self.assertRaises(ConfigurationError):
            NonlinearADMM(n, Box(np.zeros(n + 1), np.ones(n + 1)))
        with self.assertRaises(ConfigurationError):
            NonlinearADMM(n, Hyperplane(np.ones(n - 1), 1.0))
        with self.assertRaises(ConfigurationError):
            NonlinearADMM(n, NonNegative(), max_iter = 0)
        with self.assertRaises(ConfigurationError):
            NonlinearADMM(n, NonNegative(), eps_abs = -1e-4)
        with self.assertRaises(ConfigurationError):
            NonlinearADMM(n, NonNegative(), eps_rel = -1e-4)
        with self.assertRaises(ConfigurationError):
            NonlinearADMM(n, NonNegative(), alpha = 2.0)
        with self.assertRaises(ConfigurationError):
            NonlinearADMM(n, NonNegative(), inner_iters = 0)
        with self.assertRaises(ConfigurationError):
            NonlinearADMM(n, NonNegative(), memory = 0)
        with self.assertRaises(ConfigurationError):
            NonlinearADMM(n, NonNegative(), max_itr = 10)
