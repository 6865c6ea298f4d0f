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
import sys
from time import time
import numpy as np
import numpy.linalg as LA
import cvxpy as cp
from scipy.optimize import minimize

from nladmm.objective import L2Regularized, QuadraticCost
from nladmm.problems import linear_problem, logistic_problem, quadratic_objective
from nladmm.solver import admm_minimizer, Constraint

SEED = 1

def timed(fun, *args, **kwargs):
    start = time()
    result = fun(*args, **kwargs)
    return result, (time() - start)*1e3

def print_distance(name_a, x_a, name_b, x_b):
    print("||{} - {}|| norm {:.4e} inf-norm {:.4e}".format(name_a, name_b, LA.norm(x_a - x_b, 2),
                                                          LA.norm(x_a - x_b, np.inf)))

def solve_qp_cvxpy(h, q, lam_l1 = 0.0, lb = None, ub = None):
    # minimize 1/2 x^T h x + q^T x + lam_l1*||x||_1 s.t. lb <= x <= ub
    x = cp.Variable(q.shape[0])
    obj = 0.5*cp.quad_form(x, cp.psd_wrap(h)) + q @ x + lam_l1*cp.norm1(x)
    constr = [] if lb is None else [x >= lb, x <= ub]
    cp.Problem(cp.Minimize(obj), constr).solve()
    return x.value

def solve_logistic_cvxpy(cost, lam_l1, lam_l2):
    x = cp.Variable(cost.data.shape[1])
    signs = 2*cost.labels - 1
    obj = cp.sum(cp.logistic(-cp.multiply(signs, cost.data @ x))) + 0.5*lam_l2*cp.sum_squares(x) \
          + lam_l1*cp.norm1(x)
    cp.Problem(cp.Minimize(obj)).solve()
    return x.value

def solve_lbfgsb(cost, x0, bounds = None):
    return minimize(cost.evaluate, x0, jac = True, method = "L-BFGS-B", bounds = bounds).x

def main(argv = None):
    if argv is None:
        argv = sys.argv[1:]
    if len(argv) < 3:
        print("Usage: nladmm.benchmark n lambda beta")
        print("Test NonlinearADMM with a quadratic function of dimension n and lambda beta for elastic net")
        sys.exit(1)

    problem_size = int(argv[0])
    lam = float(argv[1])
    beta = float(argv[2])
    rng = np.random.default_rng(SEED)

    print("Generating Linear Loss with rank {}".format(problem_size))
    quadratic_cost, h, q = linear_problem(problem_size, rng)
    x0 = rng.standard_normal(problem_size)

    qp_result, qp_time = timed(solve_qp_cvxpy, h, q)
    nl_result, nl_time = timed(admm_minimizer(problem_size, Constraint.SMOOTH, seed = rng).minimize, quadratic_cost)
    bfgs_result, bfgs_time = timed(solve_lbfgsb, quadratic_cost, x0)

    print_distance("qp", qp_result, "nl", nl_result)
    print_distance("bfgs", bfgs_result, "nl", nl_result)
    print("Objective qp {} nl {} bfgs {}".format(quadratic_objective(h, q, qp_result),
                                                 quadratic_objective(h, q, nl_result),
                                                 quadratic_objective(h, q, bfgs_result)))
    print("dim {} qp {:.3f} ms nl {:.3f} ms bfgs {:.3f} ms".format(problem_size, qp_time, nl_time, bfgs_time))

    lam_l1 = lam*beta
    lam_l2 = lam*(1 - beta)
    regularized_gram = h + lam_l2*np.eye(problem_size)
    regularized_cost = QuadraticCost(regularized_gram, q)

    print("ElasticNet Formulation")
    print("Linear Regression")
    nl_sparse = admm_minimizer(problem_size, Constraint.SPARSE, lam_l1, seed = rng)
    l1_norm = lambda x: lam_l1*np.sum(np.abs(x))

    sparse_qp_result, sparse_qp_time = timed(solve_qp_cvxpy, regularized_gram, q, lam_l1)
    nl_cold, nl_cold_time = timed(nl_sparse.iterations_admm, regularized_cost)
    nl_warm, nl_warm_time = timed(nl_sparse.iterations_admm_warm, regularized_cost)

    print("sparseQp {:.3f} ms nlSparse {:.3f} ms iters {} nlSparseHistory {:.3f} ms iters {}".format(
          sparse_qp_time, nl_cold_time, nl_cold.iterations, nl_warm_time, nl_warm.iterations))
    print_distance("sparseQp", sparse_qp_result, "nlSparse", nl_cold.z)
    print_distance("sparseQp", sparse_qp_result, "nlSparseHistory", nl_warm.z)
    print("sparseQpObj {} nlSparseObj {} nlSparseHistoryObj {}".format(
          regularized_cost.value(sparse_qp_result) + l1_norm(sparse_qp_result),
          regularized_cost.value(nl_cold.z) + l1_norm(nl_cold.z),
          regularized_cost.value(nl_warm.z) + l1_norm(nl_warm.z)))

    print("Logistic Regression")
    logistic_loss = logistic_problem(problem_size, rng)
    elastic_net_loss = L2Regularized(logistic_loss, lam_l2)

    cvx_logistic_result, cvx_logistic_time = timed(solve_logistic_cvxpy, logistic_loss, lam_l1, lam_l2)
    nl_logistic, nl_logistic_time = timed(nl_sparse.iterations_admm, elastic_net_loss)

    print("cvxLogistic {:.3f} ms nlLogistic {:.3f} ms iters {}".format(cvx_logistic_time, nl_logistic_time,
                                                                     nl_logistic.iterations))
    print_distance("cvxLogistic", cvx_logistic_result, "nlLogistic", nl_logistic.z)
    print("cvxLogistic objective {}".format(elastic_net_loss.value(cvx_logistic_result) + l1_norm(cvx_logistic_result)))
    print("nlLogistic objective {}".format(elastic_net_loss.value(nl_logistic.z) + l1_norm(nl_logistic.z)))

    print("Linear Regression with Bounds")
    nl_box = admm_minimizer(problem_size, Constraint.BOX, seed = rng)
    lb, ub = np.zeros(problem_size), np.ones(problem_size)

    nl_box_result, nl_box_time = timed(nl_box.iterations_admm, quadratic_cost)
    nl_box_warm, nl_box_warm_time = timed(nl_box.iterations_admm_warm, quadratic_cost)
    qp_box_result, qp_box_time = timed(solve_qp_cvxpy, h, q, 0.0, lb, ub)
    pqn_box_result, pqn_box_time = timed(solve_lbfgsb, quadratic_cost, x0, list(zip(lb, ub)))

    print("qpBox {:.3f} ms".format(qp_box_time))
    print("nlBox {:.3f} ms iters {} nlBoxHistory {:.3f} ms iters {}".format(nl_box_time, nl_box_result.iterations,
                                                                          nl_box_warm_time, nl_box_warm.iterations))
    print("pqnBox {:.3f} ms".format(pqn_box_time))
    print_distance("qpBox", qp_box_result, "nlBox", nl_box_result.z)
    print_distance("qpBox", qp_box_result, "nlBoxHistory", nl_box_warm.z)
    print_distance("qpBox", qp_box_result, "pqnBox", pqn_box_result)
    print("qpBoxObj {} nlBoxObj {} nlBoxHistoryObj {} pqnBoxObj {}".format(
          quadratic_objective(h, q, qp_box_result), quadratic_objective(h, q, nl_box_result.z),
          quadratic_objective(h, q, nl_box_warm.z), quadratic_objective(h, q, pqn_box_result)))

    print("Logistic Regression with Bounds")
    nl_box_logistic, nl_box_logistic_time = timed(nl_box.iterations_admm, elastic_net_loss)
    pqn_logistic_result, pqn_logistic_time = timed(solve_lbfgsb, elastic_net_loss, x0, list(zip(lb, ub)))

    print("pqnBox {:.3f} ms nlBox {:.3f} ms iters {}".format(pqn_logistic_time, nl_box_logistic_time,
                                                           nl_box_logistic.iterations))
    print("pqn loss {}".format(elastic_net_loss.value(pqn_logistic_result)))
    print("nl loss {}".format(elastic_net_loss.value(nl_box_logistic.z)))
    return 0

if __name__ == '__main__':
    sys.exit(main())
