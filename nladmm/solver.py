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
import numpy as np
import numpy.linalg as LA
from collections import namedtuple
from enum import Enum
from time import time
from nladmm.lbfgs import LBFGS
from nladmm.objective import AugmentedObjective, as_objective
from nladmm.proximal import ProximalOperator, NoOp, NonNegative, Box, Hyperplane, L1, ProbabilitySimplex
from nladmm.utilities import ConfigurationError, as_vector, random_init, get_version

# Final state of a solve. x, u and z are read-only copies; primal and dual hold the residual norm of every
# outer iteration.
OptimizationState = namedtuple("OptimizationState", ["x", "u", "z", "iterations", "converged", "primal", "dual",
                                                     "solve_time"])

class Constraint(Enum):
    SMOOTH = "smooth"
    POSITIVE = "positive"
    BOX = "box"
    EQUALITY = "equality"
    SPARSE = "sparse"
    SIMPLEX = "simplex"

class _ColdStart(object):
    # Policy A: a fresh, capped L-BFGS solve of the augmented objective every outer iteration.
    def __init__(self, inner, augmented, x0):
        self.inner = inner
        self.augmented = augmented
        self.x = x0

    def next_iterate(self):
        self.x = self.inner.minimize(self.augmented, self.x)
        return self.x

    def refresh(self):
        pass

class _WarmStart(object):
    # Policy B: one L-BFGS run kept alive across outer iterations. Between iterations the stored gradient is
    # shifted by the change in u - rho*z so it stays the gradient of the current augmented objective.
    def __init__(self, inner, objective, augmented, x0, steps):
        self.inner = inner
        self.augmented = augmented
        self.steps = steps
        state = inner.minimize_and_return_state(objective, x0)
        # Lift grad f(x) to grad f(x) + u + rho*(x - z); the curvature pairs of f alone are dropped.
        self.state = state._replace(grad = state.grad + augmented.rho*state.x + augmented.correction(),
                                    s_hist = (), y_hist = ())

    def next_iterate(self):
        for state in self.inner.iterations(self.augmented, self.state, max_iter = self.steps):
            pass
        self.state = state._replace(grad = state.grad - self.augmented.correction())
        return state.x

    def refresh(self):
        self.state = self.state._replace(grad = self.state.grad + self.augmented.correction())

class NonlinearADMM(object):
    """ADMM solver for
    .. math::
        \\text{minimize } f(x) + g(x),
    where :math:`f` is smooth and reached through its value and gradient, and :math:`g` is handled by the
    proximal operator ``prox``. Boyd et al (2011). "Distributed Optimization and Statistical Learning via the
    Alternating Direction Method of Multipliers." Sect. 3.

    The x-update minimizes the augmented Lagrangian with L-BFGS, either restarted every iteration
    (``iterations_admm``) or resumed from the previous iteration's solver state (``iterations_admm_warm``).

    The instance only holds configuration. Every solve allocates its own x, u and z, so independent solves
    never share state.
    """
    def __init__(self, ndim, prox, **kwargs):
        if int(ndim) != ndim or ndim <= 0:
            raise ConfigurationError("ndim must be a positive integer.")
        if not isinstance(prox, ProximalOperator):
            raise ConfigurationError("prox must be a ProximalOperator, use NoOp() for unconstrained problems.")
        prox.check_size(ndim)
        self.ndim = int(ndim)
        self.prox = prox

        # Problem parameters.
        self.max_iter = kwargs.pop("max_iter", max(1000, 40*self.ndim))   # Outer iteration cap.
        self.eps_abs = kwargs.pop("eps_abs", 1e-4)   # Absolute stopping tolerance.
        self.eps_rel = kwargs.pop("eps_rel", 1e-4)   # Relative stopping tolerance.
        self.alpha = kwargs.pop("alpha", 1.0)        # Over-relaxation.

        # Inner solver parameters.
        self.inner_iters = kwargs.pop("inner_iters", 10)
        self.warm_inner_iters = kwargs.pop("warm_inner_iters", 1)
        self.warm_init_iters = kwargs.pop("warm_init_iters", 10)
        self.max_inner_iter = kwargs.pop("max_inner_iter", -1)
        self.memory = kwargs.pop("memory", 7)
        self.tolerance = kwargs.pop("tolerance", 1e-8)

        # Starting point: an int seed gives the same x_init on every solve, a Generator advances per solve.
        self.seed = kwargs.pop("seed", None)
        self.verbose = kwargs.pop("verbose", False)

        if kwargs:
            raise ConfigurationError("Unknown parameters: {}".format(", ".join(sorted(kwargs))))

        # Validate parameters.
        if int(self.max_iter) != self.max_iter or self.max_iter <= 0:
            raise ConfigurationError("max_iter must be a positive integer.")
        if self.eps_abs < 0:
            raise ConfigurationError("eps_abs must be a non-negative scalar.")
        if self.eps_rel < 0:
            raise ConfigurationError("eps_rel must be a non-negative scalar.")
        if not 0 < self.alpha < 2:
            raise ConfigurationError("alpha must lie in (0, 2).")
        for name in ["inner_iters", "warm_inner_iters", "warm_init_iters"]:
            val = getattr(self, name)
            if int(val) != val or val <= 0:
                raise ConfigurationError("{} must be a positive integer.".format(name))
        if int(self.max_inner_iter) != self.max_inner_iter:
            raise ConfigurationError("max_inner_iter must be an integer.")
        if int(self.memory) != self.memory or self.memory <= 0:
            raise ConfigurationError("memory must be a positive integer.")
        if self.tolerance < 0:
            raise ConfigurationError("tolerance must be a non-negative scalar.")
        self.max_iter = int(self.max_iter)

    def minimize(self, objective, rho = 1.0):
        return self.iterations_admm_warm(objective, rho).x

    def solve(self, objective, rho = 1.0, policy = "warm", x_init = None):
        if policy == "warm":
            return self.iterations_admm_warm(objective, rho, x_init)
        elif policy == "cold":
            return self.iterations_admm(objective, rho, x_init)
        raise ConfigurationError("policy must be either 'warm' or 'cold'.")

    def iterations_admm(self, objective, rho = 1.0, x_init = None):
        """ADMM with a capped L-BFGS solve restarted from the previous iterate at every outer iteration.
        """
        return self._iterate(objective, rho, x_init, warm = False)

    def iterations_admm_warm(self, objective, rho = 1.0, x_init = None):
        """ADMM with a single L-BFGS run resumed for ``warm_inner_iters`` steps per outer iteration.
        """
        return self._iterate(objective, rho, x_init, warm = True)

    def _iterate(self, objective, rho, x_init, warm):
        start = time()
        if not np.isscalar(rho) or not rho > 0:
            raise ConfigurationError("rho must be a positive scalar.")
        objective = as_objective(objective)
        n = self.ndim
        if x_init is None:
            x = random_init(n, self.seed)
        else:
            x = as_vector(x_init, "x_init", n).copy()
        u = np.zeros(n)
        z = np.zeros(n)

        if self.verbose:
            self._print_header(rho, warm)

        if isinstance(self.prox, NoOp):
            inner = LBFGS(self.max_inner_iter, self.memory, self.tolerance)
            x = inner.minimize(objective, x)
            return self._result(x, u, z, 0, True, np.zeros(0), np.zeros(0), start)

        augmented = AugmentedObjective(objective, u, z, rho)
        if warm:
            inner = LBFGS(self.warm_init_iters, self.memory, self.tolerance)
            stepper = _WarmStart(inner, objective, augmented, x, self.warm_inner_iters)
        else:
            inner = LBFGS(self.inner_iters, self.memory, self.tolerance)
            stepper = _ColdStart(inner, augmented, x)

        x_hat = np.zeros(n)
        z_old = np.zeros(n)
        r_primal = np.zeros(self.max_iter)
        r_dual = np.zeros(self.max_iter)
        eps_scale = np.sqrt(n)*self.eps_abs

        # ADMM loop.
        k = 0
        while k < self.max_iter:
            x = stepper.next_iterate()

            # Relaxation: x_hat = alpha*x + (1 - alpha)*z_old.
            z_old[:] = z
            np.multiply(x, self.alpha, out = x_hat)
            x_hat += (1 - self.alpha)*z_old

            # Proximal step for z, then dual update.
            z[:] = self.prox.apply(x_hat + u, rho)
            u += x_hat - z

            # Primal residual ||x - z||_2 and dual residual ||rho*(z - z_old)||_2.
            r_primal[k] = LA.norm(x - z, 2)
            r_dual[k] = LA.norm(rho*(z - z_old), 2)
            eps_primal = eps_scale + self.eps_rel*max(LA.norm(x, 2), LA.norm(z, 2))
            eps_dual = eps_scale + self.eps_rel*LA.norm(rho*u, 2)

            converged = r_primal[k] < eps_primal and r_dual[k] < eps_dual
            if self.verbose and (k % 100 == 0 or converged or k == self.max_iter - 1):
                self._print_row(k, r_primal[k], r_dual[k], start)
            if converged:
                return self._result(x, u, z, k, True, r_primal[:k+1], r_dual[:k+1], start)

            stepper.refresh()
            k = k + 1
        return self._result(x, u, z, self.max_iter, False, r_primal, r_dual, start)

    def _result(self, x, u, z, k, converged, r_primal, r_dual, start):
        arrays = []
        for v in [x, u, z, r_primal, r_dual]:
            v = np.array(v, dtype=float)
            v.flags.writeable = False
            arrays.append(v)
        x, u, z, r_primal, r_dual = arrays
        end = time()
        if self.verbose:
            print("-" * 44)
            print("Status: {}".format("Solved" if converged else "Reach maximum iterations"))
            print("Solve time: {:.2e}".format(end - start))
            print("Total number of iterations: {}".format(k))
        return OptimizationState(x, u, z, k, converged, r_primal, r_dual, end - start)

    def _print_header(self, rho, warm):
        version = get_version("__init__.py")
        line_solver = "nladmm v" + version + " - Proximal ADMM for Smooth Nonlinear Objectives"
        dashes = "-" * len(line_solver)
        print(dashes)
        print(line_solver)
        print(dashes)
        print("ndim = {}, prox = {!r}, policy = {}".format(self.ndim, self.prox, "warm" if warm else "cold"))
        print("max_iter = {}, rho = {:.2e}, alpha = {:.2f}".format(self.max_iter, rho, self.alpha))
        print("eps_abs = {:.2e}, eps_rel = {:.2e}, memory = {}".format(self.eps_abs, self.eps_rel, self.memory))
        print("-" * 44)
        print(" iter | primal res | dual res  | time (s)")
        print("-" * 44)

    def _print_row(self, k, r_primal, r_dual, start):
        print("{}| {}  {}  {}".format(str(k).rjust(6),
                                      format(r_primal, ".2e").ljust(11),
                                      format(r_dual, ".2e").ljust(9),
                                      format(time() - start, ".2e").ljust(8)))

def admm_minimizer(ndim, constraint, lam = 0.0, **kwargs):
    """Builds a NonlinearADMM solver for one of the standard constraints:

    * SMOOTH: no constraint.
    * POSITIVE: :math:`x \\geq 0`.
    * BOX: :math:`0 \\leq x \\leq 1`.
    * EQUALITY: :math:`\\sum_i x_i = 1`.
    * SPARSE: :math:`g(x) = \\lambda\\|x\\|_1` with :math:`\\lambda` = lam.
    * SIMPLEX: :math:`x \\geq 0` and :math:`\\sum_i x_i = 1`.

    constraint is a Constraint or its name. The remaining keyword arguments go to NonlinearADMM.
    """
    if not isinstance(constraint, Constraint):
        try:
            constraint = Constraint[str(constraint).upper()]
        except KeyError:
            raise ConfigurationError("Unknown constraint: {!r}".format(constraint))
    if int(ndim) != ndim or ndim <= 0:
        raise ConfigurationError("ndim must be a positive integer.")

    if constraint == Constraint.SMOOTH:
        prox = NoOp()
    elif constraint == Constraint.POSITIVE:
        prox = NonNegative()
    elif constraint == Constraint.BOX:
        prox = Box(np.zeros(ndim), np.ones(ndim))
    elif constraint == Constraint.EQUALITY:
        prox = Hyperplane(np.ones(ndim), 1.0)
    elif constraint == Constraint.SPARSE:
        prox = L1(lam)
    else:
        prox = ProbabilitySimplex(1.0)
    return NonlinearADMM(ndim, prox, **kwargs)
