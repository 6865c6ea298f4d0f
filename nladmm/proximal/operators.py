import numpy as np
from nladmm.proximal.constraint import prox_nonneg_constr_base, prox_box_constr_base, prox_hyperplane_base, \
    prox_simplex_base
from nladmm.proximal.norm import prox_norm1_base
from nladmm.utilities import ConfigurationError, as_vector

FEASIBILITY_TOL = 1e-6

class ProximalOperator(object):
    """Proximal operator of a closed convex function :math:`g` used in the z-update of ADMM.

    ``apply(v, rho)`` returns
    .. math::
        \\arg\\min_x g(x) + \\frac{\\rho}{2}\\|x - v\\|_2^2
    as a new array, leaving :math:`v` untouched. The penalty :math:`\\rho > 0` is validated by the solver.
    Parameters are fixed at construction, so a single operator may be shared by any number of solves.
    """
    # Length of the vectors the operator was built for, None if it accepts any length.
    size = None

    def apply(self, v, rho):
        raise NotImplementedError

    def value(self, x):
        """Value of :math:`g(x)`.
        """
        raise NotImplementedError

    def check_size(self, ndim):
        if self.size is not None and self.size != ndim:
            raise ConfigurationError("Dimension mismatch: {} built for vectors of length {}, solver has {}".format(
                                     type(self).__name__, self.size, ndim))

    def __call__(self, v, rho):
        return self.apply(v, rho)

    def __repr__(self):
        return "{}()".format(type(self).__name__)

class NoOp(ProximalOperator):
    """Identity map, :math:`g = 0`. Marks a problem as unconstrained, in which case the solver skips the
    splitting and hands the smooth objective straight to the inner solver.
    """
    def apply(self, v, rho):
        return np.array(v, dtype=float)

    def value(self, x):
        return 0.0

class NonNegative(ProximalOperator):
    """Projection onto the non-negative orthant.
    """
    def apply(self, v, rho):
        return prox_nonneg_constr_base(v, 1.0/rho)

    def value(self, x):
        return 0.0 if np.all(x >= -FEASIBILITY_TOL) else np.inf

class Box(ProximalOperator):
    """Projection onto :math:`\\{x : lb \\leq x \\leq ub\\}`. Scalar bounds broadcast to any length.
    """
    def __init__(self, lb, ub):
        if np.isscalar(lb) and np.isscalar(ub):
            self.lb, self.ub = float(lb), float(ub)
        else:
            size = np.size(ub) if np.isscalar(lb) else np.size(lb)
            self.lb = np.full(size, float(lb)) if np.isscalar(lb) else as_vector(lb, "lb")
            self.ub = np.full(size, float(ub)) if np.isscalar(ub) else as_vector(ub, "ub", size)
            self.size = size
        if np.any(np.isnan(self.lb)) or np.any(np.isnan(self.ub)):
            raise ConfigurationError("lb and ub must not contain NaN.")
        if np.any(self.lb > self.ub):
            raise ConfigurationError("lb must be elementwise less than or equal to ub.")

    def apply(self, v, rho):
        return prox_box_constr_base(v, 1.0/rho, self.lb, self.ub)

    def value(self, x):
        feasible = np.all(x >= self.lb - FEASIBILITY_TOL) and np.all(x <= self.ub + FEASIBILITY_TOL)
        return 0.0 if feasible else np.inf

    def __repr__(self):
        return "Box(lb={!r}, ub={!r})".format(self.lb, self.ub)

class Hyperplane(ProximalOperator):
    """Projection onto the hyperplane :math:`\\{x : a^Tx = b\\}` for a non-zero normal :math:`a`.
    """
    def __init__(self, a, b):
        self.a = as_vector(a, "a")
        self.b = float(b)
        self.size = self.a.shape[0]
        if not np.any(self.a):
            raise ConfigurationError("a must be a non-zero vector.")

    def apply(self, v, rho):
        return prox_hyperplane_base(v, 1.0/rho, self.a, self.b)

    def value(self, x):
        return 0.0 if abs(self.a.dot(x) - self.b) <= FEASIBILITY_TOL*max(1.0, abs(self.b)) else np.inf

    def __repr__(self):
        return "Hyperplane(a={!r}, b={!r})".format(self.a, self.b)

class L1(ProximalOperator):
    """Soft thresholding, the proximal operator of :math:`g(x) = \\lambda\\|x\\|_1`. Unlike the projections,
    the threshold :math:`\\lambda/\\rho` depends on the penalty.
    """
    def __init__(self, lam):
        if not np.isscalar(lam) or np.isnan(lam) or lam < 0:
            raise ConfigurationError("lam must be a non-negative scalar.")
        self.lam = float(lam)

    def apply(self, v, rho):
        return prox_norm1_base(v, self.lam/rho)

    def value(self, x):
        return self.lam * np.sum(np.abs(x))

    def __repr__(self):
        return "L1(lam={!r})".format(self.lam)

class ProbabilitySimplex(ProximalOperator):
    """Projection onto :math:`\\{x : x \\geq 0, \\sum_i x_i = r\\}`.
    """
    def __init__(self, r = 1.0, method = "sorted"):
        if not np.isscalar(r) or not r > 0:
            raise ConfigurationError("r must be a positive scalar.")
        if method not in ["sorted", "bisection"]:
            raise ConfigurationError("method must be either 'sorted' or 'bisection'.")
        self.r = float(r)
        self.method = method

    def apply(self, v, rho):
        return prox_simplex_base(np.asarray(v, dtype=float), 1.0/rho, self.r, self.method)

    def value(self, x):
        feasible = np.all(x >= -FEASIBILITY_TOL) and abs(np.sum(x) - self.r) <= FEASIBILITY_TOL*max(1.0, self.r)
        return 0.0 if feasible else np.inf

    def __repr__(self):
        return "ProbabilitySimplex(r={!r})".format(self.r)
