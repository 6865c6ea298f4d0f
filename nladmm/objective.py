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

class SmoothObjective(object):
    """A differentiable function :math:`f`. Subclasses implement ``evaluate(x)``, returning the pair
    :math:`(f(x), \\nabla f(x))` for any x of the right length.
    """
    def evaluate(self, x):
        raise NotImplementedError

    def value(self, x):
        return self.evaluate(x)[0]

    def gradient(self, x):
        return self.evaluate(x)[1]

    def __call__(self, x):
        return self.evaluate(x)

class FunctionObjective(SmoothObjective):
    """Wraps a plain callable returning (value, gradient)."""
    def __init__(self, fun):
        self.fun = fun

    def evaluate(self, x):
        val, grad = self.fun(x)
        grad = np.asarray(grad, dtype=float)
        if grad.shape != x.shape:
            raise ValueError("Dimension mismatch: gradient has shape {}, x has shape {}".format(grad.shape, x.shape))
        return float(val), grad

def as_objective(fun):
    if isinstance(fun, SmoothObjective):
        return fun
    if hasattr(fun, "evaluate"):
        return FunctionObjective(fun.evaluate)
    if callable(fun):
        return FunctionObjective(fun)
    raise TypeError("fun must be a SmoothObjective, an object with evaluate(x) or a callable returning (value, gradient)")

class QuadraticCost(SmoothObjective):
    """:math:`f(x) = \\frac{1}{2}x^THx + q^Tx` for symmetric H."""
    def __init__(self, H, q):
        self.H = np.asarray(H, dtype=float)
        self.q = np.asarray(q, dtype=float)
        if self.H.shape != (self.q.shape[0], self.q.shape[0]):
            raise ValueError("Dimension mismatch: H must be a square matrix with nrow(H) = len(q)")

    def evaluate(self, x):
        Hx = self.H.dot(x)
        return 0.5*x.dot(Hx) + self.q.dot(x), Hx + self.q

class L2Regularized(SmoothObjective):
    """:math:`f(x) + \\frac{w}{2}\\|x\\|_2^2`."""
    def __init__(self, objective, weight):
        if weight < 0:
            raise ValueError("weight must be a non-negative scalar.")
        self.objective = as_objective(objective)
        self.weight = weight

    def evaluate(self, x):
        val, grad = self.objective.evaluate(x)
        return val + 0.5*self.weight*x.dot(x), grad + self.weight*x

class AugmentedObjective(SmoothObjective):
    """Augmented Lagrangian of the x-update in ADMM,
    .. math::
        f(x) + u^T(x - z) + \\frac{\\rho}{2}\\|x - z\\|_2^2,
    with gradient :math:`\\nabla f(x) + u + \\rho(x - z)`.

    u and z are held by reference and read at every evaluation. The solver updates them in place, so one
    instance serves a whole solve. They are never written to here.
    """
    def __init__(self, objective, u, z, rho):
        self.objective = as_objective(objective)
        self.u = u
        self.z = z
        self.rho = rho

    def evaluate(self, x):
        val, grad = self.objective.evaluate(x)
        diff = x - self.z
        aug_val = val + self.u.dot(diff) + 0.5*self.rho*diff.dot(diff)
        aug_grad = grad + self.u + self.rho*diff
        return aug_val, aug_grad

    def correction(self):
        """Part of the gradient that depends on (u, z) only, :math:`u - \\rho z`."""
        return self.u - self.rho*self.z
