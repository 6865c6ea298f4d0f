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

import warnings
from collections import namedtuple
import numpy as np
import numpy.linalg as LA
from scipy.optimize import line_search
from nladmm.objective import as_objective
from nladmm.utilities import ConfigurationError

# Snapshot of the solver after a step. s_hist/y_hist hold the curvature pairs, oldest first.
# Callers may build a modified copy with _replace (e.g. a shifted gradient) and resume from it.
LBFGSState = namedtuple("LBFGSState", ["x", "value", "grad", "iter", "s_hist", "y_hist", "converged"])

CURVATURE_EPS = 1e-10

def two_loop(grad, s_hist, y_hist):
	"""Product of the L-BFGS inverse Hessian approximation with grad, by the two-loop recursion.
	Nocedal and Wright (2006). "Numerical Optimization." Algorithm 7.4.
	"""
	q = np.array(grad, dtype=float)
	if len(s_hist) == 0:
		return q
	rhos = [1.0/s.dot(y) for s, y in zip(s_hist, y_hist)]
	alphas = []
	for s, y, rho in reversed(list(zip(s_hist, y_hist, rhos))):
		a = rho*s.dot(q)
		q -= a*y
		alphas.append(a)
	# Initial Hessian H0 = gamma*I scaled by the newest pair.
	s, y = s_hist[-1], y_hist[-1]
	q *= s.dot(y)/y.dot(y)
	for s, y, rho, a in zip(s_hist, y_hist, rhos, reversed(alphas)):
		b = rho*y.dot(q)
		q += (a - b)*s
	return q

class _Evaluator(object):
	# Shares one objective evaluation between the value and gradient callbacks of the line search.
	def __init__(self, objective):
		self.objective = objective
		self.x = None

	def __call__(self, x):
		if self.x is None or not np.array_equal(x, self.x):
			self.val, self.grad = self.objective.evaluate(x)
			self.x = np.array(x, dtype=float)
		return self.val, self.grad

	def value(self, x):
		return self(x)[0]

	def gradient(self, x):
		return self(x)[1]

class LBFGS(object):
	"""Limited-memory BFGS with a strong Wolfe line search.

	:param max_iter: Maximum number of steps per call to ``minimize`` or ``iterations``. A negative value
	means no limit, in which case the solver runs until the gradient test passes or the line search fails.
	:param m: Number of curvature pairs kept.
	:param tolerance: The solver stops once :math:`\\|\\nabla f(x)\\|_2 \\leq tol\\cdot\\max(1, \\|x\\|_2)`.
	"""
	def __init__(self, max_iter = -1, m = 7, tolerance = 1e-8):
		if int(max_iter) != max_iter:
			raise ConfigurationError("max_iter must be an integer.")
		if int(m) != m or m <= 0:
			raise ConfigurationError("m must be a positive integer.")
		if tolerance < 0:
			raise ConfigurationError("tolerance must be a non-negative scalar.")
		self.max_iter = int(max_iter)
		self.m = int(m)
		self.tolerance = tolerance

	def initial_state(self, objective, x0):
		objective = as_objective(objective)
		x = np.array(x0, dtype=float).ravel()
		val, grad = objective.evaluate(x)
		return LBFGSState(x, val, grad, 0, (), (), self._converged(x, grad))

	def iterations(self, objective, state, max_iter = None):
		"""Yields the given state, then the state after each step, until convergence, a line search
		failure or max_iter steps (defaults to the solver's max_iter).

		The gradient stored in ``state`` is taken as the gradient of ``objective`` at ``state.x``; it is
		not recomputed.
		"""
		objective = as_objective(objective)
		if max_iter is None:
			max_iter = self.max_iter
		evaluator = _Evaluator(objective)
		state = state._replace(converged = self._converged(state.x, state.grad))
		yield state
		steps = 0
		while not state.converged and (max_iter < 0 or steps < max_iter):
			state = self._step(evaluator, state)
			steps += 1
			yield state

	def minimize_and_return_state(self, objective, x0):
		objective = as_objective(objective)
		for state in self.iterations(objective, self.initial_state(objective, x0)):
			pass
		return state

	def minimize(self, objective, x0):
		return self.minimize_and_return_state(objective, x0).x

	def _converged(self, x, grad):
		return bool(LA.norm(grad, 2) <= self.tolerance*max(1.0, LA.norm(x, 2)))

	def _line_search(self, evaluator, x, direction, grad):
		with warnings.catch_warnings():
			warnings.simplefilter("ignore")
			step = line_search(evaluator.value, evaluator.gradient, x, direction, gfk=grad)[0]
		if step is None or not np.isfinite(step) or step <= 0:
			return None
		return step

	def _step(self, evaluator, state):
		x, grad = state.x, state.grad
		s_hist, y_hist = state.s_hist, state.y_hist

		direction = -two_loop(grad, s_hist, y_hist)
		if not direction.dot(grad) < 0:
			# Not a descent direction, restart from steepest descent.
			s_hist, y_hist = (), ()
			direction = -grad
		step = self._line_search(evaluator, x, direction, grad)
		if step is None and len(s_hist) > 0:
			s_hist, y_hist = (), ()
			direction = -grad
			step = self._line_search(evaluator, x, direction, grad)
		if step is None:
			# Stalled: no acceptable step along steepest descent either.
			return state._replace(s_hist = (), y_hist = (), converged = True)

		x_new = x + step*direction
		val_new, grad_new = evaluator(x_new)
		s, y = x_new - x, grad_new - grad
		if s.dot(y) > CURVATURE_EPS:
			s_hist = (s_hist + (s,))[-self.m:]
			y_hist = (y_hist + (y,))[-self.m:]
		return LBFGSState(x_new, val_new, grad_new, state.iter + 1, s_hist, y_hist,
						  self._converged(x_new, grad_new))
