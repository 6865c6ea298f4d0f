import numpy as np
from scipy.optimize import bisect

TOLERANCE = 1e-6

def prox_nonneg_constr_base(v, t):
	"""Proximal operator of the set indicator that :math:`x \\geq 0`.
	"""
	return np.maximum(v, 0)

def prox_box_constr_base(v, t, v_lo, v_hi):
	"""Proximal operator of the set indicator that :math:`\\underline x \\leq x \\leq \\overline x`.
	"""
	return np.minimum(np.maximum(v, v_lo), v_hi)

def prox_hyperplane_base(v, t, a, b):
	"""Proximal operator of the set indicator that :math:`a^Tx = b`, i.e. the orthogonal projection
	.. math::
		v - \\frac{a^Tv - b}{a^Ta} a
	onto the hyperplane. The normal vector :math:`a` must be non-zero.
	"""
	return v - ((a.dot(v) - b) / a.dot(a)) * a

def prox_simplex_base(v, t, r = 1, method = "sorted"):
	"""Proximal operator of the set indicator that :math:`x \\geq 0` and :math:`\\sum_i x_i = r`, the
	probability simplex scaled by r > 0. The projection is :math:`\\max(v - c^*, 0)` for the unique shift
	:math:`c^*` with :math:`\\sum_i \\max(v_i - c^*, 0) = r`, found by
	   sorting: Duchi et al (2008). "Efficient Projections onto the l1-Ball for Learning in High Dimensions."
			Fig. 1. https://stanford.edu/~jduchi/projects/DuchiShSiCh08.pdf
	   bisection: Liu and Ye (2009). "Efficient Euclidean Projections in Linear Time." Sect. 2.1.
			https://icml.cc/Conferences/2009/papers/123.pdf
	"""
	if method == "sorted":
		v_decr = np.sort(v)[::-1]
		theta = (np.cumsum(v_decr) - r) / np.arange(1, v.size + 1)
		# last index where the sorted entry stays above its running threshold
		rho_idx = np.flatnonzero(v_decr - theta > 0)[-1]
		shift = theta[rho_idx]
	elif method == "bisection":
		lo = np.min(v) - (r + TOLERANCE) / v.size
		hi = np.max(v) + (r + TOLERANCE) / v.size
		shift = bisect(lambda c: np.sum(np.maximum(v - c, 0)) - r, lo, hi)
	else:
		raise ValueError("method must be either 'sorted' or 'bisection'.")
	return np.maximum(v - shift, 0)
