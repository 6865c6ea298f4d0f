import numpy as np
from scipy.optimize import nnls
from nladmm import NonlinearADMM
from nladmm.problems import LinearCost
from nladmm.proximal import NonNegative

def main():
	# Solve the non-negative least squares problem
	# Minimize ||Fx - g||_2^2 subject to x >= 0
	# by splitting off the constraint with ADMM.

	# Problem data.
	np.random.seed(1)
	m, n = 150, 100
	F = np.random.randn(m, n)
	g = np.random.randn(m)
	cost = LinearCost(F, g)

	# Solve with cold and warm started inner solves.
	solver = NonlinearADMM(n, NonNegative(), seed = 1, verbose = True)
	cold = solver.iterations_admm(cost)
	warm = solver.iterations_admm_warm(cost)

	# Compare with SciPy's active set solver.
	x_nnls = nnls(F, g)[0]
	print("Objective (cold):", cost.value(cold.z))
	print("Objective (warm):", cost.value(warm.z))
	print("Objective (nnls):", cost.value(x_nnls))
	print("Nonzero entries proportion = {}".format(np.mean(warm.z > 0)))

if __name__ == '__main__':
	main()
