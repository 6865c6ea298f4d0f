import numpy as np
from cvxpy import *
from nladmm import admm_minimizer, Constraint
from nladmm.problems import LinearCost

def main():
	# Solve the lasso problem
	# Minimize ||Ax - b||_2^2 + gamma*||x||_1
	# with the smooth term handled by L-BFGS and the l1 term by soft thresholding.

	# Problem data.
	np.random.seed(1)
	m = 100
	n = 75
	DENSITY = 0.75
	A = np.random.randn(m,n)
	xtrue = np.random.randn(n)
	idxs = np.random.choice(range(n), int((1 - DENSITY) * n), replace=False)
	xtrue[idxs] = 0
	b = A.dot(xtrue) + np.random.randn(m)
	gamma = 1.0

	# Solve via ADMM.
	cost = LinearCost(A, b)
	solver = admm_minimizer(n, Constraint.SPARSE, gamma, seed = 1)
	result = solver.iterations_admm(cost, rho = 10.0)
	print("Converged:", result.converged, "after", result.iterations, "iterations")
	print("Objective:", cost.value(result.z) + gamma*np.sum(np.abs(result.z)))

	# Solve via CVXPY.
	x = Variable(n)
	prob = Problem(Minimize(sum_squares(A @ x - b) + gamma*norm1(x)))
	prob.solve()
	print("CVXPY Objective:", prob.value)

if __name__ == '__main__':
	main()
