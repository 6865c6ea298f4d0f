import numpy as np
from scipy.special import expit
from nladmm.objective import SmoothObjective, QuadraticCost

class LinearCost(SmoothObjective):
    """Least squares loss :math:`\\|Ax - b\\|_2^2` with A = data, b = labels.
    """
    def __init__(self, data, labels):
        self.data = np.asarray(data, dtype=float)
        self.labels = np.asarray(labels, dtype=float)

    def evaluate(self, x):
        diff = self.data.dot(x) - self.labels
        return diff.dot(diff), 2.0*self.data.T.dot(diff)

class LogisticCost(SmoothObjective):
    """Logistic loss :math:`\\sum_i \\log(1 + \\exp(-a_i^Tx)) + (1 - y_i)a_i^Tx` for labels :math:`y_i \\in \\{0,1\\}`,
    where :math:`a_i` is the i-th row of data.
    """
    def __init__(self, data, labels):
        self.data = np.asarray(data, dtype=float)
        self.labels = np.asarray(labels, dtype=float)

    def evaluate(self, x):
        margin = -self.data.dot(x)
        loss = np.logaddexp(0, margin) - np.where(self.labels > 0, 0, margin)
        grad = self.data.T.dot(expit(-margin) - self.labels)
        return np.sum(loss), grad

def _random_data(ndim, seed):
    rng = seed if isinstance(seed, np.random.Generator) else np.random.default_rng(seed)
    data = rng.standard_normal((ndim, ndim))
    labels = (rng.standard_normal(ndim) > 0.5).astype(float)
    return data, labels

def linear_problem(ndim, seed = None):
    """Random least squares problem with ndim samples and features. Returns the cost together with (h, q)
    such that the cost equals :math:`\\frac{1}{2}x^Thx + q^Tx` up to a constant.
    """
    data, labels = _random_data(ndim, seed)
    h = 2.0*data.T.dot(data)
    q = -2.0*data.T.dot(labels)
    return LinearCost(data, labels), h, q

def logistic_problem(ndim, seed = None):
    data, labels = _random_data(ndim, seed)
    return LogisticCost(data, labels)

def quadratic_objective(h, q, x):
    """Value of :math:`\\frac{1}{2}x^Thx + q^Tx`."""
    return QuadraticCost(h, q).value(x)
