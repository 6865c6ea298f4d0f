import numpy as np

def prox_norm1_base(v, t):
    """Proximal operator of :math:`f(x) = \\|x\\|_1`, i.e. elementwise soft thresholding at level t.
    """
    return np.maximum(v - t, 0) - np.maximum(-v - t, 0)
