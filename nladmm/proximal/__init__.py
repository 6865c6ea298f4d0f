from nladmm.proximal.constraint import prox_nonneg_constr_base, prox_box_constr_base, prox_hyperplane_base, \
    prox_simplex_base
from nladmm.proximal.norm import prox_norm1_base
from nladmm.proximal.operators import ProximalOperator, NoOp, NonNegative, Box, Hyperplane, L1, ProbabilitySimplex
