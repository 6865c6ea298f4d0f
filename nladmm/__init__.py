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

__version__ = "0.1.0"

from nladmm.solver import NonlinearADMM, OptimizationState, Constraint, admm_minimizer
from nladmm.lbfgs import LBFGS, LBFGSState
from nladmm.objective import SmoothObjective, AugmentedObjective, QuadraticCost, L2Regularized, as_objective
from nladmm.utilities import ConfigurationError
