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
import codecs
import os.path

class ConfigurationError(ValueError):
    """Raised when a solver or proximal operator is built with invalid parameters."""
    pass

# code for single sourcing versions
# reference: https://packaging.python.org/guides/single-sourcing-package-version/
def read(rel_path):
    here = os.path.abspath(os.path.dirname(__file__))
    with codecs.open(os.path.join(here, rel_path), 'r') as fp:
        return fp.read()

def get_version(rel_path):
    for line in read(rel_path).splitlines():
        if line.startswith('__version__'):
            delim = '"' if '"' in line else "'"
            return line.split(delim)[1]
    else:
        raise RuntimeError("Unable to find version string.")

def as_vector(v, name = "v", size = None):
	# flatten to a 1-D float array, checking the length when size is given
	if np.isscalar(v):
		v = np.array([v], dtype=float)
	v = np.asarray(v, dtype=float).ravel()
	if size is not None and v.shape[0] != size:
		raise ConfigurationError("{} must have exactly {} entries".format(name, size))
	return v

def random_init(ndim, seed = None):
	# standard normal starting point drawn from a caller-supplied seed or generator
	rng = seed if isinstance(seed, np.random.Generator) else np.random.default_rng(seed)
	return rng.standard_normal(ndim)
