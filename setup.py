from setuptools import setup, find_packages
import codecs
import os.path

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

# read the contents of your README file
# reference: https://packaging.python.org/guides/making-a-pypi-friendly-readme/
from os import path
this_directory = path.abspath(path.dirname(__file__))
with open(path.join(this_directory, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

setup(name='nladmm',
      version=get_version("nladmm/__init__.py"),
      description='A Python package for nonlinear ADMM with L-BFGS primal updates and proximal splitting.',
      author='Anqi Fu, Junzi Zhang',
      license='GNU General Public License v3',
      packages=find_packages(exclude=['examples', 'examples.*']),
      install_requires=['cvxpy >= 1.1.18',
                        'numpy >= 1.16',
                        'scipy >= 1.2.1'],
      extras_require={'test': ['pytest']},
      zip_safe=False,
      long_description=long_description,
      long_description_content_type='text/markdown')
