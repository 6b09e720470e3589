"""
Scan Matching Package

A Python package for registering 2-D lidar scans against each other.
The ICP (Iterative Closest Point) algorithm is implemented from scratch on
top of NumPy and a scikit-learn KD-tree so that every step of the alignment
(correspondence search, SVD transform estimate, convergence test) stays
under our control. Scan loading and plotting helpers are provided for
scripts and debugging.
"""

__version__ = "0.1.0"

from .alignment import *
from .preprocessing import *
from .utils import *
from .visualization import *

__all__ = [
    "alignment",
    "preprocessing",
    "utils",
    "visualization",
]
