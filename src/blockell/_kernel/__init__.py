"""blockell Private Kernels (_kernel).

Low-level numba kernels behind the public ``blockell.sparse`` classes.

Design Principles:
    - Plain numpy arrays in, scalars or in-place writes out
    - No validation: callers check shapes, counts and bounds first
    - Builders are serial; SpMV kernels run the row loop through ``RowKernel``

Modules:
    - _parallel: Serial/parallel dispatch of row kernels
    - bcrs: Block counting, BCRS fill and BCRS SpMV
    - ell: Row counts, ELL fill and ELL SpMV

Usage (Internal only):
    >>> from blockell._kernel import bcrs
    >>> nblocks, nnz = bcrs.count_blocks(grid)
"""

from . import _parallel
from . import bcrs
from . import ell

__all__ = [
    'bcrs',
    'ell',
]
