"""
blockell - Block and ELLPACK sparse storage

Converts dense matrices into two compact sparse layouts and runs
parallel sparse matrix-vector products over each:

- BCRS: blocks of consecutive nonzero columns per row
- ELL: fixed-width rows padded with (0, -1)
- numba kernels, parallel over rows
- Explicit release of owned storage

Modules:
- sparse: DenseMatrix, BCRSMatrix, ELLMatrix and functional operations
- reorder: Column-permutation interface (applied before building)

Example:
    >>> import blockell
    >>> from blockell.sparse import build_bcrs, build_ell
    >>>
    >>> dense = [[1, 2, 0], [0, 0, 3]]
    >>> build_bcrs(dense).matvec([1, 1, 1])
    array([3., 3.])
    >>> build_ell(dense).matvec([1, 1, 1])
    array([3., 3.])
"""

__version__ = '0.1.0'

from . import sparse
from . import reorder

from ._config import IndexType, get_config, set_config, config_context
from ._errors import (
    BlockEllError,
    InvalidInputError,
    OutOfRangeError,
    AllocationError,
    ReleasedError,
    check_error,
)

from .sparse import (
    DenseMatrix,
    BCRSMatrix,
    ELLMatrix,
    build_bcrs,
    build_ell,
    multiply_bcrs,
    multiply_ell,
    release,
)

__all__ = [
    # Version
    '__version__',

    # Modules
    'sparse',
    'reorder',

    # Configuration
    'IndexType',
    'get_config',
    'set_config',
    'config_context',

    # Errors
    'BlockEllError',
    'InvalidInputError',
    'OutOfRangeError',
    'AllocationError',
    'ReleasedError',
    'check_error',

    # Core classes
    'DenseMatrix',
    'BCRSMatrix',
    'ELLMatrix',

    # Operations
    'build_bcrs',
    'build_ell',
    'multiply_bcrs',
    'multiply_ell',
    'release',
]
