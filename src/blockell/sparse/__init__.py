"""blockell Sparse Module.

Dense-to-sparse conversion into two storage layouts and SpMV over each.

Type Hierarchy:

    DenseMatrix                       # Read-only dense input + declared nnz
    SparseFormatBase (ABC)
    ├── BCRSMatrix                    # row_ptr, col_ind, nnz_ptr, value
    └── ELLMatrix                     # flat values/indices, stride W

Quick Start:
    >>> from blockell.sparse import DenseMatrix, BCRSMatrix, ELLMatrix
    >>>
    >>> dense = DenseMatrix([[1, 2, 0], [0, 0, 3]])
    >>> with BCRSMatrix.from_dense(dense) as bcrs:
    ...     r = bcrs.matvec([1.0, 1.0, 1.0])
    >>>
    >>> ell = ELLMatrix.from_dense(dense)
    >>> ell @ [1.0, 1.0, 1.0]
    array([3., 3.])
    >>> ell.release()

Lifecycle:
    - Built once from a DenseMatrix snapshot
    - Read-only for any number of multiplies (safe to share across threads)
    - release() frees all arrays; further use raises ReleasedError
"""

# =============================================================================
# Input
# =============================================================================
from ._dense import DenseMatrix

# =============================================================================
# Ownership
# =============================================================================
from ._ownership import ArrayOwnership, ensure_alive

# =============================================================================
# Base Class
# =============================================================================
from ._base import SparseFormat, SparseFormatBase

# =============================================================================
# Representations
# =============================================================================
from ._bcrs import BCRSMatrix
from ._ell import ELLMatrix, PADDING_INDEX

# =============================================================================
# Operations
# =============================================================================
from ._ops import (
    # Builders
    as_dense,
    build_bcrs,
    build_ell,

    # SpMV
    multiply_bcrs,
    multiply_ell,
    multiply,

    # Lifecycle
    release,

    # Statistics
    count_blocks,
    max_entries_per_row,

    # Cross-platform
    from_scipy,
    to_scipy,
)


# =============================================================================
# Type Checking Utilities
# =============================================================================

def is_bcrs(obj) -> bool:
    """Check if object is a BCRS representation."""
    return isinstance(obj, BCRSMatrix)


def is_ell(obj) -> bool:
    """Check if object is an ELL representation."""
    return isinstance(obj, ELLMatrix)


# =============================================================================
# Public API
# =============================================================================
__all__ = [
    # ---- Input ----
    'DenseMatrix',

    # ---- Base / Representations ----
    'SparseFormat',
    'SparseFormatBase',
    'BCRSMatrix',
    'ELLMatrix',
    'PADDING_INDEX',

    # ---- Ownership ----
    'ArrayOwnership',
    'ensure_alive',

    # ---- Builders ----
    'as_dense',
    'build_bcrs',
    'build_ell',

    # ---- SpMV ----
    'multiply_bcrs',
    'multiply_ell',
    'multiply',

    # ---- Lifecycle ----
    'release',

    # ---- Statistics ----
    'count_blocks',
    'max_entries_per_row',

    # ---- Conversion ----
    'from_scipy',
    'to_scipy',

    # ---- Type checking ----
    'is_bcrs',
    'is_ell',
]
