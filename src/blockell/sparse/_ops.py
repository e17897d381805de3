"""Functional Sparse Operations.

This module provides the functional API over the representation classes:
- Builders (build_bcrs, build_ell)
- SpMV (multiply_bcrs, multiply_ell, multiply)
- Lifecycle (release)
- Statistics on dense input (count_blocks, max_entries_per_row)
- scipy interop (from_scipy, to_scipy)

Example:
    >>> from blockell.sparse import build_bcrs, build_ell, multiply_bcrs, multiply_ell
    >>> dense = [[1, 2, 0], [0, 0, 3]]
    >>> multiply_bcrs(build_bcrs(dense), [1, 1, 1])
    array([3., 3.])
    >>> multiply_ell(build_ell(dense), [1, 1, 1])
    array([3., 3.])
"""

from typing import TYPE_CHECKING, Any, Optional

import numpy as np

from .._kernel import bcrs as _bcrs_kernel
from .._kernel import ell as _ell_kernel
from ._base import SparseFormatBase
from ._bcrs import BCRSMatrix
from ._dense import DenseMatrix
from ._ell import ELLMatrix

if TYPE_CHECKING:
    from scipy.sparse import csr_matrix, spmatrix

__all__ = [
    # Builders
    'as_dense',
    'build_bcrs',
    'build_ell',

    # SpMV
    'multiply_bcrs',
    'multiply_ell',
    'multiply',

    # Lifecycle
    'release',

    # Statistics
    'count_blocks',
    'max_entries_per_row',

    # Cross-platform
    'from_scipy',
    'to_scipy',
]


# =============================================================================
# Input Normalisation
# =============================================================================

def _is_scipy_sparse(obj: Any) -> bool:
    from scipy.sparse import issparse

    return issparse(obj)


def as_dense(obj: Any) -> DenseMatrix:
    """Return ``obj`` as a DenseMatrix.

    Accepts a DenseMatrix (returned as is), a scipy sparse matrix, or any
    2D array-like.
    """
    if isinstance(obj, DenseMatrix):
        return obj
    if _is_scipy_sparse(obj):
        return DenseMatrix.from_scipy(obj)
    return DenseMatrix(obj)


# =============================================================================
# Builders
# =============================================================================

def build_bcrs(dense: Any) -> BCRSMatrix:
    """Build a BCRS representation. See ``BCRSMatrix.from_dense``."""
    return BCRSMatrix.from_dense(as_dense(dense))


def build_ell(dense: Any) -> ELLMatrix:
    """Build an ELL representation. See ``ELLMatrix.from_dense``."""
    return ELLMatrix.from_dense(as_dense(dense))


# =============================================================================
# SpMV
# =============================================================================

def multiply_bcrs(bcrs: BCRSMatrix, x: Any, out: Optional[np.ndarray] = None) -> np.ndarray:
    """r = A * x for a BCRS matrix.

    Args:
        bcrs: BCRS representation
        x: Input vector, length >= bcrs.col_extent
        out: Optional float64 buffer of shape (nrows,), fully overwritten

    Returns:
        Output vector of length nrows
    """
    if not isinstance(bcrs, BCRSMatrix):
        raise TypeError(f"Expected BCRSMatrix, got {type(bcrs).__name__}")
    return bcrs.matvec(x, out=out)


def multiply_ell(ell: ELLMatrix, x: Any, out: Optional[np.ndarray] = None) -> np.ndarray:
    """r = A * x for an ELL matrix. Padding slots never touch ``x``.

    Args:
        ell: ELL representation
        x: Input vector, length >= ell.col_extent
        out: Optional float64 buffer of shape (nrows,), fully overwritten

    Returns:
        Output vector of length nrows
    """
    if not isinstance(ell, ELLMatrix):
        raise TypeError(f"Expected ELLMatrix, got {type(ell).__name__}")
    return ell.matvec(x, out=out)


def multiply(mat: SparseFormatBase, x: Any, out: Optional[np.ndarray] = None) -> np.ndarray:
    """r = A * x for either representation."""
    if not isinstance(mat, SparseFormatBase):
        raise TypeError(f"Expected BCRSMatrix or ELLMatrix, got {type(mat).__name__}")
    return mat.matvec(x, out=out)


# =============================================================================
# Lifecycle
# =============================================================================

def release(mat: SparseFormatBase) -> None:
    """Free every array owned by a representation."""
    if not isinstance(mat, SparseFormatBase):
        raise TypeError(f"Expected BCRSMatrix or ELLMatrix, got {type(mat).__name__}")
    mat.release()


# =============================================================================
# Statistics
# =============================================================================

def count_blocks(dense: Any) -> int:
    """Number of BCRS blocks a dense matrix would produce.

    Useful for comparing column orderings without building anything.
    """
    nblocks, _ = _bcrs_kernel.count_blocks(as_dense(dense).grid)
    return int(nblocks)


def max_entries_per_row(dense: Any) -> int:
    """Largest nonzero count of any row (the ELL width)."""
    dense = as_dense(dense)
    if dense.nrows == 0:
        return 0
    return int(_ell_kernel.row_counts(dense.grid).max())


# =============================================================================
# Cross-platform Conversion
# =============================================================================

def from_scipy(mat: "spmatrix") -> DenseMatrix:
    """Densify a scipy sparse matrix into a DenseMatrix."""
    return DenseMatrix.from_scipy(mat)


def to_scipy(mat: SparseFormatBase) -> "csr_matrix":
    """Convert a representation to scipy CSR."""
    if not isinstance(mat, SparseFormatBase):
        raise TypeError(f"Expected BCRSMatrix or ELLMatrix, got {type(mat).__name__}")
    return mat.to_scipy()
