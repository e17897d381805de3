"""
Column Reordering Interface

Boundary for an external column-permutation routine (bandwidth reduction).
Permuting columns so nonzeros cluster together lowers the BCRS block count.
No search strategy lives here, only the contract:

    reorderer(matrix, perm) -> None

``perm`` is a caller-owned int64 buffer sized to ``matrix.ncols`` and
pre-filled with the identity. The reorderer overwrites it so that
``perm[j]`` is the new position of original column ``j``.
``permute_columns`` then produces the pre-permuted DenseMatrix that the
builders consume.

Example:
    >>> perm = new_permutation_buffer(dense.ncols)
    >>> my_reorderer(dense, perm)
    >>> bcrs = build_bcrs(permute_columns(dense, perm))
    >>> y = bcrs.matvec(x[inverse_permutation(perm)])
"""

import logging
from typing import Protocol, Tuple, runtime_checkable

import numpy as np

from ._errors import InvalidInputError
from .sparse import DenseMatrix, count_blocks

__all__ = [
    'ColumnReorderer',
    'identity_reorderer',
    'new_permutation_buffer',
    'validate_permutation',
    'inverse_permutation',
    'permute_columns',
    'reorder_columns',
]

logger = logging.getLogger("blockell.reorder")


@runtime_checkable
class ColumnReorderer(Protocol):
    """Fills a caller-owned permutation buffer for a dense matrix."""

    def __call__(self, matrix: DenseMatrix, perm: np.ndarray) -> None:
        ...


def identity_reorderer(matrix: DenseMatrix, perm: np.ndarray) -> None:
    """Keep the original column order."""
    perm[:] = np.arange(matrix.ncols, dtype=perm.dtype)


def new_permutation_buffer(ncols: int) -> np.ndarray:
    """Allocate an identity permutation of ``ncols`` columns."""
    if ncols < 0:
        raise InvalidInputError(f"ncols must be non-negative, got {ncols}")
    return np.arange(ncols, dtype=np.int64)


def validate_permutation(perm, ncols: int) -> np.ndarray:
    """Check that ``perm`` is a permutation of ``0 .. ncols-1``.

    Returns:
        ``perm`` as an int64 array

    Raises:
        InvalidInputError: If it is not.
    """
    perm = np.asarray(perm)
    if perm.ndim != 1 or perm.shape[0] != ncols:
        raise InvalidInputError(f"permutation must be 1D of length {ncols}, got shape {perm.shape}")
    if ncols and not np.issubdtype(perm.dtype, np.integer):
        raise InvalidInputError(f"permutation must hold integers, got {perm.dtype}")
    perm = perm.astype(np.int64)
    seen = np.zeros(ncols, dtype=bool)
    if np.any(perm < 0) or np.any(perm >= ncols):
        raise InvalidInputError(f"permutation entries must lie in [0, {ncols})")
    seen[perm] = True
    if not seen.all():
        raise InvalidInputError("permutation contains repeated columns")
    return perm


def inverse_permutation(perm) -> np.ndarray:
    """Inverse mapping: ``inv[perm[j]] == j``."""
    perm = np.asarray(perm, dtype=np.int64)
    inv = np.empty_like(perm)
    inv[perm] = np.arange(perm.shape[0], dtype=np.int64)
    return inv


def permute_columns(matrix: DenseMatrix, perm) -> DenseMatrix:
    """Move column ``j`` of ``matrix`` to position ``perm[j]``.

    The declared nnz carries over unchanged.
    """
    perm = validate_permutation(perm, matrix.ncols)
    grid = np.empty_like(matrix.grid)
    grid[:, perm] = matrix.grid
    return DenseMatrix(grid, nnz=matrix.nnz)


def reorder_columns(
    matrix: DenseMatrix,
    reorderer: ColumnReorderer,
) -> Tuple[DenseMatrix, np.ndarray]:
    """Run a reorderer and apply its permutation.

    Returns:
        Tuple (permuted matrix, permutation)
    """
    perm = new_permutation_buffer(matrix.ncols)
    reorderer(matrix, perm)
    perm = validate_permutation(perm, matrix.ncols)
    permuted = permute_columns(matrix, perm)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            f"Column reorder: {count_blocks(matrix)} -> {count_blocks(permuted)} blocks"
        )
    return permuted, perm
