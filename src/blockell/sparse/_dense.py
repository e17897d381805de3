"""
DenseMatrix - Dense input for the sparse builders.

A DenseMatrix is a read-only snapshot of a rectangular float64 grid plus
the caller-declared number of nonzero cells. Builders trust the declared
count for allocation sizing and verify it against their own scan, so a
wrong count fails with InvalidInputError instead of corrupting storage.

Typical usage:
    >>> dense = DenseMatrix([[1, 2, 0], [0, 0, 3]])
    >>> dense.nnz
    3
    >>> dense = DenseMatrix.from_scipy(scipy_mat)
"""

from __future__ import annotations

import operator
from typing import TYPE_CHECKING, Any, Optional, Tuple

import numpy as np

from .._errors import BLOCKELL_ERROR_NNZ_MISMATCH, InvalidInputError

if TYPE_CHECKING:
    from scipy.sparse import spmatrix

__all__ = ['DenseMatrix']


class DenseMatrix:
    """
    Dense matrix snapshot with a declared nonzero count.

    The grid is copied at construction, so later changes to the source
    array do not affect it.

    Attributes:
        grid: Read-only C-contiguous float64 array (nrows, ncols)
        nnz: Declared number of nonzero cells
    """

    __slots__ = ('_grid', '_nnz')

    def __init__(self, grid: Any, nnz: Optional[int] = None):
        """
        Args:
            grid: 2D array-like of real values
            nnz: Declared nonzero count (counted from ``grid`` if None)

        Raises:
            InvalidInputError: If grid is not 2D numeric or nnz is invalid.
        """
        try:
            src = np.asarray(grid)
            real = not np.iscomplexobj(src)
            arr = np.array(src, dtype=np.float64, order='C', copy=True) if real else None
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Cannot convert input to a float64 grid: {e}") from e
        if not real:
            raise InvalidInputError("Dense matrix must be real, got complex values")
        if arr.ndim != 2:
            raise InvalidInputError(f"Dense matrix must be 2D, got {arr.ndim}D")
        arr.flags.writeable = False
        self._grid = arr

        if nnz is None:
            nnz = int(np.count_nonzero(arr))
        else:
            try:
                nnz = operator.index(nnz)
            except TypeError as e:
                raise InvalidInputError(f"nnz must be an integer, got {nnz!r}") from e
            if nnz < 0:
                raise InvalidInputError(f"nnz must be non-negative, got {nnz}")
        self._nnz = nnz

    @classmethod
    def from_scipy(cls, mat: "spmatrix", nnz: Optional[int] = None) -> "DenseMatrix":
        """Densify a scipy sparse matrix.

        Explicitly stored zeros are not counted as nonzeros.
        """
        return cls(mat.toarray(), nnz=nnz)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def grid(self) -> np.ndarray:
        return self._grid

    @property
    def shape(self) -> Tuple[int, int]:
        return self._grid.shape

    @property
    def nrows(self) -> int:
        return self._grid.shape[0]

    @property
    def ncols(self) -> int:
        return self._grid.shape[1]

    @property
    def nnz(self) -> int:
        """Declared number of nonzero cells."""
        return self._nnz

    @property
    def size(self) -> int:
        return self._grid.size

    @property
    def density(self) -> float:
        """Fraction of nonzero cells (from the declared count)."""
        return self._nnz / self.size if self.size > 0 else 0.0

    # =========================================================================
    # Validation
    # =========================================================================

    def count_nonzero(self) -> int:
        """Recount nonzero cells from the grid."""
        return int(np.count_nonzero(self._grid))

    def check_nnz(self, actual: Optional[int] = None) -> None:
        """Verify the declared nonzero count.

        Args:
            actual: Count already obtained by a scan (recounted if None)

        Raises:
            InvalidInputError: If the declared count disagrees.
        """
        if actual is None:
            actual = self.count_nonzero()
        if actual != self._nnz:
            raise InvalidInputError(
                f"declared nnz={self._nnz} but grid has {actual} nonzeros",
                code=BLOCKELL_ERROR_NNZ_MISMATCH,
            )

    def __repr__(self) -> str:
        return f"DenseMatrix(shape={self.shape}, nnz={self._nnz})"
