"""
Block Compressed Row Storage (BCRS)

Groups each row's nonzeros into blocks, maximal runs of consecutive
nonzero columns, and stores one start column and one value range per
block.

Memory Layout:
    - row_ptr[nrows + 1]: row i owns blocks row_ptr[i] .. row_ptr[i+1]-1
    - col_ind[nblocks]: first column of each block
    - nnz_ptr[nblocks + 1]: block b owns value[nnz_ptr[b] .. nnz_ptr[b+1]-1]
    - value[nnz]: nonzero values in row-major, left-to-right block order

Construction is a count / allocate / fill pipeline so every array is
allocated once at its exact size.

Example:
    >>> bcrs = BCRSMatrix.from_dense([[1, 2, 0], [0, 0, 3]])
    >>> bcrs.row_ptr
    array([0, 1, 2])
    >>> bcrs.matvec([1.0, 1.0, 1.0])
    array([3., 3.])
"""

import logging
from typing import TYPE_CHECKING, Any, Optional, Tuple

import numpy as np

from .._config import get_config
from .._errors import AllocationError, InvalidInputError
from .._kernel import bcrs as _bcrs_kernel
from ._base import SparseFormat, SparseFormatBase
from ._dense import DenseMatrix
from ._ownership import ArrayOwnership

if TYPE_CHECKING:
    from scipy.sparse import csr_matrix

__all__ = ['BCRSMatrix']

logger = logging.getLogger("blockell.sparse")


def _check_index_capacity(index_dtype: np.dtype, *sizes: int) -> None:
    limit = np.iinfo(index_dtype).max
    for size in sizes:
        if size > limit:
            raise InvalidInputError(
                f"size {size} does not fit index type {index_dtype.name}; use int64"
            )


class BCRSMatrix(SparseFormatBase):
    """
    Block Compressed Row Storage matrix.

    Attributes:
        row_ptr: Block range per row (nrows + 1)
        col_ind: Start column per block (nblocks)
        nnz_ptr: Value range per block (nblocks + 1)
        value: Nonzero values (nnz)
        shape: Matrix dimensions (rows, cols)

    All arrays are read-only and owned by the matrix until ``release()``.
    """

    __slots__ = ('_shape', '_ownership', '_col_extent')

    def __init__(
        self,
        row_ptr: Any,
        col_ind: Any,
        nnz_ptr: Any,
        value: Any,
        shape: Tuple[int, int],
        _check: bool = True,
    ):
        """Initialize from BCRS arrays.

        The arrays are copied. Use ``from_dense`` to build from a dense grid.

        Args:
            row_ptr: Block range per row (length rows + 1)
            col_ind: Start column per block
            nnz_ptr: Value range per block (length nblocks + 1)
            value: Nonzero values
            shape: Matrix dimensions (rows, cols)
            _check: Validate structure (internal builders pass False)

        Raises:
            InvalidInputError: If the arrays do not form a valid BCRS layout.
        """
        rows, cols = (int(s) for s in shape)
        if rows < 0 or cols < 0:
            raise InvalidInputError(f"shape must be non-negative, got {shape}")
        self._shape = (rows, cols)
        self._ownership = ArrayOwnership(type(self).__name__)

        if _check:
            index_dtype = get_config().index_dtype
            for name, arr in (('row_ptr', row_ptr), ('col_ind', col_ind), ('nnz_ptr', nnz_ptr)):
                arr = np.asarray(arr)
                if arr.size and not np.issubdtype(arr.dtype, np.integer):
                    raise InvalidInputError(f"{name} must hold integers, got {arr.dtype}")
            row_ptr = np.array(row_ptr, dtype=index_dtype)
            col_ind = np.array(col_ind, dtype=index_dtype)
            nnz_ptr = np.array(nnz_ptr, dtype=index_dtype)
            value = np.array(value, dtype=np.float64)
            self._validate(row_ptr, col_ind, nnz_ptr, value, self._shape)

        self._ownership.adopt('row_ptr', row_ptr)
        self._ownership.adopt('col_ind', col_ind)
        self._ownership.adopt('nnz_ptr', nnz_ptr)
        self._ownership.adopt('value', value)

        if col_ind.shape[0] > 0:
            ends = col_ind.astype(np.int64) + np.diff(nnz_ptr).astype(np.int64)
            self._col_extent = int(ends.max())
        else:
            self._col_extent = 0

    @staticmethod
    def _validate(row_ptr, col_ind, nnz_ptr, value, shape) -> None:
        rows, cols = shape
        if row_ptr.ndim != 1 or row_ptr.shape[0] != rows + 1:
            raise InvalidInputError(f"row_ptr length must be rows + 1 = {rows + 1}")
        if col_ind.ndim != 1 or nnz_ptr.ndim != 1 or value.ndim != 1:
            raise InvalidInputError("BCRS arrays must be 1D")
        nblocks = col_ind.shape[0]
        if nnz_ptr.shape[0] != nblocks + 1:
            raise InvalidInputError(f"nnz_ptr length must be nblocks + 1 = {nblocks + 1}")
        if row_ptr[0] != 0 or row_ptr[-1] != nblocks or np.any(np.diff(row_ptr) < 0):
            raise InvalidInputError("row_ptr must rise monotonically from 0 to nblocks")
        if nnz_ptr[0] != 0 or nnz_ptr[-1] != value.shape[0]:
            raise InvalidInputError("nnz_ptr must run from 0 to len(value)")
        lengths = np.diff(nnz_ptr)
        if np.any(lengths <= 0):
            raise InvalidInputError("every block must hold at least one value")
        if np.any(value == 0):
            raise InvalidInputError("value must not contain zeros")
        if nblocks == 0:
            return
        if np.any(col_ind < 0) or np.any(col_ind.astype(np.int64) + lengths > cols):
            raise InvalidInputError(f"blocks must lie within {cols} columns")
        # Blocks in one row must be ordered and separated by at least one zero column.
        block_row = np.repeat(np.arange(rows), np.diff(row_ptr))
        same_row = block_row[1:] == block_row[:-1]
        ends = col_ind[:-1].astype(np.int64) + lengths[:-1]
        if np.any(same_row & (col_ind[1:] <= ends)):
            raise InvalidInputError("blocks within a row must be maximal and ordered")

    @classmethod
    def from_dense(cls, dense: Any) -> "BCRSMatrix":
        """Build BCRS from a dense matrix.

        Args:
            dense: DenseMatrix or 2D array-like

        Raises:
            InvalidInputError: If the declared nnz disagrees with the grid.
            AllocationError: If storage cannot be allocated.
        """
        if not isinstance(dense, DenseMatrix):
            dense = DenseMatrix(dense)
        grid = dense.grid
        nrows = dense.nrows

        # Pass 1: count
        nblocks, nnz = _bcrs_kernel.count_blocks(grid)
        dense.check_nnz(nnz)

        # Allocate at exact size
        index_dtype = get_config().index_dtype
        _check_index_capacity(index_dtype, nrows + 1, nblocks + 1, nnz, dense.ncols)
        try:
            row_ptr = np.zeros(nrows + 1, dtype=index_dtype)
            col_ind = np.empty(nblocks, dtype=index_dtype)
            nnz_ptr = np.empty(nblocks + 1, dtype=index_dtype)
            value = np.empty(nnz, dtype=np.float64)
        except MemoryError as e:
            raise AllocationError(
                f"cannot allocate BCRS storage for {nblocks} blocks and {nnz} values"
            ) from e

        # Pass 2: fill
        blocks_written, values_written = _bcrs_kernel.fill_bcrs(
            grid, row_ptr, col_ind, nnz_ptr, value
        )
        if blocks_written != nblocks or values_written != nnz:
            raise RuntimeError(
                f"BCRS fill wrote {blocks_written} blocks / {values_written} values, "
                f"expected {nblocks} / {nnz}"
            )
        logger.debug(
            f"Built BCRS {dense.shape}: {nblocks} blocks, {nnz} values, "
            f"mean block length {nnz / nblocks if nblocks else 0.0:.2f}"
        )
        return cls(row_ptr, col_ind, nnz_ptr, value, dense.shape, _check=False)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def format(self) -> str:
        return SparseFormat.BCRS

    @property
    def row_ptr(self) -> np.ndarray:
        return self._ownership.get('row_ptr')

    @property
    def col_ind(self) -> np.ndarray:
        return self._ownership.get('col_ind')

    @property
    def nnz_ptr(self) -> np.ndarray:
        return self._ownership.get('nnz_ptr')

    @property
    def value(self) -> np.ndarray:
        return self._ownership.get('value')

    @property
    def nnz(self) -> int:
        return int(self.value.shape[0])

    @property
    def nblocks(self) -> int:
        return int(self.col_ind.shape[0])

    @property
    def col_extent(self) -> int:
        self._ownership.ensure_alive()
        return self._col_extent

    @property
    def block_lengths(self) -> np.ndarray:
        """Number of values in each block."""
        return np.diff(self.nnz_ptr)

    @property
    def row_block_counts(self) -> np.ndarray:
        """Number of blocks in each row."""
        return np.diff(self.row_ptr)

    @property
    def mean_block_length(self) -> float:
        nblocks = self.nblocks
        return self.nnz / nblocks if nblocks else 0.0

    # =========================================================================
    # Access
    # =========================================================================

    def get_row(self, i: int) -> Tuple[np.ndarray, np.ndarray]:
        """Columns and values of row ``i`` in left-to-right order."""
        if not 0 <= i < self.nrows:
            raise IndexError(f"row {i} out of range for {self.nrows} rows")
        row_ptr = self.row_ptr
        start = self.nnz_ptr[row_ptr[i]]
        stop = self.nnz_ptr[row_ptr[i + 1]]
        return self._value_columns()[start:stop], self.value[start:stop].copy()

    def _value_columns(self) -> np.ndarray:
        """Column of every stored value."""
        nnz_ptr = self.nnz_ptr
        lengths = np.diff(nnz_ptr)
        block_of = np.repeat(np.arange(self.nblocks), lengths)
        offsets = np.arange(self.nnz) - nnz_ptr[block_of]
        return self.col_ind[block_of].astype(np.int64) + offsets

    # =========================================================================
    # Kernels / Conversion
    # =========================================================================

    def _spmv(self, x: np.ndarray, out: np.ndarray) -> None:
        _bcrs_kernel.bcrs_spmv(self.row_ptr, self.col_ind, self.nnz_ptr, self.value, x, out)

    def to_dense(self) -> np.ndarray:
        row_ptr = self.row_ptr
        dense = np.zeros(self._shape, dtype=np.float64)
        rows = np.repeat(np.arange(self.nrows), np.diff(self.nnz_ptr[row_ptr]))
        dense[rows, self._value_columns()] = self.value
        return dense

    def to_scipy(self) -> "csr_matrix":
        from scipy.sparse import csr_matrix

        indptr = self.nnz_ptr[self.row_ptr].astype(np.int64)
        return csr_matrix(
            (self.value.copy(), self._value_columns(), indptr),
            shape=self._shape,
        )
