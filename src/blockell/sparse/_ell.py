"""
ELLPACK (ELL) Storage

Stores every row as a fixed number of (value, column) slots, where the
width W is the largest nonzero count of any row. Rows with fewer nonzeros
are padded with value 0 and column -1.

Memory Layout:
    - values[nrows * W]: flat row-major buffer, row i at [i*W, (i+1)*W)
    - indices[nrows * W]: column of each slot, -1 for padding
    - row_counts[nrows]: valid slots per row

The 2D views ``values`` and ``indices`` share memory with the flat buffers.

Example:
    >>> ell = ELLMatrix.from_dense([[1, 2, 0], [0, 0, 3]])
    >>> ell.max_entries_per_row
    2
    >>> ell.indices
    array([[ 0,  1],
           [ 2, -1]])
"""

import logging
from typing import TYPE_CHECKING, Any, Tuple

import numpy as np

from .._config import get_config
from .._errors import AllocationError, InvalidInputError
from .._kernel import ell as _ell_kernel
from ._base import SparseFormat, SparseFormatBase
from ._dense import DenseMatrix
from ._ownership import ArrayOwnership

if TYPE_CHECKING:
    from scipy.sparse import csr_matrix

__all__ = ['ELLMatrix', 'PADDING_INDEX']

logger = logging.getLogger("blockell.sparse")

PADDING_INDEX = _ell_kernel.PADDING_INDEX


class ELLMatrix(SparseFormatBase):
    """
    ELLPACK sparse matrix.

    Attributes:
        values: (nrows, W) read-only view of slot values
        indices: (nrows, W) read-only view of slot columns (-1 = padding)
        max_entries_per_row: Row width W
        shape: Matrix dimensions (rows, cols)
    """

    __slots__ = ('_shape', '_ownership', '_width', '_col_extent')

    def __init__(
        self,
        values: Any,
        indices: Any,
        shape: Tuple[int, int],
        _check: bool = True,
    ):
        """Initialize from 2D slot arrays.

        The arrays are copied into flat buffers. Use ``from_dense`` to build
        from a dense grid.

        Args:
            values: (rows, W) slot values
            indices: (rows, W) slot columns, -1 for padding
            shape: Matrix dimensions (rows, cols)
            _check: Validate structure (internal builders pass False and
                hand over flat buffers)

        Raises:
            InvalidInputError: If the arrays violate the padding invariant.
        """
        rows, cols = (int(s) for s in shape)
        if rows < 0 or cols < 0:
            raise InvalidInputError(f"shape must be non-negative, got {shape}")
        self._shape = (rows, cols)
        self._ownership = ArrayOwnership(type(self).__name__)

        if _check:
            values = np.array(values, dtype=np.float64)
            indices = np.asarray(indices)
            if indices.size and not np.issubdtype(indices.dtype, np.integer):
                raise InvalidInputError(f"indices must hold integers, got {indices.dtype}")
            indices = np.array(indices, dtype=get_config().index_dtype)
            if values.ndim == 1 and rows == 0 and values.size == 0:
                values = values.reshape(0, 0)
                indices = indices.reshape(0, 0)
            self._validate(values, indices, self._shape)
            width = values.shape[1]
            values = np.ascontiguousarray(values).reshape(-1)
            indices = np.ascontiguousarray(indices).reshape(-1)
        else:
            width = values.shape[0] // rows if rows else 0

        self._width = int(width)
        self._ownership.adopt('values', values)
        self._ownership.adopt('indices', indices)
        counts = (indices >= 0).reshape(rows, self._width).sum(axis=1).astype(np.int64)
        self._ownership.adopt('row_counts', counts)
        self._col_extent = int(indices.max()) + 1 if indices.size else 0

    @staticmethod
    def _validate(values, indices, shape) -> None:
        rows, cols = shape
        if values.ndim != 2 or indices.ndim != 2:
            raise InvalidInputError("values and indices must be 2D (rows, W)")
        if values.shape != indices.shape:
            raise InvalidInputError(
                f"values shape {values.shape} != indices shape {indices.shape}"
            )
        if values.shape[0] != rows:
            raise InvalidInputError(f"expected {rows} rows, got {values.shape[0]}")
        if np.any(indices < PADDING_INDEX) or np.any(indices >= cols):
            raise InvalidInputError(f"indices must be -1 or within [0, {cols})")
        valid = indices >= 0
        if np.any(valid[:, 1:] & ~valid[:, :-1]):
            raise InvalidInputError("valid slots must precede padding in every row")
        if np.any(values[~valid] != 0):
            raise InvalidInputError("padding slots must hold 0")
        if np.any(values[valid] == 0):
            raise InvalidInputError("valid slots must hold nonzero values")
        ordered = np.diff(indices, axis=1) > 0
        if np.any(valid[:, 1:] & ~ordered):
            raise InvalidInputError("columns must increase left to right within a row")

    @classmethod
    def from_dense(cls, dense: Any) -> "ELLMatrix":
        """Build ELL from a dense matrix.

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

        counts = _ell_kernel.row_counts(grid)
        nnz = int(counts.sum())
        dense.check_nnz(nnz)
        width = int(counts.max()) if nrows else 0

        index_dtype = get_config().index_dtype
        if dense.ncols > np.iinfo(index_dtype).max:
            raise InvalidInputError(
                f"{dense.ncols} columns do not fit index type {index_dtype.name}; use int64"
            )
        try:
            # Every slot starts as padding.
            values = np.zeros(nrows * width, dtype=np.float64)
            indices = np.full(nrows * width, PADDING_INDEX, dtype=index_dtype)
        except MemoryError as e:
            raise AllocationError(
                f"cannot allocate ELL storage for {nrows} x {width} slots"
            ) from e

        written = _ell_kernel.fill_ell(grid, width, values, indices)
        if written != nnz:
            raise RuntimeError(f"ELL fill wrote {written} entries, expected {nnz}")
        logger.debug(
            f"Built ELL {dense.shape}: width {width}, {nnz} values, "
            f"{nrows * width - nnz} padding slots"
        )
        return cls(values, indices, dense.shape, _check=False)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def format(self) -> str:
        return SparseFormat.ELL

    @property
    def max_entries_per_row(self) -> int:
        self._ownership.ensure_alive()
        return self._width

    @property
    def stride(self) -> int:
        """Distance between row starts in the flat buffers."""
        return self.max_entries_per_row

    @property
    def values(self) -> np.ndarray:
        return self._ownership.get('values').reshape(self.nrows, self._width)

    @property
    def indices(self) -> np.ndarray:
        return self._ownership.get('indices').reshape(self.nrows, self._width)

    @property
    def flat_values(self) -> np.ndarray:
        return self._ownership.get('values')

    @property
    def flat_indices(self) -> np.ndarray:
        return self._ownership.get('indices')

    @property
    def row_counts(self) -> np.ndarray:
        """Valid (non-padding) slots per row."""
        return self._ownership.get('row_counts')

    @property
    def nnz(self) -> int:
        return int(self.row_counts.sum())

    @property
    def padding(self) -> int:
        """Number of padding slots."""
        return self.nrows * self.max_entries_per_row - self.nnz

    @property
    def fill_ratio(self) -> float:
        """Fraction of slots holding real entries (1.0 if there are no slots)."""
        slots = self.nrows * self.max_entries_per_row
        return self.nnz / slots if slots else 1.0

    @property
    def col_extent(self) -> int:
        self._ownership.ensure_alive()
        return self._col_extent

    # =========================================================================
    # Access
    # =========================================================================

    def get_row(self, i: int) -> Tuple[np.ndarray, np.ndarray]:
        """Columns and values of row ``i``, padding excluded."""
        if not 0 <= i < self.nrows:
            raise IndexError(f"row {i} out of range for {self.nrows} rows")
        count = self.row_counts[i]
        return (
            self.indices[i, :count].astype(np.int64),
            self.values[i, :count].copy(),
        )

    # =========================================================================
    # Kernels / Conversion
    # =========================================================================

    def _spmv(self, x: np.ndarray, out: np.ndarray) -> None:
        _ell_kernel.ell_spmv(
            self.nrows, self._width, self.flat_values, self.flat_indices, x, out
        )

    def to_dense(self) -> np.ndarray:
        dense = np.zeros(self._shape, dtype=np.float64)
        indices = self.indices
        rows, slots = np.nonzero(indices >= 0)
        dense[rows, indices[rows, slots]] = self.values[rows, slots]
        return dense

    def to_scipy(self) -> "csr_matrix":
        from scipy.sparse import csr_matrix

        indices = self.indices
        valid = indices >= 0
        indptr = np.zeros(self.nrows + 1, dtype=np.int64)
        np.cumsum(self.row_counts, out=indptr[1:])
        return csr_matrix(
            (self.values[valid], indices[valid].astype(np.int64), indptr),
            shape=self._shape,
        )
