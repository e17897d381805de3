"""
Sparse Format Base Class

Defines the interface shared by the BCRS and ELL representations:
shape and nnz bookkeeping, release/ownership, and the checked SpMV entry
point. Concrete formats only provide their storage and a raw kernel call.

Type Hierarchy:

    SparseFormatBase (ABC)
    ├── BCRSMatrix - Block Compressed Row Storage
    └── ELLMatrix  - ELLPACK, fixed-width padded rows

SpMV contract (both formats):
    - ``x`` is 1D and covers every referenced column (len(x) >= col_extent)
    - the output has exactly ``nrows`` entries, is cleared, then overwritten
    - representations are never mutated by a multiply
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional, Tuple

import numpy as np

from .._errors import (
    BLOCKELL_ERROR_DIMENSION_MISMATCH,
    InvalidInputError,
    OutOfRangeError,
)
from ._ownership import ArrayOwnership

if TYPE_CHECKING:
    from scipy.sparse import csr_matrix

__all__ = [
    'SparseFormat',
    'SparseFormatBase',
]


class SparseFormat:
    """Enumeration of storage formats."""
    BCRS = 'bcrs'
    ELL = 'ell'


class SparseFormatBase(ABC):
    """
    Abstract base class for sparse representations built from a DenseMatrix.

    Subclasses set ``_shape`` and ``_ownership`` in their constructor and
    implement the abstract members below.
    """

    _shape: Tuple[int, int]
    _ownership: ArrayOwnership

    # =========================================================================
    # Abstract Interface
    # =========================================================================

    @property
    @abstractmethod
    def format(self) -> str:
        """Storage format ('bcrs' or 'ell')."""
        ...

    @property
    @abstractmethod
    def nnz(self) -> int:
        """Number of stored nonzero values."""
        ...

    @property
    @abstractmethod
    def col_extent(self) -> int:
        """One past the largest referenced column (0 if nothing is stored)."""
        ...

    @abstractmethod
    def _spmv(self, x: np.ndarray, out: np.ndarray) -> None:
        """Run the raw kernel. Inputs are already validated."""
        ...

    @abstractmethod
    def to_dense(self) -> np.ndarray:
        """Reconstruct the dense (nrows, ncols) float64 array."""
        ...

    @abstractmethod
    def to_scipy(self) -> "csr_matrix":
        """Convert to an equivalent scipy CSR matrix."""
        ...

    # =========================================================================
    # Derived Properties
    # =========================================================================

    @property
    def shape(self) -> Tuple[int, int]:
        return self._shape

    @property
    def nrows(self) -> int:
        return self._shape[0]

    @property
    def ncols(self) -> int:
        return self._shape[1]

    @property
    def density(self) -> float:
        """Fraction of nonzero cells."""
        total = self._shape[0] * self._shape[1]
        return self.nnz / total if total > 0 else 0.0

    @property
    def nbytes(self) -> int:
        """Bytes held by the backing arrays (0 after release)."""
        return self._ownership.nbytes

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def is_released(self) -> bool:
        return self._ownership.is_released

    def release(self) -> None:
        """Free all backing arrays. Safe to call more than once."""
        self._ownership.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    # =========================================================================
    # SpMV
    # =========================================================================

    def matvec(self, x: Any, out: Optional[np.ndarray] = None) -> np.ndarray:
        """Compute ``r = A @ x``.

        Args:
            x: 1D vector of length >= ``col_extent`` (normally ``ncols``)
            out: Optional float64 output buffer of shape (nrows,). It is
                cleared and fully overwritten.

        Returns:
            The output vector (``out`` if given).

        Raises:
            ReleasedError: If the representation was released.
            InvalidInputError: If ``x`` is not 1D or ``out`` has the wrong
                shape/dtype.
            OutOfRangeError: If ``x`` is shorter than ``col_extent``.
        """
        self._ownership.ensure_alive()
        x = self._check_vector(x)
        out = self._check_output(out)
        self._spmv(x, out)
        return out

    def __matmul__(self, x: Any) -> np.ndarray:
        return self.matvec(x)

    def _check_vector(self, x: Any) -> np.ndarray:
        try:
            x = np.asarray(x)
            real = not np.iscomplexobj(x)
            x = np.ascontiguousarray(x, dtype=np.float64) if real else x
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Cannot convert x to a float64 vector: {e}") from e
        if not real:
            raise InvalidInputError("x must be real, got complex values")
        if x.ndim != 1:
            raise InvalidInputError(
                f"x must be 1D, got shape {x.shape}",
                code=BLOCKELL_ERROR_DIMENSION_MISMATCH,
            )
        extent = self.col_extent
        if x.shape[0] < extent:
            raise OutOfRangeError(
                f"x has length {x.shape[0]} but column {extent - 1} is referenced"
            )
        return x

    def _check_output(self, out: Optional[np.ndarray]) -> np.ndarray:
        nrows = self.nrows
        if out is None:
            return np.zeros(nrows, dtype=np.float64)
        if not isinstance(out, np.ndarray) or out.dtype != np.float64:
            raise InvalidInputError("out must be a float64 numpy array")
        if out.shape != (nrows,):
            raise InvalidInputError(
                f"out must have shape ({nrows},), got {out.shape}",
                code=BLOCKELL_ERROR_DIMENSION_MISMATCH,
            )
        if not out.flags.writeable:
            raise InvalidInputError("out must be writeable")
        out[:] = 0.0
        return out

    def __repr__(self) -> str:
        if self.is_released:
            return f"{type(self).__name__}(shape={self._shape}, released)"
        return f"{type(self).__name__}(shape={self._shape}, nnz={self.nnz})"
