"""
ELL (ELLPACK) Kernels

Low-level numba kernels for the ELL layout. Values and indices are flat
row-major buffers of ``nrows * width`` cells with stride ``width``;
padding cells hold (0.0, -1).
"""

import numpy as np
from numba import njit, prange

from ._parallel import row_kernel

__all__ = [
    'PADDING_INDEX',
    'row_counts',
    'fill_ell',
    'ell_spmv',
]

PADDING_INDEX = -1


@njit
def row_counts(grid):
    """Nonzero count of every row.

    Args:
        grid: 2D float64 array (nrows, ncols)

    Returns:
        int64 array of length nrows
    """
    nrows, ncols = grid.shape
    counts = np.zeros(nrows, dtype=np.int64)
    for i in range(nrows):
        c = 0
        for j in range(ncols):
            if grid[i, j] != 0:
                c += 1
        counts[i] = c
    return counts


@njit
def fill_ell(grid, width, values, indices):
    """Write each row's nonzeros into its leading slots.

    ``values`` and ``indices`` must already be initialised to padding.
    Every row must have at most ``width`` nonzeros.

    Returns:
        Number of entries written
    """
    nrows, ncols = grid.shape
    written = 0
    for i in range(nrows):
        base = i * width
        slot = 0
        for j in range(ncols):
            v = grid[i, j]
            if v != 0:
                values[base + slot] = v
                indices[base + slot] = j
                slot += 1
        written += slot
    return written


@row_kernel
def ell_spmv(nrows, width, values, indices, x, out):
    """r = A * x over flat ELL buffers; padding slots are skipped."""
    for i in prange(nrows):
        t = 0.0
        base = i * width
        for j in range(width):
            col = indices[base + j]
            if col >= 0:
                t += values[base + j] * x[col]
        out[i] = t
