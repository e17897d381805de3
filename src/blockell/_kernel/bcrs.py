"""
BCRS (Block Compressed Row Storage) Kernels

Low-level numba kernels for the BCRS layout. Allocation is done by the
caller between ``count_blocks`` and ``fill_bcrs`` so both passes agree on
array sizes.

Layout:
    row_ptr[nrows + 1]:   block range of each row
    col_ind[nblocks]:     starting column of each block
    nnz_ptr[nblocks + 1]: value range of each block
    value[nnz]:           nonzero values, row-major, block order
"""

from numba import njit, prange

from ._parallel import row_kernel

__all__ = [
    'count_blocks',
    'fill_bcrs',
    'bcrs_spmv',
]


@njit
def count_blocks(grid):
    """Count blocks and nonzeros of a dense grid.

    A block starts at every nonzero that is in column 0 or follows a zero.

    Args:
        grid: 2D float64 array (nrows, ncols)

    Returns:
        Tuple (nblocks, nnz)
    """
    nrows, ncols = grid.shape
    nblocks = 0
    nnz = 0
    for i in range(nrows):
        prev_zero = True
        for j in range(ncols):
            if grid[i, j] != 0:
                nnz += 1
                if prev_zero:
                    nblocks += 1
                prev_zero = False
            else:
                prev_zero = True
    return nblocks, nnz


@njit
def fill_bcrs(grid, row_ptr, col_ind, nnz_ptr, value):
    """Fill pre-sized BCRS arrays from a dense grid.

    Rescans exactly like ``count_blocks``. ``row_ptr`` must have
    ``nrows + 1`` slots, ``col_ind``/``nnz_ptr`` the counted block count
    (plus one trailing slot for ``nnz_ptr``) and ``value`` the counted nnz.

    Returns:
        Tuple (blocks_written, values_written)
    """
    nrows, ncols = grid.shape
    block = 0
    index = 0
    row_ptr[0] = 0
    for i in range(nrows):
        prev_zero = True
        for j in range(ncols):
            v = grid[i, j]
            if v != 0:
                if prev_zero:
                    col_ind[block] = j
                    nnz_ptr[block] = index
                    block += 1
                value[index] = v
                index += 1
                prev_zero = False
            else:
                prev_zero = True
        row_ptr[i + 1] = block
    nnz_ptr[block] = index
    return block, index


@row_kernel
def bcrs_spmv(row_ptr, col_ind, nnz_ptr, value, x, out):
    """r = A * x over BCRS arrays; writes exactly ``nrows`` entries of ``out``.

    The caller guarantees ``x`` covers every referenced column.
    """
    nrows = row_ptr.shape[0] - 1
    for i in prange(nrows):
        t = 0.0
        for b in range(row_ptr[i], row_ptr[i + 1]):
            start_col = col_ind[b]
            offset = 0
            for k in range(nnz_ptr[b], nnz_ptr[b + 1]):
                t += value[k] * x[start_col + offset]
                offset += 1
        out[i] = t
