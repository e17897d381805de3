"""
Tests for the column reordering interface.
"""

import logging

import pytest
import numpy as np

from blockell import InvalidInputError
from blockell.reorder import (
    ColumnReorderer,
    identity_reorderer,
    inverse_permutation,
    new_permutation_buffer,
    permute_columns,
    reorder_columns,
    validate_permutation,
)
from blockell.sparse import DenseMatrix, build_bcrs, count_blocks


def interleave_reorderer(matrix, perm):
    """Move even columns to the front, odd columns after them."""
    ncols = matrix.ncols
    order = np.concatenate([np.arange(0, ncols, 2), np.arange(1, ncols, 2)])
    perm[order] = np.arange(ncols)


class TestPermutationBuffer:
    """Test buffer allocation and validation."""

    def test_new_buffer_is_identity(self):
        """The buffer starts as the identity."""
        perm = new_permutation_buffer(5)
        np.testing.assert_array_equal(perm, np.arange(5))
        assert perm.dtype == np.int64

    def test_new_buffer_negative(self):
        """Negative sizes are rejected."""
        with pytest.raises(InvalidInputError):
            new_permutation_buffer(-1)

    def test_validate_accepts(self):
        """A proper permutation passes."""
        perm = validate_permutation([2, 0, 1], 3)
        np.testing.assert_array_equal(perm, [2, 0, 1])

    def test_validate_rejects(self):
        """Wrong length, repeats, out-of-range and non-integers fail."""
        for bad in ([0, 1], [0, 0, 1], [0, 1, 3], [0, -1, 2], [0.0, 1.0, 2.0], [[0, 1, 2]]):
            with pytest.raises(InvalidInputError):
                validate_permutation(bad, 3)

    def test_inverse(self):
        """inv[perm[j]] == j."""
        perm = np.array([2, 0, 3, 1])
        inv = inverse_permutation(perm)
        np.testing.assert_array_equal(inv[perm], np.arange(4))


class TestReorderers:
    """Test reorderer callables and the apply step."""

    def test_protocol(self):
        """Plain functions satisfy the protocol."""
        assert isinstance(identity_reorderer, ColumnReorderer)
        assert isinstance(interleave_reorderer, ColumnReorderer)

    def test_identity(self, blocky_dense):
        """The identity reorderer leaves the matrix unchanged."""
        permuted, perm = reorder_columns(blocky_dense, identity_reorderer)
        np.testing.assert_array_equal(perm, np.arange(6))
        np.testing.assert_array_equal(permuted.grid, blocky_dense.grid)

    def test_reduces_blocks(self):
        """Clustering nonzero columns lowers the block count."""
        dense = DenseMatrix([[1.0, 0.0, 1.0, 0.0], [1.0, 0.0, 1.0, 0.0]])
        assert count_blocks(dense) == 4
        permuted, perm = reorder_columns(dense, interleave_reorderer)
        np.testing.assert_array_equal(perm, [0, 2, 1, 3])
        np.testing.assert_array_equal(permuted.grid, [[1, 1, 0, 0], [1, 1, 0, 0]])
        assert count_blocks(permuted) == 2
        assert build_bcrs(permuted).nblocks == 2

    def test_nnz_preserved(self, random_dense):
        """Permuting columns never changes the nonzero count."""
        perm = np.random.RandomState(3).permutation(random_dense.ncols)
        permuted = permute_columns(random_dense, perm)
        assert permuted.nnz == random_dense.nnz
        assert permuted.count_nonzero() == random_dense.nnz

    def test_product_with_permuted_vector(self, random_dense):
        """A permuted matrix times the permuted vector gives the same result."""
        perm = np.random.RandomState(4).permutation(random_dense.ncols)
        x = np.linspace(-1.0, 1.0, random_dense.ncols)
        bcrs = build_bcrs(permute_columns(random_dense, perm))
        np.testing.assert_allclose(
            bcrs.matvec(x[inverse_permutation(perm)]),
            random_dense.grid @ x,
            rtol=1e-12, atol=1e-12,
        )

    def test_bad_reorderer_output(self, small_dense):
        """A reorderer that writes an invalid permutation is caught."""
        def broken(matrix, perm):
            perm[:] = 0

        with pytest.raises(InvalidInputError):
            reorder_columns(small_dense, broken)

    def test_block_statistics_only_when_debug_logging(self, small_dense, monkeypatch, caplog):
        """Block counts for the log message are skipped unless DEBUG is on."""
        import blockell.reorder as reorder_module

        calls = []

        def counting(matrix):
            calls.append(matrix)
            return count_blocks(matrix)

        monkeypatch.setattr(reorder_module, 'count_blocks', counting)
        caplog.set_level(logging.INFO, logger='blockell.reorder')
        reorder_columns(small_dense, identity_reorderer)
        assert calls == []

        caplog.set_level(logging.DEBUG, logger='blockell.reorder')
        reorder_columns(small_dense, identity_reorderer)
        assert len(calls) == 2
        assert 'Column reorder' in caplog.text
