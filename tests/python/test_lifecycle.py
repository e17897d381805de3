"""
Tests for release and ownership semantics.
"""

import pytest
import numpy as np

from blockell import ReleasedError
from blockell.sparse import (
    ArrayOwnership,
    BCRSMatrix,
    ELLMatrix,
    ensure_alive,
    release,
)


class TestRelease:
    """Test explicit release of representations."""

    def test_release_bcrs(self, small_dense):
        """Released BCRS refuses every data access."""
        bcrs = BCRSMatrix.from_dense(small_dense)
        assert bcrs.nbytes > 0
        bcrs.release()
        assert bcrs.is_released
        assert bcrs.nbytes == 0
        with pytest.raises(ReleasedError):
            bcrs.value
        with pytest.raises(ReleasedError):
            bcrs.row_ptr
        with pytest.raises(ReleasedError):
            bcrs.matvec([1.0, 1.0, 1.0])
        with pytest.raises(ReleasedError):
            bcrs.to_dense()

    def test_release_ell(self, small_dense):
        """Released ELL refuses every data access."""
        ell = ELLMatrix.from_dense(small_dense)
        release(ell)
        assert ell.is_released
        with pytest.raises(ReleasedError):
            ell.values
        with pytest.raises(ReleasedError):
            ell.max_entries_per_row
        with pytest.raises(ReleasedError):
            ell.matvec([1.0, 1.0, 1.0])

    def test_release_twice(self, small_dense):
        """A second release is a no-op."""
        bcrs = BCRSMatrix.from_dense(small_dense)
        bcrs.release()
        bcrs.release()
        assert bcrs.is_released

    def test_released_error_is_runtime_error(self, small_dense):
        """ReleasedError is also a RuntimeError."""
        ell = ELLMatrix.from_dense(small_dense)
        ell.release()
        with pytest.raises(RuntimeError):
            ell.nnz

    def test_shape_survives_release(self, small_dense):
        """Shape metadata remains readable."""
        bcrs = BCRSMatrix.from_dense(small_dense)
        bcrs.release()
        assert bcrs.shape == (2, 3)
        assert 'released' in repr(bcrs)

    def test_context_manager(self, small_dense):
        """Leaving a with block releases the matrix."""
        with BCRSMatrix.from_dense(small_dense) as bcrs:
            np.testing.assert_array_equal(bcrs.matvec([1, 1, 1]), [3.0, 3.0])
        assert bcrs.is_released

    def test_context_manager_on_error(self, small_dense):
        """The matrix is released even when the block raises."""
        with pytest.raises(KeyError):
            with ELLMatrix.from_dense(small_dense) as ell:
                raise KeyError("boom")
        assert ell.is_released

    def test_release_does_not_affect_other_builds(self, small_dense):
        """Each representation owns independent storage."""
        a = BCRSMatrix.from_dense(small_dense)
        b = BCRSMatrix.from_dense(small_dense)
        a.release()
        np.testing.assert_array_equal(b.matvec([1, 1, 1]), [3.0, 3.0])

    def test_representation_independent_of_dense(self, small_dense):
        """Dropping the dense input leaves the representation usable."""
        ell = ELLMatrix.from_dense(small_dense.grid.copy())
        del small_dense
        np.testing.assert_array_equal(ell.matvec([1, 1, 1]), [3.0, 3.0])


class TestArrayOwnership:
    """Test the ownership tracker directly."""

    def test_adopt_freezes(self):
        """Adopted arrays become read-only."""
        own = ArrayOwnership("test")
        arr = own.adopt("a", np.zeros(3))
        assert not arr.flags.writeable
        assert own.get("a") is arr
        assert own.nbytes == 24

    def test_release_returns_flag(self):
        """release() reports whether anything was dropped."""
        own = ArrayOwnership("test")
        own.adopt("a", np.zeros(3))
        assert own.release() is True
        assert own.release() is False
        with pytest.raises(ReleasedError):
            own.get("a")
        with pytest.raises(ReleasedError):
            own.adopt("b", np.zeros(1))

    def test_ensure_alive(self, small_dense):
        """ensure_alive checks objects carrying a tracker."""
        bcrs = BCRSMatrix.from_dense(small_dense)
        ensure_alive(bcrs)
        ensure_alive(object())
        bcrs.release()
        with pytest.raises(ReleasedError):
            ensure_alive(bcrs)
