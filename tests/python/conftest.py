"""
Pytest configuration and shared fixtures for blockell tests.
"""

import pytest
import numpy as np
from pathlib import Path
import sys

# Add src to path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root / "src"))

from blockell import get_config
from blockell.sparse import DenseMatrix


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def restore_config():
    """Undo configuration changes made by a test."""
    config = get_config()
    saved = (config.index_type, config.parallel, config.num_threads)
    yield
    config.index_type, config.parallel, config.num_threads = saved


@pytest.fixture
def identity3():
    """3x3 identity matrix."""
    return DenseMatrix(np.eye(3))


@pytest.fixture
def small_dense():
    """
    Matrix:
    [[1, 2, 0],
     [0, 0, 3]]
    """
    return DenseMatrix([[1.0, 2.0, 0.0], [0.0, 0.0, 3.0]])


@pytest.fixture
def blocky_dense():
    """
    Matrix with several blocks per row and an empty row:
    [[1, 1, 0, 1, 1, 1],
     [0, 0, 0, 0, 0, 0],
     [5, 0, 6, 0, 7, 8]]
    """
    return DenseMatrix([
        [1.0, 1.0, 0.0, 1.0, 1.0, 1.0],
        [0.0, 0.0, 0.0, 0.0, 0.0, 0.0],
        [5.0, 0.0, 6.0, 0.0, 7.0, 8.0],
    ])


@pytest.fixture
def random_dense():
    """Random 40x60 matrix at roughly 15% density."""
    return make_random_dense(40, 60, density=0.15, seed=42)


# =============================================================================
# Helper Functions
# =============================================================================

def make_random_dense(rows, cols, density=0.1, seed=0):
    """Random DenseMatrix with values in [-1, 1] and the given density."""
    rng = np.random.RandomState(seed)
    grid = rng.uniform(-1.0, 1.0, size=(rows, cols))
    grid[rng.random_sample((rows, cols)) >= density] = 0.0
    return DenseMatrix(grid)


@pytest.fixture
def dense_factory():
    """Factory fixture wrapping ``make_random_dense``."""
    return make_random_dense
