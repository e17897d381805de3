"""
Global configuration for blockell.

Provides:
- Default index precision for representation arrays
- Serial / parallel kernel selection
- Thread count for the parallel kernels

Environment overrides (read once at import):
    BLOCKELL_INDEX_TYPE   'int32' or 'int64'
    BLOCKELL_NO_PARALLEL  '1', 'true' or 'yes' disables parallel kernels
    BLOCKELL_NUM_THREADS  positive integer
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional, Union

import numpy as np

from ._errors import InvalidInputError

__all__ = [
    'IndexType',
    'get_config',
    'set_config',
    'config_context',
]

logger = logging.getLogger("blockell.config")


# =============================================================================
# Precision Types
# =============================================================================

class IndexType(Enum):
    """Index (integer) precision."""
    INT32 = "int32"
    INT64 = "int64"

    @property
    def numpy_dtype(self) -> np.dtype:
        return np.dtype(np.int32) if self == IndexType.INT32 else np.dtype(np.int64)


def _parse_index_type(value: Union[IndexType, str, type, np.dtype]) -> IndexType:
    if isinstance(value, IndexType):
        return value
    try:
        name = np.dtype(value).name
    except TypeError:
        name = str(value)
    if name in ('int32', 'i32'):
        return IndexType.INT32
    if name in ('int64', 'i64'):
        return IndexType.INT64
    raise InvalidInputError(f"Unsupported index type: {value!r} (expected int32 or int64)")


def _parse_num_threads(value: Optional[int]) -> Optional[int]:
    if value is None:
        return None
    value = int(value)
    if value < 1:
        raise InvalidInputError(f"num_threads must be positive, got {value}")
    return value


# =============================================================================
# Global Configuration State
# =============================================================================

class _Config:
    """
    Global configuration singleton.

    Holds settings that affect how representations are built and how
    kernels are dispatched.
    """

    def __init__(self):
        self._index_type = IndexType.INT64
        self._parallel = True
        self._num_threads: Optional[int] = None

    @property
    def index_type(self) -> IndexType:
        """Index precision used for all representation index arrays."""
        return self._index_type

    @index_type.setter
    def index_type(self, value: Union[IndexType, str]):
        self._index_type = _parse_index_type(value)

    @property
    def index_dtype(self) -> np.dtype:
        """numpy dtype matching ``index_type``."""
        return self._index_type.numpy_dtype

    @property
    def parallel(self) -> bool:
        """Whether SpMV kernels run the row loop in parallel."""
        return self._parallel

    @parallel.setter
    def parallel(self, value: bool):
        self._parallel = bool(value)

    @property
    def num_threads(self) -> Optional[int]:
        """Thread count for parallel kernels (None = numba default)."""
        return self._num_threads

    @num_threads.setter
    def num_threads(self, value: Optional[int]):
        self._num_threads = _parse_num_threads(value)

    def load_env(self) -> None:
        """Apply ``BLOCKELL_*`` environment overrides."""
        index_type = os.environ.get('BLOCKELL_INDEX_TYPE')
        if index_type:
            self.index_type = index_type
        if os.environ.get('BLOCKELL_NO_PARALLEL', '').lower() in ('1', 'true', 'yes'):
            self.parallel = False
        num_threads = os.environ.get('BLOCKELL_NUM_THREADS')
        if num_threads:
            self.num_threads = int(num_threads)
        logger.debug(f"Loaded configuration: {self!r}")

    def __repr__(self) -> str:
        return (f"_Config(index_type={self._index_type.value}, "
                f"parallel={self._parallel}, num_threads={self._num_threads})")


_config = _Config()
_config.load_env()


# =============================================================================
# Public Accessors
# =============================================================================

def get_config() -> _Config:
    """Return the process-wide configuration object."""
    return _config


def set_config(
    index_type: Optional[Union[IndexType, str]] = None,
    parallel: Optional[bool] = None,
    num_threads: Optional[int] = None,
) -> None:
    """
    Update configuration values. Arguments left as None are unchanged.

    Example:
        >>> import blockell
        >>> blockell.set_config(index_type='int32', num_threads=4)
    """
    if index_type is not None:
        _config.index_type = index_type
    if parallel is not None:
        _config.parallel = parallel
    if num_threads is not None:
        _config.num_threads = num_threads


@contextmanager
def config_context(**kwargs) -> Iterator[_Config]:
    """
    Temporarily override configuration values.

    Example:
        >>> with config_context(parallel=False):
        ...     y = bcrs.matvec(x)
    """
    saved = (_config._index_type, _config._parallel, _config._num_threads)
    try:
        set_config(**kwargs)
        yield _config
    finally:
        _config._index_type, _config._parallel, _config._num_threads = saved
