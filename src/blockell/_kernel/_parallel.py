"""Row-dimension parallel-for dispatch.

A row kernel is written once as a plain Python function whose outer loop
uses ``numba.prange``. ``RowKernel`` compiles it twice, once with
``parallel=True`` and once serially (where ``prange`` degrades to
``range``), and picks one per call from the global configuration.
"""

import logging
from typing import Any, Callable, Optional

import numba
from numba import njit

from .._config import get_config

__all__ = ['RowKernel', 'row_kernel', 'apply_num_threads']

logger = logging.getLogger("blockell.kernel")


def apply_num_threads(num_threads: Optional[int]) -> int:
    """Set the numba thread count, clamped to the pool size.

    Args:
        num_threads: Requested thread count, or None for the full pool.

    Returns:
        The thread count now in effect.
    """
    pool_size = numba.config.NUMBA_NUM_THREADS
    if num_threads is None:
        numba.set_num_threads(pool_size)
    else:
        numba.set_num_threads(min(num_threads, pool_size))
    return numba.get_num_threads()


class RowKernel:
    """Serial and parallel compilations of one row kernel."""

    def __init__(self, func: Callable[..., Any]):
        self.name = func.__name__
        self.py_func = func
        self._parallel = njit(parallel=True)(func)
        self._serial = njit(func)

    def __call__(self, *args):
        config = get_config()
        if config.parallel:
            threads = apply_num_threads(config.num_threads)
            logger.debug(f"{self.name}: parallel over rows, {threads} threads")
            return self._parallel(*args)
        logger.debug(f"{self.name}: serial")
        return self._serial(*args)

    def __repr__(self) -> str:
        return f"RowKernel({self.name})"


def row_kernel(func: Callable[..., Any]) -> RowKernel:
    """Decorator form of ``RowKernel``."""
    return RowKernel(func)
