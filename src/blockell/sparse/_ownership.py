"""Ownership and Release Management.

Every representation exclusively owns its backing arrays. This module
tracks those arrays, freezes them against mutation, and drops them on
``release()`` so nothing can read them afterwards.

Safety Model:
    1. Arrays are adopted at construction and marked read-only
    2. ``release()`` drops every adopted array exactly once
    3. Any access after release raises ReleasedError
"""

import logging
from typing import Any, Dict

import numpy as np

from .._errors import ReleasedError

__all__ = [
    'ArrayOwnership',
    'ensure_alive',
]

logger = logging.getLogger("blockell.sparse")


# =============================================================================
# Ownership Tracker
# =============================================================================

class ArrayOwnership:
    """Tracks the arrays owned by one representation.

    Attributes:
        _label: Owner name used in error messages.
        _arrays: Adopted arrays by name.
        _released: Whether release() already ran.

    Example:
        >>> own = ArrayOwnership("BCRSMatrix")
        >>> value = own.adopt("value", np.zeros(4))
        >>> own.release()
        True
        >>> own.get("value")  # raises ReleasedError
    """

    __slots__ = ('_label', '_arrays', '_released')

    def __init__(self, label: str):
        self._label = label
        self._arrays: Dict[str, np.ndarray] = {}
        self._released = False

    def adopt(self, name: str, array: np.ndarray) -> np.ndarray:
        """Take ownership of ``array`` and freeze it.

        Args:
            name: Key the array is stored under.
            array: Array to own. Must not be shared with the caller.

        Returns:
            The same array, now read-only.
        """
        self.ensure_alive()
        array.flags.writeable = False
        self._arrays[name] = array
        return array

    def get(self, name: str) -> np.ndarray:
        """Return an owned array.

        Raises:
            ReleasedError: If the owner was released.
        """
        self.ensure_alive()
        return self._arrays[name]

    def release(self) -> bool:
        """Drop every owned array.

        Returns:
            True if arrays were dropped, False if already released.
        """
        if self._released:
            logger.debug(f"{self._label}: release() called again, nothing to do")
            return False
        count = len(self._arrays)
        self._arrays.clear()
        self._released = True
        logger.debug(f"{self._label}: released {count} arrays")
        return True

    @property
    def is_released(self) -> bool:
        return self._released

    @property
    def nbytes(self) -> int:
        """Total bytes held (0 after release)."""
        return sum(a.nbytes for a in self._arrays.values())

    def ensure_alive(self) -> None:
        """Raise if released.

        Raises:
            ReleasedError: If release() already ran.
        """
        if self._released:
            raise ReleasedError(f"{self._label} has been released")

    def __repr__(self) -> str:
        if self._released:
            return f"ArrayOwnership({self._label}, released)"
        return f"ArrayOwnership({self._label}, arrays={list(self._arrays)})"


# =============================================================================
# Utility Functions
# =============================================================================

def ensure_alive(obj: Any) -> None:
    """Ensure an object's owned storage has not been released.

    Args:
        obj: Object that may carry an ``_ownership`` tracker.

    Raises:
        ReleasedError: If the storage was released.
    """
    ownership = getattr(obj, '_ownership', None)
    if ownership is not None:
        ownership.ensure_alive()
