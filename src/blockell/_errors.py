"""
Error handling for blockell.

Every exception raised by the library derives from ``BlockEllError`` and
carries an integer code. Each concrete class also derives from the matching
builtin (``ValueError``, ``IndexError``, ``MemoryError``, ``RuntimeError``)
so callers can catch either family.
"""

from __future__ import annotations

from typing import Dict, Optional, Type


# =============================================================================
# Error Codes
# =============================================================================

BLOCKELL_OK = 0

# General errors (1-9)
BLOCKELL_ERROR_UNKNOWN = 1
BLOCKELL_ERROR_INTERNAL = 2
BLOCKELL_ERROR_OUT_OF_MEMORY = 3
BLOCKELL_ERROR_RELEASED = 4

# Argument errors (10-19)
BLOCKELL_ERROR_INVALID_ARGUMENT = 10
BLOCKELL_ERROR_DIMENSION_MISMATCH = 11
BLOCKELL_ERROR_NNZ_MISMATCH = 12
BLOCKELL_ERROR_INDEX_OUT_OF_BOUNDS = 14


_ERROR_MESSAGES = {
    BLOCKELL_OK: "Success",
    BLOCKELL_ERROR_UNKNOWN: "Unknown error",
    BLOCKELL_ERROR_INTERNAL: "Internal error",
    BLOCKELL_ERROR_OUT_OF_MEMORY: "Out of memory",
    BLOCKELL_ERROR_RELEASED: "Storage already released",
    BLOCKELL_ERROR_INVALID_ARGUMENT: "Invalid argument",
    BLOCKELL_ERROR_DIMENSION_MISMATCH: "Dimension mismatch",
    BLOCKELL_ERROR_NNZ_MISMATCH: "Declared nonzero count does not match matrix contents",
    BLOCKELL_ERROR_INDEX_OUT_OF_BOUNDS: "Index out of bounds",
}


# =============================================================================
# Exception Classes
# =============================================================================

class BlockEllError(Exception):
    """
    Base exception for all blockell errors.

    Attributes:
        code: Integer error code (one of the ``BLOCKELL_*`` constants)
        message: Human-readable message
    """

    default_code = BLOCKELL_ERROR_UNKNOWN

    def __init__(self, message: Optional[str] = None, code: Optional[int] = None):
        if code is None:
            code = self.default_code
        self.code = code
        if message is None:
            message = _ERROR_MESSAGES.get(code, f"Unknown error (code={code})")
        self.message = message
        super().__init__(f"blockell error {code}: {message}")

    @classmethod
    def from_code(cls, code: int, context: str = "") -> "BlockEllError":
        """Create exception from error code with optional context."""
        base_msg = _ERROR_MESSAGES.get(code, "Unknown error")
        msg = f"{context}: {base_msg}" if context else base_msg
        return cls(msg, code=code)


class InvalidInputError(BlockEllError, ValueError):
    """Input violates a structural precondition (shape, nnz, permutation)."""

    default_code = BLOCKELL_ERROR_INVALID_ARGUMENT


class OutOfRangeError(BlockEllError, IndexError):
    """A vector is too short for the columns a representation references."""

    default_code = BLOCKELL_ERROR_INDEX_OUT_OF_BOUNDS


class AllocationError(BlockEllError, MemoryError):
    """Backing storage for a representation could not be allocated."""

    default_code = BLOCKELL_ERROR_OUT_OF_MEMORY


class ReleasedError(BlockEllError, RuntimeError):
    """A representation was used after ``release()``."""

    default_code = BLOCKELL_ERROR_RELEASED


_CODE_TO_CLASS: Dict[int, Type[BlockEllError]] = {
    BLOCKELL_ERROR_OUT_OF_MEMORY: AllocationError,
    BLOCKELL_ERROR_RELEASED: ReleasedError,
    BLOCKELL_ERROR_INVALID_ARGUMENT: InvalidInputError,
    BLOCKELL_ERROR_DIMENSION_MISMATCH: InvalidInputError,
    BLOCKELL_ERROR_NNZ_MISMATCH: InvalidInputError,
    BLOCKELL_ERROR_INDEX_OUT_OF_BOUNDS: OutOfRangeError,
}


# =============================================================================
# Error Checking Functions
# =============================================================================

def error_message(code: int) -> str:
    """Return the canonical message for an error code."""
    return _ERROR_MESSAGES.get(code, f"Unknown error (code={code})")


def check_error(code: int, context: str = "") -> None:
    """
    Check error code and raise the matching exception if not OK.

    Args:
        code: Error code
        context: Optional context prepended to the message

    Raises:
        BlockEllError: Subclass selected by ``code``
    """
    if code == BLOCKELL_OK:
        return
    exc_cls = _CODE_TO_CLASS.get(code, BlockEllError)
    raise exc_cls.from_code(code, context)
