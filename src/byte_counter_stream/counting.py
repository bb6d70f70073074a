"""
Shared byte counting rule.

Both the push and the pull counters hand every chunk to a ByteTally, so the
two presentations always agree on the total for the same input.
"""

import logging
from typing import Any, Callable, List

from .errors import InvalidChunkError


logger = logging.getLogger(__name__)

CountHook = Callable[[int, int], None]


def chunk_length(chunk: Any) -> int:
    """
    Get the raw byte length of a stream chunk.

    Args:
        chunk: Bytes-like object

    Returns:
        Extent of the chunk in bytes, never re-encoded

    Raises:
        InvalidChunkError: If the chunk does not export a buffer
    """
    try:
        with memoryview(chunk) as view:
            return view.nbytes
    except (TypeError, ValueError) as e:
        raise InvalidChunkError(
            f"Chunk must be a bytes-like object, got {type(chunk).__name__}",
            cause=e
        ) from e


class ByteTally:
    """
    Running total of bytes observed by one counter.

    The total only grows, one add() per chunk, in arrival order.
    """

    def __init__(self):
        self._total = 0
        self._hooks: List[CountHook] = []

    @property
    def total(self) -> int:
        """Bytes counted so far."""
        return self._total

    def add(self, chunk: Any) -> int:
        """
        Count one chunk.

        Args:
            chunk: Bytes-like chunk about to be forwarded downstream

        Returns:
            Byte length of the chunk

        Raises:
            InvalidChunkError: If the chunk is not bytes-like (total unchanged)
        """
        size = chunk_length(chunk)
        self._total += size
        logger.debug(f"Counted {size} bytes (total {self._total})")

        for hook in self._hooks:
            try:
                hook(size, self._total)
            except Exception as e:
                logger.debug(f"Count hook error: {e}")

        return size

    def add_hook(self, hook: CountHook) -> None:
        """Add a hook called with (chunk_size, total) after each chunk."""
        self._hooks.append(hook)

    def remove_hook(self, hook: CountHook) -> None:
        """Remove a previously added hook."""
        self._hooks.remove(hook)
