"""
Push-mode byte counter.
"""

import logging
from typing import Any, Optional

from ..counting import ByteTally, CountHook
from ..options import PushStreamOptions
from .streams import Transform


logger = logging.getLogger(__name__)


class PushByteCounter(Transform):
    """
    Transform stream that counts the bytes passing through it.

    Chunks are forwarded unchanged; `count` is the running total of bytes
    forwarded so far and cannot be assigned.

    Example:
        counter = PushByteCounter()
        pipeline(open("data.bin", "rb"), counter, sink)
        print(counter.count)
    """

    def __init__(self, options: Optional[PushStreamOptions] = None):
        super().__init__(options=options)
        self._tally = ByteTally()

    @property
    def count(self) -> int:
        """Bytes counted so far."""
        return self._tally.total

    def add_hook(self, hook: CountHook) -> None:
        """Add a hook called with (chunk_size, total) after each chunk."""
        self._tally.add_hook(hook)

    def remove_hook(self, hook: CountHook) -> None:
        """Remove a count hook."""
        self._tally.remove_hook(hook)

    def _transform(self, chunk: Any) -> None:
        self._tally.add(chunk)
        self.push(chunk)

    def _after_finish(self) -> None:
        logger.debug(f"Push counter finished with {self.count} bytes")
        super()._after_finish()
