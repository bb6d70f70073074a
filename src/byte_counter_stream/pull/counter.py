"""
Pull-mode byte counter.
"""

import logging
from typing import Any, Optional

from ..counting import ByteTally, CountHook
from ..options import PullStreamOptions
from .transform import TransformStream, TransformStreamDefaultController


logger = logging.getLogger(__name__)


class PullByteCounter(TransformStream):
    """
    Transform stream that counts the bytes passing through it.

    Use the `writable`/`readable` pair directly, or as a pipe-through stage:

        counter = PullByteCounter()
        await source.pipe_through(counter).pipe_to(sink)
        print(counter.count)

    `count` is the running total of bytes forwarded to `readable` so far and
    cannot be assigned.
    """

    def __init__(self, options: Optional[PullStreamOptions] = None):
        self.options = options or PullStreamOptions()
        self._tally = ByteTally()
        super().__init__(
            transform=self._count_chunk,
            flush=self._finish,
            writable_high_water_mark=self.options.writable_high_water_mark,
            readable_high_water_mark=self.options.readable_high_water_mark
        )

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

    def _count_chunk(self, chunk: Any, controller: TransformStreamDefaultController) -> None:
        self._tally.add(chunk)
        controller.enqueue(chunk)

    def _finish(self, controller: TransformStreamDefaultController) -> None:
        logger.debug(f"Pull counter finished with {self.count} bytes")
