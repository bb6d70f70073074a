"""
Pull-mode streams.

asyncio readable, writable and transform streams with reader/writer locking,
pipe_to/pipe_through composition and cooperative backpressure, plus the
byte counter built on them.
"""

from .readable import (
    ReadableStream, ReadableStreamDefaultReader, ReadableStreamDefaultController, ReadResult
)
from .writable import (
    WritableStream, WritableStreamDefaultWriter, WritableStreamDefaultController
)
from .transform import TransformStream, TransformStreamDefaultController
from .counter import PullByteCounter

__all__ = [
    "ReadableStream",
    "ReadableStreamDefaultReader",
    "ReadableStreamDefaultController",
    "ReadResult",
    "WritableStream",
    "WritableStreamDefaultWriter",
    "WritableStreamDefaultController",
    "TransformStream",
    "TransformStreamDefaultController",
    "PullByteCounter",
]
