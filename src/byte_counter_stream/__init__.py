"""
Byte Counter Stream

Count the bytes flowing through a stream while passing the data through
unchanged, in push mode (synchronous, event-driven streams) or pull mode
(asyncio streams with backpressure), plus byte_length() for measuring a
single string or buffer.
"""

from .length import byte_length
from .counting import ByteTally, chunk_length
from .options import PushStreamOptions, PullStreamOptions
from .errors import (
    ErrorCode, StreamError, StreamClosedError, StreamLockedError, StreamAbortedError,
    StreamDestroyedError, InvalidChunkError, PipelineError
)

# Push mode
from .push import (
    EventEmitter, Stream, Readable, Writable, Duplex, Transform, pipeline, PushByteCounter
)

# Pull mode
from .pull import (
    ReadableStream, ReadableStreamDefaultReader, ReadResult,
    WritableStream, WritableStreamDefaultWriter,
    TransformStream, PullByteCounter
)

ByteCounterStream = PullByteCounter

__version__ = "1.0.0"
__all__ = [
    "byte_length",
    "chunk_length",
    "ByteTally",

    # Options
    "PushStreamOptions",
    "PullStreamOptions",

    # Errors
    "ErrorCode",
    "StreamError",
    "StreamClosedError",
    "StreamLockedError",
    "StreamAbortedError",
    "StreamDestroyedError",
    "InvalidChunkError",
    "PipelineError",

    # Push mode
    "EventEmitter",
    "Stream",
    "Readable",
    "Writable",
    "Duplex",
    "Transform",
    "pipeline",
    "PushByteCounter",

    # Pull mode
    "ReadableStream",
    "ReadableStreamDefaultReader",
    "ReadResult",
    "WritableStream",
    "WritableStreamDefaultWriter",
    "TransformStream",
    "PullByteCounter",
    "ByteCounterStream",
]
