"""
Push-mode pipeline composition.

pipeline() pipes a source through any number of duplex stages into a sink,
destroys every stage on the first error and raises that error to the caller.
"""

import logging
from typing import Any, List, Optional

from ..errors import PipelineError
from ..options import PushStreamOptions
from .streams import Duplex, Readable, Stream, Writable


logger = logging.getLogger(__name__)


def pipeline(*stages: Any, options: Optional[PushStreamOptions] = None) -> Stream:
    """
    Pipe a source through intermediate stages into a sink.

    The source may be a Readable, a file-like object with read(), or an
    iterable of chunks. Intermediate stages must be Duplex streams. The sink
    may be a Writable or any object with write().

    With a finite source the whole transfer completes before this returns.

    Args:
        *stages: Source, zero or more duplex stages, sink
        options: Options for adapters created around plain sources and sinks

    Returns:
        The sink stream

    Raises:
        PipelineError: If the stages cannot be composed
        Exception: The first error raised by any stage, unchanged
    """
    if len(stages) < 2:
        raise PipelineError(
            "pipeline() needs a source and a sink",
            details={"stages": len(stages)}
        )

    streams: List[Stream] = [_as_source(stages[0], options)]
    for index, stage in enumerate(stages[1:-1], start=1):
        if not isinstance(stage, Duplex):
            raise PipelineError(
                f"Stage {index} must be a duplex stream, got {type(stage).__name__}",
                details={"stage": index}
            )
        streams.append(stage)
    streams.append(_as_sink(stages[-1], options))

    failures: List[BaseException] = []

    def fail(error: BaseException) -> None:
        if failures:
            return
        failures.append(error)
        logger.warning(f"Pipeline failed: {error!r}")
        for stream in streams:
            stream.destroy(error)

    for stream in streams:
        stream.on("error", fail)

    sink = streams[-1]
    sink.once("finish", lambda: logger.debug("Pipeline finished"))

    try:
        # Wire from the sink backwards so data only starts once every pipe exists
        for upstream, downstream in reversed(list(zip(streams, streams[1:]))):
            upstream.pipe(downstream)
    except Exception as e:
        fail(e)

    if failures:
        raise failures[0]
    return sink


def _as_source(source: Any, options: Optional[PushStreamOptions]) -> Readable:
    if isinstance(source, Readable):
        return source
    if hasattr(source, "read"):
        return Readable.from_file(source, options)
    if isinstance(source, (str, bytes, bytearray, memoryview)):
        raise PipelineError(
            "pipeline() source must be a stream or an iterable of chunks, not a single chunk"
        )
    try:
        return Readable.from_iterable(source, options)
    except TypeError as e:
        raise PipelineError(
            f"Unsupported pipeline source: {type(source).__name__}", cause=e
        ) from e


def _as_sink(sink: Any, options: Optional[PushStreamOptions]) -> Writable:
    if isinstance(sink, Writable):
        return sink
    if hasattr(sink, "write"):
        return Writable.from_file(sink, options)
    raise PipelineError(f"Unsupported pipeline sink: {type(sink).__name__}")
