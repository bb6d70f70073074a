"""
Push-mode stream primitives.

Synchronous, event-driven readable, writable, duplex and transform streams.
A producer calls write(); consumers receive chunks through "data" events,
pipe() or read(). Every call completes on the caller's stack, so a finite
source piped through a chain of transforms is fully delivered by the time
the pipe call returns.

Events:
    readable side: "data" (chunk), "end", "pause", "resume"
    writable side: "drain", "finish"
    both: "error" (exception), "close"
"""

import logging
from collections import deque
from typing import Any, Callable, Deque, Iterable, Iterator, Optional

from ..errors import StreamClosedError, StreamDestroyedError
from ..length import byte_length
from ..options import PushStreamOptions
from .events import EventEmitter, Listener


logger = logging.getLogger(__name__)


class Stream(EventEmitter):
    """Common destroy/error state shared by every push stream."""

    def __init__(self, options: Optional[PushStreamOptions] = None):
        super().__init__()
        self.options = options or PushStreamOptions()
        self.destroyed = False
        self.errored: Optional[BaseException] = None

    def destroy(self, error: Optional[BaseException] = None) -> "Stream":
        """
        Tear the stream down.

        Emits "error" (when an error is given) and then "close". Calling it
        again is a no-op.

        Args:
            error: Optional error that caused the teardown
        """
        if self.destroyed:
            return self

        self.destroyed = True
        self.errored = error
        self._destroy(error)

        if error is not None:
            logger.debug(f"{type(self).__name__} destroyed: {error!r}")
            self.emit("error", error)
        self.emit("close")
        return self

    def _destroy(self, error: Optional[BaseException]) -> None:
        """Release resources. Subclasses override."""


class Readable(Stream):
    """
    Readable side of a push stream.

    Chunks pushed with push() are buffered until a consumer takes them.
    Attaching a "data" listener (or piping) switches the stream to flowing
    mode, where buffered chunks are emitted as soon as they arrive.
    """

    def __init__(self, options: Optional[PushStreamOptions] = None):
        super().__init__(options)
        self._init_readable()

    def _init_readable(self) -> None:
        self._buffer: Deque[Any] = deque()
        self._buffered_bytes = 0
        self.flowing = False
        self.readable_ended = False
        self._eof = False
        self._resuming = False

    @classmethod
    def from_iterable(cls, iterable: Iterable[Any],
                      options: Optional[PushStreamOptions] = None) -> "Readable":
        """
        Create a readable stream that pulls chunks from an iterable on demand.

        Args:
            iterable: Iterable of chunks (bytes-like or str)
            options: Optional stream options

        Returns:
            Readable stream ending when the iterable is exhausted
        """
        return _IterableReadable(iter(iterable), options)

    @classmethod
    def from_file(cls, file: Any, options: Optional[PushStreamOptions] = None) -> "Readable":
        """
        Create a readable stream over a file-like object.

        The file is read in options.chunk_size pieces and is not closed.
        """
        options = options or PushStreamOptions()

        def chunks() -> Iterator[Any]:
            while True:
                data = file.read(options.chunk_size)
                if not data:
                    break
                yield data

        return cls.from_iterable(chunks(), options)

    @property
    def readable_length(self) -> int:
        """Bytes currently buffered on the readable side."""
        return self._buffered_bytes

    def push(self, chunk: Any) -> bool:
        """
        Add a chunk to the readable side, or signal EOF with None.

        Returns:
            False once the buffer reaches the high-water mark
        """
        if self.destroyed:
            return False

        if chunk is None:
            self._eof = True
            self._maybe_end()
            return False

        if self._eof:
            raise StreamClosedError("push() after EOF")

        self._buffer.append(chunk)
        self._buffered_bytes += byte_length(chunk)
        if self.flowing:
            self._flow()
        return self._buffered_bytes < self.options.high_water_mark

    def read(self) -> Optional[Any]:
        """
        Take the next buffered chunk.

        Returns:
            The next chunk, or None if nothing is buffered
        """
        if self.destroyed:
            return None

        if not self._buffer and not self._eof:
            self._read()

        if not self._buffer:
            self._maybe_end()
            return None

        chunk = self._shift()
        self._maybe_end()
        return chunk

    def _read(self) -> None:
        """Produce more data on demand. Subclasses override."""

    def on(self, event: str, listener: Listener) -> "Readable":
        super().on(event, listener)
        if event == "data" and not self.flowing:
            self.resume()
        return self

    def resume(self) -> "Readable":
        """Switch to flowing mode and emit buffered chunks."""
        if not self.flowing:
            self.flowing = True
            self.emit("resume")
        self._flow()
        return self

    def pause(self) -> "Readable":
        """Stop emitting "data" events; chunks keep buffering."""
        if self.flowing:
            self.flowing = False
            self.emit("pause")
        return self

    def pipe(self, destination: "Writable", end: bool = True) -> "Writable":
        """
        Forward every chunk to a writable stream.

        Pauses while the destination reports backpressure and resumes on its
        "drain" event.

        Args:
            destination: Writable (or duplex) stream
            end: Whether to end the destination when this stream ends

        Returns:
            The destination, for chaining
        """
        def on_data(chunk):
            if not destination.write(chunk):
                self.pause()
                destination.once("drain", self.resume)

        if end:
            self.once("end", destination.end)
        self.on("data", on_data)
        return destination

    def __iter__(self) -> Iterator[Any]:
        while True:
            chunk = self.read()
            if chunk is None:
                return
            yield chunk

    def _flow(self) -> None:
        if self._resuming:
            return

        self._resuming = True
        try:
            while self.flowing and not self.destroyed:
                if not self._buffer:
                    if self._eof:
                        break
                    self._read()
                    if not self._buffer:
                        break
                    continue
                self.emit("data", self._shift())
        finally:
            self._resuming = False
        self._maybe_end()

    def _shift(self) -> Any:
        chunk = self._buffer.popleft()
        self._buffered_bytes -= byte_length(chunk)
        self._on_buffer_shrunk()
        return chunk

    def _on_buffer_shrunk(self) -> None:
        """Called after a chunk leaves the buffer."""

    def _maybe_end(self) -> None:
        if self._eof and not self._buffer and not self.readable_ended and not self.destroyed:
            self.readable_ended = True
            self.emit("end")

    def _destroy(self, error: Optional[BaseException]) -> None:
        self._buffer.clear()
        self._buffered_bytes = 0


class _IterableReadable(Readable):
    """Readable stream pulling from an iterator."""

    def __init__(self, iterator: Iterator[Any], options: Optional[PushStreamOptions] = None):
        super().__init__(options)
        self._iterator = iterator

    def _read(self) -> None:
        try:
            chunk = next(self._iterator)
        except StopIteration:
            self.push(None)
            return
        except Exception as e:
            self.destroy(e)
            raise

        if isinstance(chunk, str):
            chunk = chunk.encode(self.options.default_encoding)
        self.push(chunk)

    def _destroy(self, error: Optional[BaseException]) -> None:
        super()._destroy(error)
        close = getattr(self._iterator, "close", None)
        if close is not None:
            close()


class Writable(Stream):
    """
    Writable side of a push stream.

    write() hands each chunk to the write callback immediately. end()
    runs the final callback and emits "finish".
    """

    def __init__(
        self,
        write: Optional[Callable[[Any], Any]] = None,
        final: Optional[Callable[[], Any]] = None,
        options: Optional[PushStreamOptions] = None
    ):
        """
        Initialize writable stream.

        Args:
            write: Callback receiving each chunk
            final: Callback run once when the stream ends
            options: Optional stream options
        """
        super().__init__(options)
        self._init_writable(write, final)

    def _init_writable(self, write: Optional[Callable[[Any], Any]],
                       final: Optional[Callable[[], Any]]) -> None:
        self._write_fn = write
        self._final_fn = final
        self.writable_ended = False
        self.writable_finished = False
        self._need_drain = False

    @classmethod
    def from_file(cls, file: Any, options: Optional[PushStreamOptions] = None) -> "Writable":
        """
        Create a writable stream over a file-like object.

        Chunks go to file.write(); the file is flushed, not closed, on end.
        """
        flush = getattr(file, "flush", None)
        return cls(write=file.write, final=flush, options=options)

    def write(self, chunk: Any, encoding: Optional[str] = None) -> bool:
        """
        Write a chunk.

        Args:
            chunk: Bytes-like chunk, or str encoded with `encoding`
            encoding: Encoding for str chunks (default options.default_encoding)

        Returns:
            False if the caller should wait for "drain" before writing more

        Raises:
            StreamClosedError: If end() was already called
            StreamDestroyedError: If the stream was destroyed
        """
        if self.destroyed:
            raise StreamDestroyedError("write() after destroy", cause=self.errored)
        if self.writable_ended:
            raise StreamClosedError("write() after end")

        if isinstance(chunk, str):
            chunk = chunk.encode(encoding or self.options.default_encoding)

        try:
            self._write(chunk)
        except Exception as e:
            self.destroy(e)
            raise

        ok = self._write_ok()
        if not ok:
            self._need_drain = True
        return ok

    def end(self, chunk: Any = None, encoding: Optional[str] = None) -> "Writable":
        """
        Finish the writable side, optionally writing a last chunk first.

        Calling end() again is a no-op.
        """
        if chunk is not None:
            self.write(chunk, encoding)
        if self.writable_ended or self.destroyed:
            return self

        self.writable_ended = True
        try:
            self._final()
        except Exception as e:
            self.destroy(e)
            raise

        self.writable_finished = True
        logger.debug(f"{type(self).__name__} finished")
        self.emit("finish")
        self._after_finish()
        return self

    def _write(self, chunk: Any) -> None:
        if self._write_fn is not None:
            self._write_fn(chunk)

    def _final(self) -> None:
        if self._final_fn is not None:
            self._final_fn()

    def _write_ok(self) -> bool:
        return True

    def _after_finish(self) -> None:
        """Called once after "finish". Subclasses override."""

    def _emit_drain(self) -> None:
        if self._need_drain:
            self._need_drain = False
            self.emit("drain")


class Duplex(Readable, Writable):
    """
    Stream that is both readable and writable.

    write() backpressure follows the readable buffer: once it holds
    high_water_mark bytes, write() returns False until a consumer drains it.
    """

    def __init__(
        self,
        write: Optional[Callable[[Any], Any]] = None,
        final: Optional[Callable[[], Any]] = None,
        options: Optional[PushStreamOptions] = None
    ):
        Stream.__init__(self, options)
        self._init_readable()
        self._init_writable(write, final)

    def _write_ok(self) -> bool:
        return self._below_high_water_mark()

    def _on_buffer_shrunk(self) -> None:
        if self._below_high_water_mark():
            self._emit_drain()

    def _below_high_water_mark(self) -> bool:
        # An empty buffer always accepts more, even with high_water_mark=0
        return self._buffered_bytes == 0 or self._buffered_bytes < self.options.high_water_mark


class Transform(Duplex):
    """
    Duplex stream whose readable output is computed from its writable input.

    By default every written chunk is pushed through unchanged. Subclasses
    override _transform() and _flush(), or pass callables.
    """

    def __init__(
        self,
        transform: Optional[Callable[[Any], Any]] = None,
        flush: Optional[Callable[[], Any]] = None,
        options: Optional[PushStreamOptions] = None
    ):
        """
        Initialize transform stream.

        Args:
            transform: Maps an input chunk to an output chunk (None drops it)
            flush: Returns a last chunk to emit before EOF (or None)
            options: Optional stream options
        """
        super().__init__(options=options)
        self._transform_fn = transform
        self._flush_fn = flush

    def _write(self, chunk: Any) -> None:
        self._transform(chunk)

    def _transform(self, chunk: Any) -> None:
        if self._transform_fn is not None:
            chunk = self._transform_fn(chunk)
        if chunk is not None:
            self.push(chunk)

    def _final(self) -> None:
        self._flush()

    def _flush(self) -> None:
        if self._flush_fn is not None:
            tail = self._flush_fn()
            if tail is not None:
                self.push(tail)

    def _after_finish(self) -> None:
        self.push(None)
