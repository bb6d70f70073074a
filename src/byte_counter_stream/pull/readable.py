"""
Pull-mode readable stream.

A consumer requests chunks with reader.read() (or async iteration); the
underlying source is asked for more through pull() only while the internal
queue is below its high-water mark or a read is waiting.
"""

import asyncio
import logging
from collections import deque
from types import SimpleNamespace
from typing import (
    Any, AsyncIterator, Callable, Deque, Iterable, NamedTuple, Optional, TYPE_CHECKING, Union
)

from ..errors import StreamClosedError, StreamLockedError, as_exception
from .tasks import maybe_await, settle, spawn

if TYPE_CHECKING:
    from .writable import WritableStream


logger = logging.getLogger(__name__)


class ReadResult(NamedTuple):
    """Result of a read: a chunk, or done=True once the stream is closed."""
    value: Any
    done: bool


class ReadableStreamDefaultController:
    """Handle given to the underlying source to feed the stream."""

    def __init__(self, stream: "ReadableStream"):
        self._stream = stream

    @property
    def desired_size(self) -> Optional[int]:
        """Room left below the high-water mark (None once errored)."""
        return self._stream._desired_size()

    def enqueue(self, chunk: Any) -> None:
        """Deliver a chunk to the stream."""
        self._stream._enqueue(chunk)

    def close(self) -> None:
        """Close the stream once queued chunks are read."""
        self._stream._request_close()

    def error(self, error: Any = None) -> None:
        """Error the stream."""
        self._stream._error(as_exception(error))


class ReadableStream:
    """
    Readable side of a pull-mode pipeline.

    The underlying source is any object (or keyword callables) with optional
    start(controller), pull(controller) and cancel(reason). pull and cancel
    may be coroutines; start runs synchronously in the constructor.
    """

    def __init__(
        self,
        source: Any = None,
        *,
        start: Optional[Callable[..., Any]] = None,
        pull: Optional[Callable[..., Any]] = None,
        cancel: Optional[Callable[..., Any]] = None,
        high_water_mark: int = 1
    ):
        """
        Initialize readable stream.

        Args:
            source: Underlying source object
            start: Source start callback (when no source object is given)
            pull: Source pull callback (when no source object is given)
            cancel: Source cancel callback (when no source object is given)
            high_water_mark: Chunks to buffer ahead of the consumer
        """
        if source is None:
            source = SimpleNamespace(start=start, pull=pull, cancel=cancel)
        if high_water_mark < 0:
            raise ValueError("high_water_mark must be >= 0")

        self._source = source
        self._hwm = high_water_mark
        self._queue: Deque[Any] = deque()
        self._state = "readable"
        self._stored_error: Optional[BaseException] = None
        self._close_requested = False
        self._read_requests: Deque[asyncio.Future] = deque()
        self._reader: Optional["ReadableStreamDefaultReader"] = None
        self._pulling = False
        self._pull_again = False
        self._controller = ReadableStreamDefaultController(self)

        start_fn = getattr(source, "start", None)
        if start_fn is not None:
            start_fn(self._controller)
        self._maybe_pull()

    @classmethod
    def from_iterable(cls, iterable: Union[Iterable[Any], AsyncIterator[Any]]) -> "ReadableStream":
        """
        Create a readable stream over a sync or async iterable.

        Items are pulled one at a time, only when a consumer reads.
        """
        return cls(_IterableSource(iterable), high_water_mark=0)

    @property
    def locked(self) -> bool:
        """Whether a reader is attached."""
        return self._reader is not None

    def get_reader(self) -> "ReadableStreamDefaultReader":
        """
        Acquire an exclusive reader.

        Raises:
            StreamLockedError: If the stream already has a reader
        """
        if self.locked:
            raise StreamLockedError("ReadableStream already has a reader")
        self._reader = ReadableStreamDefaultReader(self)
        return self._reader

    async def cancel(self, reason: Any = None) -> None:
        """
        Cancel the stream, discarding queued chunks.

        Raises:
            StreamLockedError: If a reader is attached (cancel through it)
        """
        if self.locked:
            raise StreamLockedError("Cannot cancel a locked ReadableStream")
        await self._cancel(reason)

    def pipe_to(
        self,
        destination: "WritableStream",
        *,
        prevent_close: bool = False,
        prevent_abort: bool = False,
        prevent_cancel: bool = False
    ) -> asyncio.Task:
        """
        Pipe every chunk into a writable stream.

        Both streams are locked immediately. Errors on either side propagate
        to the other (abort downstream, cancel upstream) unless prevented.
        Must be called with a running event loop.

        Args:
            destination: Writable stream
            prevent_close: Leave the destination open when this stream closes
            prevent_abort: Do not abort the destination on source errors
            prevent_cancel: Do not cancel this stream on destination errors

        Returns:
            Task resolving when the pipe completes, raising the pipe's error
        """
        reader = self.get_reader()
        try:
            writer = destination.get_writer()
        except BaseException:
            reader.release_lock()
            raise

        return spawn(
            _pipe_loop(reader, writer, prevent_close, prevent_abort, prevent_cancel),
            name="pipe_to"
        )

    def pipe_through(self, transform: Any, **options: bool) -> "ReadableStream":
        """
        Pipe this stream into transform.writable and return transform.readable.

        Args:
            transform: Any object with `writable` and `readable` streams
            **options: prevent_close, prevent_abort, prevent_cancel

        Returns:
            The transform's readable side
        """
        self.pipe_to(transform.writable, **options)
        return transform.readable

    def values(self, *, prevent_cancel: bool = False) -> AsyncIterator[Any]:
        """
        Iterate over chunks.

        Leaving the loop early cancels the stream unless prevent_cancel.
        """
        return _iterate(self.get_reader(), prevent_cancel)

    def __aiter__(self) -> AsyncIterator[Any]:
        return self.values()

    # -------------------------------------------------------------------
    # Internal state machine

    def _desired_size(self) -> Optional[int]:
        if self._state == "errored":
            return None
        if self._state == "closed":
            return 0
        return self._hwm - len(self._queue)

    def _enqueue(self, chunk: Any) -> None:
        if self._close_requested or self._state != "readable":
            raise StreamClosedError("Cannot enqueue into a closed ReadableStream")

        while self._read_requests:
            request = self._read_requests.popleft()
            if not request.done():
                request.set_result(ReadResult(chunk, False))
                break
        else:
            self._queue.append(chunk)
        self._maybe_pull()

    def _request_close(self) -> None:
        if self._close_requested or self._state != "readable":
            raise StreamClosedError("ReadableStream is already closing")
        self._close_requested = True
        if not self._queue:
            self._close()

    def _close(self) -> None:
        if self._state != "readable":
            return
        self._state = "closed"
        logger.debug("ReadableStream closed")
        while self._read_requests:
            request = self._read_requests.popleft()
            if not request.done():
                request.set_result(ReadResult(None, True))

    def _error(self, error: BaseException) -> None:
        if self._state != "readable":
            return
        self._state = "errored"
        self._stored_error = error
        self._queue.clear()
        logger.debug(f"ReadableStream errored: {error!r}")
        while self._read_requests:
            request = self._read_requests.popleft()
            if not request.done():
                request.set_exception(error)

    async def _cancel(self, reason: Any) -> None:
        if self._state == "closed":
            return
        if self._state == "errored":
            raise self._stored_error
        self._queue.clear()
        self._close()
        logger.debug(f"ReadableStream cancelled: {reason!r}")
        await maybe_await(getattr(self._source, "cancel", None), reason)

    async def _read(self) -> ReadResult:
        if self._state == "errored":
            raise self._stored_error

        if self._queue:
            chunk = self._queue.popleft()
            if self._close_requested and not self._queue:
                self._close()
            else:
                self._maybe_pull()
            return ReadResult(chunk, False)

        if self._state == "closed":
            return ReadResult(None, True)

        request = asyncio.get_running_loop().create_future()
        self._read_requests.append(request)
        self._maybe_pull()
        return await request

    def _should_pull(self) -> bool:
        if self._state != "readable" or self._close_requested:
            return False
        if getattr(self._source, "pull", None) is None:
            return False
        if self._read_requests:
            return True
        return self._desired_size() > 0

    def _maybe_pull(self) -> None:
        if not self._should_pull():
            return
        if self._pulling:
            self._pull_again = True
            return

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # Constructed outside a loop; the first read pulls
            return

        self._pulling = True
        spawn(self._run_pull(), name="readable_pull")

    async def _run_pull(self) -> None:
        try:
            await maybe_await(self._source.pull, self._controller)
        except Exception as e:
            self._pulling = False
            self._error(e)
            return

        self._pulling = False
        if self._pull_again:
            self._pull_again = False
            self._maybe_pull()


class ReadableStreamDefaultReader:
    """Exclusive reader for a ReadableStream."""

    def __init__(self, stream: ReadableStream):
        self._stream: Optional[ReadableStream] = stream

    async def read(self) -> ReadResult:
        """
        Read the next chunk.

        Returns:
            ReadResult(chunk, False), or ReadResult(None, True) when closed

        Raises:
            Exception: The stream's error if it errored
        """
        return await self._require_stream()._read()

    async def cancel(self, reason: Any = None) -> None:
        """Cancel the stream."""
        await self._require_stream()._cancel(reason)

    def release_lock(self) -> None:
        """Detach from the stream; pending reads fail."""
        if self._stream is None:
            return
        stream = self._stream
        error = StreamLockedError("Reader was released")
        while stream._read_requests:
            request = stream._read_requests.popleft()
            if not request.done():
                request.set_exception(error)
        stream._reader = None
        self._stream = None

    def _require_stream(self) -> ReadableStream:
        if self._stream is None:
            raise StreamLockedError("Reader was released")
        return self._stream


class _IterableSource:
    """Underlying source pulling from a sync or async iterator."""

    def __init__(self, iterable: Any):
        if hasattr(iterable, "__aiter__"):
            self._iterator = iterable.__aiter__()
            self._is_async = True
        else:
            self._iterator = iter(iterable)
            self._is_async = False

    async def pull(self, controller: ReadableStreamDefaultController) -> None:
        try:
            if self._is_async:
                chunk = await self._iterator.__anext__()
            else:
                chunk = next(self._iterator)
        except (StopIteration, StopAsyncIteration):
            controller.close()
            return
        controller.enqueue(chunk)

    async def cancel(self, reason: Any) -> None:
        close = getattr(self._iterator, "aclose" if self._is_async else "close", None)
        await maybe_await(close)


async def _iterate(reader: ReadableStreamDefaultReader, prevent_cancel: bool) -> AsyncIterator[Any]:
    finished = False
    try:
        while True:
            result = await reader.read()
            if result.done:
                finished = True
                return
            yield result.value
    except Exception:
        finished = True
        raise
    finally:
        if not finished and not prevent_cancel:
            await settle(reader.cancel())
        reader.release_lock()


async def _pipe_loop(
    reader: ReadableStreamDefaultReader,
    writer: Any,
    prevent_close: bool,
    prevent_abort: bool,
    prevent_cancel: bool
) -> None:
    try:
        while True:
            try:
                await writer.ready
            except Exception as e:
                logger.debug(f"Pipe destination errored: {e!r}")
                if not prevent_cancel:
                    await settle(reader.cancel(e))
                raise

            try:
                result = await reader.read()
            except Exception as e:
                logger.debug(f"Pipe source errored: {e!r}")
                if not prevent_abort:
                    await settle(writer.abort(e))
                raise

            if result.done:
                if not prevent_close:
                    await writer.close()
                return

            try:
                await writer.write(result.value)
            except Exception as e:
                logger.debug(f"Pipe destination errored: {e!r}")
                if not prevent_cancel:
                    await settle(reader.cancel(e))
                raise
    finally:
        reader.release_lock()
        writer.release_lock()
