"""
Pull-mode writable stream.

Writes are queued and handed to the underlying sink one at a time, in order.
writer.ready suspends producers while the queue is at its high-water mark.
"""

import asyncio
import logging
from collections import deque
from types import SimpleNamespace
from typing import Any, Callable, Deque, Optional, Tuple

from ..errors import StreamClosedError, StreamLockedError, as_exception
from .tasks import maybe_await, spawn


logger = logging.getLogger(__name__)

_CLOSE = object()


class WritableStreamDefaultController:
    """Handle given to the underlying sink."""

    def __init__(self, stream: "WritableStream"):
        self._stream = stream

    def error(self, error: Any = None) -> None:
        """Error the stream; queued writes fail."""
        self._stream._error(as_exception(error))


class WritableStream:
    """
    Writable side of a pull-mode pipeline.

    The underlying sink is any object (or keyword callables) with optional
    start(controller), write(chunk), close() and abort(reason). write, close
    and abort may be coroutines; start runs synchronously in the constructor.
    """

    def __init__(
        self,
        sink: Any = None,
        *,
        start: Optional[Callable[..., Any]] = None,
        write: Optional[Callable[..., Any]] = None,
        close: Optional[Callable[..., Any]] = None,
        abort: Optional[Callable[..., Any]] = None,
        high_water_mark: int = 1
    ):
        """
        Initialize writable stream.

        Args:
            sink: Underlying sink object
            start: Sink start callback (when no sink object is given)
            write: Sink write callback (when no sink object is given)
            close: Sink close callback (when no sink object is given)
            abort: Sink abort callback (when no sink object is given)
            high_water_mark: Queued writes before backpressure applies
        """
        if sink is None:
            sink = SimpleNamespace(start=start, write=write, close=close, abort=abort)
        if high_water_mark < 0:
            raise ValueError("high_water_mark must be >= 0")

        self._sink = sink
        self._hwm = high_water_mark
        self._queue: Deque[Tuple[Any, asyncio.Future]] = deque()
        self._queued_writes = 0
        self._state = "writable"
        self._stored_error: Optional[BaseException] = None
        self._close_requested = False
        self._processing = False
        self._writer: Optional["WritableStreamDefaultWriter"] = None
        self._backpressure = False
        self._ready_waiter: Optional[asyncio.Future] = None
        self._controller = WritableStreamDefaultController(self)

        start_fn = getattr(sink, "start", None)
        if start_fn is not None:
            start_fn(self._controller)
        self._update_backpressure()

    @property
    def locked(self) -> bool:
        """Whether a writer is attached."""
        return self._writer is not None

    def get_writer(self) -> "WritableStreamDefaultWriter":
        """
        Acquire an exclusive writer.

        Raises:
            StreamLockedError: If the stream already has a writer
        """
        if self.locked:
            raise StreamLockedError("WritableStream already has a writer")
        self._writer = WritableStreamDefaultWriter(self)
        return self._writer

    async def close(self) -> None:
        """Close the stream once queued writes complete."""
        if self.locked:
            raise StreamLockedError("Cannot close a locked WritableStream")
        await self._close()

    async def abort(self, reason: Any = None) -> None:
        """Abort the stream, failing queued writes."""
        if self.locked:
            raise StreamLockedError("Cannot abort a locked WritableStream")
        await self._abort(reason)

    # -------------------------------------------------------------------
    # Internal state machine

    def _desired_size(self) -> Optional[int]:
        if self._state == "errored":
            return None
        if self._state == "closed":
            return 0
        return self._hwm - self._queued_writes

    def _write(self, chunk: Any) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        if self._state == "errored":
            future.set_exception(self._stored_error)
            return future
        if self._close_requested or self._state == "closed":
            future.set_exception(StreamClosedError("Cannot write to a closing WritableStream"))
            return future

        self._queue.append((chunk, future))
        self._queued_writes += 1
        self._update_backpressure()
        self._advance()
        return future

    def _close(self) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        if self._state == "errored":
            future.set_exception(self._stored_error)
            return future
        if self._close_requested or self._state == "closed":
            future.set_exception(StreamClosedError("WritableStream is already closing"))
            return future

        self._close_requested = True
        self._queue.append((_CLOSE, future))
        self._set_backpressure(False)
        self._advance()
        return future

    async def _abort(self, reason: Any) -> None:
        if self._state != "writable":
            return
        error = as_exception(reason)
        logger.debug(f"WritableStream aborted: {reason!r}")
        self._error(error)
        await maybe_await(getattr(self._sink, "abort", None), reason)

    def _error(self, error: BaseException) -> None:
        if self._state != "writable":
            return
        self._state = "errored"
        self._stored_error = error
        logger.debug(f"WritableStream errored: {error!r}")
        while self._queue:
            _, future = self._queue.popleft()
            if not future.done():
                future.set_exception(error)
        self._queued_writes = 0
        if self._ready_waiter is not None and not self._ready_waiter.done():
            self._ready_waiter.set_exception(error)
        self._ready_waiter = None

    def _advance(self) -> None:
        if self._processing or not self._queue or self._state != "writable":
            return
        self._processing = True
        spawn(self._process(), name="writable_sink")

    async def _process(self) -> None:
        try:
            while self._queue and self._state == "writable":
                item, future = self._queue[0]
                try:
                    if item is _CLOSE:
                        await maybe_await(getattr(self._sink, "close", None))
                    else:
                        await maybe_await(getattr(self._sink, "write", None), item)
                except Exception as e:
                    if not future.done():
                        future.set_exception(e)
                    self._error(e)
                    return

                if self._state != "writable":
                    # Errored or aborted while the sink was busy
                    return

                self._queue.popleft()
                if item is _CLOSE:
                    self._state = "closed"
                    logger.debug("WritableStream closed")
                else:
                    self._queued_writes -= 1
                    self._update_backpressure()
                if not future.done():
                    future.set_result(None)
        finally:
            self._processing = False

    def _update_backpressure(self) -> None:
        if self._state == "writable" and not self._close_requested:
            self._set_backpressure(self._desired_size() <= 0)

    def _set_backpressure(self, value: bool) -> None:
        if value == self._backpressure:
            return
        self._backpressure = value
        if not value and self._ready_waiter is not None:
            if not self._ready_waiter.done():
                self._ready_waiter.set_result(None)
            self._ready_waiter = None

    def _ready(self) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        if self._state == "errored":
            future = loop.create_future()
            future.set_exception(self._stored_error)
            return future
        if not self._backpressure:
            future = loop.create_future()
            future.set_result(None)
            return future
        if self._ready_waiter is None:
            self._ready_waiter = loop.create_future()
        return self._ready_waiter


class WritableStreamDefaultWriter:
    """Exclusive writer for a WritableStream."""

    def __init__(self, stream: WritableStream):
        self._stream: Optional[WritableStream] = stream

    @property
    def desired_size(self) -> Optional[int]:
        """Room left below the high-water mark (None once errored)."""
        return self._require_stream()._desired_size()

    @property
    def ready(self) -> asyncio.Future:
        """Future resolved when the stream has room for another write."""
        return self._require_stream()._ready()

    def write(self, chunk: Any) -> asyncio.Future:
        """
        Queue a chunk.

        Returns:
            Future resolved once the sink has accepted the chunk
        """
        return self._require_stream()._write(chunk)

    def close(self) -> asyncio.Future:
        """
        Close the stream after queued writes.

        Returns:
            Future resolved once the sink has closed
        """
        return self._require_stream()._close()

    async def abort(self, reason: Any = None) -> None:
        """Abort the stream."""
        await self._require_stream()._abort(reason)

    def release_lock(self) -> None:
        """Detach from the stream."""
        if self._stream is None:
            return
        self._stream._writer = None
        self._stream = None

    def _require_stream(self) -> WritableStream:
        if self._stream is None:
            raise StreamLockedError("Writer was released")
        return self._stream
