"""
Pull-mode transform stream.

A linked writable/readable pair. Chunks written to `writable` go through
the transformer and are enqueued on `readable`. A write is held back while
the readable side has no demand, so a slow consumer suspends the producer
instead of growing a buffer.
"""

import asyncio
import logging
from types import SimpleNamespace
from typing import Any, Callable, Optional

from ..errors import StreamClosedError, as_exception
from .readable import ReadableStream, ReadableStreamDefaultController
from .tasks import maybe_await
from .writable import WritableStream


logger = logging.getLogger(__name__)


class TransformStreamDefaultController:
    """Handle given to the transformer."""

    def __init__(self, stream: "TransformStream"):
        self._stream = stream

    @property
    def desired_size(self) -> Optional[int]:
        """Room left on the readable side."""
        return self._stream.readable._desired_size()

    def enqueue(self, chunk: Any) -> None:
        """Deliver a chunk to the readable side."""
        self._stream._enqueue(chunk)

    def error(self, error: Any = None) -> None:
        """Error both sides."""
        self._stream._error(as_exception(error))

    def terminate(self) -> None:
        """Close the readable side and fail further writes."""
        self._stream._terminate()


class TransformStream:
    """
    Writable/readable pair connected by a transform step.

    The transformer is any object (or keyword callables) with optional
    start(controller), transform(chunk, controller) and flush(controller).
    Without a transform callback chunks pass through unchanged.
    """

    def __init__(
        self,
        transformer: Any = None,
        *,
        start: Optional[Callable[..., Any]] = None,
        transform: Optional[Callable[..., Any]] = None,
        flush: Optional[Callable[..., Any]] = None,
        writable_high_water_mark: int = 1,
        readable_high_water_mark: int = 0
    ):
        """
        Initialize transform stream.

        Args:
            transformer: Transformer object
            start: Start callback (when no transformer object is given)
            transform: Transform callback (when no transformer object is given)
            flush: Flush callback (when no transformer object is given)
            writable_high_water_mark: Queued writes before writer.ready suspends
            readable_high_water_mark: Chunks buffered ahead of the consumer
        """
        if transformer is None:
            transformer = SimpleNamespace(start=start, transform=transform, flush=flush)

        self._transformer = transformer
        self._controller = TransformStreamDefaultController(self)
        self._backpressure = readable_high_water_mark <= 0
        self._backpressure_changed: Optional[asyncio.Future] = None

        self.writable = WritableStream(
            SimpleNamespace(write=self._sink_write, close=self._sink_close, abort=self._sink_abort),
            high_water_mark=writable_high_water_mark
        )
        self.readable = ReadableStream(
            SimpleNamespace(pull=self._source_pull, cancel=self._source_cancel),
            high_water_mark=readable_high_water_mark
        )

        start_fn = getattr(transformer, "start", None)
        if start_fn is not None:
            start_fn(self._controller)

    # -------------------------------------------------------------------
    # Writable side

    async def _sink_write(self, chunk: Any) -> None:
        if self._backpressure:
            await self._wait_for_demand()
            if self.writable._state == "errored":
                raise self.writable._stored_error

        transform_fn = getattr(self._transformer, "transform", None)
        try:
            if transform_fn is None:
                self._controller.enqueue(chunk)
            else:
                await maybe_await(transform_fn, chunk, self._controller)
        except Exception as e:
            self._error(e)
            raise

    async def _sink_close(self) -> None:
        try:
            await maybe_await(getattr(self._transformer, "flush", None), self._controller)
        except Exception as e:
            self._error(e)
            raise

        readable = self.readable
        if readable._state == "errored":
            raise readable._stored_error
        if not readable._close_requested and readable._state == "readable":
            readable._request_close()
        logger.debug("TransformStream flushed")

    def _sink_abort(self, reason: Any) -> None:
        self.readable._error(as_exception(reason))
        # Release a write parked waiting for demand
        if self._backpressure:
            self._set_backpressure(False)

    # -------------------------------------------------------------------
    # Readable side

    def _source_pull(self, controller: ReadableStreamDefaultController) -> None:
        self._set_backpressure(False)

    def _source_cancel(self, reason: Any) -> None:
        self._error_writable(as_exception(reason))

    # -------------------------------------------------------------------
    # Shared state

    def _enqueue(self, chunk: Any) -> None:
        readable = self.readable
        if readable._state == "errored":
            raise readable._stored_error
        if readable._close_requested or readable._state != "readable":
            raise StreamClosedError("Readable side is closed")

        readable._enqueue(chunk)
        if readable._desired_size() <= 0:
            self._set_backpressure(True)

    def _error(self, error: BaseException) -> None:
        self.readable._error(error)
        self._error_writable(error)

    def _error_writable(self, error: BaseException) -> None:
        self.writable._error(error)
        if self._backpressure:
            self._set_backpressure(False)

    def _terminate(self) -> None:
        readable = self.readable
        if not readable._close_requested and readable._state == "readable":
            readable._request_close()
        self._error_writable(StreamClosedError("TransformStream was terminated"))

    async def _wait_for_demand(self) -> None:
        if self._backpressure_changed is None:
            self._backpressure_changed = asyncio.get_running_loop().create_future()
        await self._backpressure_changed

    def _set_backpressure(self, value: bool) -> None:
        if self._backpressure_changed is not None:
            if not self._backpressure_changed.done():
                self._backpressure_changed.set_result(None)
            self._backpressure_changed = None
        self._backpressure = value
