"""
Tests for push-mode stream primitives and pipeline composition.
"""

import pytest

from byte_counter_stream import (
    EventEmitter, Readable, Writable, Transform, PushByteCounter, PushStreamOptions,
    PipelineError, StreamClosedError, pipeline
)


class TestEventEmitter:
    """Test EventEmitter."""

    def test_on_and_emit(self):
        emitter = EventEmitter()
        calls = []
        emitter.on("event", lambda *args: calls.append(args))

        assert emitter.emit("event", 1, 2) is True
        assert calls == [(1, 2)]

    def test_emit_without_listeners(self):
        assert EventEmitter().emit("error", RuntimeError("ignored")) is False

    def test_once(self):
        emitter = EventEmitter()
        calls = []
        emitter.once("event", calls.append)

        emitter.emit("event", "a")
        emitter.emit("event", "b")

        assert calls == ["a"]
        assert emitter.listener_count("event") == 0

    def test_off_removes_once_listener(self):
        emitter = EventEmitter()
        calls = []
        emitter.once("event", calls.append)
        emitter.off("event", calls.append)

        emitter.emit("event", "a")
        assert calls == []

    def test_listener_errors_propagate(self):
        emitter = EventEmitter()

        def fail():
            raise ValueError("listener failed")

        emitter.on("event", fail)
        with pytest.raises(ValueError):
            emitter.emit("event")


class TestReadable:
    """Test Readable."""

    def test_from_iterable(self):
        stream = Readable.from_iterable([b"a", b"b"])
        assert list(stream) == [b"a", b"b"]
        assert stream.readable_ended

    def test_str_items_encoded(self):
        stream = Readable.from_iterable(["hé"])
        assert list(stream) == ["hé".encode("utf-8")]

    def test_pull_is_lazy(self):
        produced = []

        def source():
            for chunk in (b"a", b"b", b"c"):
                produced.append(chunk)
                yield chunk

        stream = Readable.from_iterable(source())
        assert produced == []

        assert stream.read() == b"a"
        assert produced == [b"a"]

    def test_pause_and_resume(self):
        stream = Readable.from_iterable([b"a", b"b", b"c"])
        received = []

        def on_data(chunk):
            received.append(chunk)
            if chunk == b"a":
                stream.pause()

        stream.on("data", on_data)
        assert received == [b"a"]
        assert not stream.flowing

        stream.resume()
        assert received == [b"a", b"b", b"c"]
        assert stream.readable_ended

    def test_push_after_eof(self):
        stream = Readable()
        stream.push(None)
        with pytest.raises(StreamClosedError):
            stream.push(b"late")

    def test_from_file(self):
        import io
        stream = Readable.from_file(io.BytesIO(b"abcdefg"), PushStreamOptions(chunk_size=3))
        assert list(stream) == [b"abc", b"def", b"g"]

    def test_destroy_closes_generator(self):
        closed = []

        def source():
            try:
                yield b"a"
                yield b"b"
            finally:
                closed.append(True)

        stream = Readable.from_iterable(source())
        stream.read()
        stream.destroy()

        assert closed == [True]
        assert stream.read() is None


class TestWritable:
    """Test Writable."""

    def test_write_and_final(self):
        received = []
        finals = []
        stream = Writable(write=received.append, final=lambda: finals.append(True))

        assert stream.write(b"a") is True
        stream.end(b"b")

        assert received == [b"a", b"b"]
        assert finals == [True]
        assert stream.writable_finished

    def test_final_error_destroys(self):
        def final():
            raise OSError("flush failed")

        stream = Writable(final=final)
        with pytest.raises(OSError):
            stream.end()

        assert stream.destroyed
        assert not stream.writable_finished


class TestTransform:
    """Test Transform."""

    def test_transform_and_flush(self):
        stream = Transform(transform=bytes.upper, flush=lambda: b"!")
        stream.write(b"abc")
        stream.end()

        assert list(stream) == [b"ABC", b"!"]

    def test_none_output_drops_chunk(self):
        stream = Transform(transform=lambda chunk: chunk if chunk else None)
        stream.write(b"")
        stream.write(b"x")
        stream.end()

        assert list(stream) == [b"x"]

    def test_pipe_respects_backpressure(self):
        source = Readable.from_iterable([b"aaaa", b"bbbb", b"cccc"])
        stream = Transform(options=PushStreamOptions(high_water_mark=4))

        source.pipe(stream)
        assert stream.readable_length == 4
        assert not source.flowing

        assert list(stream) == [b"aaaa", b"bbbb", b"cccc"]
        assert stream.readable_ended


class TestPipelineComposition:
    """Test pipeline() argument handling."""

    def test_needs_source_and_sink(self):
        with pytest.raises(PipelineError):
            pipeline(PushByteCounter())

    def test_middle_stage_must_be_duplex(self, push_sink):
        with pytest.raises(PipelineError) as exc_info:
            pipeline([b"a"], object(), push_sink)
        assert exc_info.value.details == {"stage": 1}

    def test_single_chunk_source_rejected(self, push_sink):
        with pytest.raises(PipelineError):
            pipeline(b"abc", PushByteCounter(), push_sink)

    def test_unsupported_source(self, push_sink):
        with pytest.raises(PipelineError):
            pipeline(42, PushByteCounter(), push_sink)

    def test_unsupported_sink(self):
        with pytest.raises(PipelineError):
            pipeline([b"a"], PushByteCounter(), 42)

    def test_returns_sink(self, push_sink):
        assert pipeline([b"a"], push_sink) is push_sink
        assert push_sink.received == [b"a"]
