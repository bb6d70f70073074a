"""
Tests for the error model and stream options.
"""

import pytest
from pydantic import ValidationError

from byte_counter_stream import (
    ErrorCode, StreamError, StreamClosedError, StreamLockedError, StreamAbortedError,
    StreamDestroyedError, InvalidChunkError, PipelineError,
    PushStreamOptions, PullStreamOptions
)
from byte_counter_stream.errors import as_exception


class TestErrors:
    """Test stream errors."""

    @pytest.mark.parametrize("error_class, code", [
        (StreamClosedError, ErrorCode.STREAM_CLOSED),
        (StreamLockedError, ErrorCode.STREAM_LOCKED),
        (StreamAbortedError, ErrorCode.STREAM_ABORTED),
        (StreamDestroyedError, ErrorCode.STREAM_DESTROYED),
        (InvalidChunkError, ErrorCode.INVALID_CHUNK),
        (PipelineError, ErrorCode.PIPELINE_FAILED),
    ])
    def test_codes(self, error_class, code):
        error = error_class()
        assert isinstance(error, StreamError)
        assert error.code == code
        assert error.message

    def test_str(self):
        error = StreamError("Something broke")
        assert str(error) == "[UNKNOWN] Something broke"

    def test_str_with_details_and_cause(self):
        cause = ValueError("bad value")
        error = PipelineError("Stage failed", details={"stage": 1}, cause=cause)

        text = str(error)
        assert text.startswith("[PIPELINE_FAILED] Stage failed")
        assert "Details: {'stage': 1}" in text
        assert "Caused by: bad value" in text

    def test_to_dict(self):
        error = StreamClosedError("write() after end", details={"bytes": 3})
        assert error.to_dict() == {
            "code": 100,
            "message": "write() after end",
            "details": {"bytes": 3},
        }

    def test_to_dict_minimal(self):
        assert StreamLockedError().to_dict() == {
            "code": 101,
            "message": "Stream is locked",
        }

    def test_invalid_chunk_is_type_error(self):
        assert isinstance(InvalidChunkError(), TypeError)


class TestAsException:
    """Test conversion of abort and cancel reasons."""

    def test_exception_passes_through(self):
        error = RuntimeError("boom")
        assert as_exception(error) is error

    def test_plain_reason_wrapped(self):
        error = as_exception("user cancelled")
        assert isinstance(error, StreamAbortedError)
        assert error.details == {"reason": "user cancelled"}

    def test_no_reason(self):
        error = as_exception(None)
        assert isinstance(error, StreamAbortedError)
        assert error.details == {}


class TestPushStreamOptions:
    """Test push-mode options."""

    def test_defaults(self):
        options = PushStreamOptions()
        assert options.high_water_mark == 16384
        assert options.default_encoding == "utf-8"
        assert options.chunk_size == 65536

    def test_encoding_normalised(self):
        assert PushStreamOptions(default_encoding="UTF8").default_encoding == "utf-8"
        assert PushStreamOptions(default_encoding="latin1").default_encoding == "iso8859-1"

    def test_unknown_encoding(self):
        with pytest.raises(ValidationError):
            PushStreamOptions(default_encoding="no-such-codec")

    def test_negative_high_water_mark(self):
        with pytest.raises(ValidationError):
            PushStreamOptions(high_water_mark=-1)

    def test_zero_chunk_size(self):
        with pytest.raises(ValidationError):
            PushStreamOptions(chunk_size=0)

    def test_frozen(self):
        options = PushStreamOptions()
        with pytest.raises(ValidationError):
            options.high_water_mark = 1

    def test_to_dict(self):
        assert PushStreamOptions(high_water_mark=4).to_dict() == {
            "highWaterMark": 4,
            "defaultEncoding": "utf-8",
            "chunkSize": 65536,
        }


class TestPullStreamOptions:
    """Test pull-mode options."""

    def test_defaults(self):
        options = PullStreamOptions()
        assert options.writable_high_water_mark == 1
        assert options.readable_high_water_mark == 0

    def test_negative(self):
        with pytest.raises(ValidationError):
            PullStreamOptions(readable_high_water_mark=-1)

    def test_to_dict(self):
        assert PullStreamOptions(readable_high_water_mark=2).to_dict() == {
            "writableHighWaterMark": 1,
            "readableHighWaterMark": 2,
        }
