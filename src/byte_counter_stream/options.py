"""
Stream options.

Typed, validated construction options for the push and pull counters.
"""

from __future__ import annotations
import codecs
from typing import Any, Dict
from pydantic import BaseModel, Field, field_validator


class PushStreamOptions(BaseModel):
    """
    Options for push-mode streams.

    high_water_mark is advisory: write() returns False once the readable
    buffer holds that many bytes, it never drops or blocks.
    """
    high_water_mark: int = Field(default=16384, ge=0, description="Readable buffer size in bytes before write() signals backpressure")
    default_encoding: str = Field(default="utf-8", description="Encoding applied to str chunks")
    chunk_size: int = Field(default=65536, ge=1, description="Bytes per read() from file-like pipeline sources")

    model_config = {"frozen": True}

    @field_validator("default_encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        try:
            return codecs.lookup(v).name
        except LookupError as e:
            raise ValueError(f"Unknown encoding: {v}") from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "highWaterMark": self.high_water_mark,
            "defaultEncoding": self.default_encoding,
            "chunkSize": self.chunk_size,
        }


class PullStreamOptions(BaseModel):
    """
    Options for pull-mode transform streams.

    High-water marks count chunks. The defaults (1 on the writable side, 0 on
    the readable side) make a write wait until the consumer asks for data.
    """
    writable_high_water_mark: int = Field(default=1, ge=0, description="Queued writes before writer.ready suspends")
    readable_high_water_mark: int = Field(default=0, ge=0, description="Chunks buffered ahead of the consumer")

    model_config = {"frozen": True}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "writableHighWaterMark": self.writable_high_water_mark,
            "readableHighWaterMark": self.readable_high_water_mark,
        }
