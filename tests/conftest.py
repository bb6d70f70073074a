"""
Shared fixtures for byte counter tests.
"""

import pytest

from byte_counter_stream import Writable, WritableStream


@pytest.fixture
def encode():
    """UTF-8 encoder for building text chunks."""
    return lambda text: text.encode("utf-8")


@pytest.fixture
def push_sink():
    """Push-mode writable collecting every chunk it receives."""
    received = []
    sink = Writable(write=received.append)
    sink.received = received
    return sink


@pytest.fixture
def pull_sink():
    """Pull-mode writable stream recording chunks, close and abort calls."""
    received = []
    events = []
    sink = WritableStream(
        write=received.append,
        close=lambda: events.append("close"),
        abort=lambda reason: events.append(reason)
    )
    sink.received = received
    sink.events = events
    return sink
