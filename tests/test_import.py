"""Test basic imports from the package."""

import pytest


def test_main_import():
    """Test that the main package imports successfully."""
    import byte_counter_stream
    assert byte_counter_stream.__version__ == "1.0.0"
    assert hasattr(byte_counter_stream, 'byte_length')
    assert hasattr(byte_counter_stream, 'PushByteCounter')
    assert hasattr(byte_counter_stream, 'PullByteCounter')


def test_default_counter_is_pull_mode():
    """Test that ByteCounterStream is the pull-mode counter."""
    from byte_counter_stream import ByteCounterStream, PullByteCounter
    assert ByteCounterStream is PullByteCounter


def test_push_import():
    """Test push module imports."""
    import byte_counter_stream.push as push
    assert hasattr(push, 'pipeline')
    assert hasattr(push, 'Transform')


def test_pull_import():
    """Test pull module imports."""
    import byte_counter_stream.pull as pull
    assert hasattr(pull, 'ReadableStream')
    assert hasattr(pull, 'TransformStream')


@pytest.mark.parametrize("name", __import__("byte_counter_stream").__all__)
def test_all_exports(name):
    """Test that every name in __all__ exists."""
    import byte_counter_stream
    assert getattr(byte_counter_stream, name) is not None
