"""
Byte length of text and binary values.

Provides byte_length(), a total function over any input: UTF-8 size for
text, raw extent for buffers, 0 for everything else.
"""

import logging
from multiprocessing.shared_memory import SharedMemory
from typing import Any


logger = logging.getLogger(__name__)


def byte_length(value: Any) -> int:
    """
    Get the number of bytes a value occupies.

    Args:
        value: Text, bytes-like object, shared memory block, or anything else

    Returns:
        UTF-8 encoded length for str, buffer extent for bytes-like objects
        and shared memory, 0 for unsupported input
    """
    if isinstance(value, str):
        return _utf8_length(value)

    if isinstance(value, SharedMemory):
        value = value.buf
        if value is None:
            # Closed block
            return 0

    try:
        with memoryview(value) as view:
            return view.nbytes
    except (TypeError, ValueError):
        # Not a buffer, or a released one
        logger.debug(f"No byte length for {type(value).__name__}")
        return 0


def _utf8_length(text: str) -> int:
    try:
        return len(text.encode("utf-8"))
    except UnicodeEncodeError:
        # Surrogates: pairs combine into one code point, lone ones become U+FFFD
        repaired = text.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "replace")
        return len(repaired.encode("utf-8"))
