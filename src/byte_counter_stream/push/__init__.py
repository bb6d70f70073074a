"""
Push-mode streams.

Synchronous, callback-driven streams and the byte counter built on them.
"""

from .events import EventEmitter
from .streams import Stream, Readable, Writable, Duplex, Transform
from .pipeline import pipeline
from .counter import PushByteCounter

__all__ = [
    "EventEmitter",
    "Stream",
    "Readable",
    "Writable",
    "Duplex",
    "Transform",
    "pipeline",
    "PushByteCounter",
]
