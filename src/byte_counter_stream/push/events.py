"""
Minimal event emitter for push-mode streams.
"""

from collections import defaultdict
from typing import Any, Callable, Dict, List


Listener = Callable[..., Any]


class EventEmitter:
    """
    Synchronous event emitter.

    Listeners run in registration order on the caller's stack. Exceptions
    raised by a listener propagate to whoever emitted the event.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> "EventEmitter":
        """Register a listener for an event."""
        self._listeners[event].append(listener)
        return self

    def once(self, event: str, listener: Listener) -> "EventEmitter":
        """Register a listener that is removed after its first call."""
        def wrapper(*args):
            self.off(event, wrapper)
            return listener(*args)

        wrapper.listener = listener
        return self.on(event, wrapper)

    def off(self, event: str, listener: Listener) -> "EventEmitter":
        """Remove a listener (registered with on() or once())."""
        listeners = self._listeners.get(event, [])
        for registered in listeners:
            if registered == listener or getattr(registered, "listener", None) == listener:
                listeners.remove(registered)
                break
        return self

    def emit(self, event: str, *args: Any) -> bool:
        """
        Call every listener registered for an event.

        Returns:
            True if the event had listeners
        """
        listeners = list(self._listeners.get(event, []))
        for listener in listeners:
            listener(*args)
        return bool(listeners)

    def listener_count(self, event: str) -> int:
        """Get number of listeners for an event."""
        return len(self._listeners.get(event, []))
