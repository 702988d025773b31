"""Channel abstraction.

A channel is the single bidirectional pipe between host and view. It carries
plain JSON-like dicts and knows nothing about envelope types.

Implementations:
- LoopbackChannel: in-process pair (embedding, tests)
- StdioChannel: newline-delimited JSON over stdin/stdout
- WebSocketChannel: text frames over a Starlette WebSocket
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

MessageListener = Callable[[Any], Any]


class Disposable:
    """Handle that undoes a registration when disposed.

    Disposing more than once is a no-op.
    """

    def __init__(self, on_dispose: Callable[[], None]):
        self._on_dispose: Callable[[], None] | None = on_dispose

    @property
    def disposed(self) -> bool:
        return self._on_dispose is None

    def dispose(self) -> None:
        callback, self._on_dispose = self._on_dispose, None
        if callback is not None:
            callback()


class Channel(ABC):
    """Abstract bidirectional message channel."""

    @abstractmethod
    def post_message(self, message: dict[str, Any]) -> None:
        """Send a message to the other side.

        Must not block; implementations that need async I/O queue internally.
        """
        ...

    @abstractmethod
    def on_did_receive_message(self, listener: MessageListener) -> Disposable:
        """Register a listener for messages from the other side."""
        ...


class ListenerChannel(Channel):
    """Channel base that manages receive listeners.

    Subclasses call `_deliver()` for every inbound message.
    """

    def __init__(self) -> None:
        self._listeners: list[MessageListener] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def on_did_receive_message(self, listener: MessageListener) -> Disposable:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Disposable(remove)

    def _deliver(self, message: Any) -> None:
        # Copy so listeners may dispose themselves while being notified
        for listener in list(self._listeners):
            try:
                listener(message)
            except Exception:
                logger.exception(f"Error in message listener on {type(self).__name__}")
