"""Channel implementations.

The protocol layer only needs a `Channel`: something that can post a dict to
the other side and notify listeners of dicts coming back.

- LoopbackChannel - in-process pair, host and view in one event loop
- StdioChannel - newline-delimited JSON for subprocess integration
- WebSocketChannel - Starlette WebSocket for browser-hosted views
"""

from .base import Channel, Disposable, ListenerChannel, MessageListener
from .loopback import LoopbackChannel, create_channel_pair
from .stdio_adapter import StdioChannel, serve_stdio

# Note: websocket is imported separately so stdio mode does not load starlette
# Use: from gitboard_bridge.transport.websocket import WebSocketChannel

__all__ = [
    # Base abstractions
    "Channel",
    "Disposable",
    "ListenerChannel",
    "MessageListener",
    # Loopback
    "LoopbackChannel",
    "create_channel_pair",
    # stdio
    "StdioChannel",
    "serve_stdio",
]
