"""Built-in handlers every bridge registers.

- bridge.ping: liveness check from the view
- bridge.capabilities: which request types the host currently serves
"""

from __future__ import annotations

from typing import Any

from . import __version__
from .protocol.handler import MessageProtocol
from .protocol.messages import Envelope

PING = "bridge.ping"
CAPABILITIES = "bridge.capabilities"


def register_builtin_handlers(protocol: MessageProtocol) -> None:
    """Register the built-in simple handlers on a protocol."""

    async def ping(_request: Envelope) -> dict[str, Any]:
        return {"pong": True}

    async def capabilities(_request: Envelope) -> dict[str, Any]:
        return {
            "version": __version__,
            "requestTypes": protocol.registered_types(),
        }

    protocol.register_handler(PING, ping)
    protocol.register_handler(CAPABILITIES, capabilities)
