"""In-process loopback channel.

Connects a host and a view living in the same event loop. Posting on one end
delivers to the listeners of the other end on the next loop iteration, which
mirrors the asynchronous hand-off of a real message pipe.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any

from .base import ListenerChannel

logger = logging.getLogger(__name__)


class LoopbackChannel(ListenerChannel):
    """One end of a loopback pair.

    Messages are deep-copied so neither side can mutate what the other holds.
    A closed end drops everything posted to or from it.
    """

    def __init__(self, name: str = "loopback") -> None:
        super().__init__()
        self.name = name
        self._peer: LoopbackChannel | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def connect(self, peer: LoopbackChannel) -> None:
        self._peer = peer
        peer._peer = self

    def post_message(self, message: dict[str, Any]) -> None:
        peer = self._peer
        if self._closed or peer is None or peer._closed:
            logger.debug(f"{self.name}: peer unavailable, dropping message")
            return
        data = copy.deepcopy(message)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            peer._deliver(data)
            return
        loop.call_soon(peer._receive, data)

    def _receive(self, message: dict[str, Any]) -> None:
        if not self._closed:
            self._deliver(message)

    def close(self) -> None:
        self._closed = True
        self._listeners.clear()


def create_channel_pair() -> tuple[LoopbackChannel, LoopbackChannel]:
    """Create connected (host, view) channel ends."""
    host = LoopbackChannel("host")
    view = LoopbackChannel("view")
    host.connect(view)
    return host, view
