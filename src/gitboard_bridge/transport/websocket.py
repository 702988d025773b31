"""WebSocket channel.

Full-duplex channel over a Starlette WebSocket: one JSON envelope per text
frame in each direction.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from ..protocol.errors import ErrorCode
from ..protocol.responses import create_error_response
from .base import ListenerChannel

logger = logging.getLogger(__name__)

_CLOSE = object()


class WebSocketChannel(ListenerChannel):
    """Server-side channel for a single accepted WebSocket connection.

    `post_message()` is synchronous, so outbound messages go through a queue
    drained by a sender task that `run()` starts.
    """

    def __init__(self, websocket: WebSocket):
        super().__init__()
        self._websocket = websocket
        self._outbox: asyncio.Queue[Any] = asyncio.Queue()
        self._connected = False

    def post_message(self, message: dict[str, Any]) -> None:
        if not self._connected:
            logger.debug("WebSocket not connected, dropping message")
            return
        self._outbox.put_nowait(message)

    async def run(self) -> None:
        """Receive frames until the client disconnects.

        The WebSocket must already be accepted.
        """
        self._connected = True
        sender = asyncio.create_task(self._send_loop())
        try:
            while True:
                data = await self._websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError as e:
                    logger.warning(f"Invalid WebSocket message: {e}")
                    error = create_error_response(ErrorCode.INVALID_PAYLOAD, f"Invalid JSON: {e}")
                    self.post_message(error.to_wire())
                    continue
                self._deliver(message)
        except WebSocketDisconnect:
            logger.info("WebSocket disconnected")
        finally:
            self._connected = False
            self._outbox.put_nowait(_CLOSE)
            try:
                await asyncio.wait_for(sender, timeout=1.0)
            except TimeoutError:
                sender.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await sender

    async def _send_loop(self) -> None:
        while True:
            message = await self._outbox.get()
            try:
                if message is _CLOSE:
                    return
                if self._websocket.client_state == WebSocketState.CONNECTED:
                    await self._websocket.send_text(json.dumps(message, ensure_ascii=False))
            except Exception as e:
                logger.warning(f"WebSocket send failed: {e}")
            finally:
                self._outbox.task_done()
