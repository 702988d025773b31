"""View-side client.

The counterpart of `MessageProtocol` for code living on the view side of a
channel: post requests, await their responses, listen for events.

Responses carry no request id, so the client correlates by type: a pending
request resolves with the first envelope of its expected response type, or
fails with the first error whose `requestType` names it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .protocol.errors import InvalidEnvelopeError, ProtocolContractError, RemoteError
from .protocol.messages import Envelope, ErrorResponse, decode_envelope, type_value
from .protocol.responses import RESPONSE_TYPE_MAP, convention_response_type
from .transport.base import Channel, Disposable

logger = logging.getLogger(__name__)

ANY_TYPE = "*"

EnvelopeListener = Callable[[Envelope], Any]


@dataclass
class _PendingRequest:
    request_type: str
    response_type: str
    future: asyncio.Future[Envelope]


def expected_response_type(request_type: str | Enum) -> str:
    """Declared response type if the request is mapped, else the convention."""
    key = type_value(request_type)
    return RESPONSE_TYPE_MAP.get(key) or convention_response_type(key)


class WebviewClient:
    """Request/response helper for the view end of a channel.

    Usage:
        host_end, view_end = create_channel_pair()
        protocol.attach(host_end)
        client = WebviewClient(view_end)

        log = await client.request({"type": "git/getLog", "payload": {"limit": 20}})
        client.on("git/changed", lambda event: refresh())
    """

    def __init__(self, channel: Channel, timeout: float = 30.0):
        """Initialize the client.

        Args:
            channel: View end of the channel
            timeout: Default seconds to wait for a response
        """
        self._channel = channel
        self._timeout = timeout
        self._listeners: dict[str, list[EnvelopeListener]] = {}
        self._pending: dict[str, _PendingRequest] = {}
        self._subscription: Disposable | None = channel.on_did_receive_message(self._on_message)

    @property
    def pending_types(self) -> list[str]:
        return sorted(self._pending)

    def on(self, message_type: str | Enum, listener: EnvelopeListener) -> Disposable:
        """Listen for envelopes of one type ("*" for every envelope)."""
        key = type_value(message_type)
        self._listeners.setdefault(key, []).append(listener)

        def remove() -> None:
            listeners = self._listeners.get(key, [])
            if listener in listeners:
                listeners.remove(listener)

        return Disposable(remove)

    def post(self, message: Envelope | Mapping[str, Any]) -> None:
        """Post an envelope without waiting for anything."""
        envelope = message if isinstance(message, Envelope) else decode_envelope(message)
        self._channel.post_message(envelope.to_wire())

    async def request(
        self,
        message: Envelope | Mapping[str, Any],
        response_type: str | Enum | None = None,
        timeout: float | None = None,
    ) -> Envelope:
        """Post a request and wait for its response.

        Args:
            message: Request envelope
            response_type: Expected response type (default: declared mapping,
                falling back to the ".response" convention)
            timeout: Seconds to wait (default: client timeout)

        Returns:
            The response envelope

        Raises:
            RemoteError: The host answered with an error for this request type
            TimeoutError: No response arrived in time
            ProtocolContractError: A request of the same type is already pending
        """
        envelope = message if isinstance(message, Envelope) else decode_envelope(message)
        if envelope.type in self._pending:
            raise ProtocolContractError(f"A {envelope.type} request is already pending")

        expected = (
            type_value(response_type)
            if response_type is not None
            else expected_response_type(envelope.type)
        )
        future: asyncio.Future[Envelope] = asyncio.get_running_loop().create_future()
        self._pending[envelope.type] = _PendingRequest(envelope.type, expected, future)
        try:
            self._channel.post_message(envelope.to_wire())
            return await asyncio.wait_for(future, timeout if timeout is not None else self._timeout)
        finally:
            self._pending.pop(envelope.type, None)

    def close(self) -> None:
        """Stop listening and fail every pending request."""
        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None
        for pending in list(self._pending.values()):
            if not pending.future.done():
                pending.future.set_exception(ConnectionError("Client closed"))
        self._pending.clear()

    def _on_message(self, raw: Any) -> None:
        try:
            envelope = decode_envelope(raw)
        except InvalidEnvelopeError as e:
            logger.warning(f"Ignoring malformed message from host: {e}")
            return

        self._resolve(envelope)

        listeners = self._listeners.get(envelope.type, []) + self._listeners.get(ANY_TYPE, [])
        for listener in listeners:
            try:
                listener(envelope)
            except Exception:
                logger.exception(f"Error in listener for {envelope.type}")

    def _resolve(self, envelope: Envelope) -> None:
        if isinstance(envelope, ErrorResponse):
            if envelope.request_type is None:
                return
            pending = self._pending.get(envelope.request_type)
            if pending is not None and not pending.future.done():
                pending.future.set_exception(
                    RemoteError(envelope.code, envelope.message, envelope.request_type)
                )
            return

        for pending in self._pending.values():
            if pending.response_type == envelope.type and not pending.future.done():
                pending.future.set_result(envelope)
                return
