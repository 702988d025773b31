"""Message protocol - host-side dispatch over an untyped channel.

Binds to a channel, routes inbound requests to registered handlers and sends
exactly one response or error envelope back for each of them.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

from .context import HandlerContext
from .errors import ErrorCode, InvalidEnvelopeError, ProtocolError
from .messages import Envelope, decode_envelope, type_value
from .registry import HandlerEntry, HandlerKind, HandlerRegistry, RawHandler, SimpleHandler
from .requests import as_typed_request
from .responses import create_convention_response, create_error_response

if TYPE_CHECKING:
    from ..transport.base import Channel, Disposable

logger = logging.getLogger(__name__)


class MessageProtocol:
    """Routes view requests to handlers and sends their results back.

    Usage:
        protocol = MessageProtocol(HandlerContext(workspace_root="/repo"))

        async def get_log(request, context):
            commits = await load_commits(context.workspace_root, request.payload.limit)
            return create_response(RequestType.GIT_GET_LOG, commits)

        protocol.on(RequestType.GIT_GET_LOG, get_log)
        protocol.attach(channel)

    Dispatch:
        Every inbound message gets exactly one outbound envelope: the handler's
        response, or an error envelope (HANDLER_NOT_FOUND, INVALID_PAYLOAD,
        HANDLER_ERROR or a ProtocolError's own code). Handler failures never
        propagate out of `handle_message()`.

    Concurrency:
        Messages arriving through the channel are each dispatched in their own
        task, so a slow handler never delays other responses. Responses are
        correlated by type only; their order is not guaranteed.
    """

    def __init__(self, context: HandlerContext | None = None) -> None:
        """Initialize the protocol.

        Args:
            context: Capabilities forwarded to raw handlers
        """
        self._context = context if context is not None else HandlerContext()
        self._registry = HandlerRegistry()
        self._channel: Channel | None = None
        self._intake: Disposable | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def context(self) -> HandlerContext:
        return self._context

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    # =========================================================================
    # Transport binding
    # =========================================================================

    @property
    def is_attached(self) -> bool:
        return self._channel is not None

    def attach(self, channel: Channel) -> None:
        """Bind to a channel, replacing any previously attached one.

        Registers the single intake listener on the channel.
        """
        self.detach()
        self._channel = channel
        self._intake = channel.on_did_receive_message(self._on_message)
        logger.debug(f"Attached channel {type(channel).__name__}")

    def detach(self) -> None:
        """Unbind from the current channel. Later sends are dropped."""
        if self._intake is not None:
            self._intake.dispose()
            self._intake = None
        if self._channel is not None:
            logger.debug(f"Detached channel {type(self._channel).__name__}")
        self._channel = None

    def send(self, message: Envelope | Mapping[str, Any]) -> None:
        """Send an envelope to the view.

        With no channel attached the message is dropped: the view may not exist
        yet, or may already be gone.
        """
        envelope = message if isinstance(message, Envelope) else decode_envelope(message)
        self._post(envelope.type, envelope.to_wire())

    def _post(self, message_type: str, wire: dict[str, Any]) -> None:
        if self._channel is None:
            logger.warning(f"No channel attached, dropping {message_type}")
            return
        try:
            self._channel.post_message(wire)
        except Exception:
            logger.exception(f"Failed to post {message_type}")

    def send_event(self, event: Envelope | Mapping[str, Any]) -> None:
        """Send an unsolicited event (e.g. `git/changed`)."""
        self.send(event)

    def send_error(
        self,
        code: ErrorCode | str,
        message: str,
        request_type: str | Enum | None = None,
    ) -> None:
        """Send an error envelope, optionally tied to a request type."""
        self.send(create_error_response(code, message, request_type))

    # =========================================================================
    # Handler registration
    # =========================================================================

    def on(self, message_type: str | Enum, handler: RawHandler[Any]) -> None:
        """Register a raw handler.

        The handler receives the request envelope and the execution context
        and must return a complete response envelope (or its dict form).
        """
        self._registry.register(message_type, HandlerKind.RAW, handler)

    def off(self, message_type: str | Enum) -> None:
        """Remove the handler for a type, whichever style registered it."""
        if self._registry.unregister(message_type) is None:
            logger.debug(f"off() for unregistered type {type_value(message_type)}")

    def register_handler(self, message_type: str | Enum, handler: SimpleHandler[Any]) -> None:
        """Register a simple handler.

        The handler receives only the request envelope; its return value becomes
        the payload of a `<type>.response` envelope.

        Return values are serialized with pydantic (models, dataclasses,
        datetimes and sets are converted). A `None` result is sent without a
        `payload` key: `{"type": "<type>.response"}`.
        """
        self._registry.register(message_type, HandlerKind.SIMPLE, handler)

    def has_handler(self, message_type: str | Enum) -> bool:
        return message_type in self._registry

    def registered_types(self) -> list[str]:
        return self._registry.types()

    # =========================================================================
    # Dispatch
    # =========================================================================

    def _on_message(self, message: Any) -> None:
        """Intake listener registered on the attached channel."""
        self.dispatch(message)

    def dispatch(self, message: Any) -> asyncio.Task[None]:
        """Schedule a message for handling without waiting for it.

        Must be called from a running event loop.
        """
        task = asyncio.get_running_loop().create_task(self.handle_message(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        """Number of dispatched messages still being handled."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until every dispatched message has been handled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def handle_message(self, message: Any) -> None:
        """Handle one inbound message and send its response or error."""
        try:
            envelope = decode_envelope(message)
        except InvalidEnvelopeError as e:
            logger.warning(f"Rejected inbound message: {e}")
            self.send_error(ErrorCode.INVALID_PAYLOAD, str(e), e.request_type)
            return

        entry = self._registry.get(envelope.type)
        if entry is None:
            logger.warning(f"No handler for message type: {envelope.type}")
            self.send_error(
                ErrorCode.HANDLER_NOT_FOUND,
                f"No handler for {envelope.type}",
                envelope.type,
            )
            return

        try:
            request = as_typed_request(envelope)
        except InvalidEnvelopeError as e:
            logger.warning(f"Rejected {envelope.type}: {e}")
            self.send_error(ErrorCode.INVALID_PAYLOAD, str(e), envelope.type)
            return

        logger.debug(f"Handling {envelope.type} ({entry.kind.value})")
        try:
            response = await self._invoke(entry, request)
            # Unencodable results become HANDLER_ERROR
            wire = response.to_wire()
        except ProtocolError as e:
            logger.warning(f"{envelope.type} failed with {e.code}: {e.message}")
            self.send_error(e.code, e.message, envelope.type)
            return
        except Exception as e:
            logger.exception(f"Error handling {envelope.type}: {e}")
            self.send_error(ErrorCode.HANDLER_ERROR, str(e) or "Unknown error", envelope.type)
            return

        self._post(response.type, wire)

    async def _invoke(self, entry: HandlerEntry, request: Envelope) -> Envelope:
        if entry.kind is HandlerKind.SIMPLE:
            payload = entry.func(request)
            if inspect.isawaitable(payload):
                payload = await payload
            return create_convention_response(entry.message_type, payload)

        result = entry.func(request, self._context)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, Envelope):
            return result
        if isinstance(result, Mapping):
            return decode_envelope(result)
        raise TypeError(
            f"Handler for {entry.message_type} returned {type(result).__name__}, "
            "expected a response envelope"
        )
