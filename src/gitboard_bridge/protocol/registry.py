"""Handler registry.

One mapping from message type to handler entry, shared by both registration
styles:

- raw handlers: `async (request, context) -> response envelope`
- simple handlers: `async (request) -> payload`, wrapped by the dispatcher

Registering a type again replaces the previous entry whatever its style.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from .errors import ProtocolContractError
from .messages import Envelope, type_value

if TYPE_CHECKING:
    from .context import HandlerContext

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT", bound=Envelope)

RawHandler = Callable[[RequestT, "HandlerContext"], Awaitable[Envelope | Mapping[str, Any]]]
SimpleHandler = Callable[[RequestT], Awaitable[Any]]


class HandlerKind(str, Enum):
    """Registration style of a handler entry."""

    RAW = "raw"
    SIMPLE = "simple"


@dataclass(frozen=True)
class HandlerEntry:
    """A registered handler."""

    message_type: str
    kind: HandlerKind
    func: Callable[..., Awaitable[Any]]


class HandlerRegistry:
    """Maps message types to handler entries.

    Not thread-safe; all mutation happens on the event loop thread.
    """

    def __init__(self) -> None:
        self._entries: dict[str, HandlerEntry] = {}

    def register(
        self,
        message_type: str | Enum,
        kind: HandlerKind,
        func: Callable[..., Awaitable[Any]],
    ) -> HandlerEntry:
        """Add or replace the handler for a message type.

        Raises:
            ProtocolContractError: If the type is empty or func is not callable
        """
        key = type_value(message_type)
        if not isinstance(key, str) or not key:
            raise ProtocolContractError("Message type must be a non-empty string")
        if not callable(func):
            raise ProtocolContractError(f"Handler for {key} is not callable")

        previous = self._entries.get(key)
        if previous is not None:
            logger.debug(
                f"Replacing {previous.kind.value} handler for {key} with {kind.value} handler"
            )

        entry = HandlerEntry(message_type=key, kind=kind, func=func)
        self._entries[key] = entry
        return entry

    def unregister(self, message_type: str | Enum) -> HandlerEntry | None:
        """Remove the handler for a type. Returns the removed entry, if any."""
        return self._entries.pop(type_value(message_type), None)

    def get(self, message_type: str | Enum) -> HandlerEntry | None:
        return self._entries.get(type_value(message_type))

    def types(self) -> list[str]:
        """Registered message types, sorted."""
        return sorted(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, message_type: object) -> bool:
        if isinstance(message_type, (str, Enum)):
            return type_value(message_type) in self._entries
        return False

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HandlerEntry]:
        return iter(list(self._entries.values()))
