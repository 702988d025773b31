"""Pytest configuration and shared fixtures."""

from typing import Any

import pytest

from gitboard_bridge.protocol import HandlerContext, InMemoryMemento, MessageProtocol
from gitboard_bridge.transport import Disposable, ListenerChannel


@pytest.fixture(scope="module")
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


class RecordingChannel(ListenerChannel):
    """Channel stub that records everything posted to it.

    `receive()` simulates a message arriving from the view.
    """

    def __init__(self) -> None:
        super().__init__()
        self.posted: list[dict[str, Any]] = []
        self.subscriptions: list[Disposable] = []

    def post_message(self, message: dict[str, Any]) -> None:
        self.posted.append(message)

    def on_did_receive_message(self, listener) -> Disposable:
        disposable = super().on_did_receive_message(listener)
        self.subscriptions.append(disposable)
        return disposable

    def receive(self, message: Any) -> None:
        self._deliver(message)


@pytest.fixture
def channel_factory() -> type[RecordingChannel]:
    return RecordingChannel


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def context() -> HandlerContext:
    return HandlerContext(
        global_state=InMemoryMemento(),
        workspace_state=InMemoryMemento({"lastBranch": "main"}),
        workspace_root="/test/workspace",
    )


@pytest.fixture
def protocol(context: HandlerContext, channel: RecordingChannel) -> MessageProtocol:
    """Protocol attached to a recording channel."""
    protocol = MessageProtocol(context)
    protocol.attach(channel)
    return protocol
