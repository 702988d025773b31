"""Execution context forwarded to raw handlers.

The context bundles privileged capabilities owned by the host: key/value state
with two lifetimes, secret storage and the workspace location. It is built
once at startup and passed to `MessageProtocol`; the protocol never inspects
or mutates it.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Memento(Protocol):
    """Key/value state store."""

    def keys(self) -> Iterable[str]: ...

    def get(self, key: str, default: Any = None) -> Any: ...

    async def update(self, key: str, value: Any) -> None: ...


@runtime_checkable
class SecretStorage(Protocol):
    """Storage for credentials such as personal access tokens."""

    async def get(self, key: str) -> str | None: ...

    async def store(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class InMemoryMemento:
    """Process-lifetime Memento.

    Values are deep-copied on the way in and out so callers cannot mutate
    stored state by accident. Updating a key to None removes it.
    """

    def __init__(self, initial: dict[str, Any] | None = None):
        self._values: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def keys(self) -> list[str]:
        return list(self._values)

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._values:
            return default
        return copy.deepcopy(self._values[key])

    async def update(self, key: str, value: Any) -> None:
        if value is None:
            self._values.pop(key, None)
        else:
            self._values[key] = copy.deepcopy(value)


class InMemorySecretStorage:
    """Process-lifetime SecretStorage."""

    def __init__(self) -> None:
        self._secrets: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._secrets.get(key)

    async def store(self, key: str, value: str) -> None:
        self._secrets[key] = value

    async def delete(self, key: str) -> None:
        self._secrets.pop(key, None)


@dataclass
class HandlerContext:
    """Capabilities available to raw handlers.

    Attributes:
        global_state: State that outlives a single workspace
        workspace_state: State scoped to the current workspace
        secrets: Secret storage
        workspace_root: Absolute path of the open workspace, if any
    """

    global_state: Memento = field(default_factory=InMemoryMemento)
    workspace_state: Memento = field(default_factory=InMemoryMemento)
    secrets: SecretStorage = field(default_factory=InMemorySecretStorage)
    workspace_root: str | None = None
