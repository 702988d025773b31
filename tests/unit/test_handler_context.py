"""Unit tests for the handler execution context."""

import pytest

from gitboard_bridge.protocol import HandlerContext, InMemoryMemento, InMemorySecretStorage
from gitboard_bridge.protocol.context import Memento, SecretStorage


class TestInMemoryMemento:
    """Test InMemoryMemento."""

    def test_initial_values(self):
        memento = InMemoryMemento({"lastBranch": "main"})

        assert memento.get("lastBranch") == "main"
        assert memento.keys() == ["lastBranch"]

    def test_default(self):
        assert InMemoryMemento().get("missing", "fallback") == "fallback"

    @pytest.mark.anyio
    async def test_update(self):
        memento = InMemoryMemento()

        await memento.update("repo", {"remote": "origin"})

        assert memento.get("repo") == {"remote": "origin"}

    @pytest.mark.anyio
    async def test_update_none_removes(self):
        memento = InMemoryMemento({"k": 1})

        await memento.update("k", None)

        assert memento.keys() == []

    @pytest.mark.anyio
    async def test_values_are_copied(self):
        memento = InMemoryMemento()
        value = {"files": ["a"]}
        await memento.update("staged", value)

        value["files"].append("b")
        memento.get("staged")["files"].append("c")

        assert memento.get("staged") == {"files": ["a"]}

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryMemento(), Memento)


class TestInMemorySecretStorage:
    """Test InMemorySecretStorage."""

    @pytest.mark.anyio
    async def test_store_get_delete(self):
        secrets = InMemorySecretStorage()

        await secrets.store("azure.pat", "token")
        assert await secrets.get("azure.pat") == "token"

        await secrets.delete("azure.pat")
        assert await secrets.get("azure.pat") is None

    @pytest.mark.anyio
    async def test_delete_missing(self):
        await InMemorySecretStorage().delete("nothing")

    def test_satisfies_protocol(self):
        assert isinstance(InMemorySecretStorage(), SecretStorage)


class TestHandlerContext:
    """Test HandlerContext defaults."""

    def test_defaults(self):
        context = HandlerContext()

        assert isinstance(context.global_state, InMemoryMemento)
        assert isinstance(context.workspace_state, InMemoryMemento)
        assert isinstance(context.secrets, InMemorySecretStorage)
        assert context.workspace_root is None

    def test_states_are_independent(self):
        first = HandlerContext()
        second = HandlerContext()

        assert first.workspace_state is not second.workspace_state
        assert first.global_state is not first.workspace_state
