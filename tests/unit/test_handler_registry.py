"""Unit tests for HandlerRegistry."""

import pytest

from gitboard_bridge.protocol import ProtocolContractError, RequestType
from gitboard_bridge.protocol.registry import HandlerKind, HandlerRegistry


async def handler(request):
    return None


async def other_handler(request, context):
    return None


@pytest.fixture
def registry() -> HandlerRegistry:
    return HandlerRegistry()


class TestHandlerRegistry:
    """Test registration bookkeeping."""

    def test_register_and_get(self, registry: HandlerRegistry):
        entry = registry.register("custom.action", HandlerKind.SIMPLE, handler)

        assert registry.get("custom.action") is entry
        assert entry.kind is HandlerKind.SIMPLE
        assert entry.func is handler

    def test_enum_and_string_keys_match(self, registry: HandlerRegistry):
        registry.register(RequestType.GIT_GET_LOG, HandlerKind.RAW, other_handler)

        assert "git/getLog" in registry
        assert RequestType.GIT_GET_LOG in registry
        assert registry.get("git/getLog").message_type == "git/getLog"

    def test_replace_keeps_one_entry(self, registry: HandlerRegistry):
        registry.register("x", HandlerKind.RAW, other_handler)
        registry.register("x", HandlerKind.SIMPLE, handler)

        assert len(registry) == 1
        assert registry.get("x").kind is HandlerKind.SIMPLE

    def test_unregister(self, registry: HandlerRegistry):
        registry.register("x", HandlerKind.SIMPLE, handler)

        removed = registry.unregister("x")

        assert removed is not None
        assert registry.get("x") is None
        assert registry.unregister("x") is None

    def test_types_sorted(self, registry: HandlerRegistry):
        registry.register("b", HandlerKind.SIMPLE, handler)
        registry.register("a", HandlerKind.SIMPLE, handler)

        assert registry.types() == ["a", "b"]
        assert [e.message_type for e in registry] == ["b", "a"]

    def test_clear(self, registry: HandlerRegistry):
        registry.register("a", HandlerKind.SIMPLE, handler)
        registry.clear()

        assert len(registry) == 0

    def test_empty_type_rejected(self, registry: HandlerRegistry):
        with pytest.raises(ProtocolContractError):
            registry.register("", HandlerKind.SIMPLE, handler)

    def test_non_callable_rejected(self, registry: HandlerRegistry):
        with pytest.raises(ProtocolContractError, match="not callable"):
            registry.register("x", HandlerKind.SIMPLE, "not a function")

    def test_contains_non_string(self, registry: HandlerRegistry):
        assert 42 not in registry
