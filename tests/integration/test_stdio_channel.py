"""Integration tests for the stdio channel.

Runs a real protocol (with built-in handlers) over in-memory binary streams,
verifying:
- JSON line parsing from stdin
- Envelope serialization to stdout
- UTF-8 encoding and newline handling
- BOM stripping and blank lines
- Framing errors answered without reaching the protocol
"""

import io
import json
from datetime import datetime

import pytest

from gitboard_bridge.config import BridgeConfig
from gitboard_bridge.host import build_protocol
from gitboard_bridge.protocol import MessageProtocol
from gitboard_bridge.transport import StdioChannel, serve_stdio

# =============================================================================
# Helpers
# =============================================================================


def make_binary_stream(lines: list[str], newline: str = "\n") -> io.BytesIO:
    """Create a binary stream from lines (simulating stdin)."""
    content = newline.join(lines) + newline
    return io.BytesIO(content.encode("utf-8"))


def read_messages(stream: io.BytesIO) -> list[dict]:
    """Read JSON messages from a binary stream (simulating stdout)."""
    stream.seek(0)
    messages = []
    for line in stream:
        line_str = line.decode("utf-8").strip()
        if line_str:
            messages.append(json.loads(line_str))
    return messages


async def serve(lines: list[str], protocol: MessageProtocol | None = None, **kwargs) -> list[dict]:
    if protocol is None:
        protocol = await build_protocol(BridgeConfig())
    stdout = io.BytesIO()
    await serve_stdio(protocol, stdin=make_binary_stream(lines, **kwargs), stdout=stdout)
    return read_messages(stdout)


# =============================================================================
# Tests: Request handling
# =============================================================================


class TestRequests:
    """Requests read from stdin are answered on stdout."""

    @pytest.mark.anyio
    async def test_ping(self):
        messages = await serve(['{"type": "bridge.ping"}'])

        assert messages == [{"type": "bridge.ping.response", "payload": {"pong": True}}]

    @pytest.mark.anyio
    async def test_multiple_requests(self):
        messages = await serve(['{"type": "bridge.ping"}', '{"type": "bridge.capabilities"}'])

        types = sorted(m["type"] for m in messages)
        assert types == ["bridge.capabilities.response", "bridge.ping.response"]

    @pytest.mark.anyio
    async def test_unknown_type(self):
        messages = await serve(['{"type": "git/getLog", "payload": {"limit": 1}}'])

        assert messages == [
            {
                "type": "error",
                "payload": {
                    "code": "HANDLER_NOT_FOUND",
                    "message": "No handler for git/getLog",
                    "requestType": "git/getLog",
                },
            }
        ]

    @pytest.mark.anyio
    async def test_protocol_detached_after_eof(self):
        protocol = await build_protocol(BridgeConfig())

        await serve(['{"type": "bridge.ping"}'], protocol)

        assert protocol.is_attached is False
        assert protocol.pending == 0


# =============================================================================
# Tests: Framing
# =============================================================================


class TestFraming:
    """Line framing and encoding."""

    @pytest.mark.anyio
    async def test_invalid_json(self):
        messages = await serve(["not json", '{"type": "bridge.ping"}'])

        error = messages[0]
        assert error["type"] == "error"
        assert error["payload"]["code"] == "INVALID_PAYLOAD"
        assert "requestType" not in error["payload"]
        assert messages[1]["type"] == "bridge.ping.response"

    @pytest.mark.anyio
    async def test_non_object_json(self):
        messages = await serve(["[1, 2, 3]"])

        assert messages[0]["payload"]["code"] == "INVALID_PAYLOAD"

    @pytest.mark.anyio
    async def test_blank_lines_skipped(self):
        messages = await serve(["", "   ", '{"type": "bridge.ping"}', ""])

        assert len(messages) == 1

    @pytest.mark.anyio
    async def test_bom_stripped(self):
        messages = await serve(['\ufeff{"type": "bridge.ping"}'])

        assert messages == [{"type": "bridge.ping.response", "payload": {"pong": True}}]

    @pytest.mark.anyio
    async def test_crlf_input(self):
        messages = await serve(['{"type": "bridge.ping"}'], newline="\r\n")

        assert messages[0]["type"] == "bridge.ping.response"

    @pytest.mark.anyio
    async def test_unicode_round_trip(self):
        protocol = await build_protocol(BridgeConfig())
        protocol.register_handler("echo", lambda request: request.payload)
        stdout = io.BytesIO()

        await serve_stdio(
            protocol,
            stdin=make_binary_stream(['{"type": "echo", "payload": "Fix für Überlauf ✓"}']),
            stdout=stdout,
        )

        raw = stdout.getvalue()
        assert "Fix für Überlauf ✓".encode() in raw
        assert raw.endswith(b"\n")
        assert b"\r\n" not in raw


class TestNonJsonResults:
    """Handler results that are not plain JSON still get exactly one reply."""

    @pytest.mark.anyio
    async def test_datetime_result(self):
        protocol = await build_protocol(BridgeConfig())
        protocol.register_handler("clock.now", lambda request: {"at": datetime(2024, 1, 1)})

        messages = await serve(['{"type": "clock.now"}'], protocol)

        assert messages == [
            {"type": "clock.now.response", "payload": {"at": "2024-01-01T00:00:00"}}
        ]

    @pytest.mark.anyio
    async def test_unencodable_result(self):
        protocol = await build_protocol(BridgeConfig())
        protocol.register_handler("opaque", lambda request: object())

        messages = await serve(['{"type": "opaque"}', '{"type": "bridge.ping"}'], protocol)

        errors = [m for m in messages if m["type"] == "error"]
        assert len(messages) == 2
        assert len(errors) == 1
        assert errors[0]["payload"]["code"] == "HANDLER_ERROR"
        assert errors[0]["payload"]["requestType"] == "opaque"


class TestStdioChannel:
    """StdioChannel on its own."""

    def test_post_message_writes_one_line(self):
        stdout = io.BytesIO()
        channel = StdioChannel(stdin=io.BytesIO(), stdout=stdout)

        channel.post_message({"type": "git/changed"})

        assert stdout.getvalue() == b'{"type":"git/changed"}\n'

    @pytest.mark.anyio
    async def test_run_delivers_to_listeners(self):
        channel = StdioChannel(stdin=make_binary_stream(['{"type": "x"}']), stdout=io.BytesIO())
        received = []
        channel.on_did_receive_message(received.append)

        await channel.run()

        assert received == [{"type": "x"}]
        assert channel.running is False
