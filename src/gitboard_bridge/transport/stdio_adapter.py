"""stdio channel.

Carries envelopes as newline-delimited JSON so the host can run as a
subprocess of the view process.

Wire format (UTF-8, one JSON object per line):
- Input (stdin):  {"type": "git/getLog", "payload": {"limit": 50}}
- Output (stdout): {"type": "git/log", "payload": [...]}

Cross-platform considerations:
- Output newlines are always LF, input accepts LF and CRLF
- A UTF-8 BOM at the start of a line is skipped
- Logging must go to stderr; stdout belongs to the protocol
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from typing import TYPE_CHECKING, Any, BinaryIO

from ..protocol.errors import ErrorCode
from ..protocol.responses import create_error_response
from .base import ListenerChannel

if TYPE_CHECKING:
    from ..protocol.handler import MessageProtocol

logger = logging.getLogger(__name__)

ENCODING = "utf-8"
NEWLINE = "\n"


class StdioChannel(ListenerChannel):
    """Bidirectional channel over binary stdin/stdout streams.

    Usage:
        channel = StdioChannel()
        protocol.attach(channel)
        await channel.run()  # Blocks until stdin closes

    Example session:
        → {"type":"bridge.ping"}
        ← {"type":"bridge.ping.response","payload":{"pong":true}}
        → {"type":"nope"}
        ← {"type":"error","payload":{"code":"HANDLER_NOT_FOUND",...,"requestType":"nope"}}
    """

    def __init__(self, stdin: BinaryIO | None = None, stdout: BinaryIO | None = None):
        """Initialize the channel.

        Args:
            stdin: Binary input stream (default: sys.stdin.buffer)
            stdout: Binary output stream (default: sys.stdout.buffer)
        """
        self._stdin = stdin if stdin is not None else sys.stdin.buffer
        self._stdout = stdout if stdout is not None else sys.stdout.buffer
        self._running = False
        super().__init__()

    @property
    def running(self) -> bool:
        return self._running

    def post_message(self, message: dict[str, Any]) -> None:
        """Write one message as a JSON line."""
        line = json.dumps(message, ensure_ascii=False, separators=(",", ":"))
        self._stdout.write((line + NEWLINE).encode(ENCODING))
        self._stdout.flush()

    async def run(self) -> None:
        """Read stdin line by line until EOF or stop()."""
        self._running = True
        try:
            while self._running:
                line = await self._read_line()
                if line is None:
                    break  # EOF

                line = line.strip()
                if line.startswith("\ufeff"):
                    line = line[1:]
                if not line:
                    continue

                self._process_line(line)
        except asyncio.CancelledError:
            logger.info("stdio channel cancelled")
            raise
        finally:
            self._running = False

    def stop(self) -> None:
        self._running = False

    async def _read_line(self) -> str | None:
        loop = asyncio.get_running_loop()
        data = await loop.run_in_executor(None, self._stdin.readline)
        if not data:
            return None
        return data.decode(ENCODING, errors="replace")

    def _process_line(self, line: str) -> None:
        try:
            message = json.loads(line)
        except json.JSONDecodeError as e:
            # Framing errors never reach the protocol, answer them here
            logger.warning(f"Invalid JSON on stdin: {e}")
            error = create_error_response(ErrorCode.INVALID_PAYLOAD, f"Invalid JSON: {e}")
            self.post_message(error.to_wire())
            return
        self._deliver(message)


async def serve_stdio(
    protocol: MessageProtocol,
    stdin: BinaryIO | None = None,
    stdout: BinaryIO | None = None,
) -> None:
    """Serve a protocol over stdio until stdin closes.

    Waits for in-flight handlers to finish before detaching.
    """
    channel = StdioChannel(stdin=stdin, stdout=stdout)
    protocol.attach(channel)
    try:
        await channel.run()
        await protocol.drain()
    finally:
        protocol.detach()


def set_binary_mode() -> None:
    """On Windows, switch the standard streams to binary mode."""
    if sys.platform == "win32":
        import msvcrt

        msvcrt.setmode(sys.stdin.fileno(), os.O_BINARY)
        msvcrt.setmode(sys.stdout.fileno(), os.O_BINARY)
