"""Bridge HTTP application.

Creates the Starlette ASGI application:
- /health - Health check
- /ws - WebSocket channel, one MessageProtocol per connection

All connections share the application's HandlerContext.
"""

from __future__ import annotations

import logging

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute
from starlette.websockets import WebSocket

from . import __version__
from .config import BridgeConfig
from .host import build_protocol
from .protocol.context import HandlerContext
from .transport.websocket import WebSocketChannel

logger = logging.getLogger(__name__)


async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "version": __version__})


async def websocket_endpoint(websocket: WebSocket) -> None:
    """Serve one view over a WebSocket connection."""
    config: BridgeConfig = websocket.app.state.config
    context: HandlerContext = websocket.app.state.context

    protocol = await build_protocol(config, context)
    await websocket.accept()

    channel = WebSocketChannel(websocket)
    protocol.attach(channel)
    logger.info("View connected over WebSocket")
    try:
        await channel.run()
    except Exception as e:
        logger.exception(f"WebSocket channel error: {e}")
    finally:
        protocol.detach()
        await protocol.drain()


def create_app(
    config: BridgeConfig | None = None,
    context: HandlerContext | None = None,
) -> Starlette:
    """Create the bridge application.

    Args:
        config: Bridge configuration (default: from environment)
        context: Shared execution context (default: built from config)

    Returns:
        Configured Starlette application
    """
    if config is None:
        config = BridgeConfig.from_env()
    if context is None:
        context = HandlerContext(workspace_root=config.workspace_root)

    routes = [
        Route("/health", health, methods=["GET"]),
        WebSocketRoute("/ws", websocket_endpoint),
    ]

    app = Starlette(routes=routes)
    app.state.config = config
    app.state.context = context
    return app
