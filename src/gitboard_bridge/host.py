"""Host bootstrap.

Builds a ready-to-attach `MessageProtocol`: execution context, built-in
handlers, and handlers contributed by user modules.

A handler module exposes `setup_handlers(protocol)`, sync or async:

    # myapp/handlers.py
    async def setup_handlers(protocol):
        protocol.register_handler("myapp.hello", hello)
"""

from __future__ import annotations

import importlib
import inspect
import logging

from .builtin import register_builtin_handlers
from .config import BridgeConfig
from .protocol.context import HandlerContext
from .protocol.errors import BridgeError
from .protocol.handler import MessageProtocol

logger = logging.getLogger(__name__)

SETUP_FUNCTION = "setup_handlers"


class HandlerModuleError(BridgeError):
    """A handler module could not be loaded."""


async def load_handler_module(protocol: MessageProtocol, module_name: str) -> None:
    """Import a module and let it register handlers on the protocol.

    Raises:
        HandlerModuleError: If the module cannot be imported or has no
            setup_handlers function
    """
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise HandlerModuleError(f"Cannot import handler module {module_name}: {e}") from e

    setup = getattr(module, SETUP_FUNCTION, None)
    if not callable(setup):
        raise HandlerModuleError(f"Handler module {module_name} has no {SETUP_FUNCTION}()")

    before = len(protocol.registry)
    result = setup(protocol)
    if inspect.isawaitable(result):
        await result
    logger.info(f"Loaded {module_name}: {len(protocol.registry) - before} handlers registered")


async def build_protocol(
    config: BridgeConfig,
    context: HandlerContext | None = None,
) -> MessageProtocol:
    """Create a protocol with built-in and configured handlers."""
    if context is None:
        context = HandlerContext(workspace_root=config.workspace_root)

    protocol = MessageProtocol(context)
    register_builtin_handlers(protocol)
    for module_name in config.handler_modules:
        await load_handler_module(protocol, module_name)
    return protocol
