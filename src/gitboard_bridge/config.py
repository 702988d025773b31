"""Bridge configuration.

Values come from environment variables; CLI options override them.

- GITBOARD_WORKSPACE_ROOT: workspace path handed to handlers
- GITBOARD_HOST / GITBOARD_PORT: bind address in HTTP mode
- GITBOARD_LOG_LEVEL: logging level name (default WARNING)
- GITBOARD_HANDLERS: comma-separated modules exposing setup_handlers(protocol)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 4097
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass
class BridgeConfig:
    """Runtime configuration for the bridge."""

    workspace_root: str | None = None
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = DEFAULT_LOG_LEVEL
    handler_modules: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BridgeConfig:
        """Build configuration from environment variables.

        Args:
            environ: Mapping to read instead of os.environ
        """
        env = os.environ if environ is None else environ

        port = DEFAULT_PORT
        raw_port = env.get("GITBOARD_PORT")
        if raw_port:
            try:
                port = int(raw_port)
            except ValueError:
                logger.warning(f"Ignoring invalid GITBOARD_PORT: {raw_port!r}")

        modules = [m.strip() for m in env.get("GITBOARD_HANDLERS", "").split(",") if m.strip()]

        return cls(
            workspace_root=env.get("GITBOARD_WORKSPACE_ROOT") or None,
            host=env.get("GITBOARD_HOST") or DEFAULT_HOST,
            port=port,
            log_level=(env.get("GITBOARD_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
            handler_modules=modules,
        )
