"""gitboard-bridge CLI.

Default mode is stdio (host runs as a subprocess of the view process).
Use --http to serve views over WebSocket instead.

Usage:
    gitboard-bridge                          # stdio mode (default)
    gitboard-bridge --http                   # HTTP + WebSocket server
    gitboard-bridge --http --port 8080       # Custom port
    gitboard-bridge --handlers myapp.git     # Load handlers from a module
    gitboard-bridge --health                 # Check HTTP server health

    gitboard-bridge types                    # Request -> response type table
    gitboard-bridge codes                    # Error codes
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click
import httpx

from .config import DEFAULT_HOST, DEFAULT_PORT, BridgeConfig
from .host import HandlerModuleError, build_protocol
from .protocol.errors import ErrorCode
from .protocol.responses import RESPONSE_TYPE_MAP

FORMAT_TABLE = "table"
FORMAT_JSON = "json"

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _configure_logging(level: str) -> None:
    # stdout carries the protocol in stdio mode
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@click.group(invoke_without_command=True)
@click.option("--http", "http_mode", is_flag=True, help="Serve over HTTP/WebSocket instead of stdio")
@click.option("--host", default=None, help=f"Host to bind to (HTTP mode, default {DEFAULT_HOST})")
@click.option(
    "--port", type=int, default=None, help=f"Port to bind to (HTTP mode, default {DEFAULT_PORT})"
)
@click.option("--health", "health_check", is_flag=True, help="Check HTTP server health and exit")
@click.option(
    "--health-url",
    default=f"http://localhost:{DEFAULT_PORT}",
    help="Server URL for health check",
)
@click.option(
    "--workspace",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Workspace root handed to handlers",
)
@click.option(
    "--handlers",
    "handler_modules",
    multiple=True,
    help="Python module exposing setup_handlers(protocol); repeatable",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level (stderr)",
)
@click.pass_context
def main(
    ctx: click.Context,
    http_mode: bool,
    host: str | None,
    port: int | None,
    health_check: bool,
    health_url: str,
    workspace: str | None,
    handler_modules: tuple[str, ...],
    log_level: str | None,
) -> None:
    """Git Board bridge - message protocol host for sandboxed views.

    By default, speaks newline-delimited JSON envelopes on stdin/stdout.
    Use --http to accept views over WebSocket at /ws.
    """
    if ctx.invoked_subcommand is not None:
        return

    if (host is not None or port is not None) and not http_mode:
        raise click.UsageError("--host and --port require --http mode.")

    if health_check:
        _do_health_check(health_url)
        return

    config = BridgeConfig.from_env()
    if workspace:
        config.workspace_root = workspace
    if handler_modules:
        config.handler_modules = list(handler_modules)
    if host is not None:
        config.host = host
    if port is not None:
        config.port = port
    if log_level:
        config.log_level = log_level.upper()

    _configure_logging(config.log_level)

    if http_mode:
        _run_http_server(config)
    else:
        _run_stdio_server(config)


def _do_health_check(url: str) -> None:
    """Check server health."""

    async def check() -> None:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(f"{url}/health")
        except httpx.ConnectError:
            click.echo(f"Cannot connect to server at {url}", err=True)
            sys.exit(1)
        if response.status_code == 200:
            click.echo(f"Server is healthy: {response.json()}")
        else:
            click.echo(f"Server returned {response.status_code}", err=True)
            sys.exit(1)

    asyncio.run(check())


def _run_http_server(config: BridgeConfig) -> None:
    """Run HTTP server mode."""
    import uvicorn

    from .app import create_app

    click.echo(f"Starting gitboard bridge on http://{config.host}:{config.port}", err=True)
    click.echo(f"  WebSocket endpoint: ws://{config.host}:{config.port}/ws", err=True)
    click.echo("Press Ctrl+C to stop", err=True)

    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


def _run_stdio_server(config: BridgeConfig) -> None:
    """Run stdio mode (default)."""
    from .transport.stdio_adapter import serve_stdio, set_binary_mode

    async def run() -> None:
        protocol = await build_protocol(config)
        await serve_stdio(protocol)

    set_binary_mode()
    click.echo("Starting gitboard bridge in stdio mode", err=True)
    try:
        asyncio.run(run())
    except HandlerModuleError as e:
        click.echo(str(e), err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nShutting down", err=True)


# =============================================================================
# Introspection commands
# =============================================================================


@main.command("types")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice([FORMAT_TABLE, FORMAT_JSON]),
    default=FORMAT_TABLE,
    help="Output format",
)
def types_command(output_format: str) -> None:
    """List request types and their declared response types."""
    if output_format == FORMAT_JSON:
        click.echo(json.dumps(dict(RESPONSE_TYPE_MAP), indent=2))
        return

    width = max(len(t) for t in RESPONSE_TYPE_MAP)
    click.echo(f"{'REQUEST':<{width}}  RESPONSE")
    click.echo("-" * (width + 30))
    for request_type, response_type in RESPONSE_TYPE_MAP.items():
        click.echo(f"{request_type:<{width}}  {response_type}")
    click.echo(f"\nTotal: {len(RESPONSE_TYPE_MAP)} request type(s)")


@main.command("codes")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice([FORMAT_TABLE, FORMAT_JSON]),
    default=FORMAT_TABLE,
    help="Output format",
)
def codes_command(output_format: str) -> None:
    """List error codes."""
    codes = [code.value for code in ErrorCode]
    if output_format == FORMAT_JSON:
        click.echo(json.dumps(codes, indent=2))
        return
    for code in codes:
        click.echo(code)


if __name__ == "__main__":
    main()
