"""FileBridge CLI.

Commands:
    filebridge serve                - Run the REST server (default port 3100)
    filebridge mcp                  - Run the MCP-over-SSE bridge (default port 3101)
    filebridge stdio                - Serve MCP over stdin/stdout
    filebridge health               - Check a running server's health
    filebridge tools                - List the capability catalog
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys

import click
import httpx

from .catalog import list_capabilities
from .config import CONFIG_FILE_ENV, BridgeConfig
from .errors import ConfigError

# Output format options
FORMAT_TABLE = "table"
FORMAT_JSON = "json"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Send all logging to stderr so stdout stays clean for protocol traffic."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(stderr_handler)
    root_logger.setLevel(level.upper())


def _load_config() -> BridgeConfig:
    try:
        return BridgeConfig.load()
    except (ConfigError, OSError) as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e


def _apply_overrides(**overrides: object) -> None:
    """Export CLI options as environment variables for the app factories."""
    env_names = {
        "root": "FILEBRIDGE_ROOT",
        "host": "FILEBRIDGE_HOST",
        "rest_port": "PORT",
        "mcp_port": "MCP_PORT",
        "backend_url": "FILEBRIDGE_URL",
        "heartbeat": "FILEBRIDGE_HEARTBEAT",
    }
    for key, value in overrides.items():
        if value is not None:
            os.environ[env_names[key]] = str(value)


@click.group(invoke_without_command=True)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML configuration file",
)
@click.option("--log-level", default=None, help="Logging level (default: INFO)")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, log_level: str | None) -> None:
    """FileBridge - sandboxed file and git operations over REST and MCP."""
    if config_path:
        os.environ[CONFIG_FILE_ENV] = os.path.abspath(config_path)
    if log_level:
        os.environ["FILEBRIDGE_LOG_LEVEL"] = log_level

    setup_logging(log_level or os.environ.get("FILEBRIDGE_LOG_LEVEL", "INFO"))

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# =============================================================================
# Server Commands
# =============================================================================


@main.command()
@click.option("--root", type=click.Path(file_okay=False), help="Repository root to confine to")
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", type=int, default=None, help="Port to bind to (default: 3100)")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
def serve(root: str | None, host: str | None, port: int | None, reload: bool) -> None:
    """Run the REST server."""
    import uvicorn

    _apply_overrides(root=root, host=host, rest_port=port)
    config = _load_config()

    click.echo(f"Starting FileBridge REST on http://{config.host}:{config.rest_port}", err=True)
    click.echo(f"  Root: {config.root}", err=True)
    click.echo("Press Ctrl+C to stop", err=True)

    uvicorn.run(
        "filebridge.app:create_rest_app",
        factory=True,
        host=config.host,
        port=config.rest_port,
        reload=reload,
        log_level=config.log_level.lower(),
    )


@main.command()
@click.option("--root", type=click.Path(file_okay=False), help="Repository root to confine to")
@click.option("--backend-url", default=None, help="Front a remote FileBridge REST server")
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", type=int, default=None, help="Port to bind to (default: 3101)")
@click.option("--heartbeat", type=float, default=None, help="Seconds between SSE keep-alives")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
def mcp(
    root: str | None,
    backend_url: str | None,
    host: str | None,
    port: int | None,
    heartbeat: float | None,
    reload: bool,
) -> None:
    """Run the MCP bridge (SSE sessions and stateless /mcp)."""
    import uvicorn

    _apply_overrides(
        root=root, backend_url=backend_url, host=host, mcp_port=port, heartbeat=heartbeat
    )
    config = _load_config()

    click.echo(f"Starting FileBridge MCP on http://{config.host}:{config.mcp_port}", err=True)
    click.echo(f"  Backend: {config.backend_url or config.root}", err=True)
    click.echo("  Endpoints: /sse, /message, /mcp", err=True)
    click.echo("Press Ctrl+C to stop", err=True)

    uvicorn.run(
        "filebridge.app:create_mcp_app",
        factory=True,
        host=config.host,
        port=config.mcp_port,
        reload=reload,
        log_level=config.log_level.lower(),
    )


@main.command()
@click.option("--root", type=click.Path(file_okay=False), help="Repository root to confine to")
@click.option("--backend-url", default=None, help="Front a remote FileBridge REST server")
def stdio(root: str | None, backend_url: str | None) -> None:
    """Serve MCP over stdin/stdout (one JSON message per line)."""
    from . import __version__
    from .backend import create_backend
    from .invoker import CapabilityInvoker
    from .protocol import ProtocolDispatcher, ServerInfo
    from .transport.stdio import StdioTransport

    _apply_overrides(root=root, backend_url=backend_url)
    config = _load_config()
    backend = create_backend(config)

    dispatcher = ProtocolDispatcher(
        CapabilityInvoker(backend), server_info=ServerInfo(version=__version__)
    )
    transport = StdioTransport(dispatcher)

    click.echo(f"FileBridge MCP server running on stdio (backend: {backend.describe()})", err=True)

    async def run() -> None:
        try:
            await transport.run()
        finally:
            await backend.aclose()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        click.echo("\nShutting down", err=True)


@main.command()
@click.option("--url", default="http://localhost:3100", help="Server URL to check")
def health(url: str) -> None:
    """Check server health."""

    async def check() -> None:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(f"{url.rstrip('/')}/health")
        except httpx.ConnectError:
            click.echo(f"Cannot connect to server at {url}", err=True)
            sys.exit(1)

        if response.status_code == 200:
            click.echo(f"Server is healthy: {response.json()}")
        else:
            click.echo(f"Server returned {response.status_code}", err=True)
            sys.exit(1)

    asyncio.run(check())


# =============================================================================
# Catalog Commands
# =============================================================================


@main.command()
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice([FORMAT_TABLE, FORMAT_JSON]),
    default=FORMAT_TABLE,
    help="Output format",
)
def tools(output_format: str) -> None:
    """List the tools FileBridge exposes."""
    capabilities = list_capabilities()

    if output_format == FORMAT_JSON:
        click.echo(json.dumps([c.to_dict() for c in capabilities], indent=2))
        return

    width = max(len(c.name) for c in capabilities)
    for c in capabilities:
        params = ", ".join(p.name for p in c.parameters) or "-"
        click.echo(f"{c.name:<{width}}  ({params})  {c.description}")


if __name__ == "__main__":
    main()
