"""FileBridge server applications.

Creates the Starlette ASGI applications.

REST app (`filebridge serve`, default port 3100):
- /health - Health check
- /<capability> - One POST endpoint per catalog entry

MCP app (`filebridge mcp`, default port 3101):
- /health - Health check
- /sse, /message - Session-bound MCP over Server-Sent Events
- /mcp - Stateless MCP request/response

Both factories take an optional backend so tests can inject a double.
Shared objects live on `app.state`.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator
from typing import Any

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.routing import Route

from . import __version__
from .backend import Backend, create_backend
from .config import BridgeConfig
from .invoker import CapabilityInvoker
from .protocol import ProtocolDispatcher, ServerInfo
from .routes import file_routes, health_routes, mcp_routes
from .sessions import SessionRegistry

logger = logging.getLogger(__name__)

REST_SERVICE_NAME = "filebridge"
MCP_SERVICE_NAME = "filebridge-mcp"


def _middleware(config: BridgeConfig) -> list[Middleware]:
    return [
        Middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        ),
    ]


def create_rest_app(
    config: BridgeConfig | None = None,
    backend: Backend | None = None,
) -> Starlette:
    """Create the REST application.

    Args:
        config: Configuration (loaded from the environment if omitted)
        backend: Backend override (built from config if omitted)
    """
    config = config or BridgeConfig.load()
    backend = backend or create_backend(config)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info(f"FileBridge REST serving {backend.describe()}")
        yield
        await backend.aclose()

    routes: list[Route] = []
    routes.extend(health_routes)
    routes.extend(file_routes)

    app = Starlette(routes=routes, middleware=_middleware(config), lifespan=lifespan)
    app.state.config = config
    app.state.invoker = CapabilityInvoker(backend)
    app.state.service_name = REST_SERVICE_NAME

    def health_details() -> dict[str, Any]:
        return {"root": backend.describe(), "version": __version__}

    app.state.health_details = health_details
    return app


def create_mcp_app(
    config: BridgeConfig | None = None,
    backend: Backend | None = None,
) -> Starlette:
    """Create the MCP bridge application.

    Args:
        config: Configuration (loaded from the environment if omitted)
        backend: Backend override (built from config if omitted)
    """
    config = config or BridgeConfig.load()
    backend = backend or create_backend(config)

    registry = SessionRegistry(heartbeat_interval=config.heartbeat_interval)
    invoker = CapabilityInvoker(backend)
    dispatcher = ProtocolDispatcher(
        invoker,
        registry=registry,
        server_info=ServerInfo(version=__version__),
    )

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info(f"FileBridge MCP bridge serving {backend.describe()}")
        yield
        await registry.close_all()
        await backend.aclose()

    routes: list[Route] = []
    routes.extend(health_routes)
    routes.extend(mcp_routes)

    app = Starlette(routes=routes, middleware=_middleware(config), lifespan=lifespan)
    app.state.config = config
    app.state.invoker = invoker
    app.state.registry = registry
    app.state.dispatcher = dispatcher
    app.state.service_name = MCP_SERVICE_NAME

    def health_details() -> dict[str, Any]:
        return {"backend": backend.describe(), "sessions": len(registry), "version": __version__}

    app.state.health_details = health_details
    return app
