"""HTTP routes."""

from .files import file_routes
from .health import health_routes
from .mcp import mcp_routes

__all__ = [
    "file_routes",
    "health_routes",
    "mcp_routes",
]
