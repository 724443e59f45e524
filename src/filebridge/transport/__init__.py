"""Protocol transports: SSE sessions and stdio."""

from .sse import session_event_stream, sse_response
from .stdio import StdioTransport

__all__ = [
    "StdioTransport",
    "session_event_stream",
    "sse_response",
]
