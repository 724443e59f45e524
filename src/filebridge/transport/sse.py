"""Server-Sent Events transport for session-bound protocol clients.

Opening the stream registers a session. The first frame tells the client
where to POST its requests; responses to those requests arrive later as
`message` frames on this stream.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from starlette.requests import Request
from starlette.responses import StreamingResponse

from ..sessions import Frame, SessionChannel, SessionRegistry

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}

# How often the stream checks for a client disconnect while idle
DISCONNECT_POLL_INTERVAL = 1.0


def endpoint_url(request: Request, session_id: str) -> str:
    """Path at which the client submits requests for this session."""
    root_path = request.scope.get("root_path", "")
    return f"{root_path}/message?sessionId={session_id}"


async def session_event_stream(
    request: Request,
    registry: SessionRegistry,
    poll_interval: float = DISCONNECT_POLL_INTERVAL,
) -> AsyncIterator[str]:
    """Yield encoded SSE frames for one session until the client leaves."""
    channel = SessionChannel()
    session_id = registry.open(channel)

    try:
        yield Frame(event="endpoint", data=endpoint_url(request, session_id)).encode()

        while True:
            if await request.is_disconnected():
                logger.debug(f"Client disconnected from session {session_id}")
                break

            try:
                frame = await channel.next_frame(timeout=poll_interval)
            except TimeoutError:
                continue  # Check disconnect and try again

            if frame is None:
                break  # Channel closed by the registry
            yield frame.encode()
    finally:
        registry.close(session_id)


def sse_response(
    request: Request,
    registry: SessionRegistry,
    poll_interval: float = DISCONNECT_POLL_INTERVAL,
) -> StreamingResponse:
    """Create the streaming response for GET /sse."""
    return StreamingResponse(
        session_event_stream(request, registry, poll_interval),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
