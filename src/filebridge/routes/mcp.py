"""MCP protocol endpoints.

- GET  /sse      - Open a session stream (responses arrive here)
- POST /message  - Submit a request for a session (?sessionId=...)
- POST /mcp      - Stateless request/response, no session required
"""

from __future__ import annotations

import json
import logging
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from ..errors import MalformedRequest, SessionNotFound
from ..protocol.dispatcher import request_id_of
from ..protocol.types import JsonRpcErrorCode, JsonRpcResponse
from ..transport.sse import sse_response

logger = logging.getLogger(__name__)


async def _read_json(request: Request) -> Any:
    body = await request.body()
    return json.loads(body.decode("utf-8"))


async def sse_endpoint(request: Request) -> Response:
    """Open a session-bound event stream."""
    return sse_response(request, request.app.state.registry)


async def message_endpoint(request: Request) -> JSONResponse:
    """Accept a request for a session and deliver its response on the stream.

    The POST itself only acknowledges receipt.
    """
    session_id = request.query_params.get("sessionId")
    dispatcher = request.app.state.dispatcher

    try:
        request.app.state.registry.resolve(session_id)
    except SessionNotFound:
        return JSONResponse({"error": "Invalid or expired session"}, status_code=400)

    try:
        message = await _read_json(request)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return JSONResponse({"error": f"Parse error: {e}"}, status_code=400)

    try:
        await dispatcher.dispatch_to_session(session_id, message)
    except SessionNotFound:
        logger.info(f"Session {session_id} closed before its response could be delivered")
        return JSONResponse({"error": "Invalid or expired session"}, status_code=400)
    except MalformedRequest as e:
        return JSONResponse({"error": str(e)}, status_code=400)

    return JSONResponse({"status": "ok"})


async def mcp_endpoint(request: Request) -> Response:
    """Handle a request and return its response envelope directly."""
    dispatcher = request.app.state.dispatcher

    try:
        message = await _read_json(request)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        response = JsonRpcResponse.failure(None, JsonRpcErrorCode.PARSE_ERROR, f"Parse error: {e}")
        return JSONResponse(response.to_wire(), status_code=400)

    try:
        response = await dispatcher.dispatch(message)
    except MalformedRequest as e:
        response = JsonRpcResponse.failure(
            request_id_of(message), JsonRpcErrorCode.INVALID_REQUEST, str(e)
        )
        return JSONResponse(response.to_wire(), status_code=400)

    if response is None:
        return Response(status_code=202)
    return JSONResponse(response.to_wire())


mcp_routes = [
    Route("/sse", sse_endpoint, methods=["GET"]),
    Route("/message", message_endpoint, methods=["POST"]),
    Route("/mcp", mcp_endpoint, methods=["POST"]),
]
