"""Protocol dispatcher.

Interprets one inbound JSON-RPC envelope and produces one response
envelope. The dispatcher is stateless across requests; the only cross-
request state is the session registry, which it consults per delivery.

Every transport (SSE sessions, direct HTTP, stdio) goes through
`dispatch()`, so the method table exists exactly once.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from ..catalog import list_capabilities
from ..errors import MalformedRequest, UnknownCapability
from ..sessions import Frame
from .types import (
    PROTOCOL_VERSION,
    JsonRpcErrorCode,
    JsonRpcRequest,
    JsonRpcResponse,
    ServerInfo,
)

if TYPE_CHECKING:
    from ..invoker import CapabilityInvoker
    from ..sessions import SessionRegistry

logger = logging.getLogger(__name__)

MethodHandler = Callable[[JsonRpcRequest], Awaitable[Any]]


class ProtocolError(Exception):
    """Raised by method handlers to produce a JSON-RPC error envelope."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class ProtocolDispatcher:
    """Routes JSON-RPC methods to the capability catalog and invoker."""

    def __init__(
        self,
        invoker: CapabilityInvoker,
        registry: SessionRegistry | None = None,
        server_info: ServerInfo | None = None,
    ) -> None:
        self._invoker = invoker
        self._registry = registry
        self._server_info = server_info or ServerInfo()
        self._methods: dict[str, MethodHandler] = {
            "initialize": self._initialize,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            # Transport-neutral aliases
            "listCapabilities": self._list_tools,
            "callCapability": self._call_tool,
        }

    @property
    def methods(self) -> list[str]:
        return list(self._methods)

    async def dispatch(self, message: Any) -> JsonRpcResponse | None:
        """Handle one inbound envelope.

        Args:
            message: Decoded JSON message

        Returns:
            The response envelope, or None for notifications

        Raises:
            MalformedRequest: If the message is not a request envelope
        """
        request = parse_request(message)

        if request.is_notification:
            logger.debug(f"Notification received: {request.method}")
            return None

        handler = self._methods.get(request.method)
        if handler is None:
            return JsonRpcResponse.failure(
                request.id,
                JsonRpcErrorCode.METHOD_NOT_FOUND,
                f"Method not found: {request.method}",
            )

        logger.debug(f"Dispatching {request.method} (id={request.id})")
        try:
            result = await handler(request)
        except ProtocolError as e:
            return JsonRpcResponse.failure(request.id, e.code, e.message)
        except Exception as e:
            logger.exception(f"Error handling {request.method}: {e}")
            return JsonRpcResponse.failure(request.id, JsonRpcErrorCode.INTERNAL_ERROR, str(e))

        return JsonRpcResponse.success(request.id, result)

    async def dispatch_to_session(self, session_id: str, message: Any) -> JsonRpcResponse | None:
        """Handle an envelope whose response belongs on a session stream.

        The session is resolved before dispatch and again at delivery, so a
        stream that closes while the backend is working drops the result.

        Raises:
            SessionNotFound: If the session is unknown or closed
            MalformedRequest: If the message is not a request envelope
        """
        if self._registry is None:
            raise RuntimeError("Session delivery requires a session registry")

        self._registry.resolve(session_id)
        response = await self.dispatch(message)
        if response is None:
            return None

        channel = self._registry.resolve(session_id)
        channel.send(Frame(event="message", data=json.dumps(response.to_wire())))
        return response

    # =========================================================================
    # Method handlers
    # =========================================================================

    async def _initialize(self, request: JsonRpcRequest) -> dict[str, Any]:
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {}},
            "serverInfo": self._server_info.model_dump(),
        }

    async def _list_tools(self, request: JsonRpcRequest) -> dict[str, Any]:
        return {"tools": [descriptor.to_dict() for descriptor in list_capabilities()]}

    async def _call_tool(self, request: JsonRpcRequest) -> dict[str, Any]:
        params = request.params
        if not isinstance(params, dict) or not isinstance(params.get("name"), str):
            raise ProtocolError(
                JsonRpcErrorCode.INVALID_PARAMS, "tools/call requires a string 'name' parameter"
            )

        name = params["name"]
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ProtocolError(
                JsonRpcErrorCode.INVALID_PARAMS, "tools/call 'arguments' must be an object"
            )

        try:
            result = await self._invoker.invoke(name, arguments)
        except UnknownCapability as e:
            raise ProtocolError(JsonRpcErrorCode.METHOD_NOT_FOUND, str(e)) from e

        return {
            "content": [{"type": "text", "text": json.dumps(result.to_payload(), indent=2)}],
            "isError": not result.success,
        }


def parse_request(message: Any) -> JsonRpcRequest:
    """Validate a decoded message as a request envelope.

    Raises:
        MalformedRequest: If the message is not a JSON object with a method
    """
    if not isinstance(message, dict):
        raise MalformedRequest("Request must be a JSON object")
    try:
        return JsonRpcRequest.model_validate(message)
    except ValidationError as e:
        raise MalformedRequest(f"Invalid request envelope: {e.errors()[0]['msg']}") from e


def request_id_of(message: Any) -> str | int | None:
    """Best-effort id of a message that failed validation, for the error reply."""
    if not isinstance(message, dict):
        return None
    request_id = message.get("id")
    if isinstance(request_id, bool) or not isinstance(request_id, (str, int)):
        return None
    return request_id
