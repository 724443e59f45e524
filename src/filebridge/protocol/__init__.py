"""MCP tool protocol: JSON-RPC envelopes and method dispatch."""

from .dispatcher import ProtocolDispatcher, ProtocolError, parse_request, request_id_of
from .types import (
    PROTOCOL_VERSION,
    JsonRpcError,
    JsonRpcErrorCode,
    JsonRpcRequest,
    JsonRpcResponse,
    ServerInfo,
)

__all__ = [
    "PROTOCOL_VERSION",
    "JsonRpcError",
    "JsonRpcErrorCode",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "ProtocolDispatcher",
    "ProtocolError",
    "ServerInfo",
    "parse_request",
    "request_id_of",
]
