"""JSON-RPC 2.0 envelope types for the MCP tool protocol.

Note: Field names use camelCase where the protocol requires it
(protocolVersion, serverInfo, inputSchema, isError).
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, model_validator

# MCP protocol revision advertised by `initialize`
PROTOCOL_VERSION = "2024-11-05"

SERVER_NAME = "filebridge"


class JsonRpcErrorCode:
    """Standard JSON-RPC 2.0 error codes."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


class JsonRpcRequest(BaseModel):
    """JSON-RPC 2.0 request or notification.

    The `jsonrpc` marker is optional on input; some clients omit it.
    """

    model_config = ConfigDict(extra="ignore")

    jsonrpc: str | None = "2.0"
    id: str | int | None = None
    method: str
    params: Any | None = None

    @property
    def is_notification(self) -> bool:
        return self.method.startswith("notifications/")


class JsonRpcError(BaseModel):
    """JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any | None = None


class JsonRpcResponse(BaseModel):
    """JSON-RPC 2.0 response: carries exactly one of result or error."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: str | int | None = None
    result: Any | None = None
    error: JsonRpcError | None = None

    @model_validator(mode="after")
    def _one_of_result_or_error(self) -> JsonRpcResponse:
        if self.result is not None and self.error is not None:
            raise ValueError("A response carries either a result or an error, not both")
        return self

    @classmethod
    def success(cls, request_id: str | int | None, result: Any) -> JsonRpcResponse:
        return cls(id=request_id, result=result)

    @classmethod
    def failure(
        cls,
        request_id: str | int | None,
        code: int,
        message: str,
        data: Any | None = None,
    ) -> JsonRpcResponse:
        return cls(id=request_id, error=JsonRpcError(code=code, message=message, data=data))

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_wire(self) -> dict[str, Any]:
        """Serialize, keeping `id` even when null and emitting only one branch."""
        message: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            message["error"] = self.error.model_dump(exclude_none=True)
        else:
            message["result"] = self.result if self.result is not None else {}
        return message


class ServerInfo(BaseModel):
    """Identity block returned by `initialize`."""

    name: str = SERVER_NAME
    version: str = "1.0.0"
