"""Tests for the JSON-RPC envelope types and the protocol dispatcher."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from filebridge.errors import BackendError, MalformedRequest, SessionNotFound
from filebridge.invoker import CapabilityInvoker
from filebridge.protocol import (
    PROTOCOL_VERSION,
    JsonRpcError,
    JsonRpcErrorCode,
    JsonRpcRequest,
    JsonRpcResponse,
    ProtocolDispatcher,
    ServerInfo,
    parse_request,
    request_id_of,
)
from filebridge.sessions import SessionChannel, SessionRegistry

# =============================================================================
# Envelope Tests
# =============================================================================


class TestJsonRpcTypes:
    """Tests for JSON-RPC 2.0 types."""

    def test_success_wire_shape(self) -> None:
        wire = JsonRpcResponse.success(1, {"tools": []}).to_wire()
        assert wire == {"jsonrpc": "2.0", "id": 1, "result": {"tools": []}}

    def test_error_wire_shape(self) -> None:
        wire = JsonRpcResponse.failure("a", JsonRpcErrorCode.METHOD_NOT_FOUND, "nope").to_wire()
        assert wire == {"jsonrpc": "2.0", "id": "a", "error": {"code": -32601, "message": "nope"}}
        assert "result" not in wire

    def test_null_id_is_kept(self) -> None:
        wire = JsonRpcResponse.failure(None, JsonRpcErrorCode.PARSE_ERROR, "bad").to_wire()
        assert "id" in wire
        assert wire["id"] is None

    def test_result_and_error_are_exclusive(self) -> None:
        with pytest.raises(ValidationError):
            JsonRpcResponse(id=1, result={}, error=JsonRpcError(code=-1, message="x"))

    def test_notification_detection(self) -> None:
        assert JsonRpcRequest(method="notifications/initialized").is_notification
        assert not JsonRpcRequest(id=1, method="tools/list").is_notification

    def test_parse_request_rejects_non_object(self) -> None:
        with pytest.raises(MalformedRequest):
            parse_request([1, 2])

    def test_parse_request_requires_method(self) -> None:
        with pytest.raises(MalformedRequest):
            parse_request({"jsonrpc": "2.0", "id": 1})

    def test_parse_request_tolerates_missing_jsonrpc(self) -> None:
        request = parse_request({"id": 3, "method": "initialize"})
        assert request.method == "initialize"

    def test_request_id_of(self) -> None:
        assert request_id_of({"id": 7}) == 7
        assert request_id_of({"id": "x"}) == "x"
        assert request_id_of({"id": [1]}) is None
        assert request_id_of({"id": True}) is None
        assert request_id_of("nope") is None


# =============================================================================
# Dispatcher Tests
# =============================================================================


@pytest.fixture
def dispatcher(mock_backend) -> ProtocolDispatcher:
    return ProtocolDispatcher(CapabilityInvoker(mock_backend))


class TestDispatch:
    """Tests for ProtocolDispatcher.dispatch()."""

    @pytest.mark.asyncio
    async def test_initialize(self, dispatcher: ProtocolDispatcher) -> None:
        response = await dispatcher.dispatch({"jsonrpc": "2.0", "id": 1, "method": "initialize"})

        assert response.result["protocolVersion"] == PROTOCOL_VERSION
        assert response.result["capabilities"] == {"tools": {}}
        assert response.result["serverInfo"]["name"] == "filebridge"

    @pytest.mark.asyncio
    async def test_initialize_uses_server_info(self, mock_backend) -> None:
        dispatcher = ProtocolDispatcher(
            CapabilityInvoker(mock_backend), server_info=ServerInfo(version="9.9.9")
        )
        response = await dispatcher.dispatch({"id": 1, "method": "initialize"})
        assert response.result["serverInfo"]["version"] == "9.9.9"

    @pytest.mark.asyncio
    async def test_tools_list(self, dispatcher: ProtocolDispatcher) -> None:
        response = await dispatcher.dispatch({"jsonrpc": "2.0", "id": 2, "method": "tools/list"})

        tools = response.result["tools"]
        assert tools[0]["name"] == "read_file"
        assert len(tools) == 12
        assert "inputSchema" in tools[0]

    @pytest.mark.asyncio
    async def test_list_capabilities_alias(self, dispatcher: ProtocolDispatcher) -> None:
        a = await dispatcher.dispatch({"id": 1, "method": "tools/list"})
        b = await dispatcher.dispatch({"id": 1, "method": "listCapabilities"})
        assert a.to_wire() == b.to_wire()

    @pytest.mark.asyncio
    async def test_unknown_method(self, dispatcher: ProtocolDispatcher) -> None:
        response = await dispatcher.dispatch({"jsonrpc": "2.0", "id": 3, "method": "bogus"})

        assert response.error.code == JsonRpcErrorCode.METHOD_NOT_FOUND
        assert response.error.message == "Method not found: bogus"
        assert response.id == 3

    @pytest.mark.asyncio
    async def test_notification_gets_no_response(self, dispatcher: ProtocolDispatcher) -> None:
        assert await dispatcher.dispatch({"method": "notifications/initialized"}) is None

    @pytest.mark.asyncio
    async def test_malformed_raises(self, dispatcher: ProtocolDispatcher) -> None:
        with pytest.raises(MalformedRequest):
            await dispatcher.dispatch({"id": 1})


class TestCallTool:
    """Tests for tools/call."""

    @pytest.mark.asyncio
    async def test_success_result(self, dispatcher: ProtocolDispatcher, mock_backend) -> None:
        mock_backend.list_files.return_value = {"files": [{"name": "a.txt", "isDirectory": False}]}

        response = await dispatcher.dispatch(
            {
                "jsonrpc": "2.0",
                "id": 1,
                "method": "tools/call",
                "params": {"name": "list_files", "arguments": {"path": "."}},
            }
        )

        assert response.result["isError"] is False
        content = response.result["content"]
        assert content[0]["type"] == "text"
        payload = json.loads(content[0]["text"])
        assert payload["status"] == "ok"
        assert payload["files"][0]["name"] == "a.txt"

    @pytest.mark.asyncio
    async def test_backend_failure_is_result_not_error(
        self, dispatcher: ProtocolDispatcher, mock_backend
    ) -> None:
        mock_backend.read_file.side_effect = BackendError(
            "Access outside repository not permitted."
        )

        response = await dispatcher.dispatch(
            {
                "id": 4,
                "method": "callCapability",
                "params": {"name": "read_file", "arguments": {"path": "../x"}},
            }
        )

        assert response.error is None
        assert response.result["isError"] is True
        payload = json.loads(response.result["content"][0]["text"])
        assert payload == {"status": "error", "error": "Access outside repository not permitted."}

    @pytest.mark.asyncio
    async def test_unknown_tool(self, dispatcher: ProtocolDispatcher) -> None:
        response = await dispatcher.dispatch(
            {"id": 5, "method": "tools/call", "params": {"name": "format_disk"}}
        )
        assert response.error.code == JsonRpcErrorCode.METHOD_NOT_FOUND
        assert response.error.message == "Unknown tool: format_disk"

    @pytest.mark.asyncio
    async def test_missing_name(self, dispatcher: ProtocolDispatcher) -> None:
        response = await dispatcher.dispatch({"id": 6, "method": "tools/call", "params": {}})
        assert response.error.code == JsonRpcErrorCode.INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_arguments_must_be_object(self, dispatcher: ProtocolDispatcher) -> None:
        response = await dispatcher.dispatch(
            {"id": 7, "method": "tools/call", "params": {"name": "git_status", "arguments": [1]}}
        )
        assert response.error.code == JsonRpcErrorCode.INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_missing_arguments_default_to_empty(
        self, dispatcher: ProtocolDispatcher, mock_backend
    ) -> None:
        response = await dispatcher.dispatch(
            {"id": 8, "method": "tools/call", "params": {"name": "git_status"}}
        )
        assert response.result["isError"] is False
        mock_backend.git_status.assert_awaited_once_with()


class TestDispatchToSession:
    """Tests for session-bound delivery."""

    @pytest.mark.asyncio
    async def test_response_delivered_on_channel(self, mock_backend) -> None:
        registry = SessionRegistry(heartbeat_interval=None)
        dispatcher = ProtocolDispatcher(CapabilityInvoker(mock_backend), registry=registry)
        channel = SessionChannel()
        session_id = registry.open(channel)

        await dispatcher.dispatch_to_session(session_id, {"id": 1, "method": "tools/list"})

        frame = await channel.next_frame(timeout=1)
        assert frame.event == "message"
        assert json.loads(frame.data)["id"] == 1

    @pytest.mark.asyncio
    async def test_unknown_session(self, mock_backend) -> None:
        registry = SessionRegistry(heartbeat_interval=None)
        dispatcher = ProtocolDispatcher(CapabilityInvoker(mock_backend), registry=registry)

        with pytest.raises(SessionNotFound):
            await dispatcher.dispatch_to_session("session_gone", {"id": 1, "method": "tools/list"})

    @pytest.mark.asyncio
    async def test_session_closed_during_dispatch(self, mock_backend) -> None:
        registry = SessionRegistry(heartbeat_interval=None)
        dispatcher = ProtocolDispatcher(CapabilityInvoker(mock_backend), registry=registry)
        channel = SessionChannel()
        session_id = registry.open(channel)

        async def close_session(**kwargs) -> dict:
            registry.close(session_id)
            return {"content": "late"}

        mock_backend.read_file.side_effect = close_session

        with pytest.raises(SessionNotFound):
            await dispatcher.dispatch_to_session(
                session_id,
                {
                    "id": 1,
                    "method": "tools/call",
                    "params": {"name": "read_file", "arguments": {"path": "a"}},
                },
            )
        # Only the close sentinel was queued
        assert channel.pending == 1

    @pytest.mark.asyncio
    async def test_notification_sends_nothing(self, mock_backend) -> None:
        registry = SessionRegistry(heartbeat_interval=None)
        dispatcher = ProtocolDispatcher(CapabilityInvoker(mock_backend), registry=registry)
        channel = SessionChannel()
        session_id = registry.open(channel)

        result = await dispatcher.dispatch_to_session(
            session_id, {"method": "notifications/initialized"}
        )

        assert result is None
        assert channel.pending == 0

    @pytest.mark.asyncio
    async def test_requires_registry(self, dispatcher: ProtocolDispatcher) -> None:
        with pytest.raises(RuntimeError):
            await dispatcher.dispatch_to_session("session_x", {"id": 1, "method": "tools/list"})
