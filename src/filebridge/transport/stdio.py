"""Stdio transport for local protocol clients.

Used when FileBridge runs as a subprocess of an MCP client. Messages are
newline-delimited JSON on stdin; responses are written to stdout, one per
line. Logging must go to stderr so stdout carries protocol traffic only.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import IO, Any

from ..errors import MalformedRequest
from ..protocol.dispatcher import ProtocolDispatcher, request_id_of
from ..protocol.types import JsonRpcErrorCode, JsonRpcResponse

logger = logging.getLogger(__name__)


class StdioTransport:
    """Reads JSON-RPC lines from a stream and answers through the dispatcher."""

    def __init__(
        self,
        dispatcher: ProtocolDispatcher,
        stdout: IO[str] | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._stdout = stdout or sys.stdout

    async def handle_line(self, line: str) -> JsonRpcResponse | None:
        """Process one line of input and return the response to send."""
        data = line.strip()
        if not data:
            return None

        try:
            message: Any = json.loads(data)
        except json.JSONDecodeError as e:
            return JsonRpcResponse.failure(
                None, JsonRpcErrorCode.PARSE_ERROR, f"Parse error: {e}"
            )

        try:
            return await self._dispatcher.dispatch(message)
        except MalformedRequest as e:
            return JsonRpcResponse.failure(
                request_id_of(message), JsonRpcErrorCode.INVALID_REQUEST, str(e)
            )

    async def send(self, response: JsonRpcResponse) -> None:
        """Write one response line."""
        self._stdout.write(json.dumps(response.to_wire()) + "\n")
        self._stdout.flush()

    async def _answer(self, line: bytes) -> None:
        response = await self.handle_line(line.decode("utf-8", errors="replace"))
        if response is not None:
            await self.send(response)

    async def serve(self, reader: asyncio.StreamReader) -> None:
        """Answer requests until the reader reaches EOF.

        Each line is handled in its own task, so a slow capability does not
        hold up later requests. Responses carry the request id and may be
        written out of order.
        """
        pending: set[asyncio.Task[None]] = set()
        while True:
            line = await reader.readline()
            if not line:
                break

            task = asyncio.create_task(self._answer(line))
            pending.add(task)
            task.add_done_callback(pending.discard)

        if pending:
            await asyncio.gather(*pending)
        logger.info("stdin closed, stopping stdio transport")

    async def run(self) -> None:
        """Serve the process's stdin."""
        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)

        loop = asyncio.get_running_loop()
        await loop.connect_read_pipe(lambda: protocol, sys.stdin)

        await self.serve(reader)
