"""Remote backend: forwards capabilities to a FileBridge REST server.

This lets the MCP bridge run on a different host (or behind a tunnel)
from the machine that owns the repository. Each capability is a POST to
`<base_url>/<capability>` with the arguments as the JSON body.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..errors import BackendError

logger = logging.getLogger(__name__)


class RemoteBackend:
    """Backend that calls the REST surface of another FileBridge."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url, timeout=httpx.Timeout(timeout)
        )

    def describe(self) -> str:
        return self.base_url

    async def _call(self, capability: str, **arguments: Any) -> dict[str, Any]:
        """POST one capability call and unwrap the status envelope."""
        try:
            response = await self._client.post(f"/{capability}", json=arguments)
        except httpx.RequestError as e:
            raise BackendError(f"FileBridge unreachable at {self.base_url}: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise BackendError(
                f"Invalid response from FileBridge ({response.status_code}): {response.text[:200]}"
            ) from e

        if not isinstance(data, dict):
            raise BackendError(f"Unexpected response from FileBridge: {data!r}")
        if data.get("status") != "ok":
            raise BackendError(data.get("error") or f"FileBridge returned {response.status_code}")

        return {key: value for key, value in data.items() if key != "status"}

    async def read_file(self, path: str) -> dict[str, Any]:
        return await self._call("read_file", path=path)

    async def write_file(self, path: str, content: str) -> dict[str, Any]:
        return await self._call("write_file", path=path, content=content)

    async def append_file(self, path: str, content: str) -> dict[str, Any]:
        return await self._call("append_file", path=path, content=content)

    async def list_files(self, path: str) -> dict[str, Any]:
        return await self._call("list_files", path=path)

    async def delete_file(self, path: str) -> dict[str, Any]:
        return await self._call("delete_file", path=path)

    async def mkdir(self, path: str) -> dict[str, Any]:
        return await self._call("mkdir", path=path)

    async def hash_file(self, path: str) -> dict[str, Any]:
        return await self._call("hash_file", path=path)

    async def git_status(self) -> dict[str, Any]:
        return await self._call("git_status")

    async def git_commit(self, message: str) -> dict[str, Any]:
        return await self._call("git_commit", message=message)

    async def git_push(self, branch: str) -> dict[str, Any]:
        return await self._call("git_push", branch=branch)

    async def git_pull(self, branch: str) -> dict[str, Any]:
        return await self._call("git_pull", branch=branch)

    async def list_recent_changes(self) -> dict[str, Any]:
        return await self._call("list_recent_changes")

    async def aclose(self) -> None:
        await self._client.aclose()
