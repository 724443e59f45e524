"""Backend collaborators behind the capability invoker.

A backend provides one async method per catalog capability, taking the
capability's arguments as keywords and returning a JSON-serializable
payload mapping. Failures are raised as exceptions; the invoker turns
them into error results.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .files import FileBackend
from .git import GitBackend
from .local import LocalBackend
from .remote import RemoteBackend

if TYPE_CHECKING:
    from ..config import BridgeConfig


@runtime_checkable
class Backend(Protocol):
    """Capability surface consumed by the invoker."""

    async def read_file(self, path: str) -> dict[str, Any]: ...

    async def write_file(self, path: str, content: str) -> dict[str, Any]: ...

    async def append_file(self, path: str, content: str) -> dict[str, Any]: ...

    async def list_files(self, path: str) -> dict[str, Any]: ...

    async def delete_file(self, path: str) -> dict[str, Any]: ...

    async def mkdir(self, path: str) -> dict[str, Any]: ...

    async def hash_file(self, path: str) -> dict[str, Any]: ...

    async def git_status(self) -> dict[str, Any]: ...

    async def git_commit(self, message: str) -> dict[str, Any]: ...

    async def git_push(self, branch: str) -> dict[str, Any]: ...

    async def git_pull(self, branch: str) -> dict[str, Any]: ...

    async def list_recent_changes(self) -> dict[str, Any]: ...

    def describe(self) -> str: ...

    async def aclose(self) -> None: ...


def create_backend(config: BridgeConfig) -> LocalBackend | RemoteBackend:
    """Build the backend selected by configuration."""
    if config.backend_url:
        return RemoteBackend(config.backend_url)
    return LocalBackend(config.root)


__all__ = [
    "Backend",
    "FileBackend",
    "GitBackend",
    "LocalBackend",
    "RemoteBackend",
    "create_backend",
]
