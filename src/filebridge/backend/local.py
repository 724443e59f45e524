"""Local backend: files and git on the same confined root."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .files import FileBackend
from .git import GitBackend


class LocalBackend:
    """Serves every catalog capability from a directory on this machine."""

    def __init__(self, root: str | Path) -> None:
        self.files = FileBackend(root)
        self.git = GitBackend(self.files.root)

    @property
    def root(self) -> Path:
        return self.files.root

    def describe(self) -> str:
        return str(self.root)

    async def read_file(self, path: str) -> dict[str, Any]:
        return await self.files.read_file(path)

    async def write_file(self, path: str, content: str) -> dict[str, Any]:
        return await self.files.write_file(path, content)

    async def append_file(self, path: str, content: str) -> dict[str, Any]:
        return await self.files.append_file(path, content)

    async def list_files(self, path: str) -> dict[str, Any]:
        return await self.files.list_files(path)

    async def delete_file(self, path: str) -> dict[str, Any]:
        return await self.files.delete_file(path)

    async def mkdir(self, path: str) -> dict[str, Any]:
        return await self.files.mkdir(path)

    async def hash_file(self, path: str) -> dict[str, Any]:
        return await self.files.hash_file(path)

    async def git_status(self) -> dict[str, Any]:
        return await self.git.git_status()

    async def git_commit(self, message: str) -> dict[str, Any]:
        return await self.git.git_commit(message)

    async def git_push(self, branch: str) -> dict[str, Any]:
        return await self.git.git_push(branch)

    async def git_pull(self, branch: str) -> dict[str, Any]:
        return await self.git.git_pull(branch)

    async def list_recent_changes(self) -> dict[str, Any]:
        return await self.git.list_recent_changes()

    async def aclose(self) -> None:
        pass
