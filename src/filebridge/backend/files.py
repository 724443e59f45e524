"""Sandboxed file operations.

Every path argument is resolved against a single root directory. Anything
that resolves outside it, including through `..` segments, absolute paths
or symlinks, fails with ConfinementError before touching storage.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from pathlib import Path
from typing import Any

from ..errors import BackendError, ConfinementError

logger = logging.getLogger(__name__)


class FileBackend:
    """File capabilities confined to `root`."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).expanduser().resolve()

    def safe_path(self, path: str) -> Path:
        """Resolve a relative path inside the root.

        Raises:
            ConfinementError: If the resolved path escapes the root
        """
        resolved = (self.root / path).resolve()
        if resolved != self.root and not resolved.is_relative_to(self.root):
            logger.warning(f"Blocked path outside root: {path!r}")
            raise ConfinementError(path)
        return resolved

    async def read_file(self, path: str) -> dict[str, Any]:
        target = self.safe_path(path)

        def read() -> str:
            with open(target, encoding="utf-8", newline="") as f:
                return f.read()

        return {"content": await asyncio.to_thread(read)}

    async def write_file(self, path: str, content: str) -> dict[str, Any]:
        target = self.safe_path(path)

        def write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8", newline="")

        await asyncio.to_thread(write)
        return {"path": path}

    async def append_file(self, path: str, content: str) -> dict[str, Any]:
        target = self.safe_path(path)

        def append() -> None:
            with open(target, "a", encoding="utf-8", newline="") as f:
                f.write(content)

        await asyncio.to_thread(append)
        return {"path": path}

    async def list_files(self, path: str) -> dict[str, Any]:
        target = self.safe_path(path)

        def scan() -> list[dict[str, Any]]:
            entries = sorted(target.iterdir(), key=lambda p: p.name)
            return [{"name": entry.name, "isDirectory": entry.is_dir()} for entry in entries]

        return {"files": await asyncio.to_thread(scan)}

    async def delete_file(self, path: str) -> dict[str, Any]:
        target = self.safe_path(path)
        if target == self.root:
            raise BackendError("Refusing to delete the repository root")
        await asyncio.to_thread(target.unlink)
        return {"path": path}

    async def mkdir(self, path: str) -> dict[str, Any]:
        target = self.safe_path(path)
        await asyncio.to_thread(target.mkdir, parents=True, exist_ok=True)
        return {"path": path}

    async def hash_file(self, path: str) -> dict[str, Any]:
        target = self.safe_path(path)
        data = await asyncio.to_thread(target.read_bytes)
        return {"hash": hashlib.sha256(data).hexdigest()}
