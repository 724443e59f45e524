"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from filebridge.backend import LocalBackend
from filebridge.invoker import CapabilityInvoker


@pytest.fixture
def repo_root(tmp_path: Path) -> Path:
    """An empty sandbox directory."""
    root = tmp_path / "repo"
    root.mkdir()
    return root


@pytest.fixture
def local_backend(repo_root: Path) -> LocalBackend:
    return LocalBackend(repo_root)


@pytest.fixture
def invoker(local_backend: LocalBackend) -> CapabilityInvoker:
    return CapabilityInvoker(local_backend)


@pytest.fixture
def mock_backend() -> Any:
    """Backend double with every capability returning an empty payload."""
    backend = MagicMock()
    for name in (
        "read_file",
        "write_file",
        "append_file",
        "list_files",
        "delete_file",
        "mkdir",
        "hash_file",
        "git_status",
        "git_commit",
        "git_push",
        "git_pull",
        "list_recent_changes",
    ):
        setattr(backend, name, AsyncMock(return_value={}))
    backend.describe = MagicMock(return_value="mock://backend")
    backend.aclose = AsyncMock()
    return backend
