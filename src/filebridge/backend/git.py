"""Git operations on the confined repository.

Runs the `git` command line in a subprocess. Every command targets the
repository root with `git -C <root>`; a non-zero exit raises GitError
carrying git's own message.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from ..errors import GitError

logger = logging.getLogger(__name__)

RECENT_CHANGES_LIMIT = 10
DEFAULT_REMOTE = "origin"

# Unit/record separators keep commit subjects with arbitrary text parseable
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = _FIELD_SEP.join(["%H", "%aI", "%s", "%an", "%ae"]) + _RECORD_SEP


class GitBackend:
    """Version-control capabilities for the repository at `root`."""

    def __init__(self, root: str | Path, git_executable: str = "git") -> None:
        self.root = Path(root).expanduser().resolve()
        self._git = git_executable

    async def _run(self, *args: str) -> str:
        """Run a git command and return its stdout."""
        logger.debug(f"git {' '.join(args)}")
        try:
            proc = await asyncio.create_subprocess_exec(
                self._git,
                "-C",
                str(self.root),
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise GitError(f"git executable not found: {self._git}") from e

        stdout, stderr = await proc.communicate()
        out = stdout.decode("utf-8", errors="replace")
        err = stderr.decode("utf-8", errors="replace")

        if proc.returncode != 0:
            message = err.strip() or out.strip() or f"git {args[0]} failed"
            raise GitError(message, returncode=proc.returncode)
        # push/pull report progress on stderr
        return out if out.strip() else err

    async def git_status(self) -> dict[str, Any]:
        output = await self._run("status", "--porcelain=v1", "--branch")
        return {"git_status": parse_status(output)}

    async def git_commit(self, message: str) -> dict[str, Any]:
        await self._run("add", ".")
        await self._run("commit", "-m", message)
        head = await self._run("log", "-1", f"--format={_LOG_FORMAT}")
        commits = parse_log(head)
        branch = (await self._run("rev-parse", "--abbrev-ref", "HEAD")).strip()
        record = commits[0] if commits else {}
        return {
            "commit": {
                "hash": record.get("hash"),
                "branch": branch,
                "message": record.get("message", message),
            }
        }

    async def git_push(self, branch: str) -> dict[str, Any]:
        _check_branch(branch)
        output = await self._run("push", "--end-of-options", DEFAULT_REMOTE, branch)
        return {"push": {"remote": DEFAULT_REMOTE, "branch": branch, "output": output.strip()}}

    async def git_pull(self, branch: str) -> dict[str, Any]:
        _check_branch(branch)
        output = await self._run("pull", "--end-of-options", DEFAULT_REMOTE, branch)
        return {"pull": {"remote": DEFAULT_REMOTE, "branch": branch, "output": output.strip()}}

    async def list_recent_changes(self) -> dict[str, Any]:
        output = await self._run("log", f"-n{RECENT_CHANGES_LIMIT}", f"--format={_LOG_FORMAT}")
        return {"commits": parse_log(output)}


def _check_branch(branch: str) -> None:
    # A leading dash would be parsed as an option (e.g. --upload-pack=<cmd>)
    if not branch or branch.startswith("-"):
        raise GitError(f"Invalid branch name: {branch!r}")


def parse_status(output: str) -> dict[str, Any]:
    """Parse `git status --porcelain=v1 --branch` output."""
    status: dict[str, Any] = {
        "current": None,
        "tracking": None,
        "ahead": 0,
        "behind": 0,
        "files": [],
    }

    for line in output.splitlines():
        if line.startswith("## "):
            _parse_branch_line(line[3:], status)
            continue
        if len(line) < 4:
            continue

        index, working_dir, path = line[0], line[1], line[3:]
        if " -> " in path:
            path = path.split(" -> ", 1)[1]
        status["files"].append({"path": path, "index": index, "working_dir": working_dir})

    status["isClean"] = not status["files"]
    return status


def _parse_branch_line(header: str, status: dict[str, Any]) -> None:
    # Forms: "main", "main...origin/main [ahead 1, behind 2]", "No commits yet on main"
    if header.startswith("No commits yet on "):
        status["current"] = header[len("No commits yet on ") :]
        return

    tracking_info = ""
    if " [" in header and header.endswith("]"):
        header, tracking_info = header[:-1].split(" [", 1)

    if "..." in header:
        current, tracking = header.split("...", 1)
        status["current"] = current
        status["tracking"] = tracking
    else:
        status["current"] = header

    for part in tracking_info.split(","):
        part = part.strip()
        if part.startswith("ahead "):
            status["ahead"] = int(part[len("ahead ") :])
        elif part.startswith("behind "):
            status["behind"] = int(part[len("behind ") :])


def parse_log(output: str) -> list[dict[str, Any]]:
    """Parse `git log` output produced with the module's record format."""
    commits = []
    for record in output.split(_RECORD_SEP):
        record = record.strip("\n")
        if not record:
            continue
        fields = record.split(_FIELD_SEP)
        if len(fields) != 5:
            continue
        commit_hash, date, message, author_name, author_email = fields
        commits.append(
            {
                "hash": commit_hash,
                "date": date,
                "message": message,
                "author_name": author_name,
                "author_email": author_email,
            }
        )
    return commits
