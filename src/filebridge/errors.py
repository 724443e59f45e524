"""Exception hierarchy for FileBridge.

Three families map onto the three ways a request can fail:
- Transport errors (SessionNotFound, MalformedRequest, ChannelClosed) are
  reported to the immediate caller as HTTP errors.
- Protocol errors (UnknownCapability) become JSON-RPC error envelopes.
- Capability errors (BackendError and subclasses, InvalidArguments) become
  successful envelopes whose payload carries the failure.
"""

from __future__ import annotations


class FileBridgeError(Exception):
    """Base class for all FileBridge errors."""


class ConfigError(FileBridgeError):
    """Invalid configuration value."""


# =============================================================================
# Capability errors
# =============================================================================


class BackendError(FileBridgeError):
    """A backend operation failed."""


class ConfinementError(BackendError):
    """A path resolved outside the confined root."""

    def __init__(self, path: str) -> None:
        super().__init__("Access outside repository not permitted.")
        self.path = path


class GitError(BackendError):
    """A git command exited with a non-zero status."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class InvalidArguments(FileBridgeError):
    """Tool arguments do not match the capability's parameter schema."""


# =============================================================================
# Protocol errors
# =============================================================================


class UnknownCapability(FileBridgeError):
    """The requested capability is not in the catalog."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


# =============================================================================
# Transport errors
# =============================================================================


class SessionNotFound(FileBridgeError):
    """The session id is unknown or its stream has closed."""

    def __init__(self, session_id: str | None) -> None:
        super().__init__(f"Invalid or expired session: {session_id}")
        self.session_id = session_id


class ChannelClosed(FileBridgeError):
    """A write was attempted on a closed session channel."""


class MalformedRequest(FileBridgeError):
    """The inbound message is not a valid request envelope."""
