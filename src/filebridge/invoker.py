"""Capability invoker.

Translates a (tool name, arguments) pair into exactly one backend call and
normalizes the outcome into a ToolResult. Backend faults never escape
`invoke`; only an unknown tool name does, as UnknownCapability, so the
caller can turn it into a protocol-level error.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .catalog import get_capability, validate_arguments
from .errors import InvalidArguments, UnknownCapability

if TYPE_CHECKING:
    from .backend import Backend

logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    """Normalized result of a capability invocation.

    Attributes:
        success: Whether the backend operation succeeded
        output: Backend payload on success (JSON-serializable mapping)
        error: Human-readable failure message when success is False
    """

    success: bool = True
    output: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def outcome(self) -> str:
        return "ok" if self.success else "error"

    def to_payload(self) -> dict[str, Any]:
        """Wire payload: {"status": "ok", ...} or {"status": "error", "error": ...}."""
        if self.success:
            return {"status": "ok", **self.output}
        return {"status": "error", "error": self.error or "Unknown error"}

    @classmethod
    def failure(cls, message: str) -> ToolResult:
        return cls(success=False, error=message)


class CapabilityInvoker:
    """Invokes catalog capabilities against an injected backend."""

    def __init__(self, backend: Backend) -> None:
        self._backend = backend

    @property
    def backend(self) -> Backend:
        return self._backend

    async def invoke(self, name: str, arguments: Mapping[str, Any] | None = None) -> ToolResult:
        """Invoke a capability.

        Args:
            name: Capability name from the catalog
            arguments: Named arguments matching the capability's schema

        Returns:
            ToolResult describing the backend outcome

        Raises:
            UnknownCapability: If the name is not in the catalog
        """
        descriptor = get_capability(name)
        if descriptor is None:
            raise UnknownCapability(name)

        try:
            kwargs = validate_arguments(descriptor, arguments)
        except InvalidArguments as e:
            logger.info(f"Rejected arguments for {name}: {e}")
            return ToolResult.failure(str(e))

        try:
            operation = getattr(self._backend, descriptor.name)
            output = dict(await operation(**kwargs) or {})
        except Exception as e:
            logger.warning(f"Capability '{name}' failed: {e}")
            return ToolResult.failure(str(e) or type(e).__name__)

        return ToolResult(success=True, output=output)
