"""Capability catalog.

Static description of every tool FileBridge exposes. The catalog is pure
data: it is defined once at import time, identical for every session, and
its order is stable so clients may cache `tools/list` results.

Usage:
    from filebridge.catalog import get_capability, list_capabilities

    for descriptor in list_capabilities():
        print(descriptor.name, descriptor.input_schema)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .errors import InvalidArguments

# JSON Schema type name -> accepted Python types
_JSON_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
    "object": (dict,),
    "array": (list,),
}


@dataclass(frozen=True)
class ParameterSpec:
    """A single named tool parameter."""

    name: str
    type: str = "string"
    description: str = ""
    required: bool = True

    def to_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": self.type}
        if self.description:
            schema["description"] = self.description
        return schema

    def accepts(self, value: Any) -> bool:
        """Check a value against the parameter's JSON type."""
        expected = _JSON_TYPES.get(self.type, (object,))
        # bool is an int subclass but never a valid JSON integer/number
        if isinstance(value, bool) and self.type != "boolean":
            return False
        return isinstance(value, expected)


@dataclass(frozen=True)
class CapabilityDescriptor:
    """Describes one callable tool.

    Attributes:
        name: Unique tool name, also the backend method invoked for it
        description: Human-readable description shown to clients
        parameters: Ordered parameter specs
    """

    name: str
    description: str
    parameters: tuple[ParameterSpec, ...] = ()

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON Schema for the tool's arguments."""
        return {
            "type": "object",
            "properties": {p.name: p.to_schema() for p in self.parameters},
            "required": [p.name for p in self.parameters if p.required],
        }

    def to_dict(self) -> dict[str, Any]:
        """Wire representation used by `tools/list`."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


def _path(description: str = "Relative path to file") -> ParameterSpec:
    return ParameterSpec("path", "string", description)


CATALOG: tuple[CapabilityDescriptor, ...] = (
    CapabilityDescriptor(
        name="read_file",
        description="Read file contents from the repository",
        parameters=(_path(),),
    ),
    CapabilityDescriptor(
        name="write_file",
        description="Write content to a file, creating parent directories as needed",
        parameters=(_path(), ParameterSpec("content", "string", "File content to write")),
    ),
    CapabilityDescriptor(
        name="append_file",
        description="Append content to a file",
        parameters=(_path(), ParameterSpec("content", "string", "Content to append")),
    ),
    CapabilityDescriptor(
        name="list_files",
        description="List files and directories at a path",
        parameters=(_path("Relative path to directory"),),
    ),
    CapabilityDescriptor(
        name="delete_file",
        description="Delete a file from the repository",
        parameters=(_path("Relative path to file to delete"),),
    ),
    CapabilityDescriptor(
        name="mkdir",
        description="Create a directory (and parent directories if needed)",
        parameters=(_path("Relative path for new directory"),),
    ),
    CapabilityDescriptor(
        name="git_status",
        description="Get the current git status of the repository",
    ),
    CapabilityDescriptor(
        name="git_commit",
        description="Stage all changes and commit with a message",
        parameters=(ParameterSpec("message", "string", "Commit message"),),
    ),
    CapabilityDescriptor(
        name="hash_file",
        description="Calculate the SHA-256 hash of a file",
        parameters=(_path(),),
    ),
    CapabilityDescriptor(
        name="git_push",
        description="Push a branch to the origin remote",
        parameters=(ParameterSpec("branch", "string", "Branch to push"),),
    ),
    CapabilityDescriptor(
        name="git_pull",
        description="Pull a branch from the origin remote",
        parameters=(ParameterSpec("branch", "string", "Branch to pull"),),
    ),
    CapabilityDescriptor(
        name="list_recent_changes",
        description="List the most recent git commits",
    ),
)

_BY_NAME: dict[str, CapabilityDescriptor] = {c.name: c for c in CATALOG}


def list_capabilities() -> tuple[CapabilityDescriptor, ...]:
    """Return every capability in catalog order."""
    return CATALOG


def get_capability(name: str) -> CapabilityDescriptor | None:
    """Look up a capability by name."""
    return _BY_NAME.get(name)


def validate_arguments(
    descriptor: CapabilityDescriptor, arguments: Mapping[str, Any] | None
) -> dict[str, Any]:
    """Check tool arguments against a descriptor's parameter schema.

    Returns:
        A plain dict of the validated arguments

    Raises:
        InvalidArguments: On a non-mapping argument bag, missing required
            fields, unexpected fields, or values of the wrong type
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise InvalidArguments(f"Arguments for {descriptor.name} must be an object")

    specs = {p.name: p for p in descriptor.parameters}

    unexpected = [key for key in arguments if key not in specs]
    if unexpected:
        raise InvalidArguments(
            f"Unexpected argument(s) for {descriptor.name}: {', '.join(sorted(unexpected))}"
        )

    missing = [p.name for p in descriptor.parameters if p.required and p.name not in arguments]
    if missing:
        raise InvalidArguments(
            f"Missing required argument(s) for {descriptor.name}: {', '.join(missing)}"
        )

    for key, value in arguments.items():
        spec = specs[key]
        if not spec.accepts(value):
            raise InvalidArguments(f"Argument '{key}' for {descriptor.name} must be a {spec.type}")

    return dict(arguments)
