"""FileBridge - sandboxed file and git operations over REST and MCP."""

__version__ = "1.0.0"
