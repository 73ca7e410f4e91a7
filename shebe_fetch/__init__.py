"""Release binary acquirer for the shebe MCP server."""

__version__ = "0.1.0"
