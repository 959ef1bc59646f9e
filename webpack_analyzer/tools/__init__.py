"""Tool implementations exposed by the MCP server."""
