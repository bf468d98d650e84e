"""HTTP and MCP entry points over the pattern catalog."""
