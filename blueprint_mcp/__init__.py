"""MCP tools that drive the Blueprint Edit backend."""
