"""Outer surfaces: Flask HTTP routes, LLM tool dispatch, MCP stdio server."""
