"""lsppp - a lightweight LSP client for C/C++ with a headless editor and MCP tools."""

__version__ = "1.0.0"
