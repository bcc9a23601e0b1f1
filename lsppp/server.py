"""MCP server entry point for the headless C/C++ editor tools."""

from mcp.server.fastmcp import FastMCP

from lsppp.tools.editor_tools import register_editor_tools

mcp = FastMCP("lsppp")


def main():
    """Main entry point for the MCP server."""
    register_editor_tools(mcp)
    mcp.run()


if __name__ == "__main__":
    main()
