"""Editor MCP tools for driving the C/C++ language server headlessly.

All tools act on the shared Workspace singleton: one in-memory editor and
one language server, kept alive between calls. Tool names follow the
editor commands they stand in for.

Tools (17 total):
- Server: lspppstart, lspppstop, lsp_status
- Buffers: open_file, save_file, type_text, move_cursor, show_screen
- Completion: lspppcomplete, completion_next, completion_prev,
  lsppp_confirm, lsppp_escape, lsppp_backspace
- Navigation: lspppformat, lspppdef, lsppprefs
"""

from mcp.server.fastmcp import FastMCP

from lsppp.lsp.types import Position
from lsppp.workspace import Workspace


def _no_buffer() -> str:
    return "No file is open. Call 'open_file' first."


def register_editor_tools(mcp: FastMCP):
    """Register all editor MCP tools (17 tools total)."""

    # ═══════════════════════════════════════════════════════════════════
    # Server
    # ═══════════════════════════════════════════════════════════════════

    @mcp.tool()
    async def lspppstart() -> str:
        """Start the language server for the working directory.

        Returns:
            Status message (e.g. "LSP++: Server Initialized")
        """
        return await Workspace.instance().start()

    @mcp.tool()
    async def lspppstop() -> str:
        """Shut the language server down."""
        return await Workspace.instance().stop()

    @mcp.tool()
    async def lsp_status() -> str:
        """Check language server and editor status.

        Returns:
            Server state, indexing progress and open buffers
        """
        workspace = Workspace.instance()
        client = workspace.client
        editor = workspace.editor
        buf = editor.current_buffer()

        status_lines = [
            f"📊 LSP++ Status: {'RUNNING' if client.is_running else 'STOPPED'}",
            f"  Root: {client.root_dir}",
            f"  Indexing: {client.indexing_status}",
            f"  Open buffers: {len(editor.buffers)}",
        ]
        if buf is not None:
            status_lines.append(
                f"  Active: {buf.path}:{buf.cursor.line + 1}:{buf.cursor.character + 1}"
            )
            for diagnostic in buf.diagnostics.get("lsppp", []):
                start = diagnostic.range.start
                status_lines.append(
                    f"    {diagnostic.kind}: {start.line + 1}:{start.character + 1} {diagnostic.message}"
                )
        if editor.status:
            status_lines.append(f"  Last message: {editor.status}")
        return "\n".join(status_lines)

    # ═══════════════════════════════════════════════════════════════════
    # Buffers
    # ═══════════════════════════════════════════════════════════════════

    @mcp.tool()
    async def open_file(file_path: str) -> str:
        """Open a file in the editor (starts the server for C/C++ if autostart is on).

        Args:
            file_path: Path to the source file

        Returns:
            Opened buffer summary
        """
        try:
            return await Workspace.instance().open_file(file_path)
        except OSError as e:
            return f"❌ Could not open {file_path}: {e}"

    @mcp.tool()
    async def save_file() -> str:
        """Save the active buffer (formats it first when autoformat is on)."""
        workspace = Workspace.instance()
        if workspace.editor.current_buffer() is None:
            return _no_buffer()
        return await workspace.run(workspace.editor.save)

    @mcp.tool()
    async def type_text(text: str) -> str:
        """Type text at the cursor, as if entered key by key.

        Word characters trigger completion queries; newlines confirm an open
        completion menu or insert a line break.

        Args:
            text: Characters to type

        Returns:
            Rendered screen after the last server response
        """
        workspace = Workspace.instance()
        if workspace.editor.current_buffer() is None:
            return _no_buffer()
        return await workspace.run(lambda: workspace.editor.type_text(text))

    @mcp.tool()
    async def move_cursor(line: int, character: int) -> str:
        """Move the cursor.

        Args:
            line: Line number (1-based, as shown in editors)
            character: Character offset (1-based, as shown in editors)
        """
        workspace = Workspace.instance()
        if workspace.editor.current_buffer() is None:
            return _no_buffer()
        workspace.client.close_tooltip()
        workspace.editor.set_cursor(Position(line - 1, character - 1))
        return workspace.editor.render()

    @mcp.tool()
    async def show_screen() -> str:
        """Render the editor screen, including any completion overlay."""
        return Workspace.instance().editor.render()

    # ═══════════════════════════════════════════════════════════════════
    # Completion
    # ═══════════════════════════════════════════════════════════════════

    @mcp.tool()
    async def lspppcomplete() -> str:
        """Request completion at the cursor and show the menu."""
        workspace = Workspace.instance()
        return await workspace.run(lambda: workspace.editor.press("CtrlSpace"))

    @mcp.tool()
    async def completion_next() -> str:
        """Select the next completion candidate (wraps around)."""
        workspace = Workspace.instance()
        return await workspace.run(lambda: workspace.editor.press("Down"))

    @mcp.tool()
    async def completion_prev() -> str:
        """Select the previous completion candidate (wraps around)."""
        workspace = Workspace.instance()
        return await workspace.run(lambda: workspace.editor.press("Up"))

    @mcp.tool()
    async def lsppp_confirm() -> str:
        """Insert the selected completion candidate."""
        workspace = Workspace.instance()
        return await workspace.run(workspace.client.confirm_completion)

    @mcp.tool()
    async def lsppp_escape() -> str:
        """Close the completion menu."""
        workspace = Workspace.instance()
        return await workspace.run(workspace.client.close_tooltip)

    @mcp.tool()
    async def lsppp_backspace() -> str:
        """Backspace; an open completion menu is re-queried or closed."""
        workspace = Workspace.instance()
        if workspace.editor.current_buffer() is None:
            return _no_buffer()
        return await workspace.run(lambda: workspace.editor.press("Backspace"))

    # ═══════════════════════════════════════════════════════════════════
    # Formatting and navigation
    # ═══════════════════════════════════════════════════════════════════

    @mcp.tool()
    async def lspppformat() -> str:
        """Format the active buffer with the language server and save it."""
        workspace = Workspace.instance()
        await workspace.run(workspace.client.format_action)
        return workspace.editor.status

    @mcp.tool()
    async def lspppdef() -> str:
        """Jump to the definition of the symbol under the cursor.

        Returns:
            New cursor location, or a status message
        """
        workspace = Workspace.instance()
        editor = workspace.editor
        editor.status = ""
        await workspace.run(workspace.client.definition_action)
        buf = editor.current_buffer()
        if editor.status or buf is None:
            return editor.status or _no_buffer()
        return f"{buf.path}:{buf.cursor.line + 1}:{buf.cursor.character + 1}"

    @mcp.tool()
    async def lsppprefs() -> str:
        """List references to the symbol under the cursor.

        Returns:
            One ./relative/path:line:character per reference (0-based)
        """
        workspace = Workspace.instance()
        editor = workspace.editor
        editor.panels.pop("References", None)
        await workspace.run(workspace.client.references_action)
        return editor.panels.get("References", editor.status)
