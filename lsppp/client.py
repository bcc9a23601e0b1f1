"""LSP client controller

Connects one editor host to one language server:
- server lifecycle (initialize handshake, shutdown, unexpected exit)
- document sync (didOpen / didChange / didSave)
- completion overlay (query, filter, page, place, confirm)
- formatting, go-to-definition and references
- diagnostics and background indexing progress

All actions are synchronous: they hand a request to the session and return
its PendingRequest. The response is handled later, when the server output
that completes it is fed to the session.
"""

import asyncio
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from lsppp.host import Buffer, EditorHost
from lsppp.lsp.json_value import NULL, as_string, get_path, is_nothing
from lsppp.lsp.lsp_utils import (
    is_word_char,
    language_id,
    path_to_uri,
    relative_to_root,
    uri_to_path,
    word_prefix,
)
from lsppp.lsp.session import PendingRequest, Session
from lsppp.lsp.transport import ProcessTransport
from lsppp.lsp.types import (
    Position,
    diagnostics_from_params,
    locations_from_result,
    text_edits_from_result,
)
from lsppp.ui.completion import CompletionState, extract_items, overlay_size
from lsppp.ui.tooltip import Tooltip
from lsppp.ui.viewport import place
from lsppp.utils.config_utils import (
    get_config_bool,
    get_config_int,
    get_config_list,
    get_server_command,
)
from lsppp.utils.logging_utils import Logger

STATUS_PREFIX = "LSP++: "
DIAGNOSTIC_OWNER = "lsppp"

MSG_NOT_RUNNING = "Server not running"
MSG_ALREADY_RUNNING = "Server already running"
MSG_INITIALIZED = "Server Initialized"
MSG_STOPPED = "Server Stopped"
MSG_NO_DEFINITION = "No definition found"
MSG_NO_REFERENCES = "No references found"
MSG_NO_FORMAT_CHANGES = "No formatting changes"
MSG_FORMATTED = "Formatted"

TransportFactory = Callable[..., Any]


class LSPClient:
    """Editor-side LSP client driving a single language server."""

    def __init__(
        self,
        host: EditorHost,
        transport_factory: TransportFactory = ProcessTransport,
        root_dir: Optional[str] = None,
    ):
        """initialize client

        Args:
            host: the editor the client renders into
            transport_factory: builds the server transport as
                factory(command, on_stdout, on_exit, cwd)
            root_dir: project root (defaults to the working directory)
        """
        self.host = host
        self.transport_factory = transport_factory
        self.root_dir = Path(root_dir or os.getcwd())
        self.root_uri = ""
        self.session = Session()
        self.transport = None
        self.capabilities: Any = {}
        self.versions: Dict[str, int] = {}
        self.completion = CompletionState()
        self.tooltip = Tooltip(host)
        self.is_formatting = False
        self.start_task: Optional[asyncio.Task] = None
        self.logger = Logger.instance()

        # background indexing status
        self._indexing_token: Any = None
        self._indexing_in_progress = False
        self._indexing_percentage: Optional[int] = None
        self._indexing_message = ""

        self.session.on_notification("textDocument/publishDiagnostics", self._on_diagnostics)
        self.session.on_notification("$/progress", self._on_progress)
        self.session.on_notification("window/workDoneProgress/create", self._on_progress_create)

    def install(self):
        """register the client's commands, hooks and key bindings on the host"""
        commands = {
            "lspppcomplete": self.completion_action,
            "lsppp_confirm": self.confirm_completion,
            "lsppp_escape": self.close_tooltip,
            "lsppp_backspace": self.backspace_action,
            "lspppformat": self.format_action,
            "lspppdef": self.definition_action,
            "lsppprefs": self.references_action,
        }
        for name, func in commands.items():
            self.host.register_command(name, func)

        hooks = {
            "on_rune": self.on_rune,
            "on_save": self.on_save,
            "on_buffer_open": self.on_buffer_open,
            "pre_cursor_up": self.pre_cursor_up,
            "pre_cursor_down": self.pre_cursor_down,
            "pre_insert_newline": self.pre_insert_newline,
            "pre_indent_selection": self.pre_indent_selection,
            "pre_tab_switch": self.pre_tab_switch,
        }
        for name, func in hooks.items():
            self.host.set_hook(name, func)

        self.host.bind_key("CtrlSpace", "command:lspppcomplete")

    # ═══════════════════════════════════════════════════════════════════
    # server lifecycle
    # ═══════════════════════════════════════════════════════════════════

    @property
    def is_running(self) -> bool:
        return self.transport is not None and self.session.is_alive

    async def start_server(self) -> Optional[PendingRequest]:
        """spawn the language server and send initialize

        Returns:
            the pending initialize request, or None if nothing was started
        """
        if self.is_running:
            self._status(MSG_ALREADY_RUNNING)
            return None

        self.root_uri = path_to_uri(str(self.root_dir))
        command = get_server_command()
        transport = self.transport_factory(command, self._on_stdout, self.on_exit, str(self.root_dir))
        try:
            await transport.start()
        except OSError as e:
            self.logger.error(f"failed to start {command[0]}: {e}")
            self._status(f"Failed to start {command[0]}")
            return None

        self.transport = transport
        self.session.attach(transport.send)
        return self.session.request(
            "initialize",
            {
                "processId": os.getpid(),
                "rootUri": self.root_uri,
                "capabilities": {
                    "textDocument": {
                        "completion": {"completionItem": {"snippetSupport": False}},
                        "formatting": {},
                        "definition": {},
                        "references": {},
                    },
                    "window": {"workDoneProgress": True},
                },
            },
            self._on_initialize,
        )

    def _on_initialize(self, session: Session, response: Dict[str, Any]):
        session.notify("initialized", {})
        self.capabilities = get_path(response, "result", "capabilities", default={})
        self._status(MSG_INITIALIZED)
        buf = self.host.current_buffer()
        if self.is_tracked(buf):
            self.did_open(buf)

    async def stop_server(self):
        """shut the server down and forget all session state"""
        if not self.is_running:
            return

        transport = self.transport
        # best effort: the process is terminated below either way
        self.session.request("shutdown", {}, lambda session, response: None)
        self.session.notify("exit", {})
        await transport.drain()

        self._teardown()
        await transport.stop()
        self._status(MSG_STOPPED)

    def on_exit(self, returncode: Optional[int]):
        """the server process went away on its own; no restart"""
        self.logger.warning(f"language server gone (code {returncode}), session reset")
        self._teardown()

    def _teardown(self):
        self.transport = None
        self.session.detach()
        self.versions.clear()
        self.close_tooltip()
        self._reset_indexing()

    def _on_stdout(self, data: bytes):
        if self.session.is_alive:
            self.session.feed(data)

    def _require_server(self) -> bool:
        if not self.is_running:
            self._status(MSG_NOT_RUNNING)
            return False
        return True

    def _status(self, text: str):
        self.host.message(STATUS_PREFIX + text)

    # ═══════════════════════════════════════════════════════════════════
    # document sync
    # ═══════════════════════════════════════════════════════════════════

    def did_open(self, buf: Buffer) -> bool:
        if not self.is_running:
            return False
        self.versions[buf.uri] = 1
        return self.session.notify(
            "textDocument/didOpen",
            {
                "textDocument": {
                    "uri": buf.uri,
                    "languageId": language_id(buf.filetype),
                    "version": 1,
                    "text": buf.text,
                }
            },
        )

    def did_change(self, buf: Buffer) -> bool:
        """send the full document text with the next version number"""
        if not self.is_running:
            return False
        version = self.versions.get(buf.uri, 0) + 1
        self.versions[buf.uri] = version
        return self.session.notify(
            "textDocument/didChange",
            {
                "textDocument": {"version": version, "uri": buf.uri},
                "contentChanges": [{"text": buf.text}],
            },
        )

    def did_save(self, buf: Buffer) -> bool:
        if not self.is_running:
            return False
        return self.session.notify("textDocument/didSave", {"textDocument": {"uri": buf.uri}})

    def is_tracked(self, buf: Optional[Buffer]) -> bool:
        """whether the buffer's file type is handled by the language server"""
        return buf is not None and buf.filetype in get_config_list("lsppp", "filetypes")

    # ═══════════════════════════════════════════════════════════════════
    # completion
    # ═══════════════════════════════════════════════════════════════════

    def completion_action(self) -> Optional[PendingRequest]:
        if not self._require_server():
            return None
        buf = self.host.current_buffer()
        if buf is None:
            return None
        # retained: the slot keeps serving re-queries while the user types
        return self.session.request(
            "textDocument/completion",
            self._position_params(buf),
            self._on_completion,
            retain=True,
        )

    def _on_completion(self, session: Session, response: Dict[str, Any]):
        items = extract_items(response.get("result", NULL))
        buf = self.host.current_buffer()
        if not items or buf is None:
            self.close_tooltip()
            return
        self.completion.update(items, self._prefix(buf))
        self.show_completion()

    def show_completion(self):
        """place the overlay at the start of the word and draw the visible page"""
        buf = self.host.current_buffer()
        if buf is None or not self.completion.items:
            self.close_tooltip()
            return

        prefix = self._prefix(buf)
        width, height = overlay_size(self.completion.items, get_config_int("ui", "max_visible_items"))
        anchor = self.host.screen_position(
            Position(buf.cursor.line, buf.cursor.character - len(prefix))
        )
        rect = place(
            anchor,
            width,
            height,
            self.host.view_rect(),
            self.host.reserved_y(),
            get_config_int("ui", "safety_margin"),
        )
        self.tooltip.show(self.completion.render(rect.height), rect)

    def cycle_selection(self, delta: int):
        if not self.tooltip.is_open:
            return
        self.completion.cycle(delta)
        self.show_completion()

    def confirm_completion(self):
        """replace the word prefix with the selected candidate"""
        if not self.tooltip.is_open:
            return
        item = self.completion.current()
        buf = self.host.current_buffer()
        if item is None or buf is None:
            self.close_tooltip()
            return

        prefix = self._prefix(buf)
        start = buf.cursor
        if prefix:
            start = Position(buf.cursor.line, buf.cursor.character - len(prefix))
            self.host.remove(start, buf.cursor)
        self.host.set_cursor(self.host.insert(start, item.text))
        self.close_tooltip()
        self.did_change(buf)

    def close_tooltip(self):
        self.tooltip.close()
        self.completion.clear()

    def backspace_action(self):
        """backspace that re-queries (or closes) an open completion overlay"""
        if not self.tooltip.is_open:
            self.host.backspace()
            return
        self.host.backspace()
        buf = self.host.current_buffer()
        self.did_change(buf)
        if self._prefix(buf) == "":
            self.close_tooltip()
        else:
            self.completion_action()

    def _prefix(self, buf: Buffer) -> str:
        return word_prefix(buf.line(buf.cursor.line), buf.cursor.character)

    def _position_params(self, buf: Buffer) -> Dict[str, Any]:
        return {"textDocument": {"uri": buf.uri}, "position": buf.cursor.to_json()}

    # ═══════════════════════════════════════════════════════════════════
    # formatting, navigation
    # ═══════════════════════════════════════════════════════════════════

    def format_action(self) -> Optional[PendingRequest]:
        if not self._require_server():
            return None
        buf = self.host.current_buffer()
        if buf is None:
            return None
        self.did_change(buf)
        return self.session.request(
            "textDocument/formatting",
            {
                "textDocument": {"uri": buf.uri},
                "options": {
                    "tabSize": get_config_int("format", "tab_size"),
                    "insertSpaces": get_config_bool("format", "insert_spaces"),
                },
            },
            self._on_format,
        )

    def _on_format(self, session: Session, response: Dict[str, Any]):
        edits = text_edits_from_result(response.get("result", NULL))
        buf = self.host.current_buffer()
        if not edits or buf is None:
            self._status(MSG_NO_FORMAT_CHANGES)
            return

        cursor = buf.cursor
        # bottom-up, so earlier ranges stay valid while later ones change;
        # edits sharing a start are applied last-first so their text keeps array order
        ordered = sorted(enumerate(edits), key=lambda pair: (pair[1].range.start, pair[0]), reverse=True)
        self.is_formatting = True
        try:
            for _, edit in ordered:
                self.host.remove(edit.range.start, edit.range.end)
                if edit.new_text:
                    self.host.insert(edit.range.start, edit.new_text)
            self.did_change(buf)
            self.host.save()
        finally:
            self.is_formatting = False
        self.host.set_cursor(cursor)
        self._status(MSG_FORMATTED)

    def definition_action(self) -> Optional[PendingRequest]:
        if not self._require_server():
            return None
        buf = self.host.current_buffer()
        if buf is None:
            return None
        return self.session.request("textDocument/definition", self._position_params(buf), self._on_definition)

    def _on_definition(self, session: Session, response: Dict[str, Any]):
        locations = locations_from_result(response.get("result", NULL))
        if not locations:
            self._status(MSG_NO_DEFINITION)
            return

        target = locations[0]
        path = uri_to_path(target.uri)
        buf = self.host.current_buffer()
        if buf is None or buf.path != path:
            self.host.open_file(path)
        self.host.set_cursor(target.range.start)
        self.host.center()

    def references_action(self) -> Optional[PendingRequest]:
        if not self._require_server():
            return None
        buf = self.host.current_buffer()
        if buf is None:
            return None
        params = self._position_params(buf)
        params["context"] = {"includeDeclaration": True}
        return self.session.request("textDocument/references", params, self._on_references)

    def _on_references(self, session: Session, response: Dict[str, Any]):
        locations = locations_from_result(response.get("result", NULL))
        if not locations:
            self._status(MSG_NO_REFERENCES)
            return
        lines: List[str] = [
            f"{relative_to_root(loc.uri, self.root_uri)}:{loc.range.start.line}:{loc.range.start.character}"
            for loc in locations
        ]
        self.host.show_panel("References", "\n".join(lines))

    # ═══════════════════════════════════════════════════════════════════
    # server notifications
    # ═══════════════════════════════════════════════════════════════════

    def _on_diagnostics(self, session: Session, params: Any):
        """replace the active document's diagnostics; other documents are ignored"""
        buf = self.host.current_buffer()
        if buf is None or get_path(params, "uri", default="") != buf.uri:
            return
        self.host.clear_diagnostics(DIAGNOSTIC_OWNER)
        for diagnostic in diagnostics_from_params(params):
            self.host.add_diagnostic(DIAGNOSTIC_OWNER, diagnostic)

    def _on_progress_create(self, session: Session, params: Any):
        self.logger.debug(f"progress token created: {get_path(params, 'token', default=None)}")

    def _on_progress(self, session: Session, params: Any):
        """track background indexing from $/progress"""
        token = get_path(params, "token", default=None)
        value = get_path(params, "value", default={})
        kind = get_path(value, "kind", default="")

        if kind == "begin":
            title = as_string(get_path(value, "title", default=""))
            if "index" in title.lower() or "background" in title.lower():
                self._indexing_token = token
                self._indexing_in_progress = True
                self._indexing_percentage = 0
                self._indexing_message = get_path(value, "message", default="Starting...")
        elif token is not None and token == self._indexing_token:
            if kind == "report":
                percentage = get_path(value, "percentage", default=None)
                self._indexing_percentage = None if is_nothing(percentage) else int(percentage)
                self._indexing_message = get_path(value, "message", default="")
            elif kind == "end":
                self._indexing_in_progress = False
                self._indexing_percentage = 100
                self._indexing_message = "Complete"
                self._indexing_token = None

    def _reset_indexing(self):
        self._indexing_token = None
        self._indexing_in_progress = False
        self._indexing_percentage = None
        self._indexing_message = ""

    @property
    def indexing_status(self) -> str:
        if not self._indexing_in_progress:
            return "idle"
        if self._indexing_percentage is not None:
            return f"indexing ({self._indexing_percentage}%)"
        return "indexing"

    # ═══════════════════════════════════════════════════════════════════
    # editor hooks
    # ═══════════════════════════════════════════════════════════════════

    def on_rune(self, char: str):
        """typed character: sync the document, then re-query or close completion"""
        buf = self.host.current_buffer()
        if not self.is_tracked(buf) or not self.is_running:
            return
        self.did_change(buf)
        if get_config_bool("lsppp", "autocomplete"):
            if is_word_char(char):
                self.completion_action()
            else:
                self.close_tooltip()

    def on_save(self, buf: Optional[Buffer] = None):
        if self.is_formatting:
            return
        buf = buf or self.host.current_buffer()
        if not self.is_tracked(buf):
            return
        if get_config_bool("lsppp", "autoformat") and self.is_running:
            self.format_action()
        self.did_save(buf)

    def on_buffer_open(self, buf: Buffer):
        self.close_tooltip()
        if not self.is_tracked(buf) or not get_config_bool("lsppp", "autostart"):
            return
        if self.is_running:
            self.did_open(buf)
        else:
            self._schedule_start()

    def _schedule_start(self):
        """autostart from a sync hook: run start_server on the event loop"""
        if self.start_task is not None and not self.start_task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.logger.debug("no event loop, autostart skipped")
            return
        self.start_task = loop.create_task(self.start_server())

    def pre_cursor_up(self) -> bool:
        if self.tooltip.is_open:
            self.cycle_selection(-1)
            return False
        return True

    def pre_cursor_down(self) -> bool:
        if self.tooltip.is_open:
            self.cycle_selection(1)
            return False
        return True

    def pre_insert_newline(self) -> bool:
        if self.tooltip.is_open:
            self.confirm_completion()
            return False
        return True

    def pre_indent_selection(self) -> bool:
        if self.tooltip.is_open:
            self.confirm_completion()
            return False
        return True

    def pre_tab_switch(self) -> bool:
        self.close_tooltip()
        return True
