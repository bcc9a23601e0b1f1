"""LSPClient tests against the headless editor and a fake server

test classes:
- TestLifecycle: start, initialize handshake, stop, unexpected exit
- TestDocumentSync: didOpen / didChange / didSave
- TestCompletion: overlay, navigation keys, confirm, backspace
- TestFormatting, TestNavigation: formatting edits, definition, references
- TestNotifications: diagnostics and indexing progress
"""

import os

import pytest

from lsppp.client import LSPClient
from lsppp.host import MemoryEditor
from lsppp.lsp.json_value import NULL
from lsppp.lsp.lsp_utils import path_to_uri
from lsppp.lsp.session import CANCELLED
from lsppp.lsp.types import Position
from lsppp.ui.viewport import Rect

SOURCE = "int main() {\n  ret\n}\n"


# ═══════════════════════════════════════════════════════════════════════════
# test fixtures
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def no_autostart(clean_config):
    """servers are started explicitly unless a test turns autostart back on"""
    clean_config.read_dict({"lsppp": {"autostart": "false"}})


@pytest.fixture
def source(tmp_path):
    """main.cpp inside the project root"""
    path = tmp_path / "main.cpp"
    path.write_text(SOURCE, encoding="utf-8")
    return path


@pytest.fixture
def editor():
    """80x24 headless editor"""
    return MemoryEditor(80, 24)


@pytest.fixture
def client(editor, server_factory, tmp_path):
    """client wired into the editor"""
    client = LSPClient(editor, server_factory, root_dir=str(tmp_path))
    client.install()
    return client


async def start(client, servers, capabilities=None):
    """start the server and answer initialize"""
    pending = await client.start_server()
    server = servers[-1]
    server.reply(pending.id, {"capabilities": capabilities or {}})
    return server


def completion_result(*labels):
    return {"isIncomplete": False, "items": [{"label": label} for label in labels]}


async def open_completion(client, editor, servers, source, *labels):
    """open main.cpp at the end of '  ret' and show a completion menu"""
    editor.open_file(str(source))
    server = await start(client, servers)
    editor.set_cursor(Position(1, 5))
    pending = client.completion_action()
    server.reply(pending.id, completion_result(*labels))
    return server


# ═══════════════════════════════════════════════════════════════════════════
# TestLifecycle
# ═══════════════════════════════════════════════════════════════════════════

class TestLifecycle:
    """server lifecycle"""

    @pytest.mark.asyncio
    async def test_start_sends_initialize(self, client, servers, tmp_path):
        """initialize carries root uri, pid and capabilities"""
        pending = await client.start_server()
        server = servers[0]
        message = server.last("initialize")

        assert server.started
        assert server.command == ["clangd", "--background-index", "--header-insertion=never"]
        assert pending.id == 0
        assert message["params"]["rootUri"] == path_to_uri(str(tmp_path))
        assert message["params"]["processId"] == os.getpid()
        assert message["params"]["capabilities"]["window"]["workDoneProgress"] is True
        assert client.is_running

    @pytest.mark.asyncio
    async def test_initialize_response(self, client, editor, servers, source):
        """initialized, didOpen of the active buffer and a status message"""
        editor.open_file(str(source))
        server = await start(client, servers, {"completionProvider": {}})
        did_open = server.last("textDocument/didOpen")

        assert server.methods == ["initialize", "initialized", "textDocument/didOpen"]
        assert client.capabilities == {"completionProvider": {}}
        assert editor.status == "LSP++: Server Initialized"
        assert did_open["params"]["textDocument"]["languageId"] == "cpp"
        assert did_open["params"]["textDocument"]["version"] == 1
        assert did_open["params"]["textDocument"]["text"] == SOURCE

    @pytest.mark.asyncio
    async def test_start_twice(self, client, editor, servers):
        """a second start is refused"""
        await start(client, servers)

        assert await client.start_server() is None
        assert editor.status == "LSP++: Server already running"
        assert len(servers) == 1

    @pytest.mark.asyncio
    async def test_start_failure(self, editor, tmp_path):
        """a server binary that cannot be spawned is reported"""
        class Missing:
            def __init__(self, *args):
                pass

            async def start(self):
                raise FileNotFoundError("clangd")

        client = LSPClient(editor, Missing, root_dir=str(tmp_path))

        assert await client.start_server() is None
        assert client.is_running is False
        assert editor.status == "LSP++: Failed to start clangd"

    def test_actions_without_server(self, client, editor, source):
        """user actions report a missing server instead of failing"""
        editor.open_file(str(source))

        for action in (client.completion_action, client.format_action,
                       client.definition_action, client.references_action):
            editor.status = ""
            assert action() is None
            assert editor.status == "LSP++: Server not running"

    @pytest.mark.asyncio
    async def test_stop_server(self, client, editor, servers):
        """shutdown + exit are sent and the process is stopped"""
        server = await start(client, servers)
        await client.stop_server()

        assert "shutdown" in server.methods
        assert server.methods[-1] == "exit"
        assert server.stopped
        assert client.is_running is False
        assert editor.status == "LSP++: Server Stopped"

    @pytest.mark.asyncio
    async def test_restart_resets_ids(self, client, servers):
        """a restarted server sees ids from zero again"""
        await start(client, servers)
        await client.stop_server()
        pending = await client.start_server()

        assert pending.id == 0
        assert servers[1].received[0]["id"] == 0

    @pytest.mark.asyncio
    async def test_unexpected_exit(self, client, editor, servers, source):
        """process death resets the session and closes the overlay"""
        server = await open_completion(client, editor, servers, source, "return")
        pending = client.definition_action()

        server.on_exit(1)

        assert client.is_running is False
        assert pending.state == CANCELLED
        assert "completion" not in editor.overlays
        assert client.completion_action() is None
        assert editor.status == "LSP++: Server not running"


# ═══════════════════════════════════════════════════════════════════════════
# TestDocumentSync
# ═══════════════════════════════════════════════════════════════════════════

class TestDocumentSync:
    """document synchronization"""

    @pytest.mark.asyncio
    async def test_versions_increase(self, client, editor, servers, source):
        """didChange versions continue after didOpen"""
        buf = editor.open_file(str(source))
        server = await start(client, servers)
        client.did_change(buf)
        client.did_change(buf)

        versions = [
            m["params"]["textDocument"]["version"]
            for m in server.received
            if m.get("method") in ("textDocument/didOpen", "textDocument/didChange")
        ]
        assert versions == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_did_change_sends_full_text(self, client, editor, servers, source):
        """the whole document goes out on every change"""
        editor.open_file(str(source))
        server = await start(client, servers)
        editor.set_cursor(Position(1, 5))
        editor.type_text(";")

        change = server.last("textDocument/didChange")
        assert change["params"]["contentChanges"] == [{"text": "int main() {\n  ret;\n}\n"}]

    @pytest.mark.asyncio
    async def test_open_second_file(self, client, editor, servers, source, tmp_path, clean_config):
        """opening a tracked file while running sends didOpen"""
        util = tmp_path / "util.c"
        util.write_text("int x;\n", encoding="utf-8")
        editor.open_file(str(source))
        server = await start(client, servers)

        clean_config.set("lsppp", "autostart", "true")
        editor.open_file(str(util))

        did_open = server.last("textDocument/didOpen")
        assert did_open["params"]["textDocument"]["uri"] == path_to_uri(str(util))
        assert did_open["params"]["textDocument"]["languageId"] == "c"
        assert client.start_task is None

    @pytest.mark.asyncio
    async def test_untracked_buffer_not_opened(self, client, editor, servers, tmp_path):
        """initialize does not announce a non C/C++ buffer"""
        editor.open_file(str(tmp_path / "notes.txt"))
        server = await start(client, servers)

        assert "textDocument/didOpen" not in server.methods

    @pytest.mark.asyncio
    async def test_untracked_file_ignored(self, client, editor, servers, tmp_path):
        """typing in a non C/C++ buffer sends nothing"""
        notes = tmp_path / "notes.txt"
        editor.open_file(str(notes))
        server = await start(client, servers)
        count = len(server.received)

        editor.type_text("abc")

        assert len(server.received) == count

    @pytest.mark.asyncio
    async def test_save_formats_and_notifies(self, client, editor, servers, source):
        """saving a tracked buffer requests formatting and sends didSave"""
        editor.open_file(str(source))
        server = await start(client, servers)

        editor.save()

        assert server.methods[-3:] == [
            "textDocument/didChange",
            "textDocument/formatting",
            "textDocument/didSave",
        ]

    @pytest.mark.asyncio
    async def test_save_without_autoformat(self, client, editor, servers, source, clean_config):
        """autoformat=false only sends didSave"""
        clean_config.set("lsppp", "autoformat", "false")
        editor.open_file(str(source))
        server = await start(client, servers)

        editor.save()

        assert server.methods[-1] == "textDocument/didSave"
        assert "textDocument/formatting" not in server.methods


# ═══════════════════════════════════════════════════════════════════════════
# TestCompletion
# ═══════════════════════════════════════════════════════════════════════════

class TestCompletion:
    """completion overlay"""

    @pytest.mark.asyncio
    async def test_completion_request(self, client, editor, servers, source):
        """request carries the cursor position and keeps its slot"""
        editor.open_file(str(source))
        server = await start(client, servers)
        editor.set_cursor(Position(1, 5))
        pending = client.completion_action()

        assert server.last("textDocument/completion")["params"]["position"] == {"line": 1, "character": 5}
        assert pending.retain is True

    @pytest.mark.asyncio
    async def test_overlay_shown(self, client, editor, servers, source):
        """filtered, sorted candidates anchored at the start of the word"""
        await open_completion(client, editor, servers, source, "return", "auto", "ret_val")
        lines, rect = editor.overlays["completion"]

        assert lines == ["> ret_val", "  return"]
        assert rect == Rect(2, 2, len("ret_val") + 4, 2)
        assert editor.bindings["Enter"] == "command:lsppp_confirm"
        assert editor.bindings["Tab"] == "command:lsppp_confirm"
        assert editor.bindings["Esc"] == "command:lsppp_escape"

    @pytest.mark.asyncio
    async def test_empty_result_closes(self, client, editor, servers, source):
        """no candidates means no overlay"""
        server = await open_completion(client, editor, servers, source, "return")
        pending = client.completion_action()
        server.reply(pending.id, [])

        assert "completion" not in editor.overlays
        assert editor.bindings["Enter"] == "InsertNewline"

    @pytest.mark.asyncio
    async def test_null_result_closes(self, client, editor, servers, source):
        """a null result closes the overlay"""
        server = await open_completion(client, editor, servers, source, "return")
        pending = client.completion_action()
        server.reply(pending.id, None)

        assert "completion" not in editor.overlays

    @pytest.mark.asyncio
    async def test_stale_response_ignored(self, client, editor, servers, source):
        """only the newest completion query is rendered"""
        editor.open_file(str(source))
        server = await start(client, servers)
        editor.set_cursor(Position(1, 5))
        first = client.completion_action()
        second = client.completion_action()

        server.reply(first.id, completion_result("retired"))
        assert "completion" not in editor.overlays

        server.reply(second.id, completion_result("return"))
        assert editor.overlays["completion"][0] == ["> return"]

    @pytest.mark.asyncio
    async def test_arrow_keys_cycle(self, client, editor, servers, source):
        """Up/Down move the selection instead of the cursor"""
        await open_completion(client, editor, servers, source, "return", "ret_val")

        editor.press("Down")
        assert editor.overlays["completion"][0] == ["  ret_val", "> return"]
        assert editor.current_buffer().cursor == Position(1, 5)

        editor.press("Down")
        assert editor.overlays["completion"][0] == ["> ret_val", "  return"]

        editor.press("Up")
        assert editor.overlays["completion"][0] == ["  ret_val", "> return"]

    @pytest.mark.asyncio
    async def test_enter_confirms(self, client, editor, servers, source):
        """Enter replaces the typed prefix with the selection"""
        server = await open_completion(client, editor, servers, source, "return", "ret_val")
        editor.press("Down")
        editor.press("Enter")
        buf = editor.current_buffer()

        assert buf.lines[1] == "  return"
        assert buf.cursor == Position(1, 8)
        assert "completion" not in editor.overlays
        assert editor.bindings["Enter"] == "InsertNewline"
        assert server.methods[-1] == "textDocument/didChange"

    @pytest.mark.asyncio
    async def test_confirm_uses_insert_text(self, client, editor, servers, source):
        """insertText wins over the label"""
        editor.open_file(str(source))
        server = await start(client, servers)
        editor.set_cursor(Position(1, 5))
        pending = client.completion_action()
        server.reply(pending.id, [{"label": " return", "insertText": "return"}])

        editor.press("Tab")

        assert editor.current_buffer().lines[1] == "  return"

    @pytest.mark.asyncio
    async def test_escape_closes(self, client, editor, servers, source):
        """Esc closes the overlay and restores the keys"""
        await open_completion(client, editor, servers, source, "return")
        editor.press("Esc")

        assert "completion" not in editor.overlays
        assert editor.bindings["Esc"] == "Escape"
        assert editor.current_buffer().lines[1] == "  ret"

    @pytest.mark.asyncio
    async def test_page_keys_close(self, client, editor, servers, source):
        """scrolling closes the overlay"""
        await open_completion(client, editor, servers, source, "return")
        editor.press("PageDown")

        assert "completion" not in editor.overlays
        assert editor.bindings["PageDown"] == "PageDown"

    @pytest.mark.asyncio
    async def test_typing_requeries(self, client, editor, servers, source):
        """a word character syncs the text and asks again"""
        server = await open_completion(client, editor, servers, source, "return")
        editor.type_text("u")

        assert server.methods[-2:] == ["textDocument/didChange", "textDocument/completion"]
        assert server.last("textDocument/completion")["params"]["position"] == {"line": 1, "character": 6}

    @pytest.mark.asyncio
    async def test_punctuation_closes(self, client, editor, servers, source):
        """a non-word character closes the overlay"""
        await open_completion(client, editor, servers, source, "return")
        editor.type_text("(")

        assert "completion" not in editor.overlays

    @pytest.mark.asyncio
    async def test_autocomplete_disabled(self, client, editor, servers, source, clean_config):
        """autocomplete=false only syncs text"""
        clean_config.set("lsppp", "autocomplete", "false")
        editor.open_file(str(source))
        server = await start(client, servers)
        editor.set_cursor(Position(1, 5))
        editor.type_text("u")

        assert server.methods[-1] == "textDocument/didChange"

    @pytest.mark.asyncio
    async def test_backspace_requeries(self, client, editor, servers, source):
        """backspace with a remaining prefix asks again"""
        server = await open_completion(client, editor, servers, source, "return")
        editor.press("Backspace")

        assert editor.current_buffer().lines[1] == "  re"
        assert server.methods[-2:] == ["textDocument/didChange", "textDocument/completion"]

    @pytest.mark.asyncio
    async def test_backspace_closes_without_prefix(self, client, editor, servers, tmp_path):
        """backspace that removes the whole word closes the overlay"""
        path = tmp_path / "one.cpp"
        path.write_text("x", encoding="utf-8")
        editor.open_file(str(path))
        server = await start(client, servers)
        editor.set_cursor(Position(0, 1))
        pending = client.completion_action()
        server.reply(pending.id, completion_result("xor"))

        editor.press("Backspace")

        assert editor.current_buffer().lines[0] == ""
        assert "completion" not in editor.overlays

    def test_backspace_without_overlay(self, client, editor, source):
        """plain backspace when nothing is shown"""
        editor.open_file(str(source))
        editor.set_cursor(Position(1, 5))
        editor.press("Backspace")

        assert editor.current_buffer().lines[1] == "  re"

    @pytest.mark.asyncio
    async def test_overlay_flips_above_near_info_bar(self, client, editor, servers, tmp_path):
        """an anchor near the bottom puts the overlay above the cursor"""
        path = tmp_path / "long.cpp"
        path.write_text("\n" * 20 + "re", encoding="utf-8")
        editor.open_file(str(path))
        server = await start(client, servers)
        editor.set_cursor(Position(20, 2))
        pending = client.completion_action()
        server.reply(pending.id, completion_result(*(f"re{i:02d}" for i in range(12))))

        lines, rect = editor.overlays["completion"]
        assert rect.height == 10
        assert rect.y == 10
        assert len(lines) == 10

    @pytest.mark.asyncio
    async def test_tab_switch_closes(self, client, editor, servers, source, tmp_path):
        """switching buffers closes the overlay"""
        await open_completion(client, editor, servers, source, "return")
        editor.open_file(str(tmp_path / "other.txt"))

        assert "completion" not in editor.overlays


# ═══════════════════════════════════════════════════════════════════════════
# TestFormatting
# ═══════════════════════════════════════════════════════════════════════════

def edit(line, start, end, text):
    return {
        "range": {"start": {"line": line, "character": start}, "end": {"line": line, "character": end}},
        "newText": text,
    }


class TestFormatting:
    """formatting edits"""

    @pytest.mark.asyncio
    async def test_format_applies_edits(self, client, editor, servers, tmp_path):
        """edits applied bottom-up, file saved, cursor restored"""
        path = tmp_path / "fmt.cpp"
        path.write_text("int  x;\nint   y;\n", encoding="utf-8")
        editor.open_file(str(path))
        server = await start(client, servers)
        editor.set_cursor(Position(1, 7))

        pending = client.format_action()
        params = server.last("textDocument/formatting")["params"]
        server.reply(pending.id, [edit(0, 3, 5, " "), edit(1, 3, 6, " ")])

        assert params["options"] == {"tabSize": 4, "insertSpaces": True}
        assert path.read_text(encoding="utf-8") == "int x;\nint y;\n"
        assert editor.current_buffer().cursor == Position(1, 6)
        assert editor.status == "LSP++: Formatted"
        # the save done by formatting does not trigger another format
        assert server.methods.count("textDocument/formatting") == 1
        assert client.is_formatting is False

    @pytest.mark.asyncio
    async def test_format_multiline_edit(self, client, editor, servers, tmp_path):
        """an edit spanning lines and an empty replacement"""
        path = tmp_path / "fmt.c"
        path.write_text("void f()\n{\n\n\n}\n", encoding="utf-8")
        editor.open_file(str(path))
        server = await start(client, servers)

        pending = client.format_action()
        server.reply(pending.id, [
            {"range": {"start": {"line": 0, "character": 8}, "end": {"line": 1, "character": 0}},
             "newText": " "},
            {"range": {"start": {"line": 2, "character": 0}, "end": {"line": 4, "character": 0}},
             "newText": ""},
        ])

        assert editor.current_buffer().text == "void f() {\n}\n"

    @pytest.mark.asyncio
    async def test_edits_at_same_position_keep_order(self, client, editor, servers, tmp_path):
        """inserts sharing a start land in the order the server sent them"""
        path = tmp_path / "fmt.cpp"
        path.write_text("int x;\n", encoding="utf-8")
        editor.open_file(str(path))
        server = await start(client, servers)

        pending = client.format_action()
        server.reply(pending.id, [edit(0, 0, 0, "static "), edit(0, 0, 0, "const "), edit(0, 4, 5, "y")])

        assert editor.current_buffer().text == "static const int y;\n"

    @pytest.mark.asyncio
    async def test_no_changes(self, client, editor, servers, source):
        """an empty edit list leaves the buffer alone"""
        editor.open_file(str(source))
        server = await start(client, servers)
        pending = client.format_action()
        server.reply(pending.id, [])

        assert editor.status == "LSP++: No formatting changes"
        assert editor.current_buffer().text == SOURCE


# ═══════════════════════════════════════════════════════════════════════════
# TestNavigation
# ═══════════════════════════════════════════════════════════════════════════

def location(uri, line, character):
    position = {"line": line, "character": character}
    return {"uri": uri, "range": {"start": position, "end": position}}


class TestNavigation:
    """definition and references"""

    @pytest.mark.asyncio
    async def test_definition_same_file(self, client, editor, servers, source):
        """single location result moves the cursor"""
        buf = editor.open_file(str(source))
        server = await start(client, servers)
        pending = client.definition_action()
        server.reply(pending.id, location(buf.uri, 0, 4))

        assert editor.current_buffer() is buf
        assert buf.cursor == Position(0, 4)

    @pytest.mark.asyncio
    async def test_definition_other_file(self, client, editor, servers, source, tmp_path):
        """a location in another file opens it"""
        header = tmp_path / "util.h"
        header.write_text("#pragma once\n\nint helper(void);\n", encoding="utf-8")
        editor.open_file(str(source))
        server = await start(client, servers)
        pending = client.definition_action()
        server.reply(pending.id, [location(path_to_uri(str(header)), 2, 4)])

        buf = editor.current_buffer()
        assert buf.path == str(header)
        assert buf.cursor == Position(2, 4)

    @pytest.mark.asyncio
    async def test_no_definition(self, client, editor, servers, source):
        """null and empty results"""
        editor.open_file(str(source))
        server = await start(client, servers)

        for result in (None, []):
            editor.status = ""
            pending = client.definition_action()
            server.reply(pending.id, result)
            assert editor.status == "LSP++: No definition found"

    @pytest.mark.asyncio
    async def test_references_panel(self, client, editor, servers, source, tmp_path):
        """references are listed relative to the root"""
        editor.open_file(str(source))
        server = await start(client, servers)
        pending = client.references_action()
        root = path_to_uri(str(tmp_path))
        server.reply(pending.id, [location(root + "/main.cpp", 0, 4), location(root + "/src/a.cpp", 12, 1)])

        assert server.last("textDocument/references")["params"]["context"] == {"includeDeclaration": True}
        assert editor.panels["References"] == "./main.cpp:0:4\n./src/a.cpp:12:1"

    @pytest.mark.asyncio
    async def test_no_references(self, client, editor, servers, source):
        """empty references"""
        editor.open_file(str(source))
        server = await start(client, servers)
        pending = client.references_action()
        server.reply(pending.id, [])

        assert editor.status == "LSP++: No references found"
        assert "References" not in editor.panels


# ═══════════════════════════════════════════════════════════════════════════
# TestNotifications
# ═══════════════════════════════════════════════════════════════════════════

def diagnostic(severity, message):
    position = {"line": 0, "character": 0}
    return {"range": {"start": position, "end": position}, "severity": severity, "message": message}


class TestNotifications:
    """diagnostics and progress"""

    @pytest.mark.asyncio
    async def test_diagnostics_for_active_buffer(self, client, editor, servers, source):
        """diagnostics replace the previous set"""
        buf = editor.open_file(str(source))
        server = await start(client, servers)
        server.notify("textDocument/publishDiagnostics",
                      {"uri": buf.uri, "diagnostics": [diagnostic(1, "a"), diagnostic(2, "b")]})
        server.notify("textDocument/publishDiagnostics",
                      {"uri": buf.uri, "diagnostics": [diagnostic(3, "c")]})

        assert [(d.kind, d.message) for d in buf.diagnostics["lsppp"]] == [("info", "c")]

    @pytest.mark.asyncio
    async def test_diagnostics_for_other_uri_ignored(self, client, editor, servers, source):
        """only the active document is updated"""
        buf = editor.open_file(str(source))
        server = await start(client, servers)
        server.notify("textDocument/publishDiagnostics",
                      {"uri": "file:///elsewhere.cpp", "diagnostics": [diagnostic(1, "a")]})

        assert "lsppp" not in buf.diagnostics

    @pytest.mark.asyncio
    async def test_indexing_progress(self, client, servers):
        """$/progress for background indexing"""
        server = await start(client, servers)
        token = "backgroundIndexProgress"

        assert client.indexing_status == "idle"

        server.notify("$/progress", {"token": token, "value": {"kind": "begin", "title": "indexing"}})
        assert client.indexing_status == "indexing (0%)"

        server.notify("$/progress", {"token": token, "value": {"kind": "report", "percentage": 40}})
        assert client.indexing_status == "indexing (40%)"

        server.notify("$/progress", {"token": token, "value": {"kind": "end"}})
        assert client.indexing_status == "idle"

    @pytest.mark.asyncio
    async def test_unrelated_progress_ignored(self, client, servers):
        """progress for other work does not touch the indexing status"""
        server = await start(client, servers)
        server.notify("$/progress", {"token": 7, "value": {"kind": "begin", "title": "Building preamble"}})

        assert client.indexing_status == "idle"

    @pytest.mark.asyncio
    async def test_progress_create_answered(self, client, servers):
        """window/workDoneProgress/create gets a reply"""
        server = await start(client, servers)
        server.request(0, "window/workDoneProgress/create", {"token": "bg"})

        assert server.received[-1] == {"jsonrpc": "2.0", "id": 0, "result": NULL}


class TestAutostart:
    """autostart on buffer open"""

    @pytest.mark.asyncio
    async def test_autostart_schedules_server(self, client, editor, servers, source, clean_config):
        """opening a C/C++ file starts the server on the event loop"""
        clean_config.set("lsppp", "autostart", "true")
        editor.open_file(str(source))

        assert client.start_task is not None
        pending = await client.start_task

        assert pending.method == "initialize"
        assert client.is_running

    def test_autostart_without_loop(self, client, editor, source, clean_config):
        """without a running loop nothing is started"""
        clean_config.set("lsppp", "autostart", "true")
        editor.open_file(str(source))

        assert client.start_task is None
        assert client.is_running is False
