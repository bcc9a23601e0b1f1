"""Editor host interface and a headless in-memory editor.

The client never touches a real editor directly; everything it needs from
one (buffers, cursor, screen geometry, overlays, key bindings, diagnostics)
goes through ``EditorHost``. ``MemoryEditor`` implements it on plain Python
lists so the whole client can run behind the MCP tools or inside tests.
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from lsppp.lsp.lsp_utils import filetype_from_path, path_to_uri
from lsppp.lsp.types import Diagnostic, Position
from lsppp.ui.tooltip import DEFAULT_BINDINGS
from lsppp.ui.viewport import Point, Rect
from lsppp.utils.logging_utils import Logger

# editor actions reachable through key bindings besides the overlay keys
EDITOR_BINDINGS = {
    "Up": "CursorUp",
    "Down": "CursorDown",
}


@dataclass
class Buffer:
    """An open document: its lines, cursor and per-owner diagnostics."""

    path: str
    filetype: Optional[str] = None
    lines: List[str] = field(default_factory=lambda: [""])
    cursor: Position = Position(0, 0)
    softwrap: bool = False
    start_line: int = 0
    modified: bool = False
    diagnostics: Dict[str, List[Diagnostic]] = field(default_factory=dict)

    @classmethod
    def from_text(cls, path: str, text: str, filetype: Optional[str] = None) -> "Buffer":
        return cls(path=path, filetype=filetype, lines=text.split("\n"))

    @property
    def uri(self) -> str:
        return path_to_uri(self.path)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def line(self, index: int) -> str:
        if 0 <= index < len(self.lines):
            return self.lines[index]
        return ""

    def clamp(self, pos: Position) -> Position:
        """nearest valid position (past the end maps to the end of the last line)"""
        if pos.line < 0:
            return Position(0, 0)
        if pos.line >= len(self.lines):
            last = len(self.lines) - 1
            return Position(last, len(self.lines[last]))
        return Position(pos.line, max(0, min(pos.character, len(self.lines[pos.line]))))

    def insert(self, pos: Position, text: str) -> Position:
        """insert text at pos and return the position right after it"""
        pos = self.clamp(pos)
        line = self.lines[pos.line]
        chunks = (line[:pos.character] + text + line[pos.character:]).split("\n")
        self.lines[pos.line:pos.line + 1] = chunks
        self.modified = True

        inserted = text.split("\n")
        if len(inserted) == 1:
            return Position(pos.line, pos.character + len(text))
        return Position(pos.line + len(inserted) - 1, len(inserted[-1]))

    def remove(self, start: Position, end: Position):
        start, end = self.clamp(start), self.clamp(end)
        if end < start:
            start, end = end, start
        before = self.lines[start.line][:start.character]
        after = self.lines[end.line][end.character:]
        self.lines[start.line:end.line + 1] = [before + after]
        self.modified = True


class EditorHost(ABC):
    """What the LSP client needs from the editor it runs in."""

    @abstractmethod
    def current_buffer(self) -> Optional[Buffer]:
        ...

    @abstractmethod
    def open_file(self, path: str) -> Buffer:
        ...

    @abstractmethod
    def save(self) -> bool:
        ...

    @abstractmethod
    def insert(self, pos: Position, text: str) -> Position:
        ...

    @abstractmethod
    def remove(self, start: Position, end: Position):
        ...

    @abstractmethod
    def backspace(self):
        ...

    @abstractmethod
    def set_cursor(self, pos: Position):
        ...

    def center(self):
        """scroll so the cursor line is in the middle of the view"""

    @abstractmethod
    def screen_position(self, pos: Position) -> Point:
        """absolute screen cell of a buffer position, soft-wrap included"""

    @abstractmethod
    def view_rect(self) -> Rect:
        """drawable area of the buffer view"""

    @abstractmethod
    def reserved_y(self) -> int:
        """first row of the info bar, which overlays must not cover"""

    @abstractmethod
    def show_overlay(self, name: str, lines: List[str], rect: Rect):
        ...

    @abstractmethod
    def update_overlay(self, name: str, lines: List[str], rect: Rect):
        ...

    @abstractmethod
    def close_overlay(self, name: str):
        ...

    @abstractmethod
    def show_panel(self, title: str, text: str):
        ...

    @abstractmethod
    def message(self, text: str):
        """status message in the info bar"""

    @abstractmethod
    def bind_key(self, key: str, action: str):
        ...

    @abstractmethod
    def register_command(self, name: str, func: Callable[[], Any]):
        ...

    @abstractmethod
    def set_hook(self, name: str, func: Callable[..., Any]):
        ...

    @abstractmethod
    def clear_diagnostics(self, owner: str):
        ...

    @abstractmethod
    def add_diagnostic(self, owner: str, diagnostic: Diagnostic):
        ...


class MemoryEditor(EditorHost):
    """Headless editor: a width x height character grid whose last row is
    the info bar. One buffer is active at a time."""

    def __init__(self, width: int = 80, height: int = 24, tab_text: str = "\t"):
        self.width = width
        self.height = height
        self.tab_text = tab_text
        self.buffers: List[Buffer] = []
        self.active: Optional[Buffer] = None
        self.overlays: Dict[str, Tuple[List[str], Rect]] = {}
        self.panels: Dict[str, str] = {}
        self.status = ""
        self.bindings: Dict[str, str] = {**DEFAULT_BINDINGS, **EDITOR_BINDINGS}
        self.commands: Dict[str, Callable[[], Any]] = {}
        self.hooks: Dict[str, Callable[..., Any]] = {}
        self.logger = Logger.instance()

    # ═══════════════════════════════════════════════════════════════════
    # buffers
    # ═══════════════════════════════════════════════════════════════════

    def current_buffer(self) -> Optional[Buffer]:
        return self.active

    def open_file(self, path: str) -> Buffer:
        """open (or switch to) a file; a missing file starts empty"""
        path = os.path.abspath(path)
        for buf in self.buffers:
            if buf.path == path:
                self._activate(buf)
                return buf

        file_path = Path(path)
        text = file_path.read_text(encoding="utf-8", errors="replace") if file_path.exists() else ""
        buf = Buffer.from_text(path, text, filetype_from_path(path))
        self.buffers.append(buf)
        self._activate(buf)
        self._fire("on_buffer_open", buf)
        return buf

    def _activate(self, buf: Buffer):
        if buf is self.active:
            return
        if self.active is not None:
            self._fire("pre_tab_switch")
        self.active = buf

    def save(self) -> bool:
        buf = self.active
        if buf is None:
            return False
        try:
            Path(buf.path).write_text(buf.text, encoding="utf-8")
        except OSError as e:
            self.logger.error(f"failed to save {buf.path}: {e}")
            self.message(f"Could not save {buf.path}")
            return False
        buf.modified = False
        self._fire("on_save", buf)
        return True

    # ═══════════════════════════════════════════════════════════════════
    # editing
    # ═══════════════════════════════════════════════════════════════════

    def insert(self, pos: Position, text: str) -> Position:
        buf = self._require_buffer()
        return buf.insert(pos, text)

    def remove(self, start: Position, end: Position):
        buf = self._require_buffer()
        buf.remove(start, end)
        buf.cursor = buf.clamp(buf.cursor)

    def set_cursor(self, pos: Position):
        buf = self._require_buffer()
        buf.cursor = buf.clamp(pos)

    def backspace(self):
        buf = self._require_buffer()
        cur = buf.cursor
        if cur.character > 0:
            start = Position(cur.line, cur.character - 1)
        elif cur.line > 0:
            start = Position(cur.line - 1, len(buf.lines[cur.line - 1]))
        else:
            return
        buf.remove(start, cur)
        buf.cursor = start

    def type_text(self, text: str):
        """type characters at the cursor; newlines go through the Enter key"""
        for char in text:
            if char == "\n":
                self.press("Enter")
                continue
            buf = self._require_buffer()
            buf.cursor = buf.insert(buf.cursor, char)
            self._fire("on_rune", char)

    def insert_newline(self):
        if not self._fire("pre_insert_newline"):
            return
        buf = self._require_buffer()
        buf.cursor = buf.insert(buf.cursor, "\n")

    def cursor_up(self):
        if not self._fire("pre_cursor_up"):
            return
        buf = self._require_buffer()
        self.set_cursor(Position(max(0, buf.cursor.line - 1), buf.cursor.character))

    def cursor_down(self):
        if not self._fire("pre_cursor_down"):
            return
        buf = self._require_buffer()
        self.set_cursor(Position(buf.cursor.line + 1, buf.cursor.character))

    def center(self):
        buf = self._require_buffer()
        buf.start_line = max(0, buf.cursor.line - self.view_rect().height // 2)

    def _require_buffer(self) -> Buffer:
        if self.active is None:
            raise RuntimeError("no buffer is open")
        return self.active

    # ═══════════════════════════════════════════════════════════════════
    # keys, commands and hooks
    # ═══════════════════════════════════════════════════════════════════

    def bind_key(self, key: str, action: str):
        self.bindings[key] = action

    def register_command(self, name: str, func: Callable[[], Any]):
        self.commands[name] = func

    def set_hook(self, name: str, func: Callable[..., Any]):
        self.hooks[name] = func

    def press(self, key: str):
        """run whatever the key is currently bound to"""
        action = self.bindings.get(key)
        if action is None:
            self.logger.debug(f"unbound key {key}")
            return
        if action.startswith("command:"):
            name = action[len("command:"):]
            command = self.commands.get(name)
            if command is None:
                self.message(f"Unknown command {name}")
                return
            command()
            return
        # comma-chained actions run until one succeeds
        for name in action.split(","):
            if self._run_action(name):
                break

    def _run_action(self, name: str) -> bool:
        if name == "InsertNewline":
            self.insert_newline()
        elif name == "IndentSelection":
            # no selections in the headless editor: fall through to the next action
            return not self._fire("pre_indent_selection")
        elif name == "InsertTab":
            self.type_text(self.tab_text)
        elif name == "Backspace":
            self.backspace()
        elif name == "CursorUp":
            self.cursor_up()
        elif name == "CursorDown":
            self.cursor_down()
        elif name in ("ScrollUp", "PageUp"):
            self._scroll(-1 if name == "ScrollUp" else -self.view_rect().height)
        elif name in ("ScrollDown", "PageDown"):
            self._scroll(1 if name == "ScrollDown" else self.view_rect().height)
        elif name == "Escape":
            pass
        else:
            self.logger.debug(f"unknown action {name}")
            return False
        return True

    def _scroll(self, rows: int):
        buf = self._require_buffer()
        buf.start_line = max(0, min(buf.start_line + rows, len(buf.lines) - 1))

    def _fire(self, name: str, *args) -> bool:
        """run a hook; only an explicit False cancels the action"""
        hook = self.hooks.get(name)
        if hook is None:
            return True
        return hook(*args) is not False

    # ═══════════════════════════════════════════════════════════════════
    # screen
    # ═══════════════════════════════════════════════════════════════════

    def view_rect(self) -> Rect:
        return Rect(0, 0, self.width, self.height - 1)

    def reserved_y(self) -> int:
        return self.height - 1

    def _line_rows(self, line: str) -> int:
        return max(1, -(-len(line) // self.width))

    def screen_position(self, pos: Position) -> Point:
        buf = self._require_buffer()
        view = self.view_rect()
        if not buf.softwrap:
            return Point(view.x + pos.character, view.y + pos.line - buf.start_line)

        rows = sum(self._line_rows(buf.line(i)) for i in range(buf.start_line, pos.line))
        return Point(
            view.x + pos.character % self.width,
            view.y + rows + pos.character // self.width,
        )

    def show_overlay(self, name: str, lines: List[str], rect: Rect):
        self.overlays[name] = (list(lines), rect)

    def update_overlay(self, name: str, lines: List[str], rect: Rect):
        self.overlays[name] = (list(lines), rect)

    def close_overlay(self, name: str):
        self.overlays.pop(name, None)

    def show_panel(self, title: str, text: str):
        self.panels[title] = text

    def message(self, text: str):
        self.status = text
        self.logger.info(text)

    def render(self) -> str:
        """the screen as text: buffer view, overlays on top, info bar last"""
        view = self.view_rect()
        grid = [[" "] * self.width for _ in range(self.height)]

        buf = self.active
        if buf is not None:
            rows: List[str] = []
            for line in buf.lines[buf.start_line:]:
                if buf.softwrap:
                    rows.extend(line[i:i + self.width] for i in range(0, max(1, len(line)), self.width))
                else:
                    rows.append(line[:self.width])
                if len(rows) >= view.height:
                    break
            for y, row in enumerate(rows[:view.height]):
                grid[view.y + y][:len(row)] = list(row)

        for lines, rect in self.overlays.values():
            for i in range(rect.height):
                y = rect.y + i
                if not view.y <= y < view.bottom:
                    continue
                text = (lines[i] if i < len(lines) else "").ljust(rect.width)[:rect.width]
                for j, char in enumerate(text):
                    if 0 <= rect.x + j < self.width:
                        grid[y][rect.x + j] = char

        status = self.status[:self.width]
        grid[self.reserved_y()][:len(status)] = list(status)
        return "\n".join("".join(row).rstrip() for row in grid)

    # ═══════════════════════════════════════════════════════════════════
    # diagnostics
    # ═══════════════════════════════════════════════════════════════════

    def clear_diagnostics(self, owner: str):
        if self.active is not None:
            self.active.diagnostics.pop(owner, None)

    def add_diagnostic(self, owner: str, diagnostic: Diagnostic):
        if self.active is not None:
            self.active.diagnostics.setdefault(owner, []).append(diagnostic)
