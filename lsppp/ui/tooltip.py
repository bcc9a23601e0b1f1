"""Completion overlay lifecycle.

The overlay is opened once, updated in place while it stays on screen, and
closed explicitly. While it is open the navigation keys are rebound to the
completion commands; closing puts the editor's own actions back.
"""

from typing import List, Optional

from lsppp.ui.viewport import Rect

# keys taken over while the overlay is open
HIJACK_BINDINGS = {
    "Enter": "command:lsppp_confirm",
    "Tab": "command:lsppp_confirm",
    "Esc": "command:lsppp_escape",
    "Backspace": "command:lsppp_backspace",
    # scrolling would leave the overlay floating over unrelated text
    "MouseWheelUp": "command:lsppp_escape",
    "MouseWheelDown": "command:lsppp_escape",
    "PageUp": "command:lsppp_escape",
    "PageDown": "command:lsppp_escape",
}

DEFAULT_BINDINGS = {
    "Enter": "InsertNewline",
    "Tab": "IndentSelection,InsertTab",
    "Esc": "Escape",
    "Backspace": "Backspace",
    "MouseWheelUp": "ScrollUp",
    "MouseWheelDown": "ScrollDown",
    "PageUp": "PageUp",
    "PageDown": "PageDown",
}


class Tooltip:
    """A named overlay rendered through the editor host."""

    def __init__(self, host, name: str = "completion"):
        self.host = host
        self.name = name
        self.rect: Optional[Rect] = None
        self.lines: List[str] = []

    @property
    def is_open(self) -> bool:
        return self.rect is not None

    def show(self, lines: List[str], rect: Rect):
        """open the overlay, or update it in place when already open"""
        if not self.is_open:
            self.host.show_overlay(self.name, lines, rect)
            for key, action in HIJACK_BINDINGS.items():
                self.host.bind_key(key, action)
        else:
            self.host.update_overlay(self.name, lines, rect)
        self.lines = list(lines)
        self.rect = rect

    def close(self):
        """restore the default key bindings and drop the overlay if open"""
        for key, action in DEFAULT_BINDINGS.items():
            self.host.bind_key(key, action)
        if self.is_open:
            self.host.close_overlay(self.name)
            self.rect = None
            self.lines = []
