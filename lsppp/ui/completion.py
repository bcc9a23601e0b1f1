"""Completion candidate ranking and pagination.

The server's candidate list is filtered client-side against the word prefix
at the cursor (case-insensitive substring), sorted by sort text (falling back
to the label), and shown through a fixed-size window that scrolls to keep
the selected row visible. Selection indices are 1-based.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

from lsppp.lsp.json_value import as_array, as_object, as_string, get_path, is_nothing

SELECTED_MARKER = "> "
UNSELECTED_MARKER = "  "
# room for the selection marker plus a trailing gutter
LABEL_PADDING = 4


@dataclass(frozen=True)
class CompletionItem:
    label: str
    insert_text: Optional[str] = None
    sort_text: Optional[str] = None

    @classmethod
    def from_json(cls, value: Any) -> "CompletionItem":
        obj = as_object(value)
        insert_text = obj.get("insertText")
        sort_text = obj.get("sortText")
        return cls(
            label=as_string(obj.get("label")),
            insert_text=None if is_nothing(insert_text) else as_string(insert_text),
            sort_text=None if is_nothing(sort_text) else as_string(sort_text),
        )

    @property
    def sort_key(self) -> str:
        return self.sort_text if self.sort_text is not None else self.label

    @property
    def text(self) -> str:
        """text inserted on confirm"""
        return self.insert_text if self.insert_text is not None else self.label


def extract_items(result: Any) -> List[CompletionItem]:
    """candidates from a completion result: CompletionItem[] or CompletionList"""
    if is_nothing(result):
        return []
    if isinstance(result, dict):
        result = get_path(result, "items", default=[])
        if is_nothing(result):
            return []
    return [CompletionItem.from_json(item) for item in as_array(result)]


def filter_and_sort(items: Sequence[CompletionItem], prefix: str) -> List[CompletionItem]:
    """Filter by case-insensitive substring, then sort by code unit order.

    A prefix that matches nothing keeps the whole server list.
    """
    needle = prefix.lower()
    filtered = [item for item in items if needle in item.label.lower()]
    if not filtered:
        filtered = list(items)
    return sorted(filtered, key=lambda item: item.sort_key)


def clamp_selection(selected: int, count: int) -> int:
    if selected < 1 or selected > count:
        return 1
    return selected


def cycle_index(selected: int, delta: int, count: int) -> int:
    """move the selection by delta, wrapping around both ends"""
    if count <= 0:
        return 1
    return (selected - 1 + delta) % count + 1


def scroll_for(selected: int, offset: int, page_size: int, count: int) -> int:
    """Scroll offset that keeps ``selected`` in [offset + 1, offset + page_size].

    The result is clamped to [0, max(0, count - page_size)].
    """
    page_size = max(1, page_size)
    if selected > offset + page_size:
        offset = selected - page_size
    elif selected <= offset:
        offset = selected - 1
    return max(0, min(offset, max(0, count - page_size)))


def compute_visible_page(
    candidates: Sequence[CompletionItem],
    prefix: str,
    selected: int,
    scroll_offset: int,
    page_size: int,
) -> Tuple[List[CompletionItem], int]:
    """Rank candidates and cut out the page that shows the selection.

    Returns:
        (visible candidates, updated scroll offset)
    """
    ranked = filter_and_sort(candidates, prefix)
    selected = clamp_selection(selected, len(ranked))
    offset = scroll_for(selected, scroll_offset, page_size, len(ranked))
    return ranked[offset:offset + max(1, page_size)], offset


def overlay_size(items: Sequence[CompletionItem], max_visible: int) -> Tuple[int, int]:
    """desired (width, height) of the completion overlay"""
    width = max((len(item.label) for item in items), default=0) + LABEL_PADDING
    return width, min(len(items), max_visible)


@dataclass
class CompletionState:
    """The candidates on screen, the selection and the scroll position."""

    items: List[CompletionItem] = field(default_factory=list)
    selected: int = 1
    scroll_offset: int = 0
    page_size: int = 1

    def __len__(self) -> int:
        return len(self.items)

    def update(self, candidates: Sequence[CompletionItem], prefix: str):
        """replace the candidates after a (re)query"""
        self.items = filter_and_sort(candidates, prefix)
        self.selected = clamp_selection(self.selected, len(self.items))
        self.scroll_offset = 0

    def select(self, index: int):
        self.selected = clamp_selection(index, len(self.items))

    def cycle(self, delta: int):
        self.selected = cycle_index(self.selected, delta, len(self.items))

    def current(self) -> Optional[CompletionItem]:
        if not self.items:
            return None
        return self.items[self.selected - 1]

    def page(self, page_size: int) -> List[CompletionItem]:
        """visible slice for the given page size, scrolling as needed"""
        self.page_size = max(1, page_size)
        self.scroll_offset = scroll_for(
            self.selected, self.scroll_offset, self.page_size, len(self.items)
        )
        return self.items[self.scroll_offset:self.scroll_offset + self.page_size]

    def render(self, page_size: int) -> List[str]:
        lines = []
        for row, item in enumerate(self.page(page_size), start=self.scroll_offset + 1):
            marker = SELECTED_MARKER if row == self.selected else UNSELECTED_MARKER
            lines.append(marker + item.label)
        return lines

    def clear(self):
        self.items = []
        self.selected = 1
        self.scroll_offset = 0
