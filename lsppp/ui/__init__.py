"""Overlay UI: completion paging, placement and the tooltip lifecycle."""

from lsppp.ui.completion import CompletionItem, CompletionState, compute_visible_page
from lsppp.ui.tooltip import Tooltip
from lsppp.ui.viewport import Point, Rect, place

__all__ = [
    "CompletionItem",
    "CompletionState",
    "compute_visible_page",
    "Tooltip",
    "Point",
    "Rect",
    "place",
]
