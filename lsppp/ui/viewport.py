"""Overlay placement inside a screen region.

The host has no floating windows, so the completion overlay is a plain
sub-region whose absolute rectangle is recomputed on every change. It must
never cover the reserved strip (the info bar) at the bottom of the screen.
"""

from dataclasses import dataclass

DEFAULT_SAFETY_MARGIN = 1


@dataclass(frozen=True)
class Point:
    x: int
    y: int


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


def place(
    anchor: Point,
    width: int,
    height: int,
    region: Rect,
    reserved_y: int,
    margin: int = DEFAULT_SAFETY_MARGIN,
) -> Rect:
    """Compute the overlay rectangle for content anchored at a screen point.

    The overlay goes one row below the anchor when it fits. Otherwise it
    flips above the anchor if there is more room there, or stays below with
    its height clipped to what is left above the reserved strip.

    Args:
        anchor: screen position of the cursor
        width: desired content width (never reduced)
        height: desired content height
        region: drawable area of the buffer view
        reserved_y: first row of the strip the overlay must not cover
        margin: rows kept free above the reserved strip

    Returns:
        the placed rectangle
    """
    width = max(1, width)
    height = max(1, height)

    if anchor.x + width <= region.right:
        x = anchor.x
    else:
        x = region.right - width

    y = anchor.y + 1
    space_below = reserved_y - y - margin
    space_above = anchor.y - region.y

    if space_below < height:
        if space_above > space_below:
            height = min(height, space_above)
            y = anchor.y - height
        else:
            height = space_below

    x = max(region.x, x)
    y = max(region.y, y)
    height = max(1, height)
    return Rect(x, y, width, height)
