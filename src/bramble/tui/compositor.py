"""Frame composition: overlays, boxes, centering and side-by-side panes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from bramble.tui.utils import pad_or_truncate, splice_at, truncate_to_width, visible_width

_ROUNDED = {
    "tl": "╭",
    "tr": "╮",
    "bl": "╰",
    "br": "╯",
    "h": "─",
    "v": "│",
}


def _identity(text: str) -> str:
    return text


def overlay_at(base: str, overlay: str, x: int, y: int) -> str:
    """Place *overlay* onto *base* with its top-left corner at (*x*, *y*).

    Each overlay row replaces the base row's content from column *x*
    onwards.  Rows that fall outside the base are dropped, so the result
    always has exactly as many lines as *base*.
    """
    base_lines = base.split("\n")
    for i, overlay_line in enumerate(overlay.split("\n")):
        row = y + i
        if 0 <= row < len(base_lines):
            base_lines[row] = splice_at(base_lines[row], overlay_line, x)
    return "\n".join(base_lines)


def block_width(block: str) -> int:
    return max((visible_width(line) for line in block.split("\n")), default=0)


def block_height(block: str) -> int:
    return block.count("\n") + 1 if block else 0


def join_vertical(*blocks: str) -> str:
    """Stack non-empty blocks top to bottom."""
    return "\n".join(b for b in blocks if b)


def join_horizontal(columns: Sequence[tuple[str, int]], height: int) -> str:
    """Lay out ``(content, width)`` columns side by side.

    Every column is normalised to *height* rows of its width first so the
    rows line up.
    """
    if height <= 0 or not columns:
        return ""
    normalised = [pad_or_truncate(content, width, height).split("\n") for content, width in columns]
    return "\n".join("".join(parts) for parts in zip(*normalised))


def place_center(block: str, width: int, height: int) -> str:
    """Center *block* in a *width* x *height* area of blank cells."""
    if width <= 0 or height <= 0:
        return ""
    bw = min(block_width(block), width)
    lines = pad_or_truncate(block, bw, min(block_height(block), height)).split("\n")
    left = " " * ((width - bw) // 2)
    top = (height - len(lines)) // 2
    body = [""] * top + [left + line for line in lines]
    return pad_or_truncate("\n".join(body), width, height)


def box(
    content: str,
    width: int | None = None,
    border_style: Callable[[str], str] = _identity,
    padding_x: int = 1,
    padding_y: int = 0,
    title: str = "",
) -> str:
    """Draw a rounded border around *content*.

    With *width* the box is exactly that wide and content is cut or padded
    to fit.  Otherwise the box hugs the widest content line.  A *title* is
    set into the top border.
    """
    lines = content.split("\n") if content else [""]
    if width is None:
        inner = max(visible_width(line) for line in lines) + padding_x * 2
    else:
        inner = max(width - 2, 0)
    text_width = max(inner - padding_x * 2, 0)

    top_fill = _ROUNDED["h"] * inner
    if title:
        label = truncate_to_width(f" {title} ", max(inner - 1, 0))
        top_fill = _ROUNDED["h"] + label + _ROUNDED["h"] * max(inner - 1 - visible_width(label), 0)
    top = border_style(_ROUNDED["tl"]) + border_style(top_fill) + border_style(_ROUNDED["tr"])
    bottom = border_style(_ROUNDED["bl"] + _ROUNDED["h"] * inner + _ROUNDED["br"])
    side = border_style(_ROUNDED["v"])
    pad = " " * padding_x

    rows = [top]
    blank = side + " " * inner + side
    rows.extend([blank] * padding_y)
    for line in lines:
        rows.append(side + pad + truncate_to_width(line, text_width, pad=True) + pad + side)
    rows.extend([blank] * padding_y)
    rows.append(bottom)
    return "\n".join(rows)


@dataclass
class SplitPane:
    """Single or split layout for the central area.

    In split mode a narrow left pane sits beside the main pane with a one
    column divider between them.
    """

    split: bool = False
    left_width_pct: int = 30
    focus_left: bool = False

    def toggle(self) -> None:
        self.split = not self.split
        if not self.split:
            self.focus_left = False

    def toggle_focus(self) -> None:
        if self.split:
            self.focus_left = not self.focus_left

    def left_width(self, total_width: int) -> int:
        return total_width * self.left_width_pct // 100

    def right_width(self, total_width: int) -> int:
        if not self.split:
            return total_width
        return max(total_width - self.left_width(total_width) - 1, 0)

    def render(
        self,
        left: str,
        right: str,
        width: int,
        height: int,
        divider_style: Callable[[str], str] = _identity,
    ) -> str:
        if not self.split:
            return right
        divider = "\n".join([divider_style(_ROUNDED["v"])] * height)
        return join_horizontal(
            [
                (left, self.left_width(width)),
                (divider, 1),
                (right, self.right_width(width)),
            ],
            height,
        )
