"""Windowing of a growing output log into a fixed-height viewport.

Offsets count lines back from the newest one: ``0`` keeps the view pinned
to the latest output, larger values scroll towards older lines.  When
scrolled, one row at each edge is given up for a "N more lines" indicator,
and the top row is reclaimed once the window reaches the oldest line.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Sequence

TOP_INDICATOR = "  ▲ {n} more lines (Home for top)"
BOTTOM_INDICATOR = "  ▼ {n} more lines (End for latest)"


@dataclass(frozen=True)
class ScrollWindow:
    """The slice of lines a viewport shows, ``lines[start:end]``."""

    start: int
    end: int
    offset: int
    show_top: bool
    show_bottom: bool


def _identity(text: str) -> str:
    return text


def max_scroll_offset(total: int, height: int) -> int:
    """Largest offset that still moves the window."""
    capacity = max(1, height - 2)
    return max(0, total - capacity)


def compute_window(total: int, offset: int, height: int) -> ScrollWindow:
    """Work out which lines are visible at *offset* in a *height* viewport."""
    height = max(height, 1)
    if total <= 0:
        return ScrollWindow(0, 0, 0, False, False)

    if offset <= 0:
        start = max(0, total - height)
        return ScrollWindow(start, total, 0, False, False)

    capacity = max(1, height - 2)
    offset = min(offset, max(0, total - capacity))
    end = total - offset
    start = max(0, end - capacity)

    if start == 0:
        # no top indicator needed, give its row back to the content
        capacity = max(1, height - 1)
        offset = min(offset, max(0, total - capacity))
        end = total - offset
        start = 0

    return ScrollWindow(start, end, offset, start > 0, end < total)


def render_scrollable_lines(
    lines: Sequence[str],
    offset: int,
    height: int,
    indicator_style: Callable[[str], str] = _identity,
) -> str:
    """Render the visible part of *lines*, oldest first, joined by newlines.

    An empty input renders as an empty string.
    """
    if not lines:
        return ""

    window = compute_window(len(lines), offset, height)
    out: list[str] = []
    if window.show_top:
        out.append(indicator_style(TOP_INDICATOR.format(n=window.start)))
    out.extend(lines[window.start : window.end])
    if window.show_bottom:
        out.append(indicator_style(BOTTOM_INDICATOR.format(n=len(lines) - window.end)))
    return "\n".join(out)


@dataclass
class ScrollMemory:
    """Last scroll offset per output source, kept for the process lifetime."""

    _offsets: dict[str, int] = field(default_factory=dict)

    def save(self, source: str, offset: int) -> None:
        if not source:
            return
        self._offsets[source] = max(offset, 0)

    def restore(self, source: str) -> int:
        """Offset last saved for *source*, ``0`` for one never seen."""
        return self._offsets.get(source, 0)

    def forget(self, source: str) -> None:
        self._offsets.pop(source, None)

    def switch(self, old_source: str, old_offset: int, new_source: str) -> int:
        """Save *old_offset* under *old_source* and return the offset for *new_source*."""
        self.save(old_source, old_offset)
        return self.restore(new_source)

    def __contains__(self, source: object) -> bool:
        return source in self._offsets

    def __len__(self) -> int:
        return len(self._offsets)
