"""Filterable single-select dropdown."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from bramble.tui.compositor import box
from bramble.tui.theme import Styles, plain_styles
from bramble.tui.utils import truncate_to_width, visible_width

NO_SELECTION = -1

SEPARATOR_PREFIX = "---separator---"


@dataclass(frozen=True)
class DropdownItem:
    id: str
    label: str
    subtitle: str = ""
    icon: str = ""
    badge: str = ""
    is_separator: bool = False


def separator(label: str, id: str = "") -> DropdownItem:
    """A non-selectable heading; its id defaults to one derived from *label*."""
    return DropdownItem(id=id or f"{SEPARATOR_PREFIX}{label}", label=label, is_separator=True)


class Dropdown:
    """Single-select list with a type-to-filter query.

    The selection index always refers to the *effective* list: the
    filtered indices while a query is active, the full list otherwise.
    Clearing the query maps the selection back to the same item in the
    full list.  Separators are never selectable and never match a query.
    """

    def __init__(self, items: Sequence[DropdownItem] = (), max_visible: int = 10) -> None:
        self._items: list[DropdownItem] = list(items)
        self._filtered: list[int] | None = None
        self._filter_text = ""
        self._selected = 0 if self._items else NO_SELECTION
        self._unfiltered_selection = self._selected
        self._scroll_offset = 0
        self._open = False
        self._width = 0
        self._max_visible = max_visible

    # -- items --------------------------------------------------------------

    @property
    def items(self) -> list[DropdownItem]:
        return list(self._items)

    def set_items(self, items: Sequence[DropdownItem]) -> None:
        """Replace the items wholesale, dropping any filter."""
        self._items = list(items)
        self._filtered = None
        self._filter_text = ""
        if not self._items:
            self._selected = NO_SELECTION
        elif self._selected < 0:
            self._selected = 0
        elif self._selected >= len(self._items):
            self._selected = len(self._items) - 1
        self._scroll_offset = 0
        self._ensure_visible()

    def refresh_items(self, items: Sequence[DropdownItem]) -> None:
        """Replace the items, keeping an active query and the selection by id.

        While filtering, both the highlighted match and the item selected
        before the query was typed are carried over.
        """
        selected = self.selected_item()
        query = self._filter_text
        base: DropdownItem | None = None
        if self._filtered is not None and 0 <= self._unfiltered_selection < len(self._items):
            base = self._items[self._unfiltered_selection]

        self.set_items(items)
        if query:
            if base is not None:
                self.select_by_id(base.id)
            self.set_filter(query)
            if selected is not None:
                self.select_filtered_by_id(selected.id)
        elif selected is not None:
            self.select_by_id(selected.id)

    def count(self) -> int:
        return len(self._items)

    def _effective(self) -> list[int]:
        if self._filtered is None:
            return list(range(len(self._items)))
        return self._filtered

    def effective_items(self) -> list[DropdownItem]:
        return [self._items[i] for i in self._effective()]

    def effective_count(self) -> int:
        return len(self._effective())

    # -- open state ---------------------------------------------------------

    def open(self) -> None:
        self.clear_filter()
        self._open = True
        self._ensure_visible()

    def close(self) -> None:
        self.clear_filter()
        self._open = False

    def toggle(self) -> None:
        if self._open:
            self.close()
        else:
            self.open()

    @property
    def is_open(self) -> bool:
        return self._open

    def set_width(self, width: int) -> None:
        self._width = width

    @property
    def width(self) -> int:
        return self._width

    def set_max_visible(self, n: int) -> None:
        self._max_visible = max(n, 1)
        self._ensure_visible()

    # -- filtering ----------------------------------------------------------

    @property
    def filter_text(self) -> str:
        return self._filter_text

    @property
    def has_filter(self) -> bool:
        return self._filtered is not None

    def append_filter_char(self, text: str) -> None:
        self.set_filter(self._filter_text + text)

    def backspace_filter(self) -> None:
        if self._filter_text:
            self.set_filter(self._filter_text[:-1])

    def set_filter(self, text: str) -> None:
        if not text:
            self.clear_filter()
            return
        if self._filtered is None:
            self._unfiltered_selection = self._selected
        query = text.lower()
        self._filter_text = text
        self._filtered = [
            i
            for i, item in enumerate(self._items)
            if not item.is_separator and query in item.label.lower()
        ]
        self._selected = 0 if self._filtered else NO_SELECTION
        self._scroll_offset = 0

    def clear_filter(self) -> None:
        """Drop the query, keeping the selected item selected."""
        if self._filtered is None:
            return
        if 0 <= self._selected < len(self._filtered):
            self._selected = self._filtered[self._selected]
        else:
            self._selected = self._unfiltered_selection
        self._filtered = None
        self._filter_text = ""
        self._ensure_visible()

    # -- selection ----------------------------------------------------------

    @property
    def selected_index(self) -> int:
        """Index into the effective list, or ``NO_SELECTION``."""
        return self._selected

    def selected_item(self) -> DropdownItem | None:
        effective = self._effective()
        if not 0 <= self._selected < len(effective):
            return None
        item = self._items[effective[self._selected]]
        return None if item.is_separator else item

    def move_selection(self, delta: int) -> None:
        effective = self._effective()
        n = len(effective)
        if n == 0 or delta == 0:
            return
        current = self._selected
        if current == NO_SELECTION:
            current = -1 if delta > 0 else n
        target = max(0, min(current + delta, n - 1))
        step = 1 if delta > 0 else -1
        while 0 <= target < n and self._items[effective[target]].is_separator:
            target += step
        if not 0 <= target < n:
            return
        self._selected = target
        self._ensure_visible()

    def select_by_id(self, item_id: str) -> bool:
        """Select the item with *item_id* in the full list."""
        self.clear_filter()
        for i, item in enumerate(self._items):
            if item.id == item_id and not item.is_separator:
                self._selected = i
                self._ensure_visible()
                return True
        return False

    def select_filtered_by_id(self, item_id: str) -> bool:
        """Select *item_id* among the current matches, keeping the query."""
        for pos, i in enumerate(self._effective()):
            item = self._items[i]
            if item.id == item_id and not item.is_separator:
                self._selected = pos
                self._ensure_visible()
                return True
        return False

    def select_by_index(self, index: int) -> bool:
        """Select by position in the full list."""
        self.clear_filter()
        if 0 <= index < len(self._items):
            self._selected = index
            self._ensure_visible()
            return True
        return False

    def _ensure_visible(self) -> None:
        if self._selected < 0:
            self._scroll_offset = 0
            return
        if self._selected < self._scroll_offset:
            self._scroll_offset = self._selected
        elif self._selected >= self._scroll_offset + self._max_visible:
            self._scroll_offset = self._selected - self._max_visible + 1

    # -- rendering ----------------------------------------------------------

    def view_header(self, styles: Styles | None = None) -> str:
        styles = styles or plain_styles()
        item = self.selected_item()
        if item is None:
            return styles.dim("(none)")
        parts = []
        if item.icon:
            parts.append(item.icon)
        parts.append(item.label)
        if item.badge:
            parts.append(styles.dim(item.badge))
        parts.append(styles.dim("▼"))
        return " ".join(parts)

    def _fit(self, line: str) -> str:
        if self._width > 0 and visible_width(line) > self._width - 4:
            return truncate_to_width(line, self._width - 4)
        return line

    def view_list(self, styles: Styles | None = None) -> str:
        styles = styles or plain_styles()
        rows: list[str] = []
        if self._filtered is not None:
            rows.append(styles.accent(self._fit(f"Filter: {self._filter_text}")))

        effective = self._effective()
        if not self._items:
            rows.append(styles.dim("  (empty)"))
            return "\n".join(rows)
        if not effective:
            rows.append(styles.dim("  (no matches)"))
            return "\n".join(rows)

        end = min(self._scroll_offset + self._max_visible, len(effective))
        if self._scroll_offset > 0:
            rows.append(styles.dim("  ↑ more"))

        for pos in range(self._scroll_offset, end):
            item = self._items[effective[pos]]
            if item.is_separator:
                rows.append(styles.dim(self._fit("  " + item.label)))
                continue
            selected = pos == self._selected
            line = ("> " if selected else "  ")
            if item.icon:
                line += item.icon + " "
            line += item.label
            if item.badge:
                line += " " + item.badge
            line = self._fit(line)
            rows.append(styles.selected(line) if selected else line)
            if item.subtitle:
                rows.append(styles.dim(self._fit("    " + item.subtitle)))

        if end < len(effective):
            rows.append(styles.dim("  ↓ more"))
        return "\n".join(rows)

    def view_overlay(self, styles: Styles | None = None) -> str:
        if not self._open:
            return ""
        styles = styles or plain_styles()
        return box(
            self.view_list(styles),
            width=self._width or None,
            border_style=styles.accent,
        )
