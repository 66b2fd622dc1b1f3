"""Overlay listing the active sessions of every worktree."""

from __future__ import annotations

from typing import Sequence

from bramble.tui.backend import SessionInfo
from bramble.tui.compositor import box, place_center
from bramble.tui.output import status_icon, type_icon
from bramble.tui.theme import Styles
from bramble.tui.utils import truncate_to_width, visible_width


def _cell(text: str, width: int) -> str:
    text = truncate_to_width(text, width)
    return text + " " * (width - visible_width(text))


class SessionBrowser:
    def __init__(self) -> None:
        self._sessions: list[SessionInfo] = []
        self._selected = 0
        self._visible = False
        self.width = 0
        self.height = 0

    def show(self, sessions: Sequence[SessionInfo], width: int, height: int) -> None:
        self._sessions = list(sessions)
        self._selected = 0
        self._visible = True
        self.width = width
        self.height = height

    def hide(self) -> None:
        self._visible = False

    @property
    def is_visible(self) -> bool:
        return self._visible

    def set_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    @property
    def sessions(self) -> list[SessionInfo]:
        return list(self._sessions)

    @property
    def selected_index(self) -> int:
        return self._selected

    def move_selection(self, delta: int) -> None:
        if not self._sessions:
            self._selected = 0
            return
        self._selected = max(0, min(self._selected + delta, len(self._sessions) - 1))

    def select_by_number(self, n: int) -> bool:
        """Select the 1-based entry *n*.  Returns ``False`` when out of range."""
        if not 1 <= n <= len(self._sessions):
            return False
        self._selected = n - 1
        return True

    def selected_session(self) -> SessionInfo | None:
        if 0 <= self._selected < len(self._sessions):
            return self._sessions[self._selected]
        return None

    def view(self, styles: Styles) -> str:
        box_width = max(min(self.width - 4, 140), 60)
        if self.width > 0:
            box_width = min(box_width, self.width)
        content_width = box_width - 6

        lines = [styles.title("All Active Sessions"), ""]
        if not self._sessions:
            lines += [styles.dim("  No active sessions across any worktree."), ""]
        else:
            prompt_width = max(content_width - 67, 15)
            header = "   " + "".join(
                _cell(h, w) for h, w in (("#", 5), ("Type", 5), ("Worktree", 21), ("Name", 21), ("Status", 13))
            )
            lines.append(styles.dim(header + "Prompt"))
            lines.append("   " + "─" * max(content_width - 3, 40))
            for i, sess in enumerate(self._sessions):
                num = f"{i + 1}." if i < 9 else "  "
                name = sess.title or sess.id[:12]
                status = f"{status_icon(sess.status, styles)} {sess.status}"
                row = (
                    f" {num} {type_icon(sess.type)}  "
                    + _cell(sess.worktree_name, 20)
                    + " "
                    + _cell(name, 20)
                    + " "
                    + _cell(status, 12)
                    + " "
                    + truncate_to_width(sess.prompt.strip('"'), prompt_width)
                )
                lines.append(styles.selected(row) if i == self._selected else row)
        lines.append("")
        lines.append(styles.dim("[↑/↓] Navigate  [Enter] Switch  [1-9] Quick select  [Esc] Close"))

        framed = box("\n".join(lines), width=box_width, border_style=styles.border, padding_x=2, padding_y=1)
        if self.width > 0 and self.height > 0:
            return place_center(framed, self.width, self.height)
        return framed
