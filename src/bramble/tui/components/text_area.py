"""Multi-line text field with Send/Cancel buttons.

The buffer is a plain ``str`` and the cursor an index into it, so every
position is counted in code points and an edit can never land inside a
multi-byte character.  Row and column are always derived from those two
values.  Focus cycles between the field and the two buttons.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import grapheme as _grapheme

from bramble.tui.compositor import box
from bramble.tui.keybindings import KeybindingsManager, get_keybindings
from bramble.tui.keys import KeyMsg
from bramble.tui.theme import Styles, plain_styles
from bramble.tui.utils import truncate_to_width, visible_width

TextAreaFocus = Literal["field", "primary", "secondary"]
TextAreaAction = Literal["handled", "submit", "cancel", "quit", "unhandled"]

_FOCUS_ORDER: tuple[TextAreaFocus, ...] = ("field", "primary", "secondary")

CURSOR_BLOCK = "█"


@dataclass(frozen=True)
class TextChunk:
    """One wrapped row of a logical line, ``line[start:end]``."""

    text: str
    start: int
    end: int


def word_wrap_line(line: str, max_width: int) -> list[TextChunk]:
    """Split *line* into rows no wider than *max_width* columns.

    Rows break after the last space that fits.  A word longer than the
    row is broken between graphemes.  Offsets are code point indices into
    *line*.
    """
    if not line or max_width <= 0 or visible_width(line) <= max_width:
        return [TextChunk(line, 0, len(line))]

    chunks: list[TextChunk] = []
    chunk_start = 0
    width = 0
    # index just past the last space in the current row, and the row width there
    break_at = -1
    break_width = 0

    idx = 0
    for g in _grapheme.graphemes(line):
        g_width = visible_width(g)
        if width + g_width > max_width and idx > chunk_start:
            if break_at > chunk_start:
                chunks.append(TextChunk(line[chunk_start:break_at], chunk_start, break_at))
                chunk_start = break_at
                width -= break_width
            else:
                chunks.append(TextChunk(line[chunk_start:idx], chunk_start, idx))
                chunk_start = idx
                width = 0
            break_at = -1
        width += g_width
        idx += len(g)
        if g == " ":
            break_at = idx
            break_width = width

    chunks.append(TextChunk(line[chunk_start:], chunk_start, len(line)))
    return chunks


class TextArea:
    """Editable text field plus primary/secondary buttons."""

    def __init__(
        self,
        width: int = 60,
        max_height: int = 10,
        min_height: int = 3,
        keybindings: KeybindingsManager | None = None,
    ) -> None:
        self._value = ""
        self._cursor = 0
        self._prompt = ""
        self._placeholder = ""
        self._primary_label = "Send"
        self._secondary_label = "Cancel"
        self._width = width
        self._max_height = max_height
        self._min_height = min_height
        self._scroll_offset = 0
        self._focus: TextAreaFocus = "field"
        self._keybindings = keybindings

    @property
    def _kb(self) -> KeybindingsManager:
        return self._keybindings or get_keybindings()

    # -- configuration ------------------------------------------------------

    def set_labels(self, primary: str, secondary: str) -> None:
        self._primary_label = primary
        self._secondary_label = secondary

    @property
    def labels(self) -> tuple[str, str]:
        return self._primary_label, self._secondary_label

    def set_prompt(self, prompt: str) -> None:
        self._prompt = prompt

    def set_placeholder(self, placeholder: str) -> None:
        self._placeholder = placeholder

    def set_width(self, width: int) -> None:
        self._width = width

    @property
    def width(self) -> int:
        return self._width

    def set_max_height(self, height: int) -> None:
        self._max_height = height

    def set_min_height(self, height: int) -> None:
        self._min_height = height

    # -- focus --------------------------------------------------------------

    @property
    def focus(self) -> TextAreaFocus:
        return self._focus

    def set_focus(self, focus: TextAreaFocus) -> None:
        self._focus = focus

    def cycle_forward(self) -> None:
        i = _FOCUS_ORDER.index(self._focus)
        self._focus = _FOCUS_ORDER[(i + 1) % len(_FOCUS_ORDER)]

    def cycle_backward(self) -> None:
        i = _FOCUS_ORDER.index(self._focus)
        self._focus = _FOCUS_ORDER[(i - 1) % len(_FOCUS_ORDER)]

    # -- buffer -------------------------------------------------------------

    @property
    def value(self) -> str:
        return self._value

    @property
    def cursor(self) -> int:
        return self._clamped_cursor()

    def set_value(self, value: str) -> None:
        self._value = value
        self._cursor = len(value)

    def reset(self) -> None:
        self._value = ""
        self._placeholder = ""
        self._cursor = 0
        self._scroll_offset = 0
        self._focus = "field"

    def _clamped_cursor(self) -> int:
        self._cursor = max(0, min(self._cursor, len(self._value)))
        return self._cursor

    def insert_char(self, ch: str) -> None:
        self.insert_string(ch)

    def insert_string(self, text: str) -> None:
        pos = self._clamped_cursor()
        self._value = self._value[:pos] + text + self._value[pos:]
        self._cursor = pos + len(text)

    def insert_newline(self) -> None:
        self.insert_string("\n")

    def delete_char(self) -> None:
        """Delete the code point before the cursor."""
        pos = self._clamped_cursor()
        if pos > 0:
            self._value = self._value[: pos - 1] + self._value[pos:]
            self._cursor = pos - 1

    def delete_char_forward(self) -> None:
        pos = self._clamped_cursor()
        if pos < len(self._value):
            self._value = self._value[:pos] + self._value[pos + 1 :]

    # -- cursor motion ------------------------------------------------------

    def lines(self) -> list[str]:
        """Logical lines; an empty buffer is one empty line."""
        return self._value.split("\n")

    def line_count(self) -> int:
        return len(self.lines())

    def cursor_row_col(self) -> tuple[int, int]:
        """Logical (row, column) of the cursor, both in code points."""
        pos = self._clamped_cursor()
        row = self._value.count("\n", 0, pos)
        line_start = self._value.rfind("\n", 0, pos) + 1
        return row, pos - line_start

    def _pos_from_row_col(self, lines: list[str], row: int, col: int) -> int:
        return sum(len(line) + 1 for line in lines[:row]) + col

    def move_cursor_left(self) -> None:
        if self._clamped_cursor() > 0:
            self._cursor -= 1

    def move_cursor_right(self) -> None:
        if self._clamped_cursor() < len(self._value):
            self._cursor += 1

    def move_cursor_up(self) -> None:
        lines = self.lines()
        row, col = self.cursor_row_col()
        if row > 0:
            self._cursor = self._pos_from_row_col(lines, row - 1, min(col, len(lines[row - 1])))

    def move_cursor_down(self) -> None:
        lines = self.lines()
        row, col = self.cursor_row_col()
        if row < len(lines) - 1:
            self._cursor = self._pos_from_row_col(lines, row + 1, min(col, len(lines[row + 1])))

    def move_cursor_to_line_start(self) -> None:
        row, _ = self.cursor_row_col()
        self._cursor = self._pos_from_row_col(self.lines(), row, 0)

    def move_cursor_to_line_end(self) -> None:
        lines = self.lines()
        row, _ = self.cursor_row_col()
        self._cursor = self._pos_from_row_col(lines, row, len(lines[row]))

    # -- key handling -------------------------------------------------------

    def handle_key(self, msg: KeyMsg) -> TextAreaAction:
        kb = self._kb
        key = msg.key
        in_field = self._focus == "field"

        if kb.matches(key, "forceQuit"):
            return "quit"
        if kb.matches(key, "focusNext"):
            self.cycle_forward()
            return "handled"
        if kb.matches(key, "focusPrev"):
            self.cycle_backward()
            return "handled"
        if kb.matches(key, "newLine"):
            if in_field:
                self.insert_newline()
            return "handled"
        if kb.matches(key, "submit"):
            return "submit"
        if kb.matches(key, "confirm"):
            if self._focus == "primary":
                return "submit"
            if self._focus == "secondary":
                return "cancel"
            return "submit" if self._value.strip() else "handled"
        if kb.matches(key, "cancel"):
            return "cancel"

        edits = (
            ("deleteCharBackward", self.delete_char),
            ("deleteCharForward", self.delete_char_forward),
            ("cursorUp", self.move_cursor_up),
            ("cursorDown", self.move_cursor_down),
            ("cursorLeft", self.move_cursor_left),
            ("cursorRight", self.move_cursor_right),
            ("cursorLineStart", self.move_cursor_to_line_start),
            ("cursorLineEnd", self.move_cursor_to_line_end),
        )
        for action, apply in edits:
            if kb.matches(key, action):
                if in_field:
                    apply()
                return "handled"

        if msg.is_text and not key.startswith(("ctrl+", "alt+")):
            if not in_field:
                return "unhandled"
            self.insert_string(msg.text.replace("\r\n", "\n").replace("\r", "\n"))
            return "handled"
        return "unhandled"

    # -- layout -------------------------------------------------------------

    @property
    def content_width(self) -> int:
        return max(self._width - 4, 1)

    @property
    def _wrap_width(self) -> int:
        # one column stays free for the cursor at the end of a full row
        return max(self.content_width - 1, 1)

    @property
    def visible_height(self) -> int:
        return max(self._max_height - 2, self._min_height)

    def visual_rows(self) -> list[tuple[int, TextChunk]]:
        """Wrapped rows as ``(logical_row, chunk)`` pairs."""
        rows: list[tuple[int, TextChunk]] = []
        for i, line in enumerate(self.lines()):
            rows.extend((i, chunk) for chunk in word_wrap_line(line, self._wrap_width))
        return rows

    def cursor_visual_position(self) -> tuple[int, int]:
        """(visual row, visual column) of the cursor after wrapping."""
        row, col = self.cursor_row_col()
        rows = self.visual_rows()
        for index, (logical, chunk) in enumerate(rows):
            if logical != row:
                continue
            is_last = index + 1 == len(rows) or rows[index + 1][0] != row
            if col < chunk.end or is_last:
                return index, visible_width(chunk.text[: col - chunk.start])
        return len(rows) - 1, 0

    def _scroll_to_cursor(self, cursor_row: int) -> None:
        height = self.visible_height
        if cursor_row < self._scroll_offset:
            self._scroll_offset = cursor_row
        elif cursor_row >= self._scroll_offset + height:
            self._scroll_offset = cursor_row - height + 1

    def render(self, styles: Styles | None = None) -> str:
        styles = styles or plain_styles()
        width = self.content_width
        out: list[str] = []

        if self._prompt:
            out.append(styles.dim(truncate_to_width(self._prompt, width)))

        rows = self.visual_rows()
        cursor_row, cursor_col = self.cursor_visual_position()
        self._scroll_to_cursor(cursor_row)
        height = self.visible_height
        visible = rows[self._scroll_offset : self._scroll_offset + height]
        show_placeholder = not self._value and bool(self._placeholder)

        for offset, (_, chunk) in enumerate(visible):
            index = self._scroll_offset + offset
            if show_placeholder and index == 0:
                text = CURSOR_BLOCK + styles.dim(truncate_to_width(self._placeholder, width - 1))
            elif index == cursor_row:
                text = self._render_cursor_row(chunk.text, cursor_col, styles)
            else:
                text = chunk.text
            out.append(truncate_to_width(text, width, pad=True))

        for _ in range(len(visible), height):
            out.append(" " * width)

        out.append(self._render_buttons(width, styles))
        return box("\n".join(out), width=self._width, border_style=styles.input_border)

    def _render_cursor_row(self, text: str, cursor_col: int, styles: Styles) -> str:
        before: list[str] = []
        col = 0
        graphemes = list(_grapheme.graphemes(text))
        for i, g in enumerate(graphemes):
            if col >= cursor_col:
                return "".join(before) + styles.cursor(g) + "".join(graphemes[i + 1 :])
            before.append(g)
            col += visible_width(g)
        return "".join(before) + CURSOR_BLOCK

    def _render_buttons(self, width: int, styles: Styles) -> str:
        def button(label: str, focused: bool) -> str:
            text = f"[ {label} ]"
            return styles.selected(text) if focused else styles.dim(text)

        buttons = (
            button(self._primary_label, self._focus == "primary")
            + "  "
            + button(self._secondary_label, self._focus == "secondary")
        )
        pad = max(width - visible_width(buttons), 0)
        return " " * pad + buttons

    @property
    def rendered_height(self) -> int:
        """Rows :meth:`render` produces, borders included."""
        return self.visible_height + 3 + (1 if self._prompt else 0)
