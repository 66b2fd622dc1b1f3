"""Text metrics for styled terminal strings.

Everything in here treats escape sequences as zero-width, indivisible units
and measures the remaining text in grapheme clusters so that wide glyphs and
emoji occupy two columns.  These helpers are the only place the rest of the
package measures or cuts text.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Iterator

import grapheme
import wcwidth as _wcwidth

RESET = "\x1b[0m"

# ---------------------------------------------------------------------------
# Escape sequence patterns
# ---------------------------------------------------------------------------

_STRIP_RE = re.compile(
    r"\x1b\[[0-9;]*[mGKHJ]"                    # CSI
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"      # OSC
    r"|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"       # APC
)

_CSI_FINAL = "mGKHJ"

# ---------------------------------------------------------------------------
# Width cache
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


def strip_ansi(text: str) -> str:
    """Remove every recognised escape sequence from *text*."""
    return _STRIP_RE.sub("", text)


def grapheme_width(g: str) -> int:
    """Return the column width of a single grapheme cluster.

    Tabs count as 3 columns, control characters and combining marks as 0,
    emoji sequences (VS16, ZWJ, skin tones, flags) as 2.  Anything else is
    delegated to ``wcwidth``.
    """
    if not g:
        return 0
    if g == "\t":
        return 3

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or 0x7F <= cp <= 0x9F:
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first = g[0]
    first_cp = ord(first)
    if first_cp >= 0x1F000 or 0x2600 <= first_cp <= 0x27BF:
        return 2

    category = unicodedata.category(first)
    if category.startswith("M") or category == "Cf":
        return 0
    return max(_wcwidth.wcwidth(first), 0)


def visible_width(text: str) -> int:
    """Return the number of terminal columns *text* occupies."""
    if not text:
        return 0

    stripped = _STRIP_RE.sub("", text)
    if not stripped:
        return 0

    if all(0x20 <= ord(ch) <= 0x7E or ch == "\t" for ch in stripped):
        return len(stripped) + 2 * stripped.count("\t")

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(grapheme_width(g) for g in grapheme.graphemes(stripped))
    return _cache_width(stripped, total)


# ---------------------------------------------------------------------------
# Escape extraction and unit iteration
# ---------------------------------------------------------------------------


def extract_ansi_code(text: str, pos: int) -> tuple[str, int] | None:
    """Return ``(code, length)`` for the escape sequence at *pos*, if any.

    Recognises CSI (``ESC[`` … ``m|G|K|H|J``), OSC (``ESC]`` … BEL/ST) and
    APC (``ESC_`` … BEL/ST).  Unterminated or unknown sequences yield
    ``None`` and are treated by callers as ordinary zero-width text.
    """
    if pos + 1 >= len(text) or text[pos] != "\x1b":
        return None

    kind = text[pos + 1]
    if kind == "[":
        i = pos + 2
        while i < len(text):
            ch = text[i]
            if ch in _CSI_FINAL:
                return text[pos : i + 1], i + 1 - pos
            if not (ch.isdigit() or ch == ";"):
                return None
            i += 1
        return None

    if kind in "]_":
        i = pos + 2
        while i < len(text):
            ch = text[i]
            if ch == "\x07":
                return text[pos : i + 1], i + 1 - pos
            if ch == "\x1b" and i + 1 < len(text) and text[i + 1] == "\\":
                return text[pos : i + 2], i + 2 - pos
            i += 1
    return None


def iter_units(text: str) -> Iterator[tuple[str, int, bool]]:
    """Split *text* into escape sequences and grapheme clusters.

    Yields ``(chunk, width, is_escape)``.  Escape sequences always have
    width 0 and are never split.
    """
    run_start = 0
    i = 0
    n = len(text)
    while i < n:
        if text[i] == "\x1b":
            extracted = extract_ansi_code(text, i)
            if extracted is not None:
                if run_start < i:
                    for g in grapheme.graphemes(text[run_start:i]):
                        yield g, grapheme_width(g), False
                code, length = extracted
                yield code, 0, True
                i += length
                run_start = i
                continue
        i += 1
    if run_start < n:
        for g in grapheme.graphemes(text[run_start:]):
            yield g, grapheme_width(g), False


# ---------------------------------------------------------------------------
# SGR state tracking
# ---------------------------------------------------------------------------

_SGR_ATTRIBUTES = {
    1: "bold",
    2: "dim",
    3: "italic",
    4: "underline",
    5: "blink",
    7: "inverse",
    8: "hidden",
    9: "strikethrough",
}

_SGR_RESETS = {
    22: ("bold", "dim"),
    23: ("italic",),
    24: ("underline",),
    25: ("blink",),
    27: ("inverse",),
    28: ("hidden",),
    29: ("strikethrough",),
    39: ("fg",),
    49: ("bg",),
}

_SLOT_ORDER = (*_SGR_ATTRIBUTES.values(), "fg", "bg")


class AnsiCodeTracker:
    """Follow SGR (``ESC[…m``) state across a stream of escape codes.

    Used to re-open styling on continuation rows after wrapping and to decide
    whether a cut string needs a trailing reset.
    """

    def __init__(self) -> None:
        self._active: dict[str, str] = {}

    def process(self, code: str) -> None:
        if not code.startswith("\x1b[") or not code.endswith("m"):
            return

        params = code[2:-1].split(";")
        i = 0
        while i < len(params):
            val = int(params[i]) if params[i] else 0
            if val == 0:
                self._active.clear()
            elif val in _SGR_ATTRIBUTES:
                self._active[_SGR_ATTRIBUTES[val]] = f"\x1b[{val}m"
            elif val in _SGR_RESETS:
                for slot in _SGR_RESETS[val]:
                    self._active.pop(slot, None)
            elif val in (38, 48):
                slot = "fg" if val == 38 else "bg"
                mode = params[i + 1] if i + 1 < len(params) else ""
                if mode == "5" and i + 2 < len(params):
                    self._active[slot] = f"\x1b[{val};5;{params[i + 2]}m"
                    i += 2
                elif mode == "2" and i + 4 < len(params):
                    rgb = ";".join(params[i + 2 : i + 5])
                    self._active[slot] = f"\x1b[{val};2;{rgb}m"
                    i += 4
                else:
                    i += 1
            elif 30 <= val <= 37 or 90 <= val <= 97:
                self._active["fg"] = f"\x1b[{val}m"
            elif 40 <= val <= 47 or 100 <= val <= 107:
                self._active["bg"] = f"\x1b[{val}m"
            i += 1

    def clear(self) -> None:
        self._active.clear()

    def get_active_codes(self) -> str:
        """Return the codes that re-establish the current state."""
        return "".join(self._active[s] for s in _SLOT_ORDER if s in self._active)

    def has_active_codes(self) -> bool:
        return bool(self._active)

    def get_line_end_reset(self) -> str:
        return RESET if self._active else ""


# ---------------------------------------------------------------------------
# Truncation, splicing, padding
# ---------------------------------------------------------------------------


def _take_columns(text: str, max_cols: int) -> tuple[str, int, bool]:
    """Return the widest prefix of *text* fitting in *max_cols* columns.

    The result is ``(prefix, width, styled)`` where *styled* says whether
    the prefix leaves SGR state open.
    """
    parts: list[str] = []
    cols = 0
    tracker = AnsiCodeTracker()
    for chunk, width, is_escape in iter_units(text):
        if is_escape:
            tracker.process(chunk)
            parts.append(chunk)
            continue
        if cols + width > max_cols:
            break
        parts.append(chunk)
        cols += width
    return "".join(parts), cols, tracker.has_active_codes()


def truncate_to_width(
    text: str,
    max_width: int,
    ellipsis: str = "...",
    pad: bool = False,
) -> str:
    """Cut *text* so that it occupies at most *max_width* columns.

    When cutting is needed the ellipsis is appended and counts towards the
    width.  If the ellipsis alone does not fit only as much of it as fits
    is returned.  With *pad* the result is right-padded to exactly
    *max_width* columns.
    """
    if max_width <= 0:
        return ""

    text_width = visible_width(text)
    if text_width <= max_width:
        if pad:
            return text + " " * (max_width - text_width)
        return text

    target = max_width - visible_width(ellipsis)
    if target <= 0:
        prefix, _, _ = _take_columns(ellipsis, max_width)
        return prefix

    prefix, cols, styled = _take_columns(text, target)
    if styled:
        prefix += RESET
    result = prefix + ellipsis
    if pad:
        result += " " * (max_width - cols - visible_width(ellipsis))
    return result


def splice_at(base: str, overlay: str, col: int) -> str:
    """Replace *base* from visual column *col* onwards with *overlay*.

    Escapes before *col* are kept.  A wide glyph straddling *col* becomes
    spaces, and a short *base* is padded out to *col*.  Open styling from
    the prefix is reset so it cannot leak into the overlay.
    """
    col = max(col, 0)
    parts: list[str] = []
    cols = 0
    tracker = AnsiCodeTracker()
    for chunk, width, is_escape in iter_units(base):
        if cols >= col:
            break
        if is_escape:
            tracker.process(chunk)
            parts.append(chunk)
            continue
        if cols + width > col:
            break
        parts.append(chunk)
        cols += width

    if cols < col:
        parts.append(" " * (col - cols))
    if tracker.has_active_codes():
        parts.append(RESET)
    parts.append(overlay)
    return "".join(parts)


def pad_or_truncate(block: str, width: int, height: int) -> str:
    """Normalise *block* to exactly *height* lines of *width* columns."""
    if height <= 0:
        return ""
    width = max(width, 0)

    lines = block.split("\n")[:height]
    lines.extend([""] * (height - len(lines)))

    out: list[str] = []
    for line in lines:
        line_width = visible_width(line)
        if line_width > width:
            line = truncate_to_width(line, width)
            line_width = visible_width(line)
        out.append(line + " " * (width - line_width))
    return "\n".join(out)


# ---------------------------------------------------------------------------
# Word wrapping
# ---------------------------------------------------------------------------


def wrap_text_with_ansi(text: str, width: int) -> list[str]:
    """Word-wrap *text* to *width* columns keeping styling intact.

    Each physical line wraps on its own; styling still open at a wrap point
    is closed at the end of the row and re-opened on the next one.
    """
    if width <= 0:
        return text.split("\n")

    tracker = AnsiCodeTracker()
    result: list[str] = []
    for physical in text.split("\n"):
        result.extend(_wrap_single_line(physical, width, tracker))
    return result


def _close_row(parts: list[str], styled: bool) -> str:
    row = "".join(parts)
    return row + RESET if styled else row


def _wrap_single_line(line: str, width: int, tracker: AnsiCodeTracker) -> list[str]:
    rows: list[str] = []
    row = [tracker.get_active_codes()]
    row_width = 0
    # index in `row` just after the last breakable space, with the styling
    # that was active there
    break_at = -1
    break_codes = ""

    for chunk, chunk_width, is_escape in iter_units(line):
        if is_escape:
            tracker.process(chunk)
            row.append(chunk)
            continue

        if row_width + chunk_width > width and row_width > 0:
            if chunk == " ":
                rows.append(_close_row(row, tracker.has_active_codes()))
                row = [tracker.get_active_codes()]
                row_width = 0
                break_at = -1
                continue
            if break_at > 0:
                carried = row[break_at:]
                rows.append(_close_row(row[: break_at - 1], bool(break_codes)))
                row = [break_codes, *carried]
                row_width = visible_width("".join(carried))
                if row_width + chunk_width > width and row_width > 0:
                    rows.append(_close_row(row, tracker.has_active_codes()))
                    row = [tracker.get_active_codes()]
                    row_width = 0
            else:
                rows.append(_close_row(row, tracker.has_active_codes()))
                row = [tracker.get_active_codes()]
                row_width = 0
            break_at = -1

        if chunk == " " and row_width > 0:
            row.append(chunk)
            break_at = len(row)
            break_codes = tracker.get_active_codes()
        else:
            row.append(chunk)
        row_width += chunk_width

    rows.append(_close_row(row, tracker.has_active_codes()))
    return rows
