"""Tests for bramble.tui.utils -- terminal text metrics."""

from __future__ import annotations

import pytest

from bramble.tui.utils import (
    RESET,
    AnsiCodeTracker,
    extract_ansi_code,
    grapheme_width,
    iter_units,
    pad_or_truncate,
    splice_at,
    strip_ansi,
    truncate_to_width,
    visible_width,
    wrap_text_with_ansi,
)


# ---------------------------------------------------------------------------
# visible_width
# ---------------------------------------------------------------------------


class TestVisibleWidth:
    """Measure the visible terminal width of text."""

    def test_plain_ascii(self) -> None:
        assert visible_width("hello") == 5

    def test_empty_string(self) -> None:
        assert visible_width("") == 0

    def test_ansi_codes_do_not_count(self) -> None:
        assert visible_width("\x1b[1mhi\x1b[0m") == 2

    def test_multiple_ansi_codes(self) -> None:
        assert visible_width("\x1b[1m\x1b[31mabc\x1b[0m") == 3

    def test_wide_cjk_characters_count_as_two(self) -> None:
        assert visible_width("世") == 2

    def test_mixed_ascii_and_wide(self) -> None:
        assert visible_width("A世B") == 4

    def test_tab_counts_as_three_spaces(self) -> None:
        assert visible_width("\t") == 3
        assert visible_width("a\tb") == 5

    def test_osc8_hyperlink_does_not_count(self) -> None:
        text = "\x1b]8;;https://example.com\x07link\x1b]8;;\x07"
        assert visible_width(text) == 4

    def test_apc_sequence_does_not_count(self) -> None:
        assert visible_width("\x1b_payload\x07visible") == 7

    def test_cursor_movement_codes_do_not_count(self) -> None:
        assert visible_width("\x1b[2Kab\x1b[10G") == 2

    def test_only_escapes_is_zero(self) -> None:
        assert visible_width("\x1b[31m\x1b[0m") == 0

    def test_combining_mark_adds_nothing(self) -> None:
        assert visible_width("e\u0301") == 1


class TestGraphemeWidth:
    def test_emoji_with_skin_tone_is_two(self) -> None:
        assert grapheme_width("\U0001f44d\U0001f3fd") == 2

    def test_zwj_family_is_two(self) -> None:
        assert grapheme_width("\U0001f468\u200d\U0001f469\u200d\U0001f467") == 2

    def test_flag_is_two(self) -> None:
        assert grapheme_width("\U0001f1fa\U0001f1f8") == 2

    def test_control_character_is_zero(self) -> None:
        assert grapheme_width("\x07") == 0

    def test_empty_is_zero(self) -> None:
        assert grapheme_width("") == 0


# ---------------------------------------------------------------------------
# Escape handling
# ---------------------------------------------------------------------------


class TestEscapes:
    def test_extract_csi(self) -> None:
        assert extract_ansi_code("\x1b[31mred", 0) == ("\x1b[31m", 5)

    def test_extract_osc_with_st(self) -> None:
        code = "\x1b]8;;url\x1b\\"
        assert extract_ansi_code(code + "x", 0) == (code, len(code))

    def test_extract_not_at_escape(self) -> None:
        assert extract_ansi_code("abc", 1) is None

    def test_unterminated_sequence(self) -> None:
        assert extract_ansi_code("\x1b]8;;never-ends", 0) is None

    def test_strip_ansi(self) -> None:
        assert strip_ansi("\x1b[1mbold\x1b[0m \x1b]8;;u\x07x\x1b]8;;\x07") == "bold x"


class TestAnsiCodeTracker:
    def test_tracks_bold_and_color(self) -> None:
        tracker = AnsiCodeTracker()
        tracker.process("\x1b[1;31m")
        assert tracker.get_active_codes() == "\x1b[1m\x1b[31m"

    def test_reset_clears(self) -> None:
        tracker = AnsiCodeTracker()
        tracker.process("\x1b[1m")
        tracker.process("\x1b[0m")
        assert not tracker.has_active_codes()
        assert tracker.get_line_end_reset() == ""

    def test_truecolor(self) -> None:
        tracker = AnsiCodeTracker()
        tracker.process("\x1b[38;2;10;20;30m")
        assert tracker.get_active_codes() == "\x1b[38;2;10;20;30m"

    def test_partial_reset(self) -> None:
        tracker = AnsiCodeTracker()
        tracker.process("\x1b[1;4m")
        tracker.process("\x1b[22m")
        assert tracker.get_active_codes() == "\x1b[4m"


# ---------------------------------------------------------------------------
# truncate_to_width
# ---------------------------------------------------------------------------


class TestTruncateToWidth:
    """Truncate text to a maximum visible width."""

    def test_short_text_unchanged(self) -> None:
        assert truncate_to_width("hi", 10) == "hi"

    def test_exact_width_unchanged(self) -> None:
        assert truncate_to_width("hello", 5) == "hello"

    def test_truncates_with_ellipsis(self) -> None:
        assert truncate_to_width("hello world", 8) == "hello..."

    def test_truncate_with_custom_ellipsis(self) -> None:
        result = truncate_to_width("hello world", 6, ellipsis="..")
        assert result == "hell.."

    def test_truncate_zero_width_returns_empty(self) -> None:
        assert truncate_to_width("hello", 0) == ""

    def test_ellipsis_wider_than_limit(self) -> None:
        assert truncate_to_width("hello world", 2) == ".."

    def test_pad_fills_to_max_width(self) -> None:
        result = truncate_to_width("hi", 10, pad=True)
        assert result == "hi" + " " * 8

    def test_pad_after_cut(self) -> None:
        result = truncate_to_width("世世世", 5, pad=True)
        assert visible_width(result) == 5

    def test_wide_glyph_never_split(self) -> None:
        # one column left before the ellipsis, too narrow for the glyph
        assert truncate_to_width("世世世", 4) == "..."

    def test_styled_cut_gets_reset(self) -> None:
        result = truncate_to_width("\x1b[31mhello world\x1b[0m", 8)
        assert result == "\x1b[31mhello" + RESET + "..."
        assert visible_width(result) == 8


# ---------------------------------------------------------------------------
# splice_at / pad_or_truncate
# ---------------------------------------------------------------------------


class TestSpliceAt:
    def test_replaces_tail(self) -> None:
        assert splice_at("hello world", "XY", 6) == "hello XY"

    def test_pads_short_base(self) -> None:
        assert splice_at("ab", "X", 4) == "ab  X"

    def test_wide_glyph_straddling_column_becomes_space(self) -> None:
        assert splice_at("a世b", "X", 2) == "a X"

    def test_open_styling_is_reset_before_overlay(self) -> None:
        assert splice_at("\x1b[31mred text", "X", 3) == "\x1b[31mred" + RESET + "X"

    def test_column_zero(self) -> None:
        assert splice_at("abc", "Z", 0) == "Z"


def _open_styling(text: str) -> bool:
    tracker = AnsiCodeTracker()
    for chunk, _, is_escape in iter_units(text):
        if is_escape:
            tracker.process(chunk)
    return tracker.has_active_codes()


_TRUNCATE_INPUTS = [
    "hello world, plain ascii",
    "世界のテキスト幅を測る",
    "👨‍👩‍👧 family 👍🏽 thumbs 🇯🇵",
    "\x1b[31mred\x1b[0m 世界 \x1b[1;4mbold\x1b[22;24m tail",
    "\x1b[38;2;1;2;3m漢\x1b]8;;https://x\x07link\x1b]8;;\x07字\x1b[39m",
]

_SPLICE_BASE = "\x1b[1;32m世界\x1b[0m ok \x1b[4m👍x\x1b[24m \x1b[7m字\x1b[27m"


class TestWidthSweeps:
    @pytest.mark.parametrize("text", _TRUNCATE_INPUTS)
    def test_truncate_never_exceeds_width(self, text: str) -> None:
        for width in range(visible_width(text) + 3):
            result = truncate_to_width(text, width)
            assert visible_width(result) <= width
            assert not _open_styling(result)
            padded = truncate_to_width(text, width, pad=True)
            assert visible_width(padded) == width

    @pytest.mark.parametrize("overlay", ["|", "\x1b[35m▌\x1b[0m", "字"])
    def test_splice_keeps_escapes_whole(self, overlay: str) -> None:
        for col in range(visible_width(_SPLICE_BASE) + 3):
            result = splice_at(_SPLICE_BASE, overlay, col)
            assert result.endswith(overlay)
            prefix = result[: len(result) - len(overlay)]
            assert "\x1b" not in strip_ansi(result)
            assert visible_width(prefix) == col
            assert not _open_styling(prefix)


class TestPadOrTruncate:
    def test_pads_lines_and_rows(self) -> None:
        assert pad_or_truncate("ab\ncd", 3, 3) == "ab \ncd \n   "

    def test_cuts_extra_rows(self) -> None:
        assert pad_or_truncate("a\nb\nc", 1, 2) == "a\nb"

    def test_truncates_wide_lines(self) -> None:
        out = pad_or_truncate("hello world", 8, 1)
        assert visible_width(out) == 8

    def test_zero_height(self) -> None:
        assert pad_or_truncate("abc", 3, 0) == ""


# ---------------------------------------------------------------------------
# wrap_text_with_ansi
# ---------------------------------------------------------------------------


class TestWrapTextWithAnsi:
    """Word-wrapping text while preserving ANSI codes."""

    def test_short_text_no_wrap(self) -> None:
        assert wrap_text_with_ansi("hello", 80) == ["hello"]

    def test_wraps_at_word_boundary(self) -> None:
        assert wrap_text_with_ansi("hello world", 6) == ["hello", "world"]

    def test_preserves_embedded_newlines(self) -> None:
        assert wrap_text_with_ansi("line1\nline2", 80) == ["line1", "line2"]

    def test_long_word_forced_break(self) -> None:
        lines = wrap_text_with_ansi("abcdefghijklmnop", 5)
        assert lines == ["abcde", "fghij", "klmno", "p"]

    def test_zero_width_returns_text_as_is(self) -> None:
        assert wrap_text_with_ansi("hello", 0) == ["hello"]

    def test_ansi_codes_preserved_across_wrap(self) -> None:
        text = "\x1b[1m" + "a " * 20 + "\x1b[0m"
        lines = wrap_text_with_ansi(text, 10)
        assert len(lines) >= 2
        for line in lines[1:]:
            assert line.startswith("\x1b[1m")
        for line in lines[:-1]:
            assert line.endswith(RESET)

    def test_rows_never_exceed_width(self) -> None:
        text = "the quick brown fox jumps over the lazy dog " * 3
        for line in wrap_text_with_ansi(text, 12):
            assert visible_width(line) <= 12

    def test_empty_string(self) -> None:
        assert wrap_text_with_ansi("", 10) == [""]
