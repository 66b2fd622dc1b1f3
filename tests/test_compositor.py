"""Tests for bramble.tui.compositor -- overlays, boxes and pane layout."""

from __future__ import annotations

from bramble.tui.compositor import (
    SplitPane,
    block_height,
    block_width,
    box,
    join_horizontal,
    join_vertical,
    overlay_at,
    place_center,
)
from bramble.tui.utils import visible_width

BASE = "aaaaa\nbbbbb\nccccc"


# ---------------------------------------------------------------------------
# overlay_at
# ---------------------------------------------------------------------------


class TestOverlayAt:
    def test_replaces_from_column(self) -> None:
        assert overlay_at(BASE, "XY\nZW", 1, 1) == "aaaaa\nbXY\ncZW"

    def test_rows_below_base_are_dropped(self) -> None:
        out = overlay_at(BASE, "XY\nZW", 2, 2)
        assert out.split("\n") == ["aaaaa", "bbbbb", "ccXY"]

    def test_rows_above_base_are_dropped(self) -> None:
        out = overlay_at(BASE, "XY\nZW", 0, -1)
        assert out.split("\n") == ["ZW", "bbbbb", "ccccc"]

    def test_short_base_row_is_padded(self) -> None:
        assert overlay_at("a", "X", 3, 0) == "a  X"

    def test_keeps_line_count(self) -> None:
        out = overlay_at(BASE, "1\n2\n3\n4\n5", 0, 0)
        assert block_height(out) == 3

    def test_wide_glyph_straddling_column_becomes_space(self) -> None:
        assert overlay_at("日本", "X", 1, 0) == " X"


# ---------------------------------------------------------------------------
# Blocks and joins
# ---------------------------------------------------------------------------


class TestBlocks:
    def test_block_width(self) -> None:
        assert block_width("ab\nabcd\n世") == 4

    def test_block_height(self) -> None:
        assert block_height("") == 0
        assert block_height("a") == 1
        assert block_height("a\nb") == 2

    def test_join_vertical_skips_empty(self) -> None:
        assert join_vertical("a", "", "b") == "a\nb"

    def test_join_horizontal_aligns_rows(self) -> None:
        assert join_horizontal([("a", 2), ("b\nc", 3)], 2) == "a b  \n  c  "

    def test_join_horizontal_zero_height(self) -> None:
        assert join_horizontal([("a", 2)], 0) == ""


class TestPlaceCenter:
    def test_centers_block(self) -> None:
        assert place_center("ab", 6, 3) == "      \n  ab  \n      "

    def test_oversized_block_is_cut(self) -> None:
        out = place_center("abcdefgh\n1\n2\n3", 4, 2)
        rows = out.split("\n")
        assert len(rows) == 2
        assert all(visible_width(r) == 4 for r in rows)

    def test_empty_area(self) -> None:
        assert place_center("ab", 0, 3) == ""


# ---------------------------------------------------------------------------
# box
# ---------------------------------------------------------------------------


class TestBox:
    def test_hugs_content(self) -> None:
        assert box("hi") == "╭────╮\n│ hi │\n╰────╯"

    def test_fixed_width_pads_content(self) -> None:
        rows = box("hi", width=10).split("\n")
        assert all(visible_width(r) == 10 for r in rows)
        assert rows[1] == "│ hi     │"

    def test_fixed_width_cuts_content(self) -> None:
        rows = box("a long line of text", width=10).split("\n")
        assert rows[1] == "│ a l... │"

    def test_title_in_top_border(self) -> None:
        assert box("", width=10, title="T").split("\n")[0] == "╭─ T ────╮"

    def test_vertical_padding(self) -> None:
        rows = box("x", padding_y=1).split("\n")
        assert rows == ["╭───╮", "│   │", "│ x │", "│   │", "╰───╯"]

    def test_border_style(self) -> None:
        out = box("x", border_style=lambda s: f"[{s}]")
        assert out.split("\n")[0].startswith("[╭]")


# ---------------------------------------------------------------------------
# SplitPane
# ---------------------------------------------------------------------------


class TestSplitPane:
    def test_single_mode_passes_right_through(self) -> None:
        pane = SplitPane()
        assert pane.render("L", "R", 100, 3) == "R"
        assert pane.right_width(100) == 100

    def test_split_widths(self) -> None:
        pane = SplitPane(split=True)
        assert pane.left_width(100) == 30
        assert pane.right_width(100) == 69

    def test_split_render(self) -> None:
        pane = SplitPane(split=True)
        rows = pane.render("L", "R", 100, 2).split("\n")
        assert len(rows) == 2
        assert rows[0] == "L" + " " * 29 + "│" + "R" + " " * 68
        assert rows[1] == " " * 30 + "│" + " " * 69

    def test_toggle_resets_focus(self) -> None:
        pane = SplitPane()
        pane.toggle()
        pane.toggle_focus()
        assert pane.focus_left
        pane.toggle()
        assert not pane.split
        assert not pane.focus_left

    def test_focus_toggle_needs_split(self) -> None:
        pane = SplitPane()
        pane.toggle_focus()
        assert not pane.focus_left
