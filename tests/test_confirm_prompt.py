"""Tests for the single-key ConfirmPrompt."""

from __future__ import annotations

from bramble.tui.components.confirm_prompt import ConfirmOption, ConfirmPrompt, ConfirmResult
from bramble.tui.keys import KeyMsg
from bramble.tui.theme import plain_styles
from bramble.tui.utils import visible_width


def _prompt() -> ConfirmPrompt:
    return ConfirmPrompt(
        "Delete worktree feature-x?",
        [ConfirmOption("y", "yes"), ConfirmOption("n", "no")],
        payload="feature-x",
    )


class TestConfirmPromptKeys:
    def test_matching_option(self) -> None:
        result = _prompt().handle_key(KeyMsg.of("y"))
        assert result == ConfirmResult(matched="y")
        assert result.handled

    def test_escape_cancels(self) -> None:
        result = _prompt().handle_key(KeyMsg.of("escape"))
        assert result.cancelled
        assert result.handled

    def test_ctrl_c_quits(self) -> None:
        assert _prompt().handle_key(KeyMsg.of("ctrl+c")).quit

    def test_other_keys_ignored(self) -> None:
        result = _prompt().handle_key(KeyMsg.of("x"))
        assert result == ConfirmResult()
        assert not result.handled

    def test_match_is_case_sensitive(self) -> None:
        assert not _prompt().handle_key(KeyMsg.of("Y")).handled


class TestConfirmPromptView:
    def test_view_lists_options(self) -> None:
        out = _prompt().view(50, plain_styles())
        assert "Delete worktree feature-x?" in out
        assert "[y] yes" in out
        assert "[Esc] cancel" in out

    def test_height_matches_view(self) -> None:
        prompt = _prompt()
        assert len(prompt.view(50, plain_styles()).split("\n")) == prompt.height

    def test_fixed_width(self) -> None:
        for row in _prompt().view(50, plain_styles()).split("\n"):
            assert visible_width(row) == 50

    def test_payload_not_compared(self) -> None:
        other = _prompt()
        other.payload = "other"
        assert other == _prompt()
