"""Tests for bramble.tui.keys -- decoding raw terminal input."""

from __future__ import annotations

import pytest

from bramble.tui.keys import KeyMsg, decode_key, matches_key, normalize_key_id, parse_key


# ---------------------------------------------------------------------------
# parse_key
# ---------------------------------------------------------------------------


class TestParseKeySimple:
    @pytest.mark.parametrize(
        "data, expected",
        [
            ("a", "a"),
            ("A", "A"),
            ("?", "?"),
            ("\r", "enter"),
            ("\n", "enter"),
            ("\t", "tab"),
            (" ", "space"),
            ("\x7f", "backspace"),
            ("\x08", "backspace"),
            ("\x1b", "escape"),
        ],
    )
    def test_single_bytes(self, data: str, expected: str) -> None:
        assert parse_key(data) == expected

    def test_empty_is_none(self) -> None:
        assert parse_key("") is None


class TestParseKeyCtrl:
    def test_ctrl_c(self) -> None:
        assert parse_key("\x03") == "ctrl+c"

    def test_ctrl_a(self) -> None:
        assert parse_key("\x01") == "ctrl+a"

    def test_ctrl_space(self) -> None:
        assert parse_key("\x00") == "ctrl+space"


class TestParseKeyAlt:
    def test_alt_letter(self) -> None:
        assert parse_key("\x1bw") == "alt+w"

    def test_alt_uppercase_is_shift_alt(self) -> None:
        assert parse_key("\x1bW") == "shift+alt+w"

    def test_ctrl_alt(self) -> None:
        assert parse_key("\x1b\x03") == "ctrl+alt+c"


class TestParseKeyLegacySequences:
    @pytest.mark.parametrize(
        "data, expected",
        [
            ("\x1b[A", "up"),
            ("\x1b[B", "down"),
            ("\x1b[C", "right"),
            ("\x1b[D", "left"),
            ("\x1b[H", "home"),
            ("\x1b[F", "end"),
            ("\x1bOA", "up"),
            ("\x1bOQ", "f2"),
            ("\x1b[12~", "f2"),
            ("\x1b[5~", "pageUp"),
            ("\x1b[6~", "pageDown"),
            ("\x1b[3~", "delete"),
            ("\x1b[Z", "shift+tab"),
        ],
    )
    def test_sequences(self, data: str, expected: str) -> None:
        assert parse_key(data) == expected

    def test_modified_arrow(self) -> None:
        assert parse_key("\x1b[1;5A") == "ctrl+up"

    def test_modified_tilde(self) -> None:
        assert parse_key("\x1b[3;2~") == "shift+delete"

    def test_unknown_sequence(self) -> None:
        assert parse_key("\x1b[99X") is None


class TestParseKeyKitty:
    def test_ctrl_letter(self) -> None:
        assert parse_key("\x1b[97;5u") == "ctrl+a"

    def test_shift_enter(self) -> None:
        assert parse_key("\x1b[13;2u") == "shift+enter"

    def test_release_is_ignored(self) -> None:
        assert parse_key("\x1b[97;5:3u") is None

    def test_lock_bits_are_ignored(self) -> None:
        # caps lock (64) on top of ctrl
        assert parse_key("\x1b[97;69u") == "ctrl+a"

    def test_modify_other_keys(self) -> None:
        assert parse_key("\x1b[27;5;13~") == "ctrl+enter"


# ---------------------------------------------------------------------------
# normalize_key_id / matches_key
# ---------------------------------------------------------------------------


class TestNormalizeKeyId:
    def test_modifier_order(self) -> None:
        assert normalize_key_id("alt+ctrl+x") == "ctrl+alt+x"

    def test_case_folding_with_modifiers(self) -> None:
        assert normalize_key_id("Ctrl+Shift+A") == "ctrl+shift+a"

    def test_aliases(self) -> None:
        assert normalize_key_id("esc") == "escape"
        assert normalize_key_id("PgUp") == "pageUp"
        assert normalize_key_id("return") == "enter"

    def test_plus_key(self) -> None:
        assert normalize_key_id("ctrl++") == "ctrl++"

    def test_plain_character_keeps_case(self) -> None:
        assert normalize_key_id("Q") == "Q"


class TestMatchesKey:
    def test_matches(self) -> None:
        assert matches_key("\x03", "ctrl+c")
        assert matches_key("\x1b[5~", "pageup")

    def test_no_match(self) -> None:
        assert not matches_key("\x03", "ctrl+d")

    def test_undecodable(self) -> None:
        assert not matches_key("\x1b[99X", "up")


# ---------------------------------------------------------------------------
# KeyMsg / decode_key
# ---------------------------------------------------------------------------


class TestKeyMsg:
    def test_of_printable(self) -> None:
        assert KeyMsg.of("a") == KeyMsg("a", "a")

    def test_of_space(self) -> None:
        assert KeyMsg.of("space") == KeyMsg("space", " ")

    def test_of_named_key_has_no_text(self) -> None:
        msg = KeyMsg.of("pageup")
        assert msg == KeyMsg("pageUp")
        assert not msg.is_text

    def test_paste(self) -> None:
        msg = KeyMsg.paste("hello")
        assert msg.key == ""
        assert msg.is_text


class TestDecodeKey:
    def test_character(self) -> None:
        assert decode_key("x") == KeyMsg("x", "x")

    def test_named(self) -> None:
        assert decode_key("\x1b[A") == KeyMsg("up")

    def test_space(self) -> None:
        assert decode_key(" ") == KeyMsg("space", " ")

    def test_multi_character_input_is_paste(self) -> None:
        assert decode_key("hello world") == KeyMsg("", "hello world")

    def test_paste_normalises_crlf(self) -> None:
        assert decode_key("a\r\nb") == KeyMsg("", "a\nb")

    def test_unknown_escape(self) -> None:
        assert decode_key("\x1b[99X") is None
