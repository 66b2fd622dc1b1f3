"""Keyboard input decoding.

Turns raw terminal input into key identifiers such as ``"a"``, ``"ctrl+c"``,
``"shift+enter"`` or ``"pageUp"``.  Understands the kitty keyboard protocol
(CSI-u), xterm ``modifyOtherKeys``, the usual legacy escape sequences and
ESC-prefixed alt combinations.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

KeyId = str

# ---------------------------------------------------------------------------
# Modifier bits as encoded in CSI parameters (value - 1)
# ---------------------------------------------------------------------------

MODIFIERS: dict[str, int] = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
}

LOCK_MASK = 64 + 128

_CODEPOINT_KEYS: dict[int, str] = {
    27: "escape",
    9: "tab",
    13: "enter",
    32: "space",
    127: "backspace",
    57414: "enter",  # keypad enter
}

# Final byte of CSI / SS3 sequences -> key
_FINAL_KEYS: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
    "E": "clear",
    "P": "f1",
    "Q": "f2",
    "R": "f3",
    "S": "f4",
}

# Number of ``CSI <n> ~`` sequences -> key
_TILDE_KEYS: dict[int, str] = {
    1: "home",
    2: "insert",
    3: "delete",
    4: "end",
    5: "pageUp",
    6: "pageDown",
    7: "home",
    8: "end",
    11: "f1",
    12: "f2",
    13: "f3",
    14: "f4",
    15: "f5",
    17: "f6",
    18: "f7",
    19: "f8",
    20: "f9",
    21: "f10",
    23: "f11",
    24: "f12",
}

_KEY_ALIASES: dict[str, str] = {
    "esc": "escape",
    "return": "enter",
    "pgup": "pageUp",
    "pgdown": "pageDown",
    "pageup": "pageUp",
    "pagedown": "pageDown",
}

_CSI_U_RE = re.compile(r"\x1b\[(\d+)(?::\d*)*(?:;(\d+)(?::(\d+))?)?u$")
_MODIFY_OTHER_KEYS_RE = re.compile(r"\x1b\[27;(\d+);(\d+)~$")
_CSI_FINAL_RE = re.compile(r"\x1b\[(?:1;(\d+)(?::(\d+))?)?([ABCDHFEPQRS])$")
_SS3_RE = re.compile(r"\x1bO(\d?)([ABCDHFPQRS])$")
_CSI_TILDE_RE = re.compile(r"\x1b\[(\d+)(?:;(\d+)(?::(\d+))?)?~$")

_RELEASE_EVENT = "3"


def _modifier_prefix(modifier: int) -> str:
    mod = (modifier - 1) & ~LOCK_MASK
    prefix = ""
    if mod & MODIFIERS["ctrl"]:
        prefix += "ctrl+"
    if mod & MODIFIERS["shift"]:
        prefix += "shift+"
    if mod & MODIFIERS["alt"]:
        prefix += "alt+"
    return prefix


def _codepoint_key(codepoint: int) -> str | None:
    named = _CODEPOINT_KEYS.get(codepoint)
    if named is not None:
        return named
    if 0 < codepoint < 0x110000:
        ch = chr(codepoint)
        if ch.isprintable():
            return ch.lower()
    return None


def normalize_key_id(key_id: KeyId) -> KeyId:
    """Canonicalise a key identifier written by hand (config, bindings)."""
    *mods, base = key_id.split("+") if key_id != "+" else ["+"]
    if not base and mods:
        # "ctrl++" style identifiers for the plus key
        base = "+"
        mods = mods[:-1]
    if len(base) > 1:
        base = _KEY_ALIASES.get(base.lower(), base.lower())
    elif mods:
        base = base.lower()
    order = [m for m in ("ctrl", "shift", "alt") if m in {x.lower() for x in mods}]
    return "+".join([*order, base])


def parse_key(data: str) -> KeyId | None:
    """Return the key identifier for raw terminal input, or ``None``.

    Key release events and unrecognised sequences yield ``None``.
    """
    if not data:
        return None

    if data.startswith("\x1b["):
        m = _CSI_U_RE.match(data)
        if m:
            if m.group(3) == _RELEASE_EVENT:
                return None
            key = _codepoint_key(int(m.group(1)))
            if key is None:
                return None
            return _modifier_prefix(int(m.group(2) or 1)) + key

        m = _MODIFY_OTHER_KEYS_RE.match(data)
        if m:
            key = _codepoint_key(int(m.group(2)))
            if key is None:
                return None
            return _modifier_prefix(int(m.group(1))) + key

        if data == "\x1b[Z":
            return "shift+tab"

        m = _CSI_FINAL_RE.match(data)
        if m:
            if m.group(2) == _RELEASE_EVENT:
                return None
            return _modifier_prefix(int(m.group(1) or 1)) + _FINAL_KEYS[m.group(3)]

        m = _CSI_TILDE_RE.match(data)
        if m:
            key = _TILDE_KEYS.get(int(m.group(1)))
            if key is None or m.group(3) == _RELEASE_EVENT:
                return None
            return _modifier_prefix(int(m.group(2) or 1)) + key
        return None

    if data.startswith("\x1bO"):
        m = _SS3_RE.match(data)
        if m:
            return _modifier_prefix(int(m.group(1) or 1)) + _FINAL_KEYS[m.group(2)]
        return None

    if data == "\x1b":
        return "escape"
    if data in ("\r", "\n"):
        return "enter"
    if data == "\t":
        return "tab"
    if data == " ":
        return "space"
    if data in ("\x7f", "\x08"):
        return "backspace"
    if data == "\x00":
        return "ctrl+space"
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return "ctrl+" + chr(ord(data) + ord("a") - 1)

    if len(data) == 2 and data[0] == "\x1b":
        inner = parse_key(data[1])
        if inner is None:
            return None
        if inner.startswith("ctrl+"):
            return "ctrl+alt+" + inner[len("ctrl+"):]
        if len(inner) == 1 and inner.isupper():
            return "shift+alt+" + inner.lower()
        return "alt+" + inner

    if len(data) == 1 and data.isprintable():
        return data
    return None


def matches_key(data: str, key_id: KeyId) -> bool:
    """Return ``True`` if raw *data* decodes to *key_id*."""
    parsed = parse_key(data)
    return parsed is not None and parsed == normalize_key_id(key_id)


# ---------------------------------------------------------------------------
# Key messages
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyMsg:
    """A decoded key press.

    ``key`` is the identifier used for bindings.  ``text`` is what the press
    would type into a text field: a single character, a pasted run of
    printable text, or ``""`` for control and navigation keys.
    """

    key: KeyId
    text: str = ""

    @classmethod
    def of(cls, key_id: KeyId) -> KeyMsg:
        """Build the message a terminal would produce for *key_id*."""
        if key_id == "space":
            return cls("space", " ")
        if len(key_id) == 1 and key_id.isprintable():
            return cls(key_id, key_id)
        return cls(normalize_key_id(key_id))

    @classmethod
    def paste(cls, text: str) -> KeyMsg:
        return cls("", text)

    @property
    def is_text(self) -> bool:
        return bool(self.text)


def decode_key(data: str) -> KeyMsg | None:
    """Decode raw input into a :class:`KeyMsg`.

    Multi-character printable input that is not an escape sequence is
    treated as a paste.
    """
    key = parse_key(data)
    if key is not None:
        if key == "space":
            return KeyMsg("space", " ")
        if len(key) == 1:
            return KeyMsg(key, data)
        return KeyMsg(key)
    if data and not data.startswith("\x1b") and all(
        ch.isprintable() or ch in "\r\n\t" for ch in data
    ):
        return KeyMsg.paste(data.replace("\r\n", "\n"))
    return None
