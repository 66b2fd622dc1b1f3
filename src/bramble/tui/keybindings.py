"""Key bindings for the editor, lists and the main view."""

from __future__ import annotations

from typing import Literal, Mapping

from bramble.tui.keys import KeyId, normalize_key_id

Action = Literal[
    # Text field
    "cursorUp",
    "cursorDown",
    "cursorLeft",
    "cursorRight",
    "cursorLineStart",
    "cursorLineEnd",
    "deleteCharBackward",
    "deleteCharForward",
    "newLine",
    "submit",
    "confirm",
    "cancel",
    "focusNext",
    "focusPrev",
    "forceQuit",
    # Lists
    "selectUp",
    "selectDown",
    "selectConfirm",
    "selectCancel",
    # Main view
    "quit",
    "confirmYes",
    "help",
    "openWorktrees",
    "openSessions",
    "openSessionBrowser",
    "openSettings",
    "newTask",
    "planSession",
    "buildSession",
    "followUp",
    "stopSession",
    "newWorktree",
    "openEditor",
    "refresh",
    "toggleSplit",
    "pinLatest",
    "scrollUp",
    "scrollDown",
    "pageUp",
    "pageDown",
    "scrollTop",
    "scrollBottom",
]

KeybindingsConfig = Mapping[str, KeyId | list[KeyId]]

DEFAULT_KEYBINDINGS: dict[Action, KeyId | list[KeyId]] = {
    # Text field
    "cursorUp": "up",
    "cursorDown": "down",
    "cursorLeft": ["left", "ctrl+b"],
    "cursorRight": ["right", "ctrl+f"],
    "cursorLineStart": ["home", "ctrl+a"],
    "cursorLineEnd": ["end", "ctrl+e"],
    "deleteCharBackward": "backspace",
    "deleteCharForward": ["delete", "ctrl+d"],
    "newLine": ["shift+enter", "alt+enter"],
    "submit": ["ctrl+enter", "ctrl+s"],
    "confirm": "enter",
    "cancel": "escape",
    "focusNext": "tab",
    "focusPrev": "shift+tab",
    "forceQuit": "ctrl+c",
    # Lists
    "selectUp": "up",
    "selectDown": "down",
    "selectConfirm": "enter",
    "selectCancel": "escape",
    # Main view
    "quit": "q",
    "confirmYes": "y",
    "help": "?",
    "openWorktrees": "alt+w",
    "openSessions": "alt+s",
    "openSessionBrowser": "alt+a",
    "openSettings": ",",
    "newTask": "t",
    "planSession": "p",
    "buildSession": "b",
    "followUp": "f",
    "stopSession": "s",
    "newWorktree": "n",
    "openEditor": "e",
    "refresh": "r",
    "toggleSplit": "f2",
    "pinLatest": "escape",
    "scrollUp": ["up", "k"],
    "scrollDown": ["down", "j"],
    "pageUp": "pageUp",
    "pageDown": "pageDown",
    "scrollTop": "home",
    "scrollBottom": "end",
}


class KeybindingsManager:
    """Resolve key identifiers to actions, with user overrides."""

    def __init__(self, config: KeybindingsConfig | None = None) -> None:
        self._action_to_keys: dict[str, list[KeyId]] = {}
        self._build_maps(config or {})

    def _build_maps(self, config: KeybindingsConfig) -> None:
        self._action_to_keys.clear()
        for source in (DEFAULT_KEYBINDINGS, config):
            for action, keys in source.items():
                if action not in DEFAULT_KEYBINDINGS:
                    continue
                key_array = keys if isinstance(keys, list) else [keys]
                self._action_to_keys[action] = [normalize_key_id(k) for k in key_array]

    def matches(self, key: KeyId, action: Action) -> bool:
        """Check whether a decoded key triggers *action*."""
        return key in self._action_to_keys.get(action, ())

    def get_keys(self, action: Action) -> list[KeyId]:
        return self._action_to_keys.get(action, [])

    def label(self, action: Action) -> str:
        """First bound key, for help text."""
        keys = self.get_keys(action)
        return keys[0] if keys else ""

    def set_config(self, config: KeybindingsConfig) -> None:
        self._build_maps(config)


_global_keybindings: KeybindingsManager | None = None


def get_keybindings() -> KeybindingsManager:
    global _global_keybindings
    if _global_keybindings is None:
        _global_keybindings = KeybindingsManager()
    return _global_keybindings


def set_keybindings(manager: KeybindingsManager) -> None:
    global _global_keybindings
    _global_keybindings = manager
