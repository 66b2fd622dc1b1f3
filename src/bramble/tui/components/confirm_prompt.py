"""Single-keypress confirmation prompt."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from bramble.tui.compositor import box
from bramble.tui.keys import KeyMsg
from bramble.tui.theme import Styles


@dataclass(frozen=True)
class ConfirmOption:
    key: str
    label: str


@dataclass(frozen=True)
class ConfirmResult:
    matched: str = ""
    cancelled: bool = False
    quit: bool = False

    @property
    def handled(self) -> bool:
        return bool(self.matched) or self.cancelled or self.quit


@dataclass
class ConfirmPrompt:
    """Ask a question answered by one key.

    Keys that match no option are ignored rather than treated as a cancel,
    so a stray keypress cannot dismiss the prompt.  ``payload`` carries
    whatever the owner needs to act on the answer.
    """

    message: str
    options: list[ConfirmOption]
    payload: Any = field(default=None, compare=False)

    def handle_key(self, msg: KeyMsg) -> ConfirmResult:
        if msg.key == "escape":
            return ConfirmResult(cancelled=True)
        if msg.key == "ctrl+c":
            return ConfirmResult(quit=True)
        for option in self.options:
            if msg.key == option.key:
                return ConfirmResult(matched=option.key)
        return ConfirmResult()

    @property
    def height(self) -> int:
        # message lines, blank, hints, two borders
        return self.message.count("\n") + 5

    def view(self, width: int, styles: Styles) -> str:
        hints = [f"[{o.key}] {o.label}" for o in self.options]
        hints.append("[Esc] cancel")
        content = self.message + "\n\n" + styles.dim("  ".join(hints))
        return box(content, width=width, border_style=styles.input_border)
