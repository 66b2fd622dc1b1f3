"""Settings dialog: pick a color theme with live preview."""

from __future__ import annotations

from typing import Sequence

from bramble.tui.compositor import box, place_center
from bramble.tui.theme import BUILTIN_THEMES, Palette, Styles


class SettingsDialog:
    """Theme list whose selection the owner applies as it moves.

    ``original_theme`` remembers what was active when the dialog opened so
    the owner can revert on cancel.
    """

    def __init__(self, themes: Sequence[Palette] = BUILTIN_THEMES) -> None:
        self._themes = list(themes)
        self._selected = 0
        self._original = ""
        self._visible = False
        self.width = 0
        self.height = 0

    def show(self, current_theme: str, width: int, height: int) -> None:
        self._visible = True
        self._original = current_theme
        self.width = width
        self.height = height
        self._selected = next(
            (i for i, p in enumerate(self._themes) if p.name == current_theme),
            0,
        )

    def hide(self) -> None:
        self._visible = False

    @property
    def is_visible(self) -> bool:
        return self._visible

    @property
    def original_theme(self) -> str:
        return self._original

    def set_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def move_selection(self, delta: int) -> None:
        if self._themes:
            self._selected = max(0, min(self._selected + delta, len(self._themes) - 1))

    def selected_theme(self) -> Palette:
        return self._themes[self._selected]

    def view(self, styles: Styles) -> str:
        lines = [styles.title("Settings"), "", styles.help_section("Theme")]
        for i, palette in enumerate(self._themes):
            marker = "●" if palette.name == self._original else " "
            row = f"  {marker} {palette.name}"
            lines.append(styles.selected(row) if i == self._selected else row)
        lines += ["", styles.dim("[↑/↓] Preview  [Enter] Save  [Esc] Revert")]

        framed = box("\n".join(lines), width=44, border_style=styles.border, padding_x=2, padding_y=1)
        if self.width > 0 and self.height > 0:
            return place_center(framed, self.width, self.height)
        return framed
