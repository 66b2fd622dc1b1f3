"""Color palettes and the styling functions derived from them.

A :class:`Palette` is plain data: a name plus one color token per semantic
role.  Tokens are either ``#RRGGBB`` hex strings or 256-color indices
written as decimal strings.  :func:`make_styles` turns a palette into a
:class:`Styles` bundle of ``str -> str`` callables that the widgets use, so
a palette can be swapped at runtime by rebuilding the bundle.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Callable

StyleFn = Callable[[str], str]


@dataclass(frozen=True)
class Palette:
    name: str
    accent: str
    dim: str
    border: str
    bar_bg: str
    bar_fg: str
    select_bg: str
    select_fg: str
    error: str
    running: str
    idle: str
    pending: str
    done: str
    toast_success_bg: str
    toast_success_fg: str
    toast_info_bg: str
    toast_info_fg: str
    toast_error_bg: str
    toast_error_fg: str


def _color_params(token: str, layer: int) -> str:
    """SGR parameters selecting *token* as foreground (38) or background (48)."""
    if token.startswith("#") and len(token) == 7:
        r, g, b = (int(token[i : i + 2], 16) for i in (1, 3, 5))
        return f"{layer};2;{r};{g};{b}"
    return f"{layer};5;{int(token)}"


def style(
    fg: str | None = None,
    bg: str | None = None,
    bold: bool = False,
) -> StyleFn:
    """Return a function wrapping text in the given SGR attributes."""
    params: list[str] = []
    if bold:
        params.append("1")
    if fg:
        params.append(_color_params(fg, 38))
    if bg:
        params.append(_color_params(bg, 48))
    if not params:
        return _identity
    prefix = f"\x1b[{';'.join(params)}m"

    def apply(text: str) -> str:
        return f"{prefix}{text}\x1b[0m" if text else text

    return apply


def _identity(text: str) -> str:
    return text


def bold(text: str) -> str:
    return f"\x1b[1m{text}\x1b[22m" if text else text


def inverse(text: str) -> str:
    return f"\x1b[7m{text}\x1b[27m" if text else text


@dataclass
class Styles:
    """Styling callables for every role the widgets draw."""

    palette_name: str
    title: StyleFn
    accent: StyleFn
    dim: StyleFn
    error: StyleFn
    border: StyleFn
    input_border: StyleFn
    top_bar: StyleFn
    status_bar: StyleFn
    selected: StyleFn
    running: StyleFn
    idle: StyleFn
    pending: StyleFn
    done: StyleFn
    toast_success: StyleFn
    toast_info: StyleFn
    toast_error: StyleFn
    help_key: StyleFn
    help_section: StyleFn
    divider: StyleFn
    cursor: StyleFn

    def for_status(self, status: str) -> StyleFn:
        """Style for a session status value."""
        return {
            "running": self.running,
            "starting": self.pending,
            "pending": self.pending,
            "idle": self.idle,
            "completed": self.done,
            "failed": self.error,
            "stopped": self.done,
        }.get(status, self.dim)

    def for_toast(self, level: str) -> StyleFn:
        return {
            "success": self.toast_success,
            "error": self.toast_error,
        }.get(level, self.toast_info)


def make_styles(p: Palette) -> Styles:
    return Styles(
        palette_name=p.name,
        title=style(fg=p.accent, bold=True),
        accent=style(fg=p.accent),
        dim=style(fg=p.dim),
        error=style(fg=p.error),
        border=style(fg=p.border),
        input_border=style(fg=p.accent),
        top_bar=style(fg=p.bar_fg, bg=p.bar_bg),
        status_bar=style(fg=p.dim, bg=p.bar_bg),
        selected=style(fg=p.select_fg, bg=p.select_bg),
        running=style(fg=p.running),
        idle=style(fg=p.idle),
        pending=style(fg=p.pending),
        done=style(fg=p.done),
        toast_success=style(fg=p.toast_success_fg, bg=p.toast_success_bg),
        toast_info=style(fg=p.toast_info_fg, bg=p.toast_info_bg),
        toast_error=style(fg=p.toast_error_fg, bg=p.toast_error_bg),
        help_key=style(fg=p.accent, bold=True),
        help_section=style(fg=p.idle, bold=True),
        divider=style(fg=p.border),
        cursor=inverse,
    )


def plain_styles() -> Styles:
    """Styles that apply no escapes at all."""
    plain = {f.name: _identity for f in fields(Styles) if f.name != "palette_name"}
    return Styles(palette_name="plain", **plain)


# ---------------------------------------------------------------------------
# Builtin palettes
# ---------------------------------------------------------------------------

DARK = Palette(
    name="dark",
    accent="#D77757",
    dim="#999999",
    border="#505050",
    bar_bg="#373737",
    bar_fg="#FFFFFF",
    select_bg="#606060",
    select_fg="#FFFFFF",
    error="#FF6B80",
    running="#4EBA65",
    idle="#B1B9F9",
    pending="#FFC107",
    done="#999999",
    toast_success_bg="#1A3D1F",
    toast_success_fg="#4EBA65",
    toast_info_bg="#2A2D4A",
    toast_info_fg="#B1B9F9",
    toast_error_bg="#4A1A22",
    toast_error_fg="#FF6B80",
)

LIGHT = Palette(
    name="light",
    accent="#D77757",
    dim="#666666",
    border="#AFAFAF",
    bar_bg="#F0F0F0",
    bar_fg="#000000",
    select_bg="#C0C0C0",
    select_fg="#000000",
    error="#AB2B3F",
    running="#2C7A39",
    idle="#5769F7",
    pending="#966C1E",
    done="#666666",
    toast_success_bg="#D4EDDA",
    toast_success_fg="#2C7A39",
    toast_info_bg="#D6DAFE",
    toast_info_fg="#5769F7",
    toast_error_bg="#F5D0D6",
    toast_error_fg="#AB2B3F",
)

DARK_DALTONIZED = Palette(
    name="dark-daltonized",
    accent="#FF9933",
    dim="#999999",
    border="#505050",
    bar_bg="#373737",
    bar_fg="#FFFFFF",
    select_bg="#606060",
    select_fg="#FFFFFF",
    error="#FF6666",
    running="#3399FF",
    idle="#99CCFF",
    pending="#FFCC00",
    done="#999999",
    toast_success_bg="#1A2D4A",
    toast_success_fg="#3399FF",
    toast_info_bg="#2A3D5A",
    toast_info_fg="#99CCFF",
    toast_error_bg="#4A1A1A",
    toast_error_fg="#FF6666",
)

DARK_ANSI = Palette(
    name="dark-ansi",
    accent="9",
    dim="7",
    border="7",
    bar_bg="236",
    bar_fg="15",
    select_bg="240",
    select_fg="15",
    error="9",
    running="10",
    idle="12",
    pending="11",
    done="7",
    toast_success_bg="22",
    toast_success_fg="10",
    toast_info_bg="17",
    toast_info_fg="12",
    toast_error_bg="52",
    toast_error_fg="9",
)

LIGHT_ANSI = Palette(
    name="light-ansi",
    accent="9",
    dim="8",
    border="8",
    bar_bg="254",
    bar_fg="0",
    select_bg="195",
    select_fg="0",
    error="1",
    running="2",
    idle="4",
    pending="3",
    done="8",
    toast_success_bg="194",
    toast_success_fg="2",
    toast_info_bg="153",
    toast_info_fg="4",
    toast_error_bg="217",
    toast_error_fg="1",
)

BUILTIN_THEMES: tuple[Palette, ...] = (DARK, LIGHT, DARK_DALTONIZED, DARK_ANSI, LIGHT_ANSI)


def theme_by_name(name: str) -> Palette | None:
    for palette in BUILTIN_THEMES:
        if palette.name == name:
            return palette
    return None
