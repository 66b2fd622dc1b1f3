"""bramble-tui: terminal interface for agent sessions across git worktrees."""

# Collaborator interfaces
from bramble.tui.backend import (
    MarkdownRenderer,
    OutputLine,
    PRInfo,
    RouteProposal,
    SessionBackend,
    SessionInfo,
    SessionMeta,
    SessionProgress,
    Worktree,
    WorktreeStatus,
)

# Components (re-exported from components package)
from bramble.tui.components import (
    ConfirmPrompt,
    Dropdown,
    DropdownItem,
    HelpOverlay,
    SessionBrowser,
    SettingsDialog,
    TaskModal,
    TextArea,
    ToastManager,
)

# Layout
from bramble.tui.compositor import SplitPane, box, join_horizontal, join_vertical, overlay_at, place_center

# Controller and runtime
from bramble.tui.controller import FocusTarget, InteractionController
from bramble.tui.keybindings import (
    DEFAULT_KEYBINDINGS,
    KeybindingsManager,
    get_keybindings,
    set_keybindings,
)
from bramble.tui.keys import KeyMsg, decode_key, matches_key, parse_key
from bramble.tui.runtime import EventLoop
from bramble.tui.scrollback import ScrollMemory, compute_window, max_scroll_offset, render_scrollable_lines
from bramble.tui.settings import Settings, load_settings, save_settings
from bramble.tui.theme import BUILTIN_THEMES, Palette, Styles, make_styles, theme_by_name

# Text metrics
from bramble.tui.utils import (
    pad_or_truncate,
    splice_at,
    truncate_to_width,
    visible_width,
    wrap_text_with_ansi,
)

__all__ = [
    "BUILTIN_THEMES",
    "ConfirmPrompt",
    "DEFAULT_KEYBINDINGS",
    "Dropdown",
    "DropdownItem",
    "EventLoop",
    "FocusTarget",
    "HelpOverlay",
    "InteractionController",
    "KeyMsg",
    "KeybindingsManager",
    "MarkdownRenderer",
    "OutputLine",
    "PRInfo",
    "Palette",
    "RouteProposal",
    "ScrollMemory",
    "SessionBackend",
    "SessionBrowser",
    "SessionInfo",
    "SessionMeta",
    "SessionProgress",
    "Settings",
    "SettingsDialog",
    "SplitPane",
    "Styles",
    "TaskModal",
    "TextArea",
    "ToastManager",
    "Worktree",
    "WorktreeStatus",
    "box",
    "compute_window",
    "decode_key",
    "get_keybindings",
    "join_horizontal",
    "join_vertical",
    "load_settings",
    "make_styles",
    "matches_key",
    "max_scroll_offset",
    "overlay_at",
    "pad_or_truncate",
    "parse_key",
    "place_center",
    "render_scrollable_lines",
    "save_settings",
    "set_keybindings",
    "splice_at",
    "theme_by_name",
    "truncate_to_width",
    "visible_width",
    "wrap_text_with_ansi",
]
