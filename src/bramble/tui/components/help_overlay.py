"""Context-aware key binding help."""

from __future__ import annotations

from dataclasses import dataclass, field

from bramble.tui.compositor import box, place_center
from bramble.tui.theme import Styles
from bramble.tui.utils import truncate_to_width, visible_width

KEY_COLUMN = 12


@dataclass(frozen=True)
class HelpBinding:
    key: str
    description: str


@dataclass(frozen=True)
class HelpSection:
    title: str
    bindings: tuple[HelpBinding, ...] = ()


@dataclass(frozen=True)
class HelpContext:
    """What the user was looking at when help opened."""

    has_worktree: bool = False
    has_session: bool = False
    session_status: str = ""
    split: bool = False
    previous_focus: str = "output"


def build_help_sections(ctx: HelpContext) -> list[HelpSection]:
    sections = [
        HelpSection(
            "Navigation",
            (
                HelpBinding("Alt-W", "Open worktree selector"),
                HelpBinding("Alt-S", "Open session selector"),
                HelpBinding("Alt-A", "Browse all active sessions"),
                HelpBinding("F2", "Toggle file tree split"),
                HelpBinding("Tab", "Switch pane focus (when split)"),
                HelpBinding("?", "Toggle this help"),
            ),
        )
    ]

    sessions: list[HelpBinding] = []
    if ctx.has_worktree:
        sessions += [
            HelpBinding("t", "New task (picks a worktree)"),
            HelpBinding("p", "Start planner session"),
            HelpBinding("b", "Start builder session"),
        ]
    sessions.append(HelpBinding("1..9", "Quick switch to session N"))
    if ctx.has_session and ctx.session_status == "idle":
        sessions.append(HelpBinding("f", "Follow-up on idle session"))
    if ctx.has_session and ctx.session_status in ("running", "idle"):
        sessions.append(HelpBinding("s", "Stop session"))
    sections.append(HelpSection("Sessions", tuple(sessions)))

    worktrees = [HelpBinding("n", "Create new worktree"), HelpBinding("r", "Refresh worktrees")]
    if ctx.has_worktree:
        worktrees.append(HelpBinding("e", "Open worktree in editor"))
    sections.append(HelpSection("Worktrees", tuple(worktrees)))
    if ctx.split:
        sections.append(
            HelpSection(
                "File Tree",
                (
                    HelpBinding("Up/Down", "Navigate changed files"),
                    HelpBinding("Enter", "Open file in editor"),
                    HelpBinding("Tab", "Switch to output pane"),
                ),
            )
        )
    sections.append(
        HelpSection(
            "Output",
            (
                HelpBinding("Up/k", "Scroll up"),
                HelpBinding("Down/j", "Scroll down"),
                HelpBinding("PgUp", "Scroll up 10 lines"),
                HelpBinding("PgDn", "Scroll down 10 lines"),
                HelpBinding("Home", "Scroll to top"),
                HelpBinding("End", "Scroll to bottom"),
                HelpBinding("Esc", "Follow latest output"),
            ),
        )
    )

    if ctx.previous_focus in ("worktree_dropdown", "session_dropdown"):
        sections.append(
            HelpSection(
                "Dropdown",
                (
                    HelpBinding("Up/Down", "Move selection"),
                    HelpBinding("Type", "Filter the list"),
                    HelpBinding("Enter", "Confirm selection"),
                    HelpBinding("Esc", "Clear filter / close dropdown"),
                ),
            )
        )
    if ctx.previous_focus == "input":
        sections.append(
            HelpSection(
                "Input Mode",
                (
                    HelpBinding("Tab", "Cycle focus (text/send/cancel)"),
                    HelpBinding("Enter", "Submit prompt (non-empty)"),
                    HelpBinding("Shift+Enter", "Insert newline"),
                    HelpBinding("Ctrl+S", "Submit (alternative)"),
                    HelpBinding("Esc", "Cancel input"),
                ),
            )
        )

    sections.append(
        HelpSection(
            "General",
            (
                HelpBinding(",", "Settings"),
                HelpBinding("q", "Quit"),
                HelpBinding("Ctrl-C", "Force quit"),
            ),
        )
    )
    return sections


@dataclass
class HelpOverlay:
    """Scrollable list of help sections drawn in a centered box.

    The scroll offset is clamped against the content height when the
    overlay is rendered, since only then is the height known.
    """

    sections: list[HelpSection] = field(default_factory=list)
    width: int = 0
    height: int = 0
    scroll_offset: int = 0

    def set_sections(self, sections: list[HelpSection]) -> None:
        self.sections = list(sections)
        self.scroll_offset = 0

    def set_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def scroll_up(self) -> None:
        if self.scroll_offset > 0:
            self.scroll_offset -= 1

    def scroll_down(self) -> None:
        self.scroll_offset += 1

    def content_lines(self, styles: Styles) -> list[str]:
        lines = [styles.title("Bramble Key Bindings"), ""]
        for i, section in enumerate(self.sections):
            if i > 0:
                lines.append("")
            lines.append(styles.help_section(section.title))
            for binding in section.bindings:
                key = " " * max(KEY_COLUMN - visible_width(binding.key), 0) + binding.key
                lines.append("  " + styles.help_key(key) + "  " + binding.description)
        return lines

    def _visible_height(self, total: int) -> int:
        visible = self.height - 8
        return total if visible < 5 else visible

    def view(self, styles: Styles) -> str:
        lines = self.content_lines(styles)
        visible = self._visible_height(len(lines))
        max_scroll = max(len(lines) - visible, 0)
        self.scroll_offset = min(self.scroll_offset, max_scroll)

        start = self.scroll_offset
        end = min(start + visible, len(lines))
        shown = lines[start:end]
        if start > 0:
            shown.insert(0, styles.dim("  (scroll up for more)"))
        if end < len(lines):
            shown.append(styles.dim("  (scroll down for more)"))
        shown += ["", styles.dim("Press ? or Esc to close")]

        box_width = max(min(self.width - 10, 72), 40)
        if self.width > 0:
            box_width = min(box_width, self.width)
        content = "\n".join(truncate_to_width(line, box_width - 6) for line in shown)
        framed = box(content, width=box_width, border_style=styles.border, padding_x=2, padding_y=1)
        if self.width > 0 and self.height > 0:
            return place_center(framed, self.width, self.height)
        return framed
