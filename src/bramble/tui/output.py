"""Formatting of session output and session/worktree labels."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any, Callable, Sequence

from bramble.tui.backend import MarkdownRenderer, OutputLine, WorktreeStatus
from bramble.tui.theme import Styles
from bramble.tui.utils import truncate_to_width, visible_width, wrap_text_with_ansi

logger = logging.getLogger(__name__)

TYPE_ICONS = {
    "planner": "📋",
    "builder": "🔨",
}

_STATUS_ICONS = {
    "pending": "○",
    "running": "●",
    "idle": "◐",
    "completed": "✓",
    "failed": "✗",
    "stopped": "◌",
}


def type_icon(kind: str) -> str:
    return TYPE_ICONS.get(kind, TYPE_ICONS["planner"])


def status_icon(status: str, styles: Styles) -> str:
    icon = _STATUS_ICONS.get(status)
    if icon is None:
        return "?"
    if status == "stopped":
        return styles.dim(icon)
    return styles.for_status(status)(icon)


def time_ago(t: datetime, now: datetime | None = None) -> str:
    """Coarse relative time such as ``5m ago``."""
    if now is None:
        now = datetime.now(t.tzinfo)
    seconds = (now - t).total_seconds()
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{int(seconds // 60)}m ago"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h ago"
    return f"{int(seconds // 86400)}d ago"


def format_worktree_status(status: WorktreeStatus, now: datetime | None = None) -> str:
    """One-line summary like ``dirty | ↑2 ↓1 | PR#12 OPEN | 3h ago``."""
    parts = ["dirty" if status.is_dirty else "clean"]
    ahead_behind = []
    if status.ahead > 0:
        ahead_behind.append(f"↑{status.ahead}")
    if status.behind > 0:
        ahead_behind.append(f"↓{status.behind}")
    if ahead_behind:
        parts.append(" ".join(ahead_behind))
    if status.pr_number > 0:
        parts.append(f"PR#{status.pr_number} {status.pr_state}")
    if status.last_commit_time is not None:
        parts.append(time_ago(status.last_commit_time, now))
    return " | ".join(parts)


def generate_dropdown_title(prompt: str, max_len: int) -> str:
    """Whole leading words of *prompt* that fit in *max_len* characters."""
    title = ""
    for word in prompt.split():
        extra = len(word) + (1 if title else 0)
        if len(title) + extra > max_len:
            break
        title = f"{title} {word}" if title else word
    if not title and prompt:
        if len(prompt) > max_len - 3:
            return prompt[: max(max_len - 3, 0)] + "..."
        return prompt
    return title


# ---------------------------------------------------------------------------
# Tool display
# ---------------------------------------------------------------------------


def truncate_path(path: str, max_len: int) -> str:
    """Shorten *path* to ``.../<basename>`` when it is too wide."""
    if visible_width(path) <= max_len:
        return path
    parts = path.split("/")
    if max_len <= 7 or len(parts) <= 2:
        return truncate_to_width(path, max_len)
    suffix = parts[-1]
    if visible_width(suffix) + 4 >= max_len:
        return truncate_to_width(path, max_len)
    return ".../" + suffix


def format_tool_display(tool_name: str, tool_input: dict[str, Any] | None, max_len: int) -> str:
    """``[Tool] detail`` where the detail depends on the tool."""
    if not tool_input:
        return f"[{tool_name}]"

    room = max_len - len(tool_name) - 4
    detail = ""
    if tool_name == "Read":
        path = tool_input.get("file_path")
        if isinstance(path, str):
            detail = truncate_path(path, room)
    elif tool_name in ("Write", "Edit"):
        path = tool_input.get("file_path")
        if isinstance(path, str):
            detail = "→ " + truncate_path(path, room - 2)
    elif tool_name in ("Bash", "Grep"):
        key = "command" if tool_name == "Bash" else "pattern"
        value = tool_input.get(key)
        if isinstance(value, str):
            detail = truncate_to_width(value, room)
    elif tool_name == "Glob":
        value = tool_input.get("pattern")
        if isinstance(value, str):
            detail = value
    elif tool_name == "Task":
        value = tool_input.get("description")
        if isinstance(value, str):
            detail = value

    if detail:
        return f"[{tool_name}] {detail}"
    return f"[{tool_name}]"


# ---------------------------------------------------------------------------
# Output lines
# ---------------------------------------------------------------------------


def should_render_markdown(content: str) -> bool:
    """Only multi-line text goes through markdown; single lines stay stable."""
    return "\n" in content


def render_text_content(
    content: str,
    md: MarkdownRenderer | None,
    width: int,
    fallback_prefix: str = "  ",
) -> str:
    normalized = content.strip("\r\n")
    if md is not None and should_render_markdown(normalized):
        try:
            return md.render(normalized, width).strip("\n")
        except Exception as e:  # noqa: BLE001
            logger.debug("Markdown rendering failed: %s", e)
    return fallback_prefix + normalized


def _seconds(ms: int) -> str:
    return f"{ms / 1000:.2f}s"


def format_output_line(
    line: OutputLine,
    width: int,
    styles: Styles,
    md: MarkdownRenderer | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> str:
    """Render one output line.  The result may span several rows."""
    kind = line.type
    if kind == "error":
        formatted = styles.error("  ✗ " + line.content)
    elif kind == "thinking":
        formatted = styles.dim("  💭 " + truncate_to_width(line.content, width - 8))
    elif kind == "tool":
        formatted = "  🔧 " + line.content
    elif kind == "tool_start":
        display = format_tool_display(line.tool_name, line.tool_input, width - 12)
        if line.tool_state == "running":
            elapsed = max(clock() - line.start_time, 0.0)
            formatted = "  🔧 " + display + " " + styles.running(f"⏳ {elapsed:.1f}s")
        elif line.tool_state == "complete":
            formatted = "  ✓ " + styles.dim(f"{display} ({_seconds(line.duration_ms)})")
        elif line.tool_state == "error":
            formatted = "  " + styles.error(f"✗ {display} ({_seconds(line.duration_ms)})")
        else:
            formatted = "  🔧 " + display
    elif kind == "turn_end":
        formatted = styles.dim(f"  ─── Turn {line.turn_number} complete (${line.cost_usd:.4f}) ───")
    elif kind == "status":
        formatted = styles.dim("  → " + line.content)
    elif kind == "plan_ready":
        header = styles.dim("  " + "═" * 20 + " Plan Ready " + "═" * 20)
        body = ""
        if md is not None and line.content:
            try:
                body = md.render(line.content, width).rstrip("\n")
            except Exception as e:  # noqa: BLE001
                logger.debug("Markdown rendering failed: %s", e)
        return header + "\n" + (body or "  " + line.content)
    elif kind == "text":
        return render_text_content(line.content, md, width)
    else:
        formatted = "  " + line.content

    if visible_width(formatted) > width - 2:
        formatted = truncate_to_width(formatted, width - 2)
    return formatted


def build_visual_lines(
    lines: Sequence[OutputLine],
    width: int,
    styles: Styles,
    md: MarkdownRenderer | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> list[str]:
    """Expand output lines into the rows the scrollback operates on.

    Scrolling counts these rows, not logical output lines, so a long
    paragraph scrolls one row at a time.
    """
    rows: list[str] = []
    for line in lines:
        formatted = format_output_line(line, width, styles, md, clock)
        for row in formatted.split("\n"):
            if visible_width(row) > width:
                rows.extend(wrap_text_with_ansi(row, width))
            else:
                rows.append(row)
    return rows
