"""Navigable tree of the files changed in a worktree."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import Literal

from bramble.tui.backend import WorktreeContext
from bramble.tui.theme import Styles, plain_styles
from bramble.tui.utils import truncate_to_width

FileStatus = Literal["M", "A", "D", "?"]


@dataclass(frozen=True)
class ChangedFile:
    path: str
    status: FileStatus = "M"


@dataclass(frozen=True)
class FileEntry:
    """One rendered row: a directory header or a file."""

    text: str
    path: str = ""
    status: str = ""
    is_dir: bool = False


def _relative_dir(path: str, root: str) -> str:
    directory = posixpath.dirname(path) or "."
    if root and posixpath.isabs(directory):
        directory = posixpath.relpath(directory, root)
    return directory


class FileTree:
    """Changed and untracked files grouped by directory.

    Files are sorted by path and listed under a ``dir/`` header; when every
    file sits at the worktree root the header is left out.  The cursor
    moves over headers too, but only file rows have a path.
    """

    def __init__(self, root: str = "", context: WorktreeContext | None = None) -> None:
        self.root = root
        self.files: list[ChangedFile] = []
        self.entries: list[FileEntry] = []
        self.cursor = 0
        self.offset = 0
        self.focused = False
        self.set_context(root, context)

    def set_context(self, root: str, context: WorktreeContext | None) -> None:
        self.root = root
        self.files = []
        if context is not None:
            self.files += [ChangedFile(p, "M") for p in context.changed_files]
            self.files += [ChangedFile(p, "?") for p in context.untracked_files]
        self._rebuild()

    def _rebuild(self) -> None:
        self.entries = []
        if not self.files:
            self.cursor = 0
            self.offset = 0
            return

        groups: dict[str, list[ChangedFile]] = {}
        for f in sorted(self.files, key=lambda f: f.path):
            groups.setdefault(_relative_dir(f.path, self.root), []).append(f)

        root_only = list(groups) == ["."]
        for directory, files in groups.items():
            indent = "  " if root_only else "    "
            if not root_only:
                self.entries.append(FileEntry(f"  {directory}/", is_dir=True))
            for f in files:
                name = posixpath.basename(f.path)
                self.entries.append(FileEntry(f"{indent}{f.status} {name}", path=f.path, status=f.status))

        self.cursor = max(0, min(self.cursor, len(self.entries) - 1))

    def file_count(self) -> int:
        return len(self.files)

    def move(self, delta: int) -> None:
        if not self.entries:
            return
        self.cursor = max(0, min(self.cursor + delta, len(self.entries) - 1))

    def selected_path(self) -> str:
        """Path of the file under the cursor; empty on a directory header."""
        if 0 <= self.cursor < len(self.entries):
            return self.entries[self.cursor].path
        return ""

    def abs_selected_path(self) -> str:
        path = self.selected_path()
        if not path or posixpath.isabs(path) or not self.root:
            return path
        return posixpath.join(self.root, path)

    def render(self, width: int, height: int, styles: Styles | None = None) -> str:
        styles = styles or plain_styles()
        title = f"Files ({len(self.files)})" if self.files else "Files"
        header_style = styles.accent if self.focused else styles.dim
        rows = [
            header_style(truncate_to_width(title, width)),
            header_style("─" * max(width, 0)),
        ]
        content_height = max(height - 2, 1)

        if not self.entries:
            rows.append(styles.dim(truncate_to_width("  (no changes)", width)))
            return "\n".join(rows[:height])

        if self.cursor < self.offset:
            self.offset = self.cursor
        if self.cursor >= self.offset + content_height:
            self.offset = self.cursor - content_height + 1

        for i in range(self.offset, min(self.offset + content_height, len(self.entries))):
            entry = self.entries[i]
            text = truncate_to_width(entry.text, width)
            if i == self.cursor:
                rows.append(styles.selected(text))
            elif entry.is_dir:
                rows.append(styles.dim(text))
            else:
                rows.append(text)
        return "\n".join(rows[:height])
