"""Data the interface displays and the collaborators it talks to.

The session/worktree backend and the markdown renderer live outside this
package; only their shapes are defined here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Protocol, Sequence

SessionStatus = Literal["pending", "running", "idle", "completed", "failed", "stopped"]
SessionType = Literal["planner", "builder"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "failed", "stopped"})

OutputLineType = Literal[
    "text",
    "thinking",
    "tool",
    "tool_start",
    "tool_result",
    "error",
    "status",
    "turn_end",
    "plan_ready",
]

ToolState = Literal["", "running", "complete", "error"]


def is_terminal(status: str) -> bool:
    """``True`` once a session can no longer change state."""
    return status in TERMINAL_STATUSES


@dataclass(frozen=True)
class SessionProgress:
    turn_count: int = 0
    total_cost_usd: float = 0.0
    current_tool: str = ""
    status_line: str = ""


@dataclass(frozen=True)
class SessionInfo:
    id: str
    type: SessionType = "planner"
    status: SessionStatus = "pending"
    worktree_path: str = ""
    worktree_name: str = ""
    prompt: str = ""
    title: str = ""
    model: str = ""
    created_at: datetime | None = None
    progress: SessionProgress = field(default_factory=SessionProgress)
    error: str = ""

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    @property
    def accepts_input(self) -> bool:
        return self.status == "idle"


@dataclass(frozen=True)
class SessionMeta:
    """A persisted session from an earlier run."""

    id: str
    type: SessionType = "planner"
    status: SessionStatus = "completed"
    prompt: str = ""
    title: str = ""
    worktree_name: str = ""
    created_at: datetime | None = None


@dataclass(frozen=True)
class OutputLine:
    content: str = ""
    type: OutputLineType = "text"
    tool_name: str = ""
    tool_input: dict[str, Any] | None = None
    tool_state: ToolState = ""
    start_time: float = 0.0
    duration_ms: int = 0
    turn_number: int = 0
    cost_usd: float = 0.0


@dataclass(frozen=True)
class Worktree:
    branch: str
    path: str


@dataclass(frozen=True)
class WorktreeContext:
    """Uncommitted changes of a worktree, relative to its root."""

    changed_files: tuple[str, ...] = ()
    untracked_files: tuple[str, ...] = ()


@dataclass(frozen=True)
class PRInfo:
    number: int
    head_ref_name: str
    state: str = "OPEN"
    url: str = ""
    is_draft: bool = False
    review_decision: str = ""


@dataclass
class WorktreeStatus:
    """Git and PR state of one worktree, merged from two refresh cycles."""

    is_dirty: bool = False
    ahead: int = 0
    behind: int = 0
    last_commit_time: datetime | None = None
    last_commit_msg: str = ""
    pr_number: int = 0
    pr_state: str = ""
    pr_url: str = ""
    pr_is_draft: bool = False
    pr_review_status: str = ""

    def merge_git(self, other: WorktreeStatus) -> None:
        """Take the git fields from *other*, keeping PR data."""
        self.is_dirty = other.is_dirty
        self.ahead = other.ahead
        self.behind = other.behind
        self.last_commit_time = other.last_commit_time
        self.last_commit_msg = other.last_commit_msg

    def apply_pr(self, pr: PRInfo | None) -> None:
        if pr is None:
            self.pr_number = 0
            self.pr_state = ""
            self.pr_url = ""
            self.pr_is_draft = False
            self.pr_review_status = ""
            return
        self.pr_number = pr.number
        self.pr_state = pr.state
        self.pr_url = pr.url
        self.pr_is_draft = pr.is_draft
        self.pr_review_status = pr.review_decision


@dataclass(frozen=True)
class RouteProposal:
    """Where a free-form task should run."""

    action: Literal["use_existing", "create_new"]
    worktree: str
    parent: str = ""
    reasoning: str = ""


class SessionBackend(Protocol):
    """Session and worktree operations the interface depends on.

    Everything except :meth:`next_event` is synchronous and may block; the
    runtime calls those methods off the event loop.
    """

    def get_all_sessions(self) -> list[SessionInfo]: ...

    def get_session_info(self, session_id: str) -> SessionInfo | None: ...

    def get_sessions_for_worktree(self, worktree_path: str) -> list[SessionInfo]: ...

    def get_session_output(self, session_id: str) -> list[OutputLine]: ...

    def list_worktrees(self) -> list[Worktree]: ...

    def get_git_status(self, worktree: Worktree) -> WorktreeStatus: ...

    def get_worktree_context(self, worktree_path: str) -> WorktreeContext: ...

    def list_open_prs(self) -> list[PRInfo]: ...

    def load_history_sessions(self, branch: str) -> list[SessionMeta]: ...

    async def next_event(self) -> Any: ...

    def start_session(self, kind: SessionType, worktree_path: str, prompt: str) -> str: ...

    def stop_session(self, session_id: str) -> None: ...

    def send_follow_up(self, session_id: str, prompt: str) -> None: ...

    def create_worktree(self, branch: str, parent: str = "") -> Worktree: ...

    def route_task(self, prompt: str, worktrees: Sequence[str]) -> RouteProposal: ...


class MarkdownRenderer(Protocol):
    def render(self, text: str, width: int) -> str: ...
