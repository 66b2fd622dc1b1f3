"""Messages delivered to the controller and requests it emits.

Everything that reaches :meth:`InteractionController.handle_event` is a
message: a decoded key, a resize, or the single result of an earlier
request.  Requests are plain data; the runtime decides how to run them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from bramble.tui.backend import (
    PRInfo,
    RouteProposal,
    SessionMeta,
    SessionType,
    Worktree,
    WorktreeContext,
    WorktreeStatus,
)
from bramble.tui.keys import KeyMsg
from bramble.tui.settings import Settings

# ---------------------------------------------------------------------------
# Input messages
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResizeMsg:
    width: int
    height: int


@dataclass(frozen=True)
class SessionEventMsg:
    """One lifecycle event from the backend stream."""

    event: Any = None


@dataclass(frozen=True)
class SessionsUpdatedMsg:
    pass


@dataclass(frozen=True)
class SessionStartedMsg:
    session_id: str
    kind: SessionType = "planner"


@dataclass(frozen=True)
class WorktreesMsg:
    worktrees: tuple[Worktree, ...]


@dataclass(frozen=True)
class GitStatusMsg:
    """Snapshot of a parallel git status fetch, keyed by branch."""

    statuses: dict[str, WorktreeStatus] = field(default_factory=dict)


@dataclass(frozen=True)
class PRStatusMsg:
    prs: tuple[PRInfo, ...] = ()


@dataclass(frozen=True)
class HistorySessionsMsg:
    branch: str
    sessions: tuple[SessionMeta, ...] = ()


@dataclass(frozen=True)
class FileTreeMsg:
    worktree_path: str
    context: WorktreeContext = field(default_factory=WorktreeContext)


@dataclass(frozen=True)
class EventStreamErrorMsg:
    """The backend event stream raised; listening resumes after a delay."""

    error: str = ""


@dataclass(frozen=True)
class ListenRetryMsg:
    pass


@dataclass(frozen=True)
class GitStatusTickMsg:
    pass


@dataclass(frozen=True)
class PRStatusTickMsg:
    pass


@dataclass(frozen=True)
class ToastExpireMsg:
    generation: int


@dataclass(frozen=True)
class WorktreeCreatedMsg:
    worktree: Worktree
    prompt: str = ""


@dataclass(frozen=True)
class TaskProposalMsg:
    proposal: RouteProposal | None = None
    error: str = ""


@dataclass(frozen=True)
class ErrorMsg:
    message: str


Message = Union[
    KeyMsg,
    ResizeMsg,
    SessionEventMsg,
    SessionsUpdatedMsg,
    SessionStartedMsg,
    WorktreesMsg,
    GitStatusMsg,
    PRStatusMsg,
    HistorySessionsMsg,
    FileTreeMsg,
    EventStreamErrorMsg,
    ListenRetryMsg,
    GitStatusTickMsg,
    PRStatusTickMsg,
    ToastExpireMsg,
    WorktreeCreatedMsg,
    TaskProposalMsg,
    ErrorMsg,
]

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoadWorktrees:
    pass


@dataclass(frozen=True)
class ListenForEvents:
    pass


@dataclass(frozen=True)
class FetchGitStatuses:
    worktrees: tuple[Worktree, ...]


@dataclass(frozen=True)
class FetchPRStatuses:
    pass


@dataclass(frozen=True)
class LoadHistory:
    branch: str


@dataclass(frozen=True)
class LoadFileTree:
    worktree_path: str


@dataclass(frozen=True)
class OpenInEditor:
    editor: str
    path: str


@dataclass(frozen=True)
class Schedule:
    """Deliver *msg* once after *delay* seconds."""

    delay: float
    msg: Any


@dataclass(frozen=True)
class StartSession:
    kind: SessionType
    worktree_path: str
    prompt: str


@dataclass(frozen=True)
class StopSession:
    session_id: str


@dataclass(frozen=True)
class SendFollowUp:
    session_id: str
    prompt: str


@dataclass(frozen=True)
class CreateWorktree:
    """Create *branch*; a non-empty *prompt* starts a planner there afterwards."""

    branch: str
    parent: str = ""
    prompt: str = ""


@dataclass(frozen=True)
class RouteTask:
    prompt: str
    worktrees: tuple[str, ...] = ()


@dataclass(frozen=True)
class SaveSettings:
    settings: Settings


@dataclass(frozen=True)
class Quit:
    pass


Request = Union[
    LoadWorktrees,
    ListenForEvents,
    FetchGitStatuses,
    FetchPRStatuses,
    LoadHistory,
    LoadFileTree,
    OpenInEditor,
    Schedule,
    StartSession,
    StopSession,
    SendFollowUp,
    CreateWorktree,
    RouteTask,
    SaveSettings,
    Quit,
]
