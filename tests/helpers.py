"""Test doubles: an in-memory session backend, a manual clock and key helpers."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any, Sequence

from bramble.tui.backend import (
    OutputLine,
    PRInfo,
    RouteProposal,
    SessionInfo,
    SessionMeta,
    SessionType,
    Worktree,
    WorktreeContext,
    WorktreeStatus,
)
from bramble.tui.controller import InteractionController
from bramble.tui.keys import KeyMsg
from bramble.tui.messages import WorktreesMsg


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeBackend:
    """Backend holding sessions and worktrees in dictionaries.

    Blocking calls return immediately; ``next_event`` waits on a queue the
    test pushes into, after raising ``event_failures`` times.  Adding a
    method name to ``fail`` makes that method raise ``RuntimeError``.
    """

    def __init__(self) -> None:
        self.sessions: dict[str, SessionInfo] = {}
        self.outputs: dict[str, list[OutputLine]] = {}
        self.worktrees: list[Worktree] = []
        self.git_statuses: dict[str, WorktreeStatus] = {}
        self.contexts: dict[str, WorktreeContext] = {}
        self.prs: list[PRInfo] = []
        self.history: dict[str, list[SessionMeta]] = {}
        self.proposal = RouteProposal("use_existing", "main")
        self.fail: set[str] = set()
        self.calls: list[tuple[Any, ...]] = []
        self.events: asyncio.Queue[Any] | None = None
        self.event_failures = 0
        self._next_id = 1

    def _check(self, name: str) -> None:
        if name in self.fail:
            raise RuntimeError(f"{name} failed")

    # -- helpers for tests ----------------------------------------------------

    def add_worktree(self, branch: str, path: str | None = None) -> Worktree:
        wt = Worktree(branch, path or f"/repo/.worktrees/{branch}")
        self.worktrees.append(wt)
        return wt

    def add_session(
        self,
        session_id: str,
        worktree: Worktree,
        status: str = "running",
        kind: SessionType = "planner",
        lines: int = 0,
        **kwargs: Any,
    ) -> SessionInfo:
        info = SessionInfo(
            id=session_id,
            type=kind,
            status=status,  # type: ignore[arg-type]
            worktree_path=worktree.path,
            worktree_name=worktree.branch,
            prompt=kwargs.pop("prompt", f"prompt for {session_id}"),
            **kwargs,
        )
        self.sessions[session_id] = info
        self.outputs[session_id] = [OutputLine(f"line {i}", "status") for i in range(lines)]
        return info

    def set_status(self, session_id: str, status: str) -> None:
        self.sessions[session_id] = replace(self.sessions[session_id], status=status)  # type: ignore[arg-type]

    # -- SessionBackend -------------------------------------------------------

    def get_all_sessions(self) -> list[SessionInfo]:
        return list(self.sessions.values())

    def get_session_info(self, session_id: str) -> SessionInfo | None:
        return self.sessions.get(session_id)

    def get_sessions_for_worktree(self, worktree_path: str) -> list[SessionInfo]:
        return [s for s in self.sessions.values() if s.worktree_path == worktree_path]

    def get_session_output(self, session_id: str) -> list[OutputLine]:
        return list(self.outputs.get(session_id, []))

    def list_worktrees(self) -> list[Worktree]:
        self._check("list_worktrees")
        return list(self.worktrees)

    def get_git_status(self, worktree: Worktree) -> WorktreeStatus:
        self._check("get_git_status")
        if worktree.branch in self.fail:
            raise RuntimeError(f"git status for {worktree.branch} failed")
        return self.git_statuses.get(worktree.branch, WorktreeStatus())

    def get_worktree_context(self, worktree_path: str) -> WorktreeContext:
        self._check("get_worktree_context")
        return self.contexts.get(worktree_path, WorktreeContext())

    def list_open_prs(self) -> list[PRInfo]:
        self._check("list_open_prs")
        return list(self.prs)

    def load_history_sessions(self, branch: str) -> list[SessionMeta]:
        self._check("load_history_sessions")
        return list(self.history.get(branch, []))

    async def next_event(self) -> Any:
        if self.event_failures > 0:
            self.event_failures -= 1
            raise RuntimeError("event stream broken")
        if self.events is None:
            self.events = asyncio.Queue()
        return await self.events.get()

    def start_session(self, kind: SessionType, worktree_path: str, prompt: str) -> str:
        self._check("start_session")
        self.calls.append(("start_session", kind, worktree_path, prompt))
        session_id = f"session-{self._next_id:04d}"
        self._next_id += 1
        wt = next((w for w in self.worktrees if w.path == worktree_path), Worktree("?", worktree_path))
        self.add_session(session_id, wt, kind=kind, prompt=prompt)
        return session_id

    def stop_session(self, session_id: str) -> None:
        self._check("stop_session")
        self.calls.append(("stop_session", session_id))
        self.set_status(session_id, "stopped")

    def send_follow_up(self, session_id: str, prompt: str) -> None:
        self._check("send_follow_up")
        self.calls.append(("send_follow_up", session_id, prompt))
        self.set_status(session_id, "running")

    def create_worktree(self, branch: str, parent: str = "") -> Worktree:
        self._check("create_worktree")
        self.calls.append(("create_worktree", branch, parent))
        return self.add_worktree(branch)

    def route_task(self, prompt: str, worktrees: Sequence[str]) -> RouteProposal:
        self._check("route_task")
        self.calls.append(("route_task", prompt, tuple(worktrees)))
        return self.proposal


def press(ctrl: InteractionController, *keys: str) -> list[Any]:
    """Send each key to *ctrl*; return the requests from the last one."""
    requests: list[Any] = []
    for key in keys:
        requests = ctrl.handle_event(KeyMsg.of(key))
    return requests


def type_text(ctrl: InteractionController, text: str) -> None:
    for ch in text:
        ctrl.handle_event(KeyMsg.of("space") if ch == " " else KeyMsg.of(ch))


def load_worktrees(ctrl: InteractionController, backend: FakeBackend) -> list[Any]:
    return ctrl.handle_event(WorktreesMsg(tuple(backend.worktrees)))
