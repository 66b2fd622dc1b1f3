"""Asyncio runtime that feeds the controller and executes its requests.

One consumer reads the message queue and calls the controller; every
request runs as its own task and posts at most one message back.  Blocking
backend calls are pushed to worker threads.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
import threading
from typing import Any, Awaitable, Callable

from bramble.tui.backend import SessionBackend, WorktreeStatus
from bramble.tui.controller import DEFAULT_EDITOR, InteractionController
from bramble.tui.messages import (
    CreateWorktree,
    ErrorMsg,
    EventStreamErrorMsg,
    FetchGitStatuses,
    FetchPRStatuses,
    FileTreeMsg,
    GitStatusMsg,
    HistorySessionsMsg,
    ListenForEvents,
    LoadFileTree,
    LoadHistory,
    LoadWorktrees,
    PRStatusMsg,
    OpenInEditor,
    Quit,
    Request,
    RouteTask,
    SaveSettings,
    Schedule,
    SendFollowUp,
    SessionEventMsg,
    SessionStartedMsg,
    SessionsUpdatedMsg,
    StartSession,
    StopSession,
    TaskProposalMsg,
    WorktreeCreatedMsg,
    WorktreesMsg,
)
from bramble.tui.settings import save_settings

logger = logging.getLogger(__name__)

FrameCallback = Callable[[str], None]


def editor_command(editor: str, path: str) -> list[str]:
    """Split *editor* like a shell would and append *path*.

    Quoted words keep their spaces, so ``'"/opt/My Editor/bin/ed" --wait'``
    is two arguments.  An empty command falls back to ``code``.  Unbalanced
    quotes raise ``ValueError``.
    """
    return (shlex.split(editor) or [DEFAULT_EDITOR]) + [path]


class EventLoop:
    """Single-consumer message loop around an :class:`InteractionController`.

    Results of async work may arrive after the state they were requested
    for has moved on; the controller treats such stale results as harmless.
    """

    def __init__(
        self,
        controller: InteractionController,
        backend: SessionBackend,
        settings_path: str | None = None,
        on_frame: FrameCallback | None = None,
    ) -> None:
        self.controller = controller
        self.backend = backend
        self.settings_path = settings_path
        self._on_frame = on_frame
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._cancel = asyncio.Event()
        self._tasks: set[asyncio.Task[None]] = set()
        self._handlers: dict[type, Callable[[Any], Awaitable[Any]]] = {
            LoadWorktrees: self._load_worktrees,
            ListenForEvents: self._listen_for_events,
            FetchGitStatuses: self._fetch_git_statuses,
            FetchPRStatuses: self._fetch_pr_statuses,
            LoadHistory: self._load_history,
            LoadFileTree: self._load_file_tree,
            OpenInEditor: self._open_in_editor,
            Schedule: self._schedule,
            StartSession: self._start_session,
            StopSession: self._stop_session,
            SendFollowUp: self._send_follow_up,
            CreateWorktree: self._create_worktree,
            RouteTask: self._route_task,
            SaveSettings: self._save_settings,
        }

    # -- queue ----------------------------------------------------------------

    def post(self, msg: Any) -> None:
        """Queue a message; safe to call from the loop thread only."""
        self._queue.put_nowait(msg)

    def cancel(self) -> None:
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def next_message(self) -> Any | None:
        """Wait for the next message, or ``None`` once cancelled."""
        if self._cancel.is_set():
            return None
        get_task = asyncio.create_task(self._queue.get())
        cancel_task = asyncio.create_task(self._cancel.wait())
        try:
            done, _ = await asyncio.wait({get_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (get_task, cancel_task):
                if not task.done():
                    task.cancel()
        if get_task in done:
            return get_task.result()
        return None

    # -- main loop --------------------------------------------------------------

    async def run(self) -> None:
        """Process messages until a :class:`Quit` request or :meth:`cancel`."""
        self._draw()
        self.dispatch(self.controller.init())
        try:
            while not self._cancel.is_set():
                msg = await self.next_message()
                if msg is None:
                    break
                requests = self.controller.handle_event(msg)
                self._draw()
                self.dispatch(requests)
        finally:
            await self._shutdown()

    def dispatch(self, requests: list[Request]) -> None:
        for request in requests:
            if isinstance(request, Quit):
                self.cancel()
                continue
            handler = self._handlers.get(type(request))
            if handler is None:
                logger.warning("No handler for request %r", request)
                continue
            task = asyncio.create_task(self._execute(handler, request))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _execute(self, handler: Callable[[Any], Awaitable[Any]], request: Request) -> None:
        try:
            msg = await handler(request)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Request %r failed", request)
            return
        if msg is not None:
            self.post(msg)

    def _draw(self) -> None:
        if self._on_frame is not None:
            self._on_frame(self.controller.render())

    async def _shutdown(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    # -- request handlers -------------------------------------------------------

    async def _schedule(self, req: Schedule) -> Any:
        await asyncio.sleep(req.delay)
        return req.msg

    async def _load_worktrees(self, req: LoadWorktrees) -> Any:
        try:
            worktrees = await asyncio.to_thread(self.backend.list_worktrees)
        except Exception as e:
            logger.warning("Failed to list worktrees: %s", e)
            return ErrorMsg(f"Failed to load worktrees: {e}")
        return WorktreesMsg(tuple(worktrees))

    async def _listen_for_events(self, req: ListenForEvents) -> Any:
        try:
            event = await self.backend.next_event()
        except Exception as e:
            logger.debug("Session event stream failed: %s", e)
            return EventStreamErrorMsg(str(e))
        if event is None:
            # the stream ended cleanly
            return None
        return SessionEventMsg(event)

    async def _fetch_git_statuses(self, req: FetchGitStatuses) -> Any:
        statuses: dict[str, WorktreeStatus] = {}
        lock = threading.Lock()

        def fetch_one(worktree: Any) -> None:
            try:
                status = self.backend.get_git_status(worktree)
            except Exception as e:
                logger.debug("Git status for %s failed: %s", worktree.branch, e)
                return
            with lock:
                statuses[worktree.branch] = status

        await asyncio.gather(*(asyncio.to_thread(fetch_one, wt) for wt in req.worktrees))
        with lock:
            snapshot = dict(statuses)
        return GitStatusMsg(snapshot)

    async def _fetch_pr_statuses(self, req: FetchPRStatuses) -> Any:
        try:
            prs = await asyncio.to_thread(self.backend.list_open_prs)
        except Exception as e:
            logger.debug("PR status fetch failed: %s", e)
            return None
        return PRStatusMsg(tuple(prs))

    async def _load_history(self, req: LoadHistory) -> Any:
        try:
            sessions = await asyncio.to_thread(self.backend.load_history_sessions, req.branch)
        except Exception as e:
            logger.debug("Loading history for %s failed: %s", req.branch, e)
            return None
        return HistorySessionsMsg(req.branch, tuple(sessions))

    async def _load_file_tree(self, req: LoadFileTree) -> Any:
        try:
            context = await asyncio.to_thread(self.backend.get_worktree_context, req.worktree_path)
        except Exception as e:
            logger.debug("Loading changed files of %s failed: %s", req.worktree_path, e)
            return None
        return FileTreeMsg(req.worktree_path, context)

    async def _open_in_editor(self, req: OpenInEditor) -> Any:
        try:
            proc = await asyncio.create_subprocess_exec(
                *editor_command(req.editor, req.path),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except (OSError, ValueError) as e:
            logger.warning("Failed to launch %s: %s", req.editor, e)
            return ErrorMsg(f"Failed to open editor: {e}")
        await proc.wait()
        return None

    async def _start_session(self, req: StartSession) -> Any:
        try:
            session_id = await asyncio.to_thread(
                self.backend.start_session, req.kind, req.worktree_path, req.prompt
            )
        except Exception as e:
            logger.warning("Failed to start %s session: %s", req.kind, e)
            return ErrorMsg(f"Failed to start session: {e}")
        return SessionStartedMsg(session_id, req.kind)

    async def _stop_session(self, req: StopSession) -> Any:
        try:
            await asyncio.to_thread(self.backend.stop_session, req.session_id)
        except Exception as e:
            logger.warning("Failed to stop session %s: %s", req.session_id, e)
            return ErrorMsg(f"Failed to stop session: {e}")
        return SessionsUpdatedMsg()

    async def _send_follow_up(self, req: SendFollowUp) -> Any:
        try:
            await asyncio.to_thread(self.backend.send_follow_up, req.session_id, req.prompt)
        except Exception as e:
            logger.warning("Follow-up to %s failed: %s", req.session_id, e)
            return ErrorMsg(f"Failed to send follow-up: {e}")
        return SessionsUpdatedMsg()

    async def _create_worktree(self, req: CreateWorktree) -> Any:
        try:
            worktree = await asyncio.to_thread(self.backend.create_worktree, req.branch, req.parent)
        except Exception as e:
            logger.warning("Failed to create worktree %s: %s", req.branch, e)
            return ErrorMsg(f"Failed to create worktree: {e}")
        return WorktreeCreatedMsg(worktree, req.prompt)

    async def _route_task(self, req: RouteTask) -> Any:
        try:
            proposal = await asyncio.to_thread(self.backend.route_task, req.prompt, req.worktrees)
        except Exception as e:
            logger.warning("Task routing failed: %s", e)
            return TaskProposalMsg(error=str(e))
        return TaskProposalMsg(proposal)

    async def _save_settings(self, req: SaveSettings) -> Any:
        try:
            await asyncio.to_thread(save_settings, req.settings, self.settings_path)
        except OSError as e:
            logger.warning("Failed to save settings: %s", e)
            return ErrorMsg(f"Theme applied but failed to save: {e}")
        return None
