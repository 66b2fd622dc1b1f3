"""The interaction controller.

One object owns all interface state.  Every input, whether a key, a resize
or the result of earlier async work, goes through :meth:`handle_event`,
which mutates that state and returns the requests to run next.  The
controller never blocks and never performs I/O beyond the backend's
synchronous snapshot queries.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import replace
from typing import Callable, Literal

from bramble.tui.backend import (
    MarkdownRenderer,
    SessionBackend,
    SessionInfo,
    SessionMeta,
    SessionType,
    Worktree,
    WorktreeStatus,
)
from bramble.tui.components.confirm_prompt import ConfirmOption, ConfirmPrompt
from bramble.tui.components.dropdown import Dropdown, DropdownItem, separator
from bramble.tui.components.file_tree import FileTree
from bramble.tui.components.help_overlay import HelpContext, HelpOverlay, build_help_sections
from bramble.tui.components.session_browser import SessionBrowser
from bramble.tui.components.settings_dialog import SettingsDialog
from bramble.tui.components.task_modal import TaskModal
from bramble.tui.components.text_area import TextArea
from bramble.tui.components.toast import ToastLevel, ToastManager
from bramble.tui.compositor import SplitPane, box, join_vertical, overlay_at, place_center
from bramble.tui.keybindings import KeybindingsManager, set_keybindings
from bramble.tui.keys import KeyMsg
from bramble.tui.messages import (
    CreateWorktree,
    ErrorMsg,
    EventStreamErrorMsg,
    FetchGitStatuses,
    FetchPRStatuses,
    FileTreeMsg,
    GitStatusMsg,
    GitStatusTickMsg,
    HistorySessionsMsg,
    ListenForEvents,
    ListenRetryMsg,
    LoadFileTree,
    LoadHistory,
    LoadWorktrees,
    OpenInEditor,
    PRStatusMsg,
    PRStatusTickMsg,
    Quit,
    Request,
    ResizeMsg,
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
    ToastExpireMsg,
    WorktreeCreatedMsg,
    WorktreesMsg,
)
from bramble.tui.output import (
    build_visual_lines,
    format_worktree_status,
    generate_dropdown_title,
    status_icon,
    type_icon,
)
from bramble.tui.scrollback import ScrollMemory, max_scroll_offset, render_scrollable_lines
from bramble.tui.settings import Settings
from bramble.tui.theme import DARK, Palette, Styles, make_styles, theme_by_name
from bramble.tui.utils import pad_or_truncate, truncate_to_width, visible_width

logger = logging.getLogger(__name__)

FocusTarget = Literal[
    "output",
    "input",
    "worktree_dropdown",
    "session_dropdown",
    "task_modal",
    "confirm",
    "help",
    "session_browser",
    "settings",
]

MIN_WIDTH = 20
MIN_HEIGHT = 5
PAGE_SIZE = 10
SCROLL_TOP = 999999
EVENT_RETRY_DELAY = 1.0
DEFAULT_EDITOR = "code"

InputAction = Callable[[str], "list[Request]"]
ConfirmAction = Callable[[str], "list[Request]"]


class InteractionController:
    """State machine behind the terminal interface.

    Focus is a single tagged value; ``previous_focus`` remembers one level
    so help can return to wherever it was opened from.  Keys are routed by
    a table keyed on focus, and every handler returns follow-up requests.
    """

    def __init__(
        self,
        backend: SessionBackend,
        settings: Settings | None = None,
        markdown: MarkdownRenderer | None = None,
        clock: Callable[[], float] = time.monotonic,
        repo_name: str = "",
        editor: str = "",
    ) -> None:
        self.backend = backend
        self.settings = settings or Settings()
        self.markdown = markdown
        self.repo_name = repo_name
        self.editor = editor or os.environ.get("EDITOR") or DEFAULT_EDITOR
        self._clock = clock

        self.width = 80
        self.height = 24
        self.focus: FocusTarget = "output"
        self.previous_focus: FocusTarget = "output"

        self.palette: Palette = theme_by_name(self.settings.theme_name) or DARK
        self.styles: Styles = make_styles(self.palette)
        self.keybindings = KeybindingsManager(self.settings.keybindings)
        set_keybindings(self.keybindings)

        self.toasts = ToastManager(self.settings.max_toasts, clock)
        self._toast_generation = 0
        self._toast_deadline: float | None = None

        self.worktrees: list[Worktree] = []
        self.worktree_statuses: dict[str, WorktreeStatus] = {}
        self.sessions: list[SessionInfo] = []
        self.history: list[SessionMeta] = []
        self.history_branch = ""
        self._pending_worktree = ""
        self._pending_prompt = ""

        self.worktree_dropdown = Dropdown()
        self.worktree_dropdown.set_width(self.width * 2 // 3)
        self.session_dropdown = Dropdown()
        self.session_dropdown.set_width(self.width // 2)
        self.input_area = TextArea(keybindings=self.keybindings)
        self.input_prompt = ""
        self._input_action: InputAction | None = None
        self.confirm_prompt: ConfirmPrompt | None = None
        self._confirm_action: ConfirmAction | None = None
        self.help = HelpOverlay()
        self.session_browser = SessionBrowser()
        self.settings_dialog = SettingsDialog()
        self.task_modal = TaskModal()
        self.split_pane = SplitPane()
        self.file_tree = FileTree()

        self.viewing_session_id = ""
        self.scroll_offset = 0
        self.scroll_memory = ScrollMemory()

        self.confirm_quit = False
        self.quitting = False

        self._key_handlers: dict[FocusTarget, Callable[[KeyMsg], list[Request]]] = {
            "output": self._handle_output_key,
            "input": self._handle_input_key,
            "worktree_dropdown": self._handle_dropdown_key,
            "session_dropdown": self._handle_dropdown_key,
            "task_modal": self._handle_task_modal_key,
            "confirm": self._handle_confirm_key,
            "help": self._handle_help_key,
            "session_browser": self._handle_session_browser_key,
            "settings": self._handle_settings_key,
        }
        self._message_handlers: dict[type, Callable[[object], list[Request]]] = {
            ResizeMsg: self._on_resize,
            WorktreesMsg: self._on_worktrees,
            GitStatusMsg: self._on_git_status,
            PRStatusMsg: self._on_pr_status,
            HistorySessionsMsg: self._on_history,
            FileTreeMsg: self._on_file_tree,
            GitStatusTickMsg: self._on_git_tick,
            PRStatusTickMsg: self._on_pr_tick,
            SessionEventMsg: self._on_session_event,
            EventStreamErrorMsg: self._on_event_stream_error,
            ListenRetryMsg: lambda msg: [ListenForEvents()],
            SessionsUpdatedMsg: self._on_sessions_updated,
            SessionStartedMsg: self._on_session_started,
            WorktreeCreatedMsg: self._on_worktree_created,
            TaskProposalMsg: self._on_task_proposal,
            ToastExpireMsg: self._on_toast_expire,
            ErrorMsg: self._on_error,
        }
        self._output_actions: tuple[tuple[str, Callable[[], list[Request]]], ...] = (
            ("help", self._open_help),
            ("quit", self._request_quit),
            ("openWorktrees", self._open_worktree_dropdown),
            ("openSessions", self._open_session_dropdown),
            ("openSessionBrowser", self._open_session_browser),
            ("openSettings", self._open_settings),
            ("newTask", self._open_task_modal),
            ("planSession", lambda: self._prompt_session("planner")),
            ("buildSession", lambda: self._prompt_session("builder")),
            ("followUp", self._prompt_follow_up),
            ("stopSession", self._confirm_stop),
            ("newWorktree", self._prompt_new_worktree),
            ("openEditor", self._open_worktree_in_editor),
            ("refresh", lambda: [LoadWorktrees(), FetchPRStatuses()]),
            ("toggleSplit", self._toggle_split),
            ("pinLatest", self._scroll_to_bottom),
            ("scrollUp", lambda: self._scroll_by(1)),
            ("scrollDown", lambda: self._scroll_by(-1)),
            ("pageUp", lambda: self._scroll_by(PAGE_SIZE)),
            ("pageDown", lambda: self._scroll_by(-PAGE_SIZE)),
            ("scrollTop", self._scroll_to_top),
            ("scrollBottom", self._scroll_to_bottom),
        )

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def init(self) -> list[Request]:
        """Requests to run at startup."""
        return [
            LoadWorktrees(),
            ListenForEvents(),
            Schedule(self.settings.git_status_interval, GitStatusTickMsg()),
            Schedule(self.settings.pr_status_interval, PRStatusTickMsg()),
        ]

    def handle_event(self, msg: object) -> list[Request]:
        """Apply one message and return the follow-up requests."""
        try:
            if isinstance(msg, KeyMsg):
                if self.confirm_quit:
                    return self._resolve_quit(msg)
                return self._key_handlers[self.focus](msg)
            handler = self._message_handlers.get(type(msg))
            if handler is None:
                logger.debug("Ignoring unknown message %r", msg)
                return []
            return handler(msg)
        except Exception as e:
            logger.exception("Error while handling %r", msg)
            return self._toast(f"Error: {e}", "error")

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def selected_worktree(self) -> Worktree | None:
        item = self.worktree_dropdown.selected_item()
        if item is None:
            return None
        return next((w for w in self.worktrees if w.branch == item.id), None)

    def selected_session(self) -> SessionInfo | None:
        if not self.viewing_session_id:
            return None
        return self.backend.get_session_info(self.viewing_session_id)

    def current_worktree_sessions(self) -> list[SessionInfo]:
        wt = self.selected_worktree()
        if wt is None:
            return []
        return self.backend.get_sessions_for_worktree(wt.path)

    def active_sessions(self) -> list[SessionInfo]:
        return [s for s in self.backend.get_all_sessions() if not s.is_terminal]

    # ------------------------------------------------------------------
    # Toasts
    # ------------------------------------------------------------------

    def _toast(self, message: str, level: ToastLevel = "info") -> list[Request]:
        self.toasts.add(message, level)
        return self._arm_toast_timer()

    def _arm_toast_timer(self) -> list[Request]:
        """Keep one timer armed for the earliest pending expiry."""
        deadline = self.toasts.next_expiry()
        if deadline is None:
            self._toast_deadline = None
            return []
        if self._toast_deadline is not None and self._toast_deadline <= deadline:
            return []
        self._toast_generation += 1
        self._toast_deadline = deadline
        delay = max(deadline - self._clock(), 0.0)
        return [Schedule(delay, ToastExpireMsg(self._toast_generation))]

    def _on_toast_expire(self, msg: ToastExpireMsg) -> list[Request]:
        if msg.generation != self._toast_generation:
            return []
        self._toast_deadline = None
        self.toasts.tick()
        return self._arm_toast_timer()

    def _on_error(self, msg: ErrorMsg) -> list[Request]:
        return self._toast(msg.message, "error")

    # ------------------------------------------------------------------
    # Quit protocol
    # ------------------------------------------------------------------

    def _quit(self) -> list[Request]:
        self.quitting = True
        return [Quit()]

    def _request_quit(self) -> list[Request]:
        active = self.active_sessions()
        if not active:
            return self._quit()
        self.confirm_quit = True
        return self._toast(
            f"{len(active)} active session(s). Press 'q' or 'y' to confirm quit, any other key to cancel",
            "info",
        )

    def _resolve_quit(self, msg: KeyMsg) -> list[Request]:
        self.confirm_quit = False
        kb = self.keybindings
        if any(kb.matches(msg.key, a) for a in ("quit", "confirmYes", "forceQuit")):
            return self._quit()
        return self._toast("Quit cancelled", "info")

    # ------------------------------------------------------------------
    # Async results
    # ------------------------------------------------------------------

    def _on_resize(self, msg: ResizeMsg) -> list[Request]:
        self.width = msg.width
        self.height = msg.height
        self.help.set_size(msg.width, msg.height)
        self.session_browser.set_size(msg.width, msg.height)
        self.settings_dialog.set_size(msg.width, msg.height)
        self.task_modal.set_size(msg.width, msg.height)
        self.worktree_dropdown.set_width(msg.width * 2 // 3)
        self.session_dropdown.set_width(msg.width // 2)
        return []

    def _on_worktrees(self, msg: WorktreesMsg) -> list[Request]:
        self.worktrees = list(msg.worktrees)
        self._update_worktree_dropdown()
        requests: list[Request] = []

        if self._pending_worktree:
            branch, prompt = self._pending_worktree, self._pending_prompt
            self._pending_worktree = ""
            self._pending_prompt = ""
            self.worktree_dropdown.select_by_id(branch)
            if prompt:
                requests += self._start_session("planner", prompt)
        elif self.worktree_dropdown.selected_item() is None and self.worktrees:
            self.worktree_dropdown.select_by_index(0)

        self._refresh_sessions()
        requests += [FetchGitStatuses(tuple(self.worktrees)), FetchPRStatuses()]
        wt = self.selected_worktree()
        if wt is not None:
            requests += [LoadHistory(wt.branch), LoadFileTree(wt.path)]
        return requests

    def _on_git_tick(self, msg: GitStatusTickMsg) -> list[Request]:
        return [
            FetchGitStatuses(tuple(self.worktrees)),
            Schedule(self.settings.git_status_interval, GitStatusTickMsg()),
        ]

    def _on_pr_tick(self, msg: PRStatusTickMsg) -> list[Request]:
        return [
            FetchPRStatuses(),
            Schedule(self.settings.pr_status_interval, PRStatusTickMsg()),
        ]

    def _on_git_status(self, msg: GitStatusMsg) -> list[Request]:
        for branch, status in msg.statuses.items():
            existing = self.worktree_statuses.get(branch)
            if existing is None:
                self.worktree_statuses[branch] = replace(status)
            else:
                existing.merge_git(status)
        self._update_worktree_dropdown()
        return []

    def _on_pr_status(self, msg: PRStatusMsg) -> list[Request]:
        by_branch = {pr.head_ref_name: pr for pr in msg.prs}
        for wt in self.worktrees:
            status = self.worktree_statuses.setdefault(wt.branch, WorktreeStatus())
            # a branch without an open PR loses stale PR data from a merge or close
            status.apply_pr(by_branch.get(wt.branch))
        self._update_worktree_dropdown()
        return []

    def _on_history(self, msg: HistorySessionsMsg) -> list[Request]:
        wt = self.selected_worktree()
        if wt is None or wt.branch != msg.branch:
            return []
        self.history = list(msg.sessions)
        self.history_branch = msg.branch
        self._update_session_dropdown()
        return []

    def _on_file_tree(self, msg: FileTreeMsg) -> list[Request]:
        wt = self.selected_worktree()
        if wt is None or wt.path != msg.worktree_path:
            return []
        self.file_tree.set_context(msg.worktree_path, msg.context)
        return []

    def _on_session_event(self, msg: SessionEventMsg) -> list[Request]:
        self._refresh_sessions()
        return [ListenForEvents()]

    def _on_event_stream_error(self, msg: EventStreamErrorMsg) -> list[Request]:
        logger.debug("Event stream error, listening again in %.1fs: %s", EVENT_RETRY_DELAY, msg.error)
        return [Schedule(EVENT_RETRY_DELAY, ListenRetryMsg())]

    def _on_sessions_updated(self, msg: SessionsUpdatedMsg) -> list[Request]:
        self._refresh_sessions()
        return []

    def _on_session_started(self, msg: SessionStartedMsg) -> list[Request]:
        self.switch_viewing_session(msg.session_id)
        self._refresh_sessions()
        return self._toast(f"Session started: {msg.session_id[:12]}", "success")

    def _on_worktree_created(self, msg: WorktreeCreatedMsg) -> list[Request]:
        self._pending_worktree = msg.worktree.branch
        self._pending_prompt = msg.prompt
        requests = self._toast(f"Created worktree {msg.worktree.branch}", "success")
        return requests + [LoadWorktrees(), FetchPRStatuses()]

    def _on_task_proposal(self, msg: TaskProposalMsg) -> list[Request]:
        if self.task_modal.state != "routing":
            return []
        if msg.error or msg.proposal is None:
            self.task_modal.set_error(msg.error or "No proposal returned")
        else:
            self.task_modal.set_proposal(msg.proposal)
        return []

    # ------------------------------------------------------------------
    # Dropdown contents
    # ------------------------------------------------------------------

    def _refresh_sessions(self) -> None:
        self.sessions = self.backend.get_all_sessions()
        self._update_session_dropdown()
        self._update_worktree_dropdown()

    def _update_worktree_dropdown(self) -> None:
        items = []
        for wt in self.worktrees:
            count = len(self.backend.get_sessions_for_worktree(wt.path))
            label = wt.branch
            status = self.worktree_statuses.get(wt.branch)
            if status is not None:
                label += "  " + format_worktree_status(status)
            items.append(DropdownItem(id=wt.branch, label=label, badge=f"[{count}]" if count else ""))
        self.worktree_dropdown.refresh_items(items)

    def _update_session_dropdown(self) -> None:
        styles = self.styles
        items: list[DropdownItem] = []
        live = self.current_worktree_sessions()
        for sess in live:
            items.append(
                DropdownItem(
                    id=sess.id,
                    label=sess.title or generate_dropdown_title(sess.prompt, 20),
                    subtitle=truncate_to_width(sess.prompt, 40),
                    icon=type_icon(sess.type),
                    badge=status_icon(sess.status, styles),
                )
            )

        wt = self.selected_worktree()
        history: list[SessionMeta] = []
        if wt is not None and self.history_branch == wt.branch:
            live_ids = {s.id for s in live}
            history = [h for h in self.history if h.id not in live_ids]
        if items and history:
            items.append(separator("─── History ───"))
        for meta in history:
            items.append(
                DropdownItem(
                    id=meta.id,
                    label=meta.title or generate_dropdown_title(meta.prompt, 20),
                    subtitle=truncate_to_width(meta.prompt, 40),
                    icon=type_icon(meta.type),
                    badge=styles.dim("(history)"),
                )
            )
        self.session_dropdown.refresh_items(items)

    # ------------------------------------------------------------------
    # Scrolling
    # ------------------------------------------------------------------

    def switch_viewing_session(self, session_id: str) -> None:
        """View *session_id*, remembering the scroll position of the old one."""
        self.scroll_offset = self.scroll_memory.switch(
            self.viewing_session_id, self.scroll_offset, session_id
        )
        self.viewing_session_id = session_id

    def _scroll_by(self, delta: int) -> list[Request]:
        if self.split_pane.split and self.split_pane.focus_left:
            self.file_tree.move(-delta)
            return []
        self.scroll_offset = max(self.scroll_offset + delta, 0)
        return []

    def _scroll_to_top(self) -> list[Request]:
        # clamped against the real line count at render time
        self.scroll_offset = SCROLL_TOP
        return []

    def _scroll_to_bottom(self) -> list[Request]:
        self.scroll_offset = 0
        return []

    # ------------------------------------------------------------------
    # Key handlers
    # ------------------------------------------------------------------

    def _handle_output_key(self, msg: KeyMsg) -> list[Request]:
        kb = self.keybindings
        key = msg.key
        if kb.matches(key, "forceQuit"):
            return self._quit()
        if self.split_pane.split and kb.matches(key, "focusNext"):
            self.split_pane.toggle_focus()
            return []
        if self.split_pane.split and self.split_pane.focus_left and kb.matches(key, "selectConfirm"):
            return self._open_selected_file()
        for action, run in self._output_actions:
            if kb.matches(key, action):  # type: ignore[arg-type]
                return run()
        if len(key) == 1 and key in "123456789":
            return self._quick_switch(int(key))
        return []

    def _quick_switch(self, n: int) -> list[Request]:
        sessions = self.current_worktree_sessions()
        if n > len(sessions):
            return self._toast(f"No session #{n}", "info")
        self.switch_viewing_session(sessions[n - 1].id)
        return []

    def _active_dropdown(self) -> Dropdown:
        if self.focus == "session_dropdown":
            return self.session_dropdown
        return self.worktree_dropdown

    def _close_dropdowns(self) -> None:
        self.worktree_dropdown.close()
        self.session_dropdown.close()
        self.focus = "output"

    def _handle_dropdown_key(self, msg: KeyMsg) -> list[Request]:
        kb = self.keybindings
        key = msg.key
        dropdown = self._active_dropdown()

        if kb.matches(key, "forceQuit"):
            return self._quit()
        if kb.matches(key, "help"):
            return self._open_help()
        if kb.matches(key, "openWorktrees") or kb.matches(key, "openSessions"):
            self._close_dropdowns()
            return []
        if kb.matches(key, "selectCancel"):
            if dropdown.has_filter:
                dropdown.clear_filter()
            else:
                self._close_dropdowns()
            return []
        if kb.matches(key, "selectUp"):
            dropdown.move_selection(-1)
            return []
        if kb.matches(key, "selectDown"):
            dropdown.move_selection(1)
            return []
        if kb.matches(key, "selectConfirm"):
            return self._confirm_dropdown(dropdown)
        if key == "backspace":
            dropdown.backspace_filter()
            return []
        if msg.is_text and not key.startswith(("ctrl+", "alt+")):
            dropdown.append_filter_char(msg.text)
        return []

    def _confirm_dropdown(self, dropdown: Dropdown) -> list[Request]:
        item = dropdown.selected_item()
        if item is None:
            return self._toast("Nothing selected", "info")

        if dropdown is self.worktree_dropdown:
            self._close_dropdowns()
            self.switch_viewing_session("")
            self.history = []
            self.history_branch = ""
            self._update_session_dropdown()
            requests: list[Request] = [LoadHistory(item.id)]
            wt = self.selected_worktree()
            if wt is not None:
                self.file_tree.set_context(wt.path, None)
                requests.append(LoadFileTree(wt.path))
            return requests

        self.switch_viewing_session(item.id)
        self._close_dropdowns()
        return []

    def _handle_input_key(self, msg: KeyMsg) -> list[Request]:
        action = self.input_area.handle_key(msg)
        if action == "submit":
            value = self.input_area.value
            if not value.strip():
                return []
            run = self._input_action
            self._close_input()
            return run(value) if run is not None else []
        if action == "cancel":
            self._close_input()
            return []
        if action == "quit":
            return self._quit()
        if action == "unhandled" and self.keybindings.matches(msg.key, "help"):
            return self._open_help()
        return []

    def _handle_confirm_key(self, msg: KeyMsg) -> list[Request]:
        if self.confirm_prompt is None:
            self.focus = "output"
            return []
        result = self.confirm_prompt.handle_key(msg)
        if result.quit:
            return self._quit()
        if not result.handled:
            return []
        run = self._confirm_action
        self.confirm_prompt = None
        self._confirm_action = None
        self.focus = "output"
        if result.matched and run is not None:
            return run(result.matched)
        return []

    def _handle_help_key(self, msg: KeyMsg) -> list[Request]:
        kb = self.keybindings
        key = msg.key
        if kb.matches(key, "forceQuit"):
            return self._quit()
        if kb.matches(key, "help") or kb.matches(key, "cancel"):
            self.focus = self.previous_focus
            return []
        if kb.matches(key, "scrollUp"):
            self.help.scroll_up()
            return []
        if kb.matches(key, "scrollDown"):
            self.help.scroll_down()
            return []
        if kb.matches(key, "quit"):
            self.focus = self.previous_focus
            return self._request_quit()
        return []

    def _handle_session_browser_key(self, msg: KeyMsg) -> list[Request]:
        kb = self.keybindings
        key = msg.key
        if kb.matches(key, "forceQuit"):
            return self._quit()
        if kb.matches(key, "cancel"):
            self._close_session_browser()
            return []
        if kb.matches(key, "scrollUp"):
            self.session_browser.move_selection(-1)
            return []
        if kb.matches(key, "scrollDown"):
            self.session_browser.move_selection(1)
            return []
        if kb.matches(key, "confirm"):
            return self._switch_to_browser_session()
        if kb.matches(key, "quit"):
            self._close_session_browser()
            return self._request_quit()
        if len(key) == 1 and key in "123456789":
            if self.session_browser.select_by_number(int(key)):
                return self._switch_to_browser_session()
        return []

    def _handle_settings_key(self, msg: KeyMsg) -> list[Request]:
        kb = self.keybindings
        key = msg.key
        dialog = self.settings_dialog
        if kb.matches(key, "forceQuit"):
            return self._quit()
        if kb.matches(key, "cancel"):
            if dialog.original_theme != self.palette.name:
                original = theme_by_name(dialog.original_theme)
                if original is not None:
                    self.apply_theme(original)
            dialog.hide()
            self.focus = "output"
            return []
        if kb.matches(key, "confirm"):
            selected = dialog.selected_theme()
            self.apply_theme(selected)
            self.settings.theme_name = selected.name
            dialog.hide()
            self.focus = "output"
            return [SaveSettings(replace(self.settings))] + self._toast(
                f"Theme set to {selected.name}", "success"
            )
        if kb.matches(key, "scrollUp") or kb.matches(key, "scrollDown"):
            dialog.move_selection(-1 if kb.matches(key, "scrollUp") else 1)
            selected = dialog.selected_theme()
            if selected.name != self.palette.name:
                self.apply_theme(selected)
        return []

    def _handle_task_modal_key(self, msg: KeyMsg) -> list[Request]:
        modal = self.task_modal
        kb = self.keybindings
        key = msg.key

        if modal.state == "input":
            action = modal.text_area.handle_key(msg)
            if action == "submit":
                prompt = modal.prompt.strip()
                if not prompt:
                    return []
                modal.start_routing()
                return [RouteTask(prompt, tuple(w.branch for w in self.worktrees))]
            if action == "cancel":
                self._close_task_modal()
            elif action == "quit":
                return self._quit()
            return []

        if kb.matches(key, "forceQuit"):
            return self._quit()

        if modal.state == "routing":
            if kb.matches(key, "cancel"):
                self._close_task_modal()
            return []

        if modal.state == "proposal":
            if kb.matches(key, "cancel"):
                self._close_task_modal()
            elif kb.matches(key, "confirm") and modal.proposal is not None and not modal.error:
                p = modal.proposal
                return self._confirm_task(p.worktree, p.parent, p.action == "create_new")
            elif key == "a" and not modal.error:
                modal.start_adjust()
            return []

        if modal.state == "adjust" and modal.proposal is not None:
            if modal.proposal.action == "create_new":
                action = modal.adjust_area.handle_key(msg)
                if action == "submit":
                    edited = modal.adjust_area.value.strip()
                    if edited:
                        modal.adjusted_worktree = edited
                    return self._confirm_task(modal.adjusted_worktree, modal.adjusted_parent, True)
                if action == "cancel":
                    modal.back_to_proposal()
                elif action == "quit":
                    return self._quit()
                return []
            if kb.matches(key, "cancel"):
                modal.back_to_proposal()
            elif kb.matches(key, "confirm"):
                return self._confirm_task(modal.adjusted_worktree, modal.adjusted_parent, False)
            elif kb.matches(key, "selectUp") or kb.matches(key, "selectDown"):
                self._cycle_adjusted_worktree(-1 if kb.matches(key, "selectUp") else 1)
        return []

    def _cycle_adjusted_worktree(self, delta: int) -> None:
        branches = [w.branch for w in self.worktrees]
        if not branches:
            return
        modal = self.task_modal
        current = branches.index(modal.adjusted_worktree) if modal.adjusted_worktree in branches else 0
        modal.adjusted_worktree = branches[(current + delta) % len(branches)]

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def help_context(self) -> HelpContext:
        sess = self.selected_session()
        return HelpContext(
            has_worktree=self.selected_worktree() is not None,
            has_session=sess is not None,
            session_status=sess.status if sess is not None else "",
            split=self.split_pane.split,
            previous_focus=self.previous_focus,
        )

    def _open_help(self) -> list[Request]:
        self.previous_focus = self.focus
        self.help.set_size(self.width, self.height)
        self.help.set_sections(build_help_sections(self.help_context()))
        self.focus = "help"
        return []

    def _open_worktree_dropdown(self) -> list[Request]:
        self.worktree_dropdown.open()
        self.focus = "worktree_dropdown"
        return []

    def _open_session_dropdown(self) -> list[Request]:
        self.session_dropdown.open()
        self.focus = "session_dropdown"
        return []

    def _open_session_browser(self) -> list[Request]:
        self.session_browser.show(self.active_sessions(), self.width, self.height)
        self.focus = "session_browser"
        return []

    def _close_session_browser(self) -> None:
        self.session_browser.hide()
        self.focus = "output"

    def _switch_to_browser_session(self) -> list[Request]:
        sess = self.session_browser.selected_session()
        self._close_session_browser()
        if sess is not None:
            if sess.worktree_path:
                wt = next((w for w in self.worktrees if w.path == sess.worktree_path), None)
                if wt is not None:
                    self.worktree_dropdown.select_by_id(wt.branch)
                    self._update_session_dropdown()
            self.switch_viewing_session(sess.id)
        return []

    def _open_settings(self) -> list[Request]:
        self.settings_dialog.show(self.palette.name, self.width, self.height)
        self.focus = "settings"
        return []

    def apply_theme(self, palette: Palette) -> None:
        """Swap the palette in place; the next render uses it."""
        self.palette = palette
        self.styles = make_styles(palette)
        self._update_session_dropdown()

    def _open_task_modal(self) -> list[Request]:
        self.task_modal.set_size(self.width, self.height)
        self.task_modal.show()
        self.focus = "task_modal"
        return []

    def _close_task_modal(self) -> None:
        self.task_modal.hide()
        self.focus = "output"

    def _confirm_task(self, worktree: str, parent: str, is_new: bool) -> list[Request]:
        prompt = self.task_modal.prompt.strip()
        self._close_task_modal()
        requests = self._toast("Task confirmed, starting session...", "success")
        if is_new:
            return requests + [CreateWorktree(worktree, parent, prompt)]
        self.worktree_dropdown.select_by_id(worktree)
        self._update_session_dropdown()
        return requests + self._start_session("planner", prompt)

    def _start_session(self, kind: SessionType, prompt: str) -> list[Request]:
        wt = self.selected_worktree()
        if wt is None or not prompt:
            return []
        return [StartSession(kind, wt.path, prompt)]

    def _prompt_input(self, prompt: str, action: InputAction, placeholder: str = "") -> list[Request]:
        self.input_prompt = prompt
        self.input_area.reset()
        self.input_area.set_prompt(prompt)
        self.input_area.set_placeholder(placeholder)
        self._input_action = action
        self.focus = "input"
        return []

    def _close_input(self) -> None:
        self.input_area.reset()
        self._input_action = None
        self.input_prompt = ""
        self.focus = "output"

    def _prompt_session(self, kind: SessionType) -> list[Request]:
        if self.selected_worktree() is None:
            return self._toast("Select a worktree first (Alt-W)", "info")
        if kind == "planner":
            return self._prompt_input(
                "Plan prompt:",
                lambda value: self._start_session("planner", value),
                "Describe what you want to plan...",
            )
        return self._prompt_input(
            "Build prompt:",
            lambda value: self._start_session("builder", value),
            "Describe what to build...",
        )

    def _prompt_follow_up(self) -> list[Request]:
        sess = self.selected_session()
        if sess is None or not sess.accepts_input:
            return self._toast("No idle session for follow-up", "info")
        session_id = sess.id
        return self._prompt_input(
            "Follow-up:",
            lambda value: [SendFollowUp(session_id, value)],
            "Type your follow-up message...",
        )

    def _confirm_stop(self) -> list[Request]:
        sess = self.selected_session()
        if sess is None or sess.is_terminal:
            return self._toast("No active session to stop (Alt-S to select)", "info")
        session_id = sess.id
        title = sess.title or session_id[:12]
        self.confirm_prompt = ConfirmPrompt(f"Stop session '{title}'?", [ConfirmOption("y", "yes")])
        self._confirm_action = lambda _key: [StopSession(session_id)]
        self.focus = "confirm"
        return []

    def _prompt_new_worktree(self) -> list[Request]:
        def create(value: str) -> list[Request]:
            branch = value.strip()
            return [CreateWorktree(branch)] if branch else []

        return self._prompt_input("Branch name:", create, "e.g. feature/my-feature")

    def _open_selected_file(self) -> list[Request]:
        path = self.file_tree.abs_selected_path()
        if not path:
            return self._toast("No file selected", "info")
        requests = self._toast(f"Opening {os.path.basename(path)} in editor", "success")
        return requests + [OpenInEditor(self.editor, path)]

    def _open_worktree_in_editor(self) -> list[Request]:
        wt = self.selected_worktree()
        if wt is None:
            return self._toast("Select a worktree first (Alt-W)", "info")
        return [OpenInEditor(self.editor, wt.path)]

    def _toggle_split(self) -> list[Request]:
        self.split_pane.toggle()
        if self.split_pane.split:
            self.split_pane.focus_left = True
        return []

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> str:
        """The full frame at the current size."""
        try:
            return self._render_frame()
        except Exception:
            logger.exception("Render failed")
            return self._render_minimal()

    def _render_minimal(self) -> str:
        width = max(self.width, 1)
        return truncate_to_width("bramble: window too small", width)

    def _render_frame(self) -> str:
        w, h = self.width, self.height
        if w < MIN_WIDTH or h < MIN_HEIGHT:
            return self._render_minimal()
        styles = self.styles

        if self.focus == "help":
            return self.help.view(styles)
        if self.focus == "session_browser":
            return self.session_browser.view(styles)
        if self.focus == "settings":
            return self.settings_dialog.view(styles)
        if self.focus == "task_modal" and self.task_modal.is_visible:
            return self.task_modal.view(styles)

        toast_block = self.toasts.view(w, styles) if self.toasts.has_toasts() else ""
        input_block = ""
        if self.focus == "input":
            self.input_area.set_width(w)
            rows = len(self.input_area.visual_rows())
            cap = max(max(h * 40 // 100, 8) - 5, 1)
            self.input_area.set_max_height(min(max(rows, 1), cap) + 2)
            input_block = self.input_area.render(styles)
        confirm_block = ""
        if self.focus == "confirm" and self.confirm_prompt is not None:
            confirm_block = self.confirm_prompt.view(w, styles)

        used = 2 + 2 + self.toasts.height
        used += input_block.count("\n") + 1 if input_block else 0
        used += confirm_block.count("\n") + 1 if confirm_block else 0
        center_height = max(h - used, 1)
        inner_width = w - 4

        center = self._render_center(inner_width, center_height)
        center_box = box(pad_or_truncate(center, inner_width, center_height), width=w, border_style=styles.border)

        frame = join_vertical(
            self._render_top_bar(),
            center_box,
            toast_block,
            input_block,
            confirm_block,
            self._render_status_bar(),
        )
        if self.focus == "worktree_dropdown" and self.worktree_dropdown.is_open:
            frame = overlay_at(frame, self.worktree_dropdown.view_overlay(styles), 2, 1)
        if self.focus == "session_dropdown" and self.session_dropdown.is_open:
            x = max(w - self.session_dropdown.width - 4, 0)
            frame = overlay_at(frame, self.session_dropdown.view_overlay(styles), x, 1)
        return pad_or_truncate(frame, w, h)

    def _render_top_bar(self) -> str:
        styles = self.styles
        header = self.worktree_dropdown.view_header(styles)
        if self.focus == "worktree_dropdown":
            header = styles.selected(header)
        left = styles.dim(self.repo_name) + "  " + header + "  " + styles.dim("[Alt-W]")

        sess = self.selected_session()
        if sess is not None:
            right = f"{type_icon(sess.type)} {sess.title or sess.id[:12]} {status_icon(sess.status, styles)}"
        else:
            right = styles.dim("(no session)")
        if self.focus == "session_dropdown":
            right = styles.selected(right + " ▼")
        else:
            right += " " + styles.dim("▼")
        right += "  " + styles.dim("[Alt-S]")

        padding = max(self.width - visible_width(left) - visible_width(right) - 1, 1)
        bar = " " + left + " " * padding + right
        return styles.top_bar(truncate_to_width(bar, self.width, pad=True))

    def _status_hints(self) -> list[str]:
        if self.confirm_quit:
            return ["[q/y] Confirm quit", "[any key] Cancel"]
        if self.focus == "confirm":
            return ["See prompt for keys", "[Esc] Cancel"]
        if self.focus == "input":
            return ["[Tab] Switch", "[Enter] Send", "[Shift+Enter] Newline", "[Esc] Cancel"]
        if self.focus in ("worktree_dropdown", "session_dropdown"):
            return ["[↑/↓]select", "[type]filter", "[Enter]choose", "[Esc]close", "[?]help"]
        if self.viewing_session_id:
            hints = ["[↑/↓]scroll"]
            sess = self.selected_session()
            if sess is not None and sess.accepts_input:
                hints.append("[f]ollow-up")
            if sess is not None and not sess.is_terminal:
                hints.append("[s]top")
            return hints + ["[F2]split", "[Alt-W]worktree", "[Alt-S]session", "[?]help", "[q]uit"]
        hints = ["[Alt-W]worktree", "[Alt-S]session", "[t]ask"]
        if self.selected_worktree() is not None:
            hints += ["[p]lan", "[b]uild"]
        return hints + ["[n]ew wt", "[?]help", "[q]uit"]

    def _render_status_bar(self) -> str:
        styles = self.styles
        left = "  ".join(self._status_hints())
        running = sum(1 for s in self.sessions if s.status == "running")
        idle = sum(1 for s in self.sessions if s.status == "idle")
        right = f"Running: {running}  Idle: {idle}"
        cost = sum(s.progress.total_cost_usd for s in self.sessions)
        if cost > 0:
            right += f"  Cost: ${cost:.4f}"
        if self.scroll_offset > 0:
            right = f"({self.scroll_offset} lines above)  " + right

        padding = max(self.width - visible_width(left) - visible_width(right) - 2, 1)
        bar = " " + left + " " * padding + right
        return styles.status_bar(truncate_to_width(bar, self.width, pad=True))

    def _render_center(self, width: int, height: int) -> str:
        if not self.split_pane.split:
            return self._render_output_area(width, height)
        self.file_tree.focused = self.split_pane.focus_left
        left = self.file_tree.render(self.split_pane.left_width(width), height, self.styles)
        right = self._render_output_area(self.split_pane.right_width(width), height)
        return self.split_pane.render(left, right, width, height, self.styles.divider)

    def _render_welcome(self, width: int, height: int) -> str:
        styles = self.styles
        lines = [styles.title("Bramble"), ""]
        if not self.worktrees:
            lines.append("No worktrees yet. Press 'n' to create one.")
        elif self.selected_worktree() is None:
            lines.append("Select a worktree with Alt-W.")
        else:
            lines += [
                "Press 't' for a new task, 'p' to plan or 'b' to build.",
                "Alt-S lists the sessions of this worktree.",
            ]
            if self.file_tree.file_count() > 0:
                lines.append(styles.dim(f"{self.file_tree.file_count()} files changed (F2 to browse)"))
        lines += ["", styles.dim("? for help")]
        return place_center("\n".join(lines), width, height)

    def _render_output_area(self, width: int, height: int) -> str:
        styles = self.styles
        if not self.viewing_session_id:
            return self._render_welcome(width, height)

        info = self.backend.get_session_info(self.viewing_session_id)
        if info is None:
            meta = next((m for m in self.history if m.id == self.viewing_session_id), None)
            if meta is None:
                return styles.error("  Session not found")
            header = [
                f"  {type_icon(meta.type)} {meta.type}  {meta.title or meta.id}  " + styles.dim("[Replay]"),
                styles.dim(f'  "{truncate_to_width(meta.prompt, width - 8)}"'),
            ]
            if meta.created_at is not None:
                header.append(styles.dim("  Recorded: " + meta.created_at.strftime("%Y-%m-%d %H:%M")))
        else:
            head = f"  {type_icon(info.type)} {info.type}  {info.title or info.id}  {status_icon(info.status, styles)}"
            if info.model:
                head += "  " + styles.dim(f"[{info.model}]")
            if info.progress.turn_count > 0 or info.progress.total_cost_usd > 0:
                head += "  " + styles.dim(f"T:{info.progress.turn_count} ${info.progress.total_cost_usd:.4f}")
            if info.accepts_input:
                hint = "(plan ready - 'f' to iterate)" if info.type == "planner" else "(awaiting follow-up - press 'f')"
                head += "  " + styles.idle(hint)
            header = [head, styles.dim(f'  "{truncate_to_width(info.prompt, width - 8)}"')]

        header.append(styles.divider("─" * max(width, 0)))
        output_height = max(height - len(header), 1)
        visual = build_visual_lines(
            self.backend.get_session_output(self.viewing_session_id),
            width,
            styles,
            self.markdown,
            self._clock,
        )
        self.scroll_offset = min(self.scroll_offset, max_scroll_offset(len(visual), output_height))
        body = render_scrollable_lines(visual, self.scroll_offset, output_height, styles.dim)
        return "\n".join(header + ([body] if body else []))
