"""Tests for the help, settings and session browser overlays."""

from __future__ import annotations

from bramble.tui.backend import SessionInfo
from bramble.tui.components.help_overlay import HelpContext, HelpOverlay, build_help_sections
from bramble.tui.components.session_browser import SessionBrowser
from bramble.tui.components.settings_dialog import SettingsDialog
from bramble.tui.theme import plain_styles

STYLES = plain_styles()


def _titles(ctx: HelpContext) -> list[str]:
    return [s.title for s in build_help_sections(ctx)]


def _keys(ctx: HelpContext) -> set[str]:
    return {b.key for s in build_help_sections(ctx) for b in s.bindings}


# ---------------------------------------------------------------------------
# Help
# ---------------------------------------------------------------------------


class TestHelpSections:
    def test_base_sections(self) -> None:
        assert _titles(HelpContext()) == ["Navigation", "Sessions", "Worktrees", "Output", "General"]

    def test_session_starters_need_worktree(self) -> None:
        assert "p" not in _keys(HelpContext())
        assert {"t", "p", "b"} <= _keys(HelpContext(has_worktree=True))

    def test_follow_up_only_for_idle(self) -> None:
        idle = HelpContext(has_worktree=True, has_session=True, session_status="idle")
        running = HelpContext(has_worktree=True, has_session=True, session_status="running")
        done = HelpContext(has_worktree=True, has_session=True, session_status="completed")
        assert {"f", "s"} <= _keys(idle)
        assert "f" not in _keys(running)
        assert "s" in _keys(running)
        assert "s" not in _keys(done)

    def test_dropdown_section(self) -> None:
        assert "Dropdown" in _titles(HelpContext(previous_focus="worktree_dropdown"))

    def test_input_section(self) -> None:
        assert "Input Mode" in _titles(HelpContext(previous_focus="input"))

    def test_file_tree_section_when_split(self) -> None:
        assert "File Tree" not in _titles(HelpContext())
        assert "File Tree" in _titles(HelpContext(split=True))

    def test_editor_binding_needs_worktree(self) -> None:
        assert "e" not in _keys(HelpContext())
        assert "e" in _keys(HelpContext(has_worktree=True))


class TestHelpOverlay:
    def test_lists_bindings(self) -> None:
        overlay = HelpOverlay()
        overlay.set_sections(build_help_sections(HelpContext()))
        overlay.set_size(100, 60)
        out = overlay.view(STYLES)
        assert "Bramble Key Bindings" in out
        assert "Open worktree selector" in out
        assert "Press ? or Esc to close" in out

    def test_scroll_indicators(self) -> None:
        overlay = HelpOverlay()
        overlay.set_sections(build_help_sections(HelpContext()))
        overlay.set_size(100, 15)
        out = overlay.view(STYLES)
        assert "(scroll down for more)" in out
        assert "(scroll up for more)" not in out
        overlay.scroll_down()
        assert "(scroll up for more)" in overlay.view(STYLES)

    def test_scroll_offset_is_clamped(self) -> None:
        overlay = HelpOverlay()
        overlay.set_sections(build_help_sections(HelpContext()))
        overlay.set_size(100, 15)
        for _ in range(500):
            overlay.scroll_down()
        out = overlay.view(STYLES)
        assert overlay.scroll_offset < 500
        assert "(scroll down for more)" not in out
        overlay.scroll_up()
        assert overlay.scroll_offset >= 0

    def test_scroll_up_stops_at_zero(self) -> None:
        overlay = HelpOverlay()
        overlay.scroll_up()
        assert overlay.scroll_offset == 0

    def test_new_sections_reset_scroll(self) -> None:
        overlay = HelpOverlay()
        overlay.scroll_down()
        overlay.set_sections([])
        assert overlay.scroll_offset == 0


# ---------------------------------------------------------------------------
# Settings dialog
# ---------------------------------------------------------------------------


class TestSettingsDialog:
    def test_show_selects_current_theme(self) -> None:
        dialog = SettingsDialog()
        dialog.show("light", 100, 30)
        assert dialog.is_visible
        assert dialog.selected_theme().name == "light"
        assert dialog.original_theme == "light"

    def test_unknown_theme_selects_first(self) -> None:
        dialog = SettingsDialog()
        dialog.show("nope", 100, 30)
        assert dialog.selected_theme().name == "dark"

    def test_move_clamps(self) -> None:
        dialog = SettingsDialog()
        dialog.show("dark", 100, 30)
        dialog.move_selection(-1)
        assert dialog.selected_theme().name == "dark"
        dialog.move_selection(100)
        assert dialog.selected_theme().name == "light-ansi"

    def test_view_marks_original(self) -> None:
        dialog = SettingsDialog()
        dialog.show("dark", 0, 0)
        out = dialog.view(STYLES)
        assert "● dark" in out
        assert "dark-daltonized" in out


# ---------------------------------------------------------------------------
# Session browser
# ---------------------------------------------------------------------------


def _sessions(n: int) -> list[SessionInfo]:
    return [
        SessionInfo(id=f"session-{i:04d}", status="running", worktree_name="main", prompt=f'"task {i}"')
        for i in range(n)
    ]


class TestSessionBrowser:
    def test_empty(self) -> None:
        browser = SessionBrowser()
        browser.show([], 100, 30)
        assert browser.selected_session() is None
        assert "No active sessions" in browser.view(STYLES)

    def test_navigation(self) -> None:
        browser = SessionBrowser()
        browser.show(_sessions(3), 100, 30)
        browser.move_selection(5)
        assert browser.selected_index == 2
        browser.move_selection(-9)
        assert browser.selected_index == 0

    def test_select_by_number(self) -> None:
        browser = SessionBrowser()
        browser.show(_sessions(3), 100, 30)
        assert browser.select_by_number(2)
        assert browser.selected_session().id == "session-0001"
        assert not browser.select_by_number(4)
        assert not browser.select_by_number(0)

    def test_view_rows(self) -> None:
        browser = SessionBrowser()
        browser.show(_sessions(2), 120, 30)
        out = browser.view(STYLES)
        assert "All Active Sessions" in out
        assert "1." in out
        assert "task 1" in out
        assert '"task' not in out
