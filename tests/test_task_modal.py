"""Tests for the new-task modal and branch name suggestions."""

from __future__ import annotations

import pytest

from bramble.tui.backend import RouteProposal
from bramble.tui.components.task_modal import TaskModal, suggest_branch_name
from bramble.tui.theme import plain_styles

STYLES = plain_styles()


class TestSuggestBranchName:
    @pytest.mark.parametrize(
        "prompt, expected",
        [
            ("Add a dark mode toggle to settings", "feature-add-dark-mode"),
            ("Fix the bug!", "feature-fix-bug"),
            ("Refactor   auth, then tests", "feature-refactor-auth-then-tests"),
            ("", "feature-new"),
            ("a to the", "feature-new"),
        ],
    )
    def test_suggestions(self, prompt: str, expected: str) -> None:
        assert suggest_branch_name(prompt) == expected


class TestTaskModalStates:
    def test_starts_hidden(self) -> None:
        modal = TaskModal()
        assert not modal.is_visible
        assert modal.view(STYLES) == ""

    def test_show_resets(self) -> None:
        modal = TaskModal()
        modal.show()
        modal.text_area.set_value("old")
        modal.set_error("boom")
        modal.show()
        assert modal.state == "input"
        assert modal.prompt == ""
        assert modal.error == ""
        assert modal.proposal is None

    def test_routing_then_proposal(self) -> None:
        modal = TaskModal()
        modal.show()
        modal.start_routing()
        assert "Deciding where to run this" in modal.view(STYLES)
        modal.set_proposal(RouteProposal("create_new", "feature-x", parent="main", reasoning="new area"))
        assert modal.state == "proposal"
        assert modal.adjusted_worktree == "feature-x"
        assert modal.adjusted_parent == "main"
        out = modal.view(STYLES)
        assert "Create worktree feature-x" in out
        assert "Reasoning: new area" in out

    def test_use_existing_proposal(self) -> None:
        modal = TaskModal()
        modal.set_proposal(RouteProposal("use_existing", "main"))
        assert "Use existing worktree main" in modal.view(STYLES)

    def test_error_view(self) -> None:
        modal = TaskModal()
        modal.show()
        modal.set_error("router offline")
        out = modal.view(STYLES)
        assert "router offline" in out
        assert "[Esc] cancel" in out

    def test_adjust_prefills_branch(self) -> None:
        modal = TaskModal()
        modal.set_proposal(RouteProposal("create_new", "feature-x", parent="main"))
        modal.start_adjust()
        assert modal.state == "adjust"
        assert modal.adjust_area.value == "feature-x"
        assert "Parent: main" in modal.view(STYLES)

    def test_adjust_without_proposal_is_noop(self) -> None:
        modal = TaskModal()
        modal.show()
        modal.start_adjust()
        assert modal.state == "input"

    def test_back_discards_edits(self) -> None:
        modal = TaskModal()
        modal.set_proposal(RouteProposal("create_new", "feature-x", parent="main"))
        modal.start_adjust()
        modal.adjusted_worktree = "feature-y"
        modal.back_to_proposal()
        assert modal.state == "proposal"
        assert modal.adjusted_worktree == "feature-x"

    def test_hide(self) -> None:
        modal = TaskModal()
        modal.show()
        modal.hide()
        assert not modal.is_visible


class TestTaskModalLayout:
    def test_centered_in_screen(self) -> None:
        modal = TaskModal()
        modal.set_size(100, 30)
        modal.show()
        rows = modal.view(STYLES).split("\n")
        assert len(rows) == 30

    def test_narrow_screen_shrinks_box(self) -> None:
        modal = TaskModal()
        modal.set_size(50, 20)
        modal.show()
        rows = [r for r in modal.view(STYLES).split("\n") if r.strip()]
        assert all(len(r.rstrip()) <= 50 for r in rows)
