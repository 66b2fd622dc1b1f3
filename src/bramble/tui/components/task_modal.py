"""Modal for the "new task" flow.

The user describes the task, the backend proposes where to run it, and
the user confirms, adjusts the branch name, or cancels.
"""

from __future__ import annotations

import re
from typing import Literal

from bramble.tui.backend import RouteProposal
from bramble.tui.compositor import box, place_center
from bramble.tui.components.text_area import TextArea
from bramble.tui.theme import Styles
from bramble.tui.utils import truncate_to_width

TaskModalState = Literal["hidden", "input", "routing", "proposal", "adjust"]

_COMMON_WORDS = frozenset({"a", "an", "the", "to", "for", "and", "or", "in", "on", "with"})


def suggest_branch_name(prompt: str) -> str:
    """Kebab-case branch name from the first few meaningful words."""
    words = []
    for word in prompt.lower().split()[:4]:
        word = word.strip(".,!?;:")
        if word not in _COMMON_WORDS and len(word) > 1:
            words.append(re.sub(r"[^\w-]", "", word))
    words = [w for w in words if w]
    if not words:
        return "feature-new"
    return "feature-" + "-".join(words)


class TaskModal:
    def __init__(self) -> None:
        self.state: TaskModalState = "hidden"
        self.text_area = TextArea(min_height=3, max_height=8)
        self.text_area.set_labels("Continue", "Cancel")
        self.adjust_area = TextArea(min_height=1, max_height=1)
        self.adjust_area.set_labels("Confirm", "Back")
        self.proposal: RouteProposal | None = None
        self.error = ""
        self.adjusted_worktree = ""
        self.adjusted_parent = ""
        self.width = 0
        self.height = 0

    @property
    def is_visible(self) -> bool:
        return self.state != "hidden"

    def set_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def show(self) -> None:
        self.state = "input"
        self.text_area.reset()
        self.text_area.set_placeholder("Describe what you want to work on...")
        self.proposal = None
        self.error = ""

    def hide(self) -> None:
        self.state = "hidden"

    @property
    def prompt(self) -> str:
        return self.text_area.value

    def start_routing(self) -> None:
        self.state = "routing"

    def set_proposal(self, proposal: RouteProposal) -> None:
        self.proposal = proposal
        self.error = ""
        self.state = "proposal"
        self.adjusted_worktree = proposal.worktree
        self.adjusted_parent = proposal.parent

    def set_error(self, message: str) -> None:
        self.error = message
        self.state = "proposal"

    def start_adjust(self) -> None:
        if self.proposal is None:
            return
        self.state = "adjust"
        self.adjust_area.reset()
        self.adjust_area.set_value(self.adjusted_worktree)
        self.adjust_area.set_placeholder("e.g. feature/my-feature")

    def back_to_proposal(self) -> None:
        """Leave the adjust step, discarding edits."""
        if self.proposal is not None:
            self.set_proposal(self.proposal)

    def view(self, styles: Styles) -> str:
        if self.state == "hidden":
            return ""
        box_width = 70
        if 0 < self.width < 80:
            box_width = max(self.width - 10, 20)

        lines: list[str] = []
        if self.state == "input":
            lines.append(styles.title("New task: describe what you want to work on"))
            self.text_area.set_width(box_width - 6)
            self.text_area.set_prompt("")
            lines.append(self.text_area.render(styles))
        elif self.state == "routing":
            lines += [styles.title("New task"), "", styles.dim("  Deciding where to run this...")]
        elif self.state == "proposal" and self.error:
            lines += [
                styles.title("New task: error"),
                "",
                styles.error("  " + self.error),
                "",
                styles.dim("  [Esc] cancel"),
            ]
        elif self.state == "proposal" and self.proposal is not None:
            p = self.proposal
            lines += [styles.title("New task: proposal"), ""]
            if p.action == "use_existing":
                lines.append("  Proposed: Use existing worktree " + styles.selected(p.worktree))
                lines.append("    → Start planning session with your prompt there.")
            else:
                lines.append("  Proposed: Create worktree " + styles.selected(p.worktree))
                lines.append("    from " + styles.dim(p.parent) + " → start planning session there.")
            lines.append("")
            if p.reasoning:
                lines += [styles.dim("  Reasoning: " + truncate_to_width(p.reasoning, box_width - 20)), ""]
            lines.append(styles.dim("  [Enter] confirm  [a] adjust  [Esc] cancel"))
        elif self.state == "adjust" and self.proposal is not None:
            lines += [styles.title("New task: adjust"), ""]
            if self.proposal.action == "use_existing":
                lines += [
                    "  Worktree: " + self.adjusted_worktree,
                    "",
                    styles.dim("  [Enter] confirm  [Esc] back"),
                ]
            else:
                self.adjust_area.set_width(box_width - 10)
                self.adjust_area.set_prompt("")
                lines += [
                    "  Branch name:",
                    self.adjust_area.render(styles),
                    "  Parent: " + styles.dim(self.adjusted_parent),
                ]

        framed = box("\n".join(lines), width=box_width, border_style=styles.accent, padding_x=2, padding_y=1)
        if self.width > 0 and self.height > 0:
            return place_center(framed, self.width, self.height)
        return framed
