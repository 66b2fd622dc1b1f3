"""Widgets the controller routes focus to."""

from bramble.tui.components.confirm_prompt import ConfirmOption, ConfirmPrompt, ConfirmResult
from bramble.tui.components.dropdown import Dropdown, DropdownItem, separator
from bramble.tui.components.file_tree import FileTree
from bramble.tui.components.help_overlay import HelpBinding, HelpContext, HelpOverlay, HelpSection
from bramble.tui.components.session_browser import SessionBrowser
from bramble.tui.components.settings_dialog import SettingsDialog
from bramble.tui.components.task_modal import TaskModal, suggest_branch_name
from bramble.tui.components.text_area import TextArea
from bramble.tui.components.toast import Toast, ToastManager

__all__ = [
    "ConfirmOption",
    "ConfirmPrompt",
    "ConfirmResult",
    "Dropdown",
    "DropdownItem",
    "FileTree",
    "HelpBinding",
    "HelpContext",
    "HelpOverlay",
    "HelpSection",
    "SessionBrowser",
    "SettingsDialog",
    "TaskModal",
    "TextArea",
    "Toast",
    "ToastManager",
    "separator",
    "suggest_branch_name",
]
