"""Shared fixtures."""

from __future__ import annotations

import pytest
from helpers import FakeBackend, FakeClock

from bramble.tui.controller import InteractionController
from bramble.tui.keybindings import KeybindingsManager, set_keybindings
from bramble.tui.settings import Settings


@pytest.fixture(autouse=True)
def _reset_keybindings():
    """Controllers install a global keybindings manager; start each test clean."""
    set_keybindings(KeybindingsManager())
    yield
    set_keybindings(KeybindingsManager())


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def controller(backend: FakeBackend, clock: FakeClock) -> InteractionController:
    ctrl = InteractionController(backend, Settings(), clock=clock, repo_name="repo")
    ctrl.width = 100
    ctrl.height = 30
    return ctrl
