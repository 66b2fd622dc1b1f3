"""Transient notifications stacked above the status bar."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Literal

from bramble.tui.theme import Styles
from bramble.tui.utils import truncate_to_width

ToastLevel = Literal["success", "info", "error"]

TOAST_DURATIONS: dict[str, float] = {
    "success": 3.0,
    "info": 4.0,
    "error": 5.0,
}

MAX_TOASTS = 3

_ICONS = {
    "success": " ✓ ",
    "info": " i ",
    "error": " ! ",
}


@dataclass(frozen=True)
class Toast:
    id: int
    message: str
    level: ToastLevel
    created_at: float
    duration: float

    @property
    def expires_at(self) -> float:
        return self.created_at + self.duration

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class ToastManager:
    """Bounded queue of toasts, newest last.

    The manager does not own a timer.  Its owner asks :meth:`next_expiry`
    after every change and arms a single timer for that moment.
    """

    def __init__(
        self,
        max_toasts: int = MAX_TOASTS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._toasts: list[Toast] = []
        self._next_id = 0
        self._max = max(1, max_toasts)
        self._clock = clock

    def add(self, message: str, level: ToastLevel = "info") -> Toast:
        toast = Toast(
            id=self._next_id,
            message=message,
            level=level,
            created_at=self._clock(),
            duration=TOAST_DURATIONS.get(level, TOAST_DURATIONS["info"]),
        )
        self._next_id += 1
        self._toasts.append(toast)
        if len(self._toasts) > self._max:
            self._toasts = self._toasts[-self._max :]
        return toast

    def tick(self, now: float | None = None) -> bool:
        """Drop expired toasts.  Returns ``True`` if anything was removed."""
        if now is None:
            now = self._clock()
        remaining = [t for t in self._toasts if not t.is_expired(now)]
        changed = len(remaining) != len(self._toasts)
        self._toasts = remaining
        return changed

    def next_expiry(self) -> float | None:
        """Earliest expiry among the pending toasts, if any."""
        if not self._toasts:
            return None
        return min(t.expires_at for t in self._toasts)

    def clear(self) -> None:
        self._toasts.clear()

    @property
    def toasts(self) -> list[Toast]:
        return list(self._toasts)

    def has_toasts(self) -> bool:
        return bool(self._toasts)

    def __len__(self) -> int:
        return len(self._toasts)

    @property
    def height(self) -> int:
        return len(self._toasts)

    def view(self, width: int, styles: Styles) -> str:
        """One row per toast, each exactly *width* columns wide."""
        rows: list[str] = []
        for toast in self._toasts:
            content = _ICONS.get(toast.level, " i ") + toast.message.replace("\n", " ")
            content = truncate_to_width(content, max(width, 0), pad=True)
            rows.append(styles.for_toast(toast.level)(content))
        return "\n".join(rows)
