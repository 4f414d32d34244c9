"""Messages consumed by the update loop and effects returned from it.

Every ``update`` call takes one message and returns a list of effects.
The runtime executes effects; anything that finishes later comes back as
exactly one new message on the same inbound queue.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable


# ═══════════════════════════════════════════════════════════════════════════════
# MESSAGES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class KeyPress:
    key: str


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


class ToastLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ShowToast:
    message: str
    level: ToastLevel = ToastLevel.INFO


@dataclass(frozen=True)
class ClearToast:
    # None clears whatever is showing; otherwise only that toast.
    epoch: int | None = None


@dataclass(frozen=True)
class BackToMenu:
    """A browser asks the root to return to the service menu."""


# ═══════════════════════════════════════════════════════════════════════════════
# EFFECTS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Task:
    """Run ``run`` on a worker thread and post the message it returns."""

    run: Callable[[], Any]
    name: str = "task"


@dataclass(frozen=True)
class Post:
    """Enqueue a message for the next loop iteration."""

    message: Any


@dataclass(frozen=True)
class Timer:
    """Post ``message`` after ``delay`` seconds.

    Scheduling a timer with the same ``key`` cancels the pending one.
    """

    delay: float
    message: Any
    key: str | None = None


class _Quit:
    def __repr__(self) -> str:
        return "QUIT"


QUIT = _Quit()


def toast(message: str, level: ToastLevel = ToastLevel.INFO) -> Post:
    return Post(ShowToast(message, level))


def back_to_menu() -> Post:
    return Post(BackToMenu())
