"""Shared plumbing for the service browsers."""
from __future__ import annotations

import logging
from typing import Any

from rich.console import RenderableType

from ..tui.messages import KeyPress, Resize

logger = logging.getLogger(__name__)


class Browser:
    """Base class for a service browser state machine.

    Subclasses implement :meth:`init`, :meth:`handle_key`,
    :meth:`handle_result` and :meth:`view`.

    Request epochs: every async command is tagged with the epoch current
    when it was issued. Issuing a new request, or navigating away from a
    pending one, moves the epoch forward; a result carrying any other epoch
    is dropped in :meth:`update` before it reaches :meth:`handle_result`.
    """

    name = "browser"

    def __init__(self):
        self.width = 0
        self.height = 0
        self.err: BaseException | None = None
        self.epoch = 0

    # ─── epochs ────────────────────────────────────────────────────────────────

    def next_epoch(self) -> int:
        self.epoch += 1
        return self.epoch

    def invalidate(self) -> None:
        """Forget any request in flight."""
        self.epoch += 1

    # ─── dispatch ──────────────────────────────────────────────────────────────

    def init(self) -> list:
        return []

    def update(self, msg: Any) -> list:
        if isinstance(msg, Resize):
            self.width = msg.width
            self.height = msg.height
            self.on_resize()
            return []

        if isinstance(msg, KeyPress):
            if self.err is not None:
                # Blocking overlay: only an explicit acknowledge gets through.
                if msg.key in ("enter", "esc"):
                    self.err = None
                return []
            return self.handle_key(msg.key)

        epoch = getattr(msg, "epoch", None)
        if epoch is not None:
            if epoch != self.epoch:
                logger.debug("%s: dropping stale %s (epoch %s, current %s)",
                             self.name, type(msg).__name__, epoch, self.epoch)
                return []
            return self.handle_result(msg)

        return []

    def fail(self, error: BaseException) -> None:
        logger.warning("%s: %s", self.name, error)
        self.err = error

    # ─── hooks ─────────────────────────────────────────────────────────────────

    def on_resize(self) -> None:
        pass

    def handle_key(self, key: str) -> list:
        return []

    def handle_result(self, msg: Any) -> list:
        return []

    def view(self) -> RenderableType:
        raise NotImplementedError
