"""Terminal key input via prompt_toolkit, normalized to short key names.

Names used throughout the browsers: ``up``, ``down``, ``left``, ``right``,
``enter``, ``esc``, ``tab``, ``shift+tab``, ``backspace``, ``delete``,
``pgup``, ``pgdown``, ``home``, ``end``, ``ctrl+<letter>`` and single
printable characters (``" "`` for the space bar).
"""
from __future__ import annotations

import logging
import select
import threading
from typing import Callable

from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyPress as PTKeyPress
from prompt_toolkit.keys import Keys

logger = logging.getLogger(__name__)

# Seconds to wait for more bytes before a lone ESC counts as the esc key.
ESCAPE_TIMEOUT = 0.05

_NAMED: dict[str, str] = {
    Keys.Up: "up",
    Keys.Down: "down",
    Keys.Left: "left",
    Keys.Right: "right",
    Keys.Enter: "enter",
    Keys.ControlJ: "enter",
    Keys.Escape: "esc",
    Keys.Tab: "tab",
    Keys.BackTab: "shift+tab",
    Keys.Backspace: "backspace",
    Keys.Delete: "delete",
    Keys.PageUp: "pgup",
    Keys.PageDown: "pgdown",
    Keys.Home: "home",
    Keys.End: "end",
}


def normalize_key(key: str | Keys) -> str | None:
    """Map a prompt_toolkit key to a key name. Returns None for keys we ignore."""
    if key in _NAMED:
        return _NAMED[key]
    value = key.value if isinstance(key, Keys) else key
    if value.startswith("c-") and len(value) == 3:
        return f"ctrl+{value[2]}"
    if len(value) == 1 and value.isprintable():
        return value
    return None


def key_names(presses: list[PTKeyPress]) -> list[str]:
    """Key names for a batch of prompt_toolkit key presses.

    Bracketed paste is expanded into its printable characters.
    """
    names: list[str] = []
    for press in presses:
        if press.key == Keys.BracketedPaste:
            names.extend(ch for ch in press.data if ch.isprintable())
            continue
        name = normalize_key(press.key)
        if name is None:
            logger.debug("ignoring key %r", press.key)
            continue
        names.append(name)
    return names


class KeyReader:
    """Background thread feeding key names to ``on_key``.

    The terminal is held in raw mode between :meth:`start` and :meth:`stop`.
    """

    def __init__(self, on_key: Callable[[str], None], inp: Input | None = None):
        self.on_key = on_key
        self.input = inp or create_input()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._raw = None

    def start(self) -> None:
        self._raw = self.input.raw_mode()
        self._raw.__enter__()
        self._thread = threading.Thread(target=self._run, name="cirrus-keys", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1)
        if self._raw is not None:
            self._raw.__exit__(None, None, None)
            self._raw = None

    def _run(self) -> None:
        fd = self.input.fileno()
        while not self._stop.is_set():
            ready, _, _ = select.select([fd], [], [], ESCAPE_TIMEOUT)
            presses = self.input.read_keys() if ready else self.input.flush_keys()
            for name in key_names(presses):
                self.on_key(name)
