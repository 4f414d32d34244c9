"""Single-threaded update loop with off-loop workers.

One :class:`queue.Queue` is the only inbound channel. Keys, resizes, task
results and timer firings are all posted to it; :meth:`EventLoop.run`
takes one message at a time, hands it to ``app.update`` and executes the
effects it returns. State is only ever touched from the loop thread.
"""
from __future__ import annotations

import logging
import queue
import shutil
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Protocol

from rich.console import Console, RenderableType
from rich.live import Live

from .messages import QUIT, KeyPress, Post, Resize, ShowToast, Task, Timer, ToastLevel

logger = logging.getLogger(__name__)

# How often the loop wakes up to check the terminal size.
POLL_INTERVAL = 0.1


class Model(Protocol):
    def update(self, msg: Any) -> list: ...

    def view(self) -> RenderableType: ...


def terminal_size() -> tuple[int, int]:
    size = shutil.get_terminal_size()
    return size.columns, size.lines


class EventLoop:
    """Drive ``model`` until it returns :data:`QUIT`.

    Args:
        model: Root model with ``update(msg) -> effects`` and ``view()``.
        console: Rich console to render on.
        workers: Size of the worker pool used for :class:`Task` effects.
        size: Terminal size probe, polled between messages.
    """

    def __init__(
        self,
        model: Model,
        console: Console | None = None,
        workers: int = 4,
        size: Callable[[], tuple[int, int]] = terminal_size,
    ):
        self.model = model
        self.console = console or Console()
        self.size = size
        self.inbox: queue.Queue = queue.Queue()
        self.pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="cirrus-task")
        self.timers: dict[str, threading.Timer] = {}
        self._timers_lock = threading.Lock()
        self._last_size: tuple[int, int] | None = None
        self.running = False

    # ═══════════════════════════════════════════════════════════════════════════
    # POSTING
    # ═══════════════════════════════════════════════════════════════════════════

    def post(self, msg: Any) -> None:
        self.inbox.put(msg)

    def post_key(self, key: str) -> None:
        self.post(KeyPress(key))

    # ═══════════════════════════════════════════════════════════════════════════
    # EFFECTS
    # ═══════════════════════════════════════════════════════════════════════════

    def execute(self, effects: list) -> bool:
        """Run ``effects``. Returns False when one of them is QUIT."""
        for effect in effects:
            if effect is QUIT:
                return False
            if isinstance(effect, Task):
                self._submit(effect)
            elif isinstance(effect, Post):
                self.post(effect.message)
            elif isinstance(effect, Timer):
                self._schedule(effect)
            else:
                logger.error("unknown effect %r", effect)
        return True

    def _submit(self, task: Task) -> None:
        logger.debug("task %s submitted", task.name)
        future = self.pool.submit(task.run)
        future.add_done_callback(lambda f, name=task.name: self._task_done(name, f))

    def _task_done(self, name: str, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            # Commands return their errors as messages; this is a bug path.
            logger.error("task %s crashed", name, exc_info=exc)
            self.post(ShowToast(f"Internal error in {name}: {exc}", ToastLevel.ERROR))
            return
        result = future.result()
        if result is not None:
            self.post(result)

    def _schedule(self, timer: Timer) -> None:
        t = threading.Timer(timer.delay, self.post, args=(timer.message,))
        t.daemon = True
        if timer.key is not None:
            with self._timers_lock:
                previous = self.timers.pop(timer.key, None)
                if previous is not None:
                    previous.cancel()
                self.timers[timer.key] = t
        t.start()

    # ═══════════════════════════════════════════════════════════════════════════
    # LOOP
    # ═══════════════════════════════════════════════════════════════════════════

    def check_size(self) -> None:
        current = self.size()
        if current != self._last_size:
            self._last_size = current
            self.post(Resize(*current))

    def step(self, timeout: float = POLL_INTERVAL) -> bool:
        """Process at most one message. Returns False once the model quits."""
        self.check_size()
        try:
            msg = self.inbox.get(timeout=timeout)
        except queue.Empty:
            return True
        return self.execute(self.model.update(msg))

    def run(self, init: list | None = None, key_reader=None) -> None:
        """Render full-screen and process messages until QUIT."""
        self.running = True
        if init and not self.execute(init):
            self.running = False
        if key_reader is not None:
            key_reader.start()
        try:
            with Live(self.model.view(), console=self.console, screen=True, auto_refresh=False) as live:
                while self.running:
                    self.running = self.step()
                    live.update(self.model.view(), refresh=True)
        finally:
            if key_reader is not None:
                key_reader.stop()
            self.shutdown()
        # Leave the farewell on the normal screen.
        self.console.print(self.model.view())

    def shutdown(self) -> None:
        with self._timers_lock:
            for t in self.timers.values():
                t.cancel()
            self.timers.clear()
        self.pool.shutdown(wait=False, cancel_futures=True)
