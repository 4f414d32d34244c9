"""Event loop: effect execution, timers and task failures."""
from __future__ import annotations

import queue
import time
from io import StringIO
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from cirrus.tui.messages import QUIT, KeyPress, Post, Resize, ShowToast, Task, Timer, ToastLevel
from cirrus.tui.runtime import EventLoop


@pytest.fixture
def model():
    m = MagicMock()
    m.update.return_value = []
    return m


@pytest.fixture
def loop(model):
    lp = EventLoop(model, console=Console(file=StringIO()), workers=2, size=lambda: (80, 24))
    yield lp
    lp.shutdown()


def test_step_posts_initial_resize(loop, model):
    assert loop.step(timeout=0.5) is True

    model.update.assert_called_once_with(Resize(80, 24))


def test_quit_effect_stops_loop(loop, model):
    model.update.return_value = [QUIT]
    loop.post(KeyPress("q"))

    assert loop.step(timeout=0.5) is False


def test_post_effect_enqueues(loop):
    assert loop.execute([Post("hello")])

    assert loop.inbox.get_nowait() == "hello"


def test_task_result_is_posted(loop):
    loop.execute([Task(lambda: "done", name="t")])

    assert loop.inbox.get(timeout=2) == "done"


def test_crashing_task_becomes_error_toast(loop):
    def boom():
        raise RuntimeError("kaput")

    loop.execute([Task(boom, name="boom")])
    msg = loop.inbox.get(timeout=2)

    assert isinstance(msg, ShowToast)
    assert msg.level is ToastLevel.ERROR
    assert "kaput" in msg.message


def test_timer_posts_after_delay(loop):
    loop.execute([Timer(0.01, "tick")])

    assert loop.inbox.get(timeout=2) == "tick"


def test_newer_timer_with_same_key_cancels_older(loop):
    loop.execute([Timer(0.2, "old", key="toast")])
    loop.execute([Timer(0.05, "new", key="toast")])

    assert loop.inbox.get(timeout=2) == "new"
    time.sleep(0.3)
    with pytest.raises(queue.Empty):
        loop.inbox.get_nowait()


def test_shutdown_cancels_pending_timers(loop):
    loop.execute([Timer(0.1, "late", key="k")])
    loop.shutdown()
    time.sleep(0.2)

    assert loop.inbox.empty()
