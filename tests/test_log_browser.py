"""Log browser: listing, streaming, local search and digit jumps."""
from __future__ import annotations

import subprocess
from datetime import datetime
from io import StringIO
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from cirrus.errors import SubprocessError, TransportError
from cirrus.services.logs import commands, search
from cirrus.services.logs.browser import LogBrowser, State
from cirrus.services.logs.store import LogEvent, list_all_log_groups
from cirrus.services.logs.view import NO_MATCHES, format_event, render_events
from cirrus.tui.messages import BackToMenu, KeyPress, Resize


def press(browser, run_effects, *keys):
    effects = []
    for key in keys:
        effects += run_effects(browser, browser.update(KeyPress(key)))
    return effects


def rendered(browser) -> str:
    out = StringIO()
    Console(file=out, width=120).print(browser.view())
    return out.getvalue()


def stamp(ms: int) -> str:
    dt = datetime.fromtimestamp(ms / 1000)
    return f"{dt:%H:%M:%S}.{dt.microsecond // 1000:03d}"


def completed(code, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=["rg"], returncode=code, stdout=stdout, stderr=stderr)


@pytest.fixture
def browser(log_store, run_effects):
    b = LogBrowser(log_store, name_pattern="/aws/lambda/", env="dev")
    b.update(Resize(120, 30))
    run_effects(b, b.init())
    return b


# ═══════════════════════════════════════════════════════════════════════════════
# PURE HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def test_format_event_trims_and_uses_millis():
    assert format_event(LogEvent(1_700_000_000_123, "  hi \n")) == f"{stamp(1_700_000_000_123)} hi"
    assert format_event(LogEvent(0, None)) is None


def test_render_events_skips_empty_messages(events):
    lines = render_events(events).splitlines()

    assert len(lines) == 3
    assert lines[1].endswith("ERROR boom")


def test_env_filter_keeps_matching_suffix(log_store):
    groups = list_all_log_groups(log_store, "/aws/lambda/", env="dev")

    assert [g.display_name for g in groups] == ["api-dev", "worker-dev", "cron-dev"]
    assert [c[2] for c in log_store.calls] == [None, "1"]


def test_load_events_uses_window_and_limit(log_store):
    task = commands.load_events(log_store, "g", window_minutes=10, limit=500, epoch=1, clock=lambda: 1000.0)

    task.run()

    assert log_store.calls[-1] == ("filter_log_events", "g", 400_000, 1_000_000, 500)


# ═══════════════════════════════════════════════════════════════════════════════
# SEARCH TOOL
# ═══════════════════════════════════════════════════════════════════════════════

def test_search_passes_pattern_and_stdin(monkeypatch):
    run = MagicMock(return_value=completed(0, "b\n"))
    monkeypatch.setattr(search.subprocess, "run", run)

    assert search.search_text("rg", "b", "a\nb\n") == "b\n"
    args, kwargs = run.call_args
    assert args[0] == ["rg", "--color", "never", "-e", "b"]
    assert kwargs["input"] == "a\nb\n"
    assert kwargs["text"] is True


def test_search_no_match_is_empty_success(monkeypatch):
    monkeypatch.setattr(search.subprocess, "run", MagicMock(return_value=completed(1)))

    assert search.search_text("rg", "zzz", "a") == ""


def test_search_other_exit_is_error(monkeypatch):
    monkeypatch.setattr(search.subprocess, "run", MagicMock(return_value=completed(2, stderr="regex parse error")))

    with pytest.raises(SubprocessError) as info:
        search.search_text("rg", "(", "a")
    assert info.value.returncode == 2
    assert "regex parse error" in str(info.value)


def test_search_launch_failure_is_error(monkeypatch):
    monkeypatch.setattr(search.subprocess, "run", MagicMock(side_effect=FileNotFoundError("rg")))

    with pytest.raises(SubprocessError, match="could not run rg"):
        search.search_text("rg", "x", "a")


def test_search_pattern_starting_with_dash_is_not_an_option(monkeypatch):
    run = MagicMock(return_value=completed(0, "--files\n"))
    monkeypatch.setattr(search.subprocess, "run", run)

    assert search.search_text("rg", "--files", "--files\nother\n") == "--files\n"
    cmd = run.call_args.args[0]
    assert cmd[-2:] == ["-e", "--files"]


# ═══════════════════════════════════════════════════════════════════════════════
# BROWSER
# ═══════════════════════════════════════════════════════════════════════════════

def test_init_lists_groups_across_pages(browser):
    assert browser.state is State.GROUP_LIST
    assert [g.display_name for g in browser.groups] == ["api-dev", "worker-dev", "cron-dev"]
    text = rendered(browser)
    assert "1. api-dev" in text
    assert "/aws/lambda/" not in text


def test_q_returns_to_menu(browser):
    effects = browser.update(KeyPress("q"))

    assert isinstance(effects[0].message, BackToMenu)


def test_open_group_streams_events_at_bottom(browser, run_effects):
    press(browser, run_effects, "enter")

    assert browser.state is State.STREAM
    assert browser.current_group.display_name == "api-dev"
    assert browser.viewport.lines[0] == f"{stamp(1_700_000_000_123)} START request"
    assert browser.viewport.offset == browser.viewport.max_offset
    assert "ERROR boom" in rendered(browser)


def test_digit_jumps_from_list_and_stream(browser, run_effects):
    press(browser, run_effects, "2")
    assert browser.current_group.display_name == "worker-dev"
    assert browser.selected_idx == 1

    press(browser, run_effects, "1")
    assert browser.current_group.display_name == "api-dev"

    press(browser, run_effects, "9")
    assert browser.state is State.STREAM
    assert browser.current_group.display_name == "api-dev"


def test_search_filters_into_separate_buffer(browser, run_effects, monkeypatch):
    run = MagicMock(return_value=completed(0, "x ERROR boom\n"))
    monkeypatch.setattr(search.subprocess, "run", run)
    press(browser, run_effects, "enter")
    unfiltered = browser.unfiltered

    press(browser, run_effects, "/", *"ERROR", "enter")

    assert browser.state is State.STREAM
    assert browser.filtered == "x ERROR boom"
    assert browser.viewport.lines == ["x ERROR boom"]
    assert browser.viewport.offset == 0
    assert browser.unfiltered == unfiltered
    assert run.call_args.kwargs["input"] == unfiltered
    assert "filter: ERROR" in rendered(browser)

    press(browser, run_effects, "c")
    assert browser.filtered is None
    assert browser.viewport.lines == unfiltered.splitlines()


def test_search_without_matches_shows_notice(browser, run_effects, monkeypatch):
    monkeypatch.setattr(search.subprocess, "run", MagicMock(return_value=completed(1)))
    press(browser, run_effects, "enter", "/", *"nothing", "enter")

    assert browser.filtered == ""
    assert browser.viewport.lines == [NO_MATCHES]
    assert browser.err is None


def test_search_failure_shows_overlay(browser, run_effects, monkeypatch):
    monkeypatch.setattr(search.subprocess, "run", MagicMock(side_effect=OSError("no such file")))
    press(browser, run_effects, "enter", "/", "x", "enter")

    assert browser.state is State.STREAM
    assert isinstance(browser.err, SubprocessError)

    press(browser, run_effects, "enter")
    assert browser.err is None


def test_empty_pattern_clears_without_running_tool(browser, run_effects, monkeypatch):
    run = MagicMock(return_value=completed(0, "a\n"))
    monkeypatch.setattr(search.subprocess, "run", run)
    press(browser, run_effects, "enter", "/", "a", "enter")
    assert browser.filtered == "a"

    press(browser, run_effects, "/", "backspace", "enter")

    assert browser.filtered is None
    assert run.call_count == 1


def test_search_input_esc_keeps_current_view(browser, run_effects):
    press(browser, run_effects, "enter", "/", "x", "esc")

    assert browser.state is State.STREAM
    assert browser.filtered is None


def test_loading_cancel_from_stream_keeps_old_group(browser, run_effects):
    press(browser, run_effects, "enter")
    stale = browser.update(KeyPress("2"))[0]
    browser.update(KeyPress("esc"))

    assert browser.state is State.STREAM
    assert browser.current_group.display_name == "api-dev"
    assert browser.update(stale.run()) == []
    assert browser.current_group.display_name == "api-dev"


def test_event_fetch_error_returns_to_list(browser, log_store, run_effects):
    log_store.fail_on["filter_log_events"] = TransportError("access denied")

    press(browser, run_effects, "enter")

    assert browser.state is State.GROUP_LIST
    assert "access denied" in rendered(browser)


def test_back_from_stream_resets_buffers(browser, run_effects):
    press(browser, run_effects, "enter", "q")

    assert browser.state is State.GROUP_LIST
    assert browser.unfiltered == ""
    assert browser.current_group is None


def test_stream_scroll_keys(browser, run_effects):
    press(browser, run_effects, "enter")
    browser.viewport.set_height(1)
    browser.viewport.goto_bottom()

    press(browser, run_effects, "home")
    assert browser.viewport.offset == 0

    press(browser, run_effects, "j")
    assert browser.viewport.offset == 1
