"""Tests for the interactive view: key handling and screen composition."""

from __future__ import annotations

import io
from datetime import date

import pytest
from conftest import make_report
from rich.console import Console

from awscosts.aggregator import ColorAssignment, build_trend, summarize
from awscosts.navigation import NavigationState, Tab
from awscosts.periods import trend_ranges
from awscosts.session import Dashboard
from awscosts.tui import build_view, handle_key, run_interactive


@pytest.fixture
def dashboard() -> Dashboard:
    colors = ColorAssignment()
    current = summarize(
        make_report({f"Service {i}": str(100 - i) for i in range(10)}), colors
    )
    ranges = trend_ranges(date(2026, 10, 18), 2)
    trend = build_trend(
        [
            make_report({"Amazon EC2": "100"}, ranges[0].start, ranges[0].end),
            make_report({"Amazon EC2": "130"}, ranges[1].start, ranges[1].end),
        ],
        colors,
    )
    return Dashboard(current=current, previous=None, trend=trend)


def _text(renderable: object, height: int = 60) -> str:
    console = Console(record=True, width=120, height=height, file=io.StringIO())
    console.print(renderable)
    return console.export_text()


@pytest.mark.parametrize("key", ["q", "Q", "\x1b"])
def test_quit_keys(dashboard: Dashboard, key: str) -> None:
    nav, should_quit = handle_key(key, NavigationState(), dashboard, 5)
    assert should_quit
    assert nav == NavigationState()


@pytest.mark.parametrize(
    "key,expected_tab",
    [("\t", Tab.PREVIOUS), ("\x1b[C", Tab.PREVIOUS), ("\x1b[Z", Tab.TREND), ("\x1b[D", Tab.TREND)],
)
def test_tab_keys(dashboard: Dashboard, key: str, expected_tab: Tab) -> None:
    nav, should_quit = handle_key(key, NavigationState(), dashboard, 5)
    assert not should_quit
    assert nav.active_tab is expected_tab


def test_row_keys_use_active_list_length(dashboard: Dashboard) -> None:
    nav = NavigationState()
    nav, _ = handle_key("G", nav, dashboard, 4)
    assert (nav.selected_row, nav.scroll_offset) == (9, 6)
    nav, _ = handle_key("j", nav, dashboard, 4)
    assert nav.selected_row == 9
    nav, _ = handle_key("\x1b[A", nav, dashboard, 4)
    assert nav.selected_row == 8
    nav, _ = handle_key("g", nav, dashboard, 4)
    assert (nav.selected_row, nav.scroll_offset) == (0, 0)


def test_row_keys_on_empty_tab(dashboard: Dashboard) -> None:
    nav = NavigationState(Tab.PREVIOUS)
    nav, _ = handle_key("j", nav, dashboard, 4)
    assert nav.selected_row == 0


def test_unknown_key_ignored(dashboard: Dashboard) -> None:
    nav = NavigationState(Tab.TREND)
    assert handle_key("x", nav, dashboard, 4) == (nav, False)


def test_current_view_shows_window_only(dashboard: Dashboard) -> None:
    text = _text(build_view(dashboard, NavigationState(scroll_offset=2, selected_row=2), 3))
    assert "Service 2" in text
    assert "Service 4" in text
    assert "Service 1 " not in text
    assert "Service 5" not in text
    assert "Current Month" in text


def test_previous_view_without_data(dashboard: Dashboard) -> None:
    text = _text(build_view(dashboard, NavigationState(Tab.PREVIOUS), 5))
    assert "No data available" in text


def test_trend_view(dashboard: Dashboard) -> None:
    text = _text(build_view(dashboard, NavigationState(Tab.TREND), 5))
    assert "EC2" in text
    assert "+30.0%" in text
    assert "September 2026" in text


def test_warnings_are_shown() -> None:
    view = build_view(Dashboard(warnings=("monthly trend: DecodeError: bad",)), NavigationState(), 5)
    assert "monthly trend: DecodeError: bad" in _text(view)


def test_run_interactive_until_quit(dashboard: Dashboard) -> None:
    keys = iter(["\t", "\t", "j", "q"])
    console = Console(file=io.StringIO(), width=120, height=40)

    nav = run_interactive(dashboard, console=console, read_key=lambda: next(keys))

    assert nav.active_tab is Tab.TREND
    assert nav.selected_row == 0
