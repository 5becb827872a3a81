"""Interactive terminal view rendered with rich."""

from __future__ import annotations

import logging
from collections.abc import Callable

import click
from rich import box
from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text

from awscosts.models import PeriodSummary, TrendMatrix
from awscosts.navigation import NavigationState, Tab
from awscosts.render import (
    GREEN,
    RED,
    YELLOW,
    cost_color,
    format_delta,
    format_money,
    make_bar,
    service_color,
    short_service_name,
)
from awscosts.session import Dashboard

logger = logging.getLogger(__name__)

# header, tabs, summary panel, table borders and footer
_CHROME_ROWS = 16
_ACCENT = {
    Tab.CURRENT: GREEN,
    Tab.PREVIOUS: (170, 128, 255),
    Tab.TREND: (255, 184, 77),
}

_QUIT = {"q", "Q", "\x1b"}
_NEXT_TAB = {"\t", "\x1b[C", "\xe0M", "\x00M"}
_PREV_TAB = {"\x1b[Z", "\x1b[D", "\xe0K", "\x00K"}
_DOWN = {"j", "\x1b[B", "\xe0P", "\x00P"}
_UP = {"k", "\x1b[A", "\xe0H", "\x00H"}
_TOP = {"g", "\x1b[H", "\x1b[1~", "\x1bOH", "\xe0G", "\x00G"}
_BOTTOM = {"G", "\x1b[F", "\x1b[4~", "\x1bOF", "\xe0O", "\x00O"}


def _rgb(color: tuple[int, int, int]) -> str:
    return "rgb({},{},{})".format(*color)


def visible_rows_for(console: Console) -> int:
    return max(console.size.height - _CHROME_ROWS, 1)


def handle_key(
    key: str,
    nav: NavigationState,
    dashboard: Dashboard,
    visible_rows: int,
) -> tuple[NavigationState, bool]:
    """Apply one key press; returns (new state, quit requested)."""
    if key in _QUIT:
        return nav, True
    rows = dashboard.row_count(nav.active_tab)
    if key in _NEXT_TAB:
        return nav.next_tab(), False
    if key in _PREV_TAB:
        return nav.prev_tab(), False
    if key in _DOWN:
        return nav.move_down(rows, visible_rows), False
    if key in _UP:
        return nav.move_up(rows, visible_rows), False
    if key in _TOP:
        return nav.go_top(rows, visible_rows), False
    if key in _BOTTOM:
        return nav.go_bottom(rows, visible_rows), False
    return nav, False


def _tabs(active: Tab) -> Text:
    text = Text()
    for i, tab in enumerate(Tab):
        if i:
            text.append(" │ ", style="bright_black")
        style = Style(color=_rgb(_ACCENT[tab]))
        if tab is active:
            style += Style(bold=True, underline=True)
        text.append(tab.title, style=style)
    return text


def _no_data(message: str = "No data available") -> Panel:
    return Panel(Text(message, style="grey50"), border_style="bright_black")


def _summary_view(
    summary: PeriodSummary | None,
    nav: NavigationState,
    visible_rows: int,
    accent: tuple[int, int, int],
) -> RenderableType:
    if summary is None:
        return _no_data()

    header = Text.assemble(
        ("Period: ", "grey62"),
        (summary.period.title, "bold white"),
        "\n",
        ("Total Cost: ", "grey62"),
        (format_money(summary.total), Style(color=_rgb(cost_color(summary.total)), bold=True)),
        (f" {summary.currency}", "bright_black"),
        (f"  ({len(summary.services)} services)", "grey66"),
    )
    table = Table(box=box.SIMPLE_HEAD, expand=True, header_style=f"bold {_rgb(YELLOW)}")
    table.add_column("#", width=4)
    table.add_column("", width=2)
    table.add_column("Service", ratio=2)
    table.add_column("Cost", justify="right")
    table.add_column("%", justify="right")
    table.add_column("Distribution", ratio=1)

    window = summary.services[nav.scroll_offset : nav.scroll_offset + visible_rows]
    for service in window:
        color = _rgb(service_color(service.color_index))
        selected = service.rank - 1 == nav.selected_row
        table.add_row(
            Text(f"#{service.rank}", style="bright_black"),
            Text("██", style=color),
            short_service_name(service.name, 40, ellipsis="…"),
            Text(format_money(service.amount), style=Style(color=_rgb(cost_color(service.amount)), bold=True)),
            f"{service.percent_of_total:.1f}%",
            Text(make_bar(service.bar_fraction), style=color),
            style="on rgb(60,60,80)" if selected else None,
        )
    return Group(
        Panel(header, title="Cost Summary", border_style=_rgb(accent)),
        Panel(table, title="Service Breakdown", border_style=_rgb((78, 205, 196))),
    )


def _trend_view(
    trend: TrendMatrix | None,
    nav: NavigationState,
    visible_rows: int,
) -> RenderableType:
    if trend is None or not trend.months:
        return _no_data()

    grid = Table(box=box.SIMPLE_HEAD, expand=True, header_style=f"bold {_rgb(YELLOW)}")
    grid.add_column("Service", ratio=2)
    for month in trend.months:
        grid.add_column(month.start.strftime("%b"), justify="right")
    window = trend.top_services[nav.scroll_offset : nav.scroll_offset + visible_rows]
    for offset, name in enumerate(window, start=nav.scroll_offset):
        color = _rgb(service_color(trend.colors.get(name, 0)))
        grid.add_row(
            Text.assemble(("██ ", color), short_service_name(name, 25, ellipsis="…")),
            *(f"{trend.amount(name, i):,.2f}" for i in range(len(trend.months))),
            style="on rgb(60,60,80)" if offset == nav.selected_row else None,
        )

    totals = Table(box=box.SIMPLE_HEAD, expand=True, header_style=f"bold {_rgb(YELLOW)}")
    totals.add_column("Period")
    totals.add_column("Total", justify="right")
    totals.add_column("Change", justify="right")
    last = len(trend.monthly_totals) - 1
    for i, month in enumerate(trend.monthly_totals):
        delta = month.delta_percent
        if delta is not None and delta > 10:
            change_style = _rgb(RED)
        elif delta is not None and delta < -10:
            change_style = _rgb(GREEN)
        else:
            change_style = "yellow"
        totals.add_row(
            month.period.title,
            Text(format_money(month.total), style=Style(color=_rgb(cost_color(month.total)), bold=True)),
            Text(format_delta(delta), style=change_style),
            style=f"bold {_rgb(GREEN)}" if i == last else None,
        )

    return Group(
        Panel(grid, title="Monthly Cost Trend by Service", border_style=_rgb((255, 184, 77))),
        Panel(totals, title="Monthly Totals", border_style=_rgb(YELLOW)),
    )


def build_view(
    dashboard: Dashboard,
    nav: NavigationState,
    visible_rows: int,
) -> RenderableType:
    """Compose the full screen for the current navigation state."""
    header = Panel(
        Text.assemble(
            ("AWS", Style(color="rgb(255,153,0)", bold=True)),
            (" Cost Explorer ", "bold white"),
            ("TUI", Style(color=_rgb((78, 205, 196)), bold=True)),
        ),
        border_style="rgb(255,153,0)",
    )
    tabs = Panel(_tabs(nav.active_tab), title="Views", border_style="grey39")

    if nav.active_tab is Tab.CURRENT:
        body = _summary_view(dashboard.current, nav, visible_rows, _ACCENT[Tab.CURRENT])
    elif nav.active_tab is Tab.PREVIOUS:
        body = _summary_view(dashboard.previous, nav, visible_rows, _ACCENT[Tab.PREVIOUS])
    else:
        body = _trend_view(dashboard.trend, nav, visible_rows)

    footer = Text.assemble(
        (" q ", "black on rgb(255,107,107)"),
        " Quit  ",
        (" ←→ ", "black on rgb(78,205,196)"),
        " Tab  ",
        (" ↑↓ ", "black on rgb(255,230,109)"),
        " Navigate  ",
        (" g/G ", "black on rgb(170,128,255)"),
        " Top/Bottom",
    )
    parts: list[RenderableType] = [header, tabs, body]
    for warning in dashboard.warnings:
        parts.append(Text(f"! {warning}", style="yellow"))
    parts.append(Panel(footer, title="Shortcuts", border_style="grey30"))
    return Group(*parts)


def run_interactive(
    dashboard: Dashboard,
    console: Console | None = None,
    read_key: Callable[[], str] = click.getchar,
) -> NavigationState:
    """Run the key loop until quit; returns the final navigation state."""
    console = console or Console()
    nav = NavigationState()
    with Live(
        build_view(dashboard, nav, visible_rows_for(console)),
        console=console,
        screen=True,
        auto_refresh=False,
    ) as live:
        while True:
            visible = visible_rows_for(console)
            nav, should_quit = handle_key(read_key(), nav, dashboard, visible)
            if should_quit:
                break
            live.update(build_view(dashboard, nav, visible), refresh=True)
    logger.debug("Interactive view closed on tab %s", nav.active_tab.name)
    return nav
