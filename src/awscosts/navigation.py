"""Tab and row-cursor state for the interactive view. Pure, no I/O."""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace


class Tab(enum.Enum):
    CURRENT = 0
    PREVIOUS = 1
    TREND = 2

    @property
    def title(self) -> str:
        return _TITLES[self]


_TITLES = {
    Tab.CURRENT: "Current Month",
    Tab.PREVIOUS: "Previous Month",
    Tab.TREND: "6-Month Trend",
}
_ORDER = list(Tab)


def _scrolled(selected: int, offset: int, visible_rows: int) -> int:
    """Smallest scroll change that keeps ``selected`` inside the window."""
    visible_rows = max(visible_rows, 1)
    if selected < offset:
        return selected
    if selected >= offset + visible_rows:
        return selected - visible_rows + 1
    return offset


@dataclass(frozen=True)
class NavigationState:
    """Active tab plus selection/scroll cursor for that tab's list.

    Every transition is total and returns a new state; row-bound moves take
    the active list's ``row_count`` and the window height ``visible_rows``.
    """

    active_tab: Tab = Tab.CURRENT
    selected_row: int = 0
    scroll_offset: int = 0

    def _tab_step(self, step: int) -> NavigationState:
        index = (_ORDER.index(self.active_tab) + step) % len(_ORDER)
        return NavigationState(active_tab=_ORDER[index])

    def next_tab(self) -> NavigationState:
        return self._tab_step(1)

    def prev_tab(self) -> NavigationState:
        return self._tab_step(-1)

    def select(self, row: int, row_count: int, visible_rows: int) -> NavigationState:
        """Move the cursor to ``row`` clamped to the list bounds."""
        last = max(row_count - 1, 0)
        row = min(max(row, 0), last)
        offset = _scrolled(row, self.scroll_offset, visible_rows)
        # shrink back if the list got shorter than the window
        offset = max(min(offset, max(row_count - max(visible_rows, 1), 0)), 0)
        return replace(self, selected_row=row, scroll_offset=offset)

    def move_down(self, row_count: int, visible_rows: int) -> NavigationState:
        return self.select(self.selected_row + 1, row_count, visible_rows)

    def move_up(self, row_count: int, visible_rows: int) -> NavigationState:
        return self.select(self.selected_row - 1, row_count, visible_rows)

    def go_top(self, row_count: int, visible_rows: int) -> NavigationState:
        return self.select(0, row_count, visible_rows)

    def go_bottom(self, row_count: int, visible_rows: int) -> NavigationState:
        return self.select(row_count - 1, row_count, visible_rows)
